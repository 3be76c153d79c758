"""Provider configuration accessors.

The provider config is an opaque mapping owned by whoever instantiates the
provider. This module reads the few keys the base class itself cares about:

- ``display_name``: label shown for the SCM in the UI
- ``read_only``: mapping with ``enabled`` (plus provider-specific keys such as
  ``username`` or ``access_token``) for read-only SCM mode
- ``auto_deploy_key_generation``: whether deploy keys are generated for new
  pipelines

Values sourced from environment strings ("true", "0", ...) are accepted.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

_MISSING = object()


def _reach(config: Optional[Mapping[str, Any]], key: str) -> Any:
    """Resolve a dotted key (e.g. ``read_only.enabled``) in nested mappings."""
    value: Any = config
    for part in key.split("."):
        if not isinstance(value, Mapping) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _get_config_value(
    config: Optional[Mapping[str, Any]],
    key: str,
    default: Any,
    converter: Optional[Callable[[Any], Any]] = None,
) -> Any:
    """Get config value with fallback to the default.

    Args:
        config: Provider config mapping (may be None)
        key: Dotted key name
        default: Default value if not found or None
        converter: Optional function to convert the raw value (e.g., int, bool)

    Returns:
        Config value (converted if converter provided)
    """
    value = _reach(config, key)
    if value is _MISSING or value is None:
        return default

    if converter:
        try:
            return converter(value)
        except (ValueError, TypeError):
            logger.warning(
                "Invalid value for config key %s: %r, using default", key, value
            )
            return default
    return value


def _parse_bool(value: Any) -> bool:
    """Parse boolean value from config (string or bool).

    Accepts: True, "true", "True", "1", "yes", "on" -> True
             False, "false", "False", "0", "no", "off", "" -> False
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


def _parse_str(value: Any) -> str:
    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        raise TypeError(f"expected a string, got {type(value).__name__}")
    return str(value)


def display_name(config: Optional[Mapping[str, Any]]) -> str:
    """Display name of the SCM (default: empty string)."""
    return _get_config_value(config, "display_name", "", converter=_parse_str)


def read_only_info(config: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Read-only SCM settings, or an empty mapping when not configured."""
    value = _get_config_value(config, "read_only", {})
    if not isinstance(value, Mapping):
        logger.warning("Invalid value for config key read_only: %r, ignoring", value)
        return {}
    return dict(value)


def read_only_enabled(config: Optional[Mapping[str, Any]]) -> bool:
    """Whether the SCM is configured in read-only mode (default: False)."""
    return _get_config_value(config, "read_only.enabled", False, converter=_parse_bool)


def auto_deploy_key_generation(config: Optional[Mapping[str, Any]]) -> bool:
    """Whether deploy keys are generated automatically (default: False)."""
    return _get_config_value(
        config,
        "auto_deploy_key_generation",
        False,
        converter=_parse_bool,
    )
