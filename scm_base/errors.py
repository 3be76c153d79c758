"""Error taxonomy shared by the contract enforcer and providers."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence


class ScmError(Exception):
    """Base class for errors raised by scm-base itself."""


class ValidationError(ScmError, ValueError):
    """Raised when a request or a provider result fails schema validation.

    Attributes:
        schema_id: Name of the schema that rejected the value
            (e.g. ``plugins.scm.parseUrl``)
        details: Violations reported by the validator, each a mapping with
            ``loc`` (field path tuple), ``msg`` and ``type`` keys
    """

    def __init__(
        self,
        schema_id: str,
        details: Optional[Sequence[Dict[str, Any]]] = None,
        *,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.schema_id = schema_id
        self.details: List[Dict[str, Any]] = list(details or ())
        super().__init__(self._format_message())
        self.__cause__ = cause

    def _format_message(self) -> str:
        if not self.details:
            return f"{self.schema_id}: validation failed"
        problems = []
        for detail in self.details:
            loc = ".".join(str(part) for part in detail.get("loc", ())) or "value"
            problems.append(f"{loc}: {detail.get('msg', 'invalid')}")
        return f"{self.schema_id}: " + "; ".join(problems)


class OperationNotImplementedError(ScmError, NotImplementedError):
    """Raised when the active provider does not implement an operation."""

    def __init__(self, operation: str) -> None:
        super().__init__("Not implemented")
        self.operation = operation


class ProviderError(ScmError):
    """Optional base class for provider-raised errors.

    The enforcer propagates every provider exception unchanged, whether or not
    it derives from this class.
    """

    def __init__(self, message: str, *, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.__cause__ = cause
