"""Contract and validation layer for CI/CD source-control provider plugins.

Providers subclass `ScmBase` and override its `_`-prefixed hooks:
- Requests and results are validated against named schemas.
- Hooks a provider omits fail with `OperationNotImplementedError`.
- Provider exceptions propagate unchanged.
"""

from .base import ScmBase
from .checkout import MANIFEST_ANNOTATION, ScmUri, build_checkout_config
from .errors import OperationNotImplementedError, ProviderError, ScmError, ValidationError
from .git import GitCheckoutCommand
from .schemas import PydanticSchemaValidator, SchemaValidator

__all__ = [
    "GitCheckoutCommand",
    "MANIFEST_ANNOTATION",
    "OperationNotImplementedError",
    "ProviderError",
    "PydanticSchemaValidator",
    "SchemaValidator",
    "ScmBase",
    "ScmError",
    "ScmUri",
    "ValidationError",
    "build_checkout_config",
]
