"""Request/response schemas for SCM provider operations.

Schemas are addressed by name (``plugins.scm.*`` for requests,
``core.scm.*`` and ``models.*`` for results) through a ``SchemaValidator``.
"""

from .models import CHECKOUT_URL_PATTERN, SCM_CONTEXT_PATTERN, SCM_URI_PATTERN
from .validator import SCHEMAS, PydanticSchemaValidator, SchemaValidator

__all__ = [
    "CHECKOUT_URL_PATTERN",
    "PydanticSchemaValidator",
    "SCHEMAS",
    "SCM_CONTEXT_PATTERN",
    "SCM_URI_PATTERN",
    "SchemaValidator",
]
