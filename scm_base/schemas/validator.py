"""Named-schema validation backed by pydantic.

The contract enforcer only sees the ``SchemaValidator`` protocol, so a
different validation backend can be injected into ``ScmBase``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

import pydantic
from pydantic import TypeAdapter

from ..errors import ValidationError
from . import core, plugins
from .models import ScmUriField, Sha

logger = logging.getLogger(__name__)

# results returned by providers are checked without type coercion
STRICT_PREFIXES = ("core.", "models.")

SCHEMAS: Mapping[str, Any] = {
    # requests
    "plugins.scm.addWebhook": plugins.AddWebhook,
    "plugins.scm.addDeployKey": plugins.AddDeployKey,
    "plugins.scm.parseUrl": plugins.ParseUrl,
    "plugins.scm.getChangedFiles": plugins.GetChangedFiles,
    "plugins.scm.getCheckoutCommand": plugins.GetCheckoutCommand,
    "plugins.scm.decorateUrl": plugins.DecorateUrl,
    "plugins.scm.decorateCommit": plugins.DecorateCommit,
    "plugins.scm.decorateAuthor": plugins.DecorateAuthor,
    "plugins.scm.getPermissions": plugins.GetPermissions,
    "plugins.scm.getOrgPermissions": plugins.GetOrgPermissions,
    "plugins.scm.getCommitSha": plugins.GetCommitSha,
    "plugins.scm.getCommitRefSha": plugins.GetCommitRefSha,
    "plugins.scm.updateCommitStatus": plugins.UpdateCommitStatus,
    "plugins.scm.getFile": plugins.GetFile,
    "plugins.scm.getOpenedPRs": plugins.GetOpenedPRs,
    "plugins.scm.getPrInfo": plugins.GetPrInfo,
    "plugins.scm.addPrComment": plugins.AddPrComment,
    "plugins.scm.getBranchList": plugins.GetBranchList,
    "plugins.scm.openPr": plugins.OpenPr,
    # responses
    "models.pipeline.scmUri": ScmUriField,
    "core.scm.hook": Optional[core.Hook],
    "core.scm.changedFiles": List[str],
    "core.scm.command": core.Command,
    "core.scm.repo": core.Repo,
    "core.scm.commit": core.Commit,
    "core.scm.user": core.User,
    "core.scm.permissions": core.Permissions,
    "core.scm.orgPermissions": core.OrgPermissions,
    "core.scm.commitSha": Sha,
    "core.scm.pullRequests": List[core.PullRequest],
    "core.scm.prInfo": core.PrInfo,
    "core.scm.prComment": core.PrCommentResult,
    "core.scm.webhookAccepted": bool,
    "core.scm.branches": List[core.Branch],
    "core.scm.webhookEventsMapping": Dict[str, Any],
}


class SchemaValidator(Protocol):
    """Validates a value against a schema identified by name."""

    def validate(self, value: Any, schema_id: str) -> Any:  # pragma: no cover - protocol
        """Return the validated value or raise ``ValidationError``."""
        ...


class PydanticSchemaValidator:
    """SchemaValidator over a registry of pydantic-compatible types.

    Validated objects are returned as plain Python data (dicts, lists, str)
    holding only the keys present in the input. Schemas whose id starts with
    one of ``strict_prefixes`` are validated in strict mode (``"yes"`` is not
    a bool, ``"5"`` is not an int); all others coerce compatible values.
    """

    def __init__(
        self,
        schemas: Optional[Mapping[str, Any]] = None,
        strict_prefixes: Sequence[str] = STRICT_PREFIXES,
    ) -> None:
        self._schemas: Dict[str, Any] = dict(SCHEMAS if schemas is None else schemas)
        self._strict_prefixes = tuple(strict_prefixes)
        self._adapters: Dict[str, TypeAdapter] = {}

    def __contains__(self, schema_id: str) -> bool:
        return schema_id in self._schemas

    def _adapter(self, schema_id: str) -> TypeAdapter:
        adapter = self._adapters.get(schema_id)
        if adapter is None:
            try:
                schema = self._schemas[schema_id]
            except KeyError:
                raise KeyError(f"Unknown schema: {schema_id}") from None
            adapter = TypeAdapter(schema)
            self._adapters[schema_id] = adapter
        return adapter

    def validate(self, value: Any, schema_id: str) -> Any:
        adapter = self._adapter(schema_id)
        try:
            validated = adapter.validate_python(
                value, strict=schema_id.startswith(self._strict_prefixes)
            )
        except pydantic.ValidationError as exc:
            details = [
                {"loc": tuple(err["loc"]), "msg": err["msg"], "type": err["type"]}
                for err in exc.errors()
            ]
            logger.debug("Value rejected by %s: %s", schema_id, details)
            raise ValidationError(schema_id, details, cause=exc)
        return adapter.dump_python(validated, exclude_unset=True)
