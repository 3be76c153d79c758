"""Field types shared by request and response schemas."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, StringConstraints

# host:repoId:branch[:rootDir], rootDir may itself contain colons
SCM_URI_PATTERN = r"^[^:]+:[^:]+:[^:]*(:.+)?$"

# https://host/org/repo.git, git@host:org/repo.git, org-123@host:org/repo.git
CHECKOUT_URL_PATTERN = (
    r"^(?:(?:https://(?:[^@/:\s]+@)?)|git@|org-\d+@)"
    r"([^/:\s]+)(?:/|:)([^/:\s]+)/([^\s]+?)(?:\.git)(#[^\s]*)?$"
)

# scm plugin name and host, e.g. github:github.com
SCM_CONTEXT_PATTERN = r"^[^:\s]+:[^:\s]+$"

ScmUriField = Annotated[str, StringConstraints(pattern=SCM_URI_PATTERN)]
CheckoutUrl = Annotated[str, StringConstraints(pattern=CHECKOUT_URL_PATTERN)]
ScmContext = Annotated[str, StringConstraints(pattern=SCM_CONTEXT_PATTERN)]
Token = Annotated[str, StringConstraints(min_length=1)]
Sha = Annotated[str, StringConstraints(pattern=r"^[0-9a-fA-F]+$")]
NonEmptyStr = Annotated[str, StringConstraints(min_length=1)]
WebhookUrl = Annotated[str, StringConstraints(pattern=r"^https?://\S+$")]

PrSource = Literal["branch", "fork"]

BuildStatus = Literal[
    "SUCCESS",
    "FAILURE",
    "ABORTED",
    "RUNNING",
    "QUEUED",
    "CREATED",
    "BLOCKED",
    "UNSTABLE",
    "COLLAPSED",
    "FROZEN",
]


class Schema(BaseModel):
    """Base for all object schemas: unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")
