"""Request schemas for the SCM plugin operations.

Each model validates the mapping a caller hands to the matching ``ScmBase``
operation. Optional fields left out by the caller stay out of the validated
request passed on to the provider hook.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, model_validator

from .models import (
    BuildStatus,
    CheckoutUrl,
    NonEmptyStr,
    PrSource,
    Schema,
    ScmContext,
    ScmUriField,
    Sha,
    Token,
    WebhookUrl,
)


class AddWebhook(Schema):
    scm_uri: ScmUriField
    token: Token
    webhook_url: WebhookUrl
    scm_context: Optional[ScmContext] = None
    actions: Optional[List[NonEmptyStr]] = None


class AddDeployKey(Schema):
    checkout_url: CheckoutUrl
    token: Token
    scm_context: Optional[ScmContext] = None


class ParseUrl(Schema):
    checkout_url: CheckoutUrl
    token: Token
    scm_context: Optional[ScmContext] = None
    root_dir: Optional[str] = None


class GetChangedFiles(Schema):
    type: Literal["pr", "repo"]
    payload: Optional[Dict[str, Any]]
    token: Token
    scm_context: Optional[ScmContext] = None


class ParentConfig(Schema):
    """Checkout coordinates of the parent (config) pipeline."""

    host: NonEmptyStr
    branch: str
    org: NonEmptyStr
    repo: NonEmptyStr
    sha: Sha


class GetCheckoutCommand(Schema):
    branch: str
    host: NonEmptyStr
    org: NonEmptyStr
    repo: NonEmptyStr
    sha: Sha
    scm_context: Optional[ScmContext] = None
    pr_ref: Optional[NonEmptyStr] = None
    pr_source: Optional[PrSource] = None
    pr_branch_name: Optional[str] = None
    commit_branch: Optional[str] = None
    manifest: Optional[NonEmptyStr] = None
    root_dir: Optional[str] = None
    parent_config: Optional[ParentConfig] = None


class DecorateUrl(Schema):
    scm_uri: ScmUriField
    token: Token
    scm_context: Optional[ScmContext] = None


class DecorateCommit(Schema):
    sha: Sha
    scm_uri: ScmUriField
    token: Token
    scm_context: Optional[ScmContext] = None


class DecorateAuthor(Schema):
    username: NonEmptyStr
    token: Token
    scm_context: Optional[ScmContext] = None


class GetPermissions(Schema):
    scm_uri: ScmUriField
    token: Token
    scm_context: Optional[ScmContext] = None


class GetOrgPermissions(Schema):
    organization: NonEmptyStr
    username: NonEmptyStr
    token: Token
    scm_context: Optional[ScmContext] = None


class GetCommitSha(Schema):
    scm_uri: ScmUriField
    token: Token
    scm_context: Optional[ScmContext] = None
    pr_num: Optional[int] = Field(default=None, ge=1)


class GetCommitRefSha(Schema):
    token: Token
    owner: NonEmptyStr
    repo: NonEmptyStr
    ref: NonEmptyStr
    scm_context: Optional[ScmContext] = None
    ref_type: Optional[Literal["branch", "tag"]] = None


class UpdateCommitStatus(Schema):
    scm_uri: ScmUriField
    sha: Sha
    build_status: BuildStatus
    token: Token
    url: NonEmptyStr
    job_name: Optional[NonEmptyStr] = None
    pipeline_id: Optional[int] = Field(default=None, ge=1)
    scm_context: Optional[ScmContext] = None
    context: Optional[str] = None
    description: Optional[str] = None


class GetFile(Schema):
    scm_uri: ScmUriField
    path: NonEmptyStr
    token: Token
    scm_context: Optional[ScmContext] = None
    ref: Optional[NonEmptyStr] = None


class GetOpenedPRs(Schema):
    scm_uri: ScmUriField
    token: Token
    scm_context: Optional[ScmContext] = None


class GetPrInfo(Schema):
    scm_uri: ScmUriField
    token: Token
    pr_num: int = Field(ge=1)
    scm_context: Optional[ScmContext] = None


class AddPrComment(Schema):
    scm_uri: ScmUriField
    token: Token
    pr_num: int = Field(ge=1)
    comment: Optional[NonEmptyStr] = None
    comments: Optional[List[NonEmptyStr]] = Field(default=None, min_length=1)
    scm_context: Optional[ScmContext] = None

    @model_validator(mode="after")
    def require_comment(self) -> "AddPrComment":
        if self.comment is None and self.comments is None:
            raise ValueError("either comment or comments is required")
        return self


class GetBranchList(Schema):
    scm_uri: ScmUriField
    token: Token
    scm_context: Optional[ScmContext] = None


class FileChange(Schema):
    name: NonEmptyStr
    content: str


class OpenPr(Schema):
    checkout_url: CheckoutUrl
    token: Token
    files: List[FileChange] = Field(min_length=1)
    title: NonEmptyStr
    message: NonEmptyStr
    scm_context: Optional[ScmContext] = None
