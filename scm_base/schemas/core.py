"""Response schemas that provider results are checked against."""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import Field

from .models import CheckoutUrl, NonEmptyStr, PrSource, Schema, ScmContext


class Command(Schema):
    """Named shell command, e.g. the ``sd-checkout-code`` step."""

    name: NonEmptyStr
    command: NonEmptyStr


class Hook(Schema):
    """Webhook payload normalized by ``parse_hook``."""

    type: Literal["pr", "repo", "ping"]
    action: NonEmptyStr
    branch: str
    sha: str
    username: str
    checkout_url: CheckoutUrl
    pr_ref: Optional[str] = None
    pr_num: Optional[int] = None
    pr_source: Optional[PrSource] = None
    pr_title: Optional[str] = None
    hook_id: Optional[str] = None
    scm_context: Optional[ScmContext] = None
    ref: Optional[str] = None
    last_commit_message: Optional[str] = None
    added_files: Optional[List[str]] = None
    modified_files: Optional[List[str]] = None
    removed_files: Optional[List[str]] = None


class Repo(Schema):
    name: NonEmptyStr
    branch: str
    url: NonEmptyStr
    root_dir: Optional[str] = None
    private: Optional[bool] = None


class User(Schema):
    name: str
    username: NonEmptyStr
    avatar: str
    url: str


class Commit(Schema):
    username: str
    message: str
    url: NonEmptyStr
    author: Optional[User] = None
    committer: Optional[User] = None


class Permissions(Schema):
    admin: bool
    push: bool
    pull: bool


class OrgPermissions(Schema):
    admin: bool
    member: bool
    role: Optional[str] = None


class PullRequest(Schema):
    name: NonEmptyStr
    ref: NonEmptyStr
    username: Optional[str] = None
    title: Optional[str] = None
    create_time: Optional[str] = None
    url: Optional[str] = None
    user_profile: Optional[str] = None


class PrInfo(PullRequest):
    sha: NonEmptyStr
    pr_branch_name: Optional[str] = None
    base_branch: Optional[str] = None
    mergeable: Optional[bool] = None
    pr_source: Optional[PrSource] = None


class PrComment(Schema):
    comment_id: Union[int, str]
    create_time: str
    username: str


class Branch(Schema):
    name: NonEmptyStr


# a single comment, one per posted comment, or nothing when unsupported
PrCommentResult = Union[
    PrComment,
    List[PrComment],
    None,
    Annotated[Dict[str, Any], Field(max_length=0)],
]
