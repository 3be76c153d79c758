"""Checkout configuration derived from pipeline, job and build state.

The resulting mapping is the request ``ScmBase.get_checkout_command``
validates against ``plugins.scm.getCheckoutCommand``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

# Job annotation holding the URL of a `repo` manifest to sync
MANIFEST_ANNOTATION = "screwdriver.cd/repoManifest"

# startFrom of a PR build scoped to a branch, e.g. "~pr:release-1.x"
PR_BRANCH_TRIGGER = re.compile(r"^~pr:(.+)$")


@dataclass(frozen=True)
class ScmUri:
    """Parsed ``host:repoId:branch[:rootDir]`` identifier."""

    host: str
    repo_id: str
    branch: str
    root_dir: Optional[str] = None

    @classmethod
    def parse(cls, uri: str) -> "ScmUri":
        """Split an SCM URI; everything after the third colon is the root dir.

        Examples:
            >>> ScmUri.parse("github.com:12345:main")
            ScmUri(host='github.com', repo_id='12345', branch='main', root_dir=None)
            >>> ScmUri.parse("github.com:12345:main:src/app:v2").root_dir
            'src/app:v2'
        """
        parts = uri.split(":")
        if len(parts) < 3:
            raise ValueError(f"Invalid SCM URI: {uri}")
        host, repo_id, branch = parts[:3]
        root_dir = ":".join(parts[3:]) if len(parts) > 3 else None
        return cls(host=host, repo_id=repo_id, branch=branch, root_dir=root_dir or None)

    def __str__(self) -> str:
        uri = f"{self.host}:{self.repo_id}:{self.branch}"
        if self.root_dir:
            uri = f"{uri}:{self.root_dir}"
        return uri


def _field(obj: Any, name: str, default: Any = None) -> Any:
    """Read a field from a mapping or an attribute from a model object."""
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def parse_repo_name(name: str) -> Tuple[str, str]:
    """Split ``org/repo`` on the first slash."""
    org, _, repo = name.partition("/")
    return org, repo


def _pipeline_coordinates(pipeline: Any) -> Tuple[ScmUri, str, str]:
    scm_uri = ScmUri.parse(_field(pipeline, "scm_uri"))
    org, repo = parse_repo_name(_field(_field(pipeline, "scm_repo"), "name", ""))
    return scm_uri, org, repo


def first_permutation_annotations(job: Any) -> Dict[str, Any]:
    """Annotations of the job's first permutation (later ones are ignored)."""
    permutations = _field(job, "permutations") or []
    if not permutations:
        return {}
    return _field(permutations[0], "annotations") or {}


def build_checkout_config(
    pipeline: Any,
    job: Any,
    build: Any,
    config_pipeline: Any = None,
    config_pipeline_sha: Optional[str] = None,
) -> Dict[str, Any]:
    """Derive the checkout configuration for a build.

    Args:
        pipeline: Pipeline with ``scm_uri``, ``scm_repo.name`` ("org/repo")
            and optional ``scm_context``
        job: Job with ``permutations``, each carrying an ``annotations`` map
        build: Build with ``sha`` and optional ``pr_ref``, ``pr_source``,
            ``pr_info.pr_branch_name``, ``base_branch`` and ``start_from``
        config_pipeline: Optional parent pipeline holding the shared config
        config_pipeline_sha: Commit of the parent pipeline to check out

    Returns:
        Mapping with branch, host, org, repo, sha and whichever of
        scm_context, root_dir, pr_ref, pr_source, pr_branch_name,
        commit_branch, parent_config and manifest apply.
    """
    scm_uri, org, repo = _pipeline_coordinates(pipeline)
    checkout_config: Dict[str, Any] = {
        "branch": scm_uri.branch,
        "host": scm_uri.host,
        "org": org,
        "repo": repo,
        "sha": _field(build, "sha"),
    }

    scm_context = _field(pipeline, "scm_context")
    if scm_context:
        checkout_config["scm_context"] = scm_context

    if scm_uri.root_dir:
        checkout_config["root_dir"] = scm_uri.root_dir

    pr_ref = _field(build, "pr_ref")
    if pr_ref:
        checkout_config["pr_ref"] = pr_ref

        # A ~pr:<branch> build merges into <branch>, not the pipeline branch
        match = PR_BRANCH_TRIGGER.match(_field(build, "start_from") or "")
        if match:
            checkout_config["branch"] = match.group(1)

        pr_source = _field(build, "pr_source")
        if pr_source:
            checkout_config["pr_source"] = pr_source

        pr_branch_name = _field(_field(build, "pr_info"), "pr_branch_name")
        if pr_branch_name:
            checkout_config["pr_branch_name"] = pr_branch_name

    base_branch = _field(build, "base_branch")
    if base_branch:
        checkout_config["commit_branch"] = base_branch

    if config_pipeline and config_pipeline_sha:
        parent_uri, parent_org, parent_repo = _pipeline_coordinates(config_pipeline)
        checkout_config["parent_config"] = {
            "host": parent_uri.host,
            "branch": parent_uri.branch,
            "org": parent_org,
            "repo": parent_repo,
            "sha": config_pipeline_sha,
        }

    manifest = first_permutation_annotations(job).get(MANIFEST_ANNOTATION)
    if manifest:
        checkout_config["manifest"] = manifest

    logger.debug(
        "Checkout config for %s/%s: branch=%s sha=%s pr_ref=%s",
        org,
        repo,
        checkout_config["branch"],
        checkout_config["sha"],
        pr_ref,
    )
    return checkout_config
