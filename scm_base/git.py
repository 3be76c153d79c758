"""Git checkout command rendering shared by git-based providers.

Providers typically implement ``_get_checkout_command`` as::

    async def _get_checkout_command(self, config):
        return GitCheckoutCommand(config, protocol="ssh").render()
"""

from __future__ import annotations

import logging
import shlex
from typing import Any, Dict, List, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

CHECKOUT_STEP_NAME = "sd-checkout-code"
DEFAULT_WORKSPACE = "/sd/workspace"


class GitCheckoutCommand:
    """Render the shell command checking out a build's source.

    Handles branch builds (shallow clone, fetch of the build sha, reset to it),
    pull requests (full-history clone, fetch and merge of the PR ref), monorepo
    root directories (sparse checkout), ``repo`` manifests and the parent
    config pipeline checkout. The build sha is fetched by id; it need not lie
    within the shallow clone of the branch tip.
    """

    def __init__(
        self,
        config: Mapping[str, Any],
        protocol: str = "https",
        workspace: str = DEFAULT_WORKSPACE,
        depth: int = 50,
    ):
        """Initialize the renderer.

        Args:
            config: Validated checkout configuration (branch, host, org, repo,
                sha, and optional pr_ref, root_dir, manifest, parent_config)
            protocol: "https" or "ssh" clone URLs
            workspace: Directory holding the source and config checkouts
            depth: Clone and fetch depth for branch and parent config
                checkouts (0 for full history); PR checkouts always clone
                full history so the merge base is available
        """
        if protocol not in ("https", "ssh"):
            raise ValueError(f"Unsupported clone protocol: {protocol}")
        self.config = config
        self.protocol = protocol
        self.workspace = workspace.rstrip("/")
        self.depth = depth

    def clone_url(self, host: str, org: str, repo: str) -> str:
        """Clone URL for a repository.

        Examples:
            >>> GitCheckoutCommand({}, protocol="ssh").clone_url("github.com", "org", "repo")
            'git@github.com:org/repo'
        """
        if self.protocol == "ssh":
            return f"git@{host}:{org}/{repo}"
        return f"https://{host}/{org}/{repo}"

    @property
    def source_dir(self) -> str:
        return f"{self.workspace}/src/{self.config['host']}/{self.config['org']}/{self.config['repo']}"

    @property
    def config_dir(self) -> str:
        return f"{self.workspace}/config"

    def _clone_steps(
        self,
        source: Mapping[str, Any],
        dest_dir: str,
        root_dir: Optional[str] = None,
        shallow: bool = True,
    ) -> List[Sequence[str]]:
        url = self.clone_url(source["host"], source["org"], source["repo"])
        clone_cmd: List[str] = ["git", "clone", "--quiet"]
        if shallow and self.depth:
            clone_cmd.extend(["--depth", str(self.depth)])
        if root_dir:
            clone_cmd.extend(["--filter=blob:none", "--no-checkout"])
        if source.get("branch"):
            clone_cmd.extend(["--branch", source["branch"]])
        clone_cmd.extend([url, dest_dir])

        steps: List[Sequence[str]] = [["mkdir", "-p", dest_dir], clone_cmd]
        if root_dir:
            steps.append(["git", "-C", dest_dir, "sparse-checkout", "set", root_dir])
            steps.append(["git", "-C", dest_dir, "checkout", "--quiet"])
        return steps

    def _fetch_commit(self, dest_dir: str, sha: str) -> List[str]:
        fetch_cmd = ["git", "-C", dest_dir, "fetch", "--quiet"]
        if self.depth:
            fetch_cmd.extend(["--depth", str(self.depth)])
        fetch_cmd.extend(["origin", sha])
        return fetch_cmd

    def steps(self) -> List[Sequence[str]]:
        """Commands of the checkout, in execution order."""
        config = self.config
        source_dir = self.source_dir
        root_dir = config.get("root_dir")
        pr_ref = config.get("pr_ref")

        steps = self._clone_steps(config, source_dir, root_dir, shallow=not pr_ref)
        steps.append(["git", "-C", source_dir, "config", "user.name", "sd-buildbot"])
        steps.append(["git", "-C", source_dir, "config", "user.email", "dev-null@screwdriver.cd"])

        if pr_ref:
            # PR builds merge the PR head into the target branch
            steps.append(["git", "-C", source_dir, "fetch", "--quiet", "origin", pr_ref])
            steps.append(["git", "-C", source_dir, "merge", "--no-edit", config["sha"]])
        else:
            steps.append(self._fetch_commit(source_dir, config["sha"]))
            steps.append(["git", "-C", source_dir, "reset", "--hard", config["sha"]])

        if config.get("manifest"):
            manifest_dir = f"{self.workspace}/manifest"
            steps.append(["mkdir", "-p", manifest_dir])
            sync_cmd = (
                f"cd {shlex.quote(manifest_dir)}"
                f" && repo init -u {shlex.quote(config['manifest'])}"
                " && repo sync --current-branch --quiet"
            )
            steps.append(["sh", "-c", sync_cmd])

        parent = config.get("parent_config")
        if parent:
            steps.extend(self._clone_steps(parent, self.config_dir))
            steps.append(self._fetch_commit(self.config_dir, parent["sha"]))
            steps.append(["git", "-C", self.config_dir, "reset", "--hard", parent["sha"]])

        return steps

    def render(self) -> Dict[str, str]:
        """Render the checkout as a named command.

        Returns:
            Mapping with ``name`` ("sd-checkout-code") and ``command``
        """
        command = " && ".join(shlex.join(step) for step in self.steps())
        logger.debug(
            "Rendered checkout for %s/%s: ref=%s pr_ref=%s",
            self.config["org"],
            self.config["repo"],
            self.config.get("branch"),
            self.config.get("pr_ref"),
        )
        return {"name": CHECKOUT_STEP_NAME, "command": command}
