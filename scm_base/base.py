"""Base class every SCM provider plugin extends.

Providers override the ``_``-prefixed hooks. The public operations validate
the request, delegate to the hook and validate the hook's result, so
providers never reimplement validation. Hooks may be coroutines or plain
functions; exceptions they raise reach the caller unchanged.

Example:
    class GithubScm(ScmBase):
        async def _parse_url(self, config):
            ...
            return "github.com:920414:main"

    scm = GithubScm({"display_name": "GitHub"})
    scm_uri = await scm.parse_url(
        {"checkout_url": "git@github.com:org/repo.git", "token": token}
    )
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Dict, List, Mapping, Optional

from . import config as scm_config
from .checkout import build_checkout_config
from .errors import OperationNotImplementedError, ValidationError
from .schemas import PydanticSchemaValidator, SchemaValidator

logger = logging.getLogger(__name__)

ALL_PERMISSIONS = {"admin": True, "push": True, "pull": True}


async def _resolve(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


class ScmBase:
    """Contract enforcer wrapping provider hooks with schema validation.

    Configuration is replaced wholesale by ``configure``. There is no locking:
    the last write wins, and a reconfiguration racing with in-flight
    operations is the caller's concern.
    """

    # public operation -> name used by the wire schemas and hook callers
    OPERATIONS: Dict[str, str] = {
        "add_webhook": "addWebhook",
        "add_deploy_key": "addDeployKey",
        "parse_url": "parseUrl",
        "parse_hook": "parseHook",
        "get_changed_files": "getChangedFiles",
        "get_checkout_command": "getCheckoutCommand",
        "decorate_url": "decorateUrl",
        "decorate_commit": "decorateCommit",
        "decorate_author": "decorateAuthor",
        "get_permissions": "getPermissions",
        "get_org_permissions": "getOrgPermissions",
        "get_commit_sha": "getCommitSha",
        "get_commit_ref_sha": "getCommitRefSha",
        "update_commit_status": "updateCommitStatus",
        "get_file": "getFile",
        "get_opened_prs": "getOpenedPRs",
        "get_bell_configuration": "getBellConfiguration",
        "get_pr_info": "getPrInfo",
        "add_pr_comment": "addPrComment",
        "get_scm_contexts": "getScmContexts",
        "can_handle_webhook": "canHandleWebhook",
        "get_branch_list": "getBranchList",
        "open_pr": "openPr",
        "get_webhook_events_mapping": "getWebhookEventsMapping",
    }

    def __init__(
        self,
        config: Optional[Mapping[str, Any]] = None,
        validator: Optional[SchemaValidator] = None,
    ) -> None:
        """Initialize the provider.

        Args:
            config: Provider configuration mapping
            validator: Schema validator (defaults to the pydantic registry)
        """
        self.config: Mapping[str, Any] = config if config is not None else {}
        if validator is None:
            validator = PydanticSchemaValidator()
        self.validator: SchemaValidator = validator

    def configure(self, config: Mapping[str, Any]) -> None:
        """Replace the provider configuration (no merge)."""
        self.config = config
        logger.info("Reconfigured %s", type(self).__name__)

    @classmethod
    def _operation_name(cls, operation: str) -> str:
        if operation in cls.OPERATIONS:
            return operation
        for name, wire_name in cls.OPERATIONS.items():
            if wire_name == operation:
                return name
        raise KeyError(f"Unknown SCM operation: {operation}")

    def supports(self, operation: str) -> bool:
        """Check whether this provider overrides the hook of an operation.

        Args:
            operation: Operation name, snake_case or camelCase
                (``get_pr_info`` or ``getPrInfo``)

        Returns:
            True if the provider supplies its own implementation

        Raises:
            KeyError: If the operation is unknown
        """
        hook_name = f"_{self._operation_name(operation)}"
        hook = getattr(self, hook_name)
        return getattr(hook, "__func__", hook) is not getattr(ScmBase, hook_name)

    async def _run(
        self,
        operation: str,
        request: Any,
        input_schema: Optional[str] = None,
        output_schema: Optional[str] = None,
    ) -> Any:
        """Validate request, call the hook and validate its result."""
        if input_schema:
            request = self.validator.validate(request, input_schema)

        logger.debug("Delegating %s to %s", operation, type(self).__name__)
        result = await _resolve(getattr(self, f"_{operation}")(request))

        if output_schema:
            try:
                result = self.validator.validate(result, output_schema)
            except ValidationError as exc:
                logger.warning(
                    "%s returned an invalid result for %s: %s",
                    type(self).__name__,
                    operation,
                    exc,
                )
                raise
        return result

    async def add_webhook(self, config: Mapping[str, Any]) -> Any:
        """Add (or update) the platform webhook on an SCM repository.

        Args:
            config: Mapping with keys:
                - scm_uri: SCM URI to add the webhook to
                - token: Service token to authenticate with the SCM service
                - webhook_url: URL to use for the webhook notifications
                - scm_context: Optional SCM context
                - actions: Optional list of webhook events to subscribe to

        Returns:
            Provider-specific success marker
        """
        return await self._run("add_webhook", config, "plugins.scm.addWebhook")

    async def _add_webhook(self, config: Dict[str, Any]) -> Any:
        raise OperationNotImplementedError("add_webhook")

    async def add_deploy_key(self, config: Mapping[str, Any]) -> Any:
        """Add a deploy key to the repository behind ``checkout_url``.

        Returns:
            Provider-specific key material (e.g., the private key)
        """
        return await self._run("add_deploy_key", config, "plugins.scm.addDeployKey")

    async def _add_deploy_key(self, config: Dict[str, Any]) -> Any:
        raise OperationNotImplementedError("add_deploy_key")

    async def parse_url(self, config: Mapping[str, Any]) -> str:
        """Parse a checkout URL into an SCM URI.

        Args:
            config: Mapping with keys:
                - checkout_url: URL to parse
                - token: Token used to authenticate to the SCM
                - scm_context: Optional SCM context
                - root_dir: Optional monorepo root directory

        Returns:
            SCM URI (``host:repoId:branch[:rootDir]``)
        """
        return await self._run(
            "parse_url", config, "plugins.scm.parseUrl", "models.pipeline.scmUri"
        )

    async def _parse_url(self, config: Dict[str, Any]) -> str:
        raise OperationNotImplementedError("parse_url")

    async def parse_hook(self, headers: Mapping[str, Any], payload: Any) -> Optional[Dict[str, Any]]:
        """Normalize a webhook payload received from the SCM service.

        Headers and payload are passed to the hook as received; only the
        result is validated. A hook returns None for events it ignores.

        Args:
            headers: Request headers associated with the webhook payload
            payload: Webhook payload received from the SCM service

        Returns:
            Hook mapping (type, action, branch, sha, username, checkout_url,
            pr_ref, pr_num, ...) or None
        """
        logger.debug("Delegating parse_hook to %s", type(self).__name__)
        result = await _resolve(self._parse_hook(headers, payload))
        return self.validator.validate(result, "core.scm.hook")

    async def _parse_hook(self, headers: Mapping[str, Any], payload: Any) -> Optional[Dict[str, Any]]:
        raise OperationNotImplementedError("parse_hook")

    async def get_changed_files(self, config: Mapping[str, Any]) -> List[str]:
        """List the files touched by a webhook event.

        Args:
            config: Mapping with keys:
                - type: "pr" or "repo"
                - payload: Webhook payload (may be None)
                - token: Token used to authenticate to the SCM
                - scm_context: Optional SCM context

        Returns:
            File paths, in provider order
        """
        return await self._run(
            "get_changed_files",
            config,
            "plugins.scm.getChangedFiles",
            "core.scm.changedFiles",
        )

    async def _get_changed_files(self, config: Dict[str, Any]) -> List[str]:
        raise OperationNotImplementedError("get_changed_files")

    async def get_checkout_command(self, config: Mapping[str, Any]) -> Dict[str, str]:
        """Build the command that checks out source code for a build.

        Args:
            config: Checkout configuration with keys branch, host, org, repo,
                sha and optional scm_context, pr_ref, pr_source,
                pr_branch_name, commit_branch, manifest, root_dir and
                parent_config ({host, branch, org, repo, sha})

        Returns:
            Mapping with ``name`` and ``command``
        """
        return await self._run(
            "get_checkout_command",
            config,
            "plugins.scm.getCheckoutCommand",
            "core.scm.command",
        )

    async def _get_checkout_command(self, config: Dict[str, Any]) -> Dict[str, str]:
        raise OperationNotImplementedError("get_checkout_command")

    async def get_setup_command(
        self,
        pipeline: Any,
        job: Any,
        build: Any,
        config_pipeline: Any = None,
        config_pipeline_sha: Optional[str] = None,
    ) -> str:
        """Give the commands needed for setup before the build starts.

        Args:
            pipeline: Pipeline for the build (scm_uri, scm_repo, scm_context)
            job: Job for the build (permutations with annotations)
            build: Build being set up (sha, pr_ref, start_from, ...)
            config_pipeline: Optional parent pipeline holding shared config
            config_pipeline_sha: Commit of the parent pipeline

        Returns:
            Shell command performing the checkout
        """
        checkout_config = build_checkout_config(
            pipeline,
            job,
            build,
            config_pipeline=config_pipeline,
            config_pipeline_sha=config_pipeline_sha,
        )
        checkout = await self.get_checkout_command(checkout_config)
        return checkout["command"]

    async def decorate_url(self, config: Mapping[str, Any]) -> Dict[str, Any]:
        """Describe the repository behind an SCM URI (name, branch, url)."""
        return await self._run(
            "decorate_url", config, "plugins.scm.decorateUrl", "core.scm.repo"
        )

    async def _decorate_url(self, config: Dict[str, Any]) -> Dict[str, Any]:
        raise OperationNotImplementedError("decorate_url")

    async def decorate_commit(self, config: Mapping[str, Any]) -> Dict[str, Any]:
        """Describe a commit (username, message, url)."""
        return await self._run(
            "decorate_commit", config, "plugins.scm.decorateCommit", "core.scm.commit"
        )

    async def _decorate_commit(self, config: Dict[str, Any]) -> Dict[str, Any]:
        raise OperationNotImplementedError("decorate_commit")

    async def decorate_author(self, config: Mapping[str, Any]) -> Dict[str, Any]:
        """Describe an SCM user (name, username, avatar, url)."""
        return await self._run(
            "decorate_author", config, "plugins.scm.decorateAuthor", "core.scm.user"
        )

    async def _decorate_author(self, config: Dict[str, Any]) -> Dict[str, Any]:
        raise OperationNotImplementedError("decorate_author")

    async def get_permissions(self, config: Mapping[str, Any]) -> Dict[str, bool]:
        """Get a user's permissions on a repository.

        In read-only SCM mode every user gets full permissions and the
        provider is not consulted.

        Args:
            config: Mapping with scm_uri, token and optional scm_context

        Returns:
            Mapping with ``admin``, ``push`` and ``pull`` booleans
        """
        if scm_config.read_only_enabled(self.config):
            self.validator.validate(config, "plugins.scm.getPermissions")
            logger.debug("Read-only SCM, granting full permissions")
            return dict(ALL_PERMISSIONS)

        return await self._run(
            "get_permissions",
            config,
            "plugins.scm.getPermissions",
            "core.scm.permissions",
        )

    async def _get_permissions(self, config: Dict[str, Any]) -> Dict[str, bool]:
        raise OperationNotImplementedError("get_permissions")

    async def get_org_permissions(self, config: Mapping[str, Any]) -> Dict[str, Any]:
        """Get a user's membership and role in an organization."""
        return await self._run(
            "get_org_permissions",
            config,
            "plugins.scm.getOrgPermissions",
            "core.scm.orgPermissions",
        )

    async def _get_org_permissions(self, config: Dict[str, Any]) -> Dict[str, Any]:
        raise OperationNotImplementedError("get_org_permissions")

    async def get_commit_sha(self, config: Mapping[str, Any]) -> str:
        """Get the head commit of a repository branch, or of a PR with ``pr_num``."""
        return await self._run(
            "get_commit_sha", config, "plugins.scm.getCommitSha", "core.scm.commitSha"
        )

    async def _get_commit_sha(self, config: Dict[str, Any]) -> str:
        raise OperationNotImplementedError("get_commit_sha")

    async def get_commit_ref_sha(self, config: Mapping[str, Any]) -> str:
        """Get the commit a branch or tag reference points to.

        Args:
            config: Mapping with token, owner, repo, ref and optional
                scm_context and ref_type ("branch" or "tag")
        """
        return await self._run(
            "get_commit_ref_sha",
            config,
            "plugins.scm.getCommitRefSha",
            "core.scm.commitSha",
        )

    async def _get_commit_ref_sha(self, config: Dict[str, Any]) -> str:
        raise OperationNotImplementedError("get_commit_ref_sha")

    async def update_commit_status(self, config: Mapping[str, Any]) -> Any:
        """Update the commit status for a given repository and sha.

        Args:
            config: Mapping with keys:
                - scm_uri: SCM URI of the repository
                - sha: Commit to apply the status to
                - build_status: Build status used to derive the commit status
                - token: Token used to authenticate to the SCM
                - url: Target URL of the status
                - job_name: Optional name of the job that finished
                - pipeline_id: Optional pipeline id
                - scm_context, context, description: Optional
        """
        return await self._run(
            "update_commit_status", config, "plugins.scm.updateCommitStatus"
        )

    async def _update_commit_status(self, config: Dict[str, Any]) -> Any:
        raise OperationNotImplementedError("update_commit_status")

    async def get_file(self, config: Mapping[str, Any]) -> Any:
        """Fetch the contents of a file from a repository."""
        return await self._run("get_file", config, "plugins.scm.getFile")

    async def _get_file(self, config: Dict[str, Any]) -> Any:
        raise OperationNotImplementedError("get_file")

    async def get_opened_prs(self, config: Mapping[str, Any]) -> List[Dict[str, Any]]:
        """List the open pull requests of a repository."""
        return await self._run(
            "get_opened_prs",
            config,
            "plugins.scm.getOpenedPRs",
            "core.scm.pullRequests",
        )

    async def _get_opened_prs(self, config: Dict[str, Any]) -> List[Dict[str, Any]]:
        raise OperationNotImplementedError("get_opened_prs")

    async def get_bell_configuration(self) -> Dict[str, Any]:
        """Return the OAuth strategy configuration for this SCM."""
        logger.debug("Delegating get_bell_configuration to %s", type(self).__name__)
        return await _resolve(self._get_bell_configuration())

    async def _get_bell_configuration(self) -> Dict[str, Any]:
        raise OperationNotImplementedError("get_bell_configuration")

    async def get_pr_info(self, config: Mapping[str, Any]) -> Dict[str, Any]:
        """Get details (head sha, ref, branch, author, ...) of a pull request."""
        return await self._run(
            "get_pr_info", config, "plugins.scm.getPrInfo", "core.scm.prInfo"
        )

    async def _get_pr_info(self, config: Dict[str, Any]) -> Dict[str, Any]:
        raise OperationNotImplementedError("get_pr_info")

    async def add_pr_comment(self, config: Mapping[str, Any]) -> Any:
        """Add a comment (or several) to a pull request.

        Safe to call on providers without comment support: the default hook
        resolves to None instead of failing.

        Returns:
            Comment mapping, list of them, None or an empty mapping
        """
        return await self._run(
            "add_pr_comment", config, "plugins.scm.addPrComment", "core.scm.prComment"
        )

    async def _add_pr_comment(self, config: Dict[str, Any]) -> Any:
        return None

    def get_scm_contexts(self) -> List[str]:
        """Return the SCM contexts this provider serves (e.g. github:github.com).

        Raises:
            OperationNotImplementedError: Synchronously, if not overridden
        """
        return self._get_scm_contexts()

    def _get_scm_contexts(self) -> List[str]:
        raise OperationNotImplementedError("get_scm_contexts")

    async def can_handle_webhook(self, headers: Mapping[str, Any], payload: Any) -> bool:
        """Determine whether this provider can handle a webhook request."""
        result = await _resolve(self._can_handle_webhook(headers, payload))
        return self.validator.validate(result, "core.scm.webhookAccepted")

    async def _can_handle_webhook(self, headers: Mapping[str, Any], payload: Any) -> bool:
        raise OperationNotImplementedError("can_handle_webhook")

    async def get_branch_list(self, config: Mapping[str, Any]) -> List[Dict[str, Any]]:
        """List the branches of a repository."""
        return await self._run(
            "get_branch_list", config, "plugins.scm.getBranchList", "core.scm.branches"
        )

    async def _get_branch_list(self, config: Dict[str, Any]) -> List[Dict[str, Any]]:
        raise OperationNotImplementedError("get_branch_list")

    async def open_pr(self, config: Mapping[str, Any]) -> Any:
        """Open a pull request with the given file changes.

        Args:
            config: Mapping with checkout_url, token, files ([{name, content}]),
                title, message and optional scm_context
        """
        return await self._run("open_pr", config, "plugins.scm.openPr")

    async def _open_pr(self, config: Dict[str, Any]) -> Any:
        raise OperationNotImplementedError("open_pr")

    async def get_webhook_events_mapping(self, config: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Map platform event names to the provider's webhook event names."""
        return await self._run(
            "get_webhook_events_mapping", config, output_schema="core.scm.webhookEventsMapping"
        )

    async def _get_webhook_events_mapping(self, config: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        raise OperationNotImplementedError("get_webhook_events_mapping")

    def get_read_only_info(self) -> Dict[str, Any]:
        """Read-only SCM settings, or an empty mapping."""
        return scm_config.read_only_info(self.config)

    def auto_deploy_key_generation_enabled(self) -> bool:
        return scm_config.auto_deploy_key_generation(self.config)

    def get_display_name(self) -> str:
        return scm_config.display_name(self.config)

    def stats(self) -> Dict[str, Any]:
        """Return metrics for the provider (none by default)."""
        return {}
