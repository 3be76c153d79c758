"""Unit tests for checkout configuration composition."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from scm_base import MANIFEST_ANNOTATION, ScmBase, ScmUri, ValidationError, build_checkout_config
from scm_base.checkout import first_permutation_annotations, parse_repo_name


@pytest.fixture
def pipeline():
    return {
        "scm_uri": "github.com:12345:branch",
        "scm_repo": {"name": "org/repo"},
    }


@pytest.fixture
def build():
    return {"sha": "abc"}


class TestScmUri:
    """Test ScmUri parsing."""

    def test_parse(self):
        """Test parsing without a root directory."""
        uri = ScmUri.parse("github.com:12345:branch")
        assert uri.host == "github.com"
        assert uri.repo_id == "12345"
        assert uri.branch == "branch"
        assert uri.root_dir is None

    def test_parse_root_dir_with_colons(self):
        """Test that the root directory keeps its colons."""
        uri = ScmUri.parse("github.com:12345:branch:src/app:extra")
        assert uri.root_dir == "src/app:extra"
        assert str(uri) == "github.com:12345:branch:src/app:extra"

    def test_parse_empty_branch(self):
        """Test that an empty branch is preserved."""
        assert ScmUri.parse("github.com:12345:").branch == ""

    def test_parse_invalid(self):
        """Test that URIs without a branch segment are rejected."""
        with pytest.raises(ValueError, match="Invalid SCM URI"):
            ScmUri.parse("github.com:12345")


class TestHelpers:
    """Test repo name and annotation helpers."""

    def test_parse_repo_name(self):
        """Test splitting on the first slash only."""
        assert parse_repo_name("org/repo") == ("org", "repo")
        assert parse_repo_name("group/sub/repo") == ("group", "sub/repo")

    def test_first_permutation_annotations(self):
        """Test that only the first permutation is consulted."""
        job = {
            "permutations": [
                {"annotations": {"a": 1}},
                {"annotations": {"b": 2}},
            ]
        }
        assert first_permutation_annotations(job) == {"a": 1}
        assert first_permutation_annotations({}) == {}
        assert first_permutation_annotations({"permutations": [{}]}) == {}


class TestBuildCheckoutConfig:
    """Test build_checkout_config."""

    def test_minimal(self, pipeline, build):
        """Test the minimal checkout configuration."""
        config = build_checkout_config(pipeline, {}, build)
        assert config == {
            "host": "github.com",
            "org": "org",
            "repo": "repo",
            "branch": "branch",
            "sha": "abc",
        }

    def test_scm_context(self, pipeline, build):
        """Test that the pipeline scm context is carried over."""
        pipeline["scm_context"] = "github:github.com"
        config = build_checkout_config(pipeline, {}, build)
        assert config["scm_context"] == "github:github.com"

    def test_root_dir(self, pipeline, build):
        """Test monorepo root directory extraction."""
        pipeline["scm_uri"] = "github.com:12345:branch:src/app:extra"
        config = build_checkout_config(pipeline, {}, build)
        assert config["root_dir"] == "src/app:extra"
        assert config["branch"] == "branch"

    def test_pr(self, pipeline, build):
        """Test that PR builds keep the pipeline branch without startFrom."""
        build.update({"pr_ref": "pull/1/merge", "pr_source": "fork", "pr_info": {"pr_branch_name": "feature"}})
        config = build_checkout_config(pipeline, {}, build)
        assert config["pr_ref"] == "pull/1/merge"
        assert config["pr_source"] == "fork"
        assert config["pr_branch_name"] == "feature"
        assert config["branch"] == "branch"

    def test_pr_branch_trigger(self, pipeline, build):
        """Test that ~pr:<branch> overrides the branch for PR builds."""
        build.update({"pr_ref": "pull/1/merge", "start_from": "~pr:featureBranch"})
        config = build_checkout_config(pipeline, {}, build)
        assert config["branch"] == "featureBranch"
        assert config["host"] == "github.com"
        assert config["org"] == "org"
        assert config["repo"] == "repo"

    def test_pr_trigger_not_matching(self, pipeline, build):
        """Test that a plain ~pr trigger leaves the branch alone."""
        build.update({"pr_ref": "pull/1/merge", "start_from": "~pr"})
        assert build_checkout_config(pipeline, {}, build)["branch"] == "branch"

    def test_start_from_without_pr(self, pipeline, build):
        """Test that start_from is ignored for non-PR builds."""
        build["start_from"] = "~pr:featureBranch"
        config = build_checkout_config(pipeline, {}, build)
        assert config["branch"] == "branch"
        assert "pr_ref" not in config

    def test_base_branch(self, pipeline, build):
        """Test that the build base branch becomes commit_branch."""
        build["base_branch"] = "release"
        assert build_checkout_config(pipeline, {}, build)["commit_branch"] == "release"

    def test_parent_config(self, pipeline, build):
        """Test nested parent config for a child pipeline."""
        config_pipeline = {
            "scm_uri": "github.enterprise.com:999:master:ignored/dir",
            "scm_repo": {"name": "parent-org/parent-repo"},
        }
        config = build_checkout_config(
            pipeline,
            {},
            build,
            config_pipeline=config_pipeline,
            config_pipeline_sha="def",
        )
        assert config["parent_config"] == {
            "host": "github.enterprise.com",
            "branch": "master",
            "org": "parent-org",
            "repo": "parent-repo",
            "sha": "def",
        }
        assert config["host"] == "github.com"
        assert config["sha"] == "abc"

    def test_parent_config_needs_sha(self, pipeline, build):
        """Test that a config pipeline without sha is ignored."""
        config_pipeline = {"scm_uri": "github.com:999:master", "scm_repo": {"name": "a/b"}}
        config = build_checkout_config(pipeline, {}, build, config_pipeline=config_pipeline)
        assert "parent_config" not in config

    def test_manifest(self, pipeline, build):
        """Test that the manifest annotation of the first permutation is used."""
        job = {
            "permutations": [
                {"annotations": {MANIFEST_ANNOTATION: "https://example.com/manifest.xml"}},
                {"annotations": {MANIFEST_ANNOTATION: "https://example.com/other.xml"}},
            ]
        }
        config = build_checkout_config(pipeline, job, build)
        assert config["manifest"] == "https://example.com/manifest.xml"

    def test_attribute_objects(self):
        """Test that model objects with attributes are accepted."""
        pipeline = SimpleNamespace(
            scm_uri="github.com:12345:main",
            scm_repo=SimpleNamespace(name="org/repo"),
            scm_context="github:github.com",
        )
        job = SimpleNamespace(permutations=[SimpleNamespace(annotations={})])
        build = SimpleNamespace(sha="abc", pr_ref=None, base_branch=None)

        config = build_checkout_config(pipeline, job, build)
        assert config == {
            "host": "github.com",
            "org": "org",
            "repo": "repo",
            "branch": "main",
            "sha": "abc",
            "scm_context": "github:github.com",
        }


class TestGetSetupCommand:
    """Test ScmBase.get_setup_command."""

    @pytest.mark.asyncio
    async def test_returns_command(self, pipeline):
        """Test that the checkout command is returned."""
        instance = ScmBase({})
        hook = AsyncMock(return_value={"name": "sd-checkout-code", "command": "stuff"})
        instance._get_checkout_command = hook
        pipeline["scm_repo"]["name"] = "screwdriver-cd/guide"

        command = await instance.get_setup_command(pipeline, {}, {"sha": "12345"})

        assert command == "stuff"
        hook.assert_awaited_once_with({
            "branch": "branch",
            "host": "github.com",
            "org": "screwdriver-cd",
            "repo": "guide",
            "sha": "12345",
        })

    @pytest.mark.asyncio
    async def test_returns_command_for_pr(self, pipeline):
        """Test that PR details reach the checkout hook."""
        instance = ScmBase({})
        hook = AsyncMock(return_value={"name": "sd-checkout-code", "command": "stuff"})
        instance._get_checkout_command = hook
        build = {"sha": "12345", "pr_ref": "abcd", "start_from": "~pr:release"}

        assert await instance.get_setup_command(pipeline, {}, build) == "stuff"
        request = hook.await_args.args[0]
        assert request["pr_ref"] == "abcd"
        assert request["branch"] == "release"

    @pytest.mark.asyncio
    async def test_invalid_sha(self, pipeline):
        """Test that an invalid build sha fails validation."""
        instance = ScmBase({})
        instance._get_checkout_command = AsyncMock()

        with pytest.raises(ValidationError):
            await instance.get_setup_command(pipeline, {}, {"sha": "not a sha"})

        instance._get_checkout_command.assert_not_called()
