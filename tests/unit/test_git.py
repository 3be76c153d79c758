"""Unit tests for git checkout command rendering."""

from __future__ import annotations

import pytest

from scm_base import GitCheckoutCommand, PydanticSchemaValidator

SHA = "ccc49349d3cffbd12ea9e3d41521480b4aa5de5f"
SOURCE_DIR = "/sd/workspace/src/github.com/screwdriver-cd/guide"


@pytest.fixture
def config():
    return {
        "branch": "main",
        "host": "github.com",
        "org": "screwdriver-cd",
        "repo": "guide",
        "sha": SHA,
    }


class TestGitCheckoutCommand:
    """Test GitCheckoutCommand class."""

    def test_clone_url(self, config):
        """Test https and ssh clone URLs."""
        assert GitCheckoutCommand(config).clone_url("github.com", "o", "r") == "https://github.com/o/r"
        assert GitCheckoutCommand(config, protocol="ssh").clone_url("github.com", "o", "r") == "git@github.com:o/r"

    def test_unsupported_protocol(self, config):
        """Test unsupported clone protocols."""
        with pytest.raises(ValueError, match="Unsupported clone protocol"):
            GitCheckoutCommand(config, protocol="svn")

    def test_branch_checkout(self, config):
        """Test checkout of a branch build."""
        steps = GitCheckoutCommand(config).steps()
        clone_cmd = steps[1]

        assert clone_cmd[:2] == ["git", "clone"]
        assert "--depth" in clone_cmd
        assert clone_cmd[clone_cmd.index("--branch") + 1] == "main"
        assert clone_cmd[-2:] == [
            "https://github.com/screwdriver-cd/guide",
            "/sd/workspace/src/github.com/screwdriver-cd/guide",
        ]
        assert steps[-2:] == [
            ["git", "-C", SOURCE_DIR, "fetch", "--quiet", "--depth", "50", "origin", SHA],
            ["git", "-C", SOURCE_DIR, "reset", "--hard", SHA],
        ]

    def test_full_clone(self, config):
        """Test that depth 0 clones the full history."""
        steps = GitCheckoutCommand(config, depth=0).steps()

        assert "--depth" not in steps[1]
        assert ["git", "-C", SOURCE_DIR, "fetch", "--quiet", "origin", SHA] in steps

    def test_pr_checkout(self, config):
        """Test that PR builds fetch and merge the PR head."""
        config["pr_ref"] = "pull/1/merge"
        steps = GitCheckoutCommand(config).steps()
        commands = [" ".join(step) for step in steps]

        assert any("fetch --quiet origin pull/1/merge" in cmd for cmd in commands)
        assert any(f"merge --no-edit {SHA}" in cmd for cmd in commands)
        assert not any("reset --hard" in cmd for cmd in commands)

    def test_pr_checkout_full_history(self, config):
        """Test that PR clones are not shallow so the merge base is present."""
        config["pr_ref"] = "pull/1/merge"
        steps = GitCheckoutCommand(config).steps()

        assert steps[1][:2] == ["git", "clone"]
        assert "--depth" not in steps[1]
        assert not any(step[3:4] == ["fetch"] and SHA in step for step in steps)

    def test_root_dir(self, config):
        """Test sparse checkout of a monorepo root directory."""
        config["root_dir"] = "src/app"
        steps = GitCheckoutCommand(config).steps()
        commands = [" ".join(step) for step in steps]

        assert "--no-checkout" in steps[1]
        assert any("sparse-checkout set src/app" in cmd for cmd in commands)

    def test_manifest(self, config):
        """Test repo manifest sync."""
        config["manifest"] = "https://example.com/manifest.xml"
        command = GitCheckoutCommand(config).render()["command"]
        assert "repo init -u https://example.com/manifest.xml" in command
        assert "repo sync" in command

    def test_parent_config(self, config):
        """Test checkout of the parent config pipeline."""
        config["parent_config"] = {
            "host": "github.com",
            "branch": "master",
            "org": "parent",
            "repo": "config",
            "sha": "abc123",
        }
        steps = GitCheckoutCommand(config).steps()

        assert steps[-2:] == [
            ["git", "-C", "/sd/workspace/config", "fetch", "--quiet", "--depth", "50", "origin", "abc123"],
            ["git", "-C", "/sd/workspace/config", "reset", "--hard", "abc123"],
        ]
        clone_calls = [step for step in steps if step[:2] == ["git", "clone"]]
        assert len(clone_calls) == 2
        assert "https://github.com/parent/config" in clone_calls[1]

    def test_render(self, config):
        """Test the rendered command validates as a checkout command."""
        rendered = GitCheckoutCommand(config, workspace="/work/").render()

        assert rendered["name"] == "sd-checkout-code"
        assert rendered["command"].startswith("mkdir -p /work/src/github.com/screwdriver-cd/guide && git clone")
        assert PydanticSchemaValidator().validate(rendered, "core.scm.command") == rendered

    def test_render_quotes_arguments(self, config):
        """Test that shell metacharacters are quoted."""
        config["branch"] = "feature; rm -rf /"
        command = GitCheckoutCommand(config).render()["command"]
        assert "'feature; rm -rf /'" in command
