"""Tests for the click CLI: option merging, output and exit codes."""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from aimanager.__main__ import EXIT_INTERNAL, EXIT_VALIDATION, cli
from aimanager.core.config import Config
from aimanager.mutation import BackupManager
from aimanager.skills.repository import SkillCandidate


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def invoke(runner, tmp_path):
    def _invoke(*args):
        return runner.invoke(cli, list(args), obj=Config(home=tmp_path))

    return _invoke


def _claude_config(tmp_path):
    return tmp_path / ".claude" / "claude_code_config.json"


class TestMcpCommands:
    def test_add_with_typed_options(self, invoke, tmp_path):
        result = invoke("mcp", "add", "claude_code", "filesystem", "--command", "npx", "--arg=-y", "--arg", "server")
        assert result.exit_code == 0, result.output
        assert "Added MCP 'filesystem' for 'claude_code'." in result.output
        entry = json.loads(_claude_config(tmp_path).read_text())["mcpServers"]["filesystem"]
        assert entry == {"command": "npx", "args": ["-y", "server"], "enabled": True}

    def test_options_win_over_payload(self, invoke, tmp_path):
        payload = json.dumps({"transport": {"command": "old"}, "enabled": True})
        result = invoke("mcp", "add", "cursor", "remote", "--payload", payload, "--url", "https://x.dev/sse", "--disabled")
        assert result.exit_code == 0, result.output
        entry = json.loads((tmp_path / ".cursor" / "mcp.json").read_text())["mcpServers"]["remote"]
        assert entry == {"url": "https://x.dev/sse", "enabled": False}

    def test_duplicate_add_is_validation_error(self, invoke):
        invoke("mcp", "add", "codex_cli", "filesystem", "--command", "npx")
        result = invoke("mcp", "add", "codex_cli", "filesystem", "--command", "npx")
        assert result.exit_code == EXIT_VALIDATION
        assert "already exists" in result.output

    def test_bad_payload_json(self, invoke):
        result = invoke("mcp", "add", "cursor", "x", "--payload", "{nope")
        assert result.exit_code == EXIT_VALIDATION
        assert "invalid --payload JSON" in result.output

    def test_remove_and_list(self, invoke, tmp_path):
        invoke("mcp", "add", "claude_code", "a", "--command", "x")
        invoke("mcp", "add", "claude_code", "b", "--url", "https://b.dev")

        listed = invoke("mcp", "list")
        assert listed.exit_code == 0
        assert "a" in listed.output and "https://b.dev" in listed.output

        result = invoke("mcp", "remove", "claude_code", "a")
        assert result.exit_code == 0, result.output
        assert "Removed MCP 'a' for 'claude_code'." in result.output
        assert set(json.loads(_claude_config(tmp_path).read_text())["mcpServers"]) == {"b"}

    def test_list_empty(self, invoke):
        result = invoke("mcp", "list")
        assert result.exit_code == 0
        assert "no MCP servers configured" in result.output

    def test_unknown_client(self, invoke):
        result = invoke("mcp", "add", "vim", "x", "--command", "npx")
        assert result.exit_code != 0
        assert "vim" in result.output


class TestSkillCommands:
    def test_add_from_manifest_file(self, invoke, tmp_path):
        manifest = tmp_path / "refactor.md"
        manifest.write_text("# Python Refactor\nRefactor python code safely.\n")
        result = invoke("skill", "add", "claude_code", "python-refactor", "--manifest-file", str(manifest))
        assert result.exit_code == 0, result.output
        assert "Added skill 'python-refactor' for 'claude_code'." in result.output
        assert (tmp_path / ".claude" / "skills" / "python-refactor" / "SKILL.md").is_file()

    def test_forced_failure_is_internal_error(self, invoke, tmp_path):
        payload = json.dumps({"manifest": "# X\nY\n", "fail_after_write": True})
        result = invoke("skill", "add", "claude_code", "x", "--payload", payload)
        assert result.exit_code == EXIT_INTERNAL
        assert "[stage=PostWriteValidation]" in result.output
        assert "rollback failed" not in result.output

    def test_failed_rollback_is_flagged(self, invoke):
        payload = json.dumps({"manifest": "# X\nY\n", "fail_after_write": True})
        with patch.object(BackupManager, "restore_backup", side_effect=OSError("disk gone")):
            result = invoke("skill", "add", "claude_code", "x", "--payload", payload)
        assert result.exit_code == EXIT_INTERNAL
        assert "rollback_succeeded=false" in result.output
        assert "rollback failed" in result.output

    def test_list_and_remove(self, invoke, tmp_path):
        root = tmp_path / ".claude" / "skills"
        root.mkdir(parents=True)
        (root / "lint.md").write_text("# Lint\nRuns the linter.\n")

        listed = invoke("skill", "list", "claude_code")
        assert listed.exit_code == 0
        assert "lint" in listed.output and "Runs the linter." in listed.output

        result = invoke("skill", "remove", "claude_code", "lint")
        assert result.exit_code == 0, result.output
        assert not (root / "lint.md").exists()

    def test_list_missing_root_warns(self, invoke):
        result = invoke("skill", "list", "cursor")
        assert result.exit_code == 0
        assert "SKILLS_DIR_NOT_FOUND" in result.output

    def test_scan(self, invoke):
        items = [SkillCandidate(manifest_path="lint/SKILL.md", suggested_id="lint", summary="Runs the linter.")]
        with patch("aimanager.__main__.GitHubSkillRepository") as repo_cls:
            repo_cls.return_value.scan.return_value = items
            result = invoke("skill", "scan", "https://github.com/acme/skills")
        assert result.exit_code == 0, result.output
        repo_cls.return_value.scan.assert_called_once_with("https://github.com/acme/skills")
        assert "lint/SKILL.md" in result.output

    def test_scan_bad_url(self, invoke):
        result = invoke("skill", "scan", "https://gitlab.com/acme/skills")
        assert result.exit_code == EXIT_VALIDATION
        assert "github_repo_url" in result.output
