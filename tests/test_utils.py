"""Tests for utils: target id validation, frontmatter splitting, posix paths."""

import pytest

from aimanager.core.errors import ValidationError
from aimanager.core.utils import parse_frontmatter, split_frontmatter, to_posix, validate_target_id


class TestValidateTargetId:
    def test_trims(self):
        assert validate_target_id("  python-refactor ") == "python-refactor"

    def test_empty(self):
        with pytest.raises(ValidationError, match="must not be empty for skill mutation"):
            validate_target_id("   ")

    @pytest.mark.parametrize("target_id", ["a/b", "a\\b", "..", "x..y", "."])
    def test_blocks_traversal(self, target_id):
        with pytest.raises(ValidationError, match="path separators or traversal"):
            validate_target_id(target_id)

    def test_resource_in_message(self):
        with pytest.raises(ValidationError, match="for MCP mutation"):
            validate_target_id("", "MCP")


class TestFrontmatter:
    def test_parse_strips_quotes(self):
        meta = parse_frontmatter("name: 'lint'\ndescription: \"Runs: the linter\"\nnot a pair")
        assert meta == {"name": "lint", "description": "Runs: the linter"}

    def test_split(self):
        meta, body = split_frontmatter("---\nname: lint\n---\n# Lint\n")
        assert meta == {"name": "lint"}
        assert body == "\n# Lint\n"

    def test_split_without_block(self):
        assert split_frontmatter("# Lint\n") == (None, "# Lint\n")

    def test_split_unclosed(self):
        assert split_frontmatter("---\nname: lint\n") == (None, "---\nname: lint\n")


class TestToPosix:
    def test_relative(self, tmp_path):
        assert to_posix(tmp_path / "a" / "SKILL.md", tmp_path) == "a/SKILL.md"

    def test_outside_root(self, tmp_path):
        other = tmp_path.parent / "elsewhere"
        assert to_posix(other, tmp_path) == str(other)
