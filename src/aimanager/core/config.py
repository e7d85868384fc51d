"""Configuration: clients, actions, env overrides and default paths."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from .errors import ValidationError

if TYPE_CHECKING:
    from .discovery import Discovery

# Directory (next to the target) that receives pre-mutation snapshots.
BACKUP_DIR_NAME = ".ai-manager-backups"


class MutationAction(str, Enum):
    ADD = "add"
    REMOVE = "remove"
    UPDATE = "update"

    @classmethod
    def parse(cls, value: str) -> MutationAction:
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValidationError(
                f"Unknown action '{value}'. Expected one of: add, remove, update."
            ) from None


class ConfigFormat(str, Enum):
    JSON = "json"
    TOML = "toml"


class ClientKind(str, Enum):
    CLAUDE_CODE = "claude_code"
    CODEX_CLI = "codex_cli"
    CURSOR = "cursor"
    CODEX_APP = "codex_app"

    @classmethod
    def parse(cls, value: str) -> ClientKind:
        try:
            return cls(value.strip().lower().replace("-", "_"))
        except ValueError:
            known = ", ".join(c.value for c in cls)
            raise ValidationError(f"Unknown client '{value}'. Expected one of: {known}.") from None

    @property
    def env_prefix(self) -> str:
        return f"AI_MANAGER_{self.value.upper()}"

    @property
    def mcp_format(self) -> ConfigFormat:
        if self is ClientKind.CODEX_CLI:
            return ConfigFormat.TOML
        return ConfigFormat.JSON

    @property
    def default_mcp_config(self) -> str:
        if self is ClientKind.CLAUDE_CODE:
            return "~/.claude/claude_code_config.json"
        if self is ClientKind.CODEX_CLI:
            return "~/.codex/config.toml"
        if self is ClientKind.CURSOR:
            return "~/.cursor/mcp.json"
        return "~/Library/Application Support/Codex/mcp.json"

    @property
    def skill_dir_fallbacks(self) -> tuple[str, ...]:
        if self is ClientKind.CLAUDE_CODE:
            return ("~/.claude/skills",)
        if self is ClientKind.CODEX_CLI:
            return ("~/.codex/skills",)
        if self is ClientKind.CURSOR:
            return ("~/.cursor/skills", "~/Library/Application Support/Cursor/User/skills")
        return ("~/Library/Application Support/Codex/skills", "~/.config/Codex/skills")


@dataclass
class Config:
    home: Path = field(default_factory=Path.home)
    verbose: bool = False
    env: Mapping[str, str] = field(default_factory=dict)
    discovery: Discovery | None = None

    def __post_init__(self) -> None:
        if self.discovery is None:
            from .discovery import PathProbeDiscovery

            self.discovery = PathProbeDiscovery(self)

    def env_value(self, name: str) -> str | None:
        value = self.env.get(name, "")
        value = value.strip() if isinstance(value, str) else ""
        return value or None

    def expand(self, value: str | Path) -> Path:
        """Expand a leading ``~`` against :attr:`home` (not the process HOME)."""
        text = str(value)
        if text == "~":
            return self.home
        if text.startswith("~/"):
            return self.home / text[2:]
        return Path(text)

    def mcp_config_override(self, client: ClientKind) -> str | None:
        return self.env_value(f"{client.env_prefix}_MCP_CONFIG")

    def skills_dir_override(self, client: ClientKind) -> str | None:
        return self.env_value(f"{client.env_prefix}_SKILLS_DIR")

    def default_mcp_config_path(self, client: ClientKind) -> Path:
        return self.expand(self.mcp_config_override(client) or client.default_mcp_config)

    def preferred_skills_dir(self, client: ClientKind) -> Path:
        override = self.skills_dir_override(client)
        if override:
            return self.expand(override)
        return self.expand(client.skill_dir_fallbacks[0])


def load_config(verbose: bool = False, home: Path | None = None) -> Config:
    """Load config with priority: env > .env > built-in defaults."""
    load_dotenv()

    config = Config(verbose=verbose, env=dict(os.environ))
    if home is not None:
        config.home = home
    return config
