"""Client discovery: where does a client keep its MCP config and skills?

The mutation services only need a candidate path per client. Anything
smarter (binary probing, confidence scores) can be plugged in by passing a
different :class:`Discovery` to :class:`~aimanager.core.config.Config`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from .config import ClientKind, Config


@dataclass
class SkillDirResolution:
    path: Path | None = None
    warnings: list[str] = field(default_factory=list)


class Discovery(Protocol):
    def mcp_config_path(self, client: ClientKind) -> Path | None: ...

    def skills_dir(self, client: ClientKind) -> SkillDirResolution: ...


def _is_readable_dir(path: Path) -> bool:
    return path.is_dir() and os.access(path, os.R_OK | os.X_OK)


class PathProbeDiscovery:
    """Env override first, then the first fallback path that exists."""

    def __init__(self, config: Config) -> None:
        self.config = config

    def mcp_config_path(self, client: ClientKind) -> Path | None:
        override = self.config.mcp_config_override(client)
        if override:
            path = self.config.expand(override)
            return path if path.is_file() else None
        path = self.config.expand(client.default_mcp_config)
        return path if path.is_file() else None

    def skills_dir(self, client: ClientKind) -> SkillDirResolution:
        override = self.config.skills_dir_override(client)
        if override:
            path = self.config.expand(override)
            if _is_readable_dir(path):
                return SkillDirResolution(path=path)
            return SkillDirResolution(
                warnings=[
                    f"[{client.value}:SKILLS_DIR_OVERRIDE_INVALID] override "
                    f"'{client.env_prefix}_SKILLS_DIR' is not a readable directory: {path}"
                ]
            )

        for fallback in client.skill_dir_fallbacks:
            path = self.config.expand(fallback)
            if _is_readable_dir(path):
                return SkillDirResolution(path=path)

        return SkillDirResolution(
            warnings=[f"[{client.value}:SKILLS_DIR_NOT_FOUND] no readable skills directory was found."]
        )
