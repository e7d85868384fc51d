"""Resolve which MCP config file a mutation should touch."""

from __future__ import annotations

from pathlib import Path

from aimanager.core.config import ClientKind, Config, MutationAction
from aimanager.core.errors import ValidationError


def resolve_mcp_config_path(
    config: Config,
    client: ClientKind,
    action: MutationAction,
    source_path: str | None = None,
) -> Path:
    """Explicit override > discovered path > client default (add only)."""
    if source_path:
        path = config.expand(source_path)
        if action is not MutationAction.ADD and not path.exists():
            raise ValidationError(
                f"source_path '{path}' does not exist for MCP remove/update mutation."
            )
        return path

    discovered = config.discovery.mcp_config_path(client)
    if discovered is not None:
        return Path(discovered)

    if action is MutationAction.ADD:
        return config.default_mcp_config_path(client)

    raise ValidationError(f"Could not resolve MCP config path for '{client.value}'.")
