"""MCP mutation service: add/update/remove one server entry in a client config."""

from __future__ import annotations

import logging
from pathlib import Path

from aimanager.core.config import ClientKind, Config, MutationAction
from aimanager.core.errors import InternalError, ValidationError
from aimanager.mutation import (
    MutationHooks,
    MutationResult,
    SafeFileMutator,
    replace_or_raise,
)

from .codecs import codec_for
from .paths import resolve_mcp_config_path
from .payload import parse_mcp_payload

logger = logging.getLogger(__name__)

_ACTION_VERBS = {
    MutationAction.ADD: "Added",
    MutationAction.REMOVE: "Removed",
    MutationAction.UPDATE: "Updated",
}


def read_config_text(path: Path) -> str:
    """Current config text; a missing file reads as an empty document."""
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""
    except (OSError, UnicodeDecodeError) as e:
        raise InternalError(f"Failed to read MCP config '{path}': {e}") from e


class McpMutationService:
    def __init__(self, config: Config, mutator: SafeFileMutator | None = None) -> None:
        self.config = config
        self.mutator = mutator or SafeFileMutator()

    def mutate(
        self,
        client: ClientKind,
        action: MutationAction,
        target_id: str,
        payload: dict | None = None,
        hooks: MutationHooks | None = None,
    ) -> MutationResult:
        target_id = target_id.strip()
        if not target_id:
            raise ValidationError("target_id must not be empty for MCP mutation.")

        parsed = parse_mcp_payload(action, payload)
        path = resolve_mcp_config_path(self.config, client, action, parsed.source_path)

        current = read_config_text(path)
        try:
            updated = codec_for(client).apply(current, target_id, action, parsed)
        except ValidationError as e:
            raise ValidationError(f"{e.message} (config: '{path}')") from e

        outcome = replace_or_raise(self.mutator, path, updated.encode("utf-8"), hooks)

        message = f"{_ACTION_VERBS[action]} MCP '{target_id}' for '{client.value}'."
        if outcome.backup_path is not None:
            message += f" Backup: {outcome.backup_path}."
        logger.info("%s MCP %s in %s", action.value, target_id, path)
        return MutationResult(source_path=path, message=message, backup_path=outcome.backup_path)


def mutate_mcp(
    config: Config,
    client: ClientKind,
    action: MutationAction,
    target_id: str,
    payload: dict | None = None,
) -> MutationResult:
    return McpMutationService(config).mutate(client, action, target_id, payload)
