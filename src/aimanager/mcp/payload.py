"""Parse an untyped MCP mutation payload into a typed instruction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from aimanager.core.config import MutationAction
from aimanager.core.errors import ValidationError


@dataclass(frozen=True)
class StdioTransport:
    command: str
    args: tuple[str, ...] = ()


@dataclass(frozen=True)
class SseTransport:
    url: str


Transport = StdioTransport | SseTransport


@dataclass(frozen=True)
class McpMutationPayload:
    source_path: str | None = None
    enabled: bool | None = None
    transport: Transport | None = None


def _trimmed(data: dict, key: str) -> str | None:
    value = data.get(key)
    if not isinstance(value, str):
        return None
    return value.strip() or None


def parse_transport(value: Any) -> Transport:
    if not isinstance(value, dict):
        raise ValidationError("payload.transport must be an object.")

    command = _trimmed(value, "command")
    url = _trimmed(value, "url")

    if command and url:
        raise ValidationError(
            "payload.transport must define exactly one transport: either command or url."
        )
    if command:
        raw_args = value.get("args")
        args = tuple(a for a in raw_args if isinstance(a, str)) if isinstance(raw_args, list) else ()
        return StdioTransport(command=command, args=args)
    if url:
        if not url.startswith(("http://", "https://")):
            raise ValidationError("payload.transport.url must start with http:// or https://.")
        return SseTransport(url=url)
    raise ValidationError("payload.transport must include command or url.")


def parse_mcp_payload(action: MutationAction, payload: dict | None) -> McpMutationPayload:
    if payload is None:
        if action is MutationAction.REMOVE:
            return McpMutationPayload()
        raise ValidationError("payload is required for MCP add/update mutation.")
    if not isinstance(payload, dict):
        raise ValidationError("payload must be an object.")

    enabled = payload.get("enabled")
    if enabled is not None and not isinstance(enabled, bool):
        raise ValidationError("payload.enabled must be a boolean.")

    transport = parse_transport(payload["transport"]) if "transport" in payload else None
    if action is not MutationAction.REMOVE and transport is None:
        raise ValidationError("payload.transport is required for MCP add/update mutation.")

    return McpMutationPayload(
        source_path=_trimmed(payload, "source_path"),
        enabled=enabled,
        transport=transport,
    )
