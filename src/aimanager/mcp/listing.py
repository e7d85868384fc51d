"""Read-only listing of configured MCP servers across clients.

Problems with one client's file become warnings; they never abort the listing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from aimanager.core.config import ClientKind, Config
from aimanager.core.errors import CommandError

from .codecs import codec_for, entry_enabled


@dataclass
class McpServerRecord:
    id: str
    client: ClientKind
    name: str
    enabled: bool
    transport: str
    endpoint: str = ""
    source_path: Path | None = None


@dataclass
class McpListResult:
    items: list[McpServerRecord] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def read_mcp_servers(client: ClientKind, path: Path) -> tuple[list[McpServerRecord], list[str]]:
    records: list[McpServerRecord] = []
    warnings: list[str] = []
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        return records, [f"[{client.value}:CONFIG_READ] failed to read '{path}': {e}"]

    codec = codec_for(client)
    try:
        document = codec.parse(text)
    except CommandError as e:
        return records, [f"[{client.value}:CONFIG_PARSE] {path}: {e.message}"]

    section = document.get(codec.section_key(document), {})
    if not hasattr(section, "items"):
        return records, [f"[{client.value}:SECTION_INVALID] {path}: MCP section is not a map."]

    for name, entry in section.items():
        name = str(name)
        if not hasattr(entry, "get"):
            warnings.append(f"[{client.value}:ENTRY_INVALID] '{name}' in '{path}' is not a map.")
            continue
        command = entry.get("command")
        url = entry.get("url")
        if command:
            args = entry.get("args")
            if args is None:
                args = []
            elif not isinstance(args, list):
                warnings.append(
                    f"[{client.value}:ENTRY_INVALID] '{name}' in '{path}' has non-list args."
                )
                continue
            transport, endpoint = "stdio", " ".join([str(command), *map(str, args)])
        elif url:
            transport, endpoint = "sse", str(url)
        else:
            warnings.append(
                f"[{client.value}:TRANSPORT_MISSING] '{name}' in '{path}' has no command or url."
            )
            continue
        records.append(
            McpServerRecord(
                id=f"{client.value}::{name}",
                client=client,
                name=name,
                enabled=entry_enabled(entry),
                transport=transport,
                endpoint=endpoint,
                source_path=path,
            )
        )
    return records, warnings


def list_mcp_servers(
    config: Config,
    client: ClientKind | None = None,
    enabled: bool | None = None,
) -> McpListResult:
    result = McpListResult()
    clients = [client] if client is not None else list(ClientKind)
    for kind in clients:
        path = config.discovery.mcp_config_path(kind)
        if path is None:
            continue
        records, warnings = read_mcp_servers(kind, Path(path))
        result.warnings.extend(warnings)
        result.items.extend(r for r in records if enabled is None or r.enabled == enabled)
    return result
