"""Document codecs: apply one named-entry mutation to a JSON or TOML config.

Both formats share :func:`apply_entry_mutation`, which works on any mutable
mapping. A codec only knows how to parse text, build an entry body and
serialize the document back.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping, MutableMapping
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError
from tomlkit.items import InlineTable, Table

from aimanager.core.config import ClientKind, ConfigFormat, MutationAction
from aimanager.core.errors import InternalError, ValidationError

from .payload import McpMutationPayload, StdioTransport, Transport

JSON_SECTION_KEYS = ("mcpServers", "mcp_servers")
TOML_SECTION_KEYS = ("mcp_servers", "mcpServers")


def _plain(value: Any) -> Any:
    unwrap = getattr(value, "unwrap", None)
    return unwrap() if callable(unwrap) else value


def entry_enabled(entry: Any, default: bool = True) -> bool:
    if not isinstance(entry, Mapping):
        return default
    value = _plain(entry.get("enabled"))
    return value if isinstance(value, bool) else default


def _entry_fields(transport: Transport, enabled: bool) -> dict:
    if isinstance(transport, StdioTransport):
        fields: dict = {"command": transport.command}
        if transport.args:
            fields["args"] = list(transport.args)
    else:
        fields = {"url": transport.url}
    fields["enabled"] = enabled
    return fields


def apply_entry_mutation(
    section: MutableMapping,
    entry_id: str,
    action: MutationAction,
    payload: McpMutationPayload,
    build_entry: Callable[[Transport, bool], Any],
) -> None:
    if action is MutationAction.ADD:
        if entry_id in section:
            raise ValidationError(f"MCP '{entry_id}' already exists.")
        if payload.transport is None:
            raise ValidationError("payload.transport is required for MCP add mutation.")
        enabled = True if payload.enabled is None else payload.enabled
        section[entry_id] = build_entry(payload.transport, enabled)

    elif action is MutationAction.REMOVE:
        if entry_id not in section:
            raise ValidationError(f"MCP '{entry_id}' does not exist.")
        del section[entry_id]

    else:
        if entry_id not in section:
            raise ValidationError(f"MCP '{entry_id}' does not exist.")
        if payload.transport is None:
            raise ValidationError("payload.transport is required for MCP update mutation.")
        # keep the toggle state when the caller only changes the transport
        current = entry_enabled(section[entry_id])
        enabled = current if payload.enabled is None else payload.enabled
        section[entry_id] = build_entry(payload.transport, enabled)


class DocumentCodec:
    """Parse -> locate section -> mutate entry -> serialize."""

    label = ""
    section_keys: tuple[str, str] = ("", "")

    def parse(self, text: str) -> MutableMapping:
        raise NotImplementedError

    def new_section(self) -> MutableMapping:
        raise NotImplementedError

    def build_entry(self, transport: Transport, enabled: bool) -> Any:
        raise NotImplementedError

    def serialize(self, document: MutableMapping) -> str:
        raise NotImplementedError

    def entry_builder(
        self, section: MutableMapping, entry_id: str
    ) -> Callable[[Transport, bool], Any]:
        return self.build_entry

    def section_key(self, document: Mapping) -> str:
        for key in self.section_keys:
            if key in document:
                return key
        return self.section_keys[0]

    def apply(
        self,
        text: str,
        entry_id: str,
        action: MutationAction,
        payload: McpMutationPayload,
    ) -> str:
        document = self.parse(text)
        key = self.section_key(document)
        if key not in document:
            document[key] = self.new_section()
        section = document[key]
        if not isinstance(section, MutableMapping):
            raise ValidationError(f"{self.label} MCP section '{key}' must be a map of entries.")

        try:
            builder = self.entry_builder(section, entry_id)
            apply_entry_mutation(section, entry_id, action, payload, builder)
        except ValueError as e:
            # structural rejections from the document model, e.g. a table inside an inline table
            raise ValidationError(
                f"{self.label} MCP section '{key}' cannot hold entry '{entry_id}': {e}"
            ) from e

        serialized = self.serialize(document)
        return serialized if serialized.endswith("\n") else serialized + "\n"


class JsonCodec(DocumentCodec):
    label = "JSON"
    section_keys = JSON_SECTION_KEYS

    def parse(self, text: str) -> MutableMapping:
        if not text.strip():
            return {}
        try:
            root = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid JSON MCP config: {e}") from e
        if not isinstance(root, dict):
            raise ValidationError("JSON MCP config root must be an object.")
        return root

    def new_section(self) -> MutableMapping:
        return {}

    def build_entry(self, transport: Transport, enabled: bool) -> dict:
        return _entry_fields(transport, enabled)

    def serialize(self, document: MutableMapping) -> str:
        try:
            return json.dumps(document, indent=2, ensure_ascii=False) + "\n"
        except (TypeError, ValueError) as e:
            raise InternalError(f"Failed to serialize JSON MCP config: {e}") from e


class TomlCodec(DocumentCodec):
    """tomlkit keeps comments, ordering and formatting of everything we don't touch."""

    label = "TOML"
    section_keys = TOML_SECTION_KEYS

    def parse(self, text: str) -> MutableMapping:
        if not text.strip():
            return tomlkit.document()
        try:
            return tomlkit.parse(text)
        except TOMLKitError as e:
            raise ValidationError(f"Invalid TOML MCP config: {e}") from e

    def new_section(self) -> MutableMapping:
        return tomlkit.table(is_super_table=True)

    def apply(
        self,
        text: str,
        entry_id: str,
        action: MutationAction,
        payload: McpMutationPayload,
    ) -> str:
        out = super().apply(text, entry_id, action, payload)
        # a fresh document has nothing to separate the first table from
        return out.lstrip("\n") if not text.strip() else out

    def entry_builder(
        self, section: MutableMapping, entry_id: str
    ) -> Callable[[Transport, bool], Any]:
        if isinstance(section, InlineTable):
            return self.build_inline_entry

        # new tables get a blank line before their header; replaced ones keep theirs
        previous = section.get(entry_id)
        indent = previous.trivia.indent if isinstance(previous, Table) else "\n"

        def build(transport: Transport, enabled: bool) -> Table:
            table = self.build_entry(transport, enabled)
            table.trivia.indent = indent
            return table

        return build

    def build_entry(self, transport: Transport, enabled: bool) -> Table:
        table = tomlkit.table()
        table.update(_entry_fields(transport, enabled))
        return table

    def build_inline_entry(self, transport: Transport, enabled: bool) -> InlineTable:
        table = tomlkit.inline_table()
        table.update(_entry_fields(transport, enabled))
        return table

    def serialize(self, document: MutableMapping) -> str:
        try:
            return tomlkit.dumps(document)
        except (TOMLKitError, TypeError, ValueError) as e:
            raise InternalError(f"Failed to serialize TOML MCP config: {e}") from e


def codec_for(client: ClientKind) -> DocumentCodec:
    if client.mcp_format is ConfigFormat.TOML:
        return TomlCodec()
    return JsonCodec()
