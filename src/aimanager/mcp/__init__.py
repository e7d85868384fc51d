"""MCP: server entry payloads, document codecs, mutation and listing."""

from .codecs import JsonCodec, TomlCodec, apply_entry_mutation, codec_for
from .listing import McpListResult, McpServerRecord, list_mcp_servers, read_mcp_servers
from .paths import resolve_mcp_config_path
from .payload import McpMutationPayload, SseTransport, StdioTransport, parse_mcp_payload
from .service import McpMutationService, mutate_mcp

__all__ = [
    "JsonCodec",
    "McpListResult",
    "McpMutationPayload",
    "McpMutationService",
    "McpServerRecord",
    "SseTransport",
    "StdioTransport",
    "TomlCodec",
    "apply_entry_mutation",
    "codec_for",
    "list_mcp_servers",
    "mutate_mcp",
    "parse_mcp_payload",
    "read_mcp_servers",
    "resolve_mcp_config_path",
]
