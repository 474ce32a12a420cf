"""Static URL alias table.

Every logical operation is reachable under several paths because clients
disagree on where an MCP server lives. Routing never depends on which alias
was used; the table only decides SSE eligibility and which envelope a bare
POST body implies.
"""

from __future__ import annotations

from typing import Any

ENDPOINT_ALIASES: dict[str, tuple[str, ...]] = {
    "bootstrap": ("/mcp/v2/bootstrap", "/sse", "/mcp", "/api/mcp"),
    "events": ("/sse", "/mcp/v2/events", "/mcp/events", "/api/mcp/events"),
    "tools_list": ("/mcp/v2/tools/list", "/sse/tools", "/mcp/tools", "/api/mcp/tools/list"),
    "tools_call": ("/mcp/v2/tools/call", "/sse/call", "/mcp/call", "/api/mcp/tools/call"),
}

# Envelope assumed for a POST body that names neither `method` nor `type`.
IMPLIED_ENVELOPES: dict[str, dict[str, Any]] = {
    "tools_list": {"jsonrpc": "2.0", "method": "tools/list"},
    "tools_call": {"jsonrpc": "2.0", "method": "tools/call"},
    "bootstrap": {"type": "rpc", "method": "connectMCPServer", "args": []},
}

SSE_PATHS = ("/sse", "/mcp")
SSE_PREFIXES = ("/api/mcp", "/mcp/")


def normalize_path(path: str) -> str:
    path = "/" + path.lstrip("/")
    if len(path) > 1:
        path = path.rstrip("/")
    return path


def is_sse_path(path: str) -> bool:
    """GET on these paths opens an SSE session."""
    path = normalize_path(path)
    return path in SSE_PATHS or path.startswith(SSE_PREFIXES)


def resolve_operation(path: str) -> str | None:
    """First logical operation listing ``path`` (tools aliases win over bootstrap)."""
    path = normalize_path(path)
    for operation in ("tools_list", "tools_call", "bootstrap", "events"):
        if path in ENDPOINT_ALIASES[operation]:
            return operation
    return None


def implied_envelope(path: str) -> dict[str, Any] | None:
    operation = resolve_operation(path)
    if operation is None:
        return None
    return IMPLIED_ENVELOPES.get(operation)


def alias_table() -> dict[str, list[str]]:
    return {operation: list(paths) for operation, paths in ENDPOINT_ALIASES.items()}
