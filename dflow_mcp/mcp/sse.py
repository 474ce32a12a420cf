"""One-shot SSE session.

A GET on an SSE alias answers with a fixed, fully buffered event sequence:
``connected``, ``tools_available``, ``ready``. There is no live subscription;
the stream ends after the last frame.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from sse_starlette.sse import ServerSentEvent

from dflow_mcp.config import Settings, get_settings
from dflow_mcp.utils import iso_timestamp, timestamp_ms

from .aliases import ENDPOINT_ALIASES
from .catalog import ToolCatalog, build_server_info


@dataclass(frozen=True)
class SSEEvent:
    type: str
    data: Any
    id: str | None = None

    def encode(self) -> bytes:
        """``id:``/``event:``/``data:`` lines followed by a blank line."""
        return ServerSentEvent(
            data=json.dumps(self.data, ensure_ascii=False, separators=(",", ":")),
            event=self.type,
            id=self.id,
            sep="\n",
        ).encode()


def build_session_events(
    catalog: ToolCatalog,
    endpoint: str,
    settings: Settings | None = None,
) -> list[SSEEvent]:
    settings = settings or get_settings()
    info = build_server_info(settings)
    stream_id = f"sse-{timestamp_ms()}"
    return [
        SSEEvent(
            type="connected",
            data={
                "status": "connected",
                "server": settings.server_name,
                "endpoint": endpoint,
                "timestamp": iso_timestamp(),
            },
            id=stream_id,
        ),
        SSEEvent(
            type="tools_available",
            data={
                "tools": catalog.as_list(),
                "count": len(catalog),
                "endpoints": list(ENDPOINT_ALIASES["events"]),
            },
            id=stream_id,
        ),
        SSEEvent(
            type="ready",
            data={
                "status": "ready",
                "capabilities": info["capabilities"],
                "transport": "sse",
                "multi_endpoint": True,
            },
            id=stream_id,
        ),
    ]


def encode_events(events: list[SSEEvent]) -> bytes:
    return b"".join(event.encode() for event in events)
