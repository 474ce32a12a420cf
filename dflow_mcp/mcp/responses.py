"""HTTP rendering of JSON-RPC outcomes.

Status code policy: only transport-level problems (malformed JSON, disallowed
verb, WebSocket upgrade, uncaught dispatch errors) change the HTTP status.
Every JSON-RPC error a client can act on (method not found, invalid params,
tool failure) is sent with HTTP 200 inside the envelope.
"""

from __future__ import annotations

from typing import Any

from fastapi import Response
from fastapi.responses import JSONResponse

from .protocol import (
    INTERNAL_ERROR,
    INVALID_REQUEST,
    TRANSPORT_NOT_SUPPORTED,
    RPCFailure,
    RPCSuccess,
    failure,
)

ALLOWED_METHODS = "GET, POST, OPTIONS"
ALLOWED_HEADERS = "Content-Type, Authorization, x-api-key"
SSE_ALLOWED_HEADERS = f"{ALLOWED_HEADERS}, Last-Event-ID"
PREFLIGHT_MAX_AGE = "86400"


def cors_headers(sse: bool = False) -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": ALLOWED_METHODS,
        "Access-Control-Allow-Headers": SSE_ALLOWED_HEADERS if sse else ALLOWED_HEADERS,
    }


def preflight_response(sse: bool = False) -> Response:
    headers = cors_headers(sse)
    headers["Access-Control-Max-Age"] = PREFLIGHT_MAX_AGE
    return Response(status_code=200, headers=headers)


def rpc_response(
    outcome: RPCSuccess | RPCFailure,
    status_code: int = 200,
    sse: bool = False,
) -> JSONResponse:
    return JSONResponse(content=outcome.to_wire(), status_code=status_code, headers=cors_headers(sse))


def empty_response(sse: bool = False) -> Response:
    """Answer to a notification: 200 with no body, never an envelope."""
    headers = cors_headers(sse)
    headers["Content-Type"] = "application/json"
    return Response(status_code=200, headers=headers)


def method_not_allowed(http_method: str, sse: bool = False) -> JSONResponse:
    return rpc_response(
        failure(None, INVALID_REQUEST, "Method not allowed", {"http_method": http_method}),
        status_code=405,
        sse=sse,
    )


def websocket_not_supported(path: str) -> JSONResponse:
    return rpc_response(
        failure(
            None,
            TRANSPORT_NOT_SUPPORTED,
            "WebSocket transport is not supported; send JSON-RPC requests with HTTP POST",
            {"transport": "http_post", "endpoint": path},
        ),
        status_code=400,
        sse=True,
    )


def internal_error(detail: Any, sse: bool = False) -> JSONResponse:
    return rpc_response(failure(None, INTERNAL_ERROR, "Internal error", detail), status_code=500, sse=sse)


def sse_response(body: bytes) -> Response:
    headers = cors_headers(sse=True)
    headers.update(
        {
            "Content-Type": "text/event-stream",
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        }
    )
    return Response(content=body, status_code=200, headers=headers)
