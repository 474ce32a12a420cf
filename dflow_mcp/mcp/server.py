"""MCP HTTP server.

One catch-all route serves every alias the deployment exposes:

* ``OPTIONS`` on any path: CORS preflight, the body is never read.
* ``POST`` on any path: a Claude-Desktop or JSON-RPC 2.0 envelope, answered
  with a single JSON-RPC response (or an empty 200 for notifications).
* ``GET`` on an SSE alias (``/sse``, ``/mcp``, ``/api/mcp*``, ``/mcp/*``):
  a buffered ``connected`` / ``tools_available`` / ``ready`` event stream.
  A WebSocket upgrade request is refused with ``-32000``.
* anything else: 405.

``GET /health`` is a plain liveness probe outside the MCP router.
"""

from __future__ import annotations

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from dflow_mcp import __version__
from dflow_mcp.utils import get_logger, iso_timestamp

from .aliases import implied_envelope, is_sse_path
from .dispatcher import MethodRegistry
from .envelope import ParseFailure, normalize
from .responses import (
    cors_headers,
    empty_response,
    internal_error,
    method_not_allowed,
    preflight_response,
    rpc_response,
    sse_response,
    websocket_not_supported,
)
from .sse import build_session_events, encode_events
from .tools import MCPTools

HTTP_METHODS = ["GET", "POST", "OPTIONS", "PUT", "PATCH", "DELETE", "HEAD"]


def create_mcp_server(tools: MCPTools) -> FastAPI:
    """Create the FastAPI app serving every MCP alias."""

    logger = get_logger("mcp.server")
    registry = MethodRegistry(tools)

    app = FastAPI(
        title="DFlow MCP Server",
        description="Prediction Market Metadata API for the DFlow platform over MCP",
        version=__version__,
    )
    app.state.registry = registry

    async def _handle_post(request: Request, path: str, sse: bool) -> Response:
        raw_body = await request.body()
        parsed = normalize(raw_body, implied_envelope(path))

        if isinstance(parsed, ParseFailure):
            logger.info("request_rejected", path=path, code=parsed.code, reason=parsed.message)
            return rpc_response(parsed.to_response(), status_code=parsed.http_status, sse=sse)

        logger.info(
            "mcp_request",
            path=path,
            method=parsed.method,
            dialect=parsed.dialect.value,
            id=parsed.id,
        )

        try:
            outcome = await registry.dispatch(parsed)
        except Exception as e:
            logger.exception("jsonrpc_processing_error", method=parsed.method, error=str(e))
            return internal_error(str(e), sse=sse)

        if outcome is None:
            return empty_response(sse=sse)
        return rpc_response(outcome, sse=sse)

    def _handle_get(request: Request, path: str) -> Response:
        if request.headers.get("upgrade", "").lower() == "websocket":
            logger.info("websocket_upgrade_refused", path=path)
            return websocket_not_supported(path)

        if not is_sse_path(path):
            return method_not_allowed("GET")

        logger.info("sse_session_opened", path=path)
        events = build_session_events(tools.catalog, endpoint=path)
        return sse_response(encode_events(events))

    @app.get("/health")
    @app.get("/healthz")
    async def health_check():
        return JSONResponse(
            content={
                "status": "ok",
                "service": "dflow-mcp",
                "version": __version__,
                "timestamp": iso_timestamp(),
            },
            headers=cors_headers(),
        )

    @app.api_route("/{full_path:path}", methods=HTTP_METHODS)
    async def mcp_endpoint(request: Request, full_path: str):
        path = request.url.path
        sse = is_sse_path(path)
        logger.debug("http_request", http_method=request.method, path=path)

        if request.method == "OPTIONS":
            return preflight_response(sse=sse)

        if request.method == "POST":
            return await _handle_post(request, path, sse)

        if request.method == "GET":
            return _handle_get(request, path)

        return method_not_allowed(request.method, sse=sse)

    return app
