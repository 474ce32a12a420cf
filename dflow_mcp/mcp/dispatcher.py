"""Method registry and dispatcher.

Handlers are registered per dialect. Each handler takes the canonical request
and returns the ``result`` payload; errors it raises are converted to
JSON-RPC failures here, so callers only ever see an :data:`RPCResponse` or
``None`` (notifications).
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable

from dflow_mcp import __version__
from dflow_mcp.config import get_settings
from dflow_mcp.utils import get_logger, iso_timestamp

from .aliases import alias_table
from .catalog import build_server_info
from .protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    CanonicalRequest,
    Dialect,
    RPCResponse,
    failure,
    success,
)
from .tools import MCPTools, MissingArgument, ToolError

Handler = Callable[[CanonicalRequest], Awaitable[Any]]


class InvalidParams(Exception):
    def __init__(self, message: str, data: Any = None):
        super().__init__(message)
        self.message = message
        self.data = data


class MethodRegistry:
    """Canonical method name -> handler, partitioned by dialect."""

    def __init__(self, tools: MCPTools):
        self.settings = get_settings()
        self.tools = tools
        self.logger = get_logger("mcp.dispatcher")

        self._notifications: dict[str, Handler] = {
            "notifications/initialized": self._log_notification,
            "notifications/cancelled": self._log_notification,
            "notifications/prompts/list": self._log_notification,
            "notifications/resources/list": self._log_notification,
            "notifications/tools/list_changed": self._log_notification,
        }
        self._handlers: dict[Dialect, dict[str, Handler]] = {
            Dialect.STANDARD: {
                "initialize": self.initialize,
                "tools/list": self.tools_list,
                "tools/call": self.tools_call,
                "tools/describe": self.tools_describe,
                "server/info": self.server_info,
                "health": self.health,
            },
            Dialect.CLAUDE_DESKTOP: {
                "connectMCPServer": self.connect_mcp_server,
                "getModels": self.get_models,
                "health": self.health,
            },
        }

    def known_methods(self, dialect: Dialect) -> list[str]:
        return list(self._handlers[dialect])

    async def dispatch(self, request: CanonicalRequest) -> RPCResponse | None:
        """Run the handler for ``request``.

        Returns ``None`` for ``notifications/*`` whether or not a handler
        exists. Exceptions other than tool and parameter errors propagate to
        the transport, which answers with an HTTP 500.
        """
        if request.is_notification:
            handler = self._notifications.get(request.method)
            if handler is None:
                self.logger.debug("unknown_notification_ignored", method=request.method)
            else:
                await handler(request)
            return None

        handler = self._handlers[request.dialect].get(request.method)
        if handler is None:
            self.logger.info("method_not_found", method=request.method, dialect=request.dialect.value)
            return failure(
                request.id,
                METHOD_NOT_FOUND,
                "Method not found",
                {
                    "available_methods": self.known_methods(request.dialect),
                    "format": request.dialect.value,
                    "request_method": request.method,
                },
            )

        self.logger.debug("dispatch", method=request.method, dialect=request.dialect.value, id=request.id)
        try:
            result = await handler(request)
        except InvalidParams as e:
            return failure(request.id, INVALID_PARAMS, e.message, e.data)
        except MissingArgument as e:
            return failure(request.id, INVALID_PARAMS, e.message, e.data)
        except ToolError as e:
            return failure(request.id, INTERNAL_ERROR, e.message, e.data)
        return success(request.id, result)

    # ------------------------------------------------------------------
    # Protocol handlers
    # ------------------------------------------------------------------

    async def _log_notification(self, request: CanonicalRequest) -> None:
        self.logger.info("mcp_notification", method=request.method)

    async def initialize(self, request: CanonicalRequest) -> dict[str, Any]:
        client_info = request.params.get("clientInfo")
        if client_info:
            self.logger.info("client_initialize", client=client_info)
        return build_server_info(self.settings)

    async def tools_list(self, request: CanonicalRequest) -> dict[str, Any]:
        return {"tools": self.tools.catalog.as_list()}

    async def tools_call(self, request: CanonicalRequest) -> dict[str, Any]:
        name = request.params.get("name")
        if not isinstance(name, str) or not name:
            raise InvalidParams("tools/call missing params.name", {"params": request.params})
        arguments = request.params.get("arguments") or {}
        return await self.tools.call_tool(name, arguments)

    async def tools_describe(self, request: CanonicalRequest) -> dict[str, Any]:
        name = request.params.get("name")
        descriptor = self.tools.catalog.get(name) if isinstance(name, str) else None
        if descriptor is None:
            raise InvalidParams(
                f"Unknown tool: {name}",
                {"requested_tool": name, "available_tools": self.tools.catalog.names},
            )
        return descriptor.to_dict()

    async def server_info(self, request: CanonicalRequest) -> dict[str, Any]:
        return {
            **build_server_info(self.settings),
            "tools_count": len(self.tools.catalog),
            "endpoints": alias_table(),
        }

    async def health(self, request: CanonicalRequest) -> dict[str, Any]:
        return {
            "status": "healthy",
            "timestamp": iso_timestamp(),
            "version": __version__,
            "server": self.settings.server_name,
            "tools_count": len(self.tools.catalog),
            "methods": self.known_methods(request.dialect),
            "protocols_supported": [d.value for d in Dialect],
        }

    # ------------------------------------------------------------------
    # Claude-Desktop handlers
    # ------------------------------------------------------------------

    async def connect_mcp_server(self, request: CanonicalRequest) -> dict[str, Any]:
        server_url = request.params.get("server_url")
        self.logger.info("connect_mcp_server", server_url=server_url, id=request.id)
        info = build_server_info(self.settings)
        return {
            "name": info["serverInfo"]["name"],
            "version": info["serverInfo"]["version"],
            "protocolVersion": info["protocolVersion"],
            "capabilities": info["capabilities"],
            "serverInfo": info["serverInfo"],
            "tools": self.tools.catalog.as_list(),
            "prompts": [],
            "resources": [],
            "connected": True,
            "server_url": server_url or self.settings.mcp_public_url,
            "status": "connected",
            "timestamp": iso_timestamp(),
            "transport": "http_post",
        }

    async def get_models(self, request: CanonicalRequest) -> dict[str, Any]:
        return {
            "models": [
                {
                    "id": "dflow-prediction-markets",
                    "name": "DFlow Prediction Markets",
                    "description": "Access prediction market events, markets, trades, and live data",
                    "provider": self.settings.server_name,
                    "capabilities": ["tools", "text-generation"],
                }
            ]
        }
