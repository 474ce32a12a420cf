"""MCP tool implementations backed by the DFlow REST API."""

from __future__ import annotations

import functools
import json
import time
from typing import Any, Awaitable, Callable
from urllib.parse import quote

from dflow_mcp.api import ApiError, DFlowRestClient
from dflow_mcp.config import get_settings
from dflow_mcp.utils import get_logger

from .catalog import ToolCatalog


class ToolError(Exception):
    """A tool invocation failed; keeps the call for diagnosis."""

    def __init__(self, message: str, tool: str, arguments: dict[str, Any]):
        super().__init__(message)
        self.message = message
        self.tool = tool
        self.arguments = arguments

    @property
    def data(self) -> dict[str, Any]:
        return {"tool": self.tool, "arguments": self.arguments}


class MissingArgument(ToolError):
    def __init__(self, tool: str, arguments: dict[str, Any], argument: str):
        super().__init__(f"Missing required argument '{argument}' for tool {tool}", tool, arguments)
        self.argument = argument

    @property
    def data(self) -> dict[str, Any]:
        return {**super().data, "missing": self.argument}


class UnknownTool(ToolError):
    def __init__(self, tool: str, arguments: dict[str, Any]):
        super().__init__(f"Unknown tool: {tool}", tool, arguments)


def _segment(value: Any) -> str:
    return quote(str(value), safe="")


def _present(value: Any) -> bool:
    return value is not None and value != ""


def text_content(payload: Any) -> dict[str, Any]:
    """Wrap a backend payload as a single MCP text block (2-space JSON)."""
    return {
        "content": [
            {
                "type": "text",
                "text": json.dumps(payload, indent=2, ensure_ascii=False),
            }
        ]
    }


class MCPTools:
    """Tool name -> backend call routing."""

    def __init__(self, client: DFlowRestClient, catalog: ToolCatalog | None = None):
        self.settings = get_settings()
        self.client = client
        self.catalog = catalog or ToolCatalog.default()
        self.logger = get_logger("mcp.tools")
        self._routes: dict[str, Callable[[dict[str, Any]], Awaitable[Any]]] = {
            "get_events": self.get_events,
            "get_markets": self.get_markets,
            "get_trades": self.get_trades,
            "get_market_by_mint": self.get_market_by_mint,
            "get_live_data": self.get_live_data,
        }

    # ------------------------------------------------------------------
    # Backend calls
    # ------------------------------------------------------------------

    async def get_events(self, arguments: dict[str, Any]) -> Any:
        return await self.client.api_request("GET", "/api/v1/events", arguments)

    async def get_markets(self, arguments: dict[str, Any]) -> Any:
        return await self.client.api_request("GET", "/api/v1/markets", arguments)

    async def get_trades(self, arguments: dict[str, Any]) -> Any:
        return await self.client.api_request("GET", "/api/v1/trades", arguments)

    async def get_market_by_mint(self, arguments: dict[str, Any]) -> Any:
        mint = arguments.get("mint")
        if not _present(mint):
            raise MissingArgument("get_market_by_mint", arguments, "mint")
        return await self.client.api_request("GET", f"/api/v1/markets/by-mint/{_segment(mint)}")

    async def get_live_data(self, arguments: dict[str, Any]) -> Any:
        # event_ticker wins when both tickers are given
        if _present(arguments.get("event_ticker")):
            path = f"/api/v1/events/live-data/{_segment(arguments['event_ticker'])}"
        elif _present(arguments.get("market_ticker")):
            path = f"/api/v1/markets/live-data/{_segment(arguments['market_ticker'])}"
        else:
            path = "/api/v1/live-data"
        return await self.client.api_request("GET", path)

    async def _fallback(self, name: str, arguments: dict[str, Any]) -> Any:
        rest = name[len("get_"):] if name.startswith("get_") else name
        return await self.client.api_request("GET", f"/api/v1/{_segment(rest)}", arguments)

    # ------------------------------------------------------------------
    # Invocation
    # ------------------------------------------------------------------

    def _check_required(self, name: str, arguments: dict[str, Any]) -> None:
        descriptor = self.catalog.get(name)
        if descriptor is None:
            return
        for argument in descriptor.required:
            if not _present(arguments.get(argument)):
                raise MissingArgument(name, arguments, argument)

    async def invoke(self, name: str, arguments: dict[str, Any]) -> Any:
        """Resolve ``name`` to its backend call and return the raw JSON payload.

        Raises:
            MissingArgument: a required argument is absent; no backend call is made.
            UnknownTool: no route for ``name`` and the fallback is disabled.
            ToolError: the backend call failed in any way.
        """
        if not isinstance(arguments, dict):
            arguments = {}

        route = self._routes.get(name)
        if route is None:
            if not self.settings.tool_fallback_enabled:
                raise UnknownTool(name, arguments)
            self.logger.info("tool_fallback", tool=name)
            route = functools.partial(self._fallback, name)

        self._check_required(name, arguments)

        self.logger.info("tool_call", tool=name, arguments=arguments)
        t_start = time.time()
        try:
            result = await route(arguments)
        except ApiError as e:
            elapsed = time.time() - t_start
            self.logger.warning(
                "tool_call_failed", tool=name, status=e.status, error=str(e), elapsed=round(elapsed, 3)
            )
            raise ToolError(str(e), name, arguments) from e
        except ToolError:
            raise
        except Exception as e:
            self.logger.exception("tool_call_error", tool=name, error=str(e))
            raise ToolError(str(e) or type(e).__name__, name, arguments) from e

        elapsed = time.time() - t_start
        self.logger.info("tool_call_done", tool=name, elapsed=round(elapsed, 3))
        return result

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        """``tools/call`` result: the payload wrapped as MCP content."""
        result = await self.invoke(name, arguments)
        return text_content(result)
