"""Tests for the method registry."""

from unittest.mock import AsyncMock

import pytest

from dflow_mcp.api import ApiError
from dflow_mcp.mcp.dispatcher import MethodRegistry
from dflow_mcp.mcp.protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    CanonicalRequest,
    Dialect,
    RPCFailure,
    RPCSuccess,
)


def _standard(method, params=None, id=1):
    return CanonicalRequest(id=id, method=method, params=params or {}, dialect=Dialect.STANDARD)


def _desktop(method, params=None, id=1):
    return CanonicalRequest(id=id, method=method, params=params or {}, dialect=Dialect.CLAUDE_DESKTOP)


@pytest.mark.anyio
async def test_initialize_returns_server_info(tools):
    out = await MethodRegistry(tools).dispatch(_standard("initialize", {"clientInfo": {"name": "t"}}))
    assert isinstance(out, RPCSuccess)
    assert out.result["protocolVersion"] == "2025-06-18"
    assert out.result["capabilities"]["tools"] == {"listChanged": False}
    assert out.result["serverInfo"]["name"] == "dflow-mcp-server"


@pytest.mark.anyio
async def test_tools_list_is_catalog_in_order(tools):
    out = await MethodRegistry(tools).dispatch(_standard("tools/list"))
    names = [t["name"] for t in out.result["tools"]]
    assert names == ["get_events", "get_markets", "get_trades", "get_market_by_mint", "get_live_data"]


@pytest.mark.anyio
async def test_unknown_method_lists_dialect_methods(tools):
    out = await MethodRegistry(tools).dispatch(_standard("resources/list", id=4))
    assert isinstance(out, RPCFailure)
    assert out.id == 4
    assert out.error.code == METHOD_NOT_FOUND
    assert out.error.data["format"] == "standard_jsonrpc"
    assert "tools/call" in out.error.data["available_methods"]
    assert "connectMCPServer" not in out.error.data["available_methods"]


@pytest.mark.anyio
async def test_desktop_dialect_has_its_own_method_set(tools):
    registry = MethodRegistry(tools)
    out = await registry.dispatch(_desktop("tools/list"))
    assert out.error.code == METHOD_NOT_FOUND
    assert out.error.data["format"] == "claude_desktop_rpc"
    assert out.error.data["available_methods"] == ["connectMCPServer", "getModels", "health"]


@pytest.mark.anyio
async def test_notifications_never_produce_a_response(tools):
    registry = MethodRegistry(tools)
    assert await registry.dispatch(_standard("notifications/initialized", id=None)) is None
    assert await registry.dispatch(_standard("notifications/made/up", id=None)) is None


@pytest.mark.anyio
async def test_tools_describe(tools):
    registry = MethodRegistry(tools)
    out = await registry.dispatch(_standard("tools/describe", {"name": "get_market_by_mint"}))
    assert out.result["name"] == "get_market_by_mint"
    assert out.result["inputSchema"]["required"] == ["mint"]

    missing = await registry.dispatch(_standard("tools/describe", {"name": "get_nothing"}))
    assert missing.error.code == INVALID_PARAMS
    assert "get_events" in missing.error.data["available_tools"]


@pytest.mark.anyio
async def test_tools_call_without_name_is_invalid_params(tools, backend):
    out = await MethodRegistry(tools).dispatch(_standard("tools/call", {"arguments": {}}))
    assert out.error.code == INVALID_PARAMS
    backend.api_request.assert_not_awaited()


@pytest.mark.anyio
async def test_missing_mint_is_invalid_params(tools, backend):
    out = await MethodRegistry(tools).dispatch(
        _standard("tools/call", {"name": "get_market_by_mint", "arguments": {}})
    )
    assert out.error.code == INVALID_PARAMS
    assert out.error.data["tool"] == "get_market_by_mint"
    assert out.error.data["missing"] == "mint"
    backend.api_request.assert_not_awaited()


@pytest.mark.anyio
async def test_backend_failure_is_internal_error_with_tool_data(tools, backend):
    backend.api_request = AsyncMock(side_effect=ApiError("HTTP 404: not found", status=404))
    out = await MethodRegistry(tools).dispatch(
        _standard("tools/call", {"name": "get_trades", "arguments": {"cursor": "abc"}}, id=12)
    )
    assert out.id == 12
    assert out.error.code == INTERNAL_ERROR
    assert out.error.message == "HTTP 404: not found"
    assert out.error.data == {"tool": "get_trades", "arguments": {"cursor": "abc"}}


@pytest.mark.anyio
async def test_unknown_tool_is_internal_error(tools):
    out = await MethodRegistry(tools).dispatch(_standard("tools/call", {"name": "get_nothing"}))
    assert out.error.code == INTERNAL_ERROR
    assert out.error.data["tool"] == "get_nothing"


@pytest.mark.anyio
async def test_unexpected_tool_error_is_internal_error(tools, backend):
    backend.api_request = AsyncMock(side_effect=TypeError("bad"))
    out = await MethodRegistry(tools).dispatch(
        _standard("tools/call", {"name": "get_events", "arguments": {"limit": 2}})
    )
    assert out.error.code == -32603
    assert out.error.data == {"tool": "get_events", "arguments": {"limit": 2}}


@pytest.mark.anyio
async def test_unexpected_handler_error_propagates(tools):
    registry = MethodRegistry(tools)
    registry._handlers[Dialect.STANDARD]["tools/list"] = AsyncMock(side_effect=RuntimeError("bug"))
    with pytest.raises(RuntimeError):
        await registry.dispatch(_standard("tools/list"))


@pytest.mark.anyio
async def test_connect_mcp_server(tools):
    out = await MethodRegistry(tools).dispatch(
        _desktop("connectMCPServer", {"server_url": "https://example.test/mcp"}, id="c1")
    )
    assert out.id == "c1"
    assert out.result["connected"] is True
    assert out.result["server_url"] == "https://example.test/mcp"
    assert len(out.result["tools"]) == 5


@pytest.mark.anyio
async def test_connect_mcp_server_defaults_public_url(tools):
    out = await MethodRegistry(tools).dispatch(_desktop("connectMCPServer"))
    assert out.result["server_url"] == "https://dflow.opensvm.com/api/mcp"


@pytest.mark.anyio
async def test_health_and_server_info_do_not_touch_backend(tools, backend):
    registry = MethodRegistry(tools)
    health = await registry.dispatch(_desktop("health"))
    assert health.result["status"] == "healthy"
    assert health.result["tools_count"] == 5

    info = await registry.dispatch(_standard("server/info"))
    assert info.result["tools_count"] == 5
    assert "/mcp/v2/tools/list" in info.result["endpoints"]["tools_list"]

    models = await registry.dispatch(_desktop("getModels"))
    assert models.result["models"][0]["id"] == "dflow-prediction-markets"
    backend.api_request.assert_not_awaited()
