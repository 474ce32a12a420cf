"""Tests for tool routing to the DFlow backend."""

import json
from unittest.mock import AsyncMock

import pytest

from dflow_mcp.api import ApiError
from dflow_mcp.config import get_settings
from dflow_mcp.mcp.catalog import ToolCatalog, ToolDescriptor
from dflow_mcp.mcp.tools import MCPTools, MissingArgument, ToolError, UnknownTool, text_content


@pytest.mark.anyio
@pytest.mark.parametrize(
    "name, path",
    [
        ("get_events", "/api/v1/events"),
        ("get_markets", "/api/v1/markets"),
        ("get_trades", "/api/v1/trades"),
    ],
)
async def test_list_tools_forward_arguments_as_query(tools, backend, name, path):
    await tools.invoke(name, {"limit": 5, "cursor": 2})
    backend.api_request.assert_awaited_once_with("GET", path, {"limit": 5, "cursor": 2})


@pytest.mark.anyio
async def test_market_by_mint_path(tools, backend):
    await tools.invoke("get_market_by_mint", {"mint": "So11111111111111111111111111111111111111112"})
    backend.api_request.assert_awaited_once_with(
        "GET", "/api/v1/markets/by-mint/So11111111111111111111111111111111111111112"
    )


@pytest.mark.anyio
@pytest.mark.parametrize("arguments", [{}, {"mint": ""}, {"mint": None}])
async def test_market_by_mint_requires_mint(tools, backend, arguments):
    with pytest.raises(MissingArgument) as exc:
        await tools.invoke("get_market_by_mint", arguments)
    assert exc.value.argument == "mint"
    assert exc.value.data["tool"] == "get_market_by_mint"
    backend.api_request.assert_not_awaited()


@pytest.mark.anyio
@pytest.mark.parametrize(
    "arguments, path",
    [
        ({"event_ticker": "X"}, "/api/v1/events/live-data/X"),
        ({"market_ticker": "Y"}, "/api/v1/markets/live-data/Y"),
        ({"event_ticker": "X", "market_ticker": "Y"}, "/api/v1/events/live-data/X"),
        ({}, "/api/v1/live-data"),
    ],
)
async def test_live_data_path_precedence(tools, backend, arguments, path):
    await tools.invoke("get_live_data", arguments)
    backend.api_request.assert_awaited_once_with("GET", path)


@pytest.mark.anyio
async def test_path_segments_are_escaped(tools, backend):
    await tools.invoke("get_live_data", {"market_ticker": "../events"})
    backend.api_request.assert_awaited_once_with("GET", "/api/v1/markets/live-data/..%2Fevents")


@pytest.mark.anyio
async def test_unknown_tool_fails_when_fallback_disabled(tools, backend, monkeypatch):
    monkeypatch.setattr(get_settings(), "tool_fallback_enabled", False)
    with pytest.raises(UnknownTool) as exc:
        await tools.invoke("get_series", {"limit": 1})
    assert exc.value.message == "Unknown tool: get_series"
    backend.api_request.assert_not_awaited()


@pytest.mark.anyio
async def test_unknown_tool_fallback_strips_get_prefix(tools, backend, monkeypatch):
    monkeypatch.setattr(get_settings(), "tool_fallback_enabled", True)
    await tools.invoke("get_series", {"limit": 1})
    backend.api_request.assert_awaited_once_with("GET", "/api/v1/series", {"limit": 1})


@pytest.mark.anyio
async def test_backend_failure_becomes_tool_error(tools, backend):
    backend.api_request = AsyncMock(side_effect=ApiError("HTTP 503: unavailable", status=503))
    with pytest.raises(ToolError) as exc:
        await tools.invoke("get_events", {"limit": 5})
    assert exc.value.data == {"tool": "get_events", "arguments": {"limit": 5}}
    assert "503" in exc.value.message
    # single attempt, no retry
    assert backend.api_request.await_count == 1


@pytest.mark.anyio
async def test_non_dict_arguments_are_ignored(tools, backend):
    await tools.invoke("get_events", ["limit", 5])
    backend.api_request.assert_awaited_once_with("GET", "/api/v1/events", {})


@pytest.mark.anyio
async def test_call_tool_wraps_payload_as_text_content(tools, backend):
    backend.api_request = AsyncMock(return_value={"events": [{"ticker": "ELECTION"}]})
    out = await tools.call_tool("get_events", {"limit": 5})
    assert out == {
        "content": [
            {
                "type": "text",
                "text": '{\n  "events": [\n    {\n      "ticker": "ELECTION"\n    }\n  ]\n}',
            }
        ]
    }


def test_text_content_keeps_unicode():
    block = text_content({"title": "Élection"})["content"][0]
    assert json.loads(block["text"]) == {"title": "Élection"}
    assert "Élection" in block["text"]


@pytest.mark.anyio
async def test_missing_mint_from_route_not_rewrapped(backend):
    tools = MCPTools(backend, ToolCatalog([ToolDescriptor(name="get_market_by_mint")]))
    with pytest.raises(MissingArgument):
        await tools.invoke("get_market_by_mint", {})
    backend.api_request.assert_not_awaited()


@pytest.mark.anyio
async def test_unexpected_backend_exception_becomes_tool_error(tools, backend):
    backend.api_request = AsyncMock(side_effect=TypeError("bad"))
    with pytest.raises(ToolError) as exc_info:
        await tools.invoke("get_trades", {"limit": 1})
    assert exc_info.value.data == {"tool": "get_trades", "arguments": {"limit": 1}}
