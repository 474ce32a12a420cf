import asyncio
import inspect
from unittest.mock import AsyncMock, MagicMock

import pytest

from dflow_mcp.mcp.catalog import ToolCatalog
from dflow_mcp.mcp.tools import MCPTools


def pytest_configure(config):
    config.addinivalue_line("markers", "anyio: run the coroutine test on a fresh event loop")


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem):
    """Drive ``async def`` tests without a plugin; each gets its own loop."""
    test_function = pyfuncitem.obj
    if not inspect.iscoroutinefunction(test_function):
        return None

    accepted = inspect.signature(test_function).parameters
    kwargs = {name: value for name, value in pyfuncitem.funcargs.items() if name in accepted}

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        loop.run_until_complete(test_function(**kwargs))
    finally:
        # let aiohttp connectors finish closing
        loop.run_until_complete(asyncio.sleep(0))
        loop.close()
        asyncio.set_event_loop(None)
    return True


@pytest.fixture
def backend():
    """Stand-in for DFlowRestClient; ``api_request`` returns an empty object."""
    client = MagicMock()
    client.api_request = AsyncMock(return_value={})
    client.fetch_json = AsyncMock(return_value={})
    return client


@pytest.fixture
def tools(backend):
    return MCPTools(backend, ToolCatalog.default())
