"""Main entry point for the DFlow MCP gateway."""

from __future__ import annotations

import signal
import sys
from contextlib import asynccontextmanager

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI

# Load environment variables before settings are first read
load_dotenv()

from dflow_mcp.api import DFlowRestClient  # noqa: E402
from dflow_mcp.config import get_settings  # noqa: E402
from dflow_mcp.mcp import MCPTools, create_mcp_server, load_tool_catalog  # noqa: E402
from dflow_mcp.utils import get_logger, setup_logging  # noqa: E402


def build_app() -> FastAPI:
    """Wire backend client, tools and transport into one app."""
    logger = get_logger("server")
    client = DFlowRestClient()
    tools = MCPTools(client)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # The catalog is replaced at most once, before the first request.
        tools.catalog = await load_tool_catalog(client)
        logger.info("server_started", tools=len(tools.catalog), backend=client.base_url)
        yield
        await client.close()
        logger.info("server_stopped")

    app = create_mcp_server(tools)
    app.router.lifespan_context = lifespan
    return app


def main():
    """Main entry point."""
    setup_logging()
    logger = get_logger("main")
    settings = get_settings()

    app = build_app()

    def signal_handler(sig, frame):
        logger.info("shutdown_signal_received", signal=sig)
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    logger.info("starting_uvicorn", host=settings.mcp_host, port=settings.mcp_port)

    uvicorn.run(
        app,
        host=settings.mcp_host,
        port=settings.mcp_port,
        log_level=settings.log_level.lower(),
        access_log=settings.debug,
    )


if __name__ == "__main__":
    main()
