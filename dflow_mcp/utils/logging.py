"""structlog configuration.

All output goes to stderr as key-value events. JSON lines are rendered by
default; ``DEBUG=true`` switches to the coloured console renderer.
"""

from __future__ import annotations

import logging
import sys

import structlog

from dflow_mcp.config import get_settings


def setup_logging(level: str | None = None) -> None:
    """Configure stdlib logging and structlog once at startup."""
    settings = get_settings()
    level_name = (level or settings.log_level).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    # uvicorn / aiohttp still log through the stdlib
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=log_level)

    renderer: structlog.types.Processor
    if settings.debug:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a logger bound to a component name."""
    return structlog.get_logger().bind(component=name)
