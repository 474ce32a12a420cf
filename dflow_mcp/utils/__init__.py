"""Shared utilities."""

from .helpers import iso_timestamp, timestamp_ms
from .logging import get_logger, setup_logging

__all__ = [
    "get_logger",
    "iso_timestamp",
    "setup_logging",
    "timestamp_ms",
]
