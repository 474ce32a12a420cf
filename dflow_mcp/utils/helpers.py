"""Time helpers."""

from __future__ import annotations

import time
from datetime import datetime, timezone


def timestamp_ms() -> int:
    """Current unix time in milliseconds."""
    return int(time.time() * 1000)


def iso_timestamp(now: datetime | None = None) -> str:
    """UTC timestamp like ``2025-06-18T12:00:00.000Z``."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
