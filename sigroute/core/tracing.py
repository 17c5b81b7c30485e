"""Trace identifiers and the time arithmetic shared by history and logging.

Durations and latencies are truncated (not rounded) to one decimal place
so that they bucket consistently in the time-series store.
"""

from __future__ import annotations

import time
import uuid
from datetime import datetime


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def elapsed_seconds(start_ms: int | float, end_ms: int | float) -> float:
    """Seconds between two epoch-ms timestamps, truncated toward zero to 0.1s.

    >>> elapsed_seconds(1000, 3499)
    2.4
    """
    return int((end_ms - start_ms) / 100) / 10.0


def create_trace_id(now: int | float | None = None) -> str:
    """Return a trace id ``MMSS-<uuid4>`` for a request starting at *now* (ms).

    The local minute and second prefix makes ids sort by time of day in an
    external store; the uuid suffix keeps them unique for equal timestamps.
    """
    if now is None:
        now = now_ms()
    try:
        local = datetime.fromtimestamp(now / 1000.0)
        prefix = local.strftime("%M%S")
    except (OverflowError, OSError, ValueError):
        prefix = "0000"
    return f"{prefix}-{uuid.uuid4()}"
