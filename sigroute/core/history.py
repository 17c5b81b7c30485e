"""Hop history: one timing record appended per dispatch.

History is an ordered list, earliest first::

    [{timestamp, end, duration, latency, source, function}, ...]

``duration`` is the time spent in this invocation; ``latency`` is the
delivery delay between the previous hop's ``end`` and this invocation's
start.  Both are seconds truncated to one decimal place.
"""

from __future__ import annotations

from sigroute.core.tracing import elapsed_seconds, now_ms
from sigroute.models.context import RequestContext
from sigroute.models.envelopes import Envelope, HopRecord


def update_history(
    context: RequestContext,
    envelope: Envelope,
    *,
    stage_name: str | None = None,
    now: int | None = None,
) -> Envelope:
    """Return a copy of *envelope* with a hop record appended.

    The input envelope and its history list are left untouched.
    """
    end = now if now is not None else now_ms()
    timestamp = context.starttime
    duration = elapsed_seconds(timestamp, end) if timestamp else 0.0

    previous = envelope.last_hop
    last_send = previous.end if previous is not None else None
    latency = elapsed_seconds(last_send, timestamp) if last_send and timestamp else 0.0

    record = HopRecord(
        timestamp=timestamp,
        end=end,
        duration=duration,
        latency=latency,
        source=context.source,
        stage_name=stage_name,
    )
    return envelope.model_copy(update={"history": [*envelope.history, record]})
