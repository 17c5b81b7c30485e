"""Log sink protocol for sigroute structured logging.

All sinks implement the ``LogSink`` protocol: a ``sink_name`` property
and an async ``write(record)`` method.  The structured logger writes
every record to its primary sink and fans it out to all secondary sinks.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class LogSink(Protocol):
    """Protocol that every sigroute log sink must implement.

    Attributes
    ----------
    sink_name : str
        A unique human-readable identifier for this sink instance
        (e.g. ``"memory"``, ``"local_file"``).
    """

    @property
    def sink_name(self) -> str:
        """Return the unique name of this sink."""
        ...

    async def write(self, record: dict[str, Any]) -> Any:
        """Write one log record.

        Implementations may raise; the logger logs the failure and
        carries on with the remaining sinks.
        """
        ...
