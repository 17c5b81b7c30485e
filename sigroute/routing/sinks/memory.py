"""In-memory sink: keeps the most recent records in a bounded deque."""

from __future__ import annotations

import collections
from typing import Any


class MemorySink:
    """Collects log records in memory.

    Parameters
    ----------
    name:
        Sink name reported to the logger.
    max_records:
        Oldest records are discarded beyond this many.
    """

    def __init__(self, name: str = "memory", max_records: int = 1000) -> None:
        self._name = name
        self._records: collections.deque[dict[str, Any]] = collections.deque(
            maxlen=max_records
        )

    @property
    def sink_name(self) -> str:
        return self._name

    @property
    def records(self) -> list[dict[str, Any]]:
        return list(self._records)

    async def write(self, record: dict[str, Any]) -> Any:
        self._records.append(record)
        return len(self._records)

    def actions(self) -> list[str]:
        """Return the ``action`` of every stored record, oldest first."""
        return [record.get("action", "") for record in self._records]

    def clear(self) -> None:
        self._records.clear()
