"""Queue sink: publishes log records to a channel for offline analysis.

Used to ship every log record to an analytics store (e.g. BigQuery via a
queue subscription).  A new publisher is obtained for every write.
"""

from __future__ import annotations

import json
from typing import Any

from sigroute.routing.transport import PublisherFactory


class QueueLogSink:
    """Publishes each record to *topic_name*.

    Records are passed through JSON with ``default=str`` first so that
    values the queue cannot encode are rendered as text.
    """

    def __init__(
        self,
        publisher_factory: PublisherFactory,
        topic_name: str,
        *,
        project_id: str | None = None,
    ) -> None:
        self._publisher_factory = publisher_factory
        self._topic_name = topic_name
        self._project_id = project_id

    @property
    def sink_name(self) -> str:
        if self._project_id:
            return f"queue:{self._project_id}/{self._topic_name}"
        return f"queue:{self._topic_name}"

    async def write(self, record: dict[str, Any]) -> Any:
        payload = json.loads(json.dumps(record, default=str))
        publisher = self._publisher_factory()
        return await publisher.publish(self._topic_name, payload)
