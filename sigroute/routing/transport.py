"""Publish transport: the protocol the dispatcher publishes through.

Real deployments plug in a queue client.  ``LocalBroker`` provides an
in-memory, bounded set of channel queues for tests, local simulation and
single-process use.  Each ``LocalPublisher`` is a short-lived client over
a broker; the dispatcher asks its factory for a new one per publish.
"""

from __future__ import annotations

import collections
import itertools
import json
import logging
from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


class PublishError(RuntimeError):
    """Raised when a payload cannot be published to a channel."""


@runtime_checkable
class Publisher(Protocol):
    """Sends a payload to a named channel."""

    async def publish(self, channel: str, payload: Any) -> Any:
        """Publish *payload* to *channel* and return the transport's result
        (typically a message id).  Raise on failure."""
        ...


PublisherFactory = Callable[[], Publisher]


class LocalBroker:
    """In-memory channel queues shared by ``LocalPublisher`` clients.

    Parameters
    ----------
    max_queue:
        Maximum depth of each channel queue.  The oldest message is
        dropped when a full queue receives a new one.
    """

    def __init__(self, max_queue: int = 1024) -> None:
        self._max_queue = max_queue
        self._queues: dict[str, collections.deque[bytes]] = {}
        self._ids = itertools.count(1)

    def publisher(self) -> LocalPublisher:
        """Return a fresh client over this broker (usable as a factory)."""
        return LocalPublisher(self)

    def put(self, channel: str, data: bytes) -> str:
        queue = self._queues.setdefault(
            channel, collections.deque(maxlen=self._max_queue)
        )
        if len(queue) == self._max_queue:
            logger.warning("LocalBroker: channel %s full, dropping oldest", channel)
        queue.append(data)
        return f"local-{next(self._ids)}"

    def drain(self, channel: str) -> list[Any]:
        """Remove and return all pending payloads of *channel*, oldest first."""
        queue = self._queues.get(channel)
        if not queue:
            return []
        payloads = [json.loads(raw) for raw in queue]
        queue.clear()
        return payloads

    def pending(self, channel: str | None = None) -> int:
        if channel is not None:
            return len(self._queues.get(channel, ()))
        return sum(len(q) for q in self._queues.values())

    def channels(self) -> list[str]:
        """Channels that currently hold pending payloads, in first-use order."""
        return [name for name, queue in self._queues.items() if queue]


class LocalPublisher:
    """Publishes JSON payloads into a ``LocalBroker``."""

    def __init__(self, broker: LocalBroker) -> None:
        self._broker = broker

    async def publish(self, channel: str, payload: Any) -> Any:
        try:
            data = json.dumps(payload).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise PublishError(f"Payload for {channel} is not JSON: {exc}") from exc
        message_id = self._broker.put(channel, data)
        logger.debug("LocalPublisher: %s -> %s", message_id, channel)
        return message_id
