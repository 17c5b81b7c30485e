"""Shared test fixtures for sigroute."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
from rich.console import Console

from sigroute.core.dispatcher import Dispatcher
from sigroute.core.structured_log import StructuredLogger
from sigroute.models.config import LoggerConfig
from sigroute.models.context import RequestContext
from sigroute.models.envelopes import Envelope
from sigroute.models.events import InboundEvent
from sigroute.routing.sinks.memory import MemorySink
from sigroute.routing.transport import LocalBroker

DEVICE_RESOURCE = "projects/test-project/topics/sigfox.devices.all"


# ---------------------------------------------------------------------------
# Recording collaborators
# ---------------------------------------------------------------------------


class RecordingPublisher:
    """A publisher that records every (channel, payload) pair."""

    def __init__(self, log: list[tuple[str, Any]]) -> None:
        self._log = log

    async def publish(self, channel: str, payload: Any) -> Any:
        self._log.append((channel, payload))
        return f"msg-{len(self._log)}"


class FailingPublisher:
    """A publisher that always raises."""

    async def publish(self, channel: str, payload: Any) -> Any:
        raise ConnectionError(f"cannot reach {channel}")


class FailingSink:
    """A log sink that always raises."""

    def __init__(self, name: str = "failing_sink") -> None:
        self._name = name

    @property
    def sink_name(self) -> str:
        return self._name

    async def write(self, record: dict[str, Any]) -> Any:
        raise RuntimeError("Sink failure for testing")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def published() -> list[tuple[str, Any]]:
    """Every (channel, payload) published through ``publisher_factory``."""
    return []


@pytest.fixture
def publisher_factory(published: list[tuple[str, Any]]) -> Callable[[], RecordingPublisher]:
    return lambda: RecordingPublisher(published)


@pytest.fixture
def broker() -> LocalBroker:
    return LocalBroker()


@pytest.fixture
def primary_sink() -> MemorySink:
    return MemorySink("primary")


@pytest.fixture
def secondary_sink() -> MemorySink:
    return MemorySink("secondary")


@pytest.fixture
def quiet_console() -> Console:
    return Console(quiet=True)


@pytest.fixture
def logger_config() -> LoggerConfig:
    return LoggerConfig(function_name="decode")


@pytest.fixture
def structured_logger(
    logger_config: LoggerConfig,
    primary_sink: MemorySink,
    secondary_sink: MemorySink,
    quiet_console: Console,
) -> StructuredLogger:
    """A logger writing to in-memory primary and secondary sinks."""
    return StructuredLogger(
        logger_config,
        primary_sink=primary_sink,
        secondary_sinks=[secondary_sink],
        console=quiet_console,
    )


@pytest.fixture
def dispatcher(
    publisher_factory: Callable[[], RecordingPublisher],
    structured_logger: StructuredLogger,
) -> Dispatcher:
    return Dispatcher(publisher_factory, structured_logger, function_name="decode")


@pytest.fixture
def context() -> RequestContext:
    """A context whose invocation started at t=10s."""
    return RequestContext(starttime=10_000, path=DEVICE_RESOURCE)


# ---------------------------------------------------------------------------
# Envelope factories: shared across test modules
# ---------------------------------------------------------------------------


@pytest.fixture
def make_envelope() -> Callable[..., Envelope]:
    """Factory fixture: build an Envelope with sensible defaults."""

    def _factory(
        device: str | None = "D1",
        route: list[str] | None = None,
        **overrides: Any,
    ) -> Envelope:
        defaults: dict[str, Any] = {
            "device": device,
            "body": {"data": "920e06272731741db051e600", "uuid": "u-1"},
            "route": route if route is not None else ["decode", "store"],
        }
        defaults.update(overrides)
        return Envelope(**defaults)

    return _factory


@pytest.fixture
def make_event() -> Callable[..., InboundEvent]:
    """Factory fixture: wrap an envelope (or raw dict) in an inbound event."""

    def _factory(
        envelope: Envelope | dict[str, Any],
        resource: str = DEVICE_RESOURCE,
        event_id: str = "120816659675797",
    ) -> InboundEvent:
        return InboundEvent.encode(
            envelope,
            resource=resource,
            event_id=event_id,
            timestamp="2017-05-06T10:19:29.666Z",
        )

    return _factory


@pytest.fixture
def failing_sink() -> FailingSink:
    return FailingSink()


@pytest.fixture
def failing_publisher_factory() -> Callable[[], FailingPublisher]:
    return FailingPublisher
