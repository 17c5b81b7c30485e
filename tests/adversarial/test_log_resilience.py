"""Adversarial tests for the structured log path.

Logging must never be the reason a message is lost: broken sinks, a
broken console and hostile parameter graphs are all absorbed.
"""

from __future__ import annotations

import pytest

from sigroute.config import ProdConfig
from sigroute.core.pipeline import OutcomeStatus, Pipeline
from sigroute.core.sanitize import TRUNCATED
from sigroute.core.structured_log import StructuredLogger
from sigroute.models.config import LoggerConfig
from sigroute.models.context import RequestContext
from sigroute.stages import PassthroughStage


class _ExplodingConsole:
    def print(self, *args, **kwargs):
        raise OSError("terminal closed")


# ---------------------------------------------------------------------------
# Test: logger never raises
# ---------------------------------------------------------------------------


class TestLoggerNeverRaises:
    @pytest.mark.asyncio
    async def test_every_sink_failing(self, failing_sink):
        log = StructuredLogger(
            LoggerConfig(is_cloud_function=True),
            primary_sink=failing_sink,
            secondary_sinks=[failing_sink, failing_sink],
        )
        result = await log.log(RequestContext(), "start", {"result": 42})
        assert result == 42

    @pytest.mark.asyncio
    async def test_console_failure(self, secondary_sink):
        log = StructuredLogger(secondary_sinks=[secondary_sink], console=_ExplodingConsole())
        await log.log(RequestContext(), "start", {"device": "D1"})
        assert secondary_sink.actions() == ["unknown_function/start"]

    @pytest.mark.asyncio
    async def test_cyclic_parameters(self, structured_logger, secondary_sink):
        cyclic: dict = {"device": "D1"}
        cyclic["self"] = cyclic

        result = await structured_logger.log(RequestContext(), "result", {"result": cyclic})

        assert result is cyclic
        logged = secondary_sink.records[0]["parameters"]["result"]
        assert logged["device"] == "D1"
        assert logged["self"] == TRUNCATED

    @pytest.mark.asyncio
    async def test_deep_parameters_truncated(self, structured_logger, secondary_sink):
        deep = {"a": {"b": {"c": {"d": {"e": 1}}}}}
        await structured_logger.log(RequestContext(), "start", {"body": deep})
        body = secondary_sink.records[0]["parameters"]["body"]
        assert body["a"]["b"]["c"] == TRUNCATED


# ---------------------------------------------------------------------------
# Test: pipeline keeps routing when logging is broken
# ---------------------------------------------------------------------------


class TestPipelineWithBrokenLogging:
    @pytest.mark.asyncio
    async def test_message_still_dispatched(
        self, failing_sink, publisher_factory, published, make_envelope, make_event
    ):
        pipeline = Pipeline(
            ProdConfig(function_name="decode"),
            publisher_factory=publisher_factory,
            primary_sink=failing_sink,
            secondary_sinks=[failing_sink],
            console=_ExplodingConsole(),
        )

        outcome = await pipeline.main(make_event(make_envelope()), PassthroughStage())

        assert outcome.status == OutcomeStatus.COMPLETED
        assert [channel for channel, _ in published] == ["sigfox.types.decode"]

    @pytest.mark.asyncio
    async def test_stage_returning_garbage(self, publisher_factory, published, make_envelope, make_event, quiet_console):
        async def garbage(ctx, device, body, envelope):
            return 42

        pipeline = Pipeline(
            ProdConfig(function_name="decode"),
            publisher_factory=publisher_factory,
            console=quiet_console,
        )
        outcome = await pipeline.main(make_event(make_envelope()), garbage)

        assert outcome.status == OutcomeStatus.FAILED
        assert "Envelope or a mapping" in outcome.error
        assert len(published) == 1
