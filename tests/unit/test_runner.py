"""Tests for StageRunner: stage invocation followed by dispatch."""

from __future__ import annotations

import pytest

from sigroute.core.runner import StageRunner
from sigroute.stages.base import FunctionStage, StageExecutionError


@pytest.fixture
def runner(dispatcher, structured_logger) -> StageRunner:
    return StageRunner(dispatcher, structured_logger)


class TestStageRunner:
    @pytest.mark.asyncio
    async def test_dispatches_stage_output(self, runner, context, make_envelope, published):
        async def decode(ctx, device, body, envelope):
            return envelope.model_copy(update={"body": {**body, "temperature": 21.5}})

        env = make_envelope(route=["store"])
        result = await runner.run(context, None, FunctionStage("decode", decode), "D1", env.body, env)

        assert result.error is None
        assert result.envelope.type == "store"
        assert published[0][1]["body"]["temperature"] == 21.5

    @pytest.mark.asyncio
    async def test_failure_still_dispatches_input(self, runner, context, make_envelope, published, primary_sink):
        async def broken(ctx, device, body, envelope):
            raise ValueError("cannot decode")

        env = make_envelope(route=["store"])
        result = await runner.run(context, None, FunctionStage("decode", broken), "D1", env.body, env)

        assert isinstance(result.error, StageExecutionError)
        assert isinstance(result.error.__cause__, ValueError)
        assert "cannot decode" in str(result.error)
        assert result.envelope.type == "store"
        assert published[0][1]["body"] == env.body
        actions = [r["action"] for r in primary_sink.records]
        assert actions[0] == "decode/failed"
        assert actions[-1] == "decode/dispatchMessage"

    @pytest.mark.asyncio
    async def test_mapping_result_accepted(self, runner, context, make_envelope):
        def as_dict(ctx, device, body, envelope):
            return {**envelope.to_wire(), "body": {"flat": True}}

        env = make_envelope(route=[])
        result = await runner.run(context, None, FunctionStage("decode", as_dict), "D1", env.body, env)
        assert result.error is None
        assert result.envelope.body == {"flat": True}

    @pytest.mark.asyncio
    async def test_invalid_result_is_stage_failure(self, runner, context, make_envelope):
        async def returns_none(ctx, device, body, envelope):
            return None

        env = make_envelope(route=["store"])
        result = await runner.run(context, None, FunctionStage("decode", returns_none), "D1", env.body, env)
        assert isinstance(result.error, StageExecutionError)
        assert result.envelope.type == "store"

    @pytest.mark.asyncio
    async def test_stage_that_dispatched_itself_is_not_forwarded(self, runner, context, make_envelope, published):
        async def broadcast(ctx, device, body, envelope):
            return envelope.model_copy(update={"is_dispatched": True})

        env = make_envelope(route=["store"])
        result = await runner.run(context, None, FunctionStage("decode", broadcast), "D1", env.body, env)
        assert published == []
        assert result.envelope.is_dispatched is True
