"""Stage runner: runs one stage, then always dispatches.

A failing stage never blocks the route: the runner logs the failure and
dispatches the envelope it was given, so history and trace bookkeeping
continue.  The failure is not dropped; it is returned on the
``StageResult`` for the entry point to report.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict

from sigroute.core.dispatcher import Dispatcher
from sigroute.core.structured_log import StructuredLogger
from sigroute.models.context import RequestContext
from sigroute.models.envelopes import Envelope
from sigroute.models.events import InboundEvent
from sigroute.stages.base import BaseStage, StageExecutionError

logger = logging.getLogger(__name__)


class StageResult(BaseModel):
    """Envelope after dispatch, plus the stage failure if there was one."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    envelope: Envelope
    error: StageExecutionError | None = None


def _as_envelope(result: Any) -> Envelope:
    if isinstance(result, Envelope):
        return result
    if isinstance(result, Mapping):
        return Envelope.from_wire(dict(result))
    raise TypeError(
        f"Stage must return an Envelope or a mapping, got {type(result).__name__}"
    )


class StageRunner:
    """Invokes a stage and hands its output to the dispatcher."""

    def __init__(self, dispatcher: Dispatcher, log: StructuredLogger) -> None:
        self._dispatcher = dispatcher
        self._log = log

    async def run(
        self,
        context: RequestContext,
        event: InboundEvent | None,
        stage: BaseStage,
        device: str | None,
        body: Any,
        envelope: Envelope,
    ) -> StageResult:
        updated = envelope
        error: StageExecutionError | None = None
        try:
            updated = _as_envelope(await stage.process(context, device, body, envelope))
            await self._log.log(
                context,
                "result",
                {"result": updated, "device": device, "body": body, "event": event, "message": envelope},
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("Stage %s failed: %s", stage.stage_name, exc)
            error = StageExecutionError(stage.stage_name, str(exc))
            error.__cause__ = exc
            updated = envelope
            await self._log.log(
                context,
                "failed",
                {"error": exc, "device": device, "body": body, "event": event, "message": envelope},
            )

        dispatched = await self._dispatcher.dispatch(context, updated, device)
        return StageResult(envelope=dispatched, error=error)
