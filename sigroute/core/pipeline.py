"""Top-level entry point for one stage invocation.

``Pipeline.main`` is what a deployed stage runs for every delivered
message::

    decode event -> start log -> dedup check -> stage -> dispatch -> end log

It never raises.  Any failure is logged and turned into a ``failed``
outcome, because a raised error would make the transport redeliver the
message again and again.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
from collections.abc import Callable, Coroutine, Mapping, Sequence
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict
from rich.console import Console

from sigroute.config import ProdConfig
from sigroute.core.dedup import DedupChecker, NeverProcessed, check_processed
from sigroute.core.dispatcher import Dispatcher
from sigroute.core.runner import StageRunner
from sigroute.core.structured_log import StructuredLogger
from sigroute.core.tracing import now_ms
from sigroute.models.context import RequestContext
from sigroute.models.envelopes import Envelope
from sigroute.models.events import InboundEvent
from sigroute.routing.channels import RouteTransform
from sigroute.routing.sinks import LogSink
from sigroute.routing.sinks.local_file import LocalFileSink
from sigroute.routing.sinks.queue import QueueLogSink
from sigroute.routing.sinks.stdlib import StdlibLogSink
from sigroute.routing.transport import LocalBroker, PublisherFactory
from sigroute.stages.base import BaseStage, StageTask, as_stage

logger = logging.getLogger(__name__)


class OutcomeStatus(str, Enum):
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


class InvocationOutcome(BaseModel):
    """What one invocation did, reported instead of raising."""

    model_config = ConfigDict(frozen=True)

    status: OutcomeStatus
    envelope: Envelope | None = None
    error: str | None = None
    trace_id: str | None = None

    @property
    def ok(self) -> bool:
        return self.status != OutcomeStatus.FAILED


def _body_uuid(body: Any) -> str:
    if isinstance(body, Mapping) and body.get("uuid"):
        return str(body["uuid"])
    return "missing_uuid"


class Pipeline:
    """Wires logger, dispatcher, runner and dedup for one deployed stage.

    Parameters
    ----------
    config:
        Process configuration.  Read from the environment if not provided.
    publisher_factory:
        Returns a fresh ``Publisher`` per publish.  Defaults to a private
        in-memory ``LocalBroker`` that nothing drains, with a warning; only
        useful for local runs.
    primary_sink:
        Primary log sink.  Defaults to ``StdlibLogSink`` at ``trail_level``.
    secondary_sinks:
        Extra log sinks.  A ``QueueLogSink`` is added per configured log
        queue, and a ``LocalFileSink`` when ``local_log_dir`` is set.
    dedup:
        Processed-message checker.  Defaults to ``NeverProcessed``.
    route_transform:
        Optional channel remapping hook for the dispatcher.
    """

    def __init__(
        self,
        config: ProdConfig | None = None,
        *,
        publisher_factory: PublisherFactory | None = None,
        primary_sink: LogSink | None = None,
        secondary_sinks: Sequence[LogSink] = (),
        dedup: DedupChecker | None = None,
        route_transform: RouteTransform | None = None,
        console: Console | None = None,
    ) -> None:
        self.config = config or ProdConfig()
        if publisher_factory is None:
            logger.warning(
                "Pipeline %s has no publisher factory; messages go to a private "
                "in-memory broker and are not forwarded",
                self.config.stage_name,
            )
            publisher_factory = LocalBroker().publisher
        logger_config = self.config.to_logger_config()

        sinks: list[LogSink] = list(secondary_sinks)
        for queue in logger_config.log_queues:
            sinks.append(
                QueueLogSink(publisher_factory, queue.topic_name, project_id=queue.project_id)
            )
        if self.config.local_log_dir is not None:
            sinks.append(LocalFileSink(self.config.local_log_dir, log_name=self.config.log_name))

        primary = primary_sink or StdlibLogSink(
            self.config.log_name, level=self.config.trail_level
        )
        self.log = StructuredLogger(
            logger_config,
            primary_sink=primary,
            secondary_sinks=sinks,
            console=console,
        )
        self.dispatcher = Dispatcher(
            publisher_factory,
            self.log,
            function_name=self.config.stage_name,
            channel_prefix=self.config.channel_prefix,
            route_transform=route_transform,
        )
        self.runner = StageRunner(self.dispatcher, self.log)
        self.dedup: DedupChecker = dedup or NeverProcessed()

    async def main(
        self,
        event: InboundEvent | Mapping[str, Any],
        stage: BaseStage | StageTask,
    ) -> InvocationOutcome:
        """Process one delivered event with *stage*.  Never raises."""
        context = RequestContext(starttime=now_ms())
        envelope: Envelope | None = None
        device: str | None = None
        body: Any = None
        try:
            if not isinstance(event, InboundEvent):
                event = InboundEvent.model_validate(event)
            context.event = event

            envelope = event.decode_envelope()
            device = envelope.device
            body = envelope.body
            context.uuid = _body_uuid(body)
            if envelope.is_dispatched:
                envelope = envelope.model_copy(update={"is_dispatched": False})
            task = as_stage(stage)

            await self.log.log(
                context,
                "start",
                {"device": device, "body": body, "event": event, "message": envelope},
            )

            if await check_processed(self.dedup, context, envelope):
                await self.log.log(
                    context,
                    "skip",
                    {
                        "result": envelope,
                        "isProcessed": True,
                        "device": device,
                        "body": body,
                        "event": event,
                        "message": envelope,
                    },
                )
                return InvocationOutcome(
                    status=OutcomeStatus.SKIPPED, envelope=envelope, trace_id=context.trace_id
                )

            result = await self.runner.run(context, event, task, device, body, envelope)
            await self.log.log(
                context,
                "end",
                {
                    "result": result.envelope,
                    "error": result.error,
                    "device": device,
                    "body": body,
                    "event": event,
                    "message": envelope,
                },
            )
            return InvocationOutcome(
                status=OutcomeStatus.FAILED if result.error else OutcomeStatus.COMPLETED,
                envelope=result.envelope,
                error=str(result.error) if result.error else None,
                trace_id=context.trace_id,
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("Invocation failed: %s", exc)
            await self.log.log(
                context,
                "end",
                {"error": exc, "device": device, "body": body, "event": event, "message": envelope},
            )
            return InvocationOutcome(
                status=OutcomeStatus.FAILED,
                envelope=envelope,
                error=str(exc),
                trace_id=context.trace_id,
            )


def _run_to_completion(coro: Coroutine[Any, Any, InvocationOutcome]) -> InvocationOutcome:
    """Run *coro* to completion from synchronous code.

    Inside a running event loop ``asyncio.run`` refuses to start, so the
    coroutine gets its own loop on a worker thread instead.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
        return pool.submit(asyncio.run, coro).result()


def cloud_function(
    stage: BaseStage | StageTask,
    pipeline: Pipeline | None = None,
) -> Callable[..., InvocationOutcome]:
    """Return a synchronous ``handler(event, context=None)`` for *stage*.

    The handler accepts either the full event shape (``{"data": {"data":
    ...}, "resource": ...}``) or the background-function shape, where
    ``event["data"]`` is the base64 string and the resource and event id
    live on the runtime *context* object.  It may be called from inside a
    running event loop, though it then blocks that loop until done.
    """
    target = pipeline or Pipeline()

    def handler(event: Any, context: Any = None) -> InvocationOutcome:
        if isinstance(event, Mapping) and isinstance(event.get("data"), str):
            event = InboundEvent.from_background(event, context)
        return _run_to_completion(target.main(event, stage))

    return handler
