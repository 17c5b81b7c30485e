"""Structured logger: the pipeline's correlated record stream.

Every call to ``StructuredLogger.log``:

1. attaches a trace id and start time to the request context on first
   use, and a ``duration`` (seconds, truncated to 0.1s) afterwards
2. strips nulls, cycles and deep branches from the parameters
3. fans the record out to all secondary sinks concurrently
4. writes a severity-tagged record to the primary sink (ERROR when the
   parameters carry ``error`` or ``err``, DEBUG otherwise)
5. echoes a readable line to the console when not running in the cloud

Sink failures are logged with the ``logging`` module and swallowed.
``log`` never raises: it returns the error if present, else the declared
``result``, else ``None``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.pretty import Pretty

from sigroute.core.sanitize import strip_nulls
from sigroute.core.tracing import create_trace_id, elapsed_seconds, now_ms
from sigroute.models.config import LoggerConfig
from sigroute.models.context import RequestContext
from sigroute.routing.sinks import LogSink

logger = logging.getLogger(__name__)


def _declared_error(parameters: Mapping[str, Any]) -> Any:
    return parameters.get("err") or parameters.get("error") or None


class StructuredLogger:
    """Writes correlated log records for one process.

    Parameters
    ----------
    config:
        Function name, log name and runtime flags.  Defaults are used if
        not provided.
    primary_sink:
        Receives ``{severity, resourceLabels, action, parameters}``.
    secondary_sinks:
        Each receives the normalized record ``{timestamp, starttime,
        traceId, userId, companyId, maskedToken, action, parameters}``.
    console:
        Rich console for the local echo.
    """

    def __init__(
        self,
        config: LoggerConfig | None = None,
        *,
        primary_sink: LogSink | None = None,
        secondary_sinks: Sequence[LogSink] = (),
        console: Console | None = None,
    ) -> None:
        self.config = config or LoggerConfig()
        self._primary = primary_sink
        self._secondary: tuple[LogSink, ...] = tuple(secondary_sinks)
        self._console = console or Console(stderr=True)

    @property
    def secondary_sinks(self) -> tuple[LogSink, ...]:
        return self._secondary

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def log(
        self,
        context: RequestContext | None,
        action: str,
        parameters: Mapping[str, Any] | None = None,
    ) -> Any:
        """Record *action* with *parameters* for the request in *context*."""
        raw: dict[str, Any] = dict(parameters or {})
        try:
            now = now_ms()
            if context is None:
                context = RequestContext()
            err = _declared_error(raw)

            if not context.trace_id:
                context.trace_id = create_trace_id(now)
            if context.starttime:
                raw["duration"] = elapsed_seconds(context.starttime, now)
            else:
                context.starttime = now

            if err is not None and self.config.is_production:
                logger.error(
                    "%s/%s failed: %s",
                    self.config.function_name,
                    action,
                    err,
                    exc_info=err if isinstance(err, BaseException) else None,
                )

            para = strip_nulls(raw)
            full_action = f"{self.config.function_name}/{action}"

            await self.log_queue(context, full_action, para, now=now)

            if not self.config.is_cloud_function:
                self._echo(full_action, para)

            if self._primary is not None:
                record = {
                    "severity": "ERROR" if err is not None else "DEBUG",
                    "resourceLabels": {
                        "type": self.config.resource_type,
                        "function_name": self.config.function_name,
                        "log_name": self.config.log_name,
                    },
                    "action": full_action,
                    "parameters": para,
                }
                try:
                    await self._primary.write(record)
                except Exception as exc:  # noqa: BLE001
                    logger.error(
                        "Primary log sink %s failed for %s: %s",
                        self._primary.sink_name,
                        full_action,
                        exc,
                    )

            if err is not None:
                return err
            return raw.get("result")
        except Exception as exc:  # noqa: BLE001
            logger.error("Structured log of %s failed: %s", action, exc)
            return _declared_error(raw) or raw.get("result")

    # Errors go through the same path; severity follows the parameters.
    error = log

    async def log_queue(
        self,
        context: RequestContext,
        action: str,
        parameters: Any,
        *,
        now: int | None = None,
    ) -> list[Any]:
        """Fan a normalized record out to every secondary sink.

        Returns one entry per sink: the sink's result, or the exception it
        raised.  Results are informational only.
        """
        if not self._secondary:
            return []

        record = {
            "timestamp": now if now is not None else now_ms(),
            "starttime": context.starttime,
            "traceId": context.trace_id,
            "userId": context.user_id,
            "companyId": context.company_id,
            "maskedToken": context.masked_token,
            "action": action,
            "parameters": parameters,
        }
        results = await asyncio.gather(
            *(sink.write(record) for sink in self._secondary),
            return_exceptions=True,
        )
        for sink, result in zip(self._secondary, results):
            if isinstance(result, Exception):
                logger.error(
                    "Log sink %s failed for %s: %s", sink.sink_name, action, result
                )
        return list(results)

    # ------------------------------------------------------------------
    # Console echo
    # ------------------------------------------------------------------

    def _echo(self, action: str, parameters: Any) -> None:
        try:
            self._console.print(f"[bold cyan]{escape(action)}[/bold cyan] |", Pretty(parameters))
        except Exception as exc:  # noqa: BLE001
            logger.debug("Console echo failed: %s", exc)
