"""Abstract base stage: the single extension point of the pipeline.

A stage receives the request context, the device, the decoded body and
the envelope, and returns the updated envelope that is then dispatched
to the next stage of the route.  Stages must not mutate the envelope
they receive; envelopes are frozen, so updates go through
``envelope.model_copy(update=...)``.

A stage that forwards the envelope itself (e.g. a broadcast) returns it
with ``is_dispatched=True`` so the runner does not forward it again.
"""

from __future__ import annotations

import abc
import inspect
from collections.abc import Awaitable, Callable
from typing import Any, Union

from sigroute.models.context import RequestContext
from sigroute.models.envelopes import Envelope

StageTask = Callable[
    [RequestContext, Union[str, None], Any, Envelope],
    Union[Awaitable[Any], Any],
]


class StageExecutionError(RuntimeError):
    """Raised when a stage's process() fails."""

    def __init__(self, stage_name: str, message: str) -> None:
        super().__init__(f"Stage {stage_name} failed: {message}")
        self.stage_name = stage_name


class BaseStage(abc.ABC):
    """Abstract base for all pipeline stages.

    Subclasses **must** implement:
        * ``stage_name``: the stage's name, as used in routes.
        * ``process(context, device, body, envelope)``.
    """

    @property
    @abc.abstractmethod
    def stage_name(self) -> str:
        """Stage name as it appears in an envelope route (e.g. ``'decode'``)."""
        ...

    @abc.abstractmethod
    async def process(
        self,
        context: RequestContext,
        device: str | None,
        body: Any,
        envelope: Envelope,
    ) -> Envelope:
        """Process one envelope and return its updated copy."""
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} stage_name={self.stage_name!r}>"


class FunctionStage(BaseStage):
    """Wraps a plain function (sync or async) as a stage.

    Parameters
    ----------
    name:
        Stage name.
    fn:
        Called as ``fn(context, device, body, envelope)``.
    """

    def __init__(self, name: str, fn: StageTask) -> None:
        self._name = name
        self._fn = fn

    @property
    def stage_name(self) -> str:
        return self._name

    async def process(
        self,
        context: RequestContext,
        device: str | None,
        body: Any,
        envelope: Envelope,
    ) -> Envelope:
        result = self._fn(context, device, body, envelope)
        if inspect.isawaitable(result):
            result = await result
        return result


def as_stage(task: BaseStage | StageTask, name: str | None = None) -> BaseStage:
    """Return *task* as a ``BaseStage``, wrapping plain callables."""
    if isinstance(task, BaseStage):
        return task
    if not callable(task):
        raise TypeError(f"Stage task must be callable, got {type(task).__name__}")
    return FunctionStage(name or getattr(task, "__name__", "task"), task)
