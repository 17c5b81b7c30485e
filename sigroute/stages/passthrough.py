"""Passthrough stage: forwards the envelope unchanged."""

from __future__ import annotations

from typing import Any

from sigroute.models.context import RequestContext
from sigroute.models.envelopes import Envelope
from sigroute.stages.base import BaseStage


class PassthroughStage(BaseStage):
    """Does nothing but let the runner dispatch to the next stage."""

    def __init__(self, name: str = "passthrough") -> None:
        self._name = name

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
        return envelope
