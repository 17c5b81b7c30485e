"""Route stage: assigns the processing route for each device.

This is normally the first stage after a message is received: it looks up
the route configured for the device (falling back to a default route) and
replaces the envelope's route with it.  The runner then dispatches to
the first stage of that route.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from sigroute.models.context import RequestContext
from sigroute.models.envelopes import Envelope
from sigroute.stages.base import BaseStage

logger = logging.getLogger(__name__)


class RouteStage(BaseStage):
    """Assigns ``route`` from a device -> stage names mapping.

    Parameters
    ----------
    routes:
        Route per device id.
    default_route:
        Route for devices missing from *routes*.
    """

    def __init__(
        self,
        routes: Mapping[str, Sequence[str]] | None = None,
        default_route: Sequence[str] = (),
    ) -> None:
        self._routes = {device: list(route) for device, route in (routes or {}).items()}
        self._default_route = list(default_route)

    @property
    def stage_name(self) -> str:
        return "route"

    def route_for(self, device: str | None) -> list[str]:
        if device is not None and device in self._routes:
            return list(self._routes[device])
        return list(self._default_route)

    async def process(
        self,
        context: RequestContext,
        device: str | None,
        body: Any,
        envelope: Envelope,
    ) -> Envelope:
        route = self.route_for(device)
        logger.debug("RouteStage: device %s -> %s", device, route)
        return envelope.model_copy(update={"route": route})
