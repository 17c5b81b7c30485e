"""Dispatcher: moves an envelope to the next stage of its route.

State of an envelope within one invocation::

    PENDING ──dispatch──> DISPATCHED   (route non-empty: published)
        └────dispatch──> TERMINAL     (route empty: nothing to publish)

``dispatch`` appends a hop record, pops the head of the route as the new
``type`` and publishes to that stage's channel.  Publish failures are
logged and swallowed: the stage always completes, and retries are left
to the transport.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from sigroute.core.history import update_history
from sigroute.core.structured_log import StructuredLogger
from sigroute.models.context import RequestContext
from sigroute.models.envelopes import Envelope
from sigroute.routing.channels import (
    BROADCAST_DEVICE,
    DEFAULT_PREFIX,
    MISSING_DEVICE,
    RouteTransform,
    channel_name,
    identity_transform,
)
from sigroute.routing.transport import PublisherFactory

logger = logging.getLogger(__name__)


class DispatchState(str, Enum):
    PENDING = "pending"
    DISPATCHED = "dispatched"
    TERMINAL = "terminal"


def dispatch_state(envelope: Envelope) -> DispatchState:
    """Classify *envelope* for the current invocation."""
    if envelope.is_dispatched:
        return DispatchState.DISPATCHED
    if not envelope.route:
        return DispatchState.TERMINAL
    return DispatchState.PENDING


class Dispatcher:
    """Publishes envelopes to device and stage channels.

    Parameters
    ----------
    publisher_factory:
        Called once per publish; the returned client is discarded after use.
    log:
        Structured logger that records every publish and dispatch outcome.
    function_name:
        Stage name recorded in hop history.
    channel_prefix:
        Prefix of all channel names (``<prefix>.devices.*``, ``<prefix>.types.*``).
    route_transform:
        Optional hook to remap a channel before publishing.
    """

    def __init__(
        self,
        publisher_factory: PublisherFactory,
        log: StructuredLogger,
        *,
        function_name: str = "unknown_function",
        channel_prefix: str = DEFAULT_PREFIX,
        route_transform: RouteTransform | None = None,
    ) -> None:
        self._publisher_factory = publisher_factory
        self._log = log
        self._function_name = function_name
        self._channel_prefix = channel_prefix
        self._route_transform = route_transform or identity_transform

    def update_history(self, context: RequestContext, envelope: Envelope) -> Envelope:
        return update_history(context, envelope, stage_name=self._function_name)

    # ------------------------------------------------------------------
    # Publish
    # ------------------------------------------------------------------

    async def publish(
        self,
        context: RequestContext,
        envelope: Envelope,
        *,
        device: str | None = None,
        type_: str | None = None,
    ) -> Any:
        """Publish *envelope* to the device channel, else the type channel.

        Returns the publish result, or the exception if publishing failed.
        """
        channel = channel_name(device, type_, prefix=self._channel_prefix)
        channel = self._route_transform(context, type_, device, channel)

        if device:
            update = {"device": envelope.device if device == BROADCAST_DEVICE else device}
        elif type_:
            update = {"type": type_}
        else:
            update = {"device": MISSING_DEVICE}
        message = envelope.model_copy(update=update)

        payload: Any = message.body if message.unpack_body else message.to_wire()
        params = {
            "destination": channel,
            "message": payload,
            "device": device,
            "type": type_,
        }
        try:
            publisher = self._publisher_factory()
            result = await publisher.publish(channel, payload)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Publish to %s failed: %s", channel, exc)
            return await self._log.log(context, "publishMessage", {"error": exc, **params})
        return await self._log.log(context, "publishMessage", {"result": result, **params})

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def dispatch(
        self,
        context: RequestContext,
        envelope: Envelope,
        device: str | None = None,
    ) -> Envelope:
        """Dispatch *envelope* to the next stage of its route.

        Returns the envelope as published (or as final, when the route is
        empty).  An envelope already marked dispatched is returned as is.
        """
        if envelope.is_dispatched:
            return envelope

        message = self.update_history(context, envelope)
        if not message.route:
            await self._log.log(
                context,
                "dispatchMessage",
                {"result": message, "status": "no_route", "message": message, "device": device},
            )
            return message

        type_ = message.route[0]
        message = message.model_copy(update={"type": type_, "route": list(message.route[1:])})
        res = await self.publish(context, message, type_=type_)

        params = {
            "destination": type_,
            "route": message.route,
            "message": message,
            "device": device,
            "type": type_,
        }
        if isinstance(res, BaseException):
            await self._log.log(
                context, "dispatchMessage", {"error": res, "status": "publish_failed", **params}
            )
        else:
            await self._log.log(
                context,
                "dispatchMessage",
                {"result": message, "res": res, "status": "dispatched", **params},
            )
        return message
