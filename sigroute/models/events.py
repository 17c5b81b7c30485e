"""Inbound transport event: the wire shape that triggers a stage.

Example::

    {
        "eventType": "providers/cloud.pubsub/eventTypes/topic.publish",
        "resource": "projects/myproject/topics/sigfox.devices.all",
        "timestamp": "2017-05-06T10:19:29.666Z",
        "data": {"data": "<base64 encoded JSON envelope>"},
        "eventId": "120816659675797"
    }
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from sigroute.models.envelopes import Envelope


class EnvelopeDecodeError(ValueError):
    """Raised when an inbound event does not carry a valid envelope."""


class PubSubData(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    data: str  # base64(JSON(envelope))


class InboundEvent(BaseModel):
    """A triggering message delivered by the transport."""

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    data: PubSubData
    resource: str | None = None
    event_id: str | None = Field(default=None, alias="eventId")
    event_type: str | None = Field(default=None, alias="eventType")
    timestamp: str | None = None

    def decode_envelope(self) -> Envelope:
        """Decode the base64 JSON payload into an ``Envelope``.

        Raises
        ------
        EnvelopeDecodeError
            If the payload is not base64, not JSON, not a JSON object, or
            fails envelope validation.
        """
        try:
            raw = base64.b64decode(self.data.data)
        except (binascii.Error, ValueError) as exc:
            raise EnvelopeDecodeError(f"Invalid base64 payload: {exc}") from exc

        try:
            message = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise EnvelopeDecodeError(f"Invalid JSON payload: {exc}") from exc

        if not isinstance(message, dict):
            raise EnvelopeDecodeError(
                f"Envelope must be a JSON object, got {type(message).__name__}"
            )

        try:
            return Envelope.from_wire(message)
        except ValidationError as exc:
            raise EnvelopeDecodeError(f"Envelope validation failed: {exc}") from exc

    @classmethod
    def from_background(cls, message: dict[str, Any], context: Any = None) -> InboundEvent:
        """Build an event from a background function's ``(event, context)`` pair.

        In that shape ``message["data"]`` is the base64 string and the
        resource, event id and timestamp are attributes of *context*.
        """
        resource = getattr(context, "resource", None)
        if isinstance(resource, dict):
            resource = resource.get("name")
        return cls(
            data=PubSubData(data=message["data"]),
            resource=resource,
            eventId=getattr(context, "event_id", None),
            eventType=getattr(context, "event_type", None),
            timestamp=getattr(context, "timestamp", None),
        )

    @classmethod
    def encode(
        cls,
        envelope: Envelope | dict[str, Any],
        *,
        resource: str | None = None,
        event_id: str | None = None,
        timestamp: str | None = None,
    ) -> InboundEvent:
        """Build an event carrying *envelope*, as the transport would deliver it."""
        payload = envelope.to_wire() if isinstance(envelope, Envelope) else envelope
        encoded = base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")
        return cls(
            data=PubSubData(data=encoded),
            resource=resource,
            eventId=event_id,
            timestamp=timestamp,
        )
