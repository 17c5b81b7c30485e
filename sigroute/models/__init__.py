"""sigroute data models: Pydantic v2; envelopes and hop records are frozen."""

from sigroute.models.config import LoggerConfig, LogQueueConfig
from sigroute.models.context import RequestContext
from sigroute.models.envelopes import Envelope, EnvelopeOptions, HopRecord
from sigroute.models.events import EnvelopeDecodeError, InboundEvent, PubSubData

__all__ = [
    # envelopes
    "Envelope",
    "EnvelopeOptions",
    "HopRecord",
    # events
    "EnvelopeDecodeError",
    "InboundEvent",
    "PubSubData",
    # context
    "RequestContext",
    # config
    "LoggerConfig",
    "LogQueueConfig",
]
