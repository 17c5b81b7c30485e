"""Per-invocation request context.

Never persisted and never part of the envelope: it is rebuilt from the
triggering event on every invocation.  The structured logger fills in
``trace_id`` and ``starttime`` on first use, so the model is mutable.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from sigroute.core.tracing import now_ms
from sigroute.models.events import InboundEvent


class RequestContext(BaseModel):
    model_config = ConfigDict(validate_assignment=False)

    starttime: int | None = None  # epoch ms
    trace_id: str | None = None
    event: InboundEvent | None = None
    path: str | None = None  # fallback source when there is no event
    user_id: str | None = None
    company_id: str | None = None
    token: str | None = None
    uuid: str | None = None

    @classmethod
    def from_event(cls, event: InboundEvent | None, *, starttime: int | None = None) -> RequestContext:
        """Start a context for an invocation triggered by *event*."""
        return cls(starttime=starttime if starttime is not None else now_ms(), event=event)

    @property
    def source(self) -> str | None:
        """Channel or path that supplied the message."""
        if self.event is not None and self.event.resource:
            return self.event.resource
        return self.path

    @property
    def masked_token(self) -> str | None:
        if self.token and len(self.token) >= 20:
            return f"{self.token[:20]}..."
        return self.token
