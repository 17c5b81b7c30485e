"""Message envelope carried between pipeline stages.

The envelope is the only state that survives between two invocations, so
it carries the remaining route, the hop history and the routing options
alongside the payload.  Field names on the wire are camelCase to stay
compatible with the stages already deployed in the pipeline; in Python
they are snake_case.

Envelopes are frozen.  Every update goes through ``model_copy`` with
fresh lists so that a caller's envelope is never aliased or mutated.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class EnvelopeOptions(BaseModel):
    """Routing options attached to an envelope."""

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    # Publish ``body`` as the message root instead of the envelope, for
    # downstream consumers that expect flat records.
    unpack_body: bool = Field(default=False, alias="unpackBody")


class HopRecord(BaseModel):
    """One entry of the envelope history, appended per hop.

    ``timestamp`` and ``end`` are epoch milliseconds; ``duration`` and
    ``latency`` are seconds truncated to one decimal place.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, coerce_numbers_to_str=True)

    # Stages written in other runtimes may emit fractional milliseconds.
    timestamp: int | float | None = None
    end: int | float
    duration: float = 0.0
    latency: float = 0.0
    source: str | None = None  # e.g. projects/myproject/topics/sigfox.devices.all
    stage_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("function", "stageName", "stage_name"),
        serialization_alias="function",
    )


class Envelope(BaseModel):
    """The self-describing unit of routed work.

    Unknown keys from the wire (``query``, stage specific metadata, ...)
    are preserved and travel with the envelope to the next stage.
    """

    # Device ids arrive as numbers from some network callbacks; they are
    # kept as strings so channel names stay stable.
    model_config = ConfigDict(
        frozen=True, extra="allow", populate_by_name=True, coerce_numbers_to_str=True
    )

    device: str | None = None
    type: str | None = None
    body: Any = None
    route: list[str] = Field(default_factory=list)
    history: list[HopRecord] = Field(default_factory=list)
    is_dispatched: bool = Field(default=False, alias="isDispatched")
    options: EnvelopeOptions | None = None

    @field_validator("route", "history", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    # ------------------------------------------------------------------
    # Convenience
    # ------------------------------------------------------------------

    @property
    def last_hop(self) -> HopRecord | None:
        """Return the most recent hop record, or ``None`` before the first hop."""
        return self.history[-1] if self.history else None

    @property
    def unpack_body(self) -> bool:
        return bool(self.options and self.options.unpack_body)

    # ------------------------------------------------------------------
    # Wire format
    # ------------------------------------------------------------------

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> Envelope:
        """Validate a decoded JSON message into an ``Envelope``."""
        return cls.model_validate(data)

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the camelCase JSON-compatible dict sent to channels.

        ``None`` fields are dropped and ``isDispatched`` is only emitted
        when set.
        """
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        if not data.get("isDispatched"):
            data.pop("isDispatched", None)
        return data
