"""Channel naming for device and stage queues.

- ``<prefix>.devices.<device>`` when a device target is given
- ``<prefix>.types.<type>`` when a stage target is given
- ``<prefix>.devices.missing_device`` otherwise
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from sigroute.models.context import RequestContext

DEFAULT_PREFIX = "sigfox"
MISSING_DEVICE = "missing_device"

# Republishing to device "all" keeps the envelope's own device.
BROADCAST_DEVICE = "all"


def channel_name(
    device: str | None = None,
    type_: str | None = None,
    *,
    prefix: str = DEFAULT_PREFIX,
) -> str:
    if device:
        return f"{prefix}.devices.{device}"
    if type_:
        return f"{prefix}.types.{type_}"
    return f"{prefix}.devices.{MISSING_DEVICE}"


class RouteTransform(Protocol):
    """Remaps a channel before publishing, e.g. to deliver to another project."""

    def __call__(
        self,
        context: RequestContext,
        type_: str | None,
        device: str | None,
        channel: str,
    ) -> str:
        ...


def identity_transform(
    context: RequestContext,
    type_: str | None,
    device: str | None,
    channel: str,
) -> str:
    return channel
