"""Processed-message check.

The interface lets a deployment plug in a shared store that answers
"has this message been (or is it being) processed already?".  No storage
strategy ships here: ``NeverProcessed`` always answers no.  Lookups fail
open so that a broken dedup store never stalls the pipeline.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from sigroute.models.context import RequestContext
from sigroute.models.envelopes import Envelope

logger = logging.getLogger(__name__)


@runtime_checkable
class DedupChecker(Protocol):
    async def is_processed(self, context: RequestContext, envelope: Envelope) -> bool:
        ...


class NeverProcessed:
    """Default checker: every message is new."""

    async def is_processed(self, context: RequestContext, envelope: Envelope) -> bool:
        return False


async def check_processed(
    checker: DedupChecker, context: RequestContext, envelope: Envelope
) -> bool:
    """Ask *checker*, answering ``False`` if the lookup itself fails."""
    try:
        return bool(await checker.is_processed(context, envelope))
    except Exception as exc:  # noqa: BLE001
        logger.warning(
            "Dedup check failed for trace %s, processing anyway: %s",
            context.trace_id,
            exc,
        )
        return False
