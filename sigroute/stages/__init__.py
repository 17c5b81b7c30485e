"""sigroute stages: registry mapping stage name to stage class.

Usage::

    from sigroute.stages import STAGE_REGISTRY, get_stage

    stage = get_stage("route", routes={"D1": ["decode", "store"]})
    envelope = await stage.process(context, device, body, envelope)
"""

from __future__ import annotations

from typing import Any

from sigroute.stages.base import (
    BaseStage,
    FunctionStage,
    StageExecutionError,
    StageTask,
    as_stage,
)
from sigroute.stages.passthrough import PassthroughStage
from sigroute.stages.route import RouteStage

# ---------------------------------------------------------------------------
# Stage registry: stage name -> stage class
# ---------------------------------------------------------------------------

STAGE_REGISTRY: dict[str, type[BaseStage]] = {
    "passthrough": PassthroughStage,
    "route": RouteStage,
}


def get_stage(name: str, **kwargs: Any) -> BaseStage:
    """Instantiate and return a built-in stage by name.

    Raises ``KeyError`` if the name is not registered.
    """
    try:
        cls = STAGE_REGISTRY[name]
    except KeyError:
        raise KeyError(
            f"Unknown stage {name!r}. "
            f"Registered stages: {sorted(STAGE_REGISTRY.keys())}"
        ) from None
    return cls(**kwargs)


__all__ = [
    # Base
    "BaseStage",
    "FunctionStage",
    "StageExecutionError",
    "StageTask",
    "as_stage",
    # Registry
    "STAGE_REGISTRY",
    "get_stage",
    # Built-in stages
    "PassthroughStage",
    "RouteStage",
]
