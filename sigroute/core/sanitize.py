"""Make arbitrary log parameters safe for structured log stores.

Log stores reject null values and cannot serialize cyclic graphs, so
parameters are projected before they leave the process:

- ``None`` values are dropped from mappings
- branches deeper than ``MAX_DEPTH`` become ``TRUNCATED``
- a branch that refers back to one of its ancestors becomes ``TRUNCATED``
- exceptions become ``{type, message, stack}``
- pydantic models are dumped by alias (wire names)

The projection is idempotent for acyclic input.
"""

from __future__ import annotations

import traceback
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

TRUNCATED = "(truncated)"
MAX_DEPTH = 3


def describe_error(exc: BaseException) -> dict[str, Any]:
    """Render an exception as a plain dict with message and stack."""
    described: dict[str, Any] = {
        "type": type(exc).__name__,
        "message": str(exc),
    }
    if exc.__traceback__ is not None:
        described["stack"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
    return described


def _is_branch(value: Any) -> bool:
    return isinstance(value, (Mapping, list, tuple, BaseModel, BaseException))


def strip_nulls(
    value: Any,
    level: int = 0,
    *,
    max_depth: int = MAX_DEPTH,
    _ancestors: frozenset[int] = frozenset(),
) -> Any:
    """Return a null-free, depth-bounded, acyclic copy of *value*."""
    if level > max_depth:
        return TRUNCATED

    if isinstance(value, BaseModel):
        value = value.model_dump(by_alias=True)
    elif isinstance(value, BaseException):
        value = describe_error(value)

    if isinstance(value, Mapping):
        if id(value) in _ancestors:
            return TRUNCATED
        ancestors = _ancestors | {id(value)}
        result: dict[str, Any] = {}
        for key, item in value.items():
            if item is None:
                continue
            if _is_branch(item):
                item = strip_nulls(
                    item, level + 1, max_depth=max_depth, _ancestors=ancestors
                )
            result[str(key)] = item
        return result

    if isinstance(value, (list, tuple)):
        if id(value) in _ancestors:
            return TRUNCATED
        ancestors = _ancestors | {id(value)}
        return [
            strip_nulls(item, level + 1, max_depth=max_depth, _ancestors=ancestors)
            if _is_branch(item)
            else item
            for item in value
        ]

    return value
