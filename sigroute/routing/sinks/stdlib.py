"""Standard logging sink: emits records through the ``logging`` module.

The default primary sink.  Managed runtimes collect stdout/stderr, so a
JSON line per record at the mapped level is enough to get structured
entries with the right severity.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

_SEVERITY_LEVELS: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class StdlibLogSink:
    """Writes each record as JSON to a named ``logging`` logger.

    Parameters
    ----------
    logger_name:
        Name of the logger carrying the trail.
    level:
        Lowest severity written.  Applied to the logger itself, so the
        trail does not depend on how the process configured logging.

    When no handler is reachable from the logger (a bare cloud runtime),
    a stdout handler emitting the bare JSON line is installed once.
    """

    def __init__(
        self, logger_name: str = "sigfox-gcloud", level: int | str = logging.DEBUG
    ) -> None:
        self._logger = logging.getLogger(logger_name)
        self._logger.setLevel(level.upper() if isinstance(level, str) else level)
        if not self._logger.hasHandlers():
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter("%(message)s"))
            self._logger.addHandler(handler)

    @property
    def sink_name(self) -> str:
        return f"logging:{self._logger.name}"

    async def write(self, record: dict[str, Any]) -> Any:
        level = _SEVERITY_LEVELS.get(str(record.get("severity", "DEBUG")), logging.DEBUG)
        self._logger.log(level, json.dumps(record, sort_keys=True, default=str))
        return None
