"""Local file sink: appends log records as JSON lines.

Layout: {base_path}/{log_name}.jsonl
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class LocalFileSink:
    """Appends each record as one JSON line.

    Parameters
    ----------
    base_path:
        Directory for log files.  Defaults to ``.sigroute/logs``.
    log_name:
        File stem of the log file.
    """

    def __init__(
        self, base_path: Path | str | None = None, log_name: str = "sigfox-gcloud"
    ) -> None:
        self._base = Path(base_path) if base_path else Path(".sigroute/logs")
        self._base.mkdir(parents=True, exist_ok=True)
        self._path = self._base / f"{log_name}.jsonl"

    @property
    def sink_name(self) -> str:
        return "local_file"

    @property
    def path(self) -> Path:
        return self._path

    async def write(self, record: dict[str, Any]) -> Any:
        line = json.dumps(record, sort_keys=True, default=str)
        # Blocking append, kept off the event loop.
        await asyncio.to_thread(self._append, line)
        logger.debug("LocalFileSink: appended %s to %s", record.get("action"), self._path)
        return str(self._path)

    def _append(self, line: str) -> None:
        with self._path.open("a", encoding="utf-8") as fh:
            fh.write(line + "\n")

    def read_records(self) -> list[dict[str, Any]]:
        """Read back every record written so far."""
        if not self._path.exists():
            return []
        with self._path.open(encoding="utf-8") as fh:
            return [json.loads(line) for line in fh if line.strip()]
