"""Logger configuration models.

The set of log sinks is fixed when the logger is built; nothing mutates
it afterwards.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class LogQueueConfig(BaseModel):
    """A queue that receives a copy of every log record (e.g. for BigQuery)."""

    model_config = ConfigDict(frozen=True)

    topic_name: str
    project_id: str | None = None


class LoggerConfig(BaseModel):
    """Settings for ``StructuredLogger``."""

    model_config = ConfigDict(frozen=True)

    function_name: str = "unknown_function"
    log_name: str = "sigfox-gcloud"
    resource_type: str = "cloud_function"
    is_cloud_function: bool = False
    is_production: bool = False
    log_queues: list[LogQueueConfig] = []
