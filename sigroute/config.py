"""Process configuration: env-driven, read once at start.

Reads ``SIGROUTE_*`` environment variables and a ``.env`` file, plus the
variables set by the hosting runtime:

- ``GCLOUD_PROJECT``: project id
- ``FUNCTION_NAME`` / ``GAE_SERVICE``: set only when running in the cloud
- ``NODE_ENV``: ``production`` on production deployments
"""

from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from sigroute.models.config import LoggerConfig, LogQueueConfig


class ProdConfig(BaseSettings):
    """Configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export SIGROUTE_ENVIRONMENT=production
        export SIGROUTE_CHANNEL_PREFIX=sigfox
        export SIGROUTE_LOG_QUEUES='[{"topic_name": "sigfox.logs"}]'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SIGROUTE_",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    # Runtime environment
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("SIGROUTE_ENVIRONMENT", "NODE_ENV"),
    )
    log_level: str = "INFO"

    # Deployment identity
    project_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("SIGROUTE_PROJECT_ID", "GCLOUD_PROJECT"),
    )
    function_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("SIGROUTE_FUNCTION_NAME", "FUNCTION_NAME"),
    )
    gae_service: str | None = Field(default=None, validation_alias="GAE_SERVICE")

    # Routing
    channel_prefix: str = "sigfox"

    # Logging
    log_name: str = "sigfox-gcloud"
    # Level of the primary trail logger; normal records are DEBUG.
    trail_level: str = "DEBUG"
    log_queues: list[LogQueueConfig] = []
    local_log_dir: Path | None = None

    @property
    def stage_name(self) -> str:
        """Name of the deployed stage, recorded in history and log actions."""
        return self.function_name or "unknown_function"

    @property
    def is_cloud_function(self) -> bool:
        """Whether running inside the managed hosting environment."""
        return bool(self.function_name or self.gae_service)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def to_logger_config(self) -> LoggerConfig:
        return LoggerConfig(
            function_name=self.stage_name,
            log_name=self.log_name,
            is_cloud_function=self.is_cloud_function,
            is_production=self.is_production,
            log_queues=list(self.log_queues),
        )


# Module-level singleton: import as `from sigroute.config import config`
config = ProdConfig()
