"""Process settings read from the environment."""

import logging
import tempfile
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from icarium.dispatcher import MAX_FAILED_READS, READ_BACKOFF

log = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Settings for the build daemon, read from ``ICARIUM_*`` variables."""

    model_config = SettingsConfigDict(env_prefix="ICARIUM_", extra="ignore")

    queue_url: str = Field(..., description="URL of the SQS queue to consume")
    queue_wait_seconds: int = Field(default=20, ge=0, le=20)
    queue_batch_size: int = Field(default=10, ge=1, le=10)
    aws_region: str | None = None

    repositories_table: str = "PULLR_REPOS"
    identities_table: str = "MC_IDENTITY"

    workspace_root: Path = Path(tempfile.gettempdir()) / "icarium"
    # Images are only pushed when a registry is configured
    registry: str | None = None

    max_failed_reads: int = Field(default=MAX_FAILED_READS, ge=1)
    read_backoff: float = Field(default=READ_BACKOFF, ge=0)
    max_concurrent_builds: int | None = Field(default=None, ge=1)
    build_timeout: float | None = Field(default=None, gt=0)

    log_level: Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"] = "INFO"

    def log_settings(self) -> None:
        """Log every setting value."""
        log.info("=== icarium configuration ===")
        for name, value in self.model_dump().items():
            log.info("%s: %s", name, value)
        log.info("=============================")
