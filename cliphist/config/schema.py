"""Pydantic models for cliphist configuration validation."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from cliphist.core.constants import (
    DEFAULT_CAPACITY,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_SNAPSHOT_KEY,
)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class HistoryConfig(BaseModel):
    """History store limits and snapshot location."""

    model_config = ConfigDict(extra="forbid")

    capacity: int = Field(default=DEFAULT_CAPACITY, ge=1)
    """Maximum number of entries kept; the oldest are evicted first."""

    snapshot_key: str = Field(default=DEFAULT_SNAPSHOT_KEY, min_length=1)
    """Key the serialized history is saved under."""


class MonitorConfig(BaseModel):
    """Clipboard polling configuration."""

    model_config = ConfigDict(extra="forbid")

    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)
    """Seconds between change-token checks."""


class EnrichmentConfig(BaseModel):
    """Text recognition for image entries.

    Example in config.json:
        "enrichment": {
            "enabled": true,
            "language": "eng+deu",
            "timeout": 15
        }
    """

    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    """Run OCR on captured images."""

    language: str = "eng"
    """Tesseract language string (e.g., 'eng', 'eng+fra')."""

    timeout: float | None = Field(default=None, gt=0)
    """Per-image recognition timeout in seconds (None = no limit)."""

    max_concurrent: int = Field(default=2, ge=1)
    """Maximum recognitions running at the same time."""


class StorageConfig(BaseModel):
    """Snapshot storage configuration."""

    model_config = ConfigDict(extra="forbid")

    path: str | None = None
    """SQLite database path. None means ~/.cliphist/history.db."""


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(extra="forbid")

    level: LogLevel = "INFO"
    """Level for the rotating log file."""

    console_level: LogLevel = "WARNING"
    """Level for stderr output."""

    log_dir: str | None = None
    """Directory for history.log. None means ~/.cliphist/logs."""


class Config(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(extra="forbid")

    history: HistoryConfig = Field(default_factory=HistoryConfig)
    monitor: MonitorConfig = Field(default_factory=MonitorConfig)
    enrichment: EnrichmentConfig = Field(default_factory=EnrichmentConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
