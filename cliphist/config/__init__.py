"""Configuration loading and validation."""

from cliphist.config.loader import load_config
from cliphist.config.schema import (
    Config,
    EnrichmentConfig,
    HistoryConfig,
    LoggingConfig,
    MonitorConfig,
    StorageConfig,
)

__all__ = [
    "Config",
    "EnrichmentConfig",
    "HistoryConfig",
    "LoggingConfig",
    "MonitorConfig",
    "StorageConfig",
    "load_config",
]
