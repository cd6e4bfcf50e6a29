"""Core constants and paths for cliphist.

Single source of truth for global paths. All modules should import from here
instead of hardcoding paths like `Path.home() / ".cliphist"`.
"""

from pathlib import Path

CLIPHIST_DIR_NAME = ".cliphist"

# Key the history snapshot is stored under
DEFAULT_SNAPSHOT_KEY = "ClipboardHistory"

# Maximum number of entries kept in history
DEFAULT_CAPACITY = 1000

# Seconds between clipboard polls
DEFAULT_POLL_INTERVAL = 0.5


def get_cliphist_dir() -> Path:
    """Get ~/.cliphist (global config and data directory)."""
    return Path.home() / CLIPHIST_DIR_NAME


def get_default_config_path() -> Path:
    """Get default config file path."""
    return get_cliphist_dir() / "config.json"


def get_default_db_path() -> Path:
    """Get default history database path."""
    return get_cliphist_dir() / "history.db"


def get_log_dir() -> Path:
    """Get default log directory."""
    return get_cliphist_dir() / "logs"


# Seconds a copy made by one process suppresses the matching capture in another
PENDING_COPY_TTL = 10.0
