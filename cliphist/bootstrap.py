"""Logging setup for cliphist processes."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from cliphist.config.schema import LoggingConfig
from cliphist.core.constants import get_log_dir
from cliphist.core.secure_io import secure_mkdir

logger = logging.getLogger(__name__)

LOGGER_NAME = "cliphist"


def configure_logging(
    log_dir: Path,
    level: int = logging.INFO,
    console_level: int = logging.WARNING,
) -> Path:
    """Configure file and console logging for the cliphist namespace.

    Logs are written to `{log_dir}/history.log` with automatic rotation
    (max 5MB per file, 3 backup files). Calling this again replaces the
    previous handlers.

    Args:
        log_dir: Directory for history.log. Created if doesn't exist.
        level: Logging level for file output (default INFO).
        console_level: Logging level for console output (default WARNING).

    Returns:
        Path to the history.log file.
    """
    secure_mkdir(log_dir)

    log_file = log_dir / "history.log"

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=5 * 1024 * 1024,  # 5MB
        backupCount=3,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    ))

    root = logging.getLogger(LOGGER_NAME)
    root.setLevel(min(level, console_level))

    for handler in root.handlers:
        handler.close()
    root.handlers.clear()

    root.addHandler(file_handler)
    root.addHandler(console_handler)

    # Don't propagate to root logger
    root.propagate = False

    logger.debug("Logging configured: %s", log_file)
    return log_file


def configure_logging_from_config(config: LoggingConfig, verbose: bool = False) -> Path:
    """configure_logging() with levels and directory taken from config."""
    log_dir = Path(config.log_dir).expanduser() if config.log_dir else get_log_dir()
    console_level = logging.DEBUG if verbose else logging.getLevelName(config.console_level)
    return configure_logging(
        log_dir,
        level=logging.getLevelName(config.level),
        console_level=console_level,
    )
