"""Typed exception hierarchy for cliphist."""

from __future__ import annotations


class CliphistError(Exception):
    """Base class for all cliphist errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigError(CliphistError):
    """Raised for configuration issues (invalid JSON, validation failure)."""


class LoadError(CliphistError):
    """Raised when a JSON file cannot be read or parsed."""


class PersistenceError(CliphistError):
    """Raised when a snapshot cannot be read from or written to storage."""


class BackendError(CliphistError):
    """Raised for clipboard backend failures (read, write, unsupported content)."""
