"""Core utilities shared across cliphist."""

from cliphist.core.errors import (
    BackendError,
    CliphistError,
    ConfigError,
    LoadError,
    PersistenceError,
)

__all__ = [
    "BackendError",
    "CliphistError",
    "ConfigError",
    "LoadError",
    "PersistenceError",
]
