"""Snapshot persistence backends."""
from cliphist.persistence.base import MemoryPersistence, PersistenceBackend
from cliphist.persistence.sqlite import SqliteSnapshotStorage

__all__ = [
    "MemoryPersistence",
    "PersistenceBackend",
    "SqliteSnapshotStorage",
]
