"""Persistence backend protocol and in-memory implementation."""
from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class PersistenceBackend(Protocol):
    """Durable key-value blob store.

    Every save bumps a per-key revision counter. Several stores (one per
    process) can share a backend; comparing revisions tells a store that
    someone else wrote since it last loaded.

    Implementations raise PersistenceError (or OSError) on failure.
    """

    def load(self, key: str) -> bytes | None:
        """Return the blob stored under key, or None if there is none."""
        ...

    def save(self, key: str, data: bytes) -> int:
        """Store data under key, replacing any previous blob.

        Returns:
            The key's new revision.
        """
        ...

    def delete(self, key: str) -> bool:
        """Remove the blob stored under key. Returns True if there was one."""
        ...

    def revision(self, key: str) -> int:
        """Current revision of key (0 if it was never saved)."""
        ...


class MemoryPersistence:
    """Process-local blob store; nothing survives the process."""

    def __init__(self) -> None:
        self._blobs: dict[str, bytes] = {}
        self._revisions: dict[str, int] = {}
        self.save_count = 0

    def load(self, key: str) -> bytes | None:
        return self._blobs.get(key)

    def save(self, key: str, data: bytes) -> int:
        self._blobs[key] = bytes(data)
        self._revisions[key] = self._revisions.get(key, 0) + 1
        self.save_count += 1
        return self._revisions[key]

    def delete(self, key: str) -> bool:
        if self._blobs.pop(key, None) is None:
            return False
        # Keep counting so a re-created key never reuses a revision
        self._revisions[key] = self._revisions.get(key, 0) + 1
        return True

    def revision(self, key: str) -> int:
        return self._revisions.get(key, 0)
