"""HistoryStore - owns clipboard history and enforces its invariants.

The store keeps entries newest first and maintains, after every mutation:

- at most `capacity` entries (the oldest are evicted first)
- `total_bytes` equal to the sum of every entry's payload size
- no two adjacent text entries with identical text
- unique entry ids

Every successful mutation writes a full snapshot to the persistence backend
and notifies subscribers. The store is not thread-safe: all calls must come
from the same thread (the asyncio loop driving the monitor).

Several processes may share one backend (`cliphist watch` plus one-shot
commands). Before each mutation the store compares the snapshot revision
with the one it last loaded or saved and reloads if another process wrote
in between, so a save never brings back entries deleted elsewhere.
"""
from __future__ import annotations

import dataclasses
import json
import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING

from cliphist.core.constants import (
    DEFAULT_CAPACITY,
    DEFAULT_SNAPSHOT_KEY,
    PENDING_COPY_TTL,
)
from cliphist.core.errors import BackendError, PersistenceError
from cliphist.history.codec import decode_snapshot, encode_snapshot, entry_byte_size
from cliphist.history.types import Content, HistoryEntry, ImageContent, TextContent

if TYPE_CHECKING:
    from cliphist.capture.backend import ClipboardBackend
    from cliphist.persistence.base import PersistenceBackend

logger = logging.getLogger(__name__)

Subscriber = Callable[[], None]


class HistoryStore:
    """Bounded, de-duplicated, persisted clipboard history."""

    def __init__(
        self,
        persistence: PersistenceBackend,
        clipboard: ClipboardBackend | None = None,
        capacity: int = DEFAULT_CAPACITY,
        snapshot_key: str = DEFAULT_SNAPSHOT_KEY,
    ) -> None:
        """Initialize the store and load the persisted snapshot.

        Args:
            persistence: Blob store the snapshot is loaded from and saved to
            clipboard: Backend used by copy_to_clipboard (None disables copying)
            capacity: Maximum number of entries
            snapshot_key: Key the snapshot is stored under

        Raises:
            ValueError: If capacity is not positive
        """
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")

        self._persistence = persistence
        self._clipboard = clipboard
        self._capacity = capacity
        self._snapshot_key = snapshot_key
        self._pending_copy_key = f"{snapshot_key}.pending_copy"

        self._entries: list[HistoryEntry] = []
        self._sizes: dict[str, int] = {}
        self._total_bytes = 0
        self._version = 0
        self._subscribers: list[Subscriber] = []
        # Snapshot revision our entries correspond to
        self._revision: int | None = None

        self._load()

    # --- Read access ---

    @property
    def items(self) -> tuple[HistoryEntry, ...]:
        """Snapshot of all entries, newest first."""
        return tuple(self._entries)

    @property
    def total_bytes(self) -> int:
        """Sum of payload sizes of all entries."""
        return self._total_bytes

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def version(self) -> int:
        """Counter incremented on every successful mutation."""
        return self._version

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, entry_id: str) -> HistoryEntry | None:
        """Get entry by id, or None if not present."""
        index = self._index_of(entry_id)
        return self._entries[index] if index is not None else None

    def size_of(self, entry_id: str) -> int | None:
        """Accounted payload size of an entry, or None if not present."""
        return self._sizes.get(entry_id)

    # --- Change notification ---

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback run after every mutation.

        Returns:
            A function that removes the subscription (safe to call twice).
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def refresh(self) -> bool:
        """Reload the snapshot if another process saved since we last synced.

        Returns:
            True if entries were reloaded.
        """
        try:
            revision = self._persistence.revision(self._snapshot_key)
        except (PersistenceError, OSError) as e:
            logger.warning("Could not check history revision: %s", e)
            return False
        if revision == self._revision:
            return False

        logger.info("History changed in another process, reloading")
        if not self._load():
            return False
        self._version += 1
        self._notify()
        return True

    # --- Mutations ---

    def add_item(self, content: Content) -> str:
        """Add content as the newest entry.

        Text identical to the current newest text entry is not stored again;
        the existing entry's id is returned instead. Images are never treated
        as duplicates.

        Returns:
            Id of the new entry, or of the existing head entry if suppressed.
        """
        self.refresh()
        if self._entries and isinstance(content, TextContent):
            head = self._entries[0]
            if isinstance(head.content, TextContent) and head.content.text == content.text:
                logger.debug("Suppressed duplicate of head entry %s", head.id)
                return head.id

        entry = HistoryEntry.create(content)
        size = entry_byte_size(content)
        self._entries.insert(0, entry)
        self._sizes[entry.id] = size
        self._total_bytes += size

        while len(self._entries) > self._capacity:
            evicted = self._entries.pop()
            self._total_bytes -= self._sizes.pop(evicted.id)
            logger.debug("Evicted oldest entry %s", evicted.id)

        logger.debug("Added %s entry %s (%d bytes)", entry.kind.value, entry.id, size)
        self._commit()
        return entry.id

    def update_recognized_text(self, entry_id: str, text: str) -> bool:
        """Attach recognized text to an image entry in place.

        A missing id is expected (the entry may have been evicted or deleted
        while recognition was running) and is not an error.

        Returns:
            True if the entry was updated.
        """
        self.refresh()
        index = self._index_of(entry_id)
        if index is None:
            logger.debug("Recognized text for vanished entry %s dropped", entry_id)
            return False

        entry = self._entries[index]
        if not isinstance(entry.content, ImageContent):
            return False

        self._entries[index] = dataclasses.replace(entry, recognized_text=text)
        self._commit()
        return True

    def delete_item(self, entry_id: str) -> bool:
        """Delete entry by id. Returns True if deleted, False if not found."""
        self.refresh()
        index = self._index_of(entry_id)
        if index is None:
            return False

        entry = self._entries.pop(index)
        self._total_bytes -= self._sizes.pop(entry.id)
        self._commit()
        return True

    def clear_history(self) -> int:
        """Delete all entries. Returns count of deleted entries."""
        self.refresh()
        count = len(self._entries)
        self._entries.clear()
        self._sizes.clear()
        self._total_bytes = 0
        self._commit()
        return count

    def copy_to_clipboard(self, entry_id: str) -> bool:
        """Write an entry's content to the clipboard. The entry is unchanged.

        A successful copy also leaves a pending-copy marker in the backend so
        a monitor running in another process can recognize the write as ours
        (see take_pending_copy).

        Returns:
            True if the content was written; False if the entry doesn't exist,
            no clipboard is attached, or the backend failed.
        """
        self.refresh()
        entry = self.get(entry_id)
        if entry is None or self._clipboard is None:
            return False
        try:
            self._clipboard.write_content(entry.content)
        except BackendError as e:
            logger.warning("Failed to copy entry %s to clipboard: %s", entry_id, e.message)
            return False
        self._mark_pending_copy(entry)
        return True

    def take_pending_copy(self, max_age: float = PENDING_COPY_TTL) -> HistoryEntry | None:
        """Consume the marker left by the latest copy_to_clipboard call.

        The marker is removed either way.

        Returns:
            The copied entry if the copy happened less than max_age seconds
            ago and the entry still exists, else None.
        """
        try:
            data = self._persistence.load(self._pending_copy_key)
            if data is None:
                return None
            self._persistence.delete(self._pending_copy_key)
        except (PersistenceError, OSError) as e:
            logger.warning("Could not read pending copy marker: %s", e)
            return None

        try:
            marker = json.loads(data.decode("utf-8"))
            entry_id = marker["entry_id"]
            copied_at = float(marker["copied_at"])
        except (UnicodeDecodeError, ValueError, KeyError, TypeError) as e:
            logger.warning("Ignoring malformed pending copy marker: %s", e)
            return None

        if time.time() - copied_at > max_age:
            logger.debug("Pending copy of %s expired", entry_id)
            return None
        self.refresh()
        return self.get(entry_id)

    # --- Internals ---

    def _index_of(self, entry_id: str) -> int | None:
        if entry_id not in self._sizes:
            return None
        for index, entry in enumerate(self._entries):
            if entry.id == entry_id:
                return index
        return None

    def _commit(self) -> None:
        self._version += 1
        self._save()
        self._notify()

    def _save(self) -> None:
        """Write the full snapshot. Failures leave in-memory state authoritative."""
        try:
            data = encode_snapshot(self._entries)
            self._revision = self._persistence.save(self._snapshot_key, data)
        except (PersistenceError, OSError) as e:
            logger.warning("History not persisted: %s", e)

    def _mark_pending_copy(self, entry: HistoryEntry) -> None:
        marker = {"entry_id": entry.id, "copied_at": time.time()}
        try:
            self._persistence.save(self._pending_copy_key, json.dumps(marker).encode("utf-8"))
        except (PersistenceError, OSError) as e:
            logger.warning("Could not record copy of entry %s: %s", entry.id, e)

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback()
            except Exception:
                logger.exception("History subscriber %r failed", callback)

    def _load(self) -> bool:
        """Replace entries with the persisted snapshot.

        A missing or undecodable snapshot means empty history. Returns False,
        leaving entries untouched, if the backend can't be read.
        """
        try:
            revision = self._persistence.revision(self._snapshot_key)
            data = self._persistence.load(self._snapshot_key)
        except (PersistenceError, OSError) as e:
            logger.warning("Could not load history snapshot: %s", e)
            return False

        entries = decode_snapshot(data)[: self._capacity] if data is not None else []
        self._entries = entries
        # Sizes are recomputed; nothing about size is read from the snapshot
        self._sizes = {entry.id: entry_byte_size(entry.content) for entry in entries}
        self._total_bytes = sum(self._sizes.values())
        self._revision = revision
        logger.info(
            "Loaded %d history entries (%d bytes)", len(entries), self._total_bytes
        )
        return True
