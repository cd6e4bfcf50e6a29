"""Tests for SQLite snapshot storage."""

import os
import sqlite3
import stat
from pathlib import Path

import pytest

from cliphist.core.errors import PersistenceError
from cliphist.history.store import HistoryStore
from cliphist.history.types import TextContent
from cliphist.persistence.base import MemoryPersistence, PersistenceBackend
from cliphist.persistence.sqlite import SqliteSnapshotStorage


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / ".cliphist" / "history.db"


@pytest.fixture
def storage(db_path: Path) -> SqliteSnapshotStorage:
    """Create a temporary SqliteSnapshotStorage for testing."""
    storage = SqliteSnapshotStorage(db_path)
    yield storage
    storage.close()


class TestSqliteSnapshotStorage:
    """Tests for basic storage operations."""

    def test_creates_database(self, db_path: Path) -> None:
        """The database file and parent directory are created."""
        storage = SqliteSnapshotStorage(db_path)
        assert db_path.exists()
        assert storage.path == db_path
        storage.close()

    @pytest.mark.unix_only
    def test_owner_only_permissions(self, storage: SqliteSnapshotStorage, db_path: Path) -> None:
        """History may hold secrets, so the file and directory are private."""
        assert stat.S_IMODE(os.stat(db_path).st_mode) == 0o600
        assert stat.S_IMODE(os.stat(db_path.parent).st_mode) == 0o700

    def test_load_missing_key(self, storage: SqliteSnapshotStorage) -> None:
        """load() returns None for keys never saved."""
        assert storage.load("nothing") is None

    def test_save_and_load(self, storage: SqliteSnapshotStorage) -> None:
        """Saved blobs load back byte for byte."""
        blob = bytes(range(256))
        storage.save("k", blob)
        assert storage.load("k") == blob

    def test_save_overwrites(self, storage: SqliteSnapshotStorage) -> None:
        """A second save replaces the first."""
        storage.save("k", b"first")
        storage.save("k", b"second")
        assert storage.load("k") == b"second"

    def test_keys_are_independent(self, storage: SqliteSnapshotStorage) -> None:
        """Different keys hold different blobs."""
        storage.save("a", b"1")
        storage.save("b", b"2")
        assert storage.load("a") == b"1"
        assert storage.load("b") == b"2"

    def test_delete(self, storage: SqliteSnapshotStorage) -> None:
        """delete() reports whether a blob was removed."""
        storage.save("k", b"x")
        assert storage.delete("k") is True
        assert storage.delete("k") is False
        assert storage.load("k") is None

    def test_save_returns_revision(self, storage: SqliteSnapshotStorage) -> None:
        """Every save of a key bumps its revision."""
        assert storage.revision("k") == 0
        assert storage.save("k", b"1") == 1
        assert storage.save("k", b"2") == 2
        assert storage.revision("k") == 2
        assert storage.revision("other") == 0

    def test_delete_bumps_revision(self, storage: SqliteSnapshotStorage) -> None:
        """Deleting and re-creating a key never reuses a revision."""
        storage.save("k", b"x")
        storage.delete("k")
        assert storage.revision("k") == 2
        assert storage.save("k", b"y") == 3

    def test_delete_missing_keeps_revision(self, storage: SqliteSnapshotStorage) -> None:
        assert storage.delete("never") is False
        assert storage.revision("never") == 0

    def test_revision_seen_by_other_connection(self, db_path: Path) -> None:
        """A save through one connection is visible to another."""
        first = SqliteSnapshotStorage(db_path)
        second = SqliteSnapshotStorage(db_path)
        try:
            first.save("k", b"x")
            assert second.revision("k") == 1
            assert second.load("k") == b"x"
        finally:
            first.close()
            second.close()

    def test_migrates_schema_v1(self, db_path: Path) -> None:
        """Databases without revisions are upgraded in place."""
        db_path.parent.mkdir(parents=True)
        conn = sqlite3.connect(str(db_path))
        conn.executescript(
            """
            CREATE TABLE snapshots (key TEXT PRIMARY KEY, data BLOB NOT NULL, saved_at REAL NOT NULL);
            CREATE TABLE metadata (key TEXT PRIMARY KEY, value TEXT);
            INSERT INTO metadata VALUES ('schema_version', '1');
            INSERT INTO snapshots VALUES ('k', X'6F6C64', 1.0);
            """
        )
        conn.close()

        storage = SqliteSnapshotStorage(db_path)
        try:
            assert storage.load("k") == b"old"
            assert storage.revision("k") == 1
            assert storage.save("k", b"new") == 2
            assert storage.delete("k") is True
        finally:
            storage.close()

        conn = sqlite3.connect(str(db_path))
        version = conn.execute("SELECT value FROM metadata WHERE key = 'schema_version'").fetchone()
        conn.close()
        assert version == ("2",)

    def test_survives_reopen(self, db_path: Path) -> None:
        """Blobs persist across connections."""
        first = SqliteSnapshotStorage(db_path)
        first.save("k", b"durable")
        first.close()

        second = SqliteSnapshotStorage(db_path)
        assert second.load("k") == b"durable"
        second.close()

    def test_closed_storage_raises(self, db_path: Path) -> None:
        """Using closed storage raises PersistenceError."""
        storage = SqliteSnapshotStorage(db_path)
        storage.close()
        storage.close()

        with pytest.raises(PersistenceError):
            storage.load("k")
        with pytest.raises(PersistenceError):
            storage.save("k", b"x")

    def test_unopenable_path_raises(self, tmp_path: Path) -> None:
        """A path that can't hold a database raises PersistenceError."""
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        with pytest.raises(PersistenceError):
            SqliteSnapshotStorage(blocker / "history.db")

    def test_implements_protocol(self, storage: SqliteSnapshotStorage) -> None:
        """Both backends satisfy PersistenceBackend."""
        assert isinstance(storage, PersistenceBackend)
        assert isinstance(MemoryPersistence(), PersistenceBackend)


class TestStoreOnSqlite:
    """HistoryStore persisted through SQLite."""

    def test_history_survives_restart(self, db_path: Path) -> None:
        """A new process sees the previous session's history."""
        storage = SqliteSnapshotStorage(db_path)
        store = HistoryStore(storage)
        store.add_item(TextContent("remember me"))
        store.add_item(TextContent("and me"))
        storage.close()

        storage = SqliteSnapshotStorage(db_path)
        restored = HistoryStore(storage)
        storage.close()

        assert [e.content.text for e in restored.items] == ["and me", "remember me"]
        assert restored.total_bytes == store.total_bytes

    def test_delete_in_other_process_sticks(self, db_path: Path) -> None:
        """A watcher saving after a CLI delete doesn't bring the entry back."""
        watcher_db = SqliteSnapshotStorage(db_path)
        cli_db = SqliteSnapshotStorage(db_path)
        try:
            watcher = HistoryStore(watcher_db)
            secret = watcher.add_item(TextContent("secret"))

            cli = HistoryStore(cli_db)
            assert cli.delete_item(secret) is True

            watcher.add_item(TextContent("next"))
        finally:
            cli_db.close()

        try:
            assert [e.content.text for e in HistoryStore(watcher_db).items] == ["next"]
        finally:
            watcher_db.close()
