"""SQLite storage for history snapshots."""
from __future__ import annotations

import logging
import sqlite3
import time
from pathlib import Path

from cliphist.core.errors import PersistenceError
from cliphist.core.secure_io import secure_mkdir, secure_touch

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 2

# Deleted keys keep their row (data NULL) so revisions are never reused
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS snapshots (
    key TEXT PRIMARY KEY,
    data BLOB,
    saved_at REAL NOT NULL,
    revision INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS metadata (
    key TEXT PRIMARY KEY,
    value TEXT
);
"""

# Version 1 had no revision column and required data
MIGRATE_V1_SQL = """
BEGIN;
ALTER TABLE snapshots RENAME TO snapshots_v1;
CREATE TABLE snapshots (
    key TEXT PRIMARY KEY,
    data BLOB,
    saved_at REAL NOT NULL,
    revision INTEGER NOT NULL DEFAULT 1
);
INSERT INTO snapshots (key, data, saved_at, revision)
    SELECT key, data, saved_at, 1 FROM snapshots_v1;
DROP TABLE snapshots_v1;
UPDATE metadata SET value = '2' WHERE key = 'schema_version';
COMMIT;
"""


class SqliteSnapshotStorage:
    """Key-value blob store backed by a single SQLite file.

    Each save replaces the whole blob for its key in one transaction, so a
    failed write leaves the previous snapshot intact. Several processes may
    share the file; each save bumps the key's revision.
    """

    def __init__(self, db_path: Path) -> None:
        """Initialize storage.

        Args:
            db_path: Path to SQLite database file

        Raises:
            PersistenceError: If the database can't be created or opened.
        """
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None
        try:
            self._ensure_db()
        except (sqlite3.Error, OSError) as e:
            raise PersistenceError(f"Cannot open history database {db_path}: {e}") from e

    @property
    def path(self) -> Path:
        return self._db_path

    def _ensure_db(self) -> None:
        """Create database and tables if they don't exist."""
        secure_mkdir(self._db_path.parent)
        # Create the file owner-only before sqlite opens it
        secure_touch(self._db_path)

        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        # Wait for other cliphist processes instead of failing on a locked file
        self._conn.execute("PRAGMA busy_timeout=5000")
        self._conn.executescript(SCHEMA_SQL)

        cur = self._conn.execute(
            "SELECT value FROM metadata WHERE key = 'schema_version'"
        )
        row = cur.fetchone()
        if row is None:
            self._conn.execute(
                "INSERT OR IGNORE INTO metadata (key, value) VALUES (?, ?)",
                ("schema_version", str(SCHEMA_VERSION)),
            )
            self._conn.commit()
        elif row[0] == "1":
            logger.info("Migrating history database %s to schema version 2", self._db_path)
            self._conn.executescript(MIGRATE_V1_SQL)
        elif row[0] != str(SCHEMA_VERSION):
            logger.warning(
                "History database %s has schema version %s (expected %s)",
                self._db_path, row[0], SCHEMA_VERSION,
            )

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise PersistenceError(f"History database {self._db_path} is closed")
        return self._conn

    def load(self, key: str) -> bytes | None:
        """Get the blob stored under key, or None if not found."""
        conn = self._connection()
        try:
            cur = conn.execute("SELECT data FROM snapshots WHERE key = ?", (key,))
            row = cur.fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to load '{key}': {e}") from e
        return bytes(row[0]) if row and row[0] is not None else None

    def save(self, key: str, data: bytes) -> int:
        """Replace the blob stored under key. Returns the new revision."""
        conn = self._connection()
        try:
            conn.execute(
                """INSERT INTO snapshots (key, data, saved_at, revision) VALUES (?, ?, ?, 1)
                   ON CONFLICT(key) DO UPDATE SET
                       data = excluded.data,
                       saved_at = excluded.saved_at,
                       revision = snapshots.revision + 1""",
                (key, sqlite3.Binary(data), time.time()),
            )
            # Read inside the same transaction so no other writer can interleave
            cur = conn.execute("SELECT revision FROM snapshots WHERE key = ?", (key,))
            revision = cur.fetchone()[0]
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise PersistenceError(f"Failed to save '{key}': {e}") from e
        return revision

    def delete(self, key: str) -> bool:
        """Delete blob by key. Returns True if deleted, False if not found."""
        conn = self._connection()
        try:
            cur = conn.execute(
                """UPDATE snapshots
                   SET data = NULL, saved_at = ?, revision = revision + 1
                   WHERE key = ? AND data IS NOT NULL""",
                (time.time(), key),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise PersistenceError(f"Failed to delete '{key}': {e}") from e
        return cur.rowcount > 0

    def revision(self, key: str) -> int:
        """Current revision of key (0 if it was never saved)."""
        conn = self._connection()
        try:
            cur = conn.execute("SELECT revision FROM snapshots WHERE key = ?", (key,))
            row = cur.fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to read revision of '{key}': {e}") from e
        return row[0] if row else 0

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
