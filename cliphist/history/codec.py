"""Snapshot serialization and byte-size accounting for history entries.

The snapshot is a JSON document:

    {
      "schema_version": 1,
      "entries": [
        {"id": "...", "type": "text", "data": "hello",
         "created_at": 1767950000.0, "recognized_text": null},
        {"id": "...", "type": "image", "data": "<base64 PNG>",
         "created_at": 1767950001.5, "recognized_text": "INVOICE 42"}
      ]
    }

Entries are stored newest first, the same order the store keeps them in.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any

from cliphist.history.types import (
    Content,
    ContentKind,
    HistoryEntry,
    ImageContent,
    TextContent,
)

logger = logging.getLogger(__name__)

# Schema version for future migrations
SNAPSHOT_SCHEMA_VERSION = 1


def entry_byte_size(content: Content) -> int:
    """Size of the content's serialized payload in bytes.

    Text counts its UTF-8 length; images count their canonical PNG
    encoding, or 0 when the image can't be encoded.
    """
    if isinstance(content, TextContent):
        return len(content.text.encode("utf-8", "surrogatepass"))
    encoded = content.canonical_bytes
    return len(encoded) if encoded is not None else 0


def entry_to_record(entry: HistoryEntry) -> dict[str, Any] | None:
    """Convert entry to a JSON-serializable record.

    Returns None for images whose canonical encoding fails; such entries
    can't be restored and are left out of the snapshot.
    """
    content = entry.content
    if isinstance(content, TextContent):
        data = content.text
    else:
        encoded = content.canonical_bytes
        if encoded is None:
            return None
        data = base64.b64encode(encoded).decode("ascii")

    return {
        "id": entry.id,
        "type": content.kind.value,
        "data": data,
        "created_at": entry.created_at,
        "recognized_text": entry.recognized_text,
    }


def entry_from_record(record: Any) -> HistoryEntry:
    """Rebuild an entry from a snapshot record.

    Raises:
        ValueError: If the record is malformed or its image can't be decoded.
    """
    if not isinstance(record, dict):
        raise ValueError(f"Expected object, got {type(record).__name__}")

    entry_id = record.get("id")
    if not isinstance(entry_id, str) or not entry_id:
        raise ValueError("Missing or invalid 'id'")

    created_at = record.get("created_at")
    if isinstance(created_at, bool) or not isinstance(created_at, (int, float)):
        raise ValueError(f"Entry {entry_id}: missing or invalid 'created_at'")

    recognized_text = record.get("recognized_text")
    if recognized_text is not None and not isinstance(recognized_text, str):
        raise ValueError(f"Entry {entry_id}: invalid 'recognized_text'")

    kind = ContentKind(record.get("type"))
    data = record.get("data")
    if not isinstance(data, str):
        raise ValueError(f"Entry {entry_id}: missing or invalid 'data'")

    content: Content
    if kind == ContentKind.TEXT:
        content = TextContent(data)
        recognized_text = None
    else:
        try:
            raw = base64.b64decode(data, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Entry {entry_id}: invalid base64 image data") from e
        content = ImageContent(raw)
        if content.canonical_bytes is None:
            raise ValueError(f"Entry {entry_id}: undecodable image data")

    return HistoryEntry(
        id=entry_id,
        content=content,
        created_at=float(created_at),
        recognized_text=recognized_text,
    )


def encode_snapshot(entries: list[HistoryEntry] | tuple[HistoryEntry, ...]) -> bytes:
    """Serialize entries (newest first) to snapshot bytes."""
    records = []
    for entry in entries:
        record = entry_to_record(entry)
        if record is None:
            logger.warning("Leaving unencodable image %s out of snapshot", entry.id)
            continue
        records.append(record)

    document = {"schema_version": SNAPSHOT_SCHEMA_VERSION, "entries": records}
    # ASCII escapes keep unpaired surrogates loadable
    return json.dumps(document).encode("utf-8")


def decode_snapshot(data: bytes) -> list[HistoryEntry]:
    """Deserialize snapshot bytes into entries, newest first.

    Never raises. A document that can't be parsed, or has an unknown schema
    version, yields an empty list. Individual malformed records are skipped
    so one bad entry doesn't cost the rest of the history.
    """
    try:
        document = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning("Discarding unreadable history snapshot: %s", e)
        return []

    if not isinstance(document, dict):
        logger.warning("Discarding history snapshot: expected object")
        return []

    version = document.get("schema_version")
    if version != SNAPSHOT_SCHEMA_VERSION:
        logger.warning("Discarding history snapshot with schema version %r", version)
        return []

    records = document.get("entries")
    if not isinstance(records, list):
        logger.warning("Discarding history snapshot: 'entries' is not a list")
        return []

    entries: list[HistoryEntry] = []
    seen: set[str] = set()
    for index, record in enumerate(records):
        try:
            entry = entry_from_record(record)
        except ValueError as e:
            logger.warning("Skipping history record %d: %s", index, e)
            continue
        if entry.id in seen:
            logger.warning("Skipping duplicate history record %s", entry.id)
            continue
        seen.add(entry.id)
        entries.append(entry)

    return entries
