"""Tests for snapshot serialization and byte-size accounting."""

import base64
import json

from cliphist.history.codec import (
    SNAPSHOT_SCHEMA_VERSION,
    decode_snapshot,
    encode_snapshot,
    entry_byte_size,
    entry_from_record,
    entry_to_record,
)
from cliphist.history.types import HistoryEntry, ImageContent, TextContent


def _document(records: list) -> bytes:
    return json.dumps(
        {"schema_version": SNAPSHOT_SCHEMA_VERSION, "entries": records}
    ).encode("utf-8")


def _text_record(entry_id: str, text: str, created_at: float = 100.0) -> dict:
    return {
        "id": entry_id,
        "type": "text",
        "data": text,
        "created_at": created_at,
        "recognized_text": None,
    }


class TestEntryByteSize:
    """Tests for entry_byte_size()."""

    def test_text_counts_utf8_bytes(self) -> None:
        """Text size is its UTF-8 length, not its character count."""
        assert entry_byte_size(TextContent("hello")) == 5
        assert entry_byte_size(TextContent("héllo")) == 6
        assert entry_byte_size(TextContent("")) == 0

    def test_lone_surrogate_counted(self) -> None:
        """Unpaired surrogates from the OS clipboard don't break accounting."""
        assert entry_byte_size(TextContent("a\ud800")) == 4

    def test_image_counts_canonical_encoding(self, png_bytes: bytes) -> None:
        """Image size is the length of its PNG encoding."""
        assert entry_byte_size(ImageContent(png_bytes)) == len(png_bytes)

    def test_undecodable_image_counts_zero(self) -> None:
        """Images that can't be encoded cost nothing instead of failing."""
        assert entry_byte_size(ImageContent(b"garbage")) == 0


class TestRecords:
    """Tests for per-entry record conversion."""

    def test_text_record(self) -> None:
        """Text records carry the string itself."""
        entry = HistoryEntry("abc", TextContent("hi"), 12.5)
        assert entry_to_record(entry) == _text_record("abc", "hi", 12.5)

    def test_image_record_is_base64_png(self, png_bytes: bytes) -> None:
        """Image records carry base64 of the PNG encoding."""
        entry = HistoryEntry("img", ImageContent(png_bytes), 1.0, "TEXT")
        record = entry_to_record(entry)

        assert record is not None
        assert record["type"] == "image"
        assert base64.b64decode(record["data"]) == png_bytes
        assert record["recognized_text"] == "TEXT"

    def test_unencodable_image_has_no_record(self) -> None:
        """Images without a canonical encoding can't be recorded."""
        entry = HistoryEntry("bad", ImageContent(b"garbage"), 1.0)
        assert entry_to_record(entry) is None

    def test_text_record_drops_recognized_text(self) -> None:
        """Recognized text only applies to images."""
        record = _text_record("t", "hello")
        record["recognized_text"] = "stray"
        assert entry_from_record(record).recognized_text is None

    def test_integer_timestamp_accepted(self) -> None:
        """Whole-number timestamps load as floats."""
        entry = entry_from_record(_text_record("t", "x", created_at=7))
        assert entry.created_at == 7.0
        assert isinstance(entry.created_at, float)


class TestSnapshotRoundTrip:
    """Tests for encode_snapshot() / decode_snapshot()."""

    def test_round_trip_preserves_entries(self, png_bytes: bytes) -> None:
        """Decoding an encoded snapshot reproduces the same entries in order."""
        entries = [
            HistoryEntry("e3", TextContent("newest ✓"), 300.0),
            HistoryEntry("e2", ImageContent(png_bytes), 200.0, "INVOICE 42"),
            HistoryEntry("e1", TextContent("https://example.com"), 100.0),
        ]

        restored = decode_snapshot(encode_snapshot(entries))

        assert restored == entries

    def test_round_trip_converted_image_equal(self, make_image) -> None:
        """Non-PNG images compare equal to what comes back from a snapshot."""
        entries = [HistoryEntry("bmp", ImageContent(make_image(fmt="BMP")), 1.0)]
        assert decode_snapshot(encode_snapshot(entries)) == entries

    def test_round_trip_lone_surrogate(self) -> None:
        """Text with an unpaired surrogate is saved and restored unchanged."""
        entries = [HistoryEntry("s", TextContent("broken \ud83d pair"), 1.0)]
        assert decode_snapshot(encode_snapshot(entries)) == entries

    def test_round_trip_preserves_total_size(self, png_bytes: bytes) -> None:
        """Sizes recomputed after reload match the sizes before saving."""
        entries = [
            HistoryEntry("a", TextContent("some text"), 2.0),
            HistoryEntry("b", ImageContent(png_bytes), 1.0),
        ]
        before = sum(entry_byte_size(e.content) for e in entries)

        restored = decode_snapshot(encode_snapshot(entries))

        assert sum(entry_byte_size(e.content) for e in restored) == before

    def test_empty_round_trip(self) -> None:
        """An empty history round-trips to an empty list."""
        assert decode_snapshot(encode_snapshot([])) == []

    def test_unencodable_image_left_out(self) -> None:
        """Entries that can't be encoded are skipped, the rest are kept."""
        entries = [
            HistoryEntry("good", TextContent("ok"), 2.0),
            HistoryEntry("bad", ImageContent(b"garbage"), 1.0),
        ]
        restored = decode_snapshot(encode_snapshot(entries))
        assert [e.id for e in restored] == ["good"]

    def test_snapshot_has_schema_version(self) -> None:
        """Encoded snapshots declare their schema version."""
        document = json.loads(encode_snapshot([]))
        assert document == {"schema_version": SNAPSHOT_SCHEMA_VERSION, "entries": []}


class TestSnapshotDecodeFailures:
    """decode_snapshot() never raises and salvages what it can."""

    def test_garbage_bytes(self) -> None:
        """Unparsable data yields an empty history."""
        assert decode_snapshot(b"\x00\xffnot json") == []
        assert decode_snapshot(b"{truncated") == []

    def test_non_object_document(self) -> None:
        """A bare list is not a snapshot."""
        assert decode_snapshot(b"[]") == []

    def test_unknown_schema_version(self) -> None:
        """Snapshots from an unknown schema are discarded."""
        data = json.dumps({"schema_version": 99, "entries": []}).encode()
        assert decode_snapshot(data) == []

    def test_entries_not_a_list(self) -> None:
        """A malformed entries field yields an empty history."""
        data = json.dumps({"schema_version": 1, "entries": {}}).encode()
        assert decode_snapshot(data) == []

    def test_corrupt_records_skipped(self, png_bytes: bytes) -> None:
        """One bad record doesn't cost the others."""
        good_image = {
            "id": "img",
            "type": "image",
            "data": base64.b64encode(png_bytes).decode(),
            "created_at": 5.0,
            "recognized_text": "hello",
        }
        records = [
            _text_record("t1", "first"),
            {"id": "bad-b64", "type": "image", "data": "@@@", "created_at": 1.0},
            {
                "id": "bad-img",
                "type": "image",
                "data": base64.b64encode(b"garbage").decode(),
                "created_at": 1.0,
            },
            {"type": "text", "data": "no id", "created_at": 1.0},
            {"id": "bad-type", "type": "audio", "data": "x", "created_at": 1.0},
            {"id": "bad-time", "type": "text", "data": "x", "created_at": "now"},
            {"id": "bool-time", "type": "text", "data": "x", "created_at": True},
            {"id": "bad-data", "type": "text", "data": 5, "created_at": 1.0},
            "not a record",
            good_image,
            _text_record("t2", "last"),
        ]

        restored = decode_snapshot(_document(records))

        assert [e.id for e in restored] == ["t1", "img", "t2"]
        assert restored[1].recognized_text == "hello"

    def test_duplicate_ids_keep_first(self) -> None:
        """Ids stay unique even if the snapshot repeats one."""
        records = [_text_record("same", "first"), _text_record("same", "second")]

        restored = decode_snapshot(_document(records))

        assert len(restored) == 1
        assert restored[0].content == TextContent("first")
