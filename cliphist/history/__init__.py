"""Clipboard history: entry types, snapshot codec and the history store."""
from cliphist.history.codec import decode_snapshot, encode_snapshot, entry_byte_size
from cliphist.history.query import ContentFilter, filter_entries, format_size, is_link
from cliphist.history.store import HistoryStore
from cliphist.history.types import (
    Content,
    ContentKind,
    HistoryEntry,
    ImageContent,
    TextContent,
)

__all__ = [
    "Content",
    "ContentFilter",
    "ContentKind",
    "HistoryEntry",
    "HistoryStore",
    "ImageContent",
    "TextContent",
    "decode_snapshot",
    "encode_snapshot",
    "entry_byte_size",
    "filter_entries",
    "format_size",
    "is_link",
]
