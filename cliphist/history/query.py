"""Read-only filtering and formatting helpers for presenting history."""
from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from urllib.parse import urlsplit

from cliphist.history.types import HistoryEntry, ImageContent, TextContent

_WHITESPACE = re.compile(r"\s")
_HOSTNAME = re.compile(r"^[A-Za-z0-9-]+(\.[A-Za-z0-9-]+)+(:\d+)?$")


def is_link(text: str) -> bool:
    """True if the whole trimmed text is a single URL."""
    candidate = text.strip()
    if not candidate or _WHITESPACE.search(candidate):
        return False

    lowered = candidate.lower()
    if lowered.startswith("mailto:"):
        return "@" in candidate
    if lowered.startswith("www."):
        host = candidate.split("/", 1)[0]
        return bool(_HOSTNAME.match(host))

    try:
        parts = urlsplit(candidate)
    except ValueError:
        return False
    return parts.scheme in ("http", "https", "ftp", "file") and bool(
        parts.netloc or parts.scheme == "file"
    )


@dataclass(frozen=True)
class ContentFilter:
    """Which kinds of entries to show."""

    text: bool = True
    links: bool = True
    images: bool = True

    def accepts(self, entry: HistoryEntry) -> bool:
        content = entry.content
        if isinstance(content, TextContent):
            return self.links if is_link(content.text) else self.text
        return self.images


def matches_search(entry: HistoryEntry, search: str) -> bool:
    """Case-insensitive substring match on text, or on recognized text for images."""
    if not search:
        return True
    needle = search.casefold()
    content = entry.content
    if isinstance(content, TextContent):
        return needle in content.text.casefold()
    if entry.recognized_text:
        return needle in entry.recognized_text.casefold()
    return False


def filter_entries(
    entries: Iterable[HistoryEntry],
    search: str = "",
    content_filter: ContentFilter | None = None,
) -> list[HistoryEntry]:
    """Entries passing the kind filter and the search, in their original order."""
    content_filter = content_filter or ContentFilter()
    return [
        entry
        for entry in entries
        if content_filter.accepts(entry) and matches_search(entry, search)
    ]


def format_size(num_bytes: int) -> str:
    """Human-readable byte count (B, KB, MB)."""
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes / (1024 * 1024):.1f} MB"


def format_age(created_at: float, now: float | None = None) -> str:
    """Short relative age like '5s', '3m', '2h' or a date for older entries."""
    now = now if now is not None else datetime.now().timestamp()
    delta = max(0, int(now - created_at))
    if delta < 60:
        return f"{delta}s"
    if delta < 3600:
        return f"{delta // 60}m"
    if delta < 86400:
        return f"{delta // 3600}h"
    return datetime.fromtimestamp(created_at).strftime("%Y-%m-%d")


def preview(entry: HistoryEntry, width: int = 60) -> str:
    """Single-line summary of an entry, truncated to width characters."""
    content = entry.content
    if isinstance(content, ImageContent):
        text = "[image]"
        if entry.recognized_text:
            text += " " + entry.recognized_text
    else:
        text = content.text
    text = " ".join(text.split())
    if len(text) > width:
        text = text[: max(0, width - 1)] + "…"
    return text
