"""Rich rendering for the cliphist CLI."""

from __future__ import annotations

import time
from collections.abc import Sequence

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cliphist.history.query import format_age, format_size, is_link, preview
from cliphist.history.store import HistoryStore
from cliphist.history.types import HistoryEntry, TextContent

# Characters of the entry id shown in listings
SHORT_ID_LENGTH = 8

_console: Console | None = None


def get_console() -> Console:
    """Get the shared Console instance."""
    global _console
    if _console is None:
        _console = Console(highlight=False, markup=True)
    return _console


def set_console(console: Console) -> None:
    """Set a custom Console instance. Useful for testing."""
    global _console
    _console = console


def kind_label(entry: HistoryEntry) -> str:
    if isinstance(entry.content, TextContent):
        return "link" if is_link(entry.content.text) else "text"
    return "image"


def entries_table(
    entries: Sequence[HistoryEntry],
    store: HistoryStore,
    now: float | None = None,
) -> Table:
    """Table of entries with id prefix, kind, age, size and preview."""
    now = now if now is not None else time.time()
    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Kind", no_wrap=True)
    table.add_column("Age", justify="right", no_wrap=True)
    table.add_column("Size", justify="right", no_wrap=True)
    table.add_column("Content", overflow="ellipsis", no_wrap=True)

    for entry in entries:
        table.add_row(
            entry.id[:SHORT_ID_LENGTH],
            kind_label(entry),
            format_age(entry.created_at, now),
            format_size(store.size_of(entry.id) or 0),
            escape(preview(entry)),
        )
    return table


def print_entry_line(console: Console, entry: HistoryEntry, prefix: str = "+") -> None:
    """One-line capture notice used by `watch`."""
    console.print(
        f"[green]{prefix}[/] [cyan]{entry.id[:SHORT_ID_LENGTH]}[/] "
        f"{kind_label(entry):<5} {escape(preview(entry))}"
    )
