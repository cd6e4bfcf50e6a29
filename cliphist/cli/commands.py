"""Implementations of the cliphist subcommands.

Each command takes the HistoryApp, the parsed arguments and a console and
returns the process exit code.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from collections import Counter

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm

from cliphist.app import HistoryApp
from cliphist.cli.output import entries_table, kind_label, print_entry_line
from cliphist.core.errors import CliphistError
from cliphist.history.query import ContentFilter, filter_entries, format_age, format_size
from cliphist.history.store import HistoryStore
from cliphist.history.types import HistoryEntry, ImageContent, TextContent

logger = logging.getLogger(__name__)


class EntryLookupError(CliphistError):
    """Raised when an id prefix matches no entry or more than one."""


def find_entry(store: HistoryStore, prefix: str) -> HistoryEntry:
    """Look up the entry whose id is or starts with prefix.

    Raises:
        EntryLookupError: If no entry or several entries match.
    """
    if not prefix:
        raise EntryLookupError("Entry id must not be empty")
    entry = store.get(prefix)
    if entry is not None:
        return entry
    matches = [entry for entry in store.items if entry.id.startswith(prefix)]
    if not matches:
        raise EntryLookupError(f"No entry matches '{prefix}'")
    if len(matches) > 1:
        raise EntryLookupError(f"'{prefix}' is ambiguous ({len(matches)} entries match)")
    return matches[0]


def cmd_list(app: HistoryApp, args: argparse.Namespace, console: Console) -> int:
    content_filter = ContentFilter(
        text=args.show_text, links=args.show_links, images=args.show_images
    )
    entries = filter_entries(app.store.items, args.search, content_filter)
    if not entries:
        console.print("No results" if args.search else "No clipboard history")
        return 0

    shown = entries[: args.limit] if args.limit > 0 else entries
    console.print(entries_table(shown, app.store))
    console.print(
        f"[dim]{len(shown)} of {len(entries)} items · "
        f"{format_size(app.store.total_bytes)} total[/]"
    )
    return 0


def cmd_show(app: HistoryApp, args: argparse.Namespace, console: Console) -> int:
    entry = find_entry(app.store, args.entry_id)

    console.print(
        f"[cyan]{entry.id}[/] {kind_label(entry)} · "
        f"{format_age(entry.created_at)} ago · "
        f"{format_size(app.store.size_of(entry.id) or 0)}"
    )
    if isinstance(entry.content, TextContent):
        console.print(escape(entry.content.text), soft_wrap=True)
    elif isinstance(entry.content, ImageContent):
        try:
            with entry.content.open() as image:
                console.print(escape(f"[image {image.width}x{image.height}]"))
        except OSError:
            console.print(escape("[image, not decodable]"))
        if entry.recognized_text:
            console.print("[bold]Recognized text:[/]")
            console.print(escape(entry.recognized_text), soft_wrap=True)
    return 0


def cmd_copy(app: HistoryApp, args: argparse.Namespace, console: Console) -> int:
    entry_id = find_entry(app.store, args.entry_id).id
    if not app.copy_item(entry_id):
        console.print(f"[red]Could not copy {entry_id[:8]} to the clipboard[/]")
        return 1
    console.print(f"Copied {entry_id[:8]} to the clipboard")
    return 0


def cmd_delete(app: HistoryApp, args: argparse.Namespace, console: Console) -> int:
    entry_id = find_entry(app.store, args.entry_id).id
    app.delete_item(entry_id)
    console.print(f"Deleted {entry_id[:8]}")
    return 0


def cmd_clear(app: HistoryApp, args: argparse.Namespace, console: Console) -> int:
    if not args.yes and not Confirm.ask(
        f"Delete all {len(app.store)} entries?", console=console, default=False
    ):
        console.print("Cancelled")
        return 1
    count = app.clear_history()
    console.print(f"Deleted {count} entries")
    return 0


def cmd_stats(app: HistoryApp, args: argparse.Namespace, console: Console) -> int:
    store = app.store
    kinds = Counter(kind_label(entry) for entry in store.items)
    console.print(f"Entries:   {len(store)} / {store.capacity}")
    console.print(f"Size:      {format_size(store.total_bytes)}")
    console.print(
        f"Kinds:     {kinds['text']} text, {kinds['link']} links, {kinds['image']} images"
    )
    if store.items:
        console.print(f"Newest:    {format_age(store.items[0].created_at)} ago")
        console.print(f"Oldest:    {format_age(store.items[-1].created_at)} ago")
    return 0


async def run_watch(
    app: HistoryApp,
    console: Console,
    stop_event: asyncio.Event | None = None,
) -> int:
    """Capture until stop_event is set (or the task is cancelled)."""
    stop_event = stop_event or asyncio.Event()
    store = app.store
    last_head = store.items[0].id if store.items else None
    reported_text = {entry.id for entry in store.items if entry.recognized_text}

    def on_change() -> None:
        nonlocal last_head
        items = store.items
        if items and items[0].id != last_head:
            last_head = items[0].id
            print_entry_line(console, items[0])
        for entry in items:
            if entry.recognized_text and entry.id not in reported_text:
                reported_text.add(entry.id)
                print_entry_line(console, entry, prefix="~")

    unsubscribe = store.subscribe(on_change)
    console.print("[dim]Watching the clipboard, Ctrl+C to stop[/]")
    try:
        async with app:
            await stop_event.wait()
    finally:
        unsubscribe()
    return 0


COMMANDS = {
    "list": cmd_list,
    "show": cmd_show,
    "copy": cmd_copy,
    "delete": cmd_delete,
    "clear": cmd_clear,
    "stats": cmd_stats,
}


def run_command(app: HistoryApp, args: argparse.Namespace, console: Console) -> int:
    """Dispatch a non-watch command, reporting lookup errors."""
    handler = COMMANDS[args.command]
    try:
        return handler(app, args, console)
    except EntryLookupError as e:
        console.print(f"[red]{escape(e.message)}[/]")
        return 1
