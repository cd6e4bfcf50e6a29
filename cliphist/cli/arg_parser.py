"""Argument parsing for the cliphist CLI."""

import argparse
from pathlib import Path


def add_entry_id_arg(parser: argparse.ArgumentParser) -> None:
    """Add positional entry id argument to a parser."""
    parser.add_argument(
        "entry_id",
        metavar="ID",
        help="Entry id or any unique prefix of it",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="cliphist",
        description="Clipboard history with text recognition for images",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Config file (default: ~/.cliphist/config.json merged with ./.cliphist/config.json)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log debug output to stderr",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser(
        "watch",
        help="Record clipboard changes until interrupted",
    )

    list_parser = subparsers.add_parser(
        "list",
        help="List history entries, newest first",
    )
    list_parser.add_argument(
        "--search", "-s",
        default="",
        help="Case-insensitive text to look for (images match on recognized text)",
    )
    list_parser.add_argument(
        "--no-text", dest="show_text", action="store_false",
        help="Hide plain text entries",
    )
    list_parser.add_argument(
        "--no-links", dest="show_links", action="store_false",
        help="Hide link entries",
    )
    list_parser.add_argument(
        "--no-images", dest="show_images", action="store_false",
        help="Hide image entries",
    )
    list_parser.add_argument(
        "--limit", "-n",
        type=int,
        default=50,
        help="Maximum entries to show (default: 50, 0 for all)",
    )

    show_parser = subparsers.add_parser("show", help="Print an entry in full")
    add_entry_id_arg(show_parser)

    copy_parser = subparsers.add_parser("copy", help="Put an entry back on the clipboard")
    add_entry_id_arg(copy_parser)

    delete_parser = subparsers.add_parser("delete", help="Delete an entry")
    add_entry_id_arg(delete_parser)

    clear_parser = subparsers.add_parser("clear", help="Delete all history")
    clear_parser.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Don't ask for confirmation",
    )

    subparsers.add_parser("stats", help="Show history size and composition")

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    return build_parser().parse_args(argv)
