"""Command-line interface for cliphist."""

from __future__ import annotations

import asyncio
import logging

from rich.markup import escape

from cliphist.app import build_app
from cliphist.bootstrap import configure_logging_from_config
from cliphist.cli.arg_parser import parse_args
from cliphist.cli.commands import run_command, run_watch
from cliphist.cli.output import get_console
from cliphist.config.loader import load_config
from cliphist.core.errors import CliphistError

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Entry point for the `cliphist` console script."""
    args = parse_args(argv)
    console = get_console()

    try:
        config = load_config(path=args.config)
    except CliphistError as e:
        console.print(f"[red]{escape(e.message)}[/]")
        return 1

    configure_logging_from_config(config.logging, verbose=args.verbose)

    if args.command != "watch":
        # Only the watcher captures images, so skip probing for tesseract
        config = config.model_copy(
            update={"enrichment": config.enrichment.model_copy(update={"enabled": False})}
        )

    try:
        app = build_app(config)
    except CliphistError as e:
        console.print(f"[red]{escape(e.message)}[/]")
        return 1

    try:
        if args.command == "watch":
            try:
                return asyncio.run(run_watch(app, console))
            except KeyboardInterrupt:
                console.print("[dim]Stopped[/]")
                return 0
        return run_command(app, args, console)
    finally:
        app.close()


__all__ = ["main"]
