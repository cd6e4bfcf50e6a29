"""ClipboardMonitor - polls a clipboard backend and records changes.

Changes are detected by comparing the backend's change token, never by
diffing content, so large payloads are only read when something changed.
"""
from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from cliphist.core.constants import DEFAULT_POLL_INTERVAL
from cliphist.core.errors import BackendError
from cliphist.history.types import Content, ImageContent, TextContent

if TYPE_CHECKING:
    from cliphist.capture.backend import ClipboardBackend
    from cliphist.enrichment.pipeline import EnrichmentPipeline
    from cliphist.history.store import HistoryStore

logger = logging.getLogger(__name__)


class ClipboardMonitor:
    """Polls the clipboard on the asyncio loop and feeds the history store.

    Example:
        monitor = ClipboardMonitor(backend, store, pipeline)
        monitor.start()
        ...
        monitor.pause()          # about to write to the clipboard ourselves
        backend.write_content(content)
        ...
        await monitor.stop()
    """

    def __init__(
        self,
        backend: ClipboardBackend,
        store: HistoryStore,
        pipeline: EnrichmentPipeline | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        """Initialize monitor.

        Args:
            backend: Clipboard to watch
            store: History receiving captured content
            pipeline: Text recognition for images (None disables it)
            poll_interval: Seconds between token checks
        """
        if poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {poll_interval}")
        self._backend = backend
        self._store = store
        self._pipeline = pipeline
        self._poll_interval = poll_interval

        self._last_seen_token: int | None = None
        self._suppress_next_change = False
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def paused(self) -> bool:
        """True while the next clipboard change will be ignored."""
        return self._suppress_next_change

    def start(self) -> None:
        """Take the current token as baseline and start polling.

        Must be called from a running event loop. Calling it while already
        running does nothing.
        """
        if self.running:
            return
        loop = asyncio.get_running_loop()
        self._last_seen_token = self._read_token()
        self._task = loop.create_task(self._poll_loop(), name="clipboard-monitor")
        logger.info("Clipboard monitor started (every %.2fs)", self._poll_interval)

    async def stop(self) -> None:
        """Stop polling. Safe to call when not running."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Clipboard monitor stopped")

    def pause(self) -> None:
        """Ignore the next clipboard change (our own upcoming write)."""
        self._suppress_next_change = True

    def cancel_pause(self) -> None:
        """Withdraw a pause whose write never happened."""
        self._suppress_next_change = False

    def poll(self) -> str | None:
        """Run one poll tick.

        Returns:
            Id of the entry the change was recorded as, or None if nothing
            was recorded.
        """
        token = self._read_token()
        if token is None or token == self._last_seen_token:
            return None
        if self._last_seen_token is None:
            # No baseline yet (backend failed at start); adopt this one
            self._last_seen_token = token
            return None

        # Record first so a failure below never reprocesses this change
        self._last_seen_token = token
        # Consumed on every change so a stale marker can't match a later one
        pending_copy = self._store.take_pending_copy()

        if self._suppress_next_change:
            self._suppress_next_change = False
            logger.debug("Ignoring self-written clipboard change (token %s)", token)
            return None

        try:
            content = self._backend.read_content()
        except BackendError as e:
            logger.warning("Failed to read clipboard: %s", e.message)
            return None

        if pending_copy is not None and _same_content(pending_copy.content, content):
            logger.debug("Ignoring copy of entry %s made by another process", pending_copy.id)
            return None

        if isinstance(content, TextContent):
            return self._store.add_item(content)

        if isinstance(content, ImageContent):
            entry_id = self._store.add_item(content)
            if self._pipeline is not None:
                self._pipeline.submit(entry_id, content, self._store.update_recognized_text)
            return entry_id

        logger.debug("Ignoring clipboard change with unsupported content")
        return None

    async def _poll_loop(self) -> None:
        while True:
            try:
                self.poll()
            except Exception:
                # Keep polling; one bad tick must not end capture
                logger.exception("Clipboard poll failed")
            await asyncio.sleep(self._poll_interval)

    def _read_token(self) -> int | None:
        try:
            return self._backend.current_change_token()
        except BackendError as e:
            logger.warning("Failed to read clipboard change token: %s", e.message)
            return None


def _same_content(copied: Content, current: Content | None) -> bool:
    """Whether the clipboard plausibly holds what was copied.

    Images come back re-encoded by the OS, so any image matches a copied
    image; text must match exactly.
    """
    if isinstance(copied, TextContent):
        return isinstance(current, TextContent) and current.text == copied.text
    return isinstance(current, ImageContent)
