"""HistoryApp - the process-wide object graph for clipboard history.

One HistoryApp is created at startup and handed to whatever presents the
history (CLI, tray menu, popover). It owns the store, the monitor and the
enrichment pipeline and lives until the process exits.

Usage:
    app = build_app(load_config())
    await app.start()
    ...
    app.copy_item(entry_id)
    ...
    await app.stop()
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

from cliphist.capture.backend import ClipboardBackend
from cliphist.capture.monitor import ClipboardMonitor
from cliphist.capture.system import SystemClipboard
from cliphist.config.schema import Config
from cliphist.core.constants import get_default_db_path
from cliphist.enrichment.pipeline import EnrichmentPipeline, TextRecognizer
from cliphist.enrichment.tesseract import TesseractRecognizer
from cliphist.history.store import HistoryStore
from cliphist.persistence.base import PersistenceBackend
from cliphist.persistence.sqlite import SqliteSnapshotStorage

logger = logging.getLogger(__name__)

# Seconds stop() waits for in-flight recognitions before cancelling them
DRAIN_TIMEOUT = 5.0


class HistoryApp:
    """Wires the history store, clipboard monitor and enrichment pipeline."""

    def __init__(
        self,
        store: HistoryStore,
        monitor: ClipboardMonitor,
        pipeline: EnrichmentPipeline | None = None,
        on_close: list[Callable[[], None]] | None = None,
    ) -> None:
        self.store = store
        self.monitor = monitor
        self.pipeline = pipeline
        self._on_close = on_close or []

    async def start(self) -> None:
        """Start capturing clipboard changes."""
        self.monitor.start()

    async def stop(self, drain_timeout: float = DRAIN_TIMEOUT) -> None:
        """Stop capturing, give pending recognitions a chance to finish, release storage."""
        await self.monitor.stop()
        if self.pipeline is not None:
            try:
                await asyncio.wait_for(self.pipeline.wait_idle(), drain_timeout)
            except asyncio.TimeoutError:
                logger.info("Cancelling %d unfinished recognitions", self.pipeline.pending)
            await self.pipeline.aclose()
        self.close()

    def close(self) -> None:
        """Release storage resources. Idempotent."""
        callbacks, self._on_close = self._on_close, []
        for callback in callbacks:
            callback()

    async def __aenter__(self) -> HistoryApp:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.stop()

    # --- Presentation entry points ---

    def copy_item(self, entry_id: str) -> bool:
        """Put an entry back on the clipboard without capturing it again."""
        if self.store.get(entry_id) is None:
            return False
        self.monitor.pause()
        copied = self.store.copy_to_clipboard(entry_id)
        if not copied:
            # Nothing was written, so the next change is a real one
            self.monitor.cancel_pause()
        return copied

    def delete_item(self, entry_id: str) -> bool:
        if self.pipeline is not None:
            self.pipeline.discard(entry_id)
        return self.store.delete_item(entry_id)

    def clear_history(self) -> int:
        if self.pipeline is not None:
            for entry in self.store.items:
                self.pipeline.discard(entry.id)
        return self.store.clear_history()


def build_app(
    config: Config,
    backend: ClipboardBackend | None = None,
    recognizer: TextRecognizer | None = None,
    persistence: PersistenceBackend | None = None,
) -> HistoryApp:
    """Create the object graph from configuration.

    Args:
        config: Loaded configuration
        backend: Clipboard backend (defaults to the system clipboard)
        recognizer: OCR engine (defaults to tesseract when installed)
        persistence: Snapshot storage (defaults to the SQLite database)

    Raises:
        PersistenceError: If the default database can't be opened.
    """
    on_close: list[Callable[[], None]] = []

    if persistence is None:
        db_path = (
            Path(config.storage.path).expanduser()
            if config.storage.path
            else get_default_db_path()
        )
        storage = SqliteSnapshotStorage(db_path)
        on_close.append(storage.close)
        persistence = storage

    if backend is None:
        backend = SystemClipboard()

    store = HistoryStore(
        persistence,
        clipboard=backend,
        capacity=config.history.capacity,
        snapshot_key=config.history.snapshot_key,
    )

    pipeline: EnrichmentPipeline | None = None
    if config.enrichment.enabled:
        if recognizer is None and TesseractRecognizer.is_available():
            recognizer = TesseractRecognizer(
                language=config.enrichment.language,
                timeout=config.enrichment.timeout,
            )
        if recognizer is None:
            logger.warning("tesseract not found; images will be stored without text")
        else:
            pipeline = EnrichmentPipeline(
                recognizer, max_concurrent=config.enrichment.max_concurrent
            )

    monitor = ClipboardMonitor(
        backend, store, pipeline, poll_interval=config.monitor.poll_interval
    )
    return HistoryApp(store, monitor, pipeline, on_close=on_close)
