"""cliphist - clipboard history with text recognition for images."""
from cliphist.app import HistoryApp, build_app
from cliphist.capture import ClipboardMonitor, MemoryClipboard, SystemClipboard
from cliphist.enrichment import EnrichmentPipeline, TesseractRecognizer
from cliphist.history import (
    ContentKind,
    HistoryEntry,
    HistoryStore,
    ImageContent,
    TextContent,
)
from cliphist.persistence import MemoryPersistence, SqliteSnapshotStorage

__version__ = "0.1.0"

__all__ = [
    "ClipboardMonitor",
    "ContentKind",
    "EnrichmentPipeline",
    "HistoryApp",
    "HistoryEntry",
    "HistoryStore",
    "ImageContent",
    "MemoryClipboard",
    "MemoryPersistence",
    "SqliteSnapshotStorage",
    "SystemClipboard",
    "TesseractRecognizer",
    "TextContent",
    "build_app",
]
