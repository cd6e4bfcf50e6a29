"""Clipboard capture: backends and the polling monitor."""
from cliphist.capture.backend import ClipboardBackend, MemoryClipboard
from cliphist.capture.monitor import ClipboardMonitor
from cliphist.capture.system import SystemClipboard

__all__ = [
    "ClipboardBackend",
    "ClipboardMonitor",
    "MemoryClipboard",
    "SystemClipboard",
]
