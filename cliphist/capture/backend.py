"""Clipboard backend protocol and an in-process implementation."""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from cliphist.history.types import Content


@runtime_checkable
class ClipboardBackend(Protocol):
    """Access to a clipboard.

    The change token is an opaque integer that changes exactly when the
    clipboard content changes. Implementations raise BackendError on failure.
    """

    def current_change_token(self) -> int:
        ...

    def read_content(self) -> Content | None:
        """Current content, or None if it's neither text nor an image."""
        ...

    def write_content(self, content: Content) -> None:
        ...


class MemoryClipboard:
    """Clipboard held in memory. Every write bumps the change token."""

    def __init__(self, content: Content | None = None) -> None:
        self._content = content
        self._token = 0
        self.writes: list[Content] = []

    def current_change_token(self) -> int:
        return self._token

    def read_content(self) -> Content | None:
        return self._content

    def write_content(self, content: Content) -> None:
        self._content = content
        self._token += 1
        self.writes.append(content)

    def clear(self) -> None:
        """Empty the clipboard (content that is neither text nor image)."""
        self._content = None
        self._token += 1
