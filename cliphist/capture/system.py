"""OS clipboard backend using pyperclip (text) and Pillow's ImageGrab (images).

Neither library exposes the platform's change counter, so the token is
derived: each call hashes the current content and bumps a local counter
when the hash differs from the previous one. Writes bump the counter
themselves, so every write is exactly one change even when the clipboard
already held the same content.

Images are written back with the platform's own mechanism: wl-copy or
xclip on Linux, osascript on macOS, and the Win32 clipboard API (pywin32)
on Windows.
"""
from __future__ import annotations

import hashlib
import logging
import os
import shutil
import subprocess
import sys
import tempfile
from io import BytesIO
from pathlib import Path

import pyperclip
from PIL import Image, ImageGrab

from cliphist.core.errors import BackendError
from cliphist.history.types import Content, ImageContent, TextContent

logger = logging.getLogger(__name__)

# Seconds to wait for an external clipboard tool
WRITE_TIMEOUT = 10.0


class SystemClipboard:
    """Clipboard backend for the desktop clipboard."""

    def __init__(self, images: bool = True) -> None:
        """Initialize backend.

        Args:
            images: Also read images via ImageGrab (Windows, macOS, and Linux
                with wl-paste or xclip installed)
        """
        self._images = images
        self._token = 0
        self._signature: str | None = None

    def current_change_token(self) -> int:
        signature = self._current_signature()
        if signature != self._signature:
            self._signature = signature
            self._token += 1
        return self._token

    def read_content(self) -> Content | None:
        """Read text first, falling back to an image.

        Raises:
            BackendError: If the text clipboard can't be accessed.
        """
        text = self._paste()
        if text:
            return TextContent(text)

        if self._images:
            image = self._grab_image()
            if image is not None:
                return ImageContent.from_image(image)
        return None

    def write_content(self, content: Content) -> None:
        """Put content on the clipboard.

        Raises:
            BackendError: If the clipboard can't be written, or the image
                can't be decoded or written on this platform.
        """
        if isinstance(content, TextContent):
            try:
                pyperclip.copy(content.text)
            except pyperclip.PyperclipException as e:
                raise BackendError(f"Cannot write clipboard: {e}") from e
            signature = _text_signature(content.text)
        else:
            png = content.canonical_bytes
            if png is None:
                raise BackendError("Cannot write clipboard: image is not decodable")
            _write_image(png)
            with content.open() as image:
                signature = _image_signature(image)

        self._signature = signature
        self._token += 1

    def _current_signature(self) -> str | None:
        text = self._paste()
        if text:
            return _text_signature(text)
        if self._images:
            image = self._grab_image()
            if image is not None:
                return _image_signature(image)
        return None

    def _paste(self) -> str:
        try:
            return pyperclip.paste()
        except pyperclip.PyperclipException as e:
            raise BackendError(f"Cannot read clipboard: {e}") from e

    def _grab_image(self) -> Image.Image | None:
        try:
            grabbed = ImageGrab.grabclipboard()
        except (OSError, NotImplementedError) as e:
            logger.debug("Image clipboard unavailable: %s", e)
            return None
        # A list means copied files, which we don't capture
        return grabbed if isinstance(grabbed, Image.Image) else None


def _text_signature(text: str) -> str:
    return "text:" + hashlib.sha1(text.encode("utf-8", "surrogatepass")).hexdigest()


def _image_signature(image: Image.Image) -> str:
    """Hash of the pixels, so OS re-encoding doesn't look like a change.

    Alpha is ignored: Windows stores written images without it.
    """
    pixels = image.convert("RGB")
    digest = hashlib.sha1(f"{pixels.width}x{pixels.height}:".encode("ascii"))
    digest.update(pixels.tobytes())
    return "image:" + digest.hexdigest()


def _write_image(png: bytes) -> None:
    if sys.platform.startswith("linux"):
        _write_image_linux(png)
    elif sys.platform == "darwin":
        _write_image_macos(png)
    elif sys.platform == "win32":
        _write_image_windows(png)
    else:
        raise BackendError(f"Writing images to the clipboard is not supported on {sys.platform}")


def _run_tool(args: list[str], data: bytes | None = None) -> None:
    # Output is discarded: xclip and wl-copy fork a server that keeps
    # inherited pipes open
    try:
        subprocess.run(
            args,
            input=data,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=True,
            timeout=WRITE_TIMEOUT,
        )
    except (OSError, subprocess.SubprocessError) as e:
        raise BackendError(f"Cannot write image with {args[0]}: {e}") from e


def _write_image_linux(png: bytes) -> None:
    if os.environ.get("WAYLAND_DISPLAY") and shutil.which("wl-copy"):
        _run_tool(["wl-copy", "--type", "image/png"], png)
    elif shutil.which("xclip"):
        _run_tool(["xclip", "-selection", "clipboard", "-t", "image/png", "-i"], png)
    else:
        raise BackendError("Writing images needs wl-copy (Wayland) or xclip (X11)")


def _write_image_macos(png: bytes) -> None:
    fd, name = tempfile.mkstemp(suffix=".png")
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(png)
        script = f'set the clipboard to (read (POSIX file "{path}") as «class PNGf»)'
        _run_tool(["osascript", "-e", script])
    finally:
        path.unlink(missing_ok=True)


def _write_image_windows(png: bytes) -> None:
    import pywintypes
    import win32clipboard
    import win32con

    # CF_DIB is a BMP without its 14-byte file header
    with Image.open(BytesIO(png)) as image:
        buf = BytesIO()
        image.convert("RGB").save(buf, format="BMP")
    dib = buf.getvalue()[14:]

    try:
        win32clipboard.OpenClipboard()
        try:
            win32clipboard.EmptyClipboard()
            win32clipboard.SetClipboardData(win32con.CF_DIB, dib)
        finally:
            win32clipboard.CloseClipboard()
    except pywintypes.error as e:
        raise BackendError(f"Cannot write image to clipboard: {e}") from e
