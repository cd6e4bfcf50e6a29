"""History content and entry types."""
from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from io import BytesIO
from typing import Union

from PIL import Image

logger = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

# Pillow modes PNG can store without conversion
_PNG_MODES = frozenset({"1", "L", "LA", "P", "RGB", "RGBA", "I", "I;16"})


class ContentKind(Enum):
    """Discriminant for clipboard content (also the persisted tag)."""

    TEXT = "text"
    IMAGE = "image"


@dataclass(frozen=True)
class TextContent:
    """Plain text clipboard content."""

    text: str

    @property
    def kind(self) -> ContentKind:
        return ContentKind.TEXT


@dataclass(frozen=True)
class ImageContent:
    """Bitmap clipboard content, held as PNG bytes.

    Any format Pillow can decode is accepted and converted to PNG on
    construction, so content compares equal after a snapshot round trip.
    Undecodable bytes are kept as given.
    """

    data: bytes

    def __post_init__(self) -> None:
        if self.data.startswith(PNG_SIGNATURE):
            return
        try:
            image = self.open()
        except (OSError, ValueError, Image.DecompressionBombError):
            return
        object.__setattr__(self, "data", _encode_png(image))

    @property
    def kind(self) -> ContentKind:
        return ContentKind.IMAGE

    @classmethod
    def from_image(cls, image: Image.Image) -> ImageContent:
        """Build content from a PIL image, encoding it as PNG."""
        return cls(data=_encode_png(image))

    def open(self) -> Image.Image:
        """Decode the bytes into a fully loaded PIL image.

        Raises:
            OSError: If the bytes are not a decodable image.
        """
        image = Image.open(BytesIO(self.data))
        image.load()
        return image

    @cached_property
    def canonical_bytes(self) -> bytes | None:
        """PNG encoding of this image, or None if the bytes can't be decoded."""
        try:
            image = self.open()
            if image.format == "PNG":
                return self.data
            return _encode_png(image)
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            logger.debug("Image content is not decodable: %s", e)
            return None


Content = Union[TextContent, ImageContent]


def _encode_png(image: Image.Image) -> bytes:
    if image.mode not in _PNG_MODES:
        image = image.convert("RGBA")
    buf = BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


def new_entry_id() -> str:
    """Generate a process-unique entry identifier."""
    return uuid.uuid4().hex


@dataclass(frozen=True)
class HistoryEntry:
    """A single captured clipboard item.

    Entries are immutable; recognized text arriving later produces a
    replacement entry with the same id, created_at and position.
    """

    id: str
    content: Content
    created_at: float
    recognized_text: str | None = None

    @classmethod
    def create(cls, content: Content) -> HistoryEntry:
        """Create entry with a fresh id and the current timestamp."""
        return cls(id=new_entry_id(), content=content, created_at=time.time())

    @property
    def kind(self) -> ContentKind:
        return self.content.kind

    @property
    def is_text(self) -> bool:
        return isinstance(self.content, TextContent)

    @property
    def is_image(self) -> bool:
        return isinstance(self.content, ImageContent)
