"""Tesseract OCR via pytesseract."""
from __future__ import annotations

import logging

import pytesseract

from cliphist.history.types import ImageContent

logger = logging.getLogger(__name__)


class TesseractRecognizer:
    """TextRecognizer backed by the tesseract binary."""

    def __init__(self, language: str = "eng", timeout: float | None = None) -> None:
        self._language = language
        # pytesseract treats 0 as "no timeout"
        self._timeout = timeout or 0

    @staticmethod
    def is_available() -> bool:
        """True if the tesseract binary can be found."""
        try:
            version = pytesseract.get_tesseract_version()
        except pytesseract.TesseractNotFoundError:
            return False
        logger.debug("Using tesseract %s", version)
        return True

    def recognize(self, image: ImageContent) -> str | None:
        """Run OCR on the image. Blocking; raises on tesseract failures."""
        with image.open() as pil_image:
            text = pytesseract.image_to_string(
                pil_image, lang=self._language, timeout=self._timeout
            )
        text = text.strip()
        return text or None
