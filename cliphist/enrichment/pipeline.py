"""Asynchronous text recognition for image entries.

Recognition runs in worker threads so a slow OCR never delays the
clipboard poll loop. Completion callbacks run back on the event loop, which
keeps store mutations serialized with poll-driven ones.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from cliphist.history.types import ImageContent

logger = logging.getLogger(__name__)

OnRecognized = Callable[[str, str], object]


@runtime_checkable
class TextRecognizer(Protocol):
    """Blocking OCR engine."""

    def recognize(self, image: ImageContent) -> str | None:
        """Text found in the image, or None."""
        ...


class EnrichmentPipeline:
    """Runs recognitions in the background and reports results by entry id."""

    def __init__(self, recognizer: TextRecognizer, max_concurrent: int = 2) -> None:
        """Initialize pipeline.

        Args:
            recognizer: OCR engine, called from worker threads
            max_concurrent: Maximum recognitions running at once
        """
        if max_concurrent < 1:
            raise ValueError(f"max_concurrent must be positive, got {max_concurrent}")
        self._recognizer = recognizer
        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._tasks: dict[str, asyncio.Task[None]] = {}

    @property
    def pending(self) -> int:
        """Number of submitted recognitions not yet finished."""
        return len(self._tasks)

    async def recognize(self, image: ImageContent) -> str | None:
        """Recognize text in an image.

        Never raises for recognition problems: errors, empty results and
        unsupported images all resolve to None.
        """
        async with self._semaphore:
            try:
                text = await asyncio.to_thread(self._recognizer.recognize, image)
            except Exception as e:
                logger.warning("Text recognition failed: %s", e)
                logger.debug("Recognition error details", exc_info=True)
                return None

        if not text or not text.strip():
            return None
        return text.strip()

    def submit(
        self,
        entry_id: str,
        image: ImageContent,
        on_recognized: OnRecognized,
    ) -> asyncio.Task[None]:
        """Start recognition for an entry without waiting for it.

        on_recognized(entry_id, text) is called on the event loop when text
        was found. Must be called from a running event loop.
        """
        task = asyncio.create_task(
            self._run(entry_id, image, on_recognized),
            name=f"recognize-{entry_id}",
        )
        self._tasks[entry_id] = task
        task.add_done_callback(lambda _t: self._tasks.pop(entry_id, None))
        return task

    def discard(self, entry_id: str) -> bool:
        """Cancel pending recognition for an entry that no longer exists."""
        task = self._tasks.get(entry_id)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    async def wait_idle(self) -> None:
        """Wait until every submitted recognition has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks.values()), return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel outstanding recognitions and wait for them to unwind."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _run(self, entry_id: str, image: ImageContent, on_recognized: OnRecognized) -> None:
        text = await self.recognize(image)
        if text is None:
            logger.debug("No text recognized for entry %s", entry_id)
            return
        try:
            on_recognized(entry_id, text)
        except Exception:
            logger.exception("Recognition callback failed for entry %s", entry_id)
