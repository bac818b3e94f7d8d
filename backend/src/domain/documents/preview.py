"""Debounced hover previews.

A preview URL is fetched only after the pointer rests on a document for
the debounce delay. Leaving earlier cancels the pending fetch, so scanning
a list does not trigger a request per row.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional
from uuid import UUID

from .errors import DocumentError

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.3

PreviewFetcher = Callable[[UUID], Awaitable[str]]


class PreviewDebouncer:
    """Tracks the hovered document and its preview URL.

    Example:
        debouncer = PreviewDebouncer(lambda doc_id: engine.preview_url(actor, doc_id))
        debouncer.hover(doc_id)
        ...
        debouncer.leave(doc_id)
    """

    def __init__(self, fetch: PreviewFetcher, delay_seconds: float = DEFAULT_DEBOUNCE_SECONDS):
        self._fetch = fetch
        self.delay_seconds = delay_seconds
        self._task: Optional[asyncio.Task] = None
        self.hovered_id: Optional[UUID] = None
        self.preview_id: Optional[UUID] = None
        self.preview_url: Optional[str] = None
        self.error: Optional[str] = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def hover(self, document_id: UUID) -> asyncio.Task:
        """Start the debounce timer for a document, replacing any earlier one."""
        self._cancel()
        self.hovered_id = document_id
        self._task = asyncio.create_task(self._fetch_after_delay(document_id))
        return self._task

    def leave(self, document_id: Optional[UUID] = None) -> None:
        """Pointer left a document; cancel its fetch if still waiting."""
        if document_id is not None and document_id != self.hovered_id:
            return
        self._cancel()
        self.hovered_id = None

    def close(self) -> None:
        """Drop the shown preview; its URL is not reused."""
        self.leave()
        self.preview_id = None
        self.preview_url = None
        self.error = None

    def _cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _fetch_after_delay(self, document_id: UUID) -> Optional[str]:
        await asyncio.sleep(self.delay_seconds)
        try:
            url = await self._fetch(document_id)
        except DocumentError as e:
            logger.warning(f"Preview unavailable for document {document_id}: {e}", extra={"document_id": document_id})
            if self.hovered_id == document_id:
                self.error = str(e)
            return None
        except Exception as e:
            # Nobody awaits the task; the error is logged and dropped
            logger.error(
                f"Preview fetch failed for document {document_id}: {e}",
                exc_info=True,
                extra={"document_id": document_id},
            )
            if self.hovered_id == document_id:
                self.error = "Preview unavailable"
            return None

        if self.hovered_id != document_id:
            return None
        self.preview_id = document_id
        self.preview_url = url
        self.error = None
        return url
