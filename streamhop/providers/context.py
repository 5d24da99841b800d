"""
Per-resolution scrape context: the media being resolved, the transport, a
progress sink and a cancellation flag. Network calls made through the context
check the flag first, so a cancelled resolution stops at the next hop.
"""
from __future__ import annotations
import asyncio
import logging
from typing import Callable, Optional

from bs4 import BeautifulSoup

from .base import MediaContext
from .errors import CancelledError
from .fetcher import Fetcher

log = logging.getLogger("streamhop.providers.context")

ProgressCallback = Callable[[int], None]


class ScrapeContext:
    def __init__(
        self,
        media: MediaContext,
        fetcher: Fetcher,
        *,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ):
        self.media = media
        self.fetcher = fetcher
        self.on_progress = on_progress
        self.cancel_event = cancel_event or asyncio.Event()
        self._last_progress = 0

    # ── progress / cancellation ─────────────

    def progress(self, percent: int) -> None:
        """Report an advisory checkpoint. Never goes backwards."""
        percent = max(0, min(100, int(percent)))
        if percent <= self._last_progress:
            return
        self._last_progress = percent
        if self.on_progress is not None:
            self.on_progress(percent)

    @property
    def last_progress(self) -> int:
        return self._last_progress

    def cancel(self) -> None:
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def check_cancelled(self) -> None:
        if self.cancel_event.is_set():
            log.debug("resolution of %r cancelled", self.media.title)
            raise CancelledError("resolution cancelled")

    # ── network, cancellation-checked ───────

    async def get_html(self, url: str, **kwargs) -> BeautifulSoup:
        self.check_cancelled()
        return await self.fetcher.get_html(url, **kwargs)

    async def get_json(self, url: str, **kwargs):
        self.check_cancelled()
        return await self.fetcher.get_json(url, **kwargs)

    async def post(self, url: str, **kwargs) -> str:
        self.check_cancelled()
        return await self.fetcher.post(url, **kwargs)

    async def get_final_url(self, url: str, **kwargs) -> str:
        self.check_cancelled()
        return await self.fetcher.get_final_url(url, **kwargs)
