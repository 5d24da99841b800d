"""
Provider engine — discovers source scrapers and runs them for a media item.

Usage:
    engine = ProviderEngine()
    result = await engine.run_source("superstream", media)
    print(result.to_dict())
    await engine.close()
"""
from __future__ import annotations
import asyncio
import logging
from typing import Optional

from .. import config
from .base import MediaContext, RunOutput, SourceResult
from .context import ProgressCallback, ScrapeContext
from .errors import ProviderError
from .fetcher import Fetcher

log = logging.getLogger("streamhop.providers")


# ──────────────────────────────
#  Scraper registry
# ──────────────────────────────
class _SourceScraper:
    id: str
    name: str
    rank: int
    media_types: list[str]          # ["movie"] or ["movie", "show"]

    async def scrape(self, ctx: ScrapeContext) -> SourceResult:
        raise NotImplementedError


# Global registry — populated when source modules are imported
_SOURCES: list[_SourceScraper] = []


def register_source(scraper):
    """Decorator to register a source scraper class."""
    # Deduplicate: remove any existing entry with same id
    global _SOURCES
    _SOURCES = [s for s in _SOURCES if s.id != scraper.id]
    _SOURCES.append(scraper())
    _SOURCES.sort(key=lambda s: s.rank, reverse=True)
    return scraper


def get_source(source_id: str) -> _SourceScraper:
    for s in _SOURCES:
        if s.id == source_id:
            return s
    raise KeyError(f"unknown source: {source_id}")


# ──────────────────────────────
#  Engine
# ──────────────────────────────
class ProviderEngine:
    def __init__(self, *, timeout: int | None = None, proxy: str | None = None,
                 fetcher: Fetcher | None = None):
        self.fetcher = fetcher or Fetcher(
            timeout=timeout or config.FETCH_TIMEOUT,
            proxy=proxy or config.FETCH_PROXY,
        )

    async def close(self):
        await self.fetcher.close()

    def list_sources(self):
        return [{'id': s.id, 'name': s.name, 'rank': s.rank, 'media_types': list(s.media_types)}
                for s in _SOURCES]

    def _context(self, media, on_progress, cancel_event) -> ScrapeContext:
        return ScrapeContext(media, self.fetcher, on_progress=on_progress, cancel_event=cancel_event)

    async def run_source(
        self,
        source_id: str,
        media: MediaContext,
        *,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> RunOutput:
        """Run a single named source. Errors propagate unchanged."""
        source = get_source(source_id)
        if media.media_type not in source.media_types:
            raise ValueError(f"{source_id} does not support {media.media_type}")
        ctx = self._context(media, on_progress, cancel_event)
        log.info("[%s] scraping %r (%s)", source.id, media.title, media.media_type)
        result = await source.scrape(ctx)
        ctx.progress(100)
        return RunOutput(source_id=source.id, result=result)

    async def run_all(
        self,
        media: MediaContext,
        *,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Optional[RunOutput]:
        """Try sources by rank, return the first one that produced something."""
        applicable = [s for s in _SOURCES if media.media_type in s.media_types]
        for source in applicable:
            try:
                out = await self.run_source(
                    source.id, media, on_progress=on_progress, cancel_event=cancel_event)
            except ProviderError as e:
                if cancel_event is not None and cancel_event.is_set():
                    raise
                log.warning("[%s] Source failed: %s", source.id, e)
                continue
            if not out.result.is_empty():
                return out
            log.info("[%s] Source returned nothing", source.id)

        log.warning("All providers exhausted, no stream found")
        return None


# ──────────────────────────────
#  Import all scrapers to register them
# ──────────────────────────────
def _load_scrapers():
    from .sources import superstream    # noqa: F401  rank 300
    from .sources import vidsrc         # noqa: F401  rank 90

_load_scrapers()
