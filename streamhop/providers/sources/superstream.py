"""
Superstream — encrypted JSON API: search → download query → quality list.
Returns a direct mp4 file stream keyed by quality tier.
"""
from __future__ import annotations
import logging
from typing import Callable

from ..base import ALLOWED_QUALITIES, QualityMap, SearchResult, SourceResult, Stream, StreamFile
from ..compare import compare_title
from ..context import ScrapeContext
from ..errors import NotFoundError
from ..runner import register_source
from .superstream_api import send_request

log = logging.getLogger("streamhop.providers.superstream")

TitleMatcher = Callable[[str, str], bool]


def build_search_query(title: str) -> dict:
    return {
        "module": "Search3",
        "page": "1",
        "type": "all",
        "keyword": title,
        "pagelimit": "20",
    }


def build_download_query(ctx: ScrapeContext, media_id: str) -> dict:
    if ctx.media.is_show:
        return {
            "uid": "",
            "module": "TV_downloadurl_v3",
            "tid": media_id,
            "season": ctx.media.season,
            "episode": ctx.media.episode,
            "oss": "1",
            "group": "",
        }
    return {
        "uid": "",
        "module": "Movie_downloadurl_v3",
        "mid": media_id,
        "oss": "1",
        "group": "",
    }


def select_entry(results: list[SearchResult], title: str, year: int,
                 matcher: TitleMatcher = compare_title) -> SearchResult:
    """First result whose title matches and whose year is exactly the release year."""
    for res in results:
        if matcher(res.title, title) and res.year == int(year):
            return res
    raise NotFoundError("No entry found")


def build_quality_map(files: list[dict]) -> QualityMap:
    """Keep allowed tiers only; the first upstream entry wins for each tier."""
    candidates = []
    for f in files:
        quality = str(f.get("real_quality") or "").replace("p", "")
        if quality in ALLOWED_QUALITIES:
            candidates.append((quality, f.get("path") or ""))

    qualities: QualityMap = {}
    for quality in ALLOWED_QUALITIES:
        found = next((url for q, url in candidates if q == quality), None)
        if found is not None:
            qualities[quality] = StreamFile(url=found)
    return qualities


async def get_stream_qualities(ctx: ScrapeContext, api_query: dict) -> QualityMap:
    media_res = (await send_request(ctx, api_query)).get("data") or {}
    ctx.progress(66)
    return build_quality_map(media_res.get("list") or [])


@register_source
class Superstream:
    id = "superstream"
    name = "Superstream"
    rank = 300
    flags = ["no-cors"]
    media_types = ["movie", "show"]

    def __init__(self, title_matcher: TitleMatcher = compare_title):
        self.title_matcher = title_matcher

    async def search(self, ctx: ScrapeContext) -> SearchResult:
        search_res = (await send_request(ctx, build_search_query(ctx.media.title), alt_api=True)).get("data")
        ctx.progress(33)
        if not isinstance(search_res, list):
            search_res = []
        results = [SearchResult.from_api(item) for item in search_res if isinstance(item, dict)]
        log.info("[superstream] %d search results for %r", len(results), ctx.media.title)
        return select_entry(results, ctx.media.title, ctx.media.year, self.title_matcher)

    async def scrape(self, ctx: ScrapeContext) -> SourceResult:
        entry = await self.search(ctx)
        log.info("[superstream] matched %r (%s) id=%s", entry.title, entry.year, entry.id)

        qualities = await get_stream_qualities(ctx, build_download_query(ctx, entry.id))
        log.info("[superstream] qualities: %s", ", ".join(qualities) or "none")

        return SourceResult(streams=[
            Stream(stream_type="file", qualities=qualities, flags=list(self.flags))
        ])
