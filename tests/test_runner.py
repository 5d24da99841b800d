import asyncio

import pytest

from streamhop.providers import runner
from streamhop.providers.base import EmbedRef, SourceResult, Stream, StreamFile
from streamhop.providers.errors import CancelledError, NotFoundError, TransportError
from streamhop.providers.runner import ProviderEngine
from conftest import FakeFetcher


def _patch_scrape(monkeypatch, source_id, fn):
    monkeypatch.setattr(runner.get_source(source_id), "scrape", fn)


def test_sources_registered_by_rank():
    ids = [s["id"] for s in ProviderEngine(fetcher=FakeFetcher()).list_sources()]
    assert ids.index("superstream") < ids.index("vidsrc")


@pytest.mark.asyncio
async def test_run_source_propagates_errors(monkeypatch, movie):
    async def fail(ctx):
        raise NotFoundError("No entry found")

    _patch_scrape(monkeypatch, "superstream", fail)
    with pytest.raises(NotFoundError):
        await ProviderEngine(fetcher=FakeFetcher()).run_source("superstream", movie)


@pytest.mark.asyncio
async def test_run_source_unknown_id(movie):
    with pytest.raises(KeyError):
        await ProviderEngine(fetcher=FakeFetcher()).run_source("nope", movie)


@pytest.mark.asyncio
async def test_run_source_reports_completion(monkeypatch, movie):
    async def ok(ctx):
        ctx.progress(33)
        return SourceResult(streams=[Stream(qualities={"720": StreamFile("u")})])

    _patch_scrape(monkeypatch, "superstream", ok)
    seen = []
    out = await ProviderEngine(fetcher=FakeFetcher()).run_source("superstream", movie, on_progress=seen.append)

    assert seen == [33, 100]
    assert out.to_dict()["source"] == "superstream"
    assert out.to_dict()["streams"][0]["qualities"] == {"720": {"type": "mp4", "url": "u"}}


@pytest.mark.asyncio
async def test_run_all_falls_back_to_next_source(monkeypatch, movie):
    async def broken(ctx):
        raise TransportError("down")

    async def embeds(ctx):
        return SourceResult(embeds=[EmbedRef("streambucket", "https://streambucket.net/x")])

    _patch_scrape(monkeypatch, "superstream", broken)
    _patch_scrape(monkeypatch, "vidsrc", embeds)

    out = await ProviderEngine(fetcher=FakeFetcher()).run_all(movie)
    assert out.source_id == "vidsrc"


@pytest.mark.asyncio
async def test_run_all_returns_none_when_all_empty(monkeypatch, movie):
    async def empty(ctx):
        return SourceResult()

    _patch_scrape(monkeypatch, "superstream", empty)
    _patch_scrape(monkeypatch, "vidsrc", empty)
    assert await ProviderEngine(fetcher=FakeFetcher()).run_all(movie) is None


@pytest.mark.asyncio
async def test_run_all_stops_when_cancelled(monkeypatch, movie):
    calls = []

    async def scrape(ctx):
        calls.append(ctx)
        ctx.check_cancelled()
        return SourceResult()

    _patch_scrape(monkeypatch, "superstream", scrape)
    _patch_scrape(monkeypatch, "vidsrc", scrape)
    event = asyncio.Event()
    event.set()

    with pytest.raises(CancelledError):
        await ProviderEngine(fetcher=FakeFetcher()).run_all(movie, cancel_event=event)
    assert len(calls) == 1
