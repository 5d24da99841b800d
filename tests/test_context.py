import asyncio

import pytest

from streamhop.providers.compare import compare_title, normalize_title
from streamhop.providers.errors import CancelledError
from conftest import FakeFetcher


def test_progress_is_monotonic_and_clamped(movie, make_ctx):
    seen = []
    ctx = make_ctx(movie, FakeFetcher(), on_progress=seen.append)

    for pct in (10, 5, 33, 33, 150, 66):
        ctx.progress(pct)

    assert seen == [10, 33, 100]
    assert ctx.last_progress == 100


def test_progress_without_callback(movie, make_ctx):
    ctx = make_ctx(movie, FakeFetcher())
    ctx.progress(40)
    assert ctx.last_progress == 40


@pytest.mark.asyncio
async def test_cancel_event_blocks_network(movie, make_ctx):
    event = asyncio.Event()
    fetcher = FakeFetcher(pages={"https://a.test/": "<html></html>"})
    ctx = make_ctx(movie, fetcher, cancel_event=event)

    await ctx.get_html("https://a.test/")
    event.set()

    assert ctx.cancelled
    with pytest.raises(CancelledError):
        await ctx.get_final_url("https://a.test/")
    with pytest.raises(CancelledError):
        await ctx.post("https://a.test/")
    assert len(fetcher.calls) == 1


def test_compare_title():
    assert normalize_title("  Spider-Man: No Way Home ") == "spider_man_no_way_home"
    assert compare_title("Ocean's Eleven", "oceans eleven")
    assert not compare_title("Example", "Example 2")


def test_configure_logging_uses_level(monkeypatch):
    import logging
    from streamhop import config

    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.append(kw))
    config.configure_logging("DEBUG")

    assert calls[0]["level"] == "DEBUG"
    assert "%(name)s" in calls[0]["format"]
