"""
Shared fixtures: an in-memory stand-in for the aiohttp fetcher, plus helpers
to build the vidsrc pages the scrapers parse.
"""
from urllib.parse import urljoin

import pytest
from bs4 import BeautifulSoup

from streamhop import config
from streamhop.providers.base import MediaContext
from streamhop.providers.context import ScrapeContext
from streamhop.providers.errors import TransportError

VIDSRC_BASE = "https://vidsrc.test"
RCP_BASE = "https://rcp.vidsrc.test"


class FakeFetcher:
    """Serves canned pages and redirect targets, records every request."""

    def __init__(self, pages=None, redirects=None, posts=None):
        self.pages = dict(pages or {})
        self.redirects = dict(redirects or {})
        self.posts = dict(posts or {})
        self.calls = []

    def _record(self, method, url, base_url, headers):
        full = urljoin(base_url, url) if base_url else url
        self.calls.append((method, full, dict(headers or {})))
        return full

    def urls(self, method=None):
        return [url for m, url, _ in self.calls if method is None or m == method]

    def headers_for(self, method, url):
        for m, u, headers in self.calls:
            if m == method and u == url:
                return headers
        raise AssertionError(f"no {method} request to {url}")

    async def get_html(self, url, *, base_url=None, headers=None, params=None):
        full = self._record("GET", url, base_url, headers)
        if full not in self.pages:
            raise TransportError(f"GET {full} returned HTTP 404", url=full, status=404)
        return BeautifulSoup(self.pages[full], "html.parser")

    async def get_final_url(self, url, *, base_url=None, headers=None, method="HEAD"):
        full = self._record(method, url, base_url, headers)
        return self.redirects.get(full, full)

    async def post(self, url, *, base_url=None, headers=None, data=None, json_body=None):
        full = self._record("POST", url, base_url, headers)
        return self.posts[full]

    async def close(self):
        pass


def xor_encode(plain: str, seed: str) -> str:
    return bytes(ord(c) ^ ord(seed[i % len(seed)]) for i, c in enumerate(plain)).hex()


def listing_html(*hashes: str) -> str:
    items = "".join(f'<div class="source" data-hash="{h}">Server {i}</div>' for i, h in enumerate(hashes))
    return f"<html><body><div id='sources'>{items}</div></body></html>"


def rcp_html(encoded: str | None, seed: str | None) -> str:
    body_attr = f' data-i="{seed}"' if seed is not None else ""
    hidden = f'<div id="hidden" data-h="{encoded}"></div>' if encoded is not None else ""
    return f"<html><body{body_attr}>{hidden}</body></html>"


def episodes_html(*episodes) -> str:
    """episodes: (season, episode, iframe-or-None) tuples"""
    items = []
    for s, e, iframe in episodes:
        attr = f' data-iframe="{iframe}"' if iframe is not None else ""
        items.append(f'<div class="ep" data-s="{s}" data-e="{e}"{attr}>E{e}</div>')
    return f"<html><body>{''.join(items)}</body></html>"


@pytest.fixture(autouse=True)
def vidsrc_hosts(monkeypatch):
    monkeypatch.setattr(config, "VIDSRC_BASE", VIDSRC_BASE)
    monkeypatch.setattr(config, "VIDSRC_RCP_BASE", RCP_BASE)
    monkeypatch.setattr(config, "VIDSRC_CONCURRENCY", 1)


@pytest.fixture
def movie():
    return MediaContext(title="Example", year=2020, media_type="movie", tmdb_id="42")


@pytest.fixture
def show():
    return MediaContext(title="Example Show", year=2019, media_type="tv",
                        tmdb_id="1399", season=1, episode=1)


@pytest.fixture
def make_ctx():
    def _make(media, fetcher, **kwargs):
        return ScrapeContext(media, fetcher, **kwargs)
    return _make
