"""
HTTP fetcher for provider scrapers. Wraps aiohttp with common defaults,
headers, timeout, and optional proxy support. Every network failure comes
out as a TransportError.
"""
from __future__ import annotations
import aiohttp
import asyncio
from contextlib import asynccontextmanager
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from .errors import TransportError

DEFAULT_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

class Fetcher:
    def __init__(self, *, timeout: int = 10, proxy: str | None = None):
        self.timeout = aiohttp.ClientTimeout(total=timeout, connect=4)
        self.proxy = proxy
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={"User-Agent": DEFAULT_UA},
            )
        return self._session

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "Fetcher":
        return self

    async def __aexit__(self, *exc):
        await self.close()

    @asynccontextmanager
    async def _request(self, method: str, url: str, *, base_url: str | None = None,
                       allow_redirects: bool = True, **kwargs):
        full = urljoin(base_url, url) if base_url else url
        session = await self._get_session()
        try:
            async with session.request(
                method,
                full,
                allow_redirects=allow_redirects,
                proxy=self.proxy,
                **kwargs,
            ) as resp:
                if resp.status >= 400:
                    raise TransportError(
                        f"{method} {full} returned HTTP {resp.status}",
                        url=full, status=resp.status,
                    )
                yield resp
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"{method} {full} failed: {e!r}", url=full) from e

    # ── convenience methods ──────────────────

    async def get(
        self,
        url: str,
        *,
        base_url: str | None = None,
        headers: dict | None = None,
        params: dict | None = None,
    ) -> str:
        async with self._request(
            "GET", url, base_url=base_url, headers=headers or {}, params=params,
        ) as resp:
            return await resp.text(errors="replace")

    async def get_json(
        self,
        url: str,
        *,
        base_url: str | None = None,
        headers: dict | None = None,
        params: dict | None = None,
    ) -> dict | list:
        async with self._request(
            "GET", url, base_url=base_url, headers=headers or {}, params=params,
        ) as resp:
            try:
                return await resp.json(content_type=None)
            except ValueError as e:
                raise TransportError(f"GET {resp.url} returned invalid JSON", url=str(resp.url)) from e

    async def get_html(
        self,
        url: str,
        *,
        base_url: str | None = None,
        headers: dict | None = None,
        params: dict | None = None,
    ) -> BeautifulSoup:
        """Fetch a page and parse it for CSS selection."""
        html = await self.get(url, base_url=base_url, headers=headers, params=params)
        return BeautifulSoup(html, "html.parser")

    async def post(
        self,
        url: str,
        *,
        base_url: str | None = None,
        headers: dict | None = None,
        data: dict | str | None = None,
        json_body: dict | None = None,
    ) -> str:
        async with self._request(
            "POST", url, base_url=base_url, headers=headers or {},
            data=data, json=json_body,
        ) as resp:
            return await resp.text(errors="replace")

    async def get_final_url(
        self,
        url: str,
        *,
        base_url: str | None = None,
        headers: dict | None = None,
        method: str = "HEAD",
    ) -> str:
        """Follow redirects and return the final URL without reading the body."""
        async with self._request(
            method, url, base_url=base_url, headers=headers or {},
        ) as resp:
            return str(resp.url)
