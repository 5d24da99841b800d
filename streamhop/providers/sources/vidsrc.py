"""
VidSrc — hash + redirect chain → embed references.

Flow:
  1. vidsrc.me/embed/{tmdb_id}        → HTML with .source[data-hash] entries
     (shows: the page lists every episode, the wanted one carries the real
     listing URL in data-iframe)
  2. rcp.vidsrc.me/rcp/{hash}         → HTML with XOR-obfuscated redirect URL
     (#hidden[data-h] hex payload, body[data-i] seed)
  3. HEAD {decoded url}               → 302 chain, final URL is the embed page
  4. host of the final URL            → known embed id, ignored, or error
"""
from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional, Union
from urllib.parse import urljoin, urlparse

from ... import config
from ..base import EmbedRef, SourceResult
from ..context import ScrapeContext
from ..errors import (
    DecodeSourceError, EpisodeNotFoundError, MissingStartURLError, UnrecognizedEmbedError,
)
from ..runner import register_source

log = logging.getLogger("streamhop.providers.vidsrc")

VIDSRC_EMBED_ID = "vidsrcembed"
STREAMBUCKET_EMBED_ID = "streambucket"


# ── Obfuscation codec ────────────────────────────────────

def decode_src(encoded: str, seed: str) -> str:
    """XOR hex-decoded bytes with the seed repeated as a key."""
    data = bytes.fromhex(encoded)
    return "".join(chr(b ^ ord(seed[i % len(seed)])) for i, b in enumerate(data))


def normalize_url(url: str) -> str:
    if url.startswith("//"):
        return f"https:{url}"
    return url


# ── Embed classifier ─────────────────────────────────────

@dataclass(frozen=True)
class KnownEmbed:
    embed_id: str
    headers: Optional[dict[str, str]] = None


@dataclass(frozen=True)
class IgnoredEmbed:
    reason: str


Classification = Union[KnownEmbed, IgnoredEmbed]

# Hosts that are reachable but deliberately skipped
_IGNORED_HOSTS = {
    # sources from other embeds already reachable as a source
    "2embed.cc": "re-aggregates vidsrc sources",
    "www.2embed.cc": "re-aggregates vidsrc sources",
    # streams video over a custom WebSocket connection
    "player-cdn.com": "websocket transport",
}


_DEFAULT_PORTS = {"http": "80", "https": "443"}


def _host(url: str) -> str:
    """host[:port] of the URL, default port dropped, userinfo stripped."""
    parsed = urlparse(url)
    host = parsed.netloc.rpartition("@")[2].lower()
    name, sep, port = host.rpartition(":")
    if sep and "]" not in port and port == _DEFAULT_PORTS.get(parsed.scheme):
        return name
    return host


def classify_embed(url: str, rcp_url: str) -> Classification:
    host = _host(url)
    if host == "vidsrc.stream":
        return KnownEmbed(VIDSRC_EMBED_ID, {"referer": rcp_url})
    if host == "streambucket.net":
        return KnownEmbed(STREAMBUCKET_EMBED_ID)
    if host in _IGNORED_HOSTS:
        return IgnoredEmbed(_IGNORED_HOSTS[host])
    raise UnrecognizedEmbedError(url)


# ── Hash-chain walker ────────────────────────────────────

@dataclass
class HashHop:
    """Referer state for one hash, threaded through its three hops."""
    source_hash: str
    listing_url: str
    rcp_url: str
    redirect_url: Optional[str] = None
    embed_url: Optional[str] = None
    headers: dict[str, str] = field(default_factory=dict)


async def resolve_final_url(ctx: ScrapeContext, url: str, referer: str) -> str:
    """HEAD the URL, follow redirects, return where we landed."""
    return await ctx.get_final_url(url, headers={"referer": referer})


async def _resolve_hash(ctx: ScrapeContext, hop: HashHop) -> Optional[EmbedRef]:
    page = await ctx.get_html(hop.rcp_url, headers={"referer": hop.listing_url})

    hidden = page.select_one("#hidden")
    body = page.find("body")
    encoded = hidden.get("data-h") if hidden is not None else None
    seed = body.get("data-i") if body is not None else None
    if not encoded or not seed:
        raise DecodeSourceError(f"Failed to find encoded iframe src for hash {hop.source_hash}")

    try:
        hop.redirect_url = normalize_url(decode_src(encoded, seed))
    except ValueError as e:
        raise DecodeSourceError(f"Malformed encoded iframe src for hash {hop.source_hash}") from e

    hop.embed_url = await resolve_final_url(ctx, hop.redirect_url, hop.rcp_url)

    outcome = classify_embed(hop.embed_url, hop.rcp_url)
    if isinstance(outcome, IgnoredEmbed):
        log.debug("[vidsrc] ignoring %s (%s)", hop.embed_url, outcome.reason)
        return None
    return EmbedRef(embed_id=outcome.embed_id, url=hop.embed_url, headers=outcome.headers)


async def walk_embeds(ctx: ScrapeContext, starting_url: str,
                      concurrency: int | None = None) -> list[EmbedRef]:
    """Resolve every source hash on a listing page, in page order."""
    concurrency = concurrency or config.VIDSRC_CONCURRENCY
    listing_url = urljoin(config.VIDSRC_BASE, starting_url)

    page = await ctx.get_html(starting_url, base_url=config.VIDSRC_BASE)
    hashes = [el["data-hash"] for el in page.select(".source[data-hash]")]
    log.info("[vidsrc] found %d hashes on %s", len(hashes), listing_url)

    hops = [
        HashHop(source_hash=h, listing_url=listing_url, rcp_url=f"{config.VIDSRC_RCP_BASE}/rcp/{h}")
        for h in hashes
    ]

    if concurrency <= 1:
        results = []
        for hop in hops:
            results.append(await _resolve_hash(ctx, hop))
    else:
        sem = asyncio.Semaphore(concurrency)

        async def _bounded(hop: HashHop):
            async with sem:
                return await _resolve_hash(ctx, hop)

        tasks = [asyncio.create_task(_bounded(hop)) for hop in hops]
        try:
            results = await asyncio.gather(*tasks, return_exceptions=True)
        except BaseException:
            for t in tasks:
                t.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        # report the failure the sequential walk would have hit
        for res in results:
            if isinstance(res, BaseException):
                raise res

    return [embed for embed in results if embed is not None]


async def find_episode_url(ctx: ScrapeContext) -> str:
    """The show embed page lists every episode; pick the listing URL of ours."""
    media = ctx.media
    page = await ctx.get_html(f"/embed/{media.tmdb_id}", base_url=config.VIDSRC_BASE)

    episode_el = page.select_one(f'.ep[data-s="{media.season}"][data-e="{media.episode}"]')
    if episode_el is None:
        raise EpisodeNotFoundError(f"failed to find episode element S{media.season}E{media.episode}")

    starting_url = episode_el.get("data-iframe")
    if not starting_url:
        raise MissingStartURLError("failed to find episode starting URL")
    return starting_url


@register_source
class VidSrc:
    id = "vidsrc"
    name = "VidSrc"
    rank = 90
    media_types = ["movie", "show"]

    async def scrape(self, ctx: ScrapeContext) -> SourceResult:
        if ctx.media.is_show:
            starting_url = await find_episode_url(ctx)
        else:
            starting_url = f"/embed/{ctx.media.tmdb_id}"
        ctx.progress(20)

        embeds = await walk_embeds(ctx, starting_url)
        log.info("[vidsrc] resolved %d embeds", len(embeds))
        return SourceResult(embeds=embeds)
