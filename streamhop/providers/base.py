"""
Core types for the streamhop provider system.

Two kinds of source output:
  - File: direct mp4 URLs keyed by quality tier (QualityMap)
  - Embed: references to third-party player pages, handed to embed scrapers
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional

# Quality tiers a file stream may carry, lowest first
ALLOWED_QUALITIES = ("360", "480", "720", "1080")

# ──────────────────────────────
#  Media context (passed to scrapers)
# ──────────────────────────────
@dataclass(frozen=True)
class MediaContext:
    title: str
    year: int
    media_type: str = "movie"         # "movie" | "show"
    tmdb_id: str = ""
    imdb_id: Optional[str] = None
    season: int = 1
    episode: int = 1

    def __post_init__(self):
        # Normalize: accept both "show" and "tv" → always "show"
        if self.media_type == "tv":
            object.__setattr__(self, "media_type", "show")
        if self.media_type not in ("movie", "show"):
            raise ValueError(f"unknown media type: {self.media_type!r}")

    @property
    def is_show(self) -> bool:
        return self.media_type == "show"

# ──────────────────────────────
#  Upstream search entry
# ──────────────────────────────
@dataclass
class SearchResult:
    id: str
    title: str
    year: Optional[int] = None

    @classmethod
    def from_api(cls, item: dict) -> "SearchResult":
        year = item.get("year")
        # only numeric years take part in the exact-year match
        if isinstance(year, bool) or not isinstance(year, int):
            year = None
        return cls(id=str(item.get("id", "")), title=item.get("title") or "", year=year)

# ──────────────────────────────
#  Stream definitions
# ──────────────────────────────
@dataclass
class StreamFile:
    url: str
    type: str = "mp4"

    def to_dict(self):
        return {"type": self.type, "url": self.url}

QualityMap = dict[str, StreamFile]

@dataclass
class Stream:
    stream_type: str = "file"
    qualities: QualityMap = field(default_factory=dict)
    flags: list[str] = field(default_factory=list)   # e.g. "no-cors"
    headers: dict[str, str] = field(default_factory=dict)

    def to_dict(self):
        d = {
            "type": self.stream_type,
            "flags": list(self.flags),
            "qualities": {q: f.to_dict() for q, f in self.qualities.items()},
        }
        if self.headers:
            d["headers"] = self.headers
        return d

# ──────────────────────────────
#  Embed reference (returned by source scrapers)
# ──────────────────────────────
@dataclass
class EmbedRef:
    embed_id: str                     # must match an embed scraper id
    url: str
    headers: Optional[dict[str, str]] = None

    def to_dict(self):
        d = {"embedId": self.embed_id, "url": self.url}
        if self.headers:
            d["headers"] = self.headers
        return d

# ──────────────────────────────
#  Source scraper output
# ──────────────────────────────
@dataclass
class SourceResult:
    embeds: list[EmbedRef] = field(default_factory=list)
    streams: list[Stream] = field(default_factory=list)  # direct streams (skip embed step)

    def is_empty(self) -> bool:
        return not self.embeds and not any(s.qualities for s in self.streams)

    def to_dict(self):
        return {
            "embeds": [e.to_dict() for e in self.embeds],
            "streams": [s.to_dict() for s in self.streams],
        }

# ──────────────────────────────
#  Final run output
# ──────────────────────────────
@dataclass
class RunOutput:
    source_id: str
    result: SourceResult

    def to_dict(self):
        return {"source": self.source_id, **self.result.to_dict()}
