"""
Errors raised by source scrapers. All of them are fatal to the resolution
attempt that raised them; callers may fall back to another source.
"""
from __future__ import annotations
from typing import Optional


class ProviderError(Exception):
    """Base class for every failure a source can report."""


class NotFoundError(ProviderError):
    """No upstream search entry matched the requested media."""


class EpisodeNotFoundError(ProviderError):
    """The episode list has no marker for the requested season/episode."""


class MissingStartURLError(ProviderError):
    """The episode marker exists but carries no listing page URL."""


class DecodeSourceError(ProviderError):
    """An RCP page lacks (or has a broken) encoded payload or seed."""


class UnrecognizedEmbedError(ProviderError):
    def __init__(self, url: str):
        super().__init__(f"Failed to find embed source for {url}")
        self.url = url


class CancelledError(ProviderError):
    """The caller cancelled the resolution before it finished."""


class TransportError(ProviderError):
    def __init__(self, message: str, *, url: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status = status
