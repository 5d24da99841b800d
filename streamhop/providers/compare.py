"""Default title matching used to pick a search result."""
from __future__ import annotations
import re

_QUOTES_RE = re.compile(r"['\":]")
_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]+")


def normalize_title(title: str) -> str:
    title = title.lower().strip()
    title = _QUOTES_RE.sub("", title)
    return _NON_ALNUM_RE.sub("_", title)


def compare_title(a: str, b: str) -> bool:
    return normalize_title(a) == normalize_title(b)
