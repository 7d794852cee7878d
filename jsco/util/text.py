"""Text and path helpers."""

from __future__ import annotations

import hashlib
import os
from urllib.parse import urlsplit

from ..constants import DEBUG_ENV_VAR


def slice_span(source: bytes, start: int, end: int) -> str:
    """Return the text of a byte span, clamping out-of-range offsets."""
    start = max(start, 0)
    end = min(end, len(source))
    if end <= start:
        return ""
    return source[start:end].decode("utf-8", errors="replace")


def feature_cache_name(key: str) -> str:
    """Filesystem-safe cache file name for a dotted lookup key."""
    return f"{key.replace('.', '_')}.json"


def url_cache_key(url: str) -> str:
    """Stable cache key for a URL, ignoring its query string and fragment."""
    parts = urlsplit(url)
    if parts.scheme and parts.netloc:
        base = f"{parts.scheme}://{parts.hostname or ''}{parts.path}"
    else:
        base = url
    return hashlib.md5(base.encode("utf-8"), usedforsecurity=False).hexdigest()


def ellipsize(value: str, width: int) -> str:
    """Shorten long strings while preserving prefix visibility."""
    if width <= 0:
        return ""
    if len(value) <= width:
        return value
    if width <= 1:
        return "…"
    return f"{value[: width - 1]}…"


def debug_enabled() -> bool:
    """Check debug mode env flag."""
    return os.environ.get(DEBUG_ENV_VAR, "").strip() == "1"
