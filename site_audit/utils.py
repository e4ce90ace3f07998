# File: site_audit/utils.py
"""site_audit.utils: URL normalisation and origin helpers shared by the crawler and the analyzer."""

from __future__ import annotations

from typing import Collection, List, Optional, Sequence
from urllib.parse import SplitResult, urljoin, urlsplit, urlunsplit

from site_audit.logger import logger

__all__: Sequence[str] = (
    "normalize_url",
    "origin_of",
    "is_same_origin",
    "resolve_url",
    "remove_duplicates",
)

_SKIPPED_SCHEMES = ("mailto:", "tel:", "javascript:", "data:")
_DEFAULT_PORTS = {"http": 80, "https": 443}


def _netloc(parts: SplitResult) -> str:
    """Lower-cased ``host[:port]`` without the scheme's default port.

    Raises ValueError for a non-numeric or out-of-range port.
    """
    netloc = parts.netloc.lower()
    port = parts.port
    if port is not None and port == _DEFAULT_PORTS.get(parts.scheme.lower()):
        netloc = netloc.rsplit(":", 1)[0]
    return netloc


def normalize_url(url: str) -> str:
    """Drop the fragment and the trailing slash (root path keeps ``/``).

    Scheme and host are lower-cased and a default port (80 for http, 443
    for https) is dropped. Anything that does not parse into an absolute
    URL is returned unchanged.
    """
    try:
        parts = urlsplit(url)
        if not parts.scheme or not parts.netloc:
            return url
        netloc = _netloc(parts)
    except (TypeError, ValueError):
        return url

    path = parts.path.rstrip("/") or "/"
    return urlunsplit((parts.scheme.lower(), netloc, path, parts.query, ""))


def origin_of(url: str) -> str:
    """Return ``scheme://host[:port]`` for *url* (lower-cased, default port dropped)."""
    parts = urlsplit(url)
    return f"{parts.scheme.lower()}://{_netloc(parts)}"


def is_same_origin(url: str, origin: str) -> bool:
    try:
        return origin_of(url) == origin
    except ValueError:
        return False


def resolve_url(base: str, href: Optional[str]) -> Optional[str]:
    """Resolve *href* against *base* and normalise it.

    Returns ``None`` for empty values, non-navigational schemes
    (``mailto:``, ``tel:``, ``javascript:``, ``data:``) and malformed URLs.
    """
    if not href:
        return None
    raw = href.strip()
    if not raw or raw.lower().startswith(_SKIPPED_SCHEMES):
        return None
    try:
        absolute = urljoin(base, raw)
        scheme = urlsplit(absolute).scheme
    except ValueError as exc:
        logger.debug("Skipping malformed href %r on %s: %s", raw, base, exc)
        return None
    if scheme not in ("http", "https"):
        return None
    return normalize_url(absolute)


def remove_duplicates(urls: Collection[str]) -> List[str]:
    """Удаляет дубликаты из списка URL, сохраняя порядок."""
    unique = list(dict.fromkeys(urls))
    removed = len(urls) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique
