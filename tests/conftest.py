# File: tests/conftest.py
from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple, Union

import pytest

from site_audit.config import AuditConfig
from site_audit.crawler.models import FetchResult, LinkStatus

SEED = "https://ex.com/"

PageSpec = Union[str, Tuple[int, str], FetchResult]


class FakeFetcher:
    """In-memory :class:`~site_audit.crawler.fetcher.Fetcher`.

    ``pages`` maps URL → HTML body, ``(status, body)`` or a ready
    :class:`FetchResult`; unknown URLs answer 404. ``heads`` overrides
    link-check results.
    """

    def __init__(
        self,
        pages: Optional[Dict[str, PageSpec]] = None,
        heads: Optional[Dict[str, LinkStatus]] = None,
    ) -> None:
        self.pages = dict(pages or {})
        self.heads = dict(heads or {})
        self.get_calls: List[str] = []
        self.head_calls: List[str] = []

    async def get(self, url: str) -> FetchResult:
        self.get_calls.append(url)
        spec = self.pages.get(url)
        if spec is None:
            return FetchResult(url, 404, "text/html", "<h1>Not found</h1>")
        if isinstance(spec, FetchResult):
            return FetchResult(url, spec.status, spec.content_type, spec.body, spec.error)
        status, body = spec if isinstance(spec, tuple) else (200, spec)
        ctype = "text/plain" if url.endswith("/robots.txt") else "text/html; charset=utf-8"
        return FetchResult(url, status, ctype, body)

    async def head(self, url: str) -> LinkStatus:
        self.head_calls.append(url)
        if url in self.heads:
            return self.heads[url]
        spec = self.pages.get(url)
        if spec is None:
            return LinkStatus(error=True, status=404)
        status = spec.status if isinstance(spec, FetchResult) else spec[0] if isinstance(spec, tuple) else 200
        return LinkStatus(error=status >= 400, status=status)


@pytest.fixture()
def make_config() -> Callable[..., AuditConfig]:
    """Factory for fast configs: no politeness delay, no retries."""

    def _make(**overrides) -> AuditConfig:
        data = {"seed_url": SEED, "delay_ms": 0, "retry_times": 0, "max_depth": 3}
        data.update(overrides)
        return AuditConfig(**data)

    return _make


def html_page(
    title: str = "A perfectly fine page title",
    body: str = "",
    *,
    description: str = "",
    head: str = "",
    h1: Optional[str] = "Heading",
) -> str:
    """Small HTML builder used across the suite."""
    parts = ["<html><head>"]
    if title:
        parts.append(f"<title>{title}</title>")
    if description:
        parts.append(f'<meta name="description" content="{description}">')
    parts.append(head)
    parts.append("</head><body>")
    if h1 is not None:
        parts.append(f"<h1>{h1}</h1>")
    parts.append(body)
    parts.append("</body></html>")
    return "".join(parts)
