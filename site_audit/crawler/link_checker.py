# site_audit/crawler/link_checker.py
"""
Second crawl phase: sequential existence check of every observed link.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, Iterable, Optional

from aiohttp import ClientError

from site_audit.crawler.fetcher import NETWORK_ERROR, TIMEOUT, Fetcher
from site_audit.crawler.models import LinkStatus, ProgressEvent
from site_audit.logger import get_logger
from site_audit.utils import remove_duplicates

log = get_logger("links")

ProgressCallback = Callable[[ProgressEvent], None]
Throttle = Callable[[], Awaitable[None]]


class LinkChecker:
    """Checks each URL at most once per run; results live in :attr:`cache`.

    ``throttle`` is awaited before every real request, so the crawl phase
    and this phase can share one rate limiter.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        throttle: Optional[Throttle] = None,
        cache: Optional[Dict[str, LinkStatus]] = None,
    ) -> None:
        self.fetcher = fetcher
        self.throttle = throttle
        self.cache: Dict[str, LinkStatus] = {} if cache is None else cache
        self.requests = 0

    async def check(self, url: str) -> LinkStatus:
        cached = self.cache.get(url)
        if cached is not None:
            return cached
        if self.throttle is not None:
            await self.throttle()
        self.requests += 1
        try:
            status = await self.fetcher.head(url)
        except asyncio.TimeoutError:
            status = LinkStatus(error=True, status=TIMEOUT)
        except ClientError as exc:
            log.debug("Check of %s failed: %r", url, exc)
            status = LinkStatus(error=True, status=NETWORK_ERROR)
        if status.error:
            log.info("Broken link %s (%s)", url, status.status)
        self.cache[url] = status
        return status

    async def check_all(
        self,
        urls: Iterable[str],
        on_progress: Optional[ProgressCallback] = None,
    ) -> Dict[str, LinkStatus]:
        pending = remove_duplicates(list(urls))
        total = len(pending)
        for done, url in enumerate(pending, start=1):
            await self.check(url)
            if on_progress is not None:
                on_progress(ProgressEvent(done, total, f"Checked {url}"))
        return self.cache
