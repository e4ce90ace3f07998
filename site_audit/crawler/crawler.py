# === FILE: site_audit/crawler/crawler.py ===
from __future__ import annotations

import asyncio
import time
from typing import Callable, Optional

from aiohttp import ClientSession

from site_audit.config import AuditConfig
from site_audit.crawler.consolidator import consolidate
from site_audit.crawler.fetcher import Fetcher, HttpFetcher
from site_audit.crawler.frontier import Frontier
from site_audit.crawler.link_checker import LinkChecker
from site_audit.crawler.models import FetchResult, LinkStatus, PageRecord, ProgressEvent
from site_audit.crawler.robots import RobotsRules, robots_url_for
from site_audit.crawler.session import BlockedUrl, CrawlSession
from site_audit.logger import get_logger
from site_audit.parser.html_parser import analyze_page
from site_audit.utils import is_same_origin, normalize_url

__all__ = ("SiteCrawler", "CrawlCancelled")

ProgressCallback = Callable[[ProgressEvent], None]


class CrawlCancelled(Exception):
    """Raised when the cancel event is set; the run's state is discarded."""


class SiteCrawler:
    """Последовательный краулер: robots.txt, пауза между запросами, проверка ссылок.

    Usage::

        async with SiteCrawler(config) as crawler:
            session = await crawler.run()
    """

    def __init__(
        self,
        config: AuditConfig,
        fetcher: Optional[Fetcher] = None,
        on_progress: Optional[ProgressCallback] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> None:
        self.config = config
        self.fetcher = fetcher
        self.on_progress = on_progress
        self.cancel = cancel
        self.http: Optional[ClientSession] = None
        self.logger = get_logger("crawler")
        self._last_request_ts = 0.0
        self._crawl_delay: Optional[float] = None

    async def __aenter__(self) -> SiteCrawler:
        if self.fetcher is None:
            self.http = ClientSession(
                headers={"User-Agent": self.config.user_agent},
                raise_for_status=False,
            )
            self.fetcher = HttpFetcher(self.http, self.config)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.http and not self.http.closed:
            await self.http.close()

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #

    def new_session(self) -> CrawlSession:
        seed = normalize_url(self.config.seed)
        frontier = Frontier(self.config.max_depth, self.config.max_pages)
        return CrawlSession(seed=seed, frontier=frontier)

    async def run(self) -> CrawlSession:
        """Both phases: crawl until the frontier drains, then verify links."""
        session = self.new_session()
        await self.load_robots(session)
        await self.crawl(session)
        if self.config.check_links:
            await self.verify_links(session)
        return session

    async def load_robots(self, session: CrawlSession) -> None:
        url = robots_url_for(session.seed)
        result = await self._get(url)
        if result.ok:
            session.robots = RobotsRules.parse(result.body)
            self._crawl_delay = session.robots.crawl_delay
            self.logger.debug(
                "robots.txt: %d disallow, %d allow rules",
                len(session.robots.disallow),
                len(session.robots.allow),
            )
        else:
            # fetch failure means allow everything
            session.robots = RobotsRules.allow_all()
            self.logger.debug("robots.txt %s -> %s", url, result.error or result.status)

    async def crawl(self, session: CrawlSession) -> None:
        self.logger.info("Старт обхода: %s", session.seed)
        start = time.monotonic()
        frontier = session.frontier
        frontier.push(session.seed, 0)

        while frontier:
            if self.cancel is not None and self.cancel.is_set():
                self.logger.warning("Crawl cancelled after %d URLs", session.processed)
                raise CrawlCancelled(session.seed)

            entry = frontier.pop()
            session.processed += 1
            if entry.depth > self.config.max_depth or frontier.is_visited(entry.url):
                self._progress(session, f"Skipped {entry.url}")
                continue
            frontier.mark_visited(entry.url)

            if not session.robots.is_allowed(entry.url):
                session.blocked[entry.url] = BlockedUrl(entry.url, entry.depth)
                self.logger.info("Disallowed by robots.txt: %s", entry.url)
                self._progress(session, f"Blocked {entry.url}")
                continue

            result = await self._get(entry.url)
            session.link_status[entry.url] = LinkStatus(
                error=result.error is not None or result.status >= 400,
                status=result.error or result.status,
            )
            record = self._analyze(session, result, entry.depth)
            consolidate(session.pages, record)
            session.aliases[entry.url] = record.canonical

            for link in record.internal_links:
                frontier.push(link.url, entry.depth + 1)
            self._progress(session, f"Crawled {entry.url}")

        duration = time.monotonic() - start
        self.logger.info(
            "Завершено: %d URL, %d страниц за %.2f с",
            session.processed,
            len(session.pages),
            duration,
        )
        if frontier.rejected_by_cap:
            self.logger.info("Page cap %d reached, %d links not queued", frontier.max_pages, frontier.rejected_by_cap)
        if session.blocked:
            self.logger.info("Заблокировано robots.txt: %d", len(session.blocked))

    async def verify_links(self, session: CrawlSession) -> None:
        if self.fetcher is None:
            raise RuntimeError("Fetcher not initialized")
        # pages fetched in phase one are already in the cache
        pending = []
        for url in session.observed_links():
            if url in session.link_status:
                continue
            if self.config.strict_robots and self._is_disallowed(session, url):
                session.unchecked.add(url)
                continue
            pending.append(url)

        self.logger.info("Checking %d links", len(pending))
        checker = LinkChecker(self.fetcher, throttle=self._wait_for_politeness, cache=session.link_status)
        await checker.check_all(pending, on_progress=self.on_progress)

    # ------------------------------------------------------------------ #
    # Internals                                                          #
    # ------------------------------------------------------------------ #

    async def _get(self, url: str) -> FetchResult:
        if self.fetcher is None:
            raise RuntimeError("Fetcher not initialized")
        await self._wait_for_politeness()
        return await self.fetcher.get(url)

    async def _wait_for_politeness(self) -> None:
        interval = self.config.delay
        if self.config.strict_robots and self._crawl_delay:
            interval = max(interval, self._crawl_delay)
        now = time.monotonic()
        wait = interval - (now - self._last_request_ts)
        if self._last_request_ts and wait > 0:
            await asyncio.sleep(wait)
        self._last_request_ts = time.monotonic()

    def _analyze(self, session: CrawlSession, result: FetchResult, depth: int) -> PageRecord:
        try:
            return analyze_page(result, depth, session.origin)
        except Exception as exc:
            self.logger.warning("Could not parse %s: %s", result.url, exc)
            return PageRecord(
                url=result.url,
                canonical=result.url,
                status=result.status,
                depth=depth,
                content_type=result.content_type,
                fetch_error=result.error,
            )

    def _progress(self, session: CrawlSession, message: str) -> None:
        if self.on_progress is None:
            return
        total = min(session.processed + len(session.frontier), self.config.max_pages)
        self.on_progress(ProgressEvent(session.processed, max(total, session.processed), message))

    @staticmethod
    def _is_disallowed(session: CrawlSession, url: str) -> bool:
        return is_same_origin(url, session.origin) and not session.robots.is_allowed(url)
