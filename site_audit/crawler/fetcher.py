# site_audit/crawler/fetcher.py
"""
Fetcher module: handles HTTP requests with retry/backoff and timeout.

The crawler only depends on the :class:`Fetcher` protocol, so a direct
connection, a proxy or an in-memory fake can be plugged in.
"""
from __future__ import annotations

import asyncio
import random
import time
from typing import Optional, Protocol, Sequence

from aiohttp import ClientError, ClientSession, ClientTimeout

from site_audit.config import AuditConfig
from site_audit.crawler.models import FetchResult, LinkStatus
from site_audit.logger import get_logger

log = get_logger("fetcher")

TIMEOUT = "timeout"
NETWORK_ERROR = "network error"

_TEXT_TYPES = ("text/", "application/xhtml+xml", "application/xml")


class Fetcher(Protocol):
    async def get(self, url: str) -> FetchResult: ...

    async def head(self, url: str) -> LinkStatus: ...


class HttpFetcher:
    """aiohttp-backed :class:`Fetcher` with retries on 429/5xx and transport errors."""

    _RETRY_STATUS: Sequence[int] = tuple(range(500, 600)) + (429,)
    _HEAD_UNSUPPORTED: Sequence[int] = (405, 501)

    def __init__(self, session: ClientSession, config: AuditConfig, backoff: float = 0.5) -> None:
        self.session = session
        self.config = config
        self.backoff = backoff
        self._page_timeout = ClientTimeout(total=config.timeout)
        self._link_timeout = ClientTimeout(total=config.link_timeout)

    async def get(self, url: str) -> FetchResult:
        """GET *url*; never raises for transport problems, see ``FetchResult.error``."""
        attempts = 0
        while True:
            started = time.monotonic()
            error: Optional[str] = None
            try:
                async with self.session.get(
                    url, timeout=self._page_timeout, proxy=self.config.proxy
                ) as resp:
                    status = resp.status
                    ctype = resp.headers.get("Content-Type", "")
                    retry = status in self._RETRY_STATUS and attempts < self.config.retry_times
                    body = ""
                    if not retry and ctype.lower().startswith(_TEXT_TYPES):
                        body = await resp.text(errors="replace")
            except asyncio.TimeoutError:
                error = TIMEOUT
            except ClientError as exc:
                log.debug("GET %s failed: %r", url, exc)
                error = NETWORK_ERROR
            elapsed = int((time.monotonic() - started) * 1000)

            if error is None and not retry:
                return FetchResult(url, status, ctype, body, elapsed_ms=elapsed)
            if error is not None and attempts >= self.config.retry_times:
                log.warning("Failed %s: %s", url, error)
                return FetchResult(url, 0, error=error, elapsed_ms=elapsed)

            attempts += 1
            delay = self._backoff_delay(attempts)
            log.debug("Retry %d/%d for %s after %.2f s", attempts, self.config.retry_times, url, delay)
            await asyncio.sleep(delay)

    async def head(self, url: str) -> LinkStatus:
        """Lightweight existence check; falls back to GET when HEAD is refused."""
        try:
            status = await self._status(url, "HEAD")
            if status in self._HEAD_UNSUPPORTED:
                status = await self._status(url, "GET")
        except asyncio.TimeoutError:
            return LinkStatus(error=True, status=TIMEOUT)
        except ClientError as exc:
            log.debug("HEAD %s failed: %r", url, exc)
            return LinkStatus(error=True, status=NETWORK_ERROR)
        return LinkStatus(error=status >= 400, status=status)

    async def _status(self, url: str, method: str) -> int:
        async with self.session.request(
            method,
            url,
            allow_redirects=True,
            timeout=self._link_timeout,
            proxy=self.config.proxy,
        ) as resp:
            return resp.status

    def _backoff_delay(self, attempt: int) -> float:
        return min(60.0, self.backoff * 2 ** (attempt - 1) + random.random() * self.backoff)
