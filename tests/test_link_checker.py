# File: tests/test_link_checker.py
import asyncio

import pytest
from aiohttp import ClientConnectionError

from conftest import FakeFetcher
from site_audit.crawler.link_checker import LinkChecker
from site_audit.crawler.models import LinkStatus


@pytest.mark.asyncio()
async def test_each_url_checked_once():
    fetcher = FakeFetcher({"https://ex.com/a": "<p>a</p>"})
    checker = LinkChecker(fetcher)

    first = await checker.check("https://ex.com/a")
    second = await checker.check("https://ex.com/a")

    assert first == second == LinkStatus(False, 200)
    assert fetcher.head_calls == ["https://ex.com/a"]
    assert checker.requests == 1


@pytest.mark.asyncio()
async def test_seeded_cache_skips_requests():
    fetcher = FakeFetcher()
    cache = {"https://ex.com/": LinkStatus(False, 200)}
    checker = LinkChecker(fetcher, cache=cache)

    result = await checker.check_all(["https://ex.com/", "https://ex.com/missing", "https://ex.com/missing"])

    assert fetcher.head_calls == ["https://ex.com/missing"]
    assert result is cache
    assert result["https://ex.com/missing"] == LinkStatus(True, 404)


@pytest.mark.asyncio()
async def test_failure_labels_are_kept():
    fetcher = FakeFetcher(heads={"https://slow.example/": LinkStatus(True, "timeout")})
    status = await LinkChecker(fetcher).check("https://slow.example/")
    assert status.error and status.status == "timeout"


@pytest.mark.asyncio()
async def test_progress_reports_every_check():
    fetcher = FakeFetcher({"https://ex.com/a": "a", "https://ex.com/b": "b"})
    events = []
    await LinkChecker(fetcher).check_all(["https://ex.com/a", "https://ex.com/b"], on_progress=events.append)

    assert [(e.completed, e.total) for e in events] == [(1, 2), (2, 2)]
    assert events[-1].message.endswith("https://ex.com/b")


class RaisingFetcher(FakeFetcher):
    def __init__(self, exc):
        super().__init__()
        self.exc = exc

    async def head(self, url):
        self.head_calls.append(url)
        raise self.exc


@pytest.mark.asyncio()
@pytest.mark.parametrize(
    "exc,label",
    [(asyncio.TimeoutError(), "timeout"), (ClientConnectionError("refused"), "network error")],
)
async def test_fetcher_exceptions_become_error_status(exc, label):
    checker = LinkChecker(RaisingFetcher(exc))
    status = await checker.check("https://ex.com/x")
    assert status == LinkStatus(True, label)
    assert checker.cache["https://ex.com/x"] == status


@pytest.mark.asyncio()
async def test_throttle_awaited_before_each_request():
    calls = []

    async def throttle():
        calls.append(len(fetcher.head_calls))

    fetcher = FakeFetcher({"https://ex.com/a": "a"})
    cache = {"https://ex.com/": LinkStatus(False, 200)}
    checker = LinkChecker(fetcher, throttle=throttle, cache=cache)
    await checker.check_all(["https://ex.com/", "https://ex.com/a", "https://ex.com/b"])

    # cached URLs are not throttled; the pause comes before each request
    assert calls == [0, 1]
