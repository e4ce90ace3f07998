# site_audit/crawler/session.py
"""
Per-run crawl state. A fresh :class:`CrawlSession` is built for every run and
owned by a single scheduler task, so nothing here needs locking.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, Set

from site_audit.crawler.frontier import Frontier
from site_audit.crawler.models import LinkStatus, PageRecord
from site_audit.crawler.robots import RobotsRules
from site_audit.utils import origin_of


@dataclass(slots=True)
class BlockedUrl:
    """URL disallowed by robots.txt; it is never fetched."""

    url: str
    depth: int


@dataclass
class CrawlSession:
    seed: str
    frontier: Frontier
    robots: RobotsRules = field(default_factory=RobotsRules.allow_all)
    pages: Dict[str, PageRecord] = field(default_factory=dict)
    aliases: Dict[str, str] = field(default_factory=dict)
    blocked: Dict[str, BlockedUrl] = field(default_factory=dict)
    link_status: Dict[str, LinkStatus] = field(default_factory=dict)
    unchecked: Set[str] = field(default_factory=set)
    processed: int = 0

    @property
    def origin(self) -> str:
        return origin_of(self.seed)

    def canonical_for(self, url: str) -> str:
        """Canonical key of a crawled URL, or the URL itself if never crawled."""
        return self.aliases.get(url, url)

    def observed_links(self) -> Iterator[str]:
        """Every distinct link URL seen on any page (pages, images, external)."""
        seen: Set[str] = set()
        for record in self.pages.values():
            for link in record.links:
                if link.url not in seen:
                    seen.add(link.url)
                    yield link.url
