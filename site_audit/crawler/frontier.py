# site_audit/crawler/frontier.py
"""
FIFO crawl frontier with visited/queued dedup, depth limit and page cap.
"""
from __future__ import annotations

from collections import deque
from typing import Deque, Optional, Set

from site_audit.crawler.models import FrontierEntry
from site_audit.utils import normalize_url


class Frontier:
    """Breadth-first queue of :class:`FrontierEntry`.

    The ``max_pages`` cap counts every URL ever admitted (visited + queued)
    and is enforced only in :meth:`push`.
    """

    def __init__(self, max_depth: int, max_pages: Optional[int] = None) -> None:
        self.max_depth = max_depth
        self.max_pages = max_pages
        self.visited: Set[str] = set()
        self._queue: Deque[FrontierEntry] = deque()
        self._queued: Set[str] = set()
        self.rejected_by_cap = 0

    def __len__(self) -> int:
        return len(self._queue)

    def __bool__(self) -> bool:
        return bool(self._queue)

    @property
    def admitted(self) -> int:
        return len(self.visited) + len(self._queue)

    def push(self, url: str, depth: int) -> bool:
        """Enqueue *url* at *depth*; returns False when the entry is refused."""
        url = normalize_url(url)
        if depth > self.max_depth or url in self.visited or url in self._queued:
            return False
        if self.max_pages is not None and self.admitted >= self.max_pages:
            self.rejected_by_cap += 1
            return False
        self._queue.append(FrontierEntry(url, depth))
        self._queued.add(url)
        return True

    def pop(self) -> FrontierEntry:
        entry = self._queue.popleft()
        self._queued.discard(entry.url)
        return entry

    def is_visited(self, url: str) -> bool:
        return url in self.visited

    def mark_visited(self, url: str) -> None:
        self.visited.add(url)
