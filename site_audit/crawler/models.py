# site_audit/crawler/models.py
"""
Data models for the SiteAudit crawler.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union

NO_ANCHOR_TEXT = "[no anchor text]"
NO_ALT_TEXT = "[no alt text]"

_HTML_TYPES = ("text/html", "application/xhtml+xml")


@dataclass(slots=True)
class FetchResult:
    """Outcome of a single GET: HTTP status, content type and body.

    ``status`` is ``0`` and ``error`` is set when no response was received.
    """

    url: str
    status: int
    content_type: str = ""
    body: str = ""
    error: Optional[str] = None
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None and 200 <= self.status < 300

    @property
    def is_html(self) -> bool:
        mime = self.content_type.split(";", 1)[0].strip().lower()
        return mime in _HTML_TYPES


@dataclass(slots=True)
class LinkStatus:
    """Result of an existence check; ``status`` is an HTTP code or a failure label."""

    error: bool
    status: Union[int, str]


@dataclass(slots=True, frozen=True)
class FrontierEntry:
    url: str
    depth: int


class LinkKind(str, Enum):
    INTERNAL = "internal"
    EXTERNAL = "external"
    IMAGE = "image"


@dataclass(slots=True)
class OutgoingLink:
    url: str
    kind: LinkKind
    anchor_text: str = NO_ANCHOR_TEXT


@dataclass(slots=True)
class NonCanonicalSource:
    """Another crawled URL whose canonical link points at a record."""

    url: str
    status: int
    noindex: bool = False
    fetch_error: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.fetch_error is not None or self.status >= 400


@dataclass(slots=True)
class PageRecord:
    """Consolidated crawl state of one logical page, keyed by its canonical URL."""

    url: str
    canonical: str
    status: int
    depth: int
    content_type: str = ""
    fetch_error: Optional[str] = None
    is_html: bool = False
    title: str = ""
    description: str = ""
    h1s: List[str] = field(default_factory=list)
    noindex: bool = False
    nofollow: bool = False
    word_count: int = 0
    lang: str = ""
    og_title: str = ""
    og_image: str = ""
    has_structured_data: bool = False
    images_total: int = 0
    images_missing_alt: int = 0
    load_time_ms: int = 0
    links: List[OutgoingLink] = field(default_factory=list)
    incoming_count: int = 0
    non_canonical_sources: Dict[str, NonCanonicalSource] = field(default_factory=dict)

    @property
    def is_error(self) -> bool:
        return self.fetch_error is not None or self.status >= 400

    @property
    def internal_links(self) -> List[OutgoingLink]:
        return [link for link in self.links if link.kind is LinkKind.INTERNAL]


@dataclass(slots=True)
class ProgressEvent:
    completed: int
    total: int
    message: str
