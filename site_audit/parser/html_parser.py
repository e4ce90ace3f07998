# === FILE: site_audit/parser/html_parser.py ===
"""HTML parsing utilities for SiteAudit.

The crawler never talks to BeautifulSoup directly: everything it needs from a
document goes through the :class:`DocumentSignals` protocol, implemented here
by :class:`SoupDocument`.  :func:`analyze_page` turns a fetched response into a
:class:`~site_audit.crawler.models.PageRecord`:

* non-2xx or failed fetches → record with the failing status, no signals;
* 2xx non-markup responses → record with status and content type only;
* 2xx markup → title, description, H1s, canonical, robots meta, word count,
  links and images, each link resolved, normalised and classified.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Iterator, List, Optional, Protocol, Tuple

from bs4 import BeautifulSoup
from bs4.element import Tag

from site_audit.crawler.models import (
    NO_ALT_TEXT,
    NO_ANCHOR_TEXT,
    FetchResult,
    LinkKind,
    OutgoingLink,
    PageRecord,
)
from site_audit.logger import get_logger
from site_audit.utils import is_same_origin, normalize_url, resolve_url

__all__: Sequence[str] = ("DocumentSignals", "SoupDocument", "RawLink", "analyze_page")

log = get_logger("parser")


@dataclass(slots=True)
class RawLink:
    """An unresolved ``href``/``src`` value together with its visible text."""

    href: str
    text: str


class DocumentSignals(Protocol):
    """What the analyzer reads from a markup document."""

    def title(self) -> str: ...

    def description(self) -> str: ...

    def h1s(self) -> List[str]: ...

    def canonical(self) -> Optional[str]: ...

    def robots_meta(self) -> str: ...

    def links(self) -> List[RawLink]: ...

    def images(self) -> List[RawLink]: ...

    def lang(self) -> str: ...

    def meta_property(self, name: str) -> str: ...

    def has_structured_data(self) -> bool: ...

    def word_count(self) -> int: ...


class SoupDocument:
    """:class:`DocumentSignals` backed by BeautifulSoup's ``html.parser``."""

    _INVISIBLE = ("script", "style", "noscript", "template")

    def __init__(self, markup: str) -> None:
        self.soup = BeautifulSoup(markup, "html.parser")

    def title(self) -> str:
        tag = self.soup.find("title")
        return tag.get_text(strip=True) if tag else ""

    def description(self) -> str:
        return self._meta_content("name", "description")

    def h1s(self) -> List[str]:
        return [h1.get_text(" ", strip=True) for h1 in self.soup.find_all("h1")]

    def canonical(self) -> Optional[str]:
        for tag in self._tags("link"):
            rel = tag.get("rel") or []
            if isinstance(rel, str):
                rel = rel.split()
            if any(r.lower() == "canonical" for r in rel):
                href = tag.get("href")
                if isinstance(href, str) and href.strip():
                    return href.strip()
        return None

    def robots_meta(self) -> str:
        return self._meta_content("name", "robots").lower()

    def links(self) -> List[RawLink]:
        result: List[RawLink] = []
        for tag in self._tags("a"):
            href = tag.get("href")
            if isinstance(href, str):
                result.append(RawLink(href, tag.get_text(" ", strip=True)))
        return result

    def images(self) -> List[RawLink]:
        result: List[RawLink] = []
        for tag in self._tags("img"):
            src = tag.get("src")
            alt = tag.get("alt")
            result.append(
                RawLink(src if isinstance(src, str) else "", alt.strip() if isinstance(alt, str) else "")
            )
        return result

    def lang(self) -> str:
        html = self.soup.find("html")
        value = html.get("lang") if isinstance(html, Tag) else None
        return value.strip() if isinstance(value, str) else ""

    def meta_property(self, name: str) -> str:
        return self._meta_content("property", name)

    def has_structured_data(self) -> bool:
        return any(
            (tag.get("type") or "").lower() == "application/ld+json" for tag in self._tags("script")
        )

    def word_count(self) -> int:
        for element in self.soup(list(self._INVISIBLE)):
            element.decompose()
        root = self.soup.body or self.soup
        return len(root.get_text(" ").split())

    # Helpers ----------------------------------------------------------------
    def _tags(self, name: str) -> Iterator[Tag]:
        for tag in self.soup.find_all(name):
            if isinstance(tag, Tag):
                yield tag

    def _meta_content(self, attr: str, value: str) -> str:
        for tag in self._tags("meta"):
            key = tag.get(attr)
            if isinstance(key, str) and key.strip().lower() == value:
                content = tag.get("content")
                return content.strip() if isinstance(content, str) else ""
        return ""


# ---------------------------------------------------------------------------
# Public function
# ---------------------------------------------------------------------------


def _classify(url: str, origin: str) -> LinkKind:
    return LinkKind.INTERNAL if is_same_origin(url, origin) else LinkKind.EXTERNAL


def _outgoing_links(doc: DocumentSignals, page_url: str, origin: str) -> Tuple[List[OutgoingLink], int]:
    links: List[OutgoingLink] = []
    for raw in doc.links():
        url = resolve_url(page_url, raw.href)
        if url is None:
            continue
        links.append(OutgoingLink(url, _classify(url, origin), raw.text or NO_ANCHOR_TEXT))

    missing_alt = 0
    for raw in doc.images():
        if not raw.text:
            missing_alt += 1
        url = resolve_url(page_url, raw.href)
        if url is None:
            continue
        links.append(OutgoingLink(url, LinkKind.IMAGE, raw.text or NO_ALT_TEXT))
    return links, missing_alt


def analyze_page(
    result: FetchResult,
    depth: int,
    origin: str,
    document_factory=SoupDocument,
) -> PageRecord:
    """Build a :class:`PageRecord` for a fetched URL.

    Parameters
    ----------
    result
        The fetch outcome; ``result.url`` must already be normalised.
    depth
        Crawl depth at which the URL was dequeued.
    origin
        ``scheme://host`` of the crawl, used to classify links as internal.
    document_factory
        Callable building a :class:`DocumentSignals` from markup.
    """
    url = result.url
    record = PageRecord(
        url=url,
        canonical=url,
        status=result.status,
        depth=depth,
        content_type=result.content_type,
        fetch_error=result.error,
        load_time_ms=result.elapsed_ms,
    )
    if not result.ok or not result.is_html:
        return record

    doc: DocumentSignals = document_factory(result.body)
    record.is_html = True
    record.title = doc.title()
    record.description = doc.description()
    record.h1s = doc.h1s()

    declared = doc.canonical()
    canonical = resolve_url(url, declared) if declared else None
    if declared and canonical is None:
        log.debug("Unusable canonical %r on %s", declared, url)
    record.canonical = canonical or normalize_url(url)

    robots = doc.robots_meta()
    record.noindex = "noindex" in robots
    record.nofollow = "nofollow" in robots

    record.lang = doc.lang()
    record.og_title = doc.meta_property("og:title") or record.title
    record.og_image = doc.meta_property("og:image")
    record.has_structured_data = doc.has_structured_data()

    record.links, record.images_missing_alt = _outgoing_links(doc, url, origin)
    record.images_total = len(doc.images())
    # word_count strips invisible elements, so it runs last
    record.word_count = doc.word_count()
    return record
