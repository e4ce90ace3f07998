# site_audit/crawler/consolidator.py
"""
Merges crawled variants of the same logical page into one canonical PageRecord.
"""
from __future__ import annotations

from typing import Dict

from site_audit.crawler.models import NonCanonicalSource, PageRecord
from site_audit.logger import get_logger

log = get_logger("consolidator")

_METADATA_FIELDS = (
    "url",
    "status",
    "content_type",
    "fetch_error",
    "is_html",
    "title",
    "description",
    "h1s",
    "noindex",
    "nofollow",
    "word_count",
    "lang",
    "og_title",
    "og_image",
    "has_structured_data",
    "images_total",
    "images_missing_alt",
    "load_time_ms",
)


def _as_source(record: PageRecord) -> NonCanonicalSource:
    return NonCanonicalSource(
        url=record.url,
        status=record.status,
        noindex=record.noindex,
        fetch_error=record.fetch_error,
    )


def consolidate(pages: Dict[str, PageRecord], record: PageRecord) -> PageRecord:
    """File *record* under its canonical URL in *pages* and return the stored record.

    * New canonical: *record* is stored as is; if it was crawled at a
      different URL, that URL is also listed as a non-canonical source.
    * Existing canonical: the stored metadata is kept, outgoing links are
      appended and the variant is listed as a non-canonical source.
    * The canonical URL itself arriving after a variant: its metadata
      replaces the variant's, links and sources are kept.
    """
    key = record.canonical
    existing = pages.get(key)

    if existing is None:
        if record.url != key:
            record.non_canonical_sources[record.url] = _as_source(record)
        pages[key] = record
        return record

    existing.links.extend(record.links)
    if record.url == key and existing.url != key:
        log.debug("Canonical page %s replaces metadata from %s", key, existing.url)
        for name in _METADATA_FIELDS:
            setattr(existing, name, getattr(record, name))
    else:
        existing.non_canonical_sources[record.url] = _as_source(record)
    return existing
