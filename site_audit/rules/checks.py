# File: site_audit/rules/checks.py
"""site_audit.rules.checks: derive issues from consolidated page records.

Every rule is independent; a page may collect any number of issues. Rules run
after both crawl phases, so link statuses and incoming-link counts are known.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from site_audit.crawler.models import LinkStatus, PageRecord
from site_audit.crawler.session import BlockedUrl
from site_audit.logger import get_logger
from site_audit.rules.models import (
    BrokenLinkDetails,
    CanonicalMismatchDetails,
    CrawlErrorDetails,
    DuplicateDetails,
    Issue,
    IssueDetails,
    IssueType,
    LengthDetails,
    MissingAltDetails,
    MissingElementDetails,
    MultipleH1Details,
    NonCanonicalDetails,
    OrphanDetails,
    RobotsDisallowedDetails,
    RobotsMetaDetails,
    Severity,
    WordCountDetails,
)

log = get_logger("rules")

TITLE_LENGTH = (10, 60)
DESCRIPTION_LENGTH = (70, 160)


@dataclass
class RuleContext:
    pages: Mapping[str, PageRecord]
    link_status: Mapping[str, LinkStatus] = field(default_factory=dict)
    low_word_count: int = 250
    duplicate_titles: Dict[str, Tuple[str, List[str]]] = field(default_factory=dict)
    duplicate_descriptions: Dict[str, Tuple[str, List[str]]] = field(default_factory=dict)


Rule = Callable[[PageRecord, RuleContext], Iterator[Issue]]


def make_issue(
    record: PageRecord, issue_type: IssueType, severity: Severity, details: IssueDetails
) -> Issue:
    return Issue(
        source_page=record.canonical,
        page_title=record.title,
        page_status=record.fetch_error or record.status,
        word_count=record.word_count,
        outgoing_link_count=len(record.links),
        incoming_link_count=record.incoming_count,
        depth=record.depth,
        issue_type=issue_type,
        severity=severity,
        details=details,
    )


# --------------------------------------------------------------------------- #
# Pre-passes                                                                  #
# --------------------------------------------------------------------------- #


def compute_incoming_counts(
    pages: Mapping[str, PageRecord], aliases: Optional[Mapping[str, str]] = None
) -> None:
    """Count, for every canonical record, the distinct other records linking to it."""
    aliases = aliases or {}
    for record in pages.values():
        record.incoming_count = 0
    for key, record in pages.items():
        targets = {aliases.get(link.url, link.url) for link in record.internal_links}
        targets.discard(key)
        for target in targets:
            if target in pages:
                pages[target].incoming_count += 1


def _normalize_text(value: str) -> str:
    return " ".join(value.split()).casefold()


def find_duplicates(
    pages: Mapping[str, PageRecord], attr: str
) -> Dict[str, Tuple[str, List[str]]]:
    """Group pages by normalised *attr*; returns ``{representative: (value, urls)}``."""
    groups: Dict[str, List[PageRecord]] = {}
    for record in pages.values():
        value = getattr(record, attr)
        if value and record.is_html and not record.is_error:
            groups.setdefault(_normalize_text(value), []).append(record)
    return {
        records[0].canonical: (getattr(records[0], attr), [r.canonical for r in records])
        for records in groups.values()
        if len(records) > 1
    }


# --------------------------------------------------------------------------- #
# Rules                                                                       #
# --------------------------------------------------------------------------- #


def check_crawl_error(record: PageRecord, ctx: RuleContext) -> Iterator[Issue]:
    if record.is_error:
        yield make_issue(
            record,
            IssueType.CRAWL_ERROR,
            Severity.CRITICAL,
            CrawlErrorDetails(record.status, record.fetch_error),
        )


def check_broken_links(record: PageRecord, ctx: RuleContext) -> Iterator[Issue]:
    reported = set()
    for link in record.links:
        status = ctx.link_status.get(link.url)
        if status is None or not status.error or link.url in reported:
            continue
        reported.add(link.url)
        yield make_issue(
            record,
            IssueType.BROKEN_LINK,
            Severity.CRITICAL,
            BrokenLinkDetails(link.url, link.kind.value, link.anchor_text, status.status),
        )


def check_robots_meta(record: PageRecord, ctx: RuleContext) -> Iterator[Issue]:
    if record.noindex:
        yield make_issue(record, IssueType.NOINDEX, Severity.HIGH, RobotsMetaDetails("noindex"))
    if record.nofollow:
        yield make_issue(record, IssueType.NOFOLLOW, Severity.INFO, RobotsMetaDetails("nofollow"))


def _is_content_page(record: PageRecord) -> bool:
    return record.is_html and not record.is_error


def check_title(record: PageRecord, ctx: RuleContext) -> Iterator[Issue]:
    if not _is_content_page(record):
        return
    if not record.title:
        yield make_issue(record, IssueType.MISSING_TITLE, Severity.HIGH, MissingElementDetails("title"))
        return
    low, high = TITLE_LENGTH
    if not low <= len(record.title) <= high:
        yield make_issue(
            record, IssueType.TITLE_LENGTH, Severity.LOW, LengthDetails(len(record.title), low, high)
        )
    duplicate = ctx.duplicate_titles.get(record.canonical)
    if duplicate:
        yield make_issue(
            record, IssueType.DUPLICATE_TITLE, Severity.HIGH, DuplicateDetails(*duplicate)
        )


def check_description(record: PageRecord, ctx: RuleContext) -> Iterator[Issue]:
    if not _is_content_page(record):
        return
    if not record.description:
        yield make_issue(
            record,
            IssueType.MISSING_DESCRIPTION,
            Severity.MEDIUM,
            MissingElementDetails("meta description"),
        )
        return
    low, high = DESCRIPTION_LENGTH
    if not low <= len(record.description) <= high:
        yield make_issue(
            record,
            IssueType.DESCRIPTION_LENGTH,
            Severity.LOW,
            LengthDetails(len(record.description), low, high),
        )
    duplicate = ctx.duplicate_descriptions.get(record.canonical)
    if duplicate:
        yield make_issue(
            record, IssueType.DUPLICATE_DESCRIPTION, Severity.MEDIUM, DuplicateDetails(*duplicate)
        )


def check_headings(record: PageRecord, ctx: RuleContext) -> Iterator[Issue]:
    if not _is_content_page(record):
        return
    if not record.h1s:
        yield make_issue(record, IssueType.MISSING_H1, Severity.HIGH, MissingElementDetails("h1"))
    elif len(record.h1s) > 1:
        yield make_issue(
            record, IssueType.MULTIPLE_H1, Severity.LOW, MultipleH1Details(list(record.h1s))
        )


def check_content(record: PageRecord, ctx: RuleContext) -> Iterator[Issue]:
    if not _is_content_page(record):
        return
    if record.word_count < ctx.low_word_count:
        yield make_issue(
            record,
            IssueType.LOW_WORD_COUNT,
            Severity.MEDIUM,
            WordCountDetails(record.word_count, ctx.low_word_count),
        )
    if record.images_missing_alt:
        yield make_issue(
            record,
            IssueType.MISSING_ALT_TEXT,
            Severity.LOW,
            MissingAltDetails(record.images_missing_alt, record.images_total),
        )


def check_canonical(record: PageRecord, ctx: RuleContext) -> Iterator[Issue]:
    if record.url != record.canonical:
        yield make_issue(
            record,
            IssueType.CANONICAL_MISMATCH,
            Severity.HIGH,
            CanonicalMismatchDetails(record.url, record.canonical),
        )


def check_orphan(record: PageRecord, ctx: RuleContext) -> Iterator[Issue]:
    if record.incoming_count == 0 and record.depth > 0:
        yield make_issue(record, IssueType.ORPHAN_PAGE, Severity.HIGH, OrphanDetails(record.depth))


def check_non_canonical_sources(record: PageRecord, ctx: RuleContext) -> Iterator[Issue]:
    for source in record.non_canonical_sources.values():
        details = NonCanonicalDetails(source.url, source.fetch_error or source.status, source.noindex)
        if source.is_error:
            yield make_issue(record, IssueType.NON_CANONICAL_ERROR, Severity.HIGH, details)
        if source.noindex:
            yield make_issue(record, IssueType.NON_CANONICAL_NOINDEX, Severity.MEDIUM, details)


RULES: Tuple[Rule, ...] = (
    check_crawl_error,
    check_broken_links,
    check_robots_meta,
    check_title,
    check_description,
    check_headings,
    check_content,
    check_canonical,
    check_orphan,
    check_non_canonical_sources,
)


def _robots_issues(blocked: Iterable[BlockedUrl]) -> Iterator[Issue]:
    for item in blocked:
        yield Issue(
            source_page=item.url,
            page_title="",
            page_status="blocked",
            word_count=0,
            outgoing_link_count=0,
            incoming_link_count=0,
            depth=item.depth,
            issue_type=IssueType.ROBOTS_DISALLOWED,
            severity=Severity.INFO,
            details=RobotsDisallowedDetails(item.url),
        )


def evaluate(
    pages: Mapping[str, PageRecord],
    link_status: Optional[Mapping[str, LinkStatus]] = None,
    *,
    aliases: Optional[Mapping[str, str]] = None,
    blocked: Iterable[BlockedUrl] = (),
    low_word_count: int = 250,
    rules: Iterable[Rule] = RULES,
) -> List[Issue]:
    """Run every rule over every canonical record and return issues, critical first."""
    aliases = aliases or {}
    compute_incoming_counts(pages, aliases)
    ctx = RuleContext(
        pages=pages,
        link_status=link_status or {},
        low_word_count=low_word_count,
        duplicate_titles=find_duplicates(pages, "title"),
        duplicate_descriptions=find_duplicates(pages, "description"),
    )
    rules = tuple(rules)

    issues: List[Issue] = []
    for record in pages.values():
        for rule in rules:
            issues.extend(rule(record, ctx))
    issues.extend(_robots_issues(blocked))

    issues.sort(key=lambda issue: issue.severity)
    log.info("Найдено проблем: %d на %d страницах", len(issues), len(pages))
    return issues
