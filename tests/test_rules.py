# File: tests/test_rules.py
import pytest

from site_audit.crawler.models import (
    LinkKind,
    LinkStatus,
    NonCanonicalSource,
    OutgoingLink,
    PageRecord,
)
from site_audit.crawler.session import BlockedUrl
from site_audit.rules import IssueType, Severity, compute_incoming_counts, evaluate

ROOT = "https://ex.com/"
GOOD_TITLE = "A perfectly fine page title"
GOOD_DESCRIPTION = "A description long enough to sit comfortably inside the recommended length window."


def page(url, *, depth=1, links=(), **fields):
    data = dict(
        status=200,
        is_html=True,
        title=f"{GOOD_TITLE} {url}",
        description=f"{GOOD_DESCRIPTION} {url}",
        h1s=["Heading"],
        word_count=500,
    )
    data.update(fields)
    return PageRecord(
        url=url,
        canonical=data.pop("canonical", url),
        depth=depth,
        links=[
            link if isinstance(link, OutgoingLink) else OutgoingLink(link, LinkKind.INTERNAL, "go")
            for link in links
        ],
        **data,
    )


def site(*records):
    pages = {record.canonical: record for record in records}
    if ROOT not in pages:
        others = [record.canonical for record in records]
        pages = {ROOT: page(ROOT, depth=0, links=others), **pages}
    return pages


def types_for(issues, url):
    return [issue.issue_type for issue in issues if issue.source_page == url]


def test_http_404_is_critical_crawl_error():
    pages = site(page("https://ex.com/gone", status=404, is_html=False, title="", h1s=[]))
    issues = evaluate(pages)

    errors = [i for i in issues if i.issue_type is IssueType.CRAWL_ERROR]
    assert len(errors) == 1
    assert errors[0].severity is Severity.CRITICAL
    assert errors[0].page_status == 404
    assert errors[0].details.status == 404
    # content rules skip error pages
    assert types_for(issues, "https://ex.com/gone") == [IssueType.CRAWL_ERROR]


def test_fetch_failure_reports_error_label():
    pages = site(page("https://ex.com/slow", status=0, fetch_error="timeout", is_html=False))
    issue = next(i for i in evaluate(pages) if i.issue_type is IssueType.CRAWL_ERROR)
    assert issue.page_status == "timeout"
    assert issue.details.error == "timeout"


def test_two_h1s_and_missing_title_are_both_reported():
    url = "https://ex.com/messy"
    pages = site(page(url, title="", h1s=["One", "Two"]))
    issues = evaluate(pages)

    found = types_for(issues, url)
    assert IssueType.MISSING_TITLE in found
    assert IssueType.MULTIPLE_H1 in found
    multiple = next(i for i in issues if i.issue_type is IssueType.MULTIPLE_H1)
    assert multiple.details.h1s == ["One", "Two"]
    assert multiple.severity is Severity.LOW


def test_missing_h1_and_description():
    url = "https://ex.com/bare"
    found = types_for(evaluate(site(page(url, h1s=[], description=""))), url)
    assert IssueType.MISSING_H1 in found
    assert IssueType.MISSING_DESCRIPTION in found
    assert IssueType.DESCRIPTION_LENGTH not in found


def test_orphan_only_below_seed():
    seed = page(ROOT, depth=0)
    lonely = page("https://ex.com/lonely", depth=2)
    issues = evaluate({ROOT: seed, lonely.canonical: lonely})

    orphans = [i for i in issues if i.issue_type is IssueType.ORPHAN_PAGE]
    assert [i.source_page for i in orphans] == ["https://ex.com/lonely"]
    assert orphans[0].details.depth == 2


def test_three_duplicate_titles_raise_one_batch():
    urls = [f"https://ex.com/p{n}" for n in range(3)]
    titles = ["Same Title Here", "same title   here", "SAME TITLE HERE"]
    pages = site(*(page(url, title=title) for url, title in zip(urls, titles)))
    issues = [i for i in evaluate(pages) if i.issue_type is IssueType.DUPLICATE_TITLE]

    assert len(issues) == 1
    assert issues[0].source_page == urls[0]
    assert issues[0].details.urls == urls
    assert issues[0].details.value == "Same Title Here"
    assert issues[0].severity is Severity.HIGH


def test_duplicate_descriptions_detected():
    urls = ["https://ex.com/a", "https://ex.com/b"]
    text = GOOD_DESCRIPTION
    pages = site(*(page(url, description=text) for url in urls))
    issues = [i for i in evaluate(pages) if i.issue_type is IssueType.DUPLICATE_DESCRIPTION]
    assert [i.source_page for i in issues] == ["https://ex.com/a"]
    assert issues[0].details.value == text
    assert issues[0].details.urls == urls


def test_canonical_incoming_link_counted_once():
    target = page("https://ex.com/b")
    source = page(
        "https://ex.com/a",
        links=["https://ex.com/b", "https://ex.com/b?ref=1", "https://ex.com/b", "https://ex.com/a"],
    )
    pages = {ROOT: page(ROOT, depth=0, links=["https://ex.com/a"]), source.url: source, target.url: target}
    compute_incoming_counts(pages, {"https://ex.com/b?ref=1": "https://ex.com/b"})

    assert pages["https://ex.com/b"].incoming_count == 1
    assert pages["https://ex.com/a"].incoming_count == 1
    assert pages[ROOT].incoming_count == 0


def test_broken_links_one_issue_per_target():
    bad = "https://ex.com/missing"
    ext = "https://other.com/dead"
    links = [
        OutgoingLink(bad, LinkKind.INTERNAL, "first"),
        OutgoingLink(bad, LinkKind.INTERNAL, "second"),
        OutgoingLink(ext, LinkKind.EXTERNAL, "partner"),
        OutgoingLink("https://ex.com/ok", LinkKind.INTERNAL, "fine"),
    ]
    pages = site(page("https://ex.com/src", links=links))
    status = {
        bad: LinkStatus(True, 404),
        ext: LinkStatus(True, "timeout"),
        "https://ex.com/ok": LinkStatus(False, 200),
    }
    broken = [i for i in evaluate(pages, status) if i.issue_type is IssueType.BROKEN_LINK]

    assert {(i.details.url, i.details.status) for i in broken} == {(bad, 404), (ext, "timeout")}
    internal = next(i for i in broken if i.details.url == bad)
    assert internal.details.anchor_text == "first"
    assert internal.details.kind == "internal"
    assert all(i.source_page == "https://ex.com/src" for i in broken)


def test_noindex_and_nofollow():
    url = "https://ex.com/hidden"
    issues = evaluate(site(page(url, noindex=True, nofollow=True)))
    severities = {i.issue_type: i.severity for i in issues if i.source_page == url}
    assert severities[IssueType.NOINDEX] is Severity.HIGH
    assert severities[IssueType.NOFOLLOW] is Severity.INFO


def test_non_canonical_sources_anomalies():
    record = page("https://ex.com/a")
    record.non_canonical_sources = {
        "https://ex.com/a?x=1": NonCanonicalSource("https://ex.com/a?x=1", 500),
        "https://ex.com/a?x=2": NonCanonicalSource("https://ex.com/a?x=2", 200, noindex=True),
        "https://ex.com/a?x=3": NonCanonicalSource("https://ex.com/a?x=3", 200),
    }
    issues = evaluate(site(record))

    errors = [i for i in issues if i.issue_type is IssueType.NON_CANONICAL_ERROR]
    noindex = [i for i in issues if i.issue_type is IssueType.NON_CANONICAL_NOINDEX]
    assert [i.details.url for i in errors] == ["https://ex.com/a?x=1"]
    assert [i.details.url for i in noindex] == ["https://ex.com/a?x=2"]
    assert errors[0].source_page == "https://ex.com/a"


def test_canonical_mismatch_when_url_differs():
    record = page("https://ex.com/a?ref=1", canonical="https://ex.com/a")
    issues = evaluate(site(record))
    mismatch = next(i for i in issues if i.issue_type is IssueType.CANONICAL_MISMATCH)
    assert mismatch.details.canonical == "https://ex.com/a"


def test_length_word_count_and_alt_rules():
    url = "https://ex.com/thin"
    record = page(url, title="Short", word_count=12, images_total=3, images_missing_alt=2)
    issues = evaluate(site(record), low_word_count=100)
    by_type = {i.issue_type: i for i in issues if i.source_page == url}

    assert by_type[IssueType.TITLE_LENGTH].details.length == 5
    assert by_type[IssueType.LOW_WORD_COUNT].details.threshold == 100
    assert by_type[IssueType.MISSING_ALT_TEXT].details.missing == 2


def test_robots_blocked_urls_are_info():
    blocked = [BlockedUrl("https://ex.com/private", 1)]
    issues = evaluate(site(), blocked=blocked)
    robots = [i for i in issues if i.issue_type is IssueType.ROBOTS_DISALLOWED]
    assert len(robots) == 1
    assert robots[0].severity is Severity.INFO
    assert robots[0].page_status == "blocked"
    assert robots[0].details.url == "https://ex.com/private"
    assert robots[0].depth == 1


def test_issues_sorted_critical_first():
    pages = site(
        page("https://ex.com/gone", status=500, is_html=False),
        page("https://ex.com/hidden", noindex=True, nofollow=True),
    )
    severities = [i.severity for i in evaluate(pages)]
    assert severities == sorted(severities)
    assert severities[0] is Severity.CRITICAL


def test_clean_site_has_no_issues():
    assert evaluate({ROOT: page(ROOT, depth=0)}) == []
    assert evaluate({}) == []


@pytest.mark.parametrize("severity,label", [(Severity.CRITICAL, "critical"), (Severity.INFO, "info")])
def test_issue_to_dict_uses_labels(severity, label):
    pages = site(page("https://ex.com/gone", status=404, is_html=False))
    issue = evaluate(pages)[0]
    issue.severity = severity
    data = issue.to_dict()
    assert data["severity"] == label
    assert data["issue_type"] == "crawl_error"
    assert data["details"]["status"] == 404
