# File: site_audit/aggregator.py
"""site_audit.aggregator: Сборка итогового отчёта аудита из результатов обхода."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from site_audit.config import AuditConfig
from site_audit.crawler.models import LinkKind, LinkStatus, PageRecord
from site_audit.crawler.session import CrawlSession
from site_audit.rules import Issue, Severity, evaluate

#: штраф к оценке здоровья сайта за одну проблему
SEVERITY_PENALTY: Dict[Severity, int] = {
    Severity.CRITICAL: 10,
    Severity.HIGH: 5,
    Severity.MEDIUM: 2,
    Severity.LOW: 1,
    Severity.INFO: 0,
}


@dataclass(slots=True)
class PageStats:
    """Сводка по одной канонической странице."""

    url: str
    status: Any
    depth: int
    word_count: int
    outgoing_links: int
    internal_links: int
    external_links: int
    images: int
    incoming_links: int
    issues: int = 0


@dataclass(slots=True)
class AuditReport:
    """Результаты аудита: отсортированные проблемы, страницы и статусы ссылок."""

    seed_url: str
    issues: List[Issue] = field(default_factory=list)
    pages: Dict[str, PageRecord] = field(default_factory=dict)
    link_status: Dict[str, LinkStatus] = field(default_factory=dict)
    page_stats: List[PageStats] = field(default_factory=list)
    summary: Dict[str, int] = field(default_factory=dict)
    health_score: int = 100
    urls_processed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seed_url": self.seed_url,
            "health_score": self.health_score,
            "urls_processed": self.urls_processed,
            "summary": dict(self.summary),
            "issues": [issue.to_dict() for issue in self.issues],
            "pages": {key: _record_to_dict(record) for key, record in self.pages.items()},
            "page_stats": [asdict(stats) for stats in self.page_stats],
            "link_status": {url: asdict(status) for url, status in self.link_status.items()},
        }

    def json(self, *, pretty: bool = False) -> str:
        """Возвращает JSON-представление отчёта."""
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)

    def issue_rows(self) -> List[Dict[str, Any]]:
        """Плоские строки проблем для табличного экспорта (details сериализованы в JSON)."""
        rows = []
        for issue in self.issues:
            row = issue.to_dict()
            row["details"] = json.dumps(row["details"], ensure_ascii=False)
            rows.append(row)
        return rows

    @property
    def has_issues(self) -> bool:
        return bool(self.issues)


def _record_to_dict(record: PageRecord) -> Dict[str, Any]:
    data = asdict(record)
    data["links"] = [
        {"url": link.url, "kind": link.kind.value, "anchor_text": link.anchor_text}
        for link in record.links
    ]
    return data


def _page_stats(record: PageRecord, issue_counts: Dict[str, int]) -> PageStats:
    kinds = [link.kind for link in record.links]
    return PageStats(
        url=record.canonical,
        status=record.fetch_error or record.status,
        depth=record.depth,
        word_count=record.word_count,
        outgoing_links=len(record.links),
        internal_links=kinds.count(LinkKind.INTERNAL),
        external_links=kinds.count(LinkKind.EXTERNAL),
        images=kinds.count(LinkKind.IMAGE),
        incoming_links=record.incoming_count,
        issues=issue_counts.get(record.canonical, 0),
    )


def health_score(issues: List[Issue]) -> int:
    score = 100 - sum(SEVERITY_PENALTY[issue.severity] for issue in issues)
    return max(0, score)


def build_report(session: CrawlSession, config: Optional[AuditConfig] = None) -> AuditReport:
    """Собирает проблемы и статистику по страницам в AuditReport.

    Отсутствие проблем тоже корректный результат: отчёт с пустым списком.
    """
    low_word_count = config.low_word_count if config is not None else 250
    issues = evaluate(
        session.pages,
        session.link_status,
        aliases=session.aliases,
        blocked=session.blocked.values(),
        low_word_count=low_word_count,
    )

    issue_counts: Dict[str, int] = {}
    for issue in issues:
        issue_counts[issue.source_page] = issue_counts.get(issue.source_page, 0) + 1

    summary = {severity.label: 0 for severity in Severity}
    for issue in issues:
        summary[issue.severity.label] += 1

    return AuditReport(
        seed_url=session.seed,
        issues=issues,
        pages=dict(session.pages),
        link_status=dict(session.link_status),
        page_stats=[_page_stats(record, issue_counts) for record in session.pages.values()],
        summary=summary,
        health_score=health_score(issues),
        urls_processed=session.processed,
    )
