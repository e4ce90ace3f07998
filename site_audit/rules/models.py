# File: site_audit/rules/models.py
"""site_audit.rules.models: Issue, severity levels and per-rule detail payloads."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional, Union


class Severity(IntEnum):
    """Ordered so that sorting ascending puts critical first."""

    CRITICAL = 0
    HIGH = 1
    MEDIUM = 2
    LOW = 3
    INFO = 4

    @property
    def label(self) -> str:
        return self.name.lower()


class IssueType(str, Enum):
    CRAWL_ERROR = "crawl_error"
    BROKEN_LINK = "broken_link"
    NOINDEX = "noindex"
    NOFOLLOW = "nofollow"
    MISSING_TITLE = "missing_title"
    DUPLICATE_TITLE = "duplicate_title"
    TITLE_LENGTH = "title_length"
    MISSING_DESCRIPTION = "missing_description"
    DUPLICATE_DESCRIPTION = "duplicate_description"
    DESCRIPTION_LENGTH = "description_length"
    MISSING_H1 = "missing_h1"
    MULTIPLE_H1 = "multiple_h1"
    LOW_WORD_COUNT = "low_word_count"
    MISSING_ALT_TEXT = "missing_alt_text"
    CANONICAL_MISMATCH = "canonical_mismatch"
    ORPHAN_PAGE = "orphan_page"
    NON_CANONICAL_ERROR = "non_canonical_error"
    NON_CANONICAL_NOINDEX = "non_canonical_noindex"
    ROBOTS_DISALLOWED = "robots_disallowed"


# --------------------------------------------------------------------------- #
# Detail payloads, one shape per issue type                                   #
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class CrawlErrorDetails:
    status: int
    error: Optional[str] = None


@dataclass(slots=True)
class BrokenLinkDetails:
    url: str
    kind: str
    anchor_text: str
    status: Union[int, str]


@dataclass(slots=True)
class RobotsMetaDetails:
    directive: str


@dataclass(slots=True)
class MissingElementDetails:
    element: str


@dataclass(slots=True)
class DuplicateDetails:
    value: str
    urls: List[str] = field(default_factory=list)


@dataclass(slots=True)
class LengthDetails:
    length: int
    minimum: int
    maximum: int


@dataclass(slots=True)
class MultipleH1Details:
    h1s: List[str]


@dataclass(slots=True)
class WordCountDetails:
    word_count: int
    threshold: int


@dataclass(slots=True)
class MissingAltDetails:
    missing: int
    total: int


@dataclass(slots=True)
class CanonicalMismatchDetails:
    url: str
    canonical: str


@dataclass(slots=True)
class OrphanDetails:
    depth: int


@dataclass(slots=True)
class NonCanonicalDetails:
    url: str
    status: Union[int, str]
    noindex: bool


@dataclass(slots=True)
class RobotsDisallowedDetails:
    url: str


IssueDetails = Union[
    CrawlErrorDetails,
    BrokenLinkDetails,
    RobotsMetaDetails,
    MissingElementDetails,
    DuplicateDetails,
    LengthDetails,
    MultipleH1Details,
    WordCountDetails,
    MissingAltDetails,
    CanonicalMismatchDetails,
    OrphanDetails,
    NonCanonicalDetails,
    RobotsDisallowedDetails,
]


@dataclass(slots=True)
class Issue:
    source_page: str
    page_title: str
    page_status: Union[int, str]
    word_count: int
    outgoing_link_count: int
    incoming_link_count: int
    depth: int
    issue_type: IssueType
    severity: Severity
    details: IssueDetails

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_page": self.source_page,
            "page_title": self.page_title,
            "page_status": self.page_status,
            "word_count": self.word_count,
            "outgoing_link_count": self.outgoing_link_count,
            "incoming_link_count": self.incoming_link_count,
            "depth": self.depth,
            "issue_type": self.issue_type.value,
            "severity": self.severity.label,
            "details": asdict(self.details),
        }
