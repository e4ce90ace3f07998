# File: site_audit/rules/__init__.py
"""site_audit.rules: SEO issue rules evaluated over consolidated crawl results."""

from .checks import RULES, compute_incoming_counts, evaluate, find_duplicates
from .models import Issue, IssueType, Severity

__all__ = [
    "Issue",
    "IssueType",
    "Severity",
    "RULES",
    "evaluate",
    "compute_incoming_counts",
    "find_duplicates",
]
