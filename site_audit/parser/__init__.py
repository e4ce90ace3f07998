# File: site_audit/parser/__init__.py
"""site_audit.parser: extraction of SEO signals from fetched documents."""

from .html_parser import DocumentSignals, SoupDocument, analyze_page

__all__ = ["DocumentSignals", "SoupDocument", "analyze_page"]
