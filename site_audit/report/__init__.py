# File: site_audit/report/__init__.py
"""site_audit.report: запись отчёта аудита в файл, используется CLI."""

from .json_report import render_json

__all__ = ["render_json"]
