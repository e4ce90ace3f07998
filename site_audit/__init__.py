# site_audit/__init__.py
"""
SiteAudit package initializer.
Defines package version; the CLI entry point is ``site_audit.cli:cli``.
"""
__version__ = "0.1.0"

__all__ = ["__version__"]
