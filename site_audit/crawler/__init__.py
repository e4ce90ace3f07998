# File: site_audit/crawler/__init__.py
"""site_audit.crawler: frontier, robots policy, fetcher and the two-phase crawl loop."""
