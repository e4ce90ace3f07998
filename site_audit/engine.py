# File: site_audit/engine.py
"""site_audit.engine: Orchestration layer для запуска аудита и сборки отчёта."""

from __future__ import annotations

import asyncio
from typing import Optional

from site_audit.aggregator import AuditReport, build_report
from site_audit.config import AuditConfig
from site_audit.crawler.crawler import ProgressCallback, SiteCrawler
from site_audit.crawler.fetcher import Fetcher
from site_audit.logger import logger

__all__ = ["start_audit"]


async def start_audit(
    config: AuditConfig,
    fetcher: Optional[Fetcher] = None,
    on_progress: Optional[ProgressCallback] = None,
    cancel: Optional[asyncio.Event] = None,
) -> AuditReport:
    """Обход сайта, проверка ссылок и сборка отчёта за один вызов.

    Без ``fetcher`` краулер открывает собственную aiohttp-сессию.
    """
    logger.info("Starting audit of %s", config.seed)
    async with SiteCrawler(config, fetcher=fetcher, on_progress=on_progress, cancel=cancel) as crawler:
        session = await crawler.run()
    report = build_report(session, config)
    logger.info(
        "Audit finished: %d pages, %d issues, health score %d",
        len(report.pages),
        len(report.issues),
        report.health_score,
    )
    return report
