# site_audit/logger.py
"""Логирование SiteAudit.

Все модули пишут в дочерние логгеры ``SiteAudit.<module>``
(см. :func:`get_logger`); обработчики висят только на корневом ``SiteAudit``.
CLI перенастраивает их через :func:`init_logging` (уровень, файл, формат).
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional, Union

LOGGER_NAME = "SiteAudit"
DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# ротация файла логов: 5 МБ, три архива
_MAX_BYTES = 5 * 1024 * 1024
_BACKUPS = 3


def _handlers(log_file: Optional[Union[str, Path]]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        handlers.append(
            RotatingFileHandler(str(log_file), maxBytes=_MAX_BYTES, backupCount=_BACKUPS, encoding="utf-8")
        )
    return handlers


def init_logging(
    level: Union[int, str] = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Заменяет обработчики логгера SiteAudit: stdout и, если задан, файл с ротацией."""
    root = logging.getLogger(LOGGER_NAME)
    root.setLevel(level)
    root.handlers.clear()
    formatter = logging.Formatter(log_format)
    for handler in _handlers(log_file):
        handler.setFormatter(formatter)
        root.addHandler(handler)
    # сообщения аудита не дублируются в корневой логгер приложения
    root.propagate = False
    return root


def get_logger(name: str) -> logging.Logger:
    """Дочерний логгер, например ``SiteAudit.crawler``."""
    return logging.getLogger(LOGGER_NAME).getChild(name)


logger: logging.Logger = init_logging()

__all__ = ["logger", "init_logging", "get_logger", "LOGGER_NAME", "DEFAULT_FORMAT"]
