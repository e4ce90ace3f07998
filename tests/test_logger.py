# File: tests/test_logger.py
import logging
from logging.handlers import RotatingFileHandler

import pytest

from site_audit.logger import LOGGER_NAME, get_logger, init_logging


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    for handler in logging.getLogger(LOGGER_NAME).handlers:
        handler.close()
    init_logging()


def test_init_logging_writes_to_file(tmp_path):
    log_file = tmp_path / "audit.log"
    root = init_logging(level="DEBUG", log_file=log_file, log_format="%(name)s:%(message)s")

    get_logger("crawler").debug("hello")
    for handler in root.handlers:
        handler.flush()

    assert log_file.read_text(encoding="utf-8").strip() == "SiteAudit.crawler:hello"
    assert any(isinstance(h, RotatingFileHandler) for h in root.handlers)
    assert root.propagate is False


def test_init_logging_replaces_handlers():
    init_logging()
    root = init_logging(level="ERROR")
    assert len(root.handlers) == 1
    assert root.level == logging.ERROR
    assert get_logger("rules").name == f"{LOGGER_NAME}.rules"
