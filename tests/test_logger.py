# tests/test_logger.py
import logging
from logging.handlers import RotatingFileHandler

from forceapi.core.config import settings
from forceapi.utils.logger import setup_logging


def test_setup_logging_console_only():
    logger = setup_logging(level="warning", log_filename="")

    assert logger.name == settings.APP_NAME
    assert logger.level == logging.WARNING
    assert len(logger.handlers) == 1
    assert logging.getLogger("httpx").level == logging.WARNING


def test_setup_logging_writes_to_file_and_replaces_handlers(tmp_path):
    log_file = tmp_path / "forceapi.log"

    setup_logging(level="INFO", log_filename=str(log_file))
    logger = setup_logging(level="INFO", log_filename=str(log_file))
    logger.info("batch 1/1 sent")
    for handler in logger.handlers:
        handler.flush()

    assert len(logger.handlers) == 2
    assert any(isinstance(h, RotatingFileHandler) for h in logger.handlers)
    assert "batch 1/1 sent" in log_file.read_text(encoding="utf-8")

    setup_logging(level="DEBUG", log_filename="")
