# forceapi/utils/logger.py
import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import List, Optional

from forceapi.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(module)s.%(funcName)s:%(lineno)d - %(message)s"

# Transport libraries log every request at INFO; the client already logs requests at DEBUG
NOISY_LOGGERS = ("httpx", "httpcore")


def _build_handlers(formatter: logging.Formatter, log_filename: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_filename:
        handlers.append(RotatingFileHandler(
            log_filename,
            maxBytes=settings.LOG_MAX_BYTES,
            backupCount=settings.LOG_BACKUP_COUNT,
            encoding='utf-8'
        ))
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def setup_logging(level: Optional[str] = None, log_filename: Optional[str] = None) -> logging.Logger:
    """
    Configures the application logger every forceapi module writes to.
    `level` and `log_filename` default to LOG_LEVEL and LOG_FILENAME from settings.
    Safe to call more than once: earlier handlers are replaced.
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    log_filename = log_filename if log_filename is not None else settings.LOG_FILENAME

    logger = logging.getLogger(settings.APP_NAME)
    logger.setLevel(getattr(logging, level_name, logging.INFO))
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    try:
        handlers = _build_handlers(logging.Formatter(LOG_FORMAT), log_filename)
    except OSError as e:
        handlers = _build_handlers(logging.Formatter(LOG_FORMAT), None)
        logger.handlers.extend(handlers)
        logger.error(f"Failed to open log file {log_filename}, logging to console only: {e}")
    else:
        logger.handlers.extend(handlers)
        if log_filename:
            logger.info(f"Logging to file: {log_filename}")

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.debug(f"Logging configured at level {level_name}")
    return logger
