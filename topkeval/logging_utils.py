"""
Logging utilities.

Configures the ``topkeval`` logger hierarchy from settings, either as
plain text lines or as one JSON object per line.

Example:
    >>> from topkeval.logging_utils import setup_logging
    >>> logger = setup_logging(level="DEBUG")
"""

import json
import logging
from datetime import datetime

from topkeval.config import get_settings

LOGGER_NAME = "topkeval"
LOG_FORMAT = '%(asctime)s | %(levelname)s | %(name)s | %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class JsonFormatter(logging.Formatter):
    """Render records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created).strftime(LOG_DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def setup_logging(
    level: str | None = None,
    fmt: str | None = None,
) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        level: Logging level name (defaults to settings.log_level)
        fmt: "text" or "json" (defaults to settings.log_format)

    Returns:
        The configured ``topkeval`` logger
    """
    settings = get_settings()
    level = level or settings.log_level
    fmt = fmt or settings.log_format

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper()))

    # Avoid duplicate handlers on repeated setup
    logger.handlers.clear()

    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(handler)

    return logger
