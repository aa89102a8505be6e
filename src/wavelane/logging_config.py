"""
wavelane logging setup.

Every module logs to ``logging.getLogger(__name__)`` under the ``wavelane``
namespace and installs no handlers. Applications call ``setup_logging`` to
attach a console (and optional file) handler, plain text or one JSON
object per line.
"""

import json
import logging
import threading
from datetime import datetime, timezone
from typing import Optional

ROOT_LOGGER = "wavelane"

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "thread": threading.current_thread().name,
        }

        # Extra fields passed as extra={"extra_data": {...}}
        if hasattr(record, "extra_data"):
            log_entry.update(record.extra_data)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


def setup_logging(level=logging.INFO, log_file: Optional[str] = None,
                  json_format: bool = False) -> logging.Logger:
    """
    Attach handlers to the ``wavelane`` logger.

    Args:
        level: Log level for the package logger and its handlers
        log_file: Also write to this file when given
        json_format: One JSON object per line instead of plain text

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)

    # Remove existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    formatter = JSONFormatter() if json_format else logging.Formatter(TEXT_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    return logger
