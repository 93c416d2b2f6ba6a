from __future__ import annotations

import json
import logging
import sys
from typing import Optional

from watchdesk.config import Settings, get_settings

TEXT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_EXTRA_FIELDS = ("symbol", "provider", "kind", "request_id")


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }

        for name in _EXTRA_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def setup_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """Configure the root logger from settings (LOG_LEVEL / LOG_FORMAT / LOG_ENABLE_FILE)."""
    settings = settings or get_settings()

    log_level = getattr(logging, str(settings.log_level).upper(), logging.INFO)

    logger = logging.getLogger()
    logger.setLevel(log_level)

    # Clear existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    if settings.log_format == "json":
        console_handler.setFormatter(StructuredFormatter())
    else:
        console_handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    logger.addHandler(console_handler)

    if settings.log_enable_file:
        file_handler = logging.FileHandler("watchdesk.log", encoding="utf-8")
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    logging.getLogger("uvicorn.access").disabled = True
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return logger


__all__ = ["StructuredFormatter", "setup_logging", "TEXT_FORMAT"]
