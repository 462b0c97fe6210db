"""Logging setup shared by the API and the planning engine."""
from __future__ import annotations

import logging
from logging.config import dictConfig

from deepwork.core.context import get_request_id, get_session_id


class ContextFilter(logging.Filter):
    """Stamp records with the active request and planning session ids."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        record.session_id = get_session_id() or "-"
        return True


def configure_logging(*, log_level: str = "INFO") -> None:
    """Configure logging once; later calls are ignored."""
    if getattr(configure_logging, "_configured", False):
        return

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(request_id)s | %(session_id)s | %(message)s",
                }
            },
            "filters": {
                "context": {
                    "()": "deepwork.core.logging.ContextFilter",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "level": log_level,
                    "filters": ["context"],
                }
            },
            "loggers": {
                "httpx": {"level": "WARNING"},
                "openai": {"level": "WARNING"},
            },
            "root": {
                "handlers": ["console"],
                "level": log_level,
            },
        }
    )

    logging.getLogger(__name__).debug("Logging configured at %s", log_level)
    setattr(configure_logging, "_configured", True)
