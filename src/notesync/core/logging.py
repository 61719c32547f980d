"""
Logging Configuration

Plain stdout logging shared by the reconciliation API and the sync client.
"""

import sys
from logging.config import dictConfig

from notesync.core.config import settings


def setup_logging(level: str | None = None) -> None:
    """
    Initialize application logging with consistent formatting.

    Configuration:
        - Output: stdout
        - Format: Timestamp | Level | Module | Message
        - Level: LOG_LEVEL env var unless overridden by ``level``

    Note:
        Call once at startup (API lifespan or client entrypoint).
    """
    log_level = (level or settings.LOG_LEVEL).upper()

    log_format = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,  # Preserve third-party loggers
        "formatters": {
            "default": {
                "format": log_format,
                "datefmt": date_format,
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "stream": sys.stdout,
                "formatter": "default",
            },
        },
        "root": {
            "level": log_level,
            "handlers": ["console"],
        },
        "loggers": {
            "notesync": {
                "level": log_level,
                "handlers": ["console"],
                "propagate": False,  # Prevent duplicate logs to root
            },
            "uvicorn": {"handlers": ["console"], "level": "INFO", "propagate": False},
            "uvicorn.access": {
                "handlers": ["console"],
                "level": "INFO",
                "propagate": False,
            },
            "httpx": {
                "level": "WARNING",  # Too chatty for periodic sync
                "handlers": ["console"],
                "propagate": False,
            },
            "sqlalchemy.engine": {
                "level": "WARNING",  # Suppress verbose SQL logs unless debugging
                "handlers": ["console"],
                "propagate": False,
            },
        },
    }

    dictConfig(logging_config)
