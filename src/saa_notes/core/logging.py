"""
Logging Configuration

One stdout handler shared by the API process and the export script.
"""

import sys
from logging.config import dictConfig
from typing import Any

from saa_notes.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers pinned to a fixed level regardless of LOG_LEVEL.
# httpx logs one INFO line per Notion request.
PINNED_LOGGERS = {
    "uvicorn": "INFO",
    "uvicorn.access": "INFO",
    "httpx": "WARNING",
}


def _console_logger(level: str) -> dict[str, Any]:
    return {"level": level, "handlers": ["console"], "propagate": False}


def setup_logging(level: str | None = None) -> None:
    """
    Route package and server logs to stdout.

    Args:
        level: Level for the root and ``saa_notes`` loggers. Defaults to
            the LOG_LEVEL setting.

    Call once per process: at import of ``saa_notes.main`` or at the start
    of a script's ``main()``.
    """
    log_level = (level or settings.LOG_LEVEL).upper()

    loggers = {"saa_notes": _console_logger(log_level)}
    loggers.update(
        (name, _console_logger(pinned)) for name, pinned in PINNED_LOGGERS.items()
    )

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"format": LOG_FORMAT, "datefmt": DATE_FORMAT},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "stream": sys.stdout,
                    "formatter": "default",
                },
            },
            "root": {"level": log_level, "handlers": ["console"]},
            "loggers": loggers,
        }
    )
