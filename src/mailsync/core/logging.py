"""Logging configuration helpers."""

from __future__ import annotations

import logging.config
from typing import Any

from .config import LoggingSettings

# Third-party loggers that are chatty at DEBUG and never carry mailbox context.
_QUIET_LOGGERS = ("httpx", "httpcore")

_FORMATTERS: dict[str, dict[str, Any]] = {
    "plain": {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"},
    "structured": {
        "format": "ts={asctime} level={levelname} logger={name} msg={message!r}",
        "style": "{",
    },
}


def build_logging_config(settings: LoggingSettings) -> dict[str, Any]:
    """Return the ``dictConfig`` mapping for ``settings``."""
    level = settings.level.upper()
    formatter = "structured" if settings.structured else "plain"
    loggers: dict[str, Any] = {
        name: {"level": "WARNING", "propagate": True} for name in _QUIET_LOGGERS
    }
    loggers["mailsync"] = {"level": level, "propagate": True}
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {formatter: _FORMATTERS[formatter]},
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": formatter,
                "level": level,
            },
        },
        "loggers": loggers,
        "root": {"handlers": ["console"], "level": level},
    }


def configure_logging(settings: LoggingSettings) -> None:
    """Configure application logging according to provided settings."""
    logging.config.dictConfig(build_logging_config(settings))


__all__ = ["build_logging_config", "configure_logging"]
