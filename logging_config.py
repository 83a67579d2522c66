from __future__ import annotations

import logging
import time
from logging.config import dictConfig
from typing import Any, Callable, Dict, Mapping

from settings import get_settings


def _height(value: Any) -> str:
    try:
        return f"{float(value):.1f}"
    except (TypeError, ValueError):
        return str(value)


def _quoted(value: Any) -> str:
    text = str(value)
    return repr(text) if " " in text else text


# Context fields carried through ``extra=``, in output order.
CONTEXT_FIELDS: Mapping[str, Callable[[Any], str]] = {
    "cycle": str,
    "sensor_id": str,
    "height": _height,
    "readings_count": str,
    "evicted": str,
    "status": _quoted,
    "reason": _quoted,
}

_configured = False


class ContextualFormatter(logging.Formatter):
    """Appends the reading and sync-cycle context of a record as ``key=value`` pairs.

    Timestamps are rendered in UTC so the trailing ``Z`` in the format holds.
    """

    converter = time.gmtime

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        style: str = "%",
        fields: Mapping[str, Callable[[Any], str]] | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        self._fields: Dict[str, Callable[[Any], str]] = dict(fields or CONTEXT_FIELDS)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = []
        for key, render in self._fields.items():
            value = getattr(record, key, None)
            if value is not None:
                context.append(f"{key}={render(value)}")
        if context:
            return f"{message} | {' '.join(context)}"
        return message


def configure_logging(level: str | int | None = None) -> None:
    """Install the contextual stderr handler on the root logger once per process."""
    global _configured
    if _configured:
        return

    log_level = level if level is not None else get_settings().log_level

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "contextual": {
                    "()": "logging_config.ContextualFormatter",
                    # threadName tells timer-driven cycles apart from manual ones
                    "fmt": "%(asctime)sZ | %(levelname)s | %(threadName)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%dT%H:%M:%S",
                }
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "level": log_level,
                    "formatter": "contextual",
                }
            },
            "loggers": {
                "httpx": {"level": "WARNING"},
                "httpcore": {"level": "WARNING"},
            },
            "root": {"handlers": ["default"], "level": log_level},
        }
    )

    _configured = True
