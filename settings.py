from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple


_CAPACITY_ENV = "READING_STORE_CAPACITY"
_RECENT_LIMIT_ENV = "RECENT_DEFAULT_LIMIT"
_LOG_LEVEL_ENV = "LOG_LEVEL"
_CORS_ORIGINS_ENV = "CORS_ALLOW_ORIGINS"

MAX_READINGS = 100
DEFAULT_RECENT_LIMIT = 10


@dataclass(frozen=True)
class Settings:
    store_capacity: int
    recent_default_limit: int
    log_level: str
    cors_origins: Tuple[str, ...] = ("*",)


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


def _read_origins(default: Tuple[str, ...]) -> Tuple[str, ...]:
    """Comma-separated origin list; blank entries are ignored."""
    value = os.getenv(_CORS_ORIGINS_ENV)
    if value is None:
        return default
    origins = tuple(item.strip() for item in value.split(",") if item.strip())
    return origins or default


@lru_cache
def get_settings() -> Settings:
    return Settings(
        store_capacity=_read_positive_int(_CAPACITY_ENV, MAX_READINGS),
        recent_default_limit=_read_positive_int(_RECENT_LIMIT_ENV, DEFAULT_RECENT_LIMIT),
        log_level=_read_log_level("INFO"),
        cors_origins=_read_origins(("*",)),
    )
