"""Bounded in-memory history of height readings."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from functools import lru_cache
from threading import Lock
from typing import Any, Callable, Optional, Tuple

from models.records import UNKNOWN_SENSOR, Reading, epoch_millis
from settings import DEFAULT_RECENT_LIMIT, MAX_READINGS, get_settings

logger = logging.getLogger(__name__)


class ValidationError(ValueError):
    """Raised when an ingested reading is rejected."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def coerce_height(value: Any) -> float:
    """Convert an inbound height to a finite float or raise ``ValidationError``."""
    if value is None:
        raise ValidationError("Height value is required")
    if isinstance(value, bool):
        raise ValidationError("Height must be a finite number")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValidationError("Height value is required")
    try:
        height = float(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ValidationError("Height must be a finite number") from exc
    if not math.isfinite(height):
        raise ValidationError("Height must be a finite number")
    return height


class ReadingStore:
    """Insertion-ordered, FIFO-evicting history of readings.

    Writers serialise on a lock and publish a fresh tuple; readers grab the
    current tuple without locking, so every read sees a whole snapshot.
    """

    def __init__(
        self,
        capacity: int = MAX_READINGS,
        default_limit: int = DEFAULT_RECENT_LIMIT,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if capacity <= 0:
            raise ValueError("Store capacity must be positive.")
        self.capacity = capacity
        self.default_limit = default_limit
        self._clock = clock
        self._readings: Tuple[Reading, ...] = ()
        self._last_received_at: Optional[datetime] = None
        self._write_lock = Lock()

    def append(
        self,
        height: Any,
        timestamp: Optional[int] = None,
        sensor_id: Optional[str] = None,
    ) -> Reading:
        value = coerce_height(height)

        with self._write_lock:
            received_at = self._clock()
            if self._last_received_at is not None and received_at < self._last_received_at:
                received_at = self._last_received_at
            reading = Reading(
                height=value,
                timestamp=int(timestamp) if timestamp is not None else epoch_millis(received_at),
                sensor_id=sensor_id or UNKNOWN_SENSOR,
                received_at=received_at,
            )
            readings = self._readings + (reading,)
            evicted = max(len(readings) - self.capacity, 0)
            if evicted:
                readings = readings[evicted:]
            self._readings = readings
            self._last_received_at = received_at

        logger.info(
            "New height reading stored",
            extra={
                "sensor_id": reading.sensor_id,
                "height": reading.height,
                "readings_count": len(readings),
                "evicted": evicted or None,
            },
        )
        return reading

    def recent(self, limit: Optional[int] = None) -> list[Reading]:
        """Return up to ``limit`` newest readings, oldest first."""
        if limit is None or limit <= 0:
            limit = self.default_limit
        snapshot = self._readings
        return list(snapshot[-limit:])

    def latest(self) -> Optional[Reading]:
        snapshot = self._readings
        return snapshot[-1] if snapshot else None

    def clear(self) -> None:
        with self._write_lock:
            dropped = len(self._readings)
            self._readings = ()
        logger.info("Reading history cleared", extra={"readings_count": dropped})

    def count(self) -> int:
        return len(self._readings)


@lru_cache
def build_default_store() -> ReadingStore:
    settings = get_settings()
    return ReadingStore(
        capacity=settings.store_capacity,
        default_limit=settings.recent_default_limit,
    )
