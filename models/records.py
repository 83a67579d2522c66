"""Domain models shared by the service and the polling client."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping

UNKNOWN_SENSOR = "unknown"


@dataclass(frozen=True, slots=True)
class Reading:
    """A single height measurement together with its server receipt time."""

    height: float
    timestamp: int
    sensor_id: str
    received_at: datetime

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Reading":
        """Build a reading from a JSON body returned by the API."""
        if not isinstance(payload, Mapping):
            raise TypeError(f"Reading payload must be an object, got {type(payload).__name__}.")
        received_raw = payload.get("received_at")
        if not received_raw:
            raise ValueError("Reading payload is missing received_at.")
        return cls(
            height=float(payload["height"]),
            timestamp=int(payload.get("timestamp") or 0),
            sensor_id=payload.get("sensor_id") or UNKNOWN_SENSOR,
            received_at=parse_timestamp(str(received_raw)),
        )


def epoch_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, treating naive values and ``Z`` as UTC."""
    candidate = value.strip()
    if not candidate:
        raise ValueError("Timestamp is empty.")

    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise ValueError("Invalid timestamp format") from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed.astimezone(timezone.utc)

