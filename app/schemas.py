"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from models.records import Reading


class HeightSubmission(BaseModel):
    """Body posted by the device for each measurement."""

    height: Any = Field(
        default=None, description="Measured height; numeric strings are accepted."
    )
    timestamp: Optional[int] = Field(
        default=None, description="Device-side epoch milliseconds."
    )
    sensor_id: Optional[str] = None


class ReadingPayload(BaseModel):
    """A stored reading as exposed over the API."""

    height: float
    timestamp: int
    sensor_id: str
    received_at: datetime

    @classmethod
    def from_reading(cls, reading: Reading) -> "ReadingPayload":
        return cls(
            height=reading.height,
            timestamp=reading.timestamp,
            sensor_id=reading.sensor_id,
            received_at=reading.received_at,
        )


class HeightAccepted(BaseModel):
    success: bool = True
    message: str = "Height data received"
    reading: ReadingPayload


class RecentReadings(BaseModel):
    """Newest slice of the history, oldest first, plus the retained total."""

    readings: List[ReadingPayload] = Field(default_factory=list)
    total: int = Field(..., ge=0)


class NoReading(BaseModel):
    height: None = None
    message: str = "No readings available"


class Acknowledgement(BaseModel):
    success: bool = True
    message: str


class HealthStatus(BaseModel):
    status: str = "healthy"
    uptime: float = Field(..., ge=0, description="Seconds since the app was created.")
    readings_count: int = Field(..., ge=0)
    timestamp: datetime
