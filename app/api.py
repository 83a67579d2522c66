"""HTTP route definitions for the service."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.schemas import (
    Acknowledgement,
    HealthStatus,
    HeightAccepted,
    HeightSubmission,
    NoReading,
    ReadingPayload,
    RecentReadings,
)
from storage.reading_store import ReadingStore, ValidationError, build_default_store

router = APIRouter()


def get_store() -> ReadingStore:
    return build_default_store()


def _parse_limit(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


@router.post(
    "/api/height",
    response_model=HeightAccepted,
    summary="Ingest a height reading from the device.",
)
async def submit_height(
    submission: HeightSubmission,
    store: ReadingStore = Depends(get_store),
) -> HeightAccepted:
    try:
        reading = store.append(
            submission.height,
            timestamp=submission.timestamp,
            sensor_id=submission.sensor_id,
        )
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return HeightAccepted(reading=ReadingPayload.from_reading(reading))


@router.get(
    "/api/height",
    response_model=RecentReadings,
    summary="Return the most recent readings, oldest first.",
)
async def recent_heights(
    limit: Optional[str] = None,
    store: ReadingStore = Depends(get_store),
) -> RecentReadings:
    readings = store.recent(_parse_limit(limit))
    return RecentReadings(
        readings=[ReadingPayload.from_reading(reading) for reading in readings],
        total=store.count(),
    )


@router.get(
    "/api/height/current",
    response_model=Union[ReadingPayload, NoReading],
    summary="Return the latest reading or an explicit empty marker.",
)
async def current_height(
    store: ReadingStore = Depends(get_store),
) -> Union[ReadingPayload, NoReading]:
    reading = store.latest()
    if reading is None:
        return NoReading()
    return ReadingPayload.from_reading(reading)


@router.delete(
    "/api/height",
    response_model=Acknowledgement,
    summary="Drop every retained reading.",
)
async def clear_heights(store: ReadingStore = Depends(get_store)) -> Acknowledgement:
    store.clear()
    return Acknowledgement(message="All readings cleared")


@router.get(
    "/api/health",
    response_model=HealthStatus,
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck(
    request: Request,
    store: ReadingStore = Depends(get_store),
) -> HealthStatus:
    started_at = getattr(request.app.state, "started_at", time.monotonic())
    return HealthStatus(
        uptime=max(time.monotonic() - started_at, 0.0),
        readings_count=store.count(),
        timestamp=datetime.now(timezone.utc),
    )


@router.get(
    "/",
    summary="Root endpoint points at health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /api/health for service status."}
