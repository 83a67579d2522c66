"""Window statistics over fetched height readings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable

from models.records import Reading


@dataclass
class WindowStatistics:
    """Extrema and mean over a bounded window of readings."""

    count: int = 0
    min_height: float | None = None
    max_height: float | None = None
    mean_height: float | None = None
    per_sensor_count: Dict[str, int] = field(default_factory=dict)


def summarize(readings: Iterable[Reading]) -> WindowStatistics:
    summary = WindowStatistics()
    total = 0.0

    for reading in readings:
        summary.count += 1
        height = reading.height
        total += height

        if summary.min_height is None or height < summary.min_height:
            summary.min_height = height
        if summary.max_height is None or height > summary.max_height:
            summary.max_height = height

        summary.per_sensor_count[reading.sensor_id] = (
            summary.per_sensor_count.get(reading.sensor_id, 0) + 1
        )

    if summary.count:
        summary.mean_height = total / summary.count

    return summary
