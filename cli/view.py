"""Client-side view state derived from store snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, Optional, Tuple

from cli.client import RecentSnapshot
from models.records import Reading
from services.statistics import summarize

NO_DATA = "--"
NEVER = "Last updated: Never"

CONNECTED = "connected"
DISCONNECTED = "disconnected"

SERVER_UNKNOWN = "Unknown"
SERVER_ONLINE = "Online"
SERVER_DEGRADED = "Degraded"
SERVER_OFFLINE = "Offline"


@dataclass(frozen=True)
class ViewState:
    """Everything the display shows, recomputed wholesale per successful cycle."""

    height_display: str = NO_DATA
    last_updated: str = NEVER
    min_display: str = NO_DATA
    max_display: str = NO_DATA
    avg_display: str = NO_DATA
    total_readings: int = 0
    connection: str = DISCONNECTED
    readings: Tuple[Reading, ...] = ()
    per_sensor_count: Dict[str, int] = field(default_factory=dict)
    server_status: str = SERVER_UNKNOWN
    auto_refresh: bool = True

    @property
    def is_connected(self) -> bool:
        return self.connection == CONNECTED

    def with_connection(self, connection: str) -> "ViewState":
        return replace(self, connection=connection)


def format_height(value: Optional[float]) -> str:
    if value is None:
        return NO_DATA
    return f"{value:.1f}"


def format_last_updated(received_at: Optional[datetime], now: datetime) -> str:
    if received_at is None:
        return NEVER

    diff_secs = max(int((now - received_at).total_seconds()), 0)
    if diff_secs < 60:
        time_ago = f"{diff_secs} seconds ago"
    elif diff_secs < 3600:
        time_ago = f"{diff_secs // 60} minutes ago"
    else:
        time_ago = received_at.astimezone().strftime("%c")
    return f"Last updated: {time_ago}"


def build_view(
    latest: Optional[Reading],
    snapshot: RecentSnapshot,
    now: datetime,
    *,
    auto_refresh: bool,
    server_status: str,
) -> ViewState:
    stats = summarize(snapshot.readings)
    return ViewState(
        height_display=format_height(latest.height if latest else None),
        last_updated=format_last_updated(latest.received_at if latest else None, now),
        min_display=format_height(stats.min_height),
        max_display=format_height(stats.max_height),
        avg_display=format_height(stats.mean_height),
        total_readings=snapshot.total,
        connection=CONNECTED,
        readings=tuple(reversed(snapshot.readings)),
        per_sensor_count=dict(stats.per_sensor_count),
        server_status=server_status,
        auto_refresh=auto_refresh,
    )


def empty_view(*, auto_refresh: bool, server_status: str) -> ViewState:
    return ViewState(auto_refresh=auto_refresh, server_status=server_status)
