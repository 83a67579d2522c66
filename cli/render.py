from __future__ import annotations

from typing import Any, Iterable

import typer

from cli.view import ViewState, format_height
from models.records import Reading


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _connection_label(view: ViewState) -> str:
    return "Connected" if view.is_connected else "Disconnected"


def render_view(view: ViewState, show_readings: bool = True) -> None:
    echo_heading("Current Height")
    typer.secho(
        _connection_label(view),
        fg=typer.colors.GREEN if view.is_connected else typer.colors.RED,
    )
    echo_key_values(
        [
            ("height", view.height_display),
            ("server", view.server_status),
            ("auto_refresh", "ON" if view.auto_refresh else "OFF"),
        ]
    )
    typer.echo(view.last_updated)

    typer.echo()
    echo_heading("Statistics")
    echo_key_values(
        [
            ("min", view.min_display),
            ("max", view.max_display),
            ("avg", view.avg_display),
            ("total", view.total_readings),
        ]
    )
    if view.per_sensor_count:
        typer.echo("per_sensor_count:")
        for sensor_id, count in view.per_sensor_count.items():
            typer.echo(f"  - {sensor_id}: {count}")

    if not show_readings:
        return

    typer.echo()
    echo_heading("Recent Readings")
    if not view.readings:
        typer.echo("No readings available")
        return
    for reading in view.readings:
        typer.echo(f"  {_reading_row(reading)}")


def render_reading(reading: Reading) -> None:
    echo_heading("Reading Stored")
    echo_key_values(
        [
            ("height", format_height(reading.height)),
            ("timestamp", reading.timestamp),
            ("sensor_id", reading.sensor_id),
            ("received_at", reading.received_at.isoformat()),
        ]
    )


def _reading_row(reading: Reading) -> str:
    local = reading.received_at.astimezone()
    return (
        f"{format_height(reading.height):>8}  "
        f"{local.strftime('%X')} {local.strftime('%x')}  "
        f"{reading.sensor_id}"
    )
