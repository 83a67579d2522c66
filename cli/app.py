from __future__ import annotations

import time
from dataclasses import dataclass
from typing import NoReturn, Optional

import typer

from cli.client import ApiClient, TransientFetchError, UserActionError
from cli.config import CLIConfig, load_config
from cli.render import echo_heading, echo_key_values, render_reading, render_view
from cli.sync import SyncClient
from cli.view import ViewState
from logging_config import configure_logging


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for feeding and watching the height monitor service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


def _build_sync(state: CLIState, refresh_interval: Optional[float] = None) -> SyncClient:
    return SyncClient(
        state.client,
        refresh_interval=refresh_interval or state.config.refresh_interval,
        recent_limit=state.config.recent_limit,
    )


def _fail(message: str) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL (defaults to API_BASE_URL env or http://localhost:3000).",
    ),
    limit: Optional[int] = typer.Option(
        None,
        "--limit",
        "-n",
        min=1,
        help="Number of recent readings fetched per refresh.",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Per-request timeout in seconds.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(
        base_url=base_url,
        recent_limit=limit,
        request_timeout=timeout,
    )
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("status")
def status_command(ctx: typer.Context) -> None:
    """Fetch the current reading and statistics once."""
    state = _get_state(ctx)
    sync = _build_sync(state)
    sync.check_health()
    sync.refresh()
    view = sync.view
    render_view(view)
    if not view.is_connected:
        _fail(f"Could not reach {state.config.base_url}.")


@app.command("watch")
def watch_command(
    ctx: typer.Context,
    interval: Optional[float] = typer.Option(
        None,
        "--interval",
        "-i",
        help="Seconds between refreshes (defaults to CLI_REFRESH_INTERVAL or 2).",
    ),
    duration: float = typer.Option(
        0.0,
        "--duration",
        help="Stop after this many seconds; 0 watches until interrupted.",
    ),
) -> None:
    """Keep polling the service and redraw the view on every change."""
    state = _get_state(ctx)
    sync = _build_sync(state, refresh_interval=interval)
    sync.check_health()
    sync.refresh()
    render_view(sync.view)

    def _redraw(view: ViewState) -> None:
        typer.echo()
        render_view(view)

    sync.on_update = _redraw
    sync.start()
    try:
        if duration > 0:
            time.sleep(duration)
        else:
            while True:
                time.sleep(sync.refresh_interval)
    except KeyboardInterrupt:
        typer.echo()
    finally:
        sync.on_update = None
        sync.stop()


@app.command("push")
def push_command(
    ctx: typer.Context,
    height: float = typer.Argument(..., help="Height value to submit."),
    timestamp: Optional[int] = typer.Option(
        None,
        "--timestamp",
        help="Device epoch milliseconds; the server assigns one when omitted.",
    ),
    sensor_id: Optional[str] = typer.Option(None, "--sensor-id", "-s"),
) -> None:
    """Submit a reading as the device would."""
    state = _get_state(ctx)
    try:
        reading = state.client.submit_height(height, timestamp=timestamp, sensor_id=sensor_id)
    except UserActionError as exc:
        _fail(str(exc))
    render_reading(reading)


@app.command("clear")
def clear_command(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Remove every retained reading on the service."""
    state = _get_state(ctx)
    if not yes and not typer.confirm("Are you sure you want to clear all readings?"):
        raise typer.Exit(code=0)
    sync = _build_sync(state)
    try:
        sync.clear()
    except UserActionError as exc:
        _fail(f"Failed to clear history. {exc}")
    typer.secho("History cleared successfully!", fg=typer.colors.GREEN)
    render_view(sync.view, show_readings=False)


@app.command("health")
def health_command(ctx: typer.Context) -> None:
    """Report whether the service is up and how many readings it holds."""
    state = _get_state(ctx)
    try:
        payload = state.client.fetch_health()
    except TransientFetchError as exc:
        typer.secho("Server: Offline", fg=typer.colors.RED)
        _fail(str(exc))
    online = payload.get("status") == "healthy"
    echo_heading("Server: Online" if online else "Server: Degraded")
    echo_key_values(
        [
            ("status", payload.get("status")),
            ("uptime", payload.get("uptime")),
            ("readings_count", payload.get("readings_count")),
            ("timestamp", payload.get("timestamp")),
        ]
    )


def run() -> None:
    """Console script entry point."""
    configure_logging()
    app()
