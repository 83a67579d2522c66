"""Polling reconciler that keeps a live ``ViewState`` in step with the service."""

from __future__ import annotations

import itertools
import logging
from dataclasses import replace
from datetime import datetime, timezone
from threading import Event, Lock, RLock, Thread, current_thread
from typing import Callable, Optional

from cli.client import ApiClient, TransientFetchError
from cli.view import (
    DISCONNECTED,
    SERVER_DEGRADED,
    SERVER_OFFLINE,
    SERVER_ONLINE,
    ViewState,
    build_view,
    empty_view,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SyncClient:
    """Single-flight poller that turns API snapshots into a stable view.

    Every cycle and every clear draws a number from one counter. A result is
    applied only when its number is newer than the last applied one, so a slow
    completion can never overwrite a more recent view.
    """

    def __init__(
        self,
        api: ApiClient,
        refresh_interval: float = 2.0,
        recent_limit: int = 20,
        clock: Callable[[], datetime] = _utcnow,
        on_update: Optional[Callable[[ViewState], None]] = None,
    ) -> None:
        self._api = api
        self.refresh_interval = refresh_interval
        self.recent_limit = recent_limit
        self._clock = clock
        self.on_update = on_update

        self._lock = Lock()
        self._sequence = itertools.count(1)
        self._applied_cycle = 0
        self._view = ViewState()
        self._version = 0
        self._published = 0
        self._publish_lock = RLock()
        self._in_flight = False
        self._queued = False
        self._visible = True
        self._timer: Optional[Thread] = None
        self._timer_stop = Event()

    @property
    def view(self) -> ViewState:
        with self._lock:
            return self._view

    @property
    def auto_refresh(self) -> bool:
        return self.view.auto_refresh

    @property
    def is_polling(self) -> bool:
        with self._lock:
            return self._timer is not None and self._timer.is_alive()

    def refresh(self) -> bool:
        """Run a cycle now, or queue one behind the cycle already in flight.

        Returns ``True`` when this call ran the cycle itself.
        """
        return self._run(queue_if_busy=True)

    def tick(self) -> bool:
        """Timer entry point; skipped while another cycle is outstanding."""
        return self._run(queue_if_busy=False)

    def clear(self) -> None:
        """Delete the remote history, reset the view and fetch again.

        Raises ``UserActionError`` and leaves the view untouched if the delete
        request fails.
        """
        self._api.clear_history()
        with self._lock:
            self._applied_cycle = next(self._sequence)
            version = self._set_view(
                empty_view(
                    auto_refresh=self._view.auto_refresh,
                    server_status=self._view.server_status,
                )
            )
            view = self._view
        logger.info("Reading history cleared by operator")
        self._publish(view, version)
        self.refresh()

    def check_health(self) -> str:
        try:
            payload = self._api.fetch_health()
        except TransientFetchError as exc:
            logger.warning("Health check failed", extra={"reason": str(exc)})
            server_status = SERVER_OFFLINE
        else:
            server_status = SERVER_ONLINE if payload.get("status") == "healthy" else SERVER_DEGRADED

        with self._lock:
            version = self._set_view(replace(self._view, server_status=server_status))
            view = self._view
        self._publish(view, version)
        return server_status

    def start(self) -> None:
        """Start the refresh timer if auto-refresh is on and the view is visible."""
        with self._lock:
            if not self._view.auto_refresh or not self._visible:
                return
            if self._timer is not None and self._timer.is_alive():
                return
            stop = Event()
            timer = Thread(
                target=self._timer_loop,
                args=(stop,),
                name="height-sync-timer",
                daemon=True,
            )
            self._timer_stop = stop
            self._timer = timer
        timer.start()

    def stop(self) -> None:
        """Stop the refresh timer and wait for a running cycle to finish."""
        with self._lock:
            self._timer_stop.set()
            timer, self._timer = self._timer, None
        if timer is not None and timer is not current_thread():
            timer.join()

    def toggle_auto_refresh(self) -> bool:
        with self._lock:
            enabled = not self._view.auto_refresh
            version = self._set_view(replace(self._view, auto_refresh=enabled))
            view = self._view
        if enabled:
            self.start()
        else:
            self.stop()
        self._publish(view, version)
        return enabled

    def set_visible(self, visible: bool) -> None:
        """Suspend polling while hidden; on return resume and fetch at once."""
        with self._lock:
            was_visible = self._visible
            self._visible = visible
            auto_refresh = self._view.auto_refresh
        if not visible:
            self.stop()
            return
        if was_visible or not auto_refresh:
            return
        self.start()
        self.refresh()

    def _timer_loop(self, stop: Event) -> None:
        while not stop.wait(self.refresh_interval):
            try:
                self.tick()
            except Exception:
                logger.exception("Refresh cycle raised; polling continues")

    def _run(self, queue_if_busy: bool) -> bool:
        with self._lock:
            if self._in_flight:
                if queue_if_busy:
                    self._queued = True
                else:
                    logger.debug("Skipping tick while a cycle is in flight")
                return False
            self._in_flight = True

        try:
            while True:
                self._run_cycle()
                with self._lock:
                    if not self._queued:
                        self._in_flight = False
                        return True
                    self._queued = False
        except BaseException:
            with self._lock:
                self._in_flight = False
                self._queued = False
            raise

    def _run_cycle(self) -> None:
        with self._lock:
            cycle = next(self._sequence)

        try:
            latest = self._api.fetch_latest()
            snapshot = self._api.fetch_recent(self.recent_limit)
        except TransientFetchError as exc:
            logger.warning(
                "Refresh cycle failed",
                extra={"cycle": cycle, "reason": str(exc), "status": DISCONNECTED},
            )
            self._apply(cycle, lambda current: current.with_connection(DISCONNECTED))
            return

        now = self._clock()
        self._apply(
            cycle,
            lambda current: build_view(
                latest,
                snapshot,
                now,
                auto_refresh=current.auto_refresh,
                server_status=current.server_status,
            ),
        )

    def _apply(self, cycle: int, derive: Callable[[ViewState], ViewState]) -> None:
        with self._lock:
            if cycle <= self._applied_cycle:
                logger.debug("Discarding result of superseded cycle", extra={"cycle": cycle})
                return
            self._applied_cycle = cycle
            version = self._set_view(derive(self._view))
            view = self._view
        self._publish(view, version)

    def _set_view(self, view: ViewState) -> int:
        # caller holds self._lock
        self._view = view
        self._version += 1
        return self._version

    def _publish(self, view: ViewState, version: int) -> None:
        """Deliver ``view`` unless a newer one has already been delivered."""
        with self._publish_lock:
            if version <= self._published:
                return
            self._published = version
            if self.on_update is not None:
                self.on_update(view)

