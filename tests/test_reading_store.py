"""Unit tests for the bounded reading store."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import Iterator

import pytest

from settings import DEFAULT_RECENT_LIMIT, MAX_READINGS
from storage.reading_store import ReadingStore, ValidationError


def _ticking_clock(start: datetime, step: timedelta = timedelta(milliseconds=10)):
    moments: Iterator[datetime] = (start + step * index for index in range(10_000))
    return lambda: next(moments)


def test_append_assigns_defaults() -> None:
    now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    store = ReadingStore(clock=lambda: now)

    reading = store.append(150.0)

    assert reading.height == 150.0
    assert reading.sensor_id == "unknown"
    assert reading.received_at == now
    assert reading.timestamp == int(now.timestamp() * 1000)
    assert store.latest() == reading


def test_append_keeps_supplied_timestamp_and_sensor() -> None:
    store = ReadingStore()

    reading = store.append("151.5", timestamp=1_700_000_000_000, sensor_id="esp32-1")

    assert reading.height == 151.5
    assert reading.timestamp == 1_700_000_000_000
    assert reading.sensor_id == "esp32-1"


def test_empty_sensor_id_falls_back_to_unknown() -> None:
    store = ReadingStore()

    assert store.append(1.0, sensor_id="").sensor_id == "unknown"


@pytest.mark.parametrize("height", [None, "", "tall", float("nan"), float("inf"), True, [1.0], 10 ** 400])
def test_append_rejects_invalid_height(height) -> None:
    store = ReadingStore()
    store.append(100.0)

    with pytest.raises(ValidationError):
        store.append(height)

    assert store.count() == 1


def test_missing_height_message() -> None:
    store = ReadingStore()

    with pytest.raises(ValidationError, match="Height value is required"):
        store.append(None)


def test_zero_height_is_accepted() -> None:
    store = ReadingStore()

    assert store.append(0).height == 0.0


def test_fifo_eviction_keeps_last_capacity_readings() -> None:
    store = ReadingStore(capacity=100)
    appended = [store.append(float(index)) for index in range(250)]

    assert store.count() == 100
    assert store.recent(100) == appended[-100:]
    assert store.latest() == appended[-1]


def test_recent_returns_oldest_first_slice() -> None:
    store = ReadingStore()
    for height in (150.0, 152.5, 151.0):
        store.append(height)

    assert [reading.height for reading in store.recent(10)] == [150.0, 152.5, 151.0]
    assert [reading.height for reading in store.recent(2)] == [152.5, 151.0]


@pytest.mark.parametrize("limit", [None, 0, -5])
def test_recent_defaults_to_ten(limit) -> None:
    store = ReadingStore()
    for index in range(15):
        store.append(float(index))

    readings = store.recent(limit)

    assert len(readings) == 10
    assert readings[0].height == 5.0
    assert readings[-1].height == 14.0


def test_recent_and_latest_on_empty_store() -> None:
    store = ReadingStore()

    assert store.recent(5) == []
    assert store.latest() is None
    assert store.count() == 0


def test_clear_is_idempotent() -> None:
    store = ReadingStore()
    store.append(1.0)

    store.clear()
    assert store.count() == 0
    store.clear()
    assert store.count() == 0
    assert store.latest() is None


def test_received_at_never_goes_backwards() -> None:
    later = datetime(2024, 1, 1, 12, 0, 5, tzinfo=timezone.utc)
    earlier = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
    moments = iter([later, earlier])
    store = ReadingStore(clock=lambda: next(moments))

    first = store.append(1.0)
    second = store.append(2.0)

    assert second.received_at == first.received_at == later


def test_received_at_is_ordering_key() -> None:
    store = ReadingStore(clock=_ticking_clock(datetime(2024, 1, 1, tzinfo=timezone.utc)))
    for index in range(20):
        store.append(float(index))

    stamps = [reading.received_at for reading in store.recent(20)]
    assert stamps == sorted(stamps)


def test_invalid_capacity_rejected() -> None:
    with pytest.raises(ValueError):
        ReadingStore(capacity=0)


def test_concurrent_appends_and_reads_see_whole_snapshots() -> None:
    store = ReadingStore(capacity=50)
    errors: list[str] = []
    stop = threading.Event()

    def writer(offset: int) -> None:
        for index in range(500):
            store.append(float(offset + index))

    def reader() -> None:
        while not stop.is_set():
            snapshot = store.recent(50)
            if len(snapshot) > 50:
                errors.append(f"oversized snapshot: {len(snapshot)}")
            stamps = [reading.received_at for reading in snapshot]
            if stamps != sorted(stamps):
                errors.append("snapshot out of order")

    readers = [threading.Thread(target=reader) for _ in range(2)]
    writers = [threading.Thread(target=writer, args=(offset * 1000,)) for offset in range(4)]
    for thread in readers + writers:
        thread.start()
    for thread in writers:
        thread.join(timeout=10)
    stop.set()
    for thread in readers:
        thread.join(timeout=10)

    assert not errors
    assert store.count() == 50


def test_constructor_defaults_follow_settings_constants() -> None:
    store = ReadingStore()

    assert store.capacity == MAX_READINGS
    assert store.default_limit == DEFAULT_RECENT_LIMIT
