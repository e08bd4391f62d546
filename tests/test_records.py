from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta

import pytest
from dateutil import tz

from libre_fram.fram import MemoryImage
from libre_fram.records import (
    HISTORY_SLOTS,
    TREND_SLOTS,
    decode_history,
    decode_record,
    decode_trend,
    history_delay,
    ring_slot,
    start_date,
)
from fram_factory import encode_record


def _minutes(delta: timedelta) -> float:
    return delta.total_seconds() / 60


def test_decode_record_fields(last_reading: datetime) -> None:
    buf = encode_record(
        bytes(12),
        6,
        0x3FFF,
        error=0x7FF,
        has_error=True,
        temperature=4092,
        adjustment=-2044,
    )
    record = decode_record(buf, 6, 42, last_reading)
    assert record.raw_value == 0x3FFF
    assert record.error == 0x1FF
    assert record.has_error
    assert record.raw_temperature == 4092
    assert record.temperature_adjustment == -2044
    assert record.id == 42
    assert record.timestamp == last_reading
    assert record.value == 0
    assert record.temperature is None


def test_decode_record_positive_adjustment(last_reading: datetime) -> None:
    buf = encode_record(bytes(6), 0, 1234, temperature=6800, adjustment=400)
    record = decode_record(buf, 0, 0, last_reading)
    assert record.raw_value == 1234
    assert record.raw_temperature == 6800
    assert record.temperature_adjustment == 400
    assert not record.has_error
    assert record.error == 0


@pytest.mark.parametrize("most_recent", range(0, 40, 3))
def test_ring_slot_walks_backwards(most_recent: int) -> None:
    slots = [ring_slot(most_recent, i, 16) for i in range(16)]
    assert sorted(slots) == list(range(16))
    assert slots[0] == (most_recent - 1) % 16


@pytest.mark.parametrize("trend_index", range(16))
def test_trend_newest_first(
    make_fram: Callable[..., bytes], last_reading: datetime, trend_index: int
) -> None:
    image = MemoryImage(make_fram(age=5000, trend_index=trend_index))
    trend = decode_trend(image, last_reading)
    assert len(trend) == TREND_SLOTS
    for i, record in enumerate(trend):
        assert record.raw_value == 1000 + (trend_index - 1 - i) % 16
        assert record.id == 5000 - i
        assert record.timestamp == last_reading - timedelta(minutes=i)


def test_trend_ids_have_no_gaps(
    make_fram: Callable[..., bytes], last_reading: datetime
) -> None:
    trend = decode_trend(MemoryImage(make_fram(age=20000)), last_reading)
    ids = [r.id for r in trend]
    assert all(a - b == 1 for a, b in zip(ids, ids[1:]))


@pytest.mark.parametrize(
    ("age", "history_index", "delay", "anchor_offset"),
    [
        (3, 0, 3, 3),
        (3, 5, 3, -12),
        (17, 0, 17, 17),
        (17, 31, 17, 2),
        (18, 1, 3, 3),
        (18, 0, 3, -12),
        (32, 1, 17, 17),
        (32, 2, 17, 2),
    ],
)
def test_history_delay_branches(
    age: int, history_index: int, delay: int, anchor_offset: int
) -> None:
    assert history_delay(age, history_index) == (delay, anchor_offset)


@pytest.mark.parametrize("age", [0, 1, 2])
def test_history_delay_truncates_for_young_sensors(age: int) -> None:
    assert history_delay(age, 0) == (age, age)


# (age, history_index, [(id, minutes before last reading), ...] for slots 0..2)
HISTORY_FIXTURES = [
    (3, 0, [(0, 3), (-15, 3), (-30, 3)]),
    (3, 7, [(0, -12), (-15, 3), (-30, 3)]),
    (17, 0, [(0, 17), (-15, 17), (-30, 17)]),
    (17, 7, [(0, 2), (-15, 17), (-30, 17)]),
    (18, 1, [(15, 3), (0, 18), (-15, 18)]),
    (18, 0, [(15, -12), (0, 3), (-15, 18)]),
    (32, 1, [(15, 17), (0, 32), (-15, 32)]),
    (32, 0, [(15, 2), (0, 17), (-15, 32)]),
]


@pytest.mark.parametrize(("age", "history_index", "expected"), HISTORY_FIXTURES)
def test_history_timestamps_literal_fixtures(
    make_fram: Callable[..., bytes],
    last_reading: datetime,
    age: int,
    history_index: int,
    expected: list[tuple[int, int]],
) -> None:
    image = MemoryImage(make_fram(age=age, history_index=history_index))
    history = decode_history(image, last_reading)
    got = [(r.id, _minutes(last_reading - r.timestamp)) for r in history[:3]]
    assert got == [(i, float(m)) for i, m in expected]


@pytest.mark.parametrize("age", range(3, 32 * 15 + 60, 1))
def test_history_precise_and_lagged_branches(
    make_fram: Callable[..., bytes], last_reading: datetime, age: int
) -> None:
    precise = ((age - 3) // 15) % 32
    start = last_reading - timedelta(minutes=age)
    for history_index, shift in ((precise, 0), ((precise + 1) % 32, 15)):
        image = MemoryImage(make_fram(age=age, history_index=history_index))
        history = decode_history(image, last_reading)
        assert len(history) == HISTORY_SLOTS
        ids = [r.id for r in history]
        assert all(a - b == 15 for a, b in zip(ids, ids[1:]))
        assert ids[0] == age - ((age - 3) % 15 + 3)
        for i, record in enumerate(history):
            assert record.raw_value == 2000 + (history_index - 1 - i) % 32
            if record.id >= 0:
                expected = start + timedelta(minutes=record.id + shift)
            else:
                expected = start
            assert record.timestamp == expected


def test_history_newest_first_on_old_sensor(
    make_fram: Callable[..., bytes], last_reading: datetime
) -> None:
    history = decode_history(MemoryImage(make_fram(age=20000)), last_reading)
    stamps = [r.timestamp for r in history]
    assert stamps == sorted(stamps, reverse=True)
    assert len(set(stamps)) == HISTORY_SLOTS
    assert all(r.id >= 0 for r in history)


NEW_YORK = tz.gettz("America/New_York")


def _utc_minutes(later: datetime, earlier: datetime) -> float:
    return _minutes(later.astimezone(tz.UTC) - earlier.astimezone(tz.UTC))


def test_timestamps_are_exact_across_dst_start(
    make_fram: Callable[..., bytes],
) -> None:
    # Clocks jump from 02:00 EST to 03:00 EDT on 2026-03-08.
    last_reading = datetime(2026, 3, 8, 4, 0, tzinfo=NEW_YORK)
    image = MemoryImage(make_fram(age=240))

    start = start_date(last_reading, 240)
    assert _utc_minutes(last_reading, start) == 240
    assert start.replace(tzinfo=None) == datetime(2026, 3, 7, 23, 0)
    assert start.utcoffset() == timedelta(hours=-5)

    history = decode_history(image, last_reading)
    assert [r.id for r in history[:2]] == [225, 210]
    for record in history:
        if record.id >= 0:
            assert _utc_minutes(record.timestamp, start) == record.id
        else:
            assert record.timestamp == start

    for record in decode_trend(image, last_reading):
        assert _utc_minutes(record.timestamp, start) == record.id


def test_start_date_across_dst_end() -> None:
    # Clocks fall back from 02:00 EDT to 01:00 EST on 2026-11-01.
    last_reading = datetime(2026, 11, 1, 3, 0, tzinfo=NEW_YORK)
    start = start_date(last_reading, 180)
    assert _utc_minutes(last_reading, start) == 180
    assert start.replace(tzinfo=None) == datetime(2026, 11, 1, 1, 0)
    assert start.utcoffset() == timedelta(hours=-4)
