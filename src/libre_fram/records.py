"""Decodificación de los anillos circulares de tendencia e historial.

Ambas secuencias se devuelven de la más reciente a la más antigua.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta

from dateutil import tz

from libre_fram.bits import read_bits
from libre_fram.fram import MemoryImage
from libre_fram.model import GlucoseRecord

logger = logging.getLogger(__name__)

RECORD_SIZE = 6

TREND_OFFSET = 28
TREND_SLOTS = 16

HISTORY_OFFSET = 124
HISTORY_SLOTS = 32
HISTORY_INTERVAL = 15
# History records are committed 3 minutes after they are due.
HISTORY_WRITE_DELAY = 3


def decode_record(
    buffer: bytes, offset: int, record_id: int, timestamp: datetime
) -> GlucoseRecord:
    """Unpack one 6-byte ring slot.

    Args:
        buffer: FRAM bytes.
        offset: First byte of the slot.
        record_id: Minute id assigned to the slot.
        timestamp: Reconstructed reading time.

    Returns:
        The raw record; ``value`` stays 0 until calibrated.
    """
    raw = read_bits(buffer, offset, 0, 0xE)
    error = read_bits(buffer, offset, 0xE, 0xB) & 0x1FF
    has_error = read_bits(buffer, offset, 0x19, 0x1) != 0
    temperature = read_bits(buffer, offset, 0x1A, 0xC) << 2
    adjustment = read_bits(buffer, offset, 0x26, 0x9) << 2
    if read_bits(buffer, offset, 0x2F, 0x1):
        adjustment = -adjustment
    return GlucoseRecord(
        raw_value=raw,
        raw_temperature=temperature,
        temperature_adjustment=adjustment,
        id=record_id,
        timestamp=timestamp,
        has_error=has_error,
        error=error,
    )


def ring_slot(most_recent: int, i: int, size: int) -> int:
    """Slot holding the ``i``-th newest record of a ring."""
    return (most_recent - 1 - i) % size


def minutes_before(instant: datetime, minutes: int) -> datetime:
    """Instant ``minutes`` earlier, in the zone of ``instant``.

    Aware values are shifted in UTC so that a DST change in between does not
    move the result by the offset difference.
    """
    if instant.tzinfo is None:
        return instant - timedelta(minutes=minutes)
    shifted = instant.astimezone(tz.UTC) - timedelta(minutes=minutes)
    return shifted.astimezone(instant.tzinfo)


def start_date(last_reading: datetime, age: int) -> datetime:
    """Sensor activation time implied by its age at ``last_reading``."""
    return minutes_before(last_reading, age)


def decode_trend(image: MemoryImage, last_reading: datetime) -> list[GlucoseRecord]:
    """Decode the 16 one-minute trend slots, newest first."""
    age = image.age
    out: list[GlucoseRecord] = []
    for i in range(TREND_SLOTS):
        slot = ring_slot(image.trend_index, i, TREND_SLOTS)
        out.append(
            decode_record(
                image.data,
                TREND_OFFSET + slot * RECORD_SIZE,
                age - i,
                minutes_before(last_reading, i),
            )
        )
    return out


def history_delay(age: int, history_index: int) -> tuple[int, int]:
    """Delay compensation for the history ring.

    Integer division and remainder truncate toward zero, so sensors younger
    than the write delay get ``delay == age``.

    Args:
        age: Sensor age in minutes.
        history_index: Most recent history slot reported by the header.

    Returns:
        ``(delay, anchor_offset)``: minutes between the newest history id and
        ``age``, and minutes to subtract from the last reading time to get the
        newest history timestamp.
    """
    elapsed = age - HISTORY_WRITE_DELAY
    precise_index = int(elapsed / HISTORY_INTERVAL) % HISTORY_SLOTS
    delay = int(math.fmod(elapsed, HISTORY_INTERVAL)) + HISTORY_WRITE_DELAY
    if precise_index == history_index:
        return delay, delay
    # Header index lags one slot behind.
    return delay, delay - HISTORY_INTERVAL


def decode_history(image: MemoryImage, last_reading: datetime) -> list[GlucoseRecord]:
    """Decode the 32 fifteen-minute history slots, newest first.

    Slots whose minute id would be negative are dated at sensor start.
    """
    age = image.age
    history_index = image.history_index
    start = start_date(last_reading, age)
    delay, anchor_offset = history_delay(age, history_index)
    anchor = minutes_before(last_reading, anchor_offset)
    logger.debug(
        "History index %d, age %d: delay %d, anchor %s",
        history_index,
        age,
        delay,
        anchor,
    )
    out: list[GlucoseRecord] = []
    for i in range(HISTORY_SLOTS):
        slot = ring_slot(history_index, i, HISTORY_SLOTS)
        record_id = age - delay - i * HISTORY_INTERVAL
        if record_id > -1:
            timestamp = minutes_before(anchor, i * HISTORY_INTERVAL)
        else:
            timestamp = start
        out.append(
            decode_record(
                image.data,
                HISTORY_OFFSET + slot * RECORD_SIZE,
                record_id,
                timestamp,
            )
        )
    return out
