"""Synthetic FRAM images for tests."""

from __future__ import annotations

from datetime import datetime

from dateutil import tz

from libre_fram.bits import write_bits
from libre_fram.crc import write_checksums
from libre_fram.model import CalibrationInfo, SensorState

LAST_READING = datetime(
    2026, 1, 31, 12, 0, tzinfo=tz.gettz("America/Argentina/Buenos_Aires")
)

DEFAULT_CALIBRATION = CalibrationInfo(i1=2, i2=300, i3=23, i4=2400, i5=8000, i6=6000)


def encode_record(
    buffer: bytes,
    offset: int,
    raw: int,
    *,
    error: int = 0,
    has_error: bool = False,
    temperature: int = 6800,
    adjustment: int = 0,
) -> bytes:
    buffer = write_bits(buffer, offset, 0, 0xE, raw)
    buffer = write_bits(buffer, offset, 0xE, 0xB, error)
    buffer = write_bits(buffer, offset, 0x19, 1, int(has_error))
    buffer = write_bits(buffer, offset, 0x1A, 0xC, temperature >> 2)
    buffer = write_bits(buffer, offset, 0x26, 9, abs(adjustment) >> 2)
    return write_bits(buffer, offset, 0x2F, 1, int(adjustment < 0))


def encode_calibration(buffer: bytes, calibration: CalibrationInfo) -> bytes:
    buffer = write_bits(buffer, 2, 0, 3, calibration.i1)
    buffer = write_bits(buffer, 2, 3, 0xA, calibration.i2)
    buffer = write_bits(buffer, 0x150, 0, 8, abs(calibration.i3))
    buffer = write_bits(buffer, 0x150, 8, 0xE, calibration.i4)
    buffer = write_bits(buffer, 0x150, 0x21, 1, int(calibration.i3 < 0))
    buffer = write_bits(buffer, 0x150, 0x28, 0xC, calibration.i5 >> 2)
    return write_bits(buffer, 0x150, 0x34, 0xC, calibration.i6 >> 2)


def build_fram(
    *,
    state: int = SensorState.ACTIVE,
    age: int = 4000,
    trend_index: int = 5,
    history_index: int | None = None,
    region: int = 1,
    max_life: int = 20880,
    initializations: int = 1,
    calibration: CalibrationInfo = DEFAULT_CALIBRATION,
    length: int = 344,
) -> bytes:
    """Synthetic, correctly checksummed FRAM.

    Trend slot ``j`` holds raw ``1000 + j`` and history slot ``j`` raw
    ``2000 + j``. The history index defaults to the precise index for ``age``.
    """
    if history_index is None:
        history_index = ((age - 3) // 15) % 32
    buffer = bytes(length)
    buffer = write_bits(buffer, 4, 0, 8, state)
    buffer = write_bits(buffer, 26, 0, 8, trend_index)
    buffer = write_bits(buffer, 27, 0, 8, history_index)
    buffer = write_bits(buffer, 316, 0, 16, age)
    buffer = write_bits(buffer, 318, 0, 8, initializations)
    buffer = write_bits(buffer, 323, 0, 8, region)
    buffer = write_bits(buffer, 326, 0, 16, max_life)
    for j in range(16):
        buffer = encode_record(buffer, 28 + j * 6, 1000 + j)
    for j in range(32):
        buffer = encode_record(buffer, 124 + j * 6, 2000 + j)
    buffer = encode_calibration(buffer, calibration)
    return write_checksums(buffer)
