"""Coeficientes de calibración de fábrica y transformación a glucosa."""

from __future__ import annotations

import math
from dataclasses import replace

from libre_fram.bits import read_bits
from libre_fram.model import CalibrationInfo, GlucoseRecord

_CALIBRATION_OFFSET = 0x150

# Thermistor resistance network and Steinhart-Hart coefficients.
_R_NUMERATOR = 1000.0 + 71500.0
_R_SERIES = 1000.0
_SH_A = 0.0009180023
_SH_B = 0.0001964561
_SH_C = 0.0000007061775
_SH_D = 0.00000005283566


def extract_calibration(buffer: bytes) -> CalibrationInfo:
    """Read the six bit-packed calibration coefficients.

    Args:
        buffer: A validated FRAM image of at least 344 bytes.

    Returns:
        The coefficients; ``i3`` carries its sign bit.
    """
    i1 = read_bits(buffer, 2, 0, 3)
    i2 = read_bits(buffer, 2, 3, 0xA)
    i3 = read_bits(buffer, _CALIBRATION_OFFSET, 0, 8)
    i4 = read_bits(buffer, _CALIBRATION_OFFSET, 8, 0xE)
    negative_i3 = read_bits(buffer, _CALIBRATION_OFFSET, 0x21, 1) != 0
    i5 = read_bits(buffer, _CALIBRATION_OFFSET, 0x28, 0xC) << 2
    i6 = read_bits(buffer, _CALIBRATION_OFFSET, 0x34, 0xC) << 2
    return CalibrationInfo(
        i1=i1,
        i2=i2,
        i3=-i3 if negative_i3 else i3,
        i4=i4,
        i5=i5,
        i6=i6,
    )


def sensor_temperature(record: GlucoseRecord, calibration: CalibrationInfo) -> float | None:
    """Thermistor temperature in °C, or None when undefined."""
    divisor = record.temperature_adjustment + calibration.i6
    if divisor == 0:
        return None
    resistance = (record.raw_temperature * _R_NUMERATOR) / divisor - _R_SERIES
    if resistance <= 0:
        return None
    log_r = math.log(resistance)
    d = log_r**3 * _SH_D + log_r**2 * _SH_C + log_r * _SH_B + _SH_A
    return 1 / d - 273.15


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def factory_glucose(record: GlucoseRecord, calibration: CalibrationInfo) -> GlucoseRecord:
    """Apply the factory calibration to a raw record.

    The output is frozen by golden vectors in the tests; do not tune it.

    Args:
        record: Raw record from the trend or history ring.
        calibration: Coefficients from the same image.

    Returns:
        A copy of ``record`` with ``value`` (mg/dL) and ``temperature`` set.
        ``value`` is 0 for not-yet-valid slots and undefined inputs.
    """
    if record.id < 0 or record.raw_value == 0:
        return replace(record, value=0)
    temperature = sensor_temperature(record, calibration)
    if temperature is None or calibration.i4 == calibration.i3:
        return replace(record, value=0, temperature=temperature)
    g1 = 65.0 * (record.raw_value - calibration.i3) / (calibration.i4 - calibration.i3)
    g2 = 1.045 ** (32.5 - temperature)
    return replace(record, value=round_half_away(g1 * g2), temperature=temperature)
