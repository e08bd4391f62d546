"""Modelos tipados para lecturas crudas, calibración y estado del sensor."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import ClassVar


class SensorState(IntEnum):
    """Lifecycle value reported by the sensor in FRAM byte 4."""

    UNKNOWN = 0x00
    NOT_ACTIVATED = 0x01
    WARMING_UP = 0x02
    ACTIVE = 0x03  # Libre 1: ~14.5 days
    EXPIRED = 0x04  # Libre 1: 12 more hours
    SHUTDOWN = 0x05
    FAILURE = 0x06

    @classmethod
    def from_byte(cls, value: int) -> SensorState:
        """Decode a state byte; unrecognized values map to UNKNOWN."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN

    @property
    def description(self) -> str:
        return _STATE_DESCRIPTIONS[self]


_STATE_DESCRIPTIONS: dict[SensorState, str] = {
    SensorState.UNKNOWN: "Unknown",
    SensorState.NOT_ACTIVATED: "Not activated",
    SensorState.WARMING_UP: "Warming up",
    SensorState.ACTIVE: "Active",
    SensorState.EXPIRED: "Expired",
    SensorState.SHUTDOWN: "Shut down",
    SensorState.FAILURE: "Failure",
}


@dataclass(frozen=True)
class GlucoseRecord:
    """One raw trend or history slot, timestamped."""

    raw_value: int
    raw_temperature: int
    temperature_adjustment: int
    id: int
    timestamp: datetime
    has_error: bool = False
    error: int = 0
    value: int = 0
    temperature: float | None = None


@dataclass(frozen=True)
class CalibrationInfo:
    """Factory calibration coefficients packed in the FRAM."""

    i1: int = 0
    i2: int = 0
    i3: int = 0
    i4: int = 0
    i5: int = 0
    i6: int = 0

    EMPTY: ClassVar[CalibrationInfo]


CalibrationInfo.EMPTY = CalibrationInfo()
