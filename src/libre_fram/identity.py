"""Identidad del sensor: tipo, familia, región y número de serie.

Se deriva del UID de fábrica (8 bytes) y del patch info. Los valores de
hardware que no se reconocen caen en un miembro "unknown" en vez de fallar.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, IntEnum

from libre_fram.errors import MalformedIdentity

logger = logging.getLogger(__name__)

_SERIAL_ALPHABET = "0123456789ACDEFGHJKLMNPQRTUVWXYZ"


class SensorType(Enum):
    """Known sensor variants, keyed by patch info."""

    LIBRE1 = "Libre 1"
    LIBRE_US_14DAY = "Libre US 14d"
    LIBRE_PRO_H = "Libre Pro/H"
    LIBRE2 = "Libre 2"
    LIBRE2_US = "Libre 2 US"
    LIBRE2_CA = "Libre 2 CA"
    LIBRE_SENSE = "Libre Sense"
    LIBRE3 = "Libre 3"
    UNKNOWN = "Libre"

    def __str__(self) -> str:
        return self.value


class SensorFamily(IntEnum):
    """Product lines; the value is the tag that prefixes the serial."""

    LIBRE = 0
    LIBRE_PRO = 1
    LIBRE2 = 3
    LIBRE_SENSE = 7

    @property
    def description(self) -> str:
        return {
            SensorFamily.LIBRE: "Libre",
            SensorFamily.LIBRE_PRO: "Libre Pro",
            SensorFamily.LIBRE2: "Libre 2",
            SensorFamily.LIBRE_SENSE: "Libre Sense",
        }[self]


class SensorRegion(IntEnum):
    """Market region code."""

    UNKNOWN = 0
    EUROPEAN = 1
    USA = 2
    AUSTRALIAN = 4
    EASTERN = 8

    @classmethod
    def from_code(cls, code: int) -> SensorRegion:
        try:
            return cls(code)
        except ValueError:
            return cls.UNKNOWN

    @property
    def description(self) -> str:
        if self is SensorRegion.USA:
            return "USA"
        if self is SensorRegion.UNKNOWN:
            return "unknown"
        return self.name.capitalize()


_TYPES_BY_FIRST_BYTE: dict[int, SensorType] = {
    0xDF: SensorType.LIBRE1,
    0xA2: SensorType.LIBRE1,
    0xE5: SensorType.LIBRE_US_14DAY,
    0x70: SensorType.LIBRE_PRO_H,
    0x9D: SensorType.LIBRE2,
}


@dataclass(frozen=True)
class Identity:
    """Device metadata derived from UID and patch info."""

    sensor_type: SensorType = SensorType.UNKNOWN
    family: SensorFamily = SensorFamily.LIBRE
    region: SensorRegion = SensorRegion.UNKNOWN
    serial: str = ""
    security_generation: int = 0


def classify_sensor_type(patch_info: bytes) -> SensorType:
    """Map patch info to a sensor type.

    Args:
        patch_info: Patch info bytes as read from the sensor.

    Returns:
        The matching type, or ``SensorType.UNKNOWN`` for anything else.
    """
    if not patch_info:
        return SensorType.UNKNOWN
    first = patch_info[0]
    if first != 0x76:
        return _TYPES_BY_FIRST_BYTE.get(first, SensorType.UNKNOWN)
    if len(patch_info) > 3 and patch_info[3] == 0x02:
        return SensorType.LIBRE2_US
    if len(patch_info) > 3 and patch_info[3] == 0x04:
        return SensorType.LIBRE2_CA
    if len(patch_info) > 2 and patch_info[2] >> 4 == 7:
        return SensorType.LIBRE_SENSE
    return SensorType.UNKNOWN


def derive_family(byte2: int) -> SensorFamily:
    """High nibble of patch info byte 2; unknown values fall back to Libre."""
    try:
        return SensorFamily(byte2 >> 4)
    except ValueError:
        return SensorFamily.LIBRE


def derive_security_generation(family: SensorFamily, byte2: int) -> int:
    """Cipher generation (1 or 2) for families that encrypt; 0 otherwise."""
    generation = byte2 & 0x0F
    if family is SensorFamily.LIBRE2:
        return 1 if generation < 9 else 2
    if family is SensorFamily.LIBRE_SENSE:
        return 1 if generation < 4 else 2
    return 0


def derive_region(patch_info: bytes) -> SensorRegion:
    """Region code carried in patch info byte 3."""
    if len(patch_info) > 3:
        return SensorRegion.from_code(patch_info[3])
    return SensorRegion.UNKNOWN


def _five_bit_groups(uid: bytes) -> list[int]:
    """Split the last 6 bytes of the reversed UID into ten 5-bit groups."""
    if len(uid) != 8:
        raise MalformedIdentity(len(uid))
    b = bytes(reversed(uid))[-6:]
    groups = [
        b[0] >> 3,
        (b[0] << 2) | (b[1] >> 6),
        b[1] >> 1,
        (b[1] << 4) | (b[2] >> 4),
        (b[2] << 1) | (b[3] >> 7),
        b[3] >> 2,
        (b[3] << 3) | (b[4] >> 5),
        b[4],
        b[5] >> 3,
        b[5] << 2,
    ]
    return [g & 0x1F for g in groups]


def serial_number(uid: bytes, family_tag: int = SensorFamily.LIBRE) -> str:
    """Printed serial number for a sensor UID.

    Args:
        uid: 8-byte factory identifier, as read (least significant first).
        family_tag: Numeric family tag used as the first character.

    Returns:
        Serial string, or ``""`` when the UID is not 8 bytes long.
    """
    try:
        groups = _five_bit_groups(uid)
    except MalformedIdentity as exc:
        if uid:
            logger.warning("Cannot derive serial number: %s", exc)
        return ""
    return f"{int(family_tag)}" + "".join(_SERIAL_ALPHABET[g] for g in groups)


def derive_identity(uid: bytes, patch_info: bytes) -> Identity:
    """Build the identity of a sensor session.

    Family and security generation need at least 6 bytes of patch info;
    shorter patch info keeps the base family.
    """
    sensor_type = classify_sensor_type(patch_info)
    family = SensorFamily.LIBRE
    generation = 0
    if len(patch_info) >= 6:
        family = derive_family(patch_info[2])
        generation = derive_security_generation(family, patch_info[2])
    return Identity(
        sensor_type=sensor_type,
        family=family,
        region=derive_region(patch_info),
        serial=serial_number(uid, family),
        security_generation=generation,
    )
