"""Pipeline de decodificación: FRAM cruda -> lecturas, calibración, identidad.

Todas las funciones son puras dado (buffer, última lectura, UID, patch info):
no hay estado global y se pueden decodificar imágenes distintas en paralelo.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime

from libre_fram.calibration import extract_calibration, factory_glucose
from libre_fram.decryption import Decryptor, open_image
from libre_fram.errors import ChecksumMismatch, FramError, IncompleteBuffer
from libre_fram.fram import FRAM_SIZE, MemoryImage, ValidationReport
from libre_fram.identity import Identity, SensorRegion, derive_identity
from libre_fram.model import CalibrationInfo, GlucoseRecord, SensorState
from libre_fram.records import decode_history, decode_trend, start_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FramDecode:
    """Everything decoded from one FRAM read."""

    identity: Identity
    last_reading: datetime
    report: ValidationReport
    state: SensorState = SensorState.UNKNOWN
    age: int = 0
    initializations: int = 0
    max_life: int = 0
    trend: list[GlucoseRecord] = field(default_factory=list)
    history: list[GlucoseRecord] = field(default_factory=list)
    calibration: CalibrationInfo = CalibrationInfo.EMPTY
    encrypted_fram: bytes = b""
    fram: bytes = b""
    error: FramError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def start_date(self) -> datetime:
        return start_date(self.last_reading, self.age)

    @property
    def factory_trend(self) -> list[GlucoseRecord]:
        return [factory_glucose(r, self.calibration) for r in self.trend]

    @property
    def factory_history(self) -> list[GlucoseRecord]:
        return [factory_glucose(r, self.calibration) for r in self.history]


def _failed(
    identity: Identity,
    last_reading: datetime,
    report: ValidationReport,
    error: FramError,
    *,
    encrypted: bytes = b"",
    fram: bytes = b"",
) -> FramDecode:
    logger.warning("No usable reading: %s", error)
    return FramDecode(
        identity=identity,
        last_reading=last_reading,
        report=report,
        encrypted_fram=encrypted,
        fram=fram,
        error=error,
    )


def decode_fram(
    buffer: bytes,
    last_reading: datetime,
    uid: bytes = b"",
    patch_info: bytes = b"",
    decryptor: Decryptor | None = None,
) -> FramDecode:
    """Decode one FRAM read.

    Hardware data problems never raise: an incomplete read, a failed
    checksum or a failed decryption yield a result with ``state`` unknown,
    no records and ``error`` set.

    Args:
        buffer: Full memory dump.
        last_reading: Instant the dump was acquired.
        uid: 8-byte factory identifier of the session.
        patch_info: Patch info bytes of the session.
        decryptor: Capability used for enciphered images.

    Returns:
        The decoded result.
    """
    identity = derive_identity(uid, patch_info)
    image = MemoryImage(buffer)

    if not image.complete:
        return _failed(
            identity,
            last_reading,
            image.validate(),
            IncompleteBuffer(len(image), FRAM_SIZE),
            fram=image.data,
        )

    try:
        image, encrypted = open_image(
            image, identity.sensor_type, uid, patch_info, decryptor
        )
    except FramError as exc:
        return _failed(
            identity,
            last_reading,
            image.validate(),
            exc,
            encrypted=image.data,
            fram=image.data,
        )

    report = image.validate()
    if not report.complete:
        return _failed(
            identity,
            last_reading,
            report,
            IncompleteBuffer(len(image), FRAM_SIZE),
            encrypted=encrypted,
            fram=image.data,
        )
    if not report.ok:
        return _failed(
            identity,
            last_reading,
            report,
            ChecksumMismatch(report.failed_regions),
            encrypted=encrypted,
            fram=image.data,
        )

    identity = replace(identity, region=SensorRegion.from_code(image.region_code))
    return FramDecode(
        identity=identity,
        last_reading=last_reading,
        report=report,
        state=SensorState.from_byte(image.state_byte),
        age=image.age,
        initializations=image.initializations,
        max_life=image.max_life,
        trend=decode_trend(image, last_reading),
        history=decode_history(image, last_reading),
        calibration=extract_calibration(image.data),
        encrypted_fram=encrypted,
        fram=image.data,
    )
