"""Imagen de memoria (FRAM) del sensor y su validación por regiones CRC."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from libre_fram.crc import HEADER, checksum16, present_regions, stored_checksum

logger = logging.getLogger(__name__)

FRAM_SIZE = 344

STATE_OFFSET = 4
TREND_INDEX_OFFSET = 26
HISTORY_INDEX_OFFSET = 27
AGE_OFFSET = 316
INITIALIZATIONS_OFFSET = 318
REGION_OFFSET = 323
MAX_LIFE_OFFSET = 326


@dataclass(frozen=True)
class RegionCheck:
    """Stored vs computed checksum of one region."""

    name: str
    stored: int
    computed: int

    @property
    def ok(self) -> bool:
        return self.stored == self.computed

    def describe(self) -> str:
        verdict = "OK" if self.ok else "FAILED"
        return (
            f"Sensor {self.name} CRC16: {self.stored:04x}, "
            f"computed: {self.computed:04x} -> {verdict}"
        )


@dataclass(frozen=True)
class ValidationReport:
    """Outcome of checksum validation for a whole image."""

    complete: bool
    checks: tuple[RegionCheck, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.complete and all(check.ok for check in self.checks)

    @property
    def failed_regions(self) -> list[str]:
        return [check.name for check in self.checks if not check.ok]

    def describe(self) -> str:
        """Multi-line text report, one line per region."""
        if not self.complete:
            return "FRAM read did not complete: can't verify CRC"
        return "\n".join(check.describe() for check in self.checks)


@dataclass(frozen=True)
class MemoryImage:
    """Immutable view over one FRAM read.

    A newer read is a new instance; nothing here mutates ``data``.
    """

    data: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data))

    def __len__(self) -> int:
        return len(self.data)

    @property
    def complete(self) -> bool:
        return len(self.data) >= FRAM_SIZE

    def validate(self) -> ValidationReport:
        """Check every checksummed region the image covers."""
        if not self.complete:
            return ValidationReport(complete=False)
        checks = tuple(
            RegionCheck(
                name=name,
                stored=stored_checksum(self.data, crc_at),
                computed=checksum16(self.data[start:end]),
            )
            for name, crc_at, start, end in present_regions(self.data)
        )
        for check in checks:
            logger.debug(check.describe())
        return ValidationReport(complete=True, checks=checks)

    def header_checksum_matches(self) -> bool:
        """Whether the header checksum is valid assuming plaintext."""
        _name, crc_at, start, end = HEADER
        if len(self.data) < end:
            return False
        return stored_checksum(self.data, crc_at) == checksum16(self.data[start:end])

    def _uint16(self, offset: int) -> int:
        return self.data[offset] | (self.data[offset + 1] << 8)

    @property
    def state_byte(self) -> int:
        return self.data[STATE_OFFSET]

    @property
    def trend_index(self) -> int:
        return self.data[TREND_INDEX_OFFSET]

    @property
    def history_index(self) -> int:
        return self.data[HISTORY_INDEX_OFFSET]

    @property
    def age(self) -> int:
        """Sensor age in minutes."""
        return self._uint16(AGE_OFFSET)

    @property
    def initializations(self) -> int:
        return self.data[INITIALIZATIONS_OFFSET]

    @property
    def region_code(self) -> int:
        return self.data[REGION_OFFSET]

    @property
    def max_life(self) -> int:
        """Maximum sensor life in minutes."""
        return self._uint16(MAX_LIFE_OFFSET)
