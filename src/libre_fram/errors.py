"""Errores del decodificador de FRAM.

Ninguno es fatal: el pipeline los registra en el resultado y sigue.
"""

from __future__ import annotations

from collections.abc import Sequence


class FramError(Exception):
    """Base class for every FRAM decoding failure."""


class IncompleteBuffer(FramError):
    """The memory image is shorter than the decoder needs."""

    def __init__(self, length: int, required: int) -> None:
        super().__init__(f"FRAM read did not complete: {length} of {required} bytes")
        self.length = length
        self.required = required


class ChecksumMismatch(FramError):
    """One or more checksum-protected regions failed validation."""

    def __init__(self, regions: Sequence[str]) -> None:
        super().__init__(f"CRC16 FAILED for: {', '.join(regions)}")
        self.regions = tuple(regions)


class DecryptionFailed(FramError):
    """The decryption collaborator could not recover a plaintext image."""

    def __init__(self, reason: str = "decryption failed") -> None:
        super().__init__(reason)
        self.reason = reason


class MalformedIdentity(FramError):
    """Factory UID is not exactly 8 bytes."""

    def __init__(self, length: int) -> None:
        super().__init__(f"Sensor UID must be 8 bytes, got {length}")
        self.length = length
