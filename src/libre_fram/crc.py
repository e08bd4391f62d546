"""CRC16 de las regiones de la FRAM (tabla reflejada, resultado invertido)."""

from __future__ import annotations

from libre_fram.bits import write_bits

HEADER = ("header", 0, 2, 24)
BODY = ("body", 24, 26, 320)
FOOTER = ("footer", 320, 322, 344)
COMMANDS = ("commands", 344, 346, 1904)

# (name, checksum offset, first byte, end byte)
REGIONS: tuple[tuple[str, int, int, int], ...] = (HEADER, BODY, FOOTER)


def _build_crc_table() -> tuple[int, ...]:
    """Build the reflected CCITT (0x8408) table once at import time."""
    poly = 0x8408
    table = []
    for byte_val in range(256):
        crc = byte_val
        for _ in range(8):
            if crc & 1:
                crc = (crc >> 1) ^ poly
            else:
                crc >>= 1
        table.append(crc)
    return tuple(table)


_CRC16_TABLE = _build_crc_table()


def _reverse16(value: int) -> int:
    out = 0
    for _ in range(16):
        out = (out << 1) | (value & 1)
        value >>= 1
    return out


def checksum16(data: bytes) -> int:
    """Compute the sensor CRC16 of ``data``.

    Table-driven reflected CRC with initial value 0xFFFF. The sensor stores
    the register bit-reversed, so the final 16 bits are reversed too.

    Args:
        data: Bytes of one checksummed region.

    Returns:
        16-bit checksum as stored by the sensor.
    """
    crc = 0xFFFF
    for byte in data:
        crc = (crc >> 8) ^ _CRC16_TABLE[(crc ^ byte) & 0xFF]
    return _reverse16(crc)


def stored_checksum(buffer: bytes, offset: int) -> int:
    """Little-endian checksum stored at ``offset``."""
    return buffer[offset] | (buffer[offset + 1] << 8)


def present_regions(buffer: bytes) -> tuple[tuple[str, int, int, int], ...]:
    """Regions fully covered by ``buffer`` (commands only on long images)."""
    if len(buffer) >= COMMANDS[3]:
        return REGIONS + (COMMANDS,)
    return REGIONS


def write_checksums(buffer: bytes) -> bytes:
    """Recompute and stamp every region checksum.

    Used to build synthetic images; the decoder never rewrites a buffer.
    """
    if len(buffer) < FOOTER[3]:
        raise ValueError(f"FRAM image must be at least {FOOTER[3]} bytes")
    out = bytes(buffer)
    for _name, crc_at, start, end in present_regions(out):
        out = write_bits(out, crc_at, 0, 16, checksum16(out[start:end]))
    return out
