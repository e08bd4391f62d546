"""Acceso a campos de bits empaquetados dentro de un buffer de bytes."""

from __future__ import annotations


def read_bits(buffer: bytes, byte_offset: int, bit_offset: int, bit_count: int) -> int:
    """Read an unsigned little-endian bit field.

    Bits are numbered LSB-first inside each byte; bit ``i`` of the result is
    the ``i``-th bit read starting at ``byte_offset * 8 + bit_offset``.

    Args:
        buffer: Source bytes.
        byte_offset: First byte of the field.
        bit_offset: Bit position (may exceed 7) relative to ``byte_offset``.
        bit_count: Width of the field in bits.

    Returns:
        The field value. Bits at negative positions read as zero.
    """
    if bit_count == 0:
        return 0
    res = 0
    for i in range(bit_count):
        total = byte_offset * 8 + bit_offset + i
        # Negative positions read as 0 (lenient, possibly unintended upstream).
        if total >= 0 and (buffer[total // 8] >> (total % 8)) & 1:
            res |= 1 << i
    return res


def write_bits(
    buffer: bytes, byte_offset: int, bit_offset: int, bit_count: int, value: int
) -> bytes:
    """Return a copy of ``buffer`` with a bit field replaced by ``value``.

    Only the low ``bit_count`` bits of ``value`` are stored. Positions that
    :func:`read_bits` treats as zero (negative offsets) are left untouched.
    """
    res = bytearray(buffer)
    for i in range(bit_count):
        total = byte_offset * 8 + bit_offset + i
        if total < 0:
            continue
        byte, bit = divmod(total, 8)
        if (value >> i) & 1:
            res[byte] |= 1 << bit
        else:
            res[byte] &= ~(1 << bit) & 0xFF
    return bytes(res)
