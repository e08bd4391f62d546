from __future__ import annotations

import pytest

from libre_fram.crc import _CRC16_TABLE, checksum16, stored_checksum, write_checksums
from libre_fram.fram import MemoryImage


def test_table_matches_reference_entries() -> None:
    assert len(_CRC16_TABLE) == 256
    assert _CRC16_TABLE[0] == 0
    assert _CRC16_TABLE[1] == 4489
    assert _CRC16_TABLE[128] == 33800
    assert _CRC16_TABLE[255] == 3960


def test_checksum16_check_value_is_bit_reversed() -> None:
    # CRC-16/MCRF4XX("123456789") == 0x6F91, stored bit-reversed.
    assert checksum16(b"123456789") == 0x89F6


def test_checksum16_empty_input() -> None:
    assert checksum16(b"") == 0xFFFF


def test_checksum16_is_deterministic() -> None:
    data = bytes(range(256)) * 2
    assert checksum16(data) == checksum16(bytes(data))
    assert checksum16(data) != checksum16(data[:-1] + b"\x00")


@pytest.mark.parametrize("fill", [0x00, 0xFF, 0x5A])
def test_write_checksums_then_validate_passes(fill: int) -> None:
    buf = write_checksums(bytes([fill]) * 344)
    report = MemoryImage(buf).validate()
    assert report.ok
    assert [c.name for c in report.checks] == ["header", "body", "footer"]


def test_write_checksums_stamps_little_endian() -> None:
    buf = write_checksums(bytes(range(256)) + bytes(88))
    assert stored_checksum(buf, 0) == checksum16(buf[2:24])
    assert buf[0] == checksum16(buf[2:24]) & 0xFF
    assert stored_checksum(buf, 24) == checksum16(buf[26:320])
    assert stored_checksum(buf, 320) == checksum16(buf[322:344])


def test_write_checksums_includes_command_region() -> None:
    buf = write_checksums(bytes([0xA5]) * 1904)
    assert stored_checksum(buf, 344) == checksum16(buf[346:1904])
    report = MemoryImage(buf).validate()
    assert report.ok
    assert report.checks[-1].name == "commands"


def test_write_checksums_leaves_short_command_area_alone() -> None:
    buf = write_checksums(bytes(400))
    assert buf[344:] == bytes(56)


def test_write_checksums_rejects_short_buffer() -> None:
    with pytest.raises(ValueError, match="at least 344"):
        write_checksums(bytes(100))
