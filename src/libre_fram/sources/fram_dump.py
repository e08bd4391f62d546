"""Lectura de volcados de FRAM guardados en disco (binarios o texto hex)."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from libre_fram.sources.base import DumpSource, SourcePaths

_PATTERNS = ("*.bin", "*.hex", "*.txt")
_HEX_LINE = re.compile(r"^(?:[0-9A-Fa-f]{2}(?:\s+|$))+$")
_BLOCK_PREFIX = re.compile(r"^[0-9A-Fa-f]+:\s*")


@dataclass(frozen=True)
class FramDumpPaths(SourcePaths):
    """Paths for saved FRAM dumps."""

    # root: folder containing *.bin / *.hex / *.txt dumps


class FramDumpSource(DumpSource):
    """Folder of FRAM dumps."""

    def validate(self) -> None:
        """Validate that the dump directory exists."""
        if not self._paths.root.exists():
            raise FileNotFoundError(str(self._paths.root))

    def dump_files(self) -> list[Path]:
        """Return every dump file, sorted by name."""
        files = {p for pattern in _PATTERNS for p in self._paths.root.glob(pattern)}
        return sorted(files)

    def newest_dump(self) -> Path:
        """Return newest dump by mtime."""
        files = sorted(
            self.dump_files(),
            key=lambda p: p.stat().st_mtime,
            reverse=True,
        )
        if not files:
            raise FileNotFoundError(f"No FRAM dumps in {self._paths.root}")
        return files[0]

    def load_dump(self, path: Path) -> bytes:
        """Read a dump file.

        ``.bin`` files are raw bytes; anything else is hex text.

        Args:
            path: Path to the dump.

        Returns:
            The memory image bytes.

        Raises:
            ValueError: If a text dump holds no hex bytes.
        """
        if path.suffix.lower() == ".bin":
            return path.read_bytes()
        return parse_hex_dump(path.read_text(encoding="utf-8"))


def _clean_line(line: str) -> str:
    """Quita el número de bloque, prefijos 0x y comas de una línea."""
    line = _BLOCK_PREFIX.sub("", line.strip())
    line = line.replace("0x", "").replace("0X", "").replace(",", " ")
    return " ".join(line.split())


def parse_hex_dump(text: str) -> bytes:
    """Parse hex text, tolerating log lines and block-numbered dumps.

    Accepts a single run of hex digits or lines of space separated bytes;
    lines that are not hex (e.g. log noise) are skipped. A leading block
    number followed by a colon (``00: DF 01 ...``) is dropped.
    """
    stripped = "".join(text.split())
    if stripped and re.fullmatch(r"(?:[0-9A-Fa-f]{2})+", stripped):
        return bytes.fromhex(stripped)

    out = bytearray()
    for raw_line in text.splitlines():
        line = _clean_line(raw_line)
        if not line or not _HEX_LINE.match(line):
            continue
        out.extend(bytes.fromhex(line.replace(" ", "")))
    if not out:
        raise ValueError("No hex bytes found in dump")
    return bytes(out)
