"""CLI para decodificar un volcado de FRAM y exportar sus lecturas."""

from __future__ import annotations

import argparse
import logging
from datetime import datetime
from pathlib import Path

import pandas as pd
from dateutil import parser as date_parser
from dateutil import tz

from libre_fram.decoder import decode_fram
from libre_fram.excel_writer import ExcelLayout, write_fram_xlsx
from libre_fram.frames import records_to_frame, valid_only
from libre_fram.model import GlucoseRecord
from libre_fram.report import detail_lines, hex_dump
from libre_fram.sources.fram_dump import FramDumpPaths, FramDumpSource, parse_hex_dump

_LOCAL_TZ = tz.tzlocal()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed argparse namespace.
    """
    parser = argparse.ArgumentParser(
        description="Decodifica la FRAM de un sensor Libre: tendencia e historial."
    )
    parser.add_argument(
        "dump",
        nargs="?",
        help="Volcado .bin o texto hex (default: el más nuevo de --dump-dir).",
    )
    parser.add_argument(
        "--dump-dir",
        default=str(Path.cwd()),
        help="Directorio con volcados (default: directorio actual).",
    )
    parser.add_argument("--uid", default="", help="UID del sensor en hex (8 bytes).")
    parser.add_argument("--patch-info", default="", help="Patch info en hex.")
    parser.add_argument(
        "--last-reading",
        default=None,
        help="Fecha/hora ISO-8601 de la lectura (default: ahora).",
    )
    parser.add_argument("--xlsx", default=None, help="Exportar a este archivo Excel.")
    parser.add_argument(
        "--valid-only",
        action="store_true",
        help="Exportar solo lecturas válidas (sin slots vacíos ni con error).",
    )
    parser.add_argument(
        "--hex", action="store_true", help="Mostrar el volcado hex de la FRAM."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log DEBUG.")
    return parser.parse_args(argv)


def parse_last_reading(value: str | None) -> datetime:
    """ISO-8601 instant; naive values are taken as local time."""
    if not value:
        return datetime.now(tz=_LOCAL_TZ)
    parsed = date_parser.isoparse(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=_LOCAL_TZ)
    return parsed


def _hex_arg(value: str) -> bytes:
    return parse_hex_dump(value) if value.strip() else b""


def _current_glucose(records: list[GlucoseRecord]) -> str:
    """Glucose of the newest usable trend reading."""
    valid = valid_only(records_to_frame(records))
    if valid.empty or pd.isna(valid["glucose_mg_dl"].iloc[0]):
        return "n/a"
    return f"{int(valid['glucose_mg_dl'].iloc[0])} mg/dL"


def main(argv: list[str] | None = None) -> int:
    """Run the decoding CLI.

    Returns:
        Exit code (0 when the image decoded cleanly, 1 otherwise).
    """
    ns = parse_args(argv)
    logging.basicConfig(
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        level=logging.DEBUG if ns.verbose else logging.WARNING,
    )

    src = FramDumpSource(FramDumpPaths(root=Path(ns.dump_dir).expanduser()))
    if ns.dump:
        dump_path = Path(ns.dump).expanduser()
    else:
        src.validate()
        dump_path = src.newest_dump()
    buffer = src.load_dump(dump_path)

    result = decode_fram(
        buffer,
        parse_last_reading(ns.last_reading),
        uid=_hex_arg(ns.uid),
        patch_info=_hex_arg(ns.patch_info),
    )

    print(f"FRAM dump: {dump_path} ({len(buffer)} bytes)")
    for line in detail_lines(result):
        print(line)
    if ns.hex:
        title = "Sensor decrypted FRAM:" if result.encrypted_fram else "Sensor FRAM:"
        print(hex_dump(result.fram, header=title))
    if result.ok:
        print(f"OK: {len(result.trend)} trend, {len(result.history)} history records")
        print(f"Current glucose: {_current_glucose(result.factory_trend)}")

    if ns.xlsx:
        out_path = Path(ns.xlsx).expanduser()
        write_fram_xlsx(result, out_path, ExcelLayout(valid_rows_only=ns.valid_only))
        print(f"OK: Output: {out_path}")
    return 0 if result.ok else 1
