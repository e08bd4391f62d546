"""Generación de Excel con las lecturas de tendencia e historial."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.styles import Alignment, Border, Font, Side

from libre_fram.decoder import FramDecode
from libre_fram.frames import records_to_frame, valid_only
from libre_fram.report import detail_lines

_HEADER_MAP: dict[str, str] = {
    "id": "Minuto",
    "datetime": "Fecha / Hora",
    "raw_value": "Crudo",
    "raw_temperature": "Temp. cruda",
    "temperature_adjustment": "Ajuste temp.",
    "has_error": "Error",
    "error": "Código",
    "glucose_mg_dl": "Glucosa (mg/dL)",
    "temperature_c": "Temp. (°C)",
}


@dataclass(frozen=True)
class ExcelLayout:
    """Sheet names and row selection of the exported workbook."""

    trend_sheet: str = "Tendencia"
    history_sheet: str = "Historial"
    report_sheet: str = "Sensor"
    # Drop not-yet-valid slots and flagged records from the reading sheets.
    valid_rows_only: bool = False


def _prepare_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Quita timezone de datetime, descarta date/time y renombra cabeceras."""
    export_df = df.copy()
    if "datetime" in export_df.columns and not export_df.empty:
        # Per-value wall clock: a DST change inside the history window mixes offsets.
        export_df["datetime"] = pd.to_datetime(
            export_df["datetime"].map(lambda ts: ts.replace(tzinfo=None)),
            errors="coerce",
        )
    export_df = export_df.drop(columns=[c for c in ("date", "time") if c in export_df])
    return export_df.rename(columns=_HEADER_MAP)


def write_fram_xlsx(result: FramDecode, out_path: Path, layout: ExcelLayout) -> None:
    """Write calibrated trend/history sheets plus a sensor report sheet.

    Args:
        result: Decoded FRAM.
        out_path: Output path for the XLSX file.
        layout: Excel layout parameters.
    """
    out_path.parent.mkdir(parents=True, exist_ok=True)

    trend = records_to_frame(result.factory_trend)
    history = records_to_frame(result.factory_history)
    if layout.valid_rows_only:
        trend = valid_only(trend)
        history = valid_only(history)
    trend = _prepare_frame(trend)
    history = _prepare_frame(history)
    report = pd.DataFrame({"Detalle": detail_lines(result)})

    with pd.ExcelWriter(out_path, engine="openpyxl") as writer:
        for name, frame in (
            (layout.trend_sheet, trend),
            (layout.history_sheet, history),
        ):
            frame.to_excel(writer, index=False, sheet_name=name)
            _format_sheet(writer.book[name])
        report.to_excel(writer, index=False, sheet_name=layout.report_sheet)
        writer.book[layout.report_sheet].column_dimensions["A"].width = 80


def _style_header_row(ws: Any) -> None:
    """Aplica fuente negrita, alineación y borde a la fila de cabecera."""
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    header_font = Font(bold=True)
    center = Alignment(horizontal="center", vertical="center", wrap_text=True)
    for cell in ws[1]:
        cell.font = header_font
        cell.alignment = center
        cell.border = border


def _style_body_rows(ws: Any) -> None:
    thin = Side(style="thin")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    center = Alignment(horizontal="center", vertical="center")
    for row in ws.iter_rows(min_row=2):
        for cell in row:
            cell.alignment = center
            cell.border = border


def _get_header_col_index(ws: Any) -> dict[str, int]:
    """Devuelve mapa nombre de cabecera -> índice de columna (1-based)."""
    headers = [str(cell.value) for cell in ws[1]]
    return {name: idx + 1 for idx, name in enumerate(headers)}


def _apply_column_widths(ws: Any, col_index: dict[str, int]) -> None:
    """Establece anchos de columna para evitar ###."""
    widths = [
        ("Minuto", 8),
        ("Fecha / Hora", 18),
        ("Crudo", 8),
        ("Temp. cruda", 11),
        ("Ajuste temp.", 11),
        ("Error", 7),
        ("Código", 8),
        ("Glucosa (mg/dL)", 14),
        ("Temp. (°C)", 10),
    ]
    for header, width in widths:
        idx = col_index.get(header)
        if idx is not None:
            letter = ws.cell(row=1, column=idx).column_letter
            ws.column_dimensions[letter].width = width


def _apply_number_formats(ws: Any, col_index: dict[str, int]) -> None:
    fmt_map: dict[str, str] = {
        "Fecha / Hora": "dd/mm/yyyy hh:mm",
        "Glucosa (mg/dL)": "0",
        "Temp. (°C)": "0.0",
    }
    for row in ws.iter_rows(min_row=2):
        for header, fmt in fmt_map.items():
            idx = col_index.get(header)
            if idx is not None:
                row[idx - 1].number_format = fmt


def _format_sheet(ws: Any) -> None:
    """Apply borders, widths and number formats to a worksheet.

    Args:
        ws: openpyxl worksheet.
    """
    _style_header_row(ws)
    _style_body_rows(ws)
    col_index = _get_header_col_index(ws)
    _apply_column_widths(ws, col_index)
    _apply_number_formats(ws, col_index)
