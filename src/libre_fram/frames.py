"""Conversión de registros decodificados a DataFrames."""

from __future__ import annotations

from collections.abc import Sequence

import pandas as pd

from libre_fram.model import GlucoseRecord

RECORD_COLUMNS = [
    "id",
    "datetime",
    "date",
    "time",
    "raw_value",
    "raw_temperature",
    "temperature_adjustment",
    "has_error",
    "error",
    "glucose_mg_dl",
    "temperature_c",
]


def records_to_frame(records: Sequence[GlucoseRecord]) -> pd.DataFrame:
    """Convert decoded records to a DataFrame, keeping their order.

    Args:
        records: Trend or history records, newest first.

    Returns:
        One row per record with the columns in ``RECORD_COLUMNS``. Records
        that were never calibrated have ``glucose_mg_dl`` set to NA.
    """
    rows = [
        {
            "id": r.id,
            "datetime": r.timestamp,
            "date": r.timestamp.date(),
            "time": r.timestamp.time().replace(second=0, microsecond=0),
            "raw_value": r.raw_value,
            "raw_temperature": r.raw_temperature,
            "temperature_adjustment": r.temperature_adjustment,
            "has_error": r.has_error,
            "error": r.error,
            "glucose_mg_dl": r.value if r.temperature is not None else pd.NA,
            "temperature_c": r.temperature,
        }
        for r in records
    ]
    if not rows:
        return pd.DataFrame(columns=RECORD_COLUMNS)
    return pd.DataFrame(rows, columns=RECORD_COLUMNS)


def valid_only(df: pd.DataFrame) -> pd.DataFrame:
    """Drop not-yet-valid slots (negative id) and flagged records."""
    if df.empty:
        return df
    mask = (df["id"] >= 0) & ~df["has_error"].astype(bool)
    return df.loc[mask].reset_index(drop=True)
