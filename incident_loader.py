"""
Loader for the BPIC 2014 "Detail Incident Activity" log.

Reads a delimited text file into a DataFrame with every column kept as text.
Any problem with the file (missing, empty, ragged rows, missing columns)
fails the whole load; nothing is partially recovered.
"""

import csv
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd


INCIDENT_CSV = "Detail Incident Activity.csv"
DELIMITER = ";"

# Source column names
CASE_COL = "Incident.ID"
INTERACTION_COL = "Interaction.ID"
ACTIVITY_NUMBER_COL = "IncidentActivity_Number"
ACTIVITY_COL = "IncidentActivity_Type"
RESOURCE_COL = "Assignment.Group"
KM_COL = "KM.number"
TIMESTAMP_COL = "DateStamp"

REQUIRED_COLUMNS = [
    CASE_COL,
    INTERACTION_COL,
    ACTIVITY_NUMBER_COL,
    ACTIVITY_COL,
    RESOURCE_COL,
    KM_COL,
    TIMESTAMP_COL,
]


class LoadError(ValueError):
    """The input file could not be read as a complete table."""


def load_csv(
    path: str = INCIDENT_CSV,
    sep: str = DELIMITER,
    required_columns: Optional[Iterable[str]] = REQUIRED_COLUMNS,
) -> pd.DataFrame:
    """
    Load a delimited file as a table of text columns.

    Args:
        path: File to read
        sep: Field delimiter (';' for the incident activity log)
        required_columns: Columns the header must contain, or None to skip the check

    Returns:
        DataFrame with one row per line and all values as str
    """
    fp = Path(path)
    if not fp.is_file():
        raise LoadError(f"Input file not found: {fp}")

    _check_field_counts(fp, sep)

    try:
        df = pd.read_csv(fp, sep=sep, dtype=str, keep_default_na=False, index_col=False)
    except pd.errors.EmptyDataError:
        raise LoadError(f"Input file is empty: {fp}")
    except pd.errors.ParserError as e:
        raise LoadError(f"Malformed row in {fp}: {e}")

    if df.empty:
        raise LoadError(f"Input file has a header but no rows: {fp}")

    if required_columns is not None:
        missing = [c for c in required_columns if c not in df.columns]
        if missing:
            raise LoadError(f"Missing required columns in {fp}: {missing}")

    print(f"[Load] {fp}: {len(df):,} rows, {len(df.columns)} columns")
    return df


def _check_field_counts(fp: Path, sep: str):
    """Every non-blank record must have exactly as many fields as the header."""
    with open(fp, newline="", encoding="utf-8") as f:
        records = csv.reader(f, delimiter=sep)
        header = next(records, None)
        if header is None:
            raise LoadError(f"Input file is empty: {fp}")

        bad = [(n, len(rec)) for n, rec in enumerate(records, start=2)
               if rec and len(rec) != len(header)]

    if bad:
        shown = ", ".join(f"record {n}: {count} fields" for n, count in bad[:5])
        raise LoadError(
            f"{len(bad)} row(s) in {fp} do not have the {len(header)} fields of the header ({shown})"
        )
