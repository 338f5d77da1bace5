"""
Export of filtered event logs as CSV for ProM.

ProM's CSV importer picks the resource from a column called org:resource, so the
assignment group column is renamed on the way out.
"""

from pathlib import Path
from typing import Optional, Sequence

import pandas as pd

from incident_eventlog import EventLog


RESOURCE_NAME = "org:resource"
EXPORT_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def export_columns(log: EventLog) -> list:
    """Minimum columns ProM needs: case, activity, timestamp, resource."""
    return [log.case_id, log.activity_id, log.timestamp, log.resource_id]


def select_export_columns(
    log: EventLog,
    columns: Optional[Sequence[str]] = None,
    resource_name: str = RESOURCE_NAME,
) -> pd.DataFrame:
    """Keep `columns` in the given order and rename the resource column."""
    columns = export_columns(log) if columns is None else list(columns)
    missing = [c for c in columns if c not in log.data.columns]
    if missing:
        raise KeyError(f"Columns not in event log: {missing}")

    out = log.data[columns].copy()
    if log.resource_id in out.columns:
        out = out.rename(columns={log.resource_id: resource_name})
    return out


def export_for_prom(
    log: EventLog,
    path: str,
    columns: Optional[Sequence[str]] = None,
    resource_name: str = RESOURCE_NAME,
) -> Path:
    """
    Write the log as comma-delimited text with a header row and no index.

    Errors from the file system (missing directory, permissions) are raised as OSError.
    """
    out = select_export_columns(log, columns, resource_name)
    fp = Path(path)
    out.to_csv(fp, index=False, date_format=EXPORT_TIMESTAMP_FORMAT)
    print(f"[Export] {fp}: {len(out):,} rows, {out.iloc[:, 0].nunique():,} cases")
    return fp
