"""
Normalization of the raw incident table into an event log.

Steps (in order):
    - parse DateStamp strings (day-month-year time) into UTC timestamps
    - tag the identifier/label columns as categorical and add a constant lifecycle
    - give every case a Month.Year bucket: the first-of-month of its earliest record

The result is wrapped in an EventLog, which carries the table together with the
column roles (case, activity, activity instance, lifecycle, resource, timestamp)
that the grouping, statistics and export code read generically.
"""

from dataclasses import dataclass, replace
from typing import Iterable, List, Set

import pandas as pd

from incident_loader import (
    ACTIVITY_COL,
    ACTIVITY_NUMBER_COL,
    CASE_COL,
    INTERACTION_COL,
    KM_COL,
    RESOURCE_COL,
    TIMESTAMP_COL,
)


TIMESTAMP_FORMAT = "%d-%m-%Y %H:%M:%S"
LIFECYCLE_COL = "Lifecycle"
LIFECYCLE_VALUE = "Start"
MONTH_COL = "Month.Year"

CATEGORICAL_COLUMNS = [
    CASE_COL,
    ACTIVITY_NUMBER_COL,
    ACTIVITY_COL,
    RESOURCE_COL,
    KM_COL,
    INTERACTION_COL,
]


class TimestampParseError(ValueError):
    """One or more DateStamp values could not be parsed."""


class EventLogError(ValueError):
    """The table violates an event log invariant."""


@dataclass(frozen=True, eq=False)
class EventLog:
    """A table of activity records plus the names of its role columns."""
    data: pd.DataFrame
    case_id: str = CASE_COL
    activity_id: str = ACTIVITY_COL
    activity_instance_id: str = ACTIVITY_NUMBER_COL
    lifecycle_id: str = LIFECYCLE_COL
    resource_id: str = RESOURCE_COL
    timestamp: str = TIMESTAMP_COL
    month_bucket: str = MONTH_COL

    def with_data(self, data: pd.DataFrame) -> "EventLog":
        return replace(self, data=data)

    def case_ids(self) -> Set[str]:
        return set(self.data[self.case_id].unique().tolist())

    @property
    def n_cases(self) -> int:
        return int(self.data[self.case_id].nunique())

    @property
    def n_events(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return f"EventLog(events={self.n_events}, cases={self.n_cases})"


def parse_timestamps(
    df: pd.DataFrame,
    column: str = TIMESTAMP_COL,
    fmt: str = TIMESTAMP_FORMAT,
    errors: str = "raise",
) -> pd.DataFrame:
    """
    Convert a day-month-year string column into UTC timestamps.

    errors='raise' fails on the first bad batch of values (listing a few of them);
    errors='drop' removes the unparseable records and reports how many were dropped.
    """
    if errors not in ("raise", "drop"):
        raise ValueError(f"Invalid errors mode: {errors}. Must be 'raise' or 'drop'")

    df = df.copy()
    parsed = pd.to_datetime(df[column], format=fmt, errors="coerce", utc=True)
    bad = parsed.isna()

    if bad.any():
        if errors == "raise":
            examples = df.loc[bad, column].head(5).tolist()
            rows = [int(i) for i in df.index[bad][:5]]
            raise TimestampParseError(
                f"{int(bad.sum())} value(s) in '{column}' do not match {fmt!r}: "
                f"rows {rows}, values {examples}"
            )
        print(f"[Normalize] Dropping {int(bad.sum()):,} record(s) with unparseable '{column}'")

    df[column] = parsed
    return df.loc[~bad].reset_index(drop=True)


def tag_categoricals(df: pd.DataFrame, columns: Iterable[str] = CATEGORICAL_COLUMNS) -> pd.DataFrame:
    """Mark label columns as categorical (no category validation) and add the lifecycle column."""
    df = df.copy()
    for col in columns:
        df[col] = df[col].astype("category")
    df[LIFECYCLE_COL] = pd.Categorical([LIFECYCLE_VALUE] * len(df))
    return df


def month_floor(ts: pd.Series) -> pd.Series:
    """First instant of the calendar month of each timestamp, keeping its time zone."""
    return ts.dt.normalize() - pd.to_timedelta(ts.dt.day - 1, unit="D")


def add_month_bucket(
    df: pd.DataFrame,
    case_col: str = CASE_COL,
    ts_col: str = TIMESTAMP_COL,
    month_col: str = MONTH_COL,
) -> pd.DataFrame:
    """
    Join a per-case month bucket onto every record of the case.

    The bucket comes from the case's earliest record; equal timestamps keep the
    original row order. The output is sorted by case id, then timestamp.
    """
    df = df.drop(columns=[month_col], errors="ignore")

    ordered = df.sort_values([case_col, ts_col], kind="mergesort")
    first = ordered.drop_duplicates(subset=case_col, keep="first")
    first = pd.DataFrame({
        case_col: first[case_col],
        month_col: month_floor(first[ts_col]),
    })

    out = df.merge(first, on=case_col, how="left", validate="many_to_one")
    return out.sort_values([case_col, ts_col], kind="mergesort").reset_index(drop=True)


def normalize(raw: pd.DataFrame, errors: str = "raise") -> pd.DataFrame:
    """Run the three normalization steps on a raw (all text) incident table."""
    df = parse_timestamps(raw, errors=errors)
    df = tag_categoricals(df)
    df = add_month_bucket(df)
    print(f"[Normalize] {len(df):,} records, {df[CASE_COL].nunique():,} cases, "
          f"{df[TIMESTAMP_COL].min()} -> {df[TIMESTAMP_COL].max()}")
    return df


def build_event_log(df: pd.DataFrame, **roles) -> EventLog:
    """
    Wrap a normalized table as an EventLog after checking its invariants.

    Keyword arguments override the default role column names
    (case_id, activity_id, activity_instance_id, lifecycle_id, resource_id,
    timestamp, month_bucket).
    """
    log = EventLog(data=df, **roles)

    role_columns: List[str] = [
        log.case_id, log.activity_id, log.activity_instance_id,
        log.lifecycle_id, log.resource_id, log.timestamp,
    ]
    missing = [c for c in role_columns if c not in df.columns]
    if missing:
        raise EventLogError(f"Missing event log columns: {missing}")

    if df[log.timestamp].isna().any():
        raise EventLogError(f"{int(df[log.timestamp].isna().sum())} record(s) without a timestamp")

    dup = df.duplicated(subset=[log.case_id, log.activity_instance_id], keep=False)
    if dup.any():
        pairs = df.loc[dup, [log.case_id, log.activity_instance_id]].drop_duplicates().head(5)
        raise EventLogError(
            f"Activity instance ids repeat within a case: "
            f"{list(pairs.itertuples(index=False, name=None))}"
        )

    return log


def filter_cases(log: EventLog, case_ids: Iterable[str]) -> EventLog:
    """New EventLog holding every record of the given cases."""
    keep = log.data[log.case_id].isin(list(case_ids))
    return log.with_data(log.data.loc[keep].reset_index(drop=True))
