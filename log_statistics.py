"""
Descriptive statistics over an incident EventLog.

Plain pandas for counts and durations; pm4py for the process-mining views
(trace variants, directly-follows self-loops). Functions return new tables and
never touch log.data. Empty logs give zero counts / NaN means rather than errors.
"""

from typing import Dict, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
import pm4py

from incident_eventlog import EventLog


THROUGHPUT_COL = "throughput_time"
CASE_COUNT_COL = "Case.Count"
THROUGHPUT_AVG_COL = "Throughput.Avg"
SECONDS_PER_DAY = 86400

DECILES = np.round(np.arange(0.1, 1.01, 0.1), 1)

PM4PY_CASE = "case:concept:name"
PM4PY_ACTIVITY = "concept:name"
PM4PY_TIMESTAMP = "time:timestamp"


# ============================================================
# PM4PY BRIDGE
# ============================================================

def to_pm4py_frame(log: EventLog) -> pd.DataFrame:
    """Case / activity / timestamp columns under the XES names pm4py expects."""
    df = pd.DataFrame({
        PM4PY_CASE: log.data[log.case_id].astype(str),
        PM4PY_ACTIVITY: log.data[log.activity_id].astype(str),
        PM4PY_TIMESTAMP: log.data[log.timestamp],
    })
    return pm4py.format_dataframe(
        df,
        case_id=PM4PY_CASE,
        activity_key=PM4PY_ACTIVITY,
        timestamp_key=PM4PY_TIMESTAMP,
    )


# ============================================================
# CASE LEVEL
# ============================================================

def n_cases(log: EventLog) -> int:
    return log.n_cases


def trace_lengths(log: EventLog) -> pd.Series:
    """Number of activity records per case."""
    return log.data.groupby(log.case_id, observed=True).size().rename("trace_length")


def mean_trace_length(log: EventLog) -> float:
    lengths = trace_lengths(log)
    return float(lengths.mean()) if len(lengths) > 0 else float("nan")


def n_traces(log: EventLog) -> int:
    """Number of distinct activity sequences (variants)."""
    if log.data.empty:
        return 0
    return len(pm4py.get_variants(to_pm4py_frame(log)))


def throughput_times(log: EventLog) -> pd.DataFrame:
    """One row per case: throughput time in days (latest - earliest timestamp)."""
    if log.data.empty:
        return pd.DataFrame({log.case_id: pd.Series(dtype=object),
                             THROUGHPUT_COL: pd.Series(dtype=float)})

    ts = log.data.groupby(log.case_id, observed=True, sort=False)[log.timestamp]
    days = (ts.max() - ts.min()).dt.total_seconds() / SECONDS_PER_DAY
    out = days.rename(THROUGHPUT_COL).reset_index()
    out[log.case_id] = out[log.case_id].astype(str)
    return out


def throughput_quantiles(log: EventLog, probs: Optional[Sequence[float]] = None) -> pd.Series:
    """Quantiles of case throughput (days); deciles 0.1 .. 1.0 by default."""
    probs = DECILES if probs is None else probs
    return throughput_times(log)[THROUGHPUT_COL].quantile(list(probs))


# ============================================================
# OVER TIME
# ============================================================

def case_counts_by_month(log: EventLog) -> pd.DataFrame:
    """Distinct cases per Month.Year bucket, oldest month first."""
    cases = log.data[[log.month_bucket, log.case_id]].drop_duplicates()
    counts = cases.groupby(log.month_bucket, observed=True).size()
    return counts.rename(CASE_COUNT_COL).reset_index().sort_values(log.month_bucket, ignore_index=True)


def throughput_averages_by_month(log: EventLog) -> pd.DataFrame:
    """Mean case throughput (days) per Month.Year bucket."""
    buckets = log.data[[log.month_bucket, log.case_id]].drop_duplicates(subset=log.case_id).copy()
    buckets[log.case_id] = buckets[log.case_id].astype(str)
    merged = buckets.merge(throughput_times(log), on=log.case_id, how="left")
    avg = merged.groupby(log.month_bucket)[THROUGHPUT_COL].mean()
    return avg.rename(THROUGHPUT_AVG_COL).reset_index().sort_values(log.month_bucket, ignore_index=True)


# ============================================================
# FREQUENCIES
# ============================================================

def _ranked_counts(labels: pd.Series, name: str) -> pd.DataFrame:
    """Counts per label, most frequent first; equal counts keep first-seen order."""
    labels = labels.astype(str)
    counts = labels.groupby(labels, sort=False).size().rename("absolute")
    counts = counts.sort_values(ascending=False, kind="mergesort")
    counts.index.name = name
    out = counts.reset_index()
    total = out["absolute"].sum()
    out["relative"] = out["absolute"] / total if total > 0 else 0.0
    return out


def activity_frequency(log: EventLog) -> pd.DataFrame:
    """Records per activity type: [activity, absolute, relative]."""
    return _ranked_counts(log.data[log.activity_id], log.activity_id)


def resource_frequency(log: EventLog) -> pd.DataFrame:
    """Records per resource (assignment group): [resource, absolute, relative]."""
    return _ranked_counts(log.data[log.resource_id], log.resource_id)


def activity_presence(log: EventLog) -> pd.DataFrame:
    """Cases containing each activity type: [activity, absolute, relative] (relative to case count)."""
    pairs = log.data[[log.case_id, log.activity_id]].astype(str).drop_duplicates()
    out = _ranked_counts(pairs[log.activity_id], log.activity_id)
    cases = log.n_cases
    out["relative"] = out["absolute"] / cases if cases > 0 else 0.0
    return out


# ============================================================
# SELF-LOOPS
# ============================================================

def self_loops(log: EventLog) -> pd.DataFrame:
    """
    Directly repeated activities per type, from the directly-follows graph: [activity, absolute].

    Most repeated first; equal counts keep first-seen order.
    """
    if log.data.empty:
        return pd.DataFrame({log.activity_id: pd.Series(dtype=object),
                             "absolute": pd.Series(dtype=int)})

    dfg, _, _ = pm4py.discover_dfg(to_pm4py_frame(log))
    loops = {src: int(freq) for (src, tgt), freq in dfg.items() if src == tgt}
    first_seen = pd.unique(log.data[log.activity_id].astype(str))
    rows = [(act, loops[act]) for act in first_seen if act in loops]
    out = pd.DataFrame(rows, columns=[log.activity_id, "absolute"])
    return out.sort_values("absolute", ascending=False, kind="mergesort", ignore_index=True)


def cases_with_self_loops(log: EventLog) -> int:
    """Number of cases in which some activity type directly follows itself."""
    if log.data.empty:
        return 0
    ordered = log.data.sort_values([log.case_id, log.timestamp], kind="mergesort")
    cases = ordered[log.case_id].astype(str)
    acts = ordered[log.activity_id].astype(str)
    repeated = acts == acts.groupby(cases).shift()
    return int(cases[repeated].nunique())


# ============================================================
# SUMMARIES
# ============================================================

def summarize(log: EventLog) -> Dict:
    data = log.data
    return {
        "events": log.n_events,
        "cases": log.n_cases,
        "traces": n_traces(log),
        "activities": int(data[log.activity_id].nunique()),
        "resources": int(data[log.resource_id].nunique()),
        "first_timestamp": data[log.timestamp].min() if not data.empty else None,
        "last_timestamp": data[log.timestamp].max() if not data.empty else None,
        "mean_activities_per_case": mean_trace_length(log),
    }


def print_header(title: str):
    print("\n" + "=" * 60)
    print(f"  {title}")
    print("=" * 60)


def print_summary(log: EventLog, title: str = "EVENT LOG SUMMARY"):
    print_header(title)
    for key, value in summarize(log).items():
        if isinstance(value, float):
            value = f"{value:.2f}"
        print(f"  {key:<26} {value}")


def compare_groups(header: str, first, second, labels: Tuple[str, str] = ("Short", "Long")) -> str:
    """Format one metric for two case groups side by side, print it and return the text."""
    text = (f"\n{header} for each group:"
            f"\n     {labels[0] + ':':<8}{first}"
            f"\n     {labels[1] + ':':<8}{second}")
    print(text)
    return text
