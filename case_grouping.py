"""
Case grouping and filtering for incident event logs.

- filter_throughput_time:  keep cases inside a throughput interval
- split_by_date:           early / late cases by Month.Year bucket
- split_by_throughput:     short / long cases by two independent thresholds
- remove_overlap:          drop cases that ended up in both groups of a split
- activity_cutoff:         keep only the most frequent activities up to a share of volume

Every split is computed on a one-row-per-case table, so a case can only land
on one side of a predicate. None of these functions modify the log passed in.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple

import pandas as pd

from incident_eventlog import EventLog, filter_cases
from log_statistics import THROUGHPUT_COL, activity_frequency, throughput_times


class ConfigurationError(ValueError):
    """Invalid threshold, cutoff or percentile."""


@dataclass(frozen=True)
class CaseGroup:
    name: str
    case_ids: FrozenSet[str]

    def __len__(self) -> int:
        return len(self.case_ids)


@dataclass(frozen=True)
class CaseSplit:
    """
    Result of partitioning a log's cases into two groups.

    removed:    cases that satisfied both predicates and were taken out of both groups
    unassigned: cases that satisfied neither predicate (threshold gap)
    """
    first: CaseGroup
    second: CaseGroup
    removed: FrozenSet[str] = field(default_factory=frozenset)
    unassigned: FrozenSet[str] = field(default_factory=frozenset)

    def as_logs(self, log: EventLog) -> Tuple[EventLog, EventLog]:
        return filter_cases(log, self.first.case_ids), filter_cases(log, self.second.case_ids)


# ============================================================
# THROUGHPUT
# ============================================================

def _check_thresholds(lower_threshold: Optional[float], upper_threshold: Optional[float]):
    if lower_threshold is None and upper_threshold is None:
        raise ConfigurationError("At least one of lower_threshold / upper_threshold is required")
    for name, value in (("lower_threshold", lower_threshold), ("upper_threshold", upper_threshold)):
        if value is not None and value < 0:
            raise ConfigurationError(f"{name} must be >= 0, got {value}")
    if (lower_threshold is not None and upper_threshold is not None
            and lower_threshold > 0 and upper_threshold < lower_threshold):
        raise ConfigurationError(
            f"upper_threshold ({upper_threshold}) < lower_threshold ({lower_threshold}): empty interval"
        )


def _cases_in_interval(times: pd.DataFrame, case_col: str,
                       lower_threshold: Optional[float],
                       upper_threshold: Optional[float]) -> FrozenSet[str]:
    mask = pd.Series(True, index=times.index)
    if lower_threshold is not None:
        mask &= times[THROUGHPUT_COL] >= lower_threshold
    if upper_threshold is not None:
        mask &= times[THROUGHPUT_COL] <= upper_threshold
    return frozenset(times.loc[mask, case_col].tolist())


def filter_throughput_time(
    log: EventLog,
    lower_threshold: Optional[float] = None,
    upper_threshold: Optional[float] = None,
) -> EventLog:
    """Keep the cases whose throughput (days) lies in [lower_threshold, upper_threshold]."""
    _check_thresholds(lower_threshold, upper_threshold)
    times = throughput_times(log)
    return filter_cases(log, _cases_in_interval(times, log.case_id, lower_threshold, upper_threshold))


# ============================================================
# SPLITS
# ============================================================

def remove_overlap(first: CaseGroup, second: CaseGroup) -> CaseSplit:
    """Take any case that appears in both groups out of both."""
    overlap = first.case_ids & second.case_ids
    if overlap:
        shown = sorted(overlap)[:10]
        print(f"[Split] {len(overlap)} case(s) in both '{first.name}' and '{second.name}', "
              f"removing from both: {shown}")
    return CaseSplit(
        first=CaseGroup(first.name, first.case_ids - overlap),
        second=CaseGroup(second.name, second.case_ids - overlap),
        removed=frozenset(overlap),
    )


def split_by_date(log: EventLog, cutoff, names: Tuple[str, str] = ("early", "late")) -> CaseSplit:
    """
    Partition cases on their month bucket: before cutoff / on or after cutoff.

    cutoff may be anything pd.Timestamp accepts; naive values are read as UTC.
    """
    cutoff = pd.Timestamp(cutoff)
    cutoff = cutoff.tz_localize("UTC") if cutoff.tzinfo is None else cutoff.tz_convert("UTC")

    buckets = log.data.groupby(log.case_id, observed=True)[log.month_bucket].min()
    case_ids = buckets.index.astype(str)

    early = CaseGroup(names[0], frozenset(case_ids[(buckets < cutoff).to_numpy()]))
    late = CaseGroup(names[1], frozenset(case_ids[(buckets >= cutoff).to_numpy()]))

    split = remove_overlap(early, late)
    print(f"[Split] cutoff {cutoff.date()}: {names[0]}={len(split.first):,}, {names[1]}={len(split.second):,}")
    return split


def split_by_throughput(
    log: EventLog,
    upper_threshold: float,
    lower_threshold: float,
    names: Tuple[str, str] = ("short", "long"),
) -> CaseSplit:
    """
    Partition cases into throughput <= upper_threshold and throughput >= lower_threshold.

    The two thresholds are independent one-sided filters. If they overlap, the cases
    caught by both are removed from both groups; if they leave a gap, the cases in
    the gap are reported as unassigned.
    """
    _check_thresholds(None, upper_threshold)
    _check_thresholds(lower_threshold, None)

    times = throughput_times(log)
    short = CaseGroup(names[0], _cases_in_interval(times, log.case_id, None, upper_threshold))
    long = CaseGroup(names[1], _cases_in_interval(times, log.case_id, lower_threshold, None))

    split = remove_overlap(short, long)
    unassigned = frozenset(times[log.case_id].tolist()) - short.case_ids - long.case_ids
    if unassigned:
        print(f"[Split] {len(unassigned)} case(s) fall between {upper_threshold} and {lower_threshold} days")

    print(f"[Split] <= {upper_threshold} days: {len(split.first):,} cases, "
          f">= {lower_threshold} days: {len(split.second):,} cases")
    return CaseSplit(split.first, split.second, split.removed, unassigned)


# ============================================================
# ACTIVITY FILTER
# ============================================================

def activity_cutoff(log: EventLog, percentile: float) -> EventLog:
    """
    Keep only the most frequent activity types covering `percentile` of all records.

    Activity types are ranked by count (ties keep first-seen order). A type is kept
    while the share covered by the types ranked before it is still below percentile,
    so the retained set is the shortest prefix whose cumulative share reaches it.
    """
    if not 0.0 <= percentile <= 1.0:
        raise ConfigurationError(f"percentile must be within [0, 1], got {percentile}")

    freq = activity_frequency(log)
    if freq.empty:
        return log.with_data(log.data.copy())

    total = freq["absolute"].sum()
    share_before = (freq["absolute"].cumsum() - freq["absolute"]) / total
    keep = freq.loc[share_before < percentile, log.activity_id].tolist()

    labels = log.data[log.activity_id].astype(str)
    filtered = log.data.loc[labels.isin(keep)].reset_index(drop=True)

    print(f"[Filter] {len(keep)}/{len(freq)} activity types cover {percentile:.0%} "
          f"of volume, {len(filtered):,}/{len(log.data):,} records kept")
    return log.with_data(filtered)
