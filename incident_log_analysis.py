"""
Incident Log Analysis (BPIC 2014 "Detail Incident Activity")

Pipeline:
    1. Load the semicolon separated activity log
    2. Normalize: UTC timestamps, categorical labels, Month.Year bucket per case
    3. Explore: summary, case counts / throughput averages per month (charts)
    4. Keep cases starting in October 2013 or later
    5. Split them on throughput time into short and long cases, compare the groups
    6. Export the complete groups (ShortSocial / LongSocial) for social network mining
    7. Keep the activities covering 90% of the volume, force Open/Closed to the
       case bounds and export ShortFiltered / LongFiltered for ProM

Usage:
    python incident_log_analysis.py ["Detail Incident Activity.csv"] [output_dir]
"""

import sys
from pathlib import Path
from typing import Dict, Optional

from case_grouping import activity_cutoff, split_by_date, split_by_throughput
from incident_eventlog import EventLogError, TimestampParseError, build_event_log, filter_cases, normalize
from incident_loader import DELIMITER, INCIDENT_CSV, LoadError, load_csv
from log_plots import plot_case_counts, plot_throughput_averages, plot_throughput_distribution
from log_statistics import (
    activity_frequency,
    activity_presence,
    case_counts_by_month,
    cases_with_self_loops,
    compare_groups,
    mean_trace_length,
    n_cases,
    n_traces,
    print_header,
    print_summary,
    resource_frequency,
    self_loops,
    throughput_averages_by_month,
    throughput_quantiles,
    throughput_times,
)
from open_closed_fix import fix_open_closed
from prom_export import export_for_prom


# Config

OUTPUT_DIR = "."

# Cases whose first record falls in this month or later form the analysed log
LATE_CUTOFF = "2013-10-01"

# Split close to the median throughput of the late cases (days)
SHORT_UPPER_THRESHOLD = 9.287
LONG_LOWER_THRESHOLD = 9.2871

# Share of activity volume kept before export
ACTIVITY_PERCENTILE = 0.90

TOP_N = 10

SHORT_FILTERED_CSV = "ShortFiltered.csv"
LONG_FILTERED_CSV = "LongFiltered.csv"
SHORT_SOCIAL_CSV = "ShortSocial.csv"
LONG_SOCIAL_CSV = "LongSocial.csv"

CASE_COUNTS_PNG = "case_counts.png"
THROUGHPUT_AVG_PNG = "throughput_averages.png"
THROUGHPUT_DIST_PNG = "throughput_distribution_late.png"


def _print_top(title, table, n=TOP_N):
    print(f"\n{title}")
    print(table.head(n).to_string(index=False))


def run_analysis(csv_path: str = INCIDENT_CSV, output_dir: str = OUTPUT_DIR) -> Dict:
    """
    Run the full analysis.

    Returns:
        Dict with 'exported' (name -> path) and 'failed' (name -> error) for the CSV outputs
    """
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    # --- Load & normalize ---
    raw = load_csv(csv_path, sep=DELIMITER)
    log = build_event_log(normalize(raw))
    print_summary(log, "INCIDENT LOG SUMMARY")

    # --- Complete log over time ---
    print_header("COMPLETE LOG OVER TIME")
    case_counts = case_counts_by_month(log)
    print(case_counts.to_string(index=False))
    plot_case_counts(case_counts, log.month_bucket, str(out / CASE_COUNTS_PNG))

    averages = throughput_averages_by_month(log)
    print(averages.to_string(index=False))
    plot_throughput_averages(averages, log.month_bucket, str(out / THROUGHPUT_AVG_PNG))

    # --- Late cases ---
    print_header(f"CASES STARTING {LATE_CUTOFF} OR LATER")
    late = filter_cases(log, split_by_date(log, LATE_CUTOFF).second.case_ids)
    print(case_counts_by_month(late).to_string(index=False))

    times = throughput_times(late)
    print("\nThroughput time (days):")
    print(times["throughput_time"].describe().to_string())
    print("\nDeciles:")
    print(throughput_quantiles(late).to_string())
    plot_throughput_distribution(times, str(out / THROUGHPUT_DIST_PNG), threshold=SHORT_UPPER_THRESHOLD,
                                 title="Case Throughput Distribution (Oct 2013 and later)")

    # --- Short vs long ---
    print_header("SHORT vs LONG CASES")
    split = split_by_throughput(late, SHORT_UPPER_THRESHOLD, LONG_LOWER_THRESHOLD)
    short, long = split.as_logs(late)

    compare_groups("# of cases", n_cases(short), n_cases(long))
    compare_groups("Avg # of activities per case",
                   f"{mean_trace_length(short):.2f}", f"{mean_trace_length(long):.2f}")
    compare_groups("# of traces", n_traces(short), n_traces(long))
    compare_groups("# of cases with self-loops", cases_with_self_loops(short), cases_with_self_loops(long))

    for label, group in (("Short", short), ("Long", long)):
        _print_top(f"{label}: most frequent activities", activity_frequency(group))
        _print_top(f"{label}: activity presence", activity_presence(group))
        _print_top(f"{label}: most active assignment groups", resource_frequency(group))
        _print_top(f"{label}: self-loops", self_loops(group))

    # --- Exports ---
    print_header("EXPORTS")
    exported, failed = {}, {}

    def _export(group, name):
        try:
            exported[name] = export_for_prom(group, str(out / name))
        except OSError as e:
            print(f"[Export] FAILED {name}: {e}")
            failed[name] = e

    _export(fix_open_closed(short), SHORT_SOCIAL_CSV)
    _export(fix_open_closed(long), LONG_SOCIAL_CSV)

    short_filtered = fix_open_closed(activity_cutoff(short, ACTIVITY_PERCENTILE))
    long_filtered = fix_open_closed(activity_cutoff(long, ACTIVITY_PERCENTILE))

    _export(short_filtered, SHORT_FILTERED_CSV)
    _export(long_filtered, LONG_FILTERED_CSV)

    return {"exported": exported, "failed": failed}


def main(argv: Optional[list] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    csv_path = argv[0] if len(argv) > 0 else INCIDENT_CSV
    output_dir = argv[1] if len(argv) > 1 else OUTPUT_DIR

    try:
        result = run_analysis(csv_path, output_dir)
    except (LoadError, TimestampParseError, EventLogError) as e:
        print(f"[Error] {e}")
        return 1

    if result["failed"]:
        print(f"\n{len(result['failed'])} export(s) failed: {sorted(result['failed'])}")
        return 1

    print(f"\nAnalysis complete, {len(result['exported'])} file(s) written.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
