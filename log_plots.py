"""
Charts for the incident log analysis. Every function saves a PNG and closes the figure.
"""

from typing import Optional

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd

from log_statistics import CASE_COUNT_COL, THROUGHPUT_AVG_COL, THROUGHPUT_COL


def _line_over_months(df: pd.DataFrame, x: str, y: str, ylabel: str, title: str, out_path: str):
    months = df[x]
    if months.dt.tz is not None:
        months = months.dt.tz_convert(None)

    plt.figure(figsize=(10, 5))
    plt.plot(months, df[y], linewidth=0.75, marker="o", markersize=3, color="black")
    plt.title(title)
    plt.xlabel("Month & Year")
    plt.ylabel(ylabel)
    plt.grid(True, linestyle="--", alpha=0.5)
    plt.tight_layout()
    plt.savefig(out_path, dpi=150)
    plt.close()
    return out_path


def plot_case_counts(case_counts: pd.DataFrame, month_col: str, out_path: str,
                     title: str = "Case Counts for Complete Log File") -> str:
    return _line_over_months(case_counts, month_col, CASE_COUNT_COL,
                             "Count of Cases", title, out_path)


def plot_throughput_averages(averages: pd.DataFrame, month_col: str, out_path: str,
                             title: str = "Case Throughput Averages for Complete Log File") -> str:
    return _line_over_months(averages, month_col, THROUGHPUT_AVG_COL,
                             "Average Case Throughput in Days", title, out_path)


def plot_throughput_distribution(times: pd.DataFrame, out_path: str,
                                 threshold: Optional[float] = None,
                                 title: str = "Case Throughput Distribution") -> str:
    """Histogram of per-case throughput days with the median and (optionally) the split threshold."""
    days = times[THROUGHPUT_COL]
    median = float(days.median()) if len(days) > 0 else 0.0

    plt.figure(figsize=(8, 5))
    plt.hist(days, bins=100)
    plt.axvline(median, linestyle="--", linewidth=1, label=f"Median = {median:.2f}")
    if threshold is not None:
        plt.axvline(threshold, linestyle=":", linewidth=1, color="red", label=f"Split = {threshold}")
    plt.title(title)
    plt.xlabel("Throughput time (days)")
    plt.ylabel("Number of cases")
    plt.legend()
    plt.tight_layout()
    plt.savefig(out_path, dpi=150)
    plt.close()
    return out_path
