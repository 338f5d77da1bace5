"""
End-to-end run of the incident log analysis on a small synthetic log.

Usage:
    python test_incident_log_analysis.py      (or: pytest test_incident_log_analysis.py)
"""

import os
import tempfile

import pandas as pd

from incident_log_analysis import main, run_analysis
from incident_loader import REQUIRED_COLUMNS


def print_header(title):
    print("\n" + "=" * 60)
    print(f"  {title}")
    print("=" * 60)


# (case, activity, DateStamp, group)
ROWS = [
    ("IM0000001", "Open", "05-09-2013 08:00:00", "TEAM01"),
    ("IM0000001", "Closed", "06-09-2013 08:00:00", "TEAM01"),
    ("IM0000002", "Open", "01-10-2013 08:00:00", "TEAM01"),
    ("IM0000002", "Assignment", "01-10-2013 08:00:00", "TEAM02"),
    ("IM0000002", "Closed", "03-10-2013 10:00:00", "TEAM02"),
    ("IM0000003", "Open", "02-10-2013 09:00:00", "TEAM01"),
    ("IM0000003", "Closed", "04-10-2013 09:00:00", "TEAM03"),
    ("IM0000004", "Open", "01-10-2013 12:00:00", "TEAM01"),
    ("IM0000004", "Update", "05-10-2013 12:00:00", "TEAM02"),
    ("IM0000004", "Update", "06-10-2013 12:00:00", "TEAM02"),
    ("IM0000004", "Closed", "25-10-2013 12:00:00", "TEAM02"),
    ("IM0000005", "Open", "03-11-2013 07:30:00", "TEAM03"),
    ("IM0000005", "Reassignment", "10-11-2013 07:30:00", "TEAM01"),
    ("IM0000005", "Closed", "20-11-2013 07:30:00", "TEAM01"),
]


def write_incident_csv(tmpdir):
    path = os.path.join(tmpdir, "Detail Incident Activity.csv")
    lines = [";".join(REQUIRED_COLUMNS)]
    for i, (case, act, ts, group) in enumerate(ROWS):
        lines.append(";".join([case, "SD" + case[2:], f"001A{i:07d}", act, group, "", ts]))
    with open(path, "w", encoding="utf-8") as f:
        f.write("\n".join(lines) + "\n")
    return path


def test_1_full_pipeline():
    print_header("TEST 1: Full analysis run")

    with tempfile.TemporaryDirectory() as tmpdir:
        csv_path = write_incident_csv(tmpdir)
        out_dir = os.path.join(tmpdir, "out")

        result = run_analysis(csv_path, out_dir)

        assert result["failed"] == {}
        assert sorted(result["exported"]) == sorted([
            "ShortFiltered.csv", "LongFiltered.csv", "ShortSocial.csv", "LongSocial.csv",
        ])
        for name in ("case_counts.png", "throughput_averages.png", "throughput_distribution_late.png"):
            assert os.path.exists(os.path.join(out_dir, name)), name

        short = pd.read_csv(os.path.join(out_dir, "ShortFiltered.csv"))
        long = pd.read_csv(os.path.join(out_dir, "LongFiltered.csv"))

    print(short)
    print(long)

    assert list(short.columns) == ["Incident.ID", "IncidentActivity_Type", "DateStamp", "org:resource"]
    # September case is excluded; 2-day cases are short, 24 / 17 day cases are long
    assert set(short["Incident.ID"]) == {"IM0000002", "IM0000003"}
    assert set(long["Incident.ID"]) == {"IM0000004", "IM0000005"}

    # Open was tied with Assignment at 08:00 and is now one minute earlier
    opened = short[(short["Incident.ID"] == "IM0000002") & (short["IncidentActivity_Type"] == "Open")]
    assert opened["DateStamp"].tolist() == ["2013-10-01 07:59:00"]

    print("\n✅ TEST 1 PASSED")


def test_2_main_exit_codes():
    print_header("TEST 2: main() exit codes")

    with tempfile.TemporaryDirectory() as tmpdir:
        assert main([os.path.join(tmpdir, "missing.csv"), tmpdir]) == 1
        assert main([write_incident_csv(tmpdir), os.path.join(tmpdir, "out")]) == 0

    print("\n✅ TEST 2 PASSED")


def run_all_tests():
    tests = [
        ("Full pipeline", test_1_full_pipeline),
        ("Exit codes", test_2_main_exit_codes),
    ]

    results = []
    for name, test_func in tests:
        try:
            test_func()
            results.append((name, True))
        except Exception as e:
            print(f"\n❌ TEST FAILED: {name}")
            print(f"   Error: {e}")
            results.append((name, False))

    passed = sum(1 for _, p in results if p)
    print(f"\n  Total: {passed}/{len(results)} tests passed")
    return passed == len(results)


if __name__ == "__main__":
    success = run_all_tests()
    exit(0 if success else 1)
