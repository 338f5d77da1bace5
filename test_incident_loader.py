"""
Tests for the incident log loader.

Usage:
    python test_incident_loader.py      (or: pytest test_incident_loader.py)
"""

import os
import tempfile

import pytest

from incident_loader import REQUIRED_COLUMNS, LoadError, load_csv


HEADER = ";".join(REQUIRED_COLUMNS)


def print_header(title):
    print("\n" + "=" * 60)
    print(f"  {title}")
    print("=" * 60)


def write_file(tmpdir, text, name="incidents.csv"):
    path = os.path.join(tmpdir, name)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
    return path


def test_1_loads_semicolon_file_as_text():
    print_header("TEST 1: Load semicolon separated file")

    text = (
        HEADER + "\n"
        "IM0000004;SD0000004;001A3689763;Reassignment;TEAM0001;KM0000553;07-01-2013 08:17:17\n"
        "IM0000004;SD0000004;001A3689764;Closed;TEAM0002;;08-01-2013 12:00:00\n"
    )
    with tempfile.TemporaryDirectory() as tmpdir:
        df = load_csv(write_file(tmpdir, text))

    print(df)
    assert list(df.columns) == REQUIRED_COLUMNS
    assert len(df) == 2
    assert df["DateStamp"].iloc[0] == "07-01-2013 08:17:17"
    # Identifiers stay text, empty fields stay empty strings
    assert df["IncidentActivity_Number"].iloc[1] == "001A3689764"
    assert df["KM.number"].iloc[1] == ""

    print("\n✅ TEST 1 PASSED")


def test_2_missing_file():
    print_header("TEST 2: Missing file")
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(LoadError):
            load_csv(os.path.join(tmpdir, "nope.csv"))
    print("\n✅ TEST 2 PASSED")


def test_3_empty_file():
    print_header("TEST 3: Empty file and header-only file")
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(LoadError):
            load_csv(write_file(tmpdir, "", "empty.csv"))
        with pytest.raises(LoadError):
            load_csv(write_file(tmpdir, HEADER + "\n", "header_only.csv"))
    print("\n✅ TEST 3 PASSED")


def test_4_row_with_extra_delimiter():
    print_header("TEST 4: Row with too many fields")

    text = (
        HEADER + "\n"
        "IM1;SD1;N1;Open;T1;KM1;01-10-2013 08:00:00\n"
        "IM1;SD1;N2;Closed;T1;KM1;01-10-2013 09:00:00;extra\n"
    )
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(LoadError):
            load_csv(write_file(tmpdir, text))

    print("\n✅ TEST 4 PASSED")


def test_5_missing_required_column():
    print_header("TEST 5: Missing required column")

    header = ";".join(c for c in REQUIRED_COLUMNS if c != "DateStamp")
    text = header + "\n" + "IM1;SD1;N1;Open;T1;KM1\n"
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(LoadError) as exc:
            load_csv(write_file(tmpdir, text))
        # Same file is fine when no columns are required
        df = load_csv(write_file(tmpdir, text, "other.csv"), required_columns=None)

    assert "DateStamp" in str(exc.value)
    assert len(df) == 1

    print("\n✅ TEST 5 PASSED")


def test_6_first_row_with_extra_field():
    print_header("TEST 6: Extra field on the first data row")

    one_bad = (
        HEADER + "\n"
        "IM1;SD1;N1;Open;T1;KM1;01-10-2013 08:00:00;extra\n"
        "IM1;SD1;N2;Closed;T1;KM1;01-10-2013 09:00:00\n"
    )
    all_bad = (
        HEADER + "\n"
        "IM1;SD1;N1;Open;T1;KM1;01-10-2013 08:00:00;extra\n"
        "IM1;SD1;N2;Closed;T1;KM1;01-10-2013 09:00:00;extra\n"
    )
    with tempfile.TemporaryDirectory() as tmpdir:
        # Must not be read as an index column that shifts every field left
        with pytest.raises(LoadError):
            load_csv(write_file(tmpdir, one_bad, "one_bad.csv"))
        with pytest.raises(LoadError):
            load_csv(write_file(tmpdir, all_bad, "all_bad.csv"))

    print("\n✅ TEST 6 PASSED")


def test_7_row_with_missing_field():
    print_header("TEST 7: Row with too few fields")

    text = (
        HEADER + "\n"
        "IM1;SD1;N1;Open;T1;KM1;01-10-2013 08:00:00\n"
        "IM1;SD1;N2;Closed;T1;KM1\n"
    )
    with tempfile.TemporaryDirectory() as tmpdir:
        with pytest.raises(LoadError) as exc:
            load_csv(write_file(tmpdir, text))

    assert "fields" in str(exc.value)

    print("\n✅ TEST 7 PASSED")


def run_all_tests():
    tests = [
        ("Load semicolon file", test_1_loads_semicolon_file_as_text),
        ("Missing file", test_2_missing_file),
        ("Empty file", test_3_empty_file),
        ("Too many fields", test_4_row_with_extra_delimiter),
        ("Missing column", test_5_missing_required_column),
        ("Extra field on first row", test_6_first_row_with_extra_field),
        ("Too few fields", test_7_row_with_missing_field),
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
