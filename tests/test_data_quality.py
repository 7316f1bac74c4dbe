from __future__ import annotations

import pytest

from carbonsnapshot.data_quality import assess_rows
from carbonsnapshot.emissions import compute_footprint
from carbonsnapshot.errors import StructuralError

HEADER = ["Activity", "Quantity", "Unit"]


def _rows() -> list[list[str]]:
    return [
        ["electricity", "100", "kWh"],
        ["electricity", "abc", "kWh"],
        ["", "", ""],
        ["", "5", "kg"],
        ["waste", "5", ""],
        ["team travel", "10", "km"],
        ["widgets", "4", "pcs"],
    ]


def test_assess_rows_reports_skips() -> None:
    report = assess_rows(HEADER, _rows())

    assert report["row_count"] == 7
    assert report["valid_count"] == 3
    assert report["skipped_count"] == 4
    assert report["issue_counts"] == {
        "Non-numeric quantity": 1,
        "Blank row": 1,
        "Missing activity": 1,
        "Missing unit": 1,
    }
    assert report["issues_df"]["row"].tolist() == [3, 4, 5, 6]


def test_assess_rows_reports_fallbacks() -> None:
    report = assess_rows(HEADER, _rows())

    fallback = report["fallback_df"]
    assert fallback["activity"].tolist() == ["team travel", "widgets"]
    assert fallback["rule"].tolist() == ["category", "default"]


def test_assess_rows_agrees_with_calculator() -> None:
    report = assess_rows(HEADER, _rows())
    result = compute_footprint(HEADER, _rows())

    assert report["valid_count"] == len(result.detailed)


def test_assess_rows_clean_input() -> None:
    report = assess_rows(HEADER, [["electricity", "1", "kWh"]])

    assert report["skipped_count"] == 0
    assert report["issue_counts"] == {}
    assert report["fallback_df"].empty


def test_assess_rows_requires_columns() -> None:
    with pytest.raises(StructuralError):
        assess_rows(["Activity"], [["electricity"]])
