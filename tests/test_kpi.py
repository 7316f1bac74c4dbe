from __future__ import annotations

import pytest

from carbonsnapshot.emissions import SummaryItem, compute_footprint
from carbonsnapshot.kpi import (
    driving_miles_equivalent,
    metric_tons,
    summary_metrics,
    top_sources,
    with_percentages,
)


def _result():
    return compute_footprint(
        ["Activity", "Quantity", "Unit"],
        [
            ["electricity", "1500", "kWh"],
            ["waste", "100", "kg"],
            ["diesel", "100", "liter"],
            ["widgets", "30", "pcs"],
        ],
    )


def test_metric_tons_and_miles() -> None:
    assert metric_tons(16357.5) == pytest.approx(16.36, abs=0.01)
    assert driving_miles_equivalent(600.0) == 1440


def test_with_percentages_handles_zero_total() -> None:
    df = with_percentages([SummaryItem("Energy", 0.0)], 0.0)

    assert df["percentage"].tolist() == [0.0]


def test_top_sources_sorted_by_value() -> None:
    top = top_sources(_result(), n=2)

    assert top["name"].tolist() == ["Energy", "Travel"]
    assert top["percentage"].tolist() == pytest.approx([600 / 950 * 100, 270 / 950 * 100], abs=0.05)


def test_summary_metrics() -> None:
    metrics = summary_metrics(_result())

    assert metrics["total_kg_co2e"] == pytest.approx(950.0)
    assert metrics["total_t_co2e"] == pytest.approx(0.95)
    assert metrics["activity_count"] == 4
    assert metrics["category_count"] == 4
