from __future__ import annotations

import json

import pytest

from carbonsnapshot.emissions import compute_footprint
from carbonsnapshot.errors import EmptyResultError, StructuralError, ValidationError
from carbonsnapshot.factors import EmissionFactorEntry, EmissionFactorTable, ScopeLabel

HEADER = ["Activity", "Quantity", "Unit", "Date"]


def _rows() -> list[list[str]]:
    return [
        ["electricity", "1500", "kWh", "2023-01-15"],
        ["natural gas", "200", "therm", "2023-01-20"],
        ["business travel - rail", "800", "km", "2023-06-15"],
        ["Mystery Item", "3", "box", "2023-07-01"],
    ]


def test_exact_match_electricity() -> None:
    result = compute_footprint(HEADER, [["electricity", "1500", "kWh", "2023-01-15"]])

    record = result.detailed[0]
    assert record.co2e == pytest.approx(600.0)
    assert record.scope is ScopeLabel.SCOPE_2
    assert record.scope.value == "Scope 2: Indirect Emissions - Purchased Energy"
    assert record.category == "Energy"
    assert result.total_co2e == pytest.approx(600.0)


def test_totals_match_breakdowns() -> None:
    result = compute_footprint(HEADER, _rows())

    detail_sum = sum(record.co2e for record in result.detailed)
    assert result.total_co2e == pytest.approx(detail_sum, abs=0.01)
    assert sum(item.value for item in result.by_scope) == pytest.approx(result.total_co2e, abs=0.01)
    assert sum(item.value for item in result.by_category) == pytest.approx(result.total_co2e, abs=0.01)


def test_groups_keep_first_seen_order() -> None:
    result = compute_footprint(HEADER, _rows())

    assert [item.name for item in result.by_scope] == [
        ScopeLabel.SCOPE_2.value,
        ScopeLabel.SCOPE_1.value,
        ScopeLabel.SCOPE_3.value,
    ]
    assert [item.name for item in result.by_category] == ["Energy", "Travel", "Other"]


def test_records_keep_original_case_and_row_ids() -> None:
    rows = [["  Mystery Item ", "3", " Box ", ""], ["", "", "", ""], ["electricity", "2", "kWh", ""]]

    result = compute_footprint(HEADER, rows)

    assert [record.id for record in result.detailed] == ["item-0", "item-2"]
    assert result.detailed[0].activity == "Mystery Item"
    assert result.detailed[0].unit == "Box"


@pytest.mark.parametrize(
    "header",
    [
        ["Unit", "Activity", "Quantity"],
        ["activity", "quantity", "unit"],
        ["  ACTIVITY ", "Quantity  ", " unit"],
    ],
)
def test_header_lookup_is_order_and_case_insensitive(header: list[str]) -> None:
    positions = {name.strip().lower(): idx for idx, name in enumerate(header)}
    row = [""] * 3
    row[positions["activity"]] = "electricity"
    row[positions["quantity"]] = "10"
    row[positions["unit"]] = "kWh"

    result = compute_footprint(header, [row])

    assert result.total_co2e == pytest.approx(4.0)


def test_non_numeric_quantity_is_skipped() -> None:
    rows = [["electricity", "abc", "kWh", ""], ["electricity", "10", "kWh", ""]]

    result = compute_footprint(HEADER, rows)

    assert len(result.detailed) == 1
    assert result.total_co2e == pytest.approx(4.0)


@pytest.mark.parametrize(
    "row",
    [
        ["", "", "", ""],
        ["   ", " ", "", "  "],
        ["electricity", "10"],
        ["", "10", "kWh", ""],
        ["electricity", "10", "  ", ""],
        ["electricity", "inf", "kWh", ""],
        ["electricity", "nan", "kWh", ""],
        ["electricity", "1_000", "kWh", ""],
    ],
)
def test_invalid_rows_are_skipped(row: list[str]) -> None:
    result = compute_footprint(HEADER, [row, ["waste", "2", "kg", ""]])

    assert [record.activity for record in result.detailed] == ["waste"]


def test_category_substring_fallback() -> None:
    result = compute_footprint(HEADER, [["Team travel expenses", "100", "km", ""]])

    record = result.detailed[0]
    # First Travel-tagged entry in table order is gasoline (2.3, Scope 1).
    assert record.category == "Travel"
    assert record.scope is ScopeLabel.SCOPE_1
    assert record.co2e == pytest.approx(230.0)


def test_default_fallback() -> None:
    result = compute_footprint(HEADER, [["Widgets", "7", "pcs", ""]])

    record = result.detailed[0]
    assert record.category == "Other"
    assert record.scope is ScopeLabel.SCOPE_3
    assert record.co2e == pytest.approx(7.0)


def test_missing_quantity_column_raises_structural_error() -> None:
    with pytest.raises(StructuralError) as excinfo:
        compute_footprint(["Activity", "Unit"], [["electricity", "kWh"]])

    assert excinfo.value.missing_columns == ("quantity",)
    assert isinstance(excinfo.value, ValidationError)
    assert "Quantity" in str(excinfo.value)


def test_structural_error_raised_before_rows_are_read() -> None:
    class Exploding(list):
        def __iter__(self):
            raise AssertionError("rows should not be scanned")

    with pytest.raises(StructuralError):
        compute_footprint(["Activity", "Unit"], Exploding())


def test_header_only_raises_empty_result() -> None:
    with pytest.raises(EmptyResultError) as excinfo:
        compute_footprint(["Activity", "Quantity", "Unit"], [])

    assert "no valid emission activities" in str(excinfo.value).lower()


def test_all_rows_skipped_raises_empty_result() -> None:
    with pytest.raises(EmptyResultError):
        compute_footprint(HEADER, [["electricity", "abc", "kWh", ""], ["", "", "", ""]])


def test_injected_factor_table_is_used() -> None:
    table = EmissionFactorTable.from_mapping(
        {
            "electricity": EmissionFactorEntry(factor=1.0, unit="kWh", scope=ScopeLabel.SCOPE_2, category="Power"),
            "default": EmissionFactorEntry(factor=0.0, unit="unit", scope=ScopeLabel.SCOPE_3, category="Other"),
        }
    )

    result = compute_footprint(HEADER, [["electricity", "1500", "kWh", ""]], factor_table=table)

    assert result.total_co2e == pytest.approx(1500.0)
    assert result.by_category[0].name == "Power"


def test_rounding_to_two_decimals() -> None:
    result = compute_footprint(HEADER, [["flights", "3.34", "km", ""]])

    assert result.detailed[0].co2e == pytest.approx(0.5)
    assert result.total_co2e == pytest.approx(0.5)


def test_repeated_runs_are_identical() -> None:
    first = compute_footprint(HEADER, _rows())
    second = compute_footprint(HEADER, _rows())

    assert first == second
    assert json.dumps(first.to_dict(), sort_keys=True) == json.dumps(second.to_dict(), sort_keys=True)


def test_dataframe_views() -> None:
    result = compute_footprint(HEADER, _rows())

    assert list(result.detailed_df.columns) == ["id", "activity", "quantity", "unit", "scope", "category", "co2e"]
    assert len(result.detailed_df) == 4
    assert result.scope_df["value"].sum() == pytest.approx(result.total_co2e, abs=0.01)
    assert result.category_df["name"].tolist() == ["Energy", "Travel", "Other"]


def test_quantity_with_digit_separator_is_skipped() -> None:
    result = compute_footprint(HEADER, [["electricity", "1_000", "kWh", ""], ["electricity", "1000", "kWh", ""]])

    assert [record.id for record in result.detailed] == ["item-1"]
    assert result.total_co2e == pytest.approx(400.0)
