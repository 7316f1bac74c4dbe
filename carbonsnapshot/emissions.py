from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from carbonsnapshot.errors import EmptyResultError, StructuralError
from carbonsnapshot.factors import EmissionFactorTable, ScopeLabel, default_factor_table
from carbonsnapshot.matching import resolve_factor

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("activity", "quantity", "unit")


@dataclass(frozen=True)
class ActivityRow:
    activity: str
    quantity: float
    unit: str


@dataclass(frozen=True)
class EmissionRecord:
    id: str
    activity: str
    quantity: float
    unit: str
    scope: ScopeLabel
    category: str
    co2e: float


@dataclass(frozen=True)
class SummaryItem:
    name: str
    value: float


@dataclass(frozen=True)
class FootprintResult:
    total_co2e: float
    detailed: Tuple[EmissionRecord, ...]
    by_scope: Tuple[SummaryItem, ...]
    by_category: Tuple[SummaryItem, ...]

    def to_dict(self) -> Dict[str, object]:
        return {
            "totalCO2e": self.total_co2e,
            "detailed": [
                {
                    "id": record.id,
                    "activity": record.activity,
                    "quantity": record.quantity,
                    "unit": record.unit,
                    "scope": record.scope.value,
                    "category": record.category,
                    "co2e": record.co2e,
                }
                for record in self.detailed
            ],
            "byScope": [{"name": item.name, "value": item.value} for item in self.by_scope],
            "byCategory": [{"name": item.name, "value": item.value} for item in self.by_category],
        }

    @property
    def detailed_df(self) -> pd.DataFrame:
        return pd.DataFrame(
            self.to_dict()["detailed"],
            columns=["id", "activity", "quantity", "unit", "scope", "category", "co2e"],
        )

    @property
    def scope_df(self) -> pd.DataFrame:
        return pd.DataFrame(self.to_dict()["byScope"], columns=["name", "value"])

    @property
    def category_df(self) -> pd.DataFrame:
        return pd.DataFrame(self.to_dict()["byCategory"], columns=["name", "value"])


def resolve_columns(header: Sequence[object]) -> Dict[str, int]:
    """Map each required column to its position, matching names case-insensitively."""
    positions: Dict[str, int] = {}
    for idx, name in enumerate(header):
        normalized = str(name if name is not None else "").strip().lower()
        if normalized in REQUIRED_COLUMNS and normalized not in positions:
            positions[normalized] = idx

    missing = [name for name in REQUIRED_COLUMNS if name not in positions]
    if missing:
        raise StructuralError(missing_columns=missing, required=REQUIRED_COLUMNS)
    return positions


def cell_text(value: object) -> str:
    return "" if value is None else str(value)


def parse_quantity(text: str) -> Optional[float]:
    # float() also accepts digit separators such as "1_000".
    if "_" in text:
        return None
    try:
        value = float(text.strip())
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def parse_activity_row(row: Sequence[object], positions: Dict[str, int]) -> Optional[ActivityRow]:
    """Extract a typed row, or ``None`` when the row should be skipped.

    Returned activity and unit keep their original case; callers lowercase
    for lookup.
    """
    if len(row) < max(positions.values()) + 1:
        return None
    if all(not cell_text(cell).strip() for cell in row):
        return None

    activity = cell_text(row[positions["activity"]]).strip()
    quantity = parse_quantity(cell_text(row[positions["quantity"]]))
    unit = cell_text(row[positions["unit"]]).strip()

    if not activity or quantity is None or not unit:
        return None
    return ActivityRow(activity=activity, quantity=quantity, unit=unit)


def _summarize(records: Sequence[EmissionRecord], key: str) -> Tuple[SummaryItem, ...]:
    totals: Dict[str, float] = {}
    for record in records:
        name = str(getattr(record, key))
        totals[name] = totals.get(name, 0.0) + record.co2e
    return tuple(SummaryItem(name=name, value=round(value, 2)) for name, value in totals.items())


def compute_footprint(
    header: Sequence[object],
    rows: Sequence[Sequence[object]],
    factor_table: Optional[EmissionFactorTable] = None,
) -> FootprintResult:
    """Compute per-row and aggregate CO2e for tabular activity data.

    Raises ``StructuralError`` when a required column is missing and
    ``EmptyResultError`` when no row yields an emission record. Rows with
    missing or unparseable fields are skipped.
    """
    positions = resolve_columns(header)
    table = factor_table if factor_table is not None else default_factor_table()

    records: List[EmissionRecord] = []
    for index, row in enumerate(rows):
        parsed = parse_activity_row(row, positions)
        if parsed is None:
            logger.debug("Skipping row %d: missing or invalid activity/quantity/unit", index + 2)
            continue

        match = resolve_factor(parsed.activity.lower(), table)
        co2e = round(parsed.quantity * match.entry.factor, 2)

        records.append(
            EmissionRecord(
                id=f"item-{index}",
                activity=parsed.activity,
                quantity=parsed.quantity,
                unit=parsed.unit,
                scope=match.entry.scope,
                category=match.entry.category,
                co2e=co2e,
            )
        )

    if not records:
        raise EmptyResultError()

    skipped = len(rows) - len(records)
    if skipped:
        logger.info("Skipped %d of %d data row(s)", skipped, len(rows))

    return FootprintResult(
        total_co2e=round(sum(record.co2e for record in records), 2),
        detailed=tuple(records),
        by_scope=_summarize(records, "scope"),
        by_category=_summarize(records, "category"),
    )
