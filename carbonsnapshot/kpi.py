from __future__ import annotations

from typing import Dict, Iterable

import pandas as pd

from carbonsnapshot.emissions import FootprintResult, SummaryItem

MILES_PER_KG_CO2E = 2.4


def metric_tons(total_kg: float) -> float:
    return round(float(total_kg) / 1000.0, 2)


def driving_miles_equivalent(total_kg: float) -> int:
    """Approximate passenger-car miles producing the same CO2e."""
    return int(round(float(total_kg) * MILES_PER_KG_CO2E))


def with_percentages(items: Iterable[SummaryItem], total: float) -> pd.DataFrame:
    rows = []
    for item in items:
        share = (item.value / total * 100.0) if total else 0.0
        rows.append({"name": item.name, "value": item.value, "percentage": round(share, 1)})
    return pd.DataFrame(rows, columns=["name", "value", "percentage"])


def top_sources(result: FootprintResult, n: int = 5) -> pd.DataFrame:
    """Largest categories first, with their share of the total."""
    ranked = sorted(result.by_category, key=lambda item: item.value, reverse=True)[:n]
    return with_percentages(ranked, result.total_co2e)


def summary_metrics(result: FootprintResult) -> Dict[str, float]:
    return {
        "total_kg_co2e": result.total_co2e,
        "total_t_co2e": metric_tons(result.total_co2e),
        "driving_miles_equivalent": driving_miles_equivalent(result.total_co2e),
        "activity_count": len(result.detailed),
        "scope_count": len(result.by_scope),
        "category_count": len(result.by_category),
    }
