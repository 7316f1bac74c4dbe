from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import pandas as pd

from carbonsnapshot.emissions import cell_text, parse_quantity, resolve_columns
from carbonsnapshot.factors import EmissionFactorTable, default_factor_table
from carbonsnapshot.matching import resolve_factor


def _skip_reason(row: Sequence[object], positions: Dict[str, int]) -> Optional[str]:
    if len(row) < max(positions.values()) + 1:
        return "Row is missing required cells"
    if all(not cell_text(cell).strip() for cell in row):
        return "Blank row"
    if not cell_text(row[positions["activity"]]).strip():
        return "Missing activity"
    if parse_quantity(cell_text(row[positions["quantity"]])) is None:
        return "Non-numeric quantity"
    if not cell_text(row[positions["unit"]]).strip():
        return "Missing unit"
    return None


def assess_rows(
    header: Sequence[object],
    rows: Sequence[Sequence[object]],
    factor_table: Optional[EmissionFactorTable] = None,
) -> Dict[str, object]:
    """Report skipped rows and factor fallbacks for an upload."""
    positions = resolve_columns(header)
    table = factor_table if factor_table is not None else default_factor_table()

    issues: List[Dict[str, object]] = []
    fallbacks: List[Dict[str, object]] = []

    for index, row in enumerate(rows):
        line = index + 2
        reason = _skip_reason(row, positions)
        if reason is not None:
            issues.append({"row": line, "reason": reason})
            continue

        activity = cell_text(row[positions["activity"]]).strip()
        match = resolve_factor(activity.lower(), table)
        if match.rule != "exact":
            fallbacks.append(
                {
                    "row": line,
                    "activity": activity,
                    "rule": match.rule,
                    "category": match.entry.category,
                    "factor": match.entry.factor,
                }
            )

    issues_df = pd.DataFrame(issues, columns=["row", "reason"])
    fallback_df = pd.DataFrame(fallbacks, columns=["row", "activity", "rule", "category", "factor"])
    issue_counts = {str(reason): int(count) for reason, count in issues_df["reason"].value_counts(sort=False).items()}

    return {
        "row_count": len(rows),
        "valid_count": len(rows) - len(issues),
        "skipped_count": len(issues),
        "issue_counts": issue_counts,
        "issues_df": issues_df,
        "fallback_df": fallback_df,
    }
