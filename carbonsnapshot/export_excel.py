from __future__ import annotations

from io import BytesIO

import pandas as pd
from openpyxl.styles import Font

from carbonsnapshot.emissions import FootprintResult
from carbonsnapshot.kpi import with_percentages

DETAIL_SHEET = "Detailed Emissions"
SCOPE_SHEET = "Emissions by Scope"
CATEGORY_SHEET = "Emissions by Category"


def _style_sheet(writer: pd.ExcelWriter, sheet_name: str) -> None:
    ws = writer.book[sheet_name]

    for cell in ws[1]:
        cell.font = Font(bold=True)

    for row in ws.iter_rows(min_row=2):
        for cell in row:
            if isinstance(cell.value, (int, float)):
                cell.number_format = "#,##0.00"


def export_excel(result: FootprintResult) -> BytesIO:
    """Write detailed rows and scope/category summaries to a workbook."""
    buffer = BytesIO()

    detailed = result.detailed_df.rename(columns={"co2e": "co2e_kg"})
    by_scope = with_percentages(result.by_scope, result.total_co2e)
    by_category = with_percentages(result.by_category, result.total_co2e)

    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        detailed.to_excel(writer, sheet_name=DETAIL_SHEET, index=False)
        by_scope.to_excel(writer, sheet_name=SCOPE_SHEET, index=False)
        by_category.to_excel(writer, sheet_name=CATEGORY_SHEET, index=False)

        for sheet in [DETAIL_SHEET, SCOPE_SHEET, CATEGORY_SHEET]:
            _style_sheet(writer, sheet)

    buffer.seek(0)
    return buffer
