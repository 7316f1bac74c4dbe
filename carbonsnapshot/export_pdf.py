from __future__ import annotations

import logging
from datetime import date
from io import BytesIO
from typing import Iterable, List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.colors import HexColor
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from carbonsnapshot.config import APP_NAME, TEAL_COLOR
from carbonsnapshot.emissions import FootprintResult
from carbonsnapshot.errors import ExternalToolError
from carbonsnapshot.kpi import metric_tons, top_sources, with_percentages

logger = logging.getLogger(__name__)

MARGIN = 20 * mm
DETAIL_HEADERS = ["Activity", "Quantity", "Unit", "CO2e (kg)"]
DETAIL_COL_WIDTHS = [70 * mm, 30 * mm, 25 * mm, 35 * mm]
MAX_ACTIVITY_CHARS = 30


def _fmt(value: float) -> str:
    return f"{value:,.2f}"


def report_file_name(company_name: str = "") -> str:
    return f"{company_name.strip() or 'Company'}_Carbon_Footprint_Report.pdf"


def _styles():
    styles = getSampleStyleSheet()
    teal = HexColor(TEAL_COLOR)
    styles.add(ParagraphStyle(name="AppTitle", fontSize=24, leading=28, alignment=1, textColor=teal, spaceAfter=6))
    styles.add(ParagraphStyle(name="ReportSubtitle", fontSize=12, alignment=1, textColor=colors.grey, spaceAfter=18))
    styles.add(ParagraphStyle(name="Company", fontSize=14, leading=18, spaceAfter=6))
    styles.add(ParagraphStyle(name="Section", fontSize=16, leading=20, textColor=teal, spaceBefore=12, spaceAfter=8))
    styles.add(ParagraphStyle(name="Total", fontSize=22, leading=26, spaceAfter=4))
    styles.add(ParagraphStyle(name="Line", fontSize=12, leading=16))
    return styles


def _detail_table(result: FootprintResult) -> Table:
    data: List[List[str]] = [DETAIL_HEADERS]
    for record in result.detailed:
        data.append(
            [
                record.activity[:MAX_ACTIVITY_CHARS],
                f"{record.quantity:g}",
                record.unit,
                _fmt(record.co2e),
            ]
        )

    table = Table(data, colWidths=DETAIL_COL_WIDTHS, repeatRows=1, hAlign="LEFT")
    table.setStyle(
        TableStyle(
            [
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 10),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.HexColor("#505050")),
                ("LINEBELOW", (0, 0), (-1, 0), 0.75, colors.HexColor("#c8c8c8")),
                ("LINEBELOW", (0, 1), (-1, -2), 0.25, colors.HexColor("#e6e6e6")),
                ("ALIGN", (1, 1), (1, -1), "RIGHT"),
                ("ALIGN", (3, 1), (3, -1), "RIGHT"),
            ]
        )
    )
    return table


def export_pdf(
    result: FootprintResult,
    company_name: str = "",
    generated_on: Optional[date] = None,
    charts: Optional[Iterable[bytes]] = None,
) -> BytesIO:
    """Render the footprint summary, breakdowns, and detail table as a PDF."""
    generated_on = generated_on or date.today()
    date_text = generated_on.strftime("%Y-%m-%d")
    styles = _styles()
    story = []

    story.append(Paragraph(APP_NAME, styles["AppTitle"]))
    story.append(Paragraph("Carbon Footprint Report", styles["ReportSubtitle"]))
    if company_name.strip():
        story.append(Paragraph(f"Company: {escape(company_name.strip())}", styles["Company"]))
    story.append(Paragraph(f"Report Generated: {date_text}", styles["Normal"]))
    story.append(Spacer(1, 12))

    story.append(Paragraph("Total Estimated Emissions", styles["Section"]))
    story.append(Paragraph(f"{_fmt(result.total_co2e)} kg CO2e", styles["Total"]))
    story.append(Paragraph(f"({metric_tons(result.total_co2e):,.2f} metric tons CO2e)", styles["Line"]))

    story.append(Paragraph("Top Emission Sources:", styles["Section"]))
    for position, row in enumerate(top_sources(result, n=5).itertuples(index=False), start=1):
        story.append(
            Paragraph(
                f"{position}. {escape(row.name)}: {_fmt(row.value)} kg CO2e ({row.percentage:.1f}%)",
                styles["Line"],
            )
        )

    story.append(Paragraph("Emissions by Scope:", styles["Section"]))
    for row in with_percentages(result.by_scope, result.total_co2e).itertuples(index=False):
        story.append(
            Paragraph(f"{escape(row.name)}: {_fmt(row.value)} kg CO2e ({row.percentage:.1f}%)", styles["Line"])
        )

    for chart in charts or []:
        story.append(Spacer(1, 12))
        story.append(Image(BytesIO(chart), width=170 * mm, height=92 * mm))

    story.append(Paragraph("Detailed Emissions:", styles["Section"]))
    story.append(_detail_table(result))

    def _footer(canvas, doc) -> None:
        canvas.saveState()
        canvas.setFont("Helvetica", 8)
        canvas.setFillColor(colors.grey)
        canvas.drawCentredString(doc.pagesize[0] / 2, 15 * mm, f"Generated by {APP_NAME} | {date_text}")
        canvas.restoreState()

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        topMargin=MARGIN,
        bottomMargin=MARGIN + 5 * mm,
        title=f"{APP_NAME} Carbon Footprint Report",
    )
    try:
        doc.build(story, onFirstPage=_footer, onLaterPages=_footer)
    except Exception as exc:
        logger.exception("PDF generation failed")
        raise ExternalToolError("pdf", "An error occurred while generating the PDF report.") from exc

    buffer.seek(0)
    return buffer
