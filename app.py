from __future__ import annotations

import logging
import time
from datetime import date

import streamlit as st

from carbonsnapshot.charts import category_bar, figure_to_png_bytes, scope_category_sankey, scope_pie
from carbonsnapshot.config import APP_NAME, PROCESSING_DELAY_SECONDS, TAGLINE
from carbonsnapshot.csv_parser import parse_csv
from carbonsnapshot.data_quality import assess_rows
from carbonsnapshot.emissions import compute_footprint
from carbonsnapshot.errors import ExternalToolError, ProcessingBusyError, ValidationError
from carbonsnapshot.export_excel import export_excel
from carbonsnapshot.export_pdf import export_pdf, report_file_name
from carbonsnapshot.factors import default_factor_table
from carbonsnapshot.kpi import summary_metrics, with_percentages
from carbonsnapshot.log import configure_logging
from carbonsnapshot.sample_data import SAMPLE_FILE_NAME, sample_csv_bytes
from carbonsnapshot.state import (
    AppState,
    Page,
    begin_processing,
    can_enter,
    complete_processing,
    dismiss_error,
    fail_processing,
    navigate,
    set_company_name,
)

logger = logging.getLogger(__name__)


def _ensure_state() -> None:
    defaults = {
        "app_state": AppState(),
        "data_quality": None,
        "pdf_bytes": None,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def _state() -> AppState:
    return st.session_state.app_state


def _set_state(state: AppState) -> None:
    st.session_state.app_state = state


def _go(page: Page) -> None:
    _set_state(navigate(_state(), page))


def _sample_download_button(key: str) -> None:
    st.download_button(
        "Download Sample CSV",
        data=sample_csv_bytes(),
        file_name=SAMPLE_FILE_NAME,
        mime="text/csv",
        key=key,
    )


def _render_navigation() -> None:
    cols = st.columns([3, 1, 1, 1])
    cols[0].markdown(f"### 🌿 {APP_NAME}")
    state = _state()
    for col, page, label in [
        (cols[1], Page.HOME, "Home"),
        (cols[2], Page.UPLOAD, "Upload"),
        (cols[3], Page.DASHBOARD, "Dashboard"),
    ]:
        col.button(
            label,
            key=f"nav-{page.value}",
            on_click=_go,
            args=(page,),
            disabled=not can_enter(state, page),
            type="primary" if state.page is page else "secondary",
            use_container_width=True,
        )


def _render_error() -> None:
    state = _state()
    if state.error:
        st.error(state.error)
        if st.button("Dismiss", key="dismiss-error"):
            _set_state(dismiss_error(state))
            st.rerun()


def _process_upload(uploaded_file) -> None:
    try:
        _set_state(begin_processing(_state()))
    except ProcessingBusyError as exc:
        st.warning(str(exc))
        return

    with st.spinner("Processing your data... Please wait."):
        time.sleep(PROCESSING_DELAY_SECONDS)
        try:
            header, rows = parse_csv(uploaded_file)
            table = default_factor_table()
            result = compute_footprint(header, rows, factor_table=table)
            st.session_state.data_quality = assess_rows(header, rows, factor_table=table)
        except (ValidationError, ExternalToolError, ValueError) as exc:
            logger.info("Upload rejected: %s", exc)
            _set_state(fail_processing(_state(), str(exc)))
            return
        except Exception:
            logger.exception("Error processing emissions")
            _set_state(fail_processing(_state(), "An unexpected error occurred during processing."))
            return

    st.session_state.pdf_bytes = None
    _set_state(complete_processing(_state(), result))
    logger.info("Computed footprint: %.2f kg CO2e from %d activities", result.total_co2e, len(result.detailed))


def _render_home() -> None:
    st.title(APP_NAME)
    st.subheader(TAGLINE)
    st.write(
        "Upload a CSV of your organization's activity data (electricity, fuel, travel, waste, ...) "
        "and get an estimated carbon footprint broken down by scope and category."
    )
    col1, col2 = st.columns(2)
    col1.button("Get Started", on_click=_go, args=(Page.UPLOAD,), type="primary")
    with col2:
        _sample_download_button("home-sample")

    st.markdown("#### How it works")
    st.markdown(
        "1. Prepare a CSV with `Activity`, `Quantity` and `Unit` columns (an optional `Date` column is ignored).\n"
        "2. Upload the file; each activity is matched to an emission factor.\n"
        "3. Review the dashboard and download a PDF report."
    )


def _render_upload() -> None:
    st.subheader("Upload Activity Data")
    state = _state()

    company_name = st.text_input("Company Name (optional)", value=state.company_name)
    if company_name.strip() != state.company_name:
        _set_state(set_company_name(state, company_name))

    uploaded_file = st.file_uploader("Upload activity data (.csv)", type=["csv"], disabled=state.busy)
    if st.button("Calculate Footprint", disabled=uploaded_file is None or state.busy, type="primary"):
        _process_upload(uploaded_file)
        st.rerun()

    st.caption("Required columns: Activity, Quantity, Unit. Column order does not matter.")
    _sample_download_button("upload-sample")


def _render_dashboard() -> None:
    state = _state()
    result = state.result
    title = f"{state.company_name or 'Company'} Carbon Footprint"
    st.subheader(f"{title} (estimate)")
    st.caption(f"Based on uploaded activity data. Last updated: {date.today().isoformat()}")

    metrics = summary_metrics(result)
    m1, m2, m3 = st.columns(3)
    m1.metric("Total Emissions", f"{metrics['total_kg_co2e']:,.2f} kg CO₂e")
    m2.metric("Metric Tons", f"{metrics['total_t_co2e']:,.2f} t CO₂e")
    m3.metric("Driving Equivalent", f"{metrics['driving_miles_equivalent']:,} miles")

    left, right = st.columns(2)
    with left:
        st.plotly_chart(scope_pie(result), use_container_width=True)
        st.dataframe(with_percentages(result.by_scope, result.total_co2e), use_container_width=True)
    with right:
        st.plotly_chart(category_bar(result), use_container_width=True)
        st.dataframe(with_percentages(result.by_category, result.total_co2e), use_container_width=True)

    st.plotly_chart(scope_category_sankey(result), use_container_width=True)

    st.markdown("### Detailed Emissions Data")
    st.dataframe(result.detailed_df, use_container_width=True)
    st.caption(f"Showing {len(result.detailed)} of {len(result.detailed)} results")

    quality = st.session_state.data_quality
    if quality is not None:
        with st.expander(f"Data checks: {quality['skipped_count']} skipped row(s)"):
            if quality["skipped_count"]:
                st.dataframe(quality["issues_df"], use_container_width=True)
            if not quality["fallback_df"].empty:
                st.caption("Activities without an exact factor match")
                st.dataframe(quality["fallback_df"], use_container_width=True)

    st.markdown("### Export")
    col_pdf, col_xlsx, col_new = st.columns(3)
    with col_pdf:
        if st.button("Prepare PDF Report"):
            try:
                chart_png = figure_to_png_bytes(category_bar(result))
                pdf_buffer = export_pdf(
                    result,
                    company_name=state.company_name,
                    charts=[chart_png] if chart_png is not None else None,
                )
                st.session_state.pdf_bytes = pdf_buffer.getvalue()
            except ExternalToolError as exc:
                _set_state(fail_processing(_state(), str(exc)))
                st.rerun()
        if st.session_state.pdf_bytes:
            st.download_button(
                "Download PDF Report",
                data=st.session_state.pdf_bytes,
                file_name=report_file_name(state.company_name),
                mime="application/pdf",
            )
    with col_xlsx:
        st.download_button(
            "Download Excel Report",
            data=export_excel(result).getvalue(),
            file_name="carbonsnapshot_report.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )
    with col_new:
        st.button("Upload New Data", on_click=_go, args=(Page.UPLOAD,))


configure_logging()
st.set_page_config(page_title=APP_NAME, page_icon="🌿", layout="wide")
_ensure_state()

_render_navigation()
_render_error()

current = _state()
if current.page is Page.DASHBOARD and current.has_result:
    _render_dashboard()
elif current.page is Page.UPLOAD:
    _render_upload()
else:
    _render_home()

st.divider()
st.caption(f"{APP_NAME} | Estimates use illustrative emission factors and are not a regulatory calculation.")
