from __future__ import annotations

import logging
from typing import Optional

import plotly.express as px
import plotly.graph_objects as go

from carbonsnapshot.config import CHART_COLORS, TEAL_COLOR
from carbonsnapshot.emissions import FootprintResult
from carbonsnapshot.kpi import with_percentages

logger = logging.getLogger(__name__)


def scope_pie(result: FootprintResult) -> go.Figure:
    data = with_percentages(result.by_scope, result.total_co2e)
    fig = px.pie(
        data,
        names="name",
        values="value",
        color_discrete_sequence=CHART_COLORS,
        title="Emissions by Scope",
    )
    fig.update_traces(textinfo="percent", hovertemplate="%{label}<br>%{value:,.2f} kg CO₂e<extra></extra>")
    return fig


def category_bar(result: FootprintResult) -> go.Figure:
    data = with_percentages(result.by_category, result.total_co2e)
    fig = px.bar(
        data,
        x="name",
        y="value",
        title="Emissions by Category",
        labels={"name": "Category", "value": "kg CO₂e"},
    )
    fig.update_traces(marker_color=TEAL_COLOR)
    return fig


def scope_category_sankey(result: FootprintResult) -> go.Figure:
    """Sankey of emissions flowing from scope to category."""
    flows: dict = {}
    for record in result.detailed:
        key = (record.scope.value, record.category)
        flows[key] = flows.get(key, 0.0) + record.co2e

    if not flows:
        return go.Figure()

    scope_nodes = [item.name for item in result.by_scope]
    category_nodes = [item.name for item in result.by_category]
    labels = scope_nodes + category_nodes
    scope_index = {label: idx for idx, label in enumerate(scope_nodes)}
    category_index = {label: len(scope_nodes) + idx for idx, label in enumerate(category_nodes)}

    fig = go.Figure(
        data=[
            go.Sankey(
                arrangement="snap",
                node={"label": labels, "pad": 18, "thickness": 16, "color": TEAL_COLOR},
                link={
                    "source": [scope_index[scope] for scope, _ in flows],
                    "target": [category_index[category] for _, category in flows],
                    "value": [round(value, 2) for value in flows.values()],
                },
            )
        ]
    )
    fig.update_layout(title_text="Emission Flow: Scope to Category", font_size=11)
    return fig


def figure_to_png_bytes(fig: Optional[go.Figure]) -> Optional[bytes]:
    if fig is None:
        return None
    try:
        return fig.to_image(format="png", width=1200, height=650, scale=2)
    except Exception as exc:  # pragma: no cover - depends on kaleido/chrome availability
        logger.warning("Chart image export unavailable: %s", exc)
        return None
