"""Campaign dual-axis charts: metric bars on the left axis, a rate line on the right."""

from __future__ import annotations

from typing import Sequence

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from ...analytics.campaigns import CAMPAIGN_CHARTS, DualAxisChart, bar_width_px, chart_rows, truncate_label
from ...core.config import CONFIG
from ..formatters import format_tick

NO_DATA_MESSAGE = "Aucune donnee pour ce graphique."
NO_CAMPAIGN_MESSAGE = "Aucune campagne avec des donnees pour ces metriques."

# Plot width assumed when converting the bar width from pixels to category units
ASSUMED_PLOT_WIDTH_PX = 1000


def build_campaign_figure(rows: pd.DataFrame, chart: DualAxisChart, *, height: int = CONFIG.ui.campaign_chart_height) -> go.Figure:
    """
    Figure of one chart.

    Args:
        rows: output of ``chart_rows`` (campaign plus the chart's two metrics)
        chart: chart definition
        height: figure height in pixels
    """
    positions = list(range(len(rows)))
    labels = [truncate_label(str(name)) for name in rows["campaign"]]
    width = min(0.9, bar_width_px(len(rows)) * max(len(rows), 1) / ASSUMED_PLOT_WIDTH_PX)

    fig = go.Figure()
    fig.add_trace(
        go.Bar(
            x=positions,
            y=rows[chart.left_key],
            name=chart.left_label,
            marker=dict(color=chart.left_color),
            opacity=0.85,
            width=width,
            customdata=rows["campaign"],
            hovertemplate="%{customdata}<br>" + chart.left_label + ": %{y:,.2f}<extra></extra>",
        )
    )
    fig.add_trace(
        go.Scatter(
            x=positions,
            y=rows[chart.right_key],
            mode="lines+markers",
            name=chart.right_label,
            line=dict(color=chart.right_color, width=2.5),
            marker=dict(size=8, color=chart.right_color, line=dict(color="#fff", width=2)),
            yaxis="y2",
            customdata=rows["campaign"],
            hovertemplate="%{customdata}<br>" + chart.right_label + ": %{y:,.2f}<extra></extra>",
        )
    )

    left_max = float(rows[chart.left_key].max()) if not rows.empty else 0.0
    left_ticks = [left_max * i / 5 for i in range(6)] if left_max > 0 else [0.0]

    fig.update_layout(
        height=height,
        title=dict(text=chart.title, font=dict(size=14)),
        legend=dict(orientation="h", x=0, xanchor="left", y=-0.35, yanchor="top", font=dict(size=11)),
        margin=dict(l=50, r=50, t=40, b=100),
        hovermode="x unified",
        xaxis=dict(tickmode="array", tickvals=positions, ticktext=labels, tickangle=-35, tickfont=dict(size=10)),
        yaxis=dict(
            title=dict(text=chart.left_label, font=dict(color=chart.left_color, size=11)),
            color=chart.left_color,
            tickvals=left_ticks,
            ticktext=[format_tick(round(v, 1)) for v in left_ticks],
            gridcolor="#e8e8e8",
        ),
        yaxis2=dict(
            title=dict(text=chart.right_label, font=dict(color=chart.right_color, size=11)),
            color=chart.right_color,
            overlaying="y",
            side="right",
            showgrid=False,
            zeroline=False,
        ),
    )
    return fig


def render_campaign_charts(frame: pd.DataFrame, charts: Sequence[DualAxisChart] = CAMPAIGN_CHARTS) -> None:
    """Every campaign chart, each with its own empty-state message."""
    for chart in charts:
        if frame.empty:
            st.markdown(f"**{chart.title}**")
            st.caption(NO_DATA_MESSAGE)
            continue
        rows = chart_rows(frame, chart)
        if rows.empty:
            st.markdown(f"**{chart.title}**")
            st.caption(NO_CAMPAIGN_MESSAGE)
            continue
        fig = build_campaign_figure(rows, chart)
        st.plotly_chart(fig, use_container_width=True, config={"displaylogo": False})


__all__ = ["build_campaign_figure", "render_campaign_charts"]
