"""Cumulative sales chart (tickets on the left axis, revenue on the right)."""

from __future__ import annotations

from typing import List, Optional, Tuple

import numpy as np
import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from ...core.config import CONFIG
from ...data_sources.sales_report import SeriesViewState
from ..formatters import format_date_label, format_tick

SOLD_COLOR = "#4a90d9"
FREE_COLOR = "#e06666"
REVENUE_COLOR = "#6aa84f"

LOADING_MESSAGE = "Chargement..."
EMPTY_MESSAGE = "Aucune donnee de ventes."

MAX_X_TICKS = 8
Y_TICKS = 6


def _x_ticks(dates: pd.Series) -> Tuple[List[pd.Timestamp], List[str]]:
    if dates.empty:
        return [], []
    step = max(1, int(np.ceil(len(dates) / MAX_X_TICKS)))
    picked = list(dates.iloc[::step])
    return picked, [format_date_label(d) for d in picked]


def _y_axis(top: Optional[float], values: pd.Series, suffix: str = "") -> dict:
    """Axis from zero to ``top`` (or the data maximum), with "1.5k" style ticks."""
    upper = float(top) if top else float(values.max() if not values.empty else 0.0)
    if upper <= 0:
        upper = 1.0
    tickvals = np.linspace(0, upper, Y_TICKS).tolist()
    ticktext = [f"{format_tick(round(v, 1))}{suffix}" for v in tickvals]
    return dict(range=[0, upper * 1.05], tickvals=tickvals, ticktext=ticktext, tickfont=dict(size=10))


def build_sales_figure(
    series: pd.DataFrame,
    *,
    capacity: Optional[float] = None,
    revenue_capacity: Optional[float] = None,
    height: int = CONFIG.ui.chart_height_single,
) -> go.Figure:
    """
    Dual-axis line chart of a reconstructed series.

    Args:
        series: ``date, sold, free, total`` daily series
        capacity: left axis upper bound (single-performance view only)
        revenue_capacity: right axis upper bound (single-performance view only)
        height: figure height in pixels
    """
    labels = [format_date_label(d) for d in series["date"]]

    fig = go.Figure()
    fig.add_trace(
        go.Scatter(
            x=series["date"],
            y=series["sold"],
            mode="lines",
            name="Ventes",
            line=dict(color=SOLD_COLOR, width=2.5),
            customdata=labels,
            hovertemplate="%{customdata}<br>Ventes: %{y:,.0f}<extra></extra>",
        )
    )
    fig.add_trace(
        go.Scatter(
            x=series["date"],
            y=series["free"],
            mode="lines",
            name="Gratuits",
            line=dict(color=FREE_COLOR, width=2, dash="dash"),
            customdata=labels,
            hovertemplate="%{customdata}<br>Gratuits: %{y:,.0f}<extra></extra>",
        )
    )
    fig.add_trace(
        go.Scatter(
            x=series["date"],
            y=series["total"],
            mode="lines",
            name="Revenus ($)",
            line=dict(color=REVENUE_COLOR, width=2.5),
            yaxis="y2",
            customdata=labels,
            hovertemplate="%{customdata}<br>Revenus: %{y:,.2f} $<extra></extra>",
        )
    )

    tickvals, ticktext = _x_ticks(series["date"])
    left_values = pd.concat([series["sold"], series["free"]]) if not series.empty else series["sold"]

    fig.update_layout(
        height=height,
        legend=dict(orientation="h", x=0, xanchor="left", y=-0.2, yanchor="top", font=dict(size=11)),
        margin=dict(l=50, r=60, t=10, b=60),
        hovermode="x unified",
        xaxis=dict(tickvals=tickvals, ticktext=ticktext, tickfont=dict(size=10)),
        yaxis=dict(
            title=dict(text="Billets", font=dict(color=SOLD_COLOR, size=11)),
            color=SOLD_COLOR,
            **_y_axis(capacity, left_values),
        ),
        yaxis2=dict(
            title=dict(text="Revenus ($)", font=dict(color=REVENUE_COLOR, size=11)),
            color=REVENUE_COLOR,
            overlaying="y",
            side="right",
            showgrid=False,
            zeroline=False,
            **_y_axis(revenue_capacity, series["total"], suffix=" $"),
        ),
    )
    return fig


def render_sales_chart(
    state: SeriesViewState,
    series: pd.DataFrame,
    *,
    capacity: Optional[float] = None,
    revenue_capacity: Optional[float] = None,
    height: int = CONFIG.ui.chart_height_single,
) -> None:
    """
    Chart area: loading, error or empty placeholder, else the figure.

    ``series`` is the date-filtered slice of ``state.series``.
    """
    if state.loading:
        st.info(LOADING_MESSAGE)
        return
    if state.error:
        st.error(state.error)
        return
    if series.empty:
        st.caption(EMPTY_MESSAGE)
        return

    fig = build_sales_figure(series, capacity=capacity, revenue_capacity=revenue_capacity, height=height)
    st.plotly_chart(fig, use_container_width=True, config={"displaylogo": False})


__all__ = ["build_sales_figure", "render_sales_chart"]
