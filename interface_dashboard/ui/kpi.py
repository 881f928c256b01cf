"""Box-office KPI tiles."""

from __future__ import annotations

from typing import List, Optional, Sequence

import pandas as pd
import streamlit as st

from ..analytics.sales import DateLike, latest_totals, period_stats
from ..domain.models import KpiTile
from .formatters import EMPTY_VALUE, escape, format_currency, format_number

SOLD_LABEL = "Billets vendus"
REVENUE_LABEL = "Revenus"
PERIOD_SUFFIX = " (période)"

KPI_STYLES = """
<style>
.kpi-row { display: flex; flex-wrap: wrap; gap: 0.75rem; margin: 0.5rem 0 1rem; }
.kpi-tile { flex: 1 1 120px; background: #fff; border: 1px solid #eee; border-radius: 8px;
  padding: 0.6rem 0.8rem; box-shadow: 0 1px 3px rgba(0,0,0,0.06); }
.kpi-tile .kpi-value { font-size: 1.25em; font-weight: 700; color: #333; }
.kpi-tile .kpi-label { font-size: 0.75em; color: #888; }
</style>
"""


def fixed_kpis(series: pd.DataFrame, date_from: DateLike = None, date_to: DateLike = None) -> List[KpiTile]:
    """
    The two KPIs always shown above the chart.

    - no data: em dashes
    - date range active and covering data: sales and revenue within the range
    - otherwise: last known cumulative values
    """
    if series is None or series.empty:
        return [KpiTile(SOLD_LABEL, EMPTY_VALUE), KpiTile(REVENUE_LABEL, EMPTY_VALUE)]

    has_filter = bool(date_from or date_to)
    stats = period_stats(series, date_from, date_to) if has_filter else None
    if stats is not None:
        return [
            KpiTile(SOLD_LABEL + PERIOD_SUFFIX, f"+{format_number(stats.sold)}"),
            KpiTile(REVENUE_LABEL + PERIOD_SUFFIX, f"+{format_currency(stats.total)}"),
        ]

    latest = latest_totals(series)
    return [
        KpiTile(SOLD_LABEL, format_number(latest.sold)),
        KpiTile(REVENUE_LABEL, format_currency(latest.total)),
    ]


def kpi_tiles_html(tiles: Sequence[KpiTile]) -> str:
    cards = "".join(
        f'<div class="kpi-tile"><div class="kpi-value">{escape(tile.value) or EMPTY_VALUE}</div>'
        f'<div class="kpi-label">{escape(tile.label)}</div></div>'
        for tile in tiles
    )
    return f'<div class="kpi-row">{cards}</div>'


def render_kpi_tiles(tiles: Sequence[KpiTile], title: Optional[str] = None) -> None:
    if not tiles:
        return
    if title:
        st.markdown(f"**{title}**")
    st.markdown(KPI_STYLES, unsafe_allow_html=True)
    st.markdown(kpi_tiles_html(tiles), unsafe_allow_html=True)


__all__ = ["fixed_kpis", "kpi_tiles_html", "render_kpi_tiles"]
