"""
Rendering helpers that do not need a Streamlit runtime:
formatters, grid HTML, KPI tiles and figure builders
"""
from __future__ import annotations

import datetime as dt

import pandas as pd
import pytest

from interface_dashboard.analytics.campaigns import CAMPAIGN_CHARTS
from interface_dashboard.analytics.sales import latest_totals
from interface_dashboard.core.config import GridConfig, GridLayout
from interface_dashboard.domain.models import Bloc, Event, KpiTile, Week
from interface_dashboard.geo.geocoding import Location
from interface_dashboard.geo.viewport import MapViewState
from interface_dashboard.planning.grid import build_grid
from interface_dashboard.ui.charts import build_campaign_figure, build_sales_figure, build_venues_figure
from interface_dashboard.ui.formatters import (
    EMPTY_VALUE,
    THOUSANDS_SEPARATOR,
    escape,
    format_currency,
    format_date_label,
    format_number,
    format_tick,
)
from interface_dashboard.ui.grid_table import EMPTY_MESSAGE, grid_html
from interface_dashboard.ui.kpi import fixed_kpis, kpi_tiles_html


WEEKS = [Week("w1", "Semaine 1", dt.date(2024, 1, 7))]
BLOCS = [Bloc("b_am", "AM"), Bloc("b_soir", "Soir")]


def _event(event_id, name=None, blocs=("b_am",), days=("L",)):
    return Event(
        id=event_id,
        name=name or f"Event {event_id}",
        week_ids=("w1",),
        bloc_ids=tuple(blocs),
        active_days=frozenset(days),
    )


@pytest.fixture
def series():
    return pd.DataFrame(
        {
            "date": pd.date_range("2024-01-01", periods=4, freq="D"),
            "sold": [10.0, 20.0, 30.0, 40.0],
            "free": [0.0, 1.0, 1.0, 2.0],
            "total": [100.0, 200.0, 300.0, 400.0],
        }
    )


# ============================================================
# Formatters
# ============================================================


def test_format_number_french_style():
    assert format_number(12345) == f"12{THOUSANDS_SEPARATOR}345"
    assert format_number(1234.5, max_decimals=1) == f"1{THOUSANDS_SEPARATOR}234,5"
    assert format_number(2.0, max_decimals=2) == "2"
    assert format_number(-0.1) == "0"
    assert format_number(None) == EMPTY_VALUE
    assert format_number(float("nan")) == EMPTY_VALUE


def test_format_currency():
    assert format_currency(400) == "400 $"
    assert format_currency(None) == EMPTY_VALUE


def test_format_date_label():
    assert format_date_label("2024-02-15") == "15 fev"
    assert format_date_label(pd.Timestamp("2024-08-01")) == "1 aou"
    assert format_date_label("bientot") == "bientot"
    assert format_date_label(None) == ""


def test_format_tick():
    assert format_tick(1500) == "1.5k"
    assert format_tick(250) == "250"
    assert format_tick(2.5) == "2.5"


def test_escape():
    assert escape('<b>"A" & B</b>') == "&lt;b&gt;&quot;A&quot; &amp; B&lt;/b&gt;"
    assert escape(None) == ""


# ============================================================
# Grid HTML
# ============================================================


def test_grid_html_empty():
    assert EMPTY_MESSAGE in grid_html([])


def test_grid_html_row_layout_marks_and_alert():
    config = GridConfig.for_layout(GridLayout.ROW_PER_EVENT)
    grids = build_grid([_event(f"e{i}") for i in range(6)], WEEKS, BLOCS, config=config)

    html = grid_html(grids)

    assert "Semaine 1" in html
    assert html.count('<td class="active">X</td>') == 6
    assert '<td class="total alert">6</td>' in html
    assert ">Nom</th>" in html
    assert "<a " not in html


def test_grid_html_links_and_escaping():
    config = GridConfig.for_layout(GridLayout.ROW_PER_EVENT)
    grids = build_grid([_event("e1", name="Rock & Roll")], WEEKS, BLOCS, config=config)

    html = grid_html(grids, link_for=lambda record_id: f"https://airtable.com/app/tbl/{record_id}")

    assert 'href="https://airtable.com/app/tbl/e1"' in html
    assert 'target="_blank"' in html
    assert "Rock &amp; Roll" in html
    assert '<td class="total">1</td>' in html


def test_grid_html_cross_layout():
    config = GridConfig.for_layout(GridLayout.CROSS_PRODUCT)
    grids = build_grid([_event("e1", blocs=("b_soir",))], WEEKS, BLOCS, config=config)

    html = grid_html(grids)

    assert ">SOIR</th>" in html
    assert "Event e1" in html
    assert html.count('<td class="active">X</td>') == 1


# ============================================================
# KPI tiles
# ============================================================


def test_fixed_kpis_without_data():
    tiles = fixed_kpis(pd.DataFrame())
    assert [t.value for t in tiles] == [EMPTY_VALUE, EMPTY_VALUE]


def test_fixed_kpis_latest_values(series):
    tiles = fixed_kpis(series)

    assert tiles == [KpiTile("Billets vendus", "40"), KpiTile("Revenus", "400 $")]


def test_fixed_kpis_period(series):
    tiles = fixed_kpis(series, "2024-01-03", None)

    assert tiles == [KpiTile("Billets vendus (période)", "+20"), KpiTile("Revenus (période)", "+200 $")]


def test_fixed_kpis_range_without_points_falls_back(series):
    tiles = fixed_kpis(series, "2025-01-01", None)
    assert tiles[0] == KpiTile("Billets vendus", "40")


def test_fixed_kpis_range_before_data_shows_latest_totals(series):
    latest = latest_totals(series)

    tiles = fixed_kpis(series, None, "2023-12-31")

    assert latest.sold == 40.0
    assert tiles == [
        KpiTile("Billets vendus", format_number(latest.sold)),
        KpiTile("Revenus", format_currency(latest.total)),
    ]


def test_kpi_tiles_html():
    html = kpi_tiles_html([KpiTile("Capacite", "<800>"), KpiTile("Vide", "")])

    assert "&lt;800&gt;" in html
    assert EMPTY_VALUE in html


# ============================================================
# Figures
# ============================================================


def test_sales_figure(series):
    fig = build_sales_figure(series, capacity=500, revenue_capacity=5000, height=330)

    assert [trace.name for trace in fig.data] == ["Ventes", "Gratuits", "Revenus ($)"]
    assert fig.data[1].line.dash == "dash"
    assert fig.data[2].yaxis == "y2"
    assert fig.layout.yaxis.range[1] == pytest.approx(525)
    assert fig.layout.yaxis2.overlaying == "y"
    assert fig.layout.height == 330


def test_sales_figure_scales_to_data_without_capacity(series):
    fig = build_sales_figure(series)
    assert fig.layout.yaxis.range[1] == pytest.approx(42)


def test_campaign_figure():
    rows = pd.DataFrame({"campaign": ["Campagne printemps 2024", "Ete"], "coverage": [1000.0, 0.0], "cpm": [5.5, 3.0]})

    fig = build_campaign_figure(rows, CAMPAIGN_CHARTS[0])

    assert fig.data[0].type == "bar"
    assert fig.data[1].yaxis == "y2"
    assert list(fig.layout.xaxis.ticktext) == ["Campagne printe...", "Ete"]


def test_venues_figure():
    locations = [
        Location("rec1", "Olympia", "1004 Ste-Catherine", 45.5, -73.57, "1004 ste-catherine"),
        Location("rec2", "Capitole", "972 St-Jean", 46.81, -71.21, "972 st-jean"),
    ]

    fig = build_venues_figure(locations, MapViewState(-72.0, 46.0, 7.0), selected_id="rec2")

    trace = fig.data[0]
    assert list(trace.customdata[0]) == ["rec1", "1004 Ste-Catherine"]
    assert list(trace.marker.size) == [13, 18]
    assert fig.layout.map.zoom == 7.0
    assert fig.layout.map.center.lat == 46.0
