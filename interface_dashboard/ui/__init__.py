"""
Public API of the UI layer

Streamlit components: error adapter, routing grid, KPI tiles and charts.
"""

from .adapters import handle_domain_errors, render_configuration_required
from .charts import (
    build_campaign_figure,
    build_sales_figure,
    build_venues_figure,
    render_campaign_charts,
    render_sales_chart,
)
from .grid_table import grid_html, render_grid
from .kpi import fixed_kpis, kpi_tiles_html, render_kpi_tiles

__all__ = (
    # Charts
    "build_campaign_figure",
    "build_sales_figure",
    "build_venues_figure",
    "render_campaign_charts",
    "render_sales_chart",
    # Grid
    "grid_html",
    "render_grid",
    # KPI
    "fixed_kpis",
    "kpi_tiles_html",
    "render_kpi_tiles",
    # Adapters
    "handle_domain_errors",
    "render_configuration_required",
)
