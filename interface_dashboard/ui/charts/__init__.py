"""Plotly charts of the box-office, campaign and venue pages."""

from .campaigns import build_campaign_figure, render_campaign_charts
from .sales import build_sales_figure, render_sales_chart
from .venues import build_venues_figure

__all__ = [
    "build_campaign_figure",
    "build_sales_figure",
    "build_venues_figure",
    "render_campaign_charts",
    "render_sales_chart",
]
