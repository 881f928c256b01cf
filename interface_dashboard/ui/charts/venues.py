"""Venue pins on a map."""

from __future__ import annotations

from typing import Optional, Sequence

import plotly.graph_objects as go

from ...core.config import CONFIG
from ...geo.geocoding import Location
from ...geo.viewport import MapViewState

PIN_COLOR = "#e06666"
SELECTED_PIN_COLOR = "#4a90d9"
MAP_STYLE = "open-street-map"


def build_venues_figure(
    locations: Sequence[Location],
    view: MapViewState,
    *,
    selected_id: Optional[str] = None,
    height: int = CONFIG.ui.map_height,
) -> go.Figure:
    """
    One marker per geocoded venue, camera set to ``view``.

    Each point carries the record id in ``customdata`` so that a click can
    be traced back to its venue.
    """
    colors = [SELECTED_PIN_COLOR if loc.id == selected_id else PIN_COLOR for loc in locations]
    sizes = [18 if loc.id == selected_id else 13 for loc in locations]

    fig = go.Figure(
        go.Scattermap(
            lat=[loc.latitude for loc in locations],
            lon=[loc.longitude for loc in locations],
            mode="markers+text",
            marker=dict(size=sizes, color=colors),
            text=[loc.name for loc in locations],
            textposition="top right",
            customdata=[[loc.id, loc.address] for loc in locations],
            hovertemplate="<b>%{text}</b><br>%{customdata[1]}<extra></extra>",
        )
    )
    fig.update_layout(
        height=height,
        margin=dict(l=0, r=0, t=0, b=0),
        showlegend=False,
        map=dict(
            style=MAP_STYLE,
            center=dict(lat=view.latitude, lon=view.longitude),
            zoom=view.zoom,
        ),
        uirevision="venues",
    )
    return fig


__all__ = ["build_venues_figure"]
