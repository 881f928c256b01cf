from __future__ import annotations

from typing import Optional

import streamlit as st

from app.pages.settings import render_slot_settings
from app import state
from interface_dashboard.core.config import ALL_OPTION, CONFIG, GridLayout
from interface_dashboard.data_sources.airtable import record_url
from interface_dashboard.domain.models import GridFilters
from interface_dashboard.domain.records import HostBase
from interface_dashboard.domain.slots import ROUTING_SLOTS
from interface_dashboard.pipeline import RoutingView, build_routing_view
from interface_dashboard.ui import render_configuration_required, render_grid
from interface_dashboard.ui.grid_table import LinkBuilder

DASHBOARD = "routing"

WEEK_KEY = "routing_week"
SITE_KEY = "routing_site"
CANAL_KEY = "routing_canal"
LAYOUT_KEY = "routing_layout"

LAYOUT_LABELS = {
    GridLayout.ROW_PER_EVENT: "Une ligne par evenement",
    GridLayout.CROSS_PRODUCT: "Evenements par bloc",
}


def _selector(label: str, all_label: str, options, key: str) -> None:
    ids = [ALL_OPTION] + [option_id for option_id, _ in options]
    names = dict(options)
    if st.session_state.get(key) not in ids:
        st.session_state[key] = ALL_OPTION
    st.selectbox(label, ids, format_func=lambda value: all_label if value == ALL_OPTION else names.get(value, value), key=key)


def _render_filters(view: RoutingView) -> None:
    week_col, site_col, canal_col = st.columns(3)
    with week_col:
        _selector("Semaine", "Toutes les semaines", [(w.id, w.name) for w in view.weeks], WEEK_KEY)
    if view.layout is GridLayout.ROW_PER_EVENT:
        with site_col:
            _selector("Site", "Tous les sites", view.sites, SITE_KEY)
        with canal_col:
            _selector("Canal", "Tous les canaux", view.canals, CANAL_KEY)


def render(base: HostBase) -> None:
    """Weekly routing grid page."""

    st.header("Routage")

    layout = st.sidebar.radio(
        "Disposition",
        list(GridLayout),
        index=list(GridLayout).index(CONFIG.grid.layout),
        format_func=LAYOUT_LABELS.get,
        key=LAYOUT_KEY,
    )

    # site and canal selectors only exist in the row-per-event layout
    row_layout = layout is GridLayout.ROW_PER_EVENT
    filters = GridFilters(
        site_id=st.session_state.get(SITE_KEY) if row_layout else None,
        canal_id=st.session_state.get(CANAL_KEY) if row_layout else None,
        week_id=st.session_state.get(WEEK_KEY),
    )
    overrides = state.get_overrides(DASHBOARD)
    view = build_routing_view(base, filters=filters, layout=layout, overrides=overrides)
    render_slot_settings(base, ROUTING_SLOTS, view.slots, DASHBOARD)

    if not view.configured:
        render_configuration_required(view.missing)
        return

    _render_filters(view)

    events_table = view.events_table
    link_for: Optional[LinkBuilder] = None
    if events_table is not None and events_table.can_expand:
        link_for = lambda record_id: record_url(base.id, events_table.id, record_id)

    render_grid(view.grids, link_for)
