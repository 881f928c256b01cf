from __future__ import annotations

import logging

import streamlit as st

from app import state
from app.pages.settings import render_slot_settings
from interface_dashboard.core.config import CONFIG, Credentials
from interface_dashboard.data_sources.airtable import record_url
from interface_dashboard.data_sources.session import get_geocoder, get_viewport_store
from interface_dashboard.domain.records import HostBase
from interface_dashboard.domain.slots import VENUE_SLOTS
from interface_dashboard.geo.viewport import focus_view, initial_view, viewport_key
from interface_dashboard.pipeline import build_venue_inputs
from interface_dashboard.ui import build_venues_figure, render_configuration_required

logger = logging.getLogger(__name__)

DASHBOARD = "venues"
MAP_KEY = "venues_map"
MAPBOX_SLOT = "mapbox.token"
LAST_PICK_KEY = "_venues_last_pick"


def render(base: HostBase, credentials: Credentials) -> None:
    """Venue map page: geocoded venues as pins."""

    st.header("Carte des salles")

    inputs = build_venue_inputs(base, state.get_overrides(DASHBOARD))
    render_slot_settings(base, VENUE_SLOTS, inputs.slots, DASHBOARD)

    missing = list(inputs.missing)
    if not credentials.mapbox_token:
        missing.append(MAPBOX_SLOT)
    if missing:
        render_configuration_required(missing)
        return

    geocoder = get_geocoder(credentials)
    with st.spinner("Geocodage des adresses..."):
        locations = geocoder.geocode_records(inputs.rows)

    table = inputs.table
    store = get_viewport_store()
    key = viewport_key(base.id, table.id)

    selected_id = state.get_selected_venue()
    selected = next((loc for loc in locations if loc.id == selected_id), None)

    if selected is not None and inputs.slots.get("zoomToPinOnClick", True):
        view = focus_view(selected)
    else:
        view = initial_view(
            locations,
            store.read(key),
            auto_center=bool(inputs.slots.get("autoCenterOnLoad", True)),
        )
    store.write(key, view)

    st.caption(f"{len(locations)} / {len(inputs.rows)} salles localisees")

    fig = build_venues_figure(locations, view, selected_id=selected_id, height=CONFIG.ui.map_height)
    event = st.plotly_chart(
        fig,
        use_container_width=True,
        config={"displaylogo": False, "scrollZoom": True},
        on_select="rerun",
        selection_mode="points",
        key=MAP_KEY,
    )

    points = event.selection.points if event is not None else []
    clicked = (points[0].get("customdata") or [None]) if points else [None]
    picked = clicked[0]
    if picked != st.session_state.get(LAST_PICK_KEY):
        st.session_state[LAST_PICK_KEY] = picked
        if picked is not None and picked != selected_id:
            state.select_venue(picked)
            st.rerun()

    if selected is not None:
        st.markdown(f"**{selected.name}**  \n{selected.address}")
        left, right = st.columns(2)
        with left:
            st.button("Recentrer", on_click=state.select_venue, args=(None,))
        if table.can_expand:
            with right:
                st.link_button("Ouvrir la fiche", record_url(base.id, table.id, selected.id))
