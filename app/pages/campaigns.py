from __future__ import annotations

import streamlit as st

from app import state
from app.pages.settings import render_slot_settings
from interface_dashboard.core.config import ALL_OPTION
from interface_dashboard.domain.records import HostBase
from interface_dashboard.domain.slots import CAMPAIGN_SLOTS
from interface_dashboard.pipeline import build_campaign_view
from interface_dashboard.ui import render_campaign_charts, render_configuration_required

DASHBOARD = "campaigns"
FILTER_KEY = "campaign_filter"


def render(base: HostBase) -> None:
    """Campaign performance page: three dual-axis charts."""

    st.header("Performance des campagnes")

    selected = st.session_state.get(FILTER_KEY, ALL_OPTION)
    view = build_campaign_view(base, selected=selected, overrides=state.get_overrides(DASHBOARD))
    render_slot_settings(base, CAMPAIGN_SLOTS, view.slots, DASHBOARD)

    if not view.configured:
        render_configuration_required(view.missing)
        return

    if view.filter_options:
        options = [ALL_OPTION] + list(view.filter_options)
        if selected not in options:
            st.session_state[FILTER_KEY] = ALL_OPTION
            st.rerun()
        st.selectbox(
            view.filter_label or "Filtre",
            options,
            format_func=lambda value: f"Tous ({len(view.filter_options)})" if value == ALL_OPTION else value,
            key=FILTER_KEY,
        )

    render_campaign_charts(view.frame)
