from __future__ import annotations

import asyncio
import datetime as dt
import logging
from typing import Optional, Sequence, Tuple

import streamlit as st

from app import state
from app.pages.settings import render_slot_settings
from interface_dashboard.analytics.performances import (
    PRESET_LABELS,
    active_preset,
    filter_performances,
    pad_tiles,
    performances_frame,
    preset_range,
    search_shows,
    show_kpis,
)
from interface_dashboard.analytics.sales import filter_series_range
from interface_dashboard.core.config import CONFIG, Credentials
from interface_dashboard.data_sources.session import get_sales_loader
from interface_dashboard.domain.models import Performance, Show
from interface_dashboard.domain.records import HostBase
from interface_dashboard.domain.slots import KPI_SLOT_KEYS, SALES_SLOTS, ResolvedSlots
from interface_dashboard.pipeline import build_box_office, series_request, show_performances
from interface_dashboard.ui import fixed_kpis, render_configuration_required, render_kpi_tiles, render_sales_chart

logger = logging.getLogger(__name__)

DASHBOARD = "sales"

SEARCH_KEY = "sales_search"

TOTAL_TITLE = "Total - toutes representations"


# ============================================================
# Gallery
# ============================================================


def _render_gallery(shows: Sequence[Show]) -> None:
    query = st.text_input("Rechercher", placeholder="Rechercher un spectacle...", key=SEARCH_KEY, label_visibility="collapsed")
    matches = search_shows(shows, query)
    if not matches:
        st.caption("Aucun spectacle trouve." if query else "Aucun spectacle disponible.")
        return

    per_row = CONFIG.ui.gallery_columns
    for start in range(0, len(matches), per_row):
        columns = st.columns(per_row)
        for column, show in zip(columns, matches[start : start + per_row]):
            with column:
                if show.image_url:
                    st.image(show.image_url, use_container_width=True)
                st.button(
                    show.name,
                    key=f"show:{show.id}",
                    on_click=state.select_show,
                    args=(show.id,),
                    use_container_width=True,
                )


# ============================================================
# Show view
# ============================================================


def _apply_preset(preset) -> None:
    date_from, date_to = preset_range(preset)
    st.session_state[state.DATE_FROM_KEY] = dt.date.fromisoformat(date_from) if date_from else None
    st.session_state[state.DATE_TO_KEY] = dt.date.fromisoformat(date_to) if date_to else None


def _render_date_range() -> Tuple[Optional[str], Optional[str]]:
    """Preset buttons plus the two date inputs; returns the ISO range."""

    st.session_state.setdefault(state.DATE_FROM_KEY, None)
    st.session_state.setdefault(state.DATE_TO_KEY, None)

    start = st.session_state[state.DATE_FROM_KEY]
    end = st.session_state[state.DATE_TO_KEY]
    current = active_preset(start.isoformat() if start else None, end.isoformat() if end else None)

    columns = st.columns(len(PRESET_LABELS) + 2)
    for column, (preset, label) in zip(columns, PRESET_LABELS):
        with column:
            st.button(
                label,
                key=f"preset:{preset}",
                type="primary" if preset == current else "secondary",
                on_click=_apply_preset,
                args=(preset,),
                use_container_width=True,
            )
    with columns[-2]:
        start = st.date_input("Du", key=state.DATE_FROM_KEY, format="YYYY-MM-DD")
    with columns[-1]:
        end = st.date_input("Au", key=state.DATE_TO_KEY, format="YYYY-MM-DD")

    return (start.isoformat() if start else None, end.isoformat() if end else None)


def _render_performance_table(visible: Sequence[Performance], total: int) -> None:
    count = f"{len(visible)} / {total}" if len(visible) != total else f"{len(visible)}"
    title_col, toggle_col = st.columns([3, 1])
    with title_col:
        st.markdown(f"**Representations ({count})**")
    with toggle_col:
        st.checkbox("Afficher tout", key=state.SHOW_ALL_KEY)

    if not visible:
        st.caption("Aucune representation trouvee.")
        return

    frame = performances_frame(visible)
    event = st.dataframe(
        frame.drop(columns=["id"]),
        hide_index=True,
        use_container_width=True,
        on_select="rerun",
        selection_mode="single-row",
        key=state.PERFORMANCE_TABLE_KEY,
    )

    rows = event.selection.rows if event is not None else []
    picked = str(frame.iloc[rows[0]]["id"]) if rows else None
    if picked != st.session_state.get(state.LAST_PICK_KEY):
        st.session_state[state.LAST_PICK_KEY] = picked
        if picked is not None:
            state.select_performance(picked)
            st.rerun()


def _render_show(show: Show, slots: ResolvedSlots, credentials: Credentials) -> None:
    st.button("Retour", on_click=state.select_show, args=(None,))
    st.subheader(show.name)

    shows_table = slots.table("spectaclesTable")
    record = shows_table.record_by_id(show.id) if shows_table is not None else None
    configured_tiles = pad_tiles(show_kpis(record, [slots.field_ref(key) for key in KPI_SLOT_KEYS]))

    performances = show_performances(slots, show.id)
    visible = filter_performances(performances, show_all=bool(st.session_state.get(state.SHOW_ALL_KEY)))

    selected_id = state.get_selected_performance()
    selected = next((p for p in performances if p.id == selected_id), None)

    date_from, date_to = _render_date_range()

    loader = get_sales_loader(credentials, show.id)
    request = series_request(performances, selected.id if selected else None)
    with st.spinner("Chargement..."):
        view_state = asyncio.run(loader.load(request))

    render_kpi_tiles(fixed_kpis(view_state.series, date_from, date_to) + configured_tiles)

    header_col, action_col = st.columns([3, 1])
    with header_col:
        st.markdown(f"**{selected.name if selected else TOTAL_TITLE}**")
    if selected is not None:
        with action_col:
            st.button("Voir le total du spectacle", on_click=state.select_performance, args=(None,))

    render_sales_chart(
        view_state,
        filter_series_range(view_state.series, date_from, date_to),
        capacity=selected.capacity if selected else None,
        revenue_capacity=selected.revenue_capacity if selected else None,
        height=CONFIG.ui.chart_height_single if selected else CONFIG.ui.chart_height_total,
    )

    _render_performance_table(visible, len(performances))


def render(base: HostBase, credentials: Credentials) -> None:
    """Box-office page: show gallery, then the selected show's sales."""

    st.header("Ventes")

    view = build_box_office(base, state.get_overrides(DASHBOARD))
    render_slot_settings(base, SALES_SLOTS, view.slots, DASHBOARD)

    if not view.configured:
        render_configuration_required(view.missing)
        return

    show_id = state.get_selected_show()
    show = next((s for s in view.shows if s.id == show_id), None)
    if show is None:
        _render_gallery(view.shows)
    else:
        _render_show(show, view.slots, credentials)
