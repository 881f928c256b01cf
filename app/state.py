from __future__ import annotations

from typing import Any, Dict, Optional

import streamlit as st


PAGE_SESSION_KEY = "_page"
OVERRIDES_SESSION_KEY = "_slot_overrides"
SELECTED_SHOW_KEY = "_selected_show"
SELECTED_PERFORMANCE_KEY = "_selected_performance"
SELECTED_VENUE_KEY = "_selected_venue"

# widget keys
SHOW_ALL_KEY = "sales_show_all"
DATE_FROM_KEY = "sales_date_from"
DATE_TO_KEY = "sales_date_to"
PERFORMANCE_TABLE_KEY = "sales_performance_table"
LAST_PICK_KEY = "_sales_last_pick"


def get_overrides(dashboard: str) -> Dict[str, Any]:
    """Operator slot choices of one dashboard (slot key -> id or value)."""

    all_overrides = st.session_state.setdefault(OVERRIDES_SESSION_KEY, {})
    return all_overrides.setdefault(dashboard, {})


def set_override(dashboard: str, key: str, value: Any) -> None:
    overrides = get_overrides(dashboard)
    if value is None:
        overrides.pop(key, None)
    else:
        overrides[key] = value


def get_selected_show() -> Optional[str]:
    return st.session_state.get(SELECTED_SHOW_KEY)


def select_show(show_id: Optional[str]) -> None:
    """Open a show (or go back to the gallery with ``None``); resets the show view."""

    st.session_state[SELECTED_SHOW_KEY] = show_id
    st.session_state[SELECTED_PERFORMANCE_KEY] = None
    st.session_state[SHOW_ALL_KEY] = False
    st.session_state[DATE_FROM_KEY] = None
    st.session_state[DATE_TO_KEY] = None
    st.session_state[LAST_PICK_KEY] = None
    st.session_state.pop(PERFORMANCE_TABLE_KEY, None)


def get_selected_performance() -> Optional[str]:
    return st.session_state.get(SELECTED_PERFORMANCE_KEY)


def select_performance(performance_id: Optional[str]) -> None:
    st.session_state[SELECTED_PERFORMANCE_KEY] = performance_id


def get_selected_venue() -> Optional[str]:
    return st.session_state.get(SELECTED_VENUE_KEY)


def select_venue(venue_id: Optional[str]) -> None:
    st.session_state[SELECTED_VENUE_KEY] = venue_id
