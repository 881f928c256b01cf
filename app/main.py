from __future__ import annotations

import logging

import streamlit as st

from app import state
from app.pages import campaigns, routing, sales, venues
from interface_dashboard.data_sources.session import ensure_base, get_credentials, request_refresh
from interface_dashboard.ui import handle_domain_errors, render_configuration_required

logger = logging.getLogger(__name__)

PAGES = ("Routage", "Ventes", "Campagnes", "Carte des salles")


def main() -> None:
    """Entrypoint for running the interface dashboards in Streamlit."""

    st.set_page_config(page_title="Tableaux de bord", layout="wide")

    page = st.sidebar.radio("Tableau de bord", PAGES, key=state.PAGE_SESSION_KEY)
    st.sidebar.button("Rafraichir les donnees", on_click=request_refresh)

    credentials = get_credentials()

    with handle_domain_errors():
        base = ensure_base(credentials)
        if base is None:
            render_configuration_required(["airtable.token", "airtable.base_id"])
            return

        logger.debug(f"Rendering page {page!r}")
        if page == "Routage":
            routing.render(base)
        elif page == "Ventes":
            sales.render(base, credentials)
        elif page == "Campagnes":
            campaigns.render(base)
        else:
            venues.render(base, credentials)


if __name__ == "__main__":
    main()
