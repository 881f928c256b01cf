"""
Session state management

Keeps the loaded base and the per-session component instances (series
loaders, geocoder, viewport store) in ``st.session_state`` so that they
survive Streamlit reruns.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, TypeVar

import streamlit as st

from ..core.config import CONFIG, Credentials, load_credentials
from ..domain.records import HostBase
from ..geo.geocoding import MapboxGeocoder
from ..geo.viewport import ViewportStore
from .airtable import AirtableClient
from .loader import AirtableBaseLoader
from .sales_report import SalesReportClient, SalesSeriesLoader

logger = logging.getLogger(__name__)

T = TypeVar("T")

BASE_SESSION_KEY = "interface_base"
REFRESH_SESSION_KEY = "_trigger_refresh"
SALES_LOADER_PREFIX = "_sales_loader:"


def get_credentials() -> Credentials:
    return load_credentials(st.secrets)


@st.cache_data(ttl=CONFIG.ui.records_cache_ttl, show_spinner="Chargement de la base Airtable...")
def _load_base_cached(token: str, base_id: str) -> HostBase:
    return AirtableBaseLoader(AirtableClient(token), base_id).load()


def ensure_base(credentials: Credentials) -> Optional[HostBase]:
    """
    Loaded base from the session, (re)loading it when needed.

    Returns:
        HostBase, or ``None`` when no Airtable token/base is configured

    Raises:
        UpstreamConfigurationError / DataLoadError from the loader
    """
    if not (credentials.airtable_token and credentials.airtable_base_id):
        return None

    base: Optional[HostBase] = st.session_state.get(BASE_SESSION_KEY)

    refresh = st.session_state.get(REFRESH_SESSION_KEY, False)
    if refresh:
        st.session_state[REFRESH_SESSION_KEY] = False
        _load_base_cached.clear()

    if base is None or refresh or base.id != credentials.airtable_base_id:
        base = _load_base_cached(credentials.airtable_token, credentials.airtable_base_id)
        st.session_state[BASE_SESSION_KEY] = base
        logger.info(f"Base {base.id} loaded with {len(base.tables)} tables")
    return base


def request_refresh() -> None:
    """Reload the base on the next run and drop the cached sales series."""
    st.session_state[REFRESH_SESSION_KEY] = True
    for key in [k for k in st.session_state.keys() if str(k).startswith(SALES_LOADER_PREFIX)]:
        del st.session_state[key]


def session_singleton(key: str, factory: Callable[[], T]) -> T:
    """Return ``st.session_state[key]``, creating it with ``factory`` on first use."""
    if key not in st.session_state:
        st.session_state[key] = factory()
    return st.session_state[key]


def get_sales_loader(credentials: Credentials, show_id: str) -> SalesSeriesLoader:
    """Series loader of the show page; one per show so each keeps its own cache."""

    def factory() -> SalesSeriesLoader:
        source = None
        if credentials.has_sales_endpoint:
            source = SalesReportClient(credentials.sales_url, credentials.sales_key, credentials.airtable_base_id)
        return SalesSeriesLoader(source)

    return session_singleton(f"{SALES_LOADER_PREFIX}{show_id}", factory)


def get_geocoder(credentials: Credentials) -> MapboxGeocoder:
    return session_singleton("_geocoder", lambda: MapboxGeocoder(credentials.mapbox_token))


def get_viewport_store() -> ViewportStore:
    return session_singleton("_viewport_store", lambda: ViewportStore(CONFIG.map.viewport_store_path))
