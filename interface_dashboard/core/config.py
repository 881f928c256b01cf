"""Configuration and constants for the interface dashboards.

Bloc/day vocabularies, remote endpoints, thresholds and UI defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


# ============================================================
# Routing grid vocabularies
# ============================================================

# Row-per-event layout: lower-case bloc keys, two-letter day codes
ROW_BLOC_ORDER = ("am", "pm", "soir", "nuit")
ROW_DAY_CODES = ("D", "L", "Ma", "Me", "J", "V", "S")

# Cross-product layout: upper-case bloc keys, M/M2 for Tuesday/Wednesday
MATRIX_BLOC_ORDER = ("AM", "PM", "SOIR", "NUIT")
MATRIX_DAY_CODES = ("D", "L", "M", "M2", "J", "V", "S")

BLOC_LABELS = {"am": "AM", "pm": "PM", "soir": "SOIR", "nuit": "NUIT"}
DAY_LETTERS = ("D", "L", "M", "M", "J", "V", "S")

# A cell is flagged when its count is strictly greater than this
ALERT_THRESHOLD = 5

# Sentinel used by the site / canal / week selectors
ALL_OPTION = "__all__"


# ============================================================
# Sales report endpoint
# ============================================================

SALES_TABLE = "sales_report"
SALES_SELECT = "record_id,date,sold,free,total"
SALES_PAGE_SIZE = 1000

MONTHS_SHORT = ("jan", "fev", "mar", "avr", "mai", "jun", "jul", "aou", "sep", "oct", "nov", "dec")


# ============================================================
# Airtable / Mapbox endpoints
# ============================================================

AIRTABLE_API_URL = "https://api.airtable.com/v0"
AIRTABLE_UI_URL = "https://airtable.com"
MAPBOX_GEOCODING_URL = "https://api.mapbox.com/geocoding/v5/mapbox.places"


class GridLayout(str, Enum):
    """Join semantics used to lay out the routing grid."""

    ROW_PER_EVENT = "row_per_event"
    CROSS_PRODUCT = "cross_product"


@dataclass(frozen=True)
class GridConfig:
    """Routing grid settings"""

    layout: GridLayout = GridLayout.ROW_PER_EVENT

    alert_threshold: int = ALERT_THRESHOLD

    # Bloc keys in display order; matched against bloc names case-insensitively
    bloc_order: tuple[str, ...] = ROW_BLOC_ORDER

    # Day codes in display order, Sunday first
    day_codes: tuple[str, ...] = ROW_DAY_CODES

    @classmethod
    def for_layout(cls, layout: GridLayout) -> "GridConfig":
        """Return the default vocabulary paired with ``layout``."""
        if layout is GridLayout.CROSS_PRODUCT:
            return cls(layout=layout, bloc_order=MATRIX_BLOC_ORDER, day_codes=MATRIX_DAY_CODES)
        return cls(layout=layout)


@dataclass(frozen=True)
class SalesConfig:
    """Sales report endpoint settings"""

    table: str = SALES_TABLE
    select: str = SALES_SELECT
    page_size: int = SALES_PAGE_SIZE

    # HTTP timeout for one page (seconds)
    request_timeout_s: float = 30.0

    # Month offsets offered as date-range presets
    preset_months: tuple[int, ...] = (3, 6, 12)

    # Status substrings treated as cancelled (lower-case)
    cancelled_markers: tuple[str, ...] = ("annul", "cancel")

    # Number of configurable KPI tiles on the show page
    kpi_slots: int = 6


@dataclass(frozen=True)
class MapConfig:
    """Venue map settings"""

    default_longitude: float = -74.5
    default_latitude: float = 40.0
    default_zoom: float = 9.0

    single_location_zoom: float = 12.0
    multi_location_zoom: float = 8.0
    focus_zoom: float = 14.0

    min_zoom: float = 1.0
    max_zoom: float = 18.0

    geocoding_timeout_s: float = 10.0

    # JSON file backing the persisted viewport store
    viewport_store_path: str = ".streamlit/map_viewports.json"


@dataclass(frozen=True)
class UIConfig:
    """UI display settings"""

    gallery_columns: int = 4
    chart_height_single: int = 330
    chart_height_total: int = 320
    campaign_chart_height: int = 400
    map_height: int = 600

    # Cache TTL for Airtable loads (seconds)
    records_cache_ttl: int = 300


@dataclass(frozen=True)
class DashboardConfig:
    """Global dashboard settings"""

    grid: GridConfig = field(default_factory=GridConfig)
    sales: SalesConfig = field(default_factory=SalesConfig)
    map: MapConfig = field(default_factory=MapConfig)
    ui: UIConfig = field(default_factory=UIConfig)


# ============================================================
# Credentials
# ============================================================


@dataclass(frozen=True)
class Credentials:
    """Operator supplied keys; every field may be empty."""

    airtable_token: str = ""
    airtable_base_id: str = ""
    sales_url: str = ""
    sales_key: str = ""
    mapbox_token: str = ""

    @property
    def has_sales_endpoint(self) -> bool:
        return bool(self.sales_url and self.sales_key)


def _section_value(secrets, section: str, key: str) -> Optional[str]:
    try:
        value = secrets[section][key]
    except (KeyError, TypeError, AttributeError, FileNotFoundError):
        # no secrets.toml, or section/key absent
        return None
    return str(value) if value is not None else None


def load_credentials(secrets=None) -> Credentials:
    """
    Resolve credentials from a Streamlit secrets mapping, then environment.

    Args:
        secrets: ``st.secrets`` or any nested mapping with ``airtable``,
            ``sales_report`` and ``mapbox`` sections. ``None`` reads the
            environment only.

    Returns:
        Credentials with blanks for anything not configured
    """

    def pick(section: str, key: str, env: str) -> str:
        value = _section_value(secrets, section, key) if secrets is not None else None
        if value:
            return value.strip()
        return os.getenv(env, "").strip()

    return Credentials(
        airtable_token=pick("airtable", "token", "AIRTABLE_TOKEN"),
        airtable_base_id=pick("airtable", "base_id", "AIRTABLE_BASE_ID"),
        sales_url=pick("sales_report", "url", "SALES_REPORT_URL").rstrip("/"),
        sales_key=pick("sales_report", "key", "SALES_REPORT_KEY"),
        mapbox_token=pick("mapbox", "token", "MAPBOX_TOKEN"),
    )


# ============================================================
# Global instance
# ============================================================

CONFIG = DashboardConfig()
