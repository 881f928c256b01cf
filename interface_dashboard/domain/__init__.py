"""
Domain layer

Records, models, slot resolution and exceptions. Nothing here depends on
Streamlit.
"""

from __future__ import annotations

from .exceptions import (
    ConfigurationError,
    DataLoadError,
    DomainError,
    RemoteFetchError,
    RequestCancelled,
    UpstreamConfigurationError,
)
from .fields import FieldKind, FieldRef
from .models import (
    Bloc,
    Event,
    EventRow,
    GridFilters,
    KpiTile,
    MatrixEntry,
    PeriodStats,
    Performance,
    Show,
    Week,
    WeekGrid,
)
from .records import HostBase, HostRecord, HostTable

__all__ = [
    "ConfigurationError",
    "DataLoadError",
    "DomainError",
    "RemoteFetchError",
    "RequestCancelled",
    "UpstreamConfigurationError",
    "FieldKind",
    "FieldRef",
    "Bloc",
    "Event",
    "EventRow",
    "GridFilters",
    "KpiTile",
    "MatrixEntry",
    "PeriodStats",
    "Performance",
    "Show",
    "Week",
    "WeekGrid",
    "HostBase",
    "HostRecord",
    "HostTable",
]
