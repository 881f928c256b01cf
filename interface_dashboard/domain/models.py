"""
Domain models

Routing grid and box-office types. All of them are frozen; derived views
are rebuilt from scratch on every input change rather than patched.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import FrozenSet, Mapping, Optional, Tuple

import pandas as pd

from ..core.config import ALERT_THRESHOLD, ALL_OPTION


# ============================================================
# Routing grid
# ============================================================


@dataclass(frozen=True)
class Week:
    id: str
    name: str
    start: Optional[dt.date] = None
    # display only
    end: Optional[dt.date] = None


@dataclass(frozen=True)
class Bloc:
    id: str
    name: str


@dataclass(frozen=True)
class Event:
    """
    Event as read from the events table.

    Link tuples hold record ids in cell order, duplicates removed.
    ``active_days`` holds the option names of the days field.
    """

    id: str
    name: str
    week_ids: Tuple[str, ...] = ()
    bloc_ids: Tuple[str, ...] = ()
    active_days: FrozenSet[str] = frozenset()
    site_ids: Tuple[str, ...] = ()
    canal_ids: Tuple[str, ...] = ()


def _normalize_selection(value: Optional[str]) -> Optional[str]:
    if value is None or value == "" or value == ALL_OPTION:
        return None
    return value


@dataclass(frozen=True)
class GridFilters:
    """Selector state. ``None`` (or ``"__all__"``) means no filter."""

    site_id: Optional[str] = None
    canal_id: Optional[str] = None
    week_id: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "site_id", _normalize_selection(self.site_id))
        object.__setattr__(self, "canal_id", _normalize_selection(self.canal_id))
        object.__setattr__(self, "week_id", _normalize_selection(self.week_id))


@dataclass(frozen=True)
class EventRow:
    """Row-per-event layout: one row of one week."""

    event_id: str
    event_name: str
    blocs: FrozenSet[str]
    active_days: FrozenSet[str]

    def is_active(self, bloc: str, day: str) -> bool:
        return bloc in self.blocs and day in self.active_days


@dataclass(frozen=True)
class MatrixEntry:
    """Cross-product layout: one event placed in one bloc column."""

    event_id: str
    event_name: str
    active_days: FrozenSet[str]

    def is_active(self, day: str) -> bool:
        return day in self.active_days


@dataclass(frozen=True)
class WeekGrid:
    """
    Grid of one week.

    Attributes:
        week: the week
        day_numbers: day of month for each day code, all ``None`` without a start date
        rows: row-per-event rows (empty in the cross-product layout)
        columns: cross-product layout, bloc key -> entries padded with ``None``
            to ``row_count`` (empty in the row-per-event layout)
        counts: occupancy per cell, index = bloc keys, columns = day codes
        threshold: counts strictly above this are flagged
    """

    week: Week
    day_numbers: Tuple[Optional[int], ...]
    rows: Tuple[EventRow, ...] = ()
    columns: Mapping[str, Tuple[Optional[MatrixEntry], ...]] = field(default_factory=dict)
    counts: pd.DataFrame = field(default_factory=pd.DataFrame, compare=False)
    threshold: int = ALERT_THRESHOLD

    @property
    def row_count(self) -> int:
        if self.columns:
            return max(len(entries) for entries in self.columns.values())
        return len(self.rows)

    def matrix_row(self, index: int) -> Tuple[Optional[MatrixEntry], ...]:
        """Entries at ``index`` across bloc columns, in column order."""
        return tuple(entries[index] for entries in self.columns.values())

    def count(self, bloc: str, day: str) -> int:
        if bloc not in self.counts.index or day not in self.counts.columns:
            return 0
        return int(self.counts.at[bloc, day])

    def is_over_threshold(self, bloc: str, day: str) -> bool:
        return self.count(bloc, day) > self.threshold

    def display_count(self, bloc: str, day: str) -> str:
        """Count as shown in the totals row; zero is blank."""
        value = self.count(bloc, day)
        return str(value) if value > 0 else ""


# ============================================================
# Box office
# ============================================================


@dataclass(frozen=True)
class Show:
    id: str
    name: str
    image_url: Optional[str] = None


@dataclass(frozen=True)
class Performance:
    """
    One performance of a show.

    ``columns`` holds the display strings of the performance table (date,
    venue, city, ...), keyed by column label.
    """

    id: str
    show_id: str
    name: str
    capacity: Optional[float] = None
    revenue_capacity: Optional[float] = None
    date: Optional[dt.date] = None
    status: str = ""
    columns: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PeriodStats:
    """Activity inside a date range: end value minus the value just before it."""

    sold: float
    free: float
    total: float


@dataclass(frozen=True)
class KpiTile:
    label: str
    value: str


__all__ = [
    "Week",
    "Bloc",
    "Event",
    "GridFilters",
    "EventRow",
    "MatrixEntry",
    "WeekGrid",
    "Show",
    "Performance",
    "PeriodStats",
    "KpiTile",
]
