"""Shows, performances and box-office KPIs."""

from __future__ import annotations

import datetime as dt
import logging
import unicodedata
from typing import List, Optional, Sequence, Tuple, Union

import pandas as pd

from ..core.config import CONFIG, SalesConfig
from ..domain.fields import FieldRef, cell_as_string
from ..domain.models import KpiTile, Performance, Show
from ..domain.records import HostRecord

logger = logging.getLogger(__name__)

Preset = Union[int, str]

PRESET_ALL = "all"
PRESET_YTD = "ytd"

PRESET_LABELS: Tuple[Tuple[Preset, str], ...] = (
    (3, "3m"),
    (6, "6m"),
    (12, "1an"),
    (PRESET_YTD, "YTD"),
    (PRESET_ALL, "Tout"),
)


def collation_key(text: str) -> str:
    """Accent- and case-insensitive sort key for French labels."""
    decomposed = unicodedata.normalize("NFKD", text or "")
    return "".join(c for c in decomposed if not unicodedata.combining(c)).casefold()


# ============================================================
# Show gallery
# ============================================================


def sort_shows(shows: Sequence[Show]) -> List[Show]:
    return sorted(shows, key=lambda show: collation_key(show.name))


def search_shows(shows: Sequence[Show], query: str) -> List[Show]:
    """Case-insensitive substring match on the show name; empty query keeps all."""
    if not query:
        return list(shows)
    needle = query.lower()
    return [show for show in shows if needle in show.name.lower()]


# ============================================================
# Performances
# ============================================================


def is_cancelled(performance: Performance, markers: Sequence[str] = CONFIG.sales.cancelled_markers) -> bool:
    status = performance.status.lower()
    return any(marker in status for marker in markers)


def filter_performances(
    performances: Sequence[Performance],
    *,
    show_all: bool = False,
    today: Optional[dt.date] = None,
    config: SalesConfig = CONFIG.sales,
) -> List[Performance]:
    """
    Default performance filter.

    Unless ``show_all`` is set, performances dated before ``today`` and
    performances whose status mentions a cancellation are hidden. Undated
    performances are kept.
    """
    if show_all:
        return list(performances)

    today = today or dt.date.today()
    kept = []
    for performance in performances:
        if performance.date is not None and performance.date < today:
            continue
        if is_cancelled(performance, config.cancelled_markers):
            continue
        kept.append(performance)
    return kept


def performance_sort_key(performance: Performance) -> Tuple[bool, dt.date, str]:
    if performance.date is not None:
        return (False, performance.date, "")
    return (True, dt.date.min, collation_key(performance.name))


def sort_performances(performances: Sequence[Performance]) -> List[Performance]:
    """Dated performances first in date order, then undated ones by name."""
    return sorted(performances, key=performance_sort_key)


def performances_frame(performances: Sequence[Performance]) -> pd.DataFrame:
    """Table shown under the chart: name plus the configured display columns."""
    rows = []
    for performance in performances:
        row = {"id": performance.id, "Representation": performance.name}
        row.update(performance.columns)
        rows.append(row)
    return pd.DataFrame(rows)


# ============================================================
# KPIs
# ============================================================


def show_kpis(record: Optional[HostRecord], fields: Sequence[Optional[FieldRef]]) -> List[KpiTile]:
    """Label/value tiles of the configured KPI fields of a show."""
    if record is None:
        return []
    return [
        KpiTile(label=ref.name, value=cell_as_string(record.value(ref)))
        for ref in fields
        if ref is not None
    ]


def pad_tiles(tiles: Sequence[KpiTile], count: int = CONFIG.sales.kpi_slots) -> List[KpiTile]:
    """Blank tiles appended up to ``count``; rendered as placeholders."""
    return list(tiles) + [KpiTile(label="", value="") for _ in range(count - len(tiles))]


# ============================================================
# Date range presets
# ============================================================


def preset_range(preset: Preset, today: Optional[dt.date] = None) -> Tuple[Optional[str], Optional[str]]:
    """
    ``(date_from, date_to)`` ISO strings for a preset.

    Month presets go back that many calendar months from today with an open
    end; ``"ytd"`` starts on January 1st; ``"all"`` clears both ends.
    """
    today = today or dt.date.today()
    if preset == PRESET_ALL:
        return (None, None)
    if preset == PRESET_YTD:
        return (f"{today.year}-01-01", None)
    start = pd.Timestamp(today) - pd.DateOffset(months=int(preset))
    return (start.strftime("%Y-%m-%d"), None)


def active_preset(
    date_from: Optional[str],
    date_to: Optional[str],
    today: Optional[dt.date] = None,
    months: Sequence[int] = CONFIG.sales.preset_months,
) -> Optional[Preset]:
    """Preset matching the current range, ``None`` for a custom range."""
    if not date_from and not date_to:
        return PRESET_ALL
    if date_to:
        return None
    today = today or dt.date.today()
    if date_from == preset_range(PRESET_YTD, today)[0]:
        return PRESET_YTD
    for m in months:
        if date_from == preset_range(m, today)[0]:
            return m
    return None


__all__ = [
    "PRESET_ALL",
    "PRESET_YTD",
    "PRESET_LABELS",
    "active_preset",
    "collation_key",
    "filter_performances",
    "is_cancelled",
    "pad_tiles",
    "performances_frame",
    "preset_range",
    "search_shows",
    "show_kpis",
    "sort_performances",
    "sort_shows",
]
