"""
Routing grid builder

Joins events with the weeks and blocs they link to and lays them out per
week, bloc and day. The builder is a pure function of its inputs: it never
touches the host platform and returns fresh ``WeekGrid`` objects on every
call.

Two layouts are supported (``GridConfig.layout``):

- ``ROW_PER_EVENT``: one row per (event, linked week). A cell is marked when
  the event links the column's bloc and lists the column's day.
- ``CROSS_PRODUCT``: every (week, bloc) link of an event is stacked inside
  that bloc's column group; the groups of a week are padded with empty
  slots to the tallest group.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..common.performance import measure_time_context
from ..core.config import CONFIG, GridConfig, GridLayout
from ..domain.models import Bloc, Event, EventRow, GridFilters, MatrixEntry, Week, WeekGrid

logger = logging.getLogger(__name__)


# ============================================================
# Helpers
# ============================================================


def day_numbers(start: Optional[dt.date], count: int = 7) -> Tuple[Optional[int], ...]:
    """
    Day of month of each day column, counted from the week start.

    Examples:
        >>> day_numbers(dt.date(2024, 1, 7))
        (7, 8, 9, 10, 11, 12, 13)
        >>> day_numbers(dt.date(2024, 1, 29))
        (29, 30, 31, 1, 2, 3, 4)
    """
    if start is None:
        return (None,) * count
    return tuple((start + dt.timedelta(days=i)).day for i in range(count))


def week_sort_key(week: Week) -> Tuple[bool, dt.date]:
    # weeks without a start date go last; sorted() keeps their input order
    return (week.start is None, week.start or dt.date.min)


def sort_weeks(weeks: Iterable[Week]) -> List[Week]:
    """Ascending start date, undated weeks last in encounter order."""
    return sorted(weeks, key=week_sort_key)


def week_options(weeks: Iterable[Week]) -> List[Week]:
    """Weeks for the week selector, in display order."""
    return sort_weeks(weeks)


def bloc_key(name: str, bloc_order: Sequence[str]) -> Optional[str]:
    """Canonical bloc key for a bloc name, ``None`` when the name is not a known bloc."""
    wanted = (name or "").strip().lower()
    for key in bloc_order:
        if key.lower() == wanted:
            return key
    return None


def event_passes_filters(event: Event, filters: GridFilters) -> bool:
    """
    Site and canal filters.

    Each active filter requires the event to link the selected record; an
    event without the link field value fails it.
    """
    if filters.site_id is not None and filters.site_id not in event.site_ids:
        return False
    if filters.canal_id is not None and filters.canal_id not in event.canal_ids:
        return False
    return True


def _empty_counts(config: GridConfig) -> np.ndarray:
    return np.zeros((len(config.bloc_order), len(config.day_codes)), dtype=int)


def _counts_frame(counts: np.ndarray, config: GridConfig) -> pd.DataFrame:
    return pd.DataFrame(counts, index=list(config.bloc_order), columns=list(config.day_codes))


def _row_counts(rows: Sequence[EventRow], config: GridConfig) -> pd.DataFrame:
    counts = _empty_counts(config)
    for b, bloc in enumerate(config.bloc_order):
        for d, day in enumerate(config.day_codes):
            counts[b, d] = sum(1 for row in rows if row.is_active(bloc, day))
    return _counts_frame(counts, config)


def _matrix_counts(
    columns: Dict[str, Tuple[Optional[MatrixEntry], ...]],
    config: GridConfig,
) -> pd.DataFrame:
    counts = _empty_counts(config)
    for b, bloc in enumerate(config.bloc_order):
        entries = [e for e in columns.get(bloc, ()) if e is not None]
        for d, day in enumerate(config.day_codes):
            counts[b, d] = sum(1 for entry in entries if entry.is_active(day))
    return _counts_frame(counts, config)


def _pad_columns(
    stacked: Dict[str, List[MatrixEntry]],
    config: GridConfig,
) -> Dict[str, Tuple[Optional[MatrixEntry], ...]]:
    height = max([1] + [len(stacked.get(bloc, [])) for bloc in config.bloc_order])
    columns: Dict[str, Tuple[Optional[MatrixEntry], ...]] = {}
    for bloc in config.bloc_order:
        entries: List[Optional[MatrixEntry]] = list(stacked.get(bloc, []))
        entries.extend([None] * (height - len(entries)))
        columns[bloc] = tuple(entries)
    return columns


# ============================================================
# Builder
# ============================================================


def build_grid(
    events: Iterable[Event],
    weeks: Iterable[Week],
    blocs: Iterable[Bloc],
    filters: Optional[GridFilters] = None,
    *,
    config: GridConfig = CONFIG.grid,
) -> List[WeekGrid]:
    """
    Build the per-week grids.

    Args:
        events: events of the events table
        weeks: weeks of the weeks table
        blocs: blocs of the blocs table
        filters: site / canal / week selection, no filtering when omitted
        config: layout, vocabularies and alert threshold

    Returns:
        one WeekGrid per week that received at least one event, sorted by
        start date with undated weeks last

    Notes:
        - Site then canal filter; an event failing either is dropped everywhere.
        - Events without any existing week or without any existing bloc are dropped.
        - Week links to records missing from the weeks table are ignored.
        - Bloc names outside ``config.bloc_order`` never produce a cell.
    """
    filters = filters or GridFilters()

    with measure_time_context("build routing grid"):
        # 1. index
        week_index: Dict[str, Week] = {week.id: week for week in weeks}
        week_position = {week_id: position for position, week_id in enumerate(week_index)}
        bloc_index: Dict[str, Bloc] = {bloc.id: bloc for bloc in blocs}

        rows_by_week: Dict[str, List[EventRow]] = {}
        stacked_by_week: Dict[str, Dict[str, List[MatrixEntry]]] = {}

        skipped_filter = 0
        skipped_links = 0

        for event in events:
            # 2. site / canal filters
            if not event_passes_filters(event, filters):
                skipped_filter += 1
                continue

            # 3. links must resolve
            event_weeks = [wid for wid in event.week_ids if wid in week_index]
            event_blocs = [bloc_index[bid] for bid in event.bloc_ids if bid in bloc_index]
            if not event_weeks or not event_blocs:
                skipped_links += 1
                logger.debug(f"Event {event.id} ({event.name!r}) has no resolvable week or bloc, skipped")
                continue

            bloc_keys = [bloc_key(bloc.name, config.bloc_order) for bloc in event_blocs]
            known_blocs = [key for key in bloc_keys if key is not None]

            # 5. materialize week links
            for week_id in event_weeks:
                if filters.week_id is not None and week_id != filters.week_id:
                    continue

                if config.layout is GridLayout.ROW_PER_EVENT:
                    rows_by_week.setdefault(week_id, []).append(
                        EventRow(
                            event_id=event.id,
                            event_name=event.name,
                            blocs=frozenset(known_blocs),
                            active_days=event.active_days,
                        )
                    )
                else:
                    stacked = stacked_by_week.setdefault(week_id, {})
                    for key in known_blocs:
                        stacked.setdefault(key, []).append(
                            MatrixEntry(
                                event_id=event.id,
                                event_name=event.name,
                                active_days=event.active_days,
                            )
                        )

        # 7. counts per cell
        grids: List[WeekGrid] = []
        if config.layout is GridLayout.ROW_PER_EVENT:
            for week_id, rows in rows_by_week.items():
                week = week_index[week_id]
                grids.append(
                    WeekGrid(
                        week=week,
                        day_numbers=day_numbers(week.start, len(config.day_codes)),
                        rows=tuple(rows),
                        counts=_row_counts(rows, config),
                        threshold=config.alert_threshold,
                    )
                )
        else:
            for week_id, stacked in stacked_by_week.items():
                week = week_index[week_id]
                columns = _pad_columns(stacked, config)
                grids.append(
                    WeekGrid(
                        week=week,
                        day_numbers=day_numbers(week.start, len(config.day_codes)),
                        columns=columns,
                        counts=_matrix_counts(columns, config),
                        threshold=config.alert_threshold,
                    )
                )

        # 6. sort weeks
        grids.sort(key=lambda grid: (week_sort_key(grid.week), week_position[grid.week.id]))

    logger.debug(
        f"Grid built: {len(grids)} weeks, {skipped_filter} events filtered, "
        f"{skipped_links} events without resolvable links"
    )
    return grids


__all__ = [
    "build_grid",
    "bloc_key",
    "day_numbers",
    "event_passes_filters",
    "sort_weeks",
    "week_options",
    "week_sort_key",
]
