"""
Record normalization

Turns host-platform records into domain models and raw sales rows into a
typed DataFrame. Malformed links or values never raise here: they become
empty tuples, ``None`` or zero, and the builders downstream decide whether
the record is usable.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from .fields import (
    FieldRef,
    attachments,
    cell_as_string,
    linked_ids,
    option_names,
    parse_platform_date,
    to_number,
)
from .models import Bloc, Event, Performance, Show, Week
from .records import HostRecord, HostTable

logger = logging.getLogger(__name__)

# Column layout of a normalized sales frame
SALES_COLUMNS = ("record_id", "date", "sold", "free", "total")
SALES_VALUE_COLUMNS = ("sold", "free", "total")


# ============================================================
# Routing grid
# ============================================================


def weeks_from_table(
    table: HostTable,
    start_field: Optional[FieldRef],
    end_field: Optional[FieldRef] = None,
) -> List[Week]:
    """Weeks in table order; unparseable dates become ``None``."""
    weeks = []
    for record in table.records:
        weeks.append(
            Week(
                id=record.id,
                name=record.name,
                start=parse_platform_date(record.value(start_field)),
                end=parse_platform_date(record.value(end_field)) if end_field else None,
            )
        )
    return weeks


def blocs_from_table(table: HostTable) -> List[Bloc]:
    return [Bloc(id=record.id, name=record.name) for record in table.records]


def event_from_record(
    record: HostRecord,
    *,
    week_field: Optional[FieldRef],
    bloc_field: Optional[FieldRef],
    days_field: Optional[FieldRef],
    site_field: Optional[FieldRef] = None,
    canal_field: Optional[FieldRef] = None,
) -> Event:
    return Event(
        id=record.id,
        name=record.name or "",
        week_ids=tuple(linked_ids(record.value(week_field))),
        bloc_ids=tuple(linked_ids(record.value(bloc_field))),
        active_days=frozenset(option_names(record.value(days_field))),
        site_ids=tuple(linked_ids(record.value(site_field))),
        canal_ids=tuple(linked_ids(record.value(canal_field))),
    )


def events_from_table(
    table: HostTable,
    *,
    week_field: Optional[FieldRef],
    bloc_field: Optional[FieldRef],
    days_field: Optional[FieldRef],
    site_field: Optional[FieldRef] = None,
    canal_field: Optional[FieldRef] = None,
) -> List[Event]:
    return [
        event_from_record(
            record,
            week_field=week_field,
            bloc_field=bloc_field,
            days_field=days_field,
            site_field=site_field,
            canal_field=canal_field,
        )
        for record in table.records
    ]


# ============================================================
# Box office
# ============================================================


def image_url(value: Any) -> Optional[str]:
    """Large thumbnail of the first attachment, else its URL."""
    items = attachments(value)
    if not items:
        return None
    first = items[0]
    thumbnails = first.get("thumbnails") or {}
    large = thumbnails.get("large") or {}
    return large.get("url") or first.get("url") or None


def shows_from_table(table: HostTable, image_field: Optional[FieldRef] = None) -> List[Show]:
    """Shows with a non-empty name, in table order."""
    shows = []
    for record in table.records:
        if not record.name:
            continue
        url = image_url(record.value(image_field)) if image_field else None
        shows.append(Show(id=record.id, name=record.name, image_url=url))
    return shows


def performances_from_table(
    table: HostTable,
    show_id: str,
    *,
    link_field: Optional[FieldRef],
    name_field: Optional[FieldRef] = None,
    capacity_field: Optional[FieldRef] = None,
    revenue_field: Optional[FieldRef] = None,
    date_field: Optional[FieldRef] = None,
    status_field: Optional[FieldRef] = None,
    columns: Sequence[Tuple[str, Optional[FieldRef]]] = (),
) -> List[Performance]:
    """
    Performances linked to ``show_id``.

    Args:
        table: performances table
        show_id: selected show record id
        link_field: link from a performance to its show
        name_field: display name, the primary field when omitted
        capacity_field / revenue_field: numeric capacities, ``None`` when not numeric
        date_field: performance date, drives the past filter and sorting
        status_field: status text, drives the cancelled filter
        columns: ``(label, field)`` pairs rendered as display strings

    Returns:
        performances in table order; records with an empty name are dropped
    """
    if link_field is None:
        return []

    performances = []
    for record in table.records:
        if show_id not in linked_ids(record.value(link_field)):
            continue

        name = cell_as_string(record.value(name_field)) if name_field else record.name
        if not name:
            logger.debug(f"Performance {record.id} has no name, skipped")
            continue

        performances.append(
            Performance(
                id=record.id,
                show_id=show_id,
                name=name,
                capacity=to_number(record.value(capacity_field)) or None,
                revenue_capacity=to_number(record.value(revenue_field)) or None,
                date=parse_platform_date(record.value(date_field)),
                status=cell_as_string(record.value(status_field)) if status_field else "",
                columns={
                    label: cell_as_string(record.value(ref)) if ref else ""
                    for label, ref in columns
                },
            )
        )
    return performances


# ============================================================
# Sales snapshots
# ============================================================


def empty_sales_frame() -> pd.DataFrame:
    frame = pd.DataFrame({col: pd.Series(dtype="float64") for col in SALES_COLUMNS})
    frame["record_id"] = frame["record_id"].astype("object")
    frame["date"] = pd.to_datetime(frame["date"])
    return frame


def normalize_sales_rows(rows: Iterable[Mapping[str, Any]]) -> pd.DataFrame:
    """
    Convert raw ``sales_report`` rows into a typed frame.

    - ``date`` is truncated to the calendar day (the part before ``T``)
    - ``sold``/``free``/``total`` are coerced to numbers, missing or invalid -> 0
    - rows without a usable date or record id are dropped

    Args:
        rows: JSON rows ``{record_id, date, sold, free, total}``

    Returns:
        DataFrame with columns ``record_id, date, sold, free, total``
    """
    frame = pd.DataFrame(list(rows))
    if frame.empty:
        return empty_sales_frame()

    for col in SALES_COLUMNS:
        if col not in frame.columns:
            frame[col] = None

    frame = frame.loc[:, list(SALES_COLUMNS)].copy()
    day = frame["date"].astype("string").str.split("T").str[0]
    frame["date"] = pd.to_datetime(day, format="%Y-%m-%d", errors="coerce")
    for col in SALES_VALUE_COLUMNS:
        frame[col] = pd.to_numeric(frame[col], errors="coerce").fillna(0.0).astype("float64")

    valid = frame["date"].notna() & frame["record_id"].notna()
    dropped = int((~valid).sum())
    if dropped:
        logger.debug(f"Dropped {dropped} sales rows without date or record id")

    frame = frame.loc[valid].copy()
    frame["record_id"] = frame["record_id"].astype(str)
    return frame.reset_index(drop=True)


__all__ = [
    "SALES_COLUMNS",
    "weeks_from_table",
    "blocs_from_table",
    "event_from_record",
    "events_from_table",
    "image_url",
    "shows_from_table",
    "performances_from_table",
    "empty_sales_frame",
    "normalize_sales_rows",
]
