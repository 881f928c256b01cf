"""
Field kinds and cell extraction

Airtable declares a type for every field. Instead of checking the type each
time a cell is read, the type is mapped once to a ``FieldKind`` and the
matching extraction function is attached to the ``FieldRef`` when the
schema is loaded.

Cell values follow the shapes returned by the Airtable REST API, with link
cells enriched by the loader to ``[{"id": ..., "name": ...}]``. Bare lists of
record ids are accepted as well.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, List, Optional

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)


class FieldKind(str, Enum):
    """Closed set of Airtable field types the dashboards understand."""

    MULTIPLE_RECORD_LINKS = "multipleRecordLinks"
    MULTIPLE_SELECTS = "multipleSelects"
    SINGLE_SELECT = "singleSelect"
    DATE = "date"
    DATE_TIME = "dateTime"
    NUMBER = "number"
    CURRENCY = "currency"
    PERCENT = "percent"
    COUNT = "count"
    AUTO_NUMBER = "autoNumber"
    FORMULA = "formula"
    ROLLUP = "rollup"
    MULTIPLE_LOOKUP_VALUES = "multipleLookupValues"
    SINGLE_LINE_TEXT = "singleLineText"
    MULTILINE_TEXT = "multilineText"
    RICH_TEXT = "richText"
    EMAIL = "email"
    URL = "url"
    PHONE_NUMBER = "phoneNumber"
    CHECKBOX = "checkbox"
    MULTIPLE_ATTACHMENTS = "multipleAttachments"
    OTHER = "other"

    @classmethod
    def from_platform_type(cls, type_name: Optional[str]) -> "FieldKind":
        """Map an Airtable type string to a kind; unknown types become ``OTHER``."""
        try:
            return cls(type_name)
        except ValueError:
            return cls.OTHER


# ============================================================
# Role predicates (which kinds may fill which configuration slot)
# ============================================================

LINK_KINDS: FrozenSet[FieldKind] = frozenset({FieldKind.MULTIPLE_RECORD_LINKS})

MULTI_SELECT_KINDS: FrozenSet[FieldKind] = frozenset({FieldKind.MULTIPLE_SELECTS})

DATE_KINDS: FrozenSet[FieldKind] = frozenset({FieldKind.DATE, FieldKind.DATE_TIME})

NUMERIC_KINDS: FrozenSet[FieldKind] = frozenset(
    {
        FieldKind.NUMBER,
        FieldKind.CURRENCY,
        FieldKind.FORMULA,
        FieldKind.ROLLUP,
        FieldKind.COUNT,
        FieldKind.PERCENT,
        FieldKind.MULTIPLE_LOOKUP_VALUES,
    }
)

TEXT_KINDS: FrozenSet[FieldKind] = frozenset(
    {
        FieldKind.SINGLE_LINE_TEXT,
        FieldKind.MULTILINE_TEXT,
        FieldKind.SINGLE_SELECT,
        FieldKind.FORMULA,
        FieldKind.MULTIPLE_RECORD_LINKS,
        FieldKind.ROLLUP,
        FieldKind.AUTO_NUMBER,
        FieldKind.DATE,
        FieldKind.DATE_TIME,
    }
)

ATTACHMENT_KINDS: FrozenSet[FieldKind] = frozenset({FieldKind.MULTIPLE_ATTACHMENTS})


def is_link_field(ref: "FieldRef") -> bool:
    return ref.kind in LINK_KINDS


def is_multi_select(ref: "FieldRef") -> bool:
    return ref.kind in MULTI_SELECT_KINDS


def is_day_field(ref: "FieldRef") -> bool:
    """Active days may come from a multi-select or from linked day records."""
    return ref.kind in MULTI_SELECT_KINDS or ref.kind in LINK_KINDS


def is_date_field(ref: "FieldRef") -> bool:
    return ref.kind in DATE_KINDS


def is_numeric_field(ref: "FieldRef") -> bool:
    return ref.kind in NUMERIC_KINDS


def is_text_field(ref: "FieldRef") -> bool:
    return ref.kind in TEXT_KINDS


def is_attachment_field(ref: "FieldRef") -> bool:
    return ref.kind in ATTACHMENT_KINDS


def is_any_field(ref: "FieldRef") -> bool:
    return True


# ============================================================
# Cell helpers
# ============================================================


def parse_platform_date(value: Any) -> Optional[dt.date]:
    """
    Parse an Airtable date cell into a ``date``.

    Only the year, month and day parts are used, so ``"2024-01-07"`` and
    ``"2024-01-07T22:30:00.000Z"`` both give 2024-01-07 without any time
    zone shift.

    Args:
        value: ISO string, ``date``/``datetime``/``Timestamp`` or ``None``

    Returns:
        the calendar date, or ``None`` when the value cannot be parsed

    Examples:
        >>> parse_platform_date("2024-01-07")
        datetime.date(2024, 1, 7)
        >>> parse_platform_date("garbage") is None
        True
    """
    if value is None or value == "":
        return None
    if isinstance(value, pd.Timestamp):
        return None if pd.isna(value) else value.date()
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if not isinstance(value, str):
        return None

    parts = value.strip().split("T")[0].split("-")
    if len(parts) < 3:
        return None
    try:
        year, month, day = (int(p) for p in parts[:3])
        return dt.date(year, month, day)
    except ValueError:
        return None


def linked_ids(value: Any) -> List[str]:
    """
    Record ids of a link cell, first occurrence order, duplicates dropped.

    Accepts ``["rec1", "rec2"]`` and ``[{"id": "rec1", "name": "..."}]``.
    """
    return [item["id"] if isinstance(item, dict) else item for item in unique_links(value)]


def unique_links(value: Any) -> List[Any]:
    """
    Link cell items with repeated record ids dropped.

    Items are kept as they arrive (bare ids or ``{"id", "name"}`` dicts), so
    ``linked_ids`` and ``option_names`` both still apply to the result.
    """
    if not isinstance(value, (list, tuple)):
        return []

    items: List[Any] = []
    seen = set()
    for item in value:
        rid = item.get("id") if isinstance(item, dict) else item
        if not isinstance(rid, str) or not rid or rid in seen:
            continue
        seen.add(rid)
        items.append(item)
    return items


def option_names(value: Any) -> List[str]:
    """Names of the selected options (multi-select, single select or links)."""
    if value is None:
        return []
    items = value if isinstance(value, (list, tuple)) else [value]

    names: List[str] = []
    for item in items:
        if isinstance(item, dict):
            name = item.get("name")
        else:
            name = item
        if isinstance(name, str) and name:
            names.append(name)
    return names


def to_number(value: Any) -> Optional[float]:
    """
    Coerce a numeric-ish cell to ``float``.

    Lookups and rollups arrive as lists; the first usable element wins.
    Non-finite values and unparseable strings give ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (list, tuple)):
        for item in value:
            number = to_number(item)
            if number is not None:
                return number
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip().replace("\u202f", "").replace("\u00a0", "").replace(" ", "")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if np.isfinite(number) else None


def _format_scalar(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "checked" if value else ""
    if isinstance(value, float):
        if not np.isfinite(value):
            return ""
        return str(int(value)) if value.is_integer() else str(value)
    if isinstance(value, dict):
        for key in ("name", "filename", "url", "id"):
            if value.get(key):
                return str(value[key])
        return ""
    return str(value)


def cell_as_string(value: Any) -> str:
    """Display string for any cell, lists joined with ``", "``."""
    if isinstance(value, (list, tuple)):
        return ", ".join(s for s in (_format_scalar(v) for v in value) if s)
    return _format_scalar(value)


def attachments(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, dict)]


def raw_value(value: Any) -> Any:
    return value


# ============================================================
# Kind -> extractor table
# ============================================================

Extractor = Callable[[Any], Any]

EXTRACTORS: Dict[FieldKind, Extractor] = {
    FieldKind.MULTIPLE_RECORD_LINKS: unique_links,
    FieldKind.MULTIPLE_SELECTS: option_names,
    FieldKind.SINGLE_SELECT: cell_as_string,
    FieldKind.DATE: parse_platform_date,
    FieldKind.DATE_TIME: parse_platform_date,
    FieldKind.NUMBER: to_number,
    FieldKind.CURRENCY: to_number,
    FieldKind.PERCENT: to_number,
    FieldKind.COUNT: to_number,
    FieldKind.AUTO_NUMBER: to_number,
    FieldKind.FORMULA: raw_value,
    FieldKind.ROLLUP: raw_value,
    FieldKind.MULTIPLE_LOOKUP_VALUES: raw_value,
    FieldKind.SINGLE_LINE_TEXT: cell_as_string,
    FieldKind.MULTILINE_TEXT: cell_as_string,
    FieldKind.RICH_TEXT: cell_as_string,
    FieldKind.EMAIL: cell_as_string,
    FieldKind.URL: cell_as_string,
    FieldKind.PHONE_NUMBER: cell_as_string,
    FieldKind.CHECKBOX: bool,
    FieldKind.MULTIPLE_ATTACHMENTS: attachments,
    FieldKind.OTHER: raw_value,
}


def extractor_for(kind: FieldKind) -> Extractor:
    return EXTRACTORS[kind]


@dataclass(frozen=True)
class FieldRef:
    """
    Resolved reference to one field of a table.

    ``extract`` is looked up from ``EXTRACTORS`` once, at construction.
    """

    id: str
    name: str
    kind: FieldKind = FieldKind.OTHER
    linked_table_id: Optional[str] = None
    extract: Extractor = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "extract", extractor_for(self.kind))


__all__ = [
    "FieldKind",
    "FieldRef",
    "EXTRACTORS",
    "extractor_for",
    "parse_platform_date",
    "linked_ids",
    "unique_links",
    "option_names",
    "to_number",
    "cell_as_string",
    "attachments",
    "is_link_field",
    "is_multi_select",
    "is_day_field",
    "is_date_field",
    "is_numeric_field",
    "is_text_field",
    "is_attachment_field",
    "is_any_field",
]
