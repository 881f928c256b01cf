"""Display formatting helpers (French number and date conventions)."""

from __future__ import annotations

import datetime as dt
from typing import Optional, Union

import pandas as pd

from ..core.config import MONTHS_SHORT

# fr-FR groups thousands with a narrow no-break space
THOUSANDS_SEPARATOR = "\u202f"
EMPTY_VALUE = "\u2014"


def escape(value: object) -> str:
    """Escape a value for HTML text and attributes."""
    return (
        str(value or "")
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def format_number(value: Optional[float], max_decimals: int = 0) -> str:
    """
    Format a number the fr-FR way.

    Args:
        value: number to format
        max_decimals: maximum fraction digits; trailing zeros are dropped

    Returns:
        "12 345" / "1 234,5" style string, or an em dash for missing values

    Examples:
        >>> format_number(12345)
        '12 345'
        >>> format_number(3.14159, max_decimals=2)
        '3,14'
    """
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return EMPTY_VALUE
    try:
        number = round(float(value), max_decimals)
    except (TypeError, ValueError):
        return EMPTY_VALUE

    text = f"{number:,.{max_decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        text = "0"
    return text.replace(",", THOUSANDS_SEPARATOR).replace(".", ",")


def format_currency(value: Optional[float]) -> str:
    text = format_number(value)
    return text if text == EMPTY_VALUE else f"{text} $"


def format_date_label(value: Union[str, dt.date, pd.Timestamp, None]) -> str:
    """
    Short day label used on the chart axis: ``"15 fev"``.

    Unparseable strings are returned unchanged.
    """
    if value is None or value == "":
        return ""
    timestamp = pd.to_datetime(value, errors="coerce")
    if pd.isna(timestamp):
        return str(value)
    return f"{timestamp.day} {MONTHS_SHORT[timestamp.month - 1]}"


def format_tick(value: float) -> str:
    """Axis tick: values of 1000 and more become ``"1.5k"``."""
    if value >= 1000:
        return f"{value / 1000:.1f}k"
    if float(value).is_integer():
        return str(int(value))
    return str(value)


__all__ = [
    "EMPTY_VALUE",
    "escape",
    "format_currency",
    "format_date_label",
    "format_number",
    "format_tick",
]
