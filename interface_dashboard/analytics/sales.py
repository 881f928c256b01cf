"""Box-office sales series.

The ``sales_report`` table stores, per performance and per day, the
cumulative number of tickets sold, free tickets issued and revenue. Rows can
be missing (no snapshot that day), duplicated or even lower than a previous
day. The helpers here rebuild a calendar-dense, never-decreasing series from
them.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Iterable, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ..common.performance import measure_time_context
from ..domain.models import PeriodStats
from ..domain.normalization import SALES_VALUE_COLUMNS

logger = logging.getLogger(__name__)

SERIES_COLUMNS = ("date",) + SALES_VALUE_COLUMNS

DateLike = Union[str, dt.date, pd.Timestamp, None]


@dataclass(frozen=True)
class SeriesRequest:
    """
    Which performances a chart shows.

    One id with ``aggregate=False`` is the single-performance view; the
    show total passes every performance id of the show with ``aggregate=True``.
    """

    record_ids: Tuple[str, ...]
    aggregate: bool = False

    @classmethod
    def single(cls, record_id: str) -> "SeriesRequest":
        return cls((record_id,), aggregate=False)

    @classmethod
    def total(cls, record_ids: Iterable[str]) -> "SeriesRequest":
        return cls(tuple(record_ids), aggregate=True)

    @property
    def cache_key(self) -> str:
        return series_cache_key(self.record_ids, aggregate=self.aggregate)

    @property
    def is_empty(self) -> bool:
        return not self.record_ids


class SeriesTotals(NamedTuple):
    """Last point of a series."""

    date: Optional[pd.Timestamp]
    sold: float
    free: float
    total: float


def series_cache_key(record_ids: Sequence[str], *, aggregate: bool) -> str:
    """
    Cache key of a series request.

    - single view: the performance id itself
    - show total: ``"all_"`` + the sorted ids joined with ``","``

    Examples:
        >>> series_cache_key(["recB"], aggregate=False)
        'recB'
        >>> series_cache_key(["recB", "recA"], aggregate=True)
        'all_recA,recB'
    """
    if not aggregate:
        return record_ids[0] if record_ids else ""
    return "all_" + ",".join(sorted(record_ids))


def empty_series() -> pd.DataFrame:
    frame = pd.DataFrame({col: pd.Series(dtype="float64") for col in SALES_VALUE_COLUMNS})
    frame.insert(0, "date", pd.Series(dtype="datetime64[ns]"))
    return frame


def _carry_forward(rows: pd.DataFrame, days: pd.DatetimeIndex) -> pd.DataFrame:
    """
    Running maximum of one performance over ``days``.

    Several rows on one day count as their element-wise max. Days without a
    row repeat the last known value; days before the first row are zero.
    """
    daily = rows.groupby("date")[list(SALES_VALUE_COLUMNS)].max()
    dense = daily.reindex(days)
    # cummax leaves gaps as NaN; ffill then repeats the running max
    dense = dense.cummax().ffill().fillna(0.0)
    return dense


def reconstruct_series(rows: pd.DataFrame, *, aggregate: bool = False) -> pd.DataFrame:
    """
    Rebuild a daily cumulative series from normalized sales rows.

    Args:
        rows: output of ``normalize_sales_rows`` (record_id, date, sold, free, total)
        aggregate: ``False`` treats every row as one performance; ``True``
            reconstructs each ``record_id`` on its own and sums them per day

    Returns:
        DataFrame ``date, sold, free, total`` with one row per calendar day
        from the earliest to the latest observed day

    Examples:
        >>> rows = normalize_sales_rows([
        ...     {"record_id": "r1", "date": "2024-01-01", "sold": 10, "free": 0, "total": 100},
        ...     {"record_id": "r1", "date": "2024-01-03", "sold": 8, "free": 0, "total": 80},
        ... ])
        >>> reconstruct_series(rows)["sold"].tolist()
        [10.0, 10.0, 10.0]
    """
    if rows is None or rows.empty:
        return empty_series()

    with measure_time_context("reconstruct sales series"):
        frame = rows.copy()
        frame["date"] = pd.to_datetime(frame["date"]).dt.normalize()
        days = pd.date_range(frame["date"].min(), frame["date"].max(), freq="D")

        if aggregate:
            total = pd.DataFrame(0.0, index=days, columns=list(SALES_VALUE_COLUMNS))
            for record_id, group in frame.groupby("record_id", sort=False):
                total = total + _carry_forward(group, days)
            series = total
        else:
            series = _carry_forward(frame, days)

        series.index.name = "date"
        series = series.reset_index()

    logger.debug(
        f"Series reconstructed: {len(series)} days from {len(rows)} rows "
        f"({'aggregate' if aggregate else 'single'})"
    )
    return series.loc[:, list(SERIES_COLUMNS)]


# ============================================================
# Date range filtering and period statistics
# ============================================================


def _iso(value: DateLike) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return value[:10]
    return pd.Timestamp(value).strftime("%Y-%m-%d")


def _in_range_mask(series: pd.DataFrame, date_from: DateLike, date_to: DateLike) -> pd.Series:
    iso_days = series["date"].dt.strftime("%Y-%m-%d")
    mask = pd.Series(True, index=series.index)
    lower, upper = _iso(date_from), _iso(date_to)
    if lower:
        mask &= iso_days >= lower
    if upper:
        mask &= iso_days <= upper
    return mask


def filter_series_range(series: pd.DataFrame, date_from: DateLike = None, date_to: DateLike = None) -> pd.DataFrame:
    """Points inside the inclusive ``[date_from, date_to]`` range; open ends allowed."""
    if series.empty:
        return series
    return series.loc[_in_range_mask(series, date_from, date_to)]


def period_stats(series: pd.DataFrame, date_from: DateLike = None, date_to: DateLike = None) -> Optional[PeriodStats]:
    """
    Activity within a date range.

    The value at the last in-range point minus the value of the point just
    before the first in-range point (zero when the range starts with the
    series).

    Returns:
        PeriodStats, or ``None`` when no point falls in the range
    """
    if series.empty:
        return None

    mask = _in_range_mask(series, date_from, date_to).to_numpy()
    positions = np.flatnonzero(mask)
    if positions.size == 0:
        return None

    first, last = int(positions[0]), int(positions[-1])
    end = series.iloc[last]
    if first > 0:
        base = series.iloc[first - 1]
        base_values = [float(base[col]) for col in SALES_VALUE_COLUMNS]
    else:
        base_values = [0.0] * len(SALES_VALUE_COLUMNS)

    deltas = [float(end[col]) - b for col, b in zip(SALES_VALUE_COLUMNS, base_values)]
    return PeriodStats(sold=deltas[0], free=deltas[1], total=deltas[2])


def latest_totals(series: pd.DataFrame) -> Optional[SeriesTotals]:
    """Values of the last point, ``None`` for an empty series."""
    if series.empty:
        return None
    last = series.iloc[-1]
    return SeriesTotals(
        date=pd.Timestamp(last["date"]),
        sold=float(last["sold"]),
        free=float(last["free"]),
        total=float(last["total"]),
    )


__all__ = [
    "SERIES_COLUMNS",
    "SeriesRequest",
    "SeriesTotals",
    "empty_series",
    "filter_series_range",
    "latest_totals",
    "period_stats",
    "reconstruct_series",
    "series_cache_key",
]
