"""Sales series, performance and campaign analytics."""

from __future__ import annotations

from .sales import (
    SeriesRequest,
    filter_series_range,
    latest_totals,
    period_stats,
    reconstruct_series,
    series_cache_key,
)

__all__ = [
    "SeriesRequest",
    "filter_series_range",
    "latest_totals",
    "period_stats",
    "reconstruct_series",
    "series_cache_key",
]
