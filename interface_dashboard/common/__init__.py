"""Shared helpers (caching, timing)."""

from __future__ import annotations

from .cache import MemoryCache
from .performance import PerformanceContext, measure_time, measure_time_context

__all__ = [
    "MemoryCache",
    "PerformanceContext",
    "measure_time",
    "measure_time_context",
]
