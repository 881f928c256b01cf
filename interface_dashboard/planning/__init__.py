"""Routing grid planning."""

from __future__ import annotations

from .grid import build_grid, day_numbers, event_passes_filters, sort_weeks, week_options

__all__ = ["build_grid", "day_numbers", "event_passes_filters", "sort_weeks", "week_options"]
