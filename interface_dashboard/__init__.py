"""
Interface dashboard package

Read-only dashboards built on top of records stored in an Airtable base:
- Routing grid (events x weeks x blocs x days) with occupancy alerts
- Box-office sales curves reconstructed from cumulative daily snapshots
- Campaign dual-axis charts
- Venue map with geocoded addresses

Domain logic lives in ``domain``/``planning``/``analytics`` and never imports
Streamlit; rendering is isolated in ``ui`` and the ``app`` pages.
"""

from __future__ import annotations

__version__ = "1.0.0"
