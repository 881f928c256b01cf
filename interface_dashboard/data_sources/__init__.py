"""Data access: Airtable base loading and the sales report endpoint."""

from __future__ import annotations

from .airtable import AirtableClient, load_base, record_url
from .loader import AirtableBaseLoader, Loader, StaticBaseLoader
from .sales_report import (
    CancellationToken,
    SalesReportClient,
    SalesSeriesLoader,
    SeriesViewState,
    fetch_all_rows,
)

__all__ = [
    "AirtableClient",
    "AirtableBaseLoader",
    "CancellationToken",
    "Loader",
    "SalesReportClient",
    "SalesSeriesLoader",
    "SeriesViewState",
    "StaticBaseLoader",
    "fetch_all_rows",
    "load_base",
    "record_url",
]
