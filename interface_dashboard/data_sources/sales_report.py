"""
Sales report endpoint

The ``sales_report`` table is served by a PostgREST (Supabase) endpoint:

    GET {url}/rest/v1/sales_report
        ?base_id=eq.<base>
        &record_id=eq.<id>            (one performance)
        &record_id=in.(<id>,<id>)     (show total)
        &order=date.asc
        &select=record_id,date,sold,free,total
        &limit=1000&offset=<n>

Pages are requested until one comes back shorter than the page size.

``SalesSeriesLoader`` owns the per-session series cache and the chart's view
state. Each ``load`` cancels the request issued before it; a cancelled
request stops at its next suspension point and never writes the cache or
the view state, so the most recently issued request always wins.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Sequence, Tuple

import pandas as pd
import requests

from ..analytics.sales import SeriesRequest, empty_series, reconstruct_series
from ..common.cache import MemoryCache
from ..common.performance import measure_time_context
from ..core.config import CONFIG, SalesConfig
from ..domain.exceptions import RemoteFetchError, RequestCancelled
from ..domain.normalization import normalize_sales_rows

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


# ============================================================
# Cancellation
# ============================================================


class CancellationToken:
    """Flag shared between the issuer of a request and the request itself."""

    def __init__(self, label: str = "") -> None:
        self.label = label
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise RequestCancelled(f"request {self.label!r} superseded")


# ============================================================
# HTTP client
# ============================================================


def record_filter(record_ids: Sequence[str]) -> str:
    if len(record_ids) == 1:
        return f"eq.{record_ids[0]}"
    return f"in.({','.join(record_ids)})"


class SalesReportClient:
    """Blocking ``requests`` client with an async wrapper for the paginator."""

    def __init__(
        self,
        url: str,
        key: str,
        base_id: str,
        *,
        config: SalesConfig = CONFIG.sales,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.url = url.rstrip("/")
        self.key = key
        self.base_id = base_id
        self.config = config
        self.session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{self.url}/rest/v1/{self.config.table}"

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
            "Content-Type": "application/json",
        }

    def build_params(self, record_ids: Sequence[str], offset: int) -> List[Tuple[str, str]]:
        return [
            ("base_id", f"eq.{self.base_id}"),
            ("record_id", record_filter(record_ids)),
            ("order", "date.asc"),
            ("select", self.config.select),
            ("limit", str(self.config.page_size)),
            ("offset", str(offset)),
        ]

    def fetch_page(self, record_ids: Sequence[str], offset: int) -> List[Row]:
        """
        One page of rows.

        Raises:
            RemoteFetchError: transport failure (``status=None``), non-2xx answer
                or a body that is not a JSON list of rows
        """
        try:
            response = self.session.get(
                self.endpoint,
                params=self.build_params(record_ids, offset),
                headers=self.headers,
                timeout=self.config.request_timeout_s,
            )
        except requests.RequestException as exc:
            logger.error(f"Sales report unreachable: {exc}")
            raise RemoteFetchError(None, str(exc)) from exc

        if not response.ok:
            logger.error(f"Sales report answered {response.status_code} {response.reason}")
            raise RemoteFetchError(response.status_code, response.reason or "")

        try:
            page = response.json()
        except ValueError as exc:
            logger.error(f"Sales report returned a non-JSON body: {exc}")
            raise RemoteFetchError(response.status_code, "invalid JSON") from exc

        if not isinstance(page, list):
            logger.error(f"Sales report returned {type(page).__name__} instead of a row list")
            raise RemoteFetchError(response.status_code, "unexpected payload")
        return page

    async def afetch_page(self, record_ids: Sequence[str], offset: int) -> List[Row]:
        return await asyncio.to_thread(self.fetch_page, record_ids, offset)


class PageSource(Protocol):
    async def afetch_page(self, record_ids: Sequence[str], offset: int) -> List[Row]:  # pragma: no cover
        ...


async def fetch_all_rows(
    fetch_page: Callable[[int], Awaitable[List[Row]]],
    *,
    page_size: int = CONFIG.sales.page_size,
    token: Optional[CancellationToken] = None,
) -> List[Row]:
    """
    Concatenate pages until a short page.

    The token is checked before each request and again after each page
    arrives; a cancelled request raises ``RequestCancelled`` and its pages
    are dropped.
    """
    token = token or CancellationToken()
    rows: List[Row] = []
    offset = 0
    while True:
        token.raise_if_cancelled()
        page = await fetch_page(offset)
        token.raise_if_cancelled()
        rows.extend(page)
        if len(page) < page_size:
            break
        offset += page_size
    return rows


# ============================================================
# Series loader (one per chart instance)
# ============================================================


@dataclass(frozen=True)
class SeriesViewState:
    """What the chart currently displays."""

    key: Optional[str] = None
    series: pd.DataFrame = field(default_factory=empty_series, compare=False)
    loading: bool = False
    error: Optional[str] = None
    status: Optional[int] = None


class SalesSeriesLoader:
    """
    Fetch, reconstruct and cache sales series for one chart.

    Args:
        source: page source, ``None`` when no endpoint is configured (every
            request then yields an empty series, not an error)
        config: page size
        cache: series cache, keyed by ``SeriesRequest.cache_key``
    """

    def __init__(
        self,
        source: Optional[PageSource],
        *,
        config: SalesConfig = CONFIG.sales,
        cache: Optional[MemoryCache[str, pd.DataFrame]] = None,
    ) -> None:
        self.source = source
        self.config = config
        self.cache: MemoryCache[str, pd.DataFrame] = cache if cache is not None else MemoryCache("sales series")
        self.state = SeriesViewState()
        self._token: Optional[CancellationToken] = None

    def issue(self, request: SeriesRequest) -> CancellationToken:
        """Cancel the previous request and hand out the token of a new one."""
        if self._token is not None:
            self._token.cancel()
        self._token = CancellationToken(request.cache_key)
        return self._token

    def _commit(self, token: CancellationToken, state: SeriesViewState) -> SeriesViewState:
        if not token.cancelled:
            self.state = state
        return self.state

    async def load(self, request: SeriesRequest) -> SeriesViewState:
        """
        Display ``request``.

        Returns:
            the view state after this request; for a superseded request,
            whatever the newer request has committed so far
        """
        token = self.issue(request)
        key = request.cache_key

        if self.source is None or request.is_empty:
            return self._commit(token, SeriesViewState(key=key))

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Series {key!r} served from cache")
            return self._commit(token, SeriesViewState(key=key, series=cached))

        self._commit(token, replace(self.state, key=key, loading=True, error=None, status=None))

        source = self.source
        rows: Optional[List[Row]] = None
        try:
            with measure_time_context(f"fetch sales rows for {len(request.record_ids)} performance(s)"):
                try:
                    rows = await fetch_all_rows(
                        lambda offset: source.afetch_page(request.record_ids, offset),
                        page_size=self.config.page_size,
                        token=token,
                    )
                except RequestCancelled:
                    logger.debug(f"Series {key!r} cancelled")
        except RemoteFetchError as exc:
            return self._commit(token, SeriesViewState(key=key, error=str(exc), status=exc.status))

        if rows is None:
            return self.state

        series = reconstruct_series(normalize_sales_rows(rows), aggregate=request.aggregate)

        if token.cancelled:
            logger.debug(f"Series {key!r} finished after being superseded, discarded")
            return self.state

        self.cache.put(key, series)
        logger.info(f"Series {key!r}: {len(rows)} rows, {len(series)} days")
        return self._commit(token, SeriesViewState(key=key, series=series))


__all__ = [
    "CancellationToken",
    "PageSource",
    "SalesReportClient",
    "SalesSeriesLoader",
    "SeriesViewState",
    "fetch_all_rows",
    "record_filter",
]
