"""End-to-end orchestration helpers for the interface dashboards.

Each ``build_*`` function resolves the dashboard's configuration slots
against a loaded base and runs the matching pure builders. Missing required
slots never raise: the returned view carries the missing slot keys and the
page renders the "configuration required" state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from .analytics.campaigns import METRIC_COLUMNS, campaign_frame, filter_options, filter_records
from .analytics.performances import sort_performances, sort_shows
from .analytics.sales import SeriesRequest
from .core.config import CONFIG, GridConfig, GridLayout
from .domain.models import GridFilters, Performance, Show, Week, WeekGrid
from .domain.normalization import (
    blocs_from_table,
    events_from_table,
    performances_from_table,
    shows_from_table,
    weeks_from_table,
)
from .domain.records import HostBase, HostTable
from .domain.slots import (
    CAMPAIGN_REQUIRED,
    CAMPAIGN_SLOTS,
    PERFORMANCE_COLUMN_SLOTS,
    ROUTING_SLOTS,
    SALES_REQUIRED,
    SALES_SLOTS,
    VENUE_REQUIRED,
    VENUE_SLOTS,
    ResolvedSlots,
    resolve_slots,
    routing_required,
)
from .domain.fields import cell_as_string
from .planning.grid import build_grid, week_options

logger = logging.getLogger(__name__)

Option = Tuple[str, str]


# ============================================================
# Routing grid
# ============================================================


@dataclass(frozen=True)
class RoutingView:
    slots: ResolvedSlots
    missing: Tuple[str, ...] = ()
    grids: Tuple[WeekGrid, ...] = ()
    weeks: Tuple[Week, ...] = ()
    sites: Tuple[Option, ...] = ()
    canals: Tuple[Option, ...] = ()
    layout: GridLayout = GridLayout.ROW_PER_EVENT

    @property
    def configured(self) -> bool:
        return not self.missing

    @property
    def events_table(self) -> Optional[HostTable]:
        return self.slots.table("eventsTable")


def _options(table: Optional[HostTable]) -> Tuple[Option, ...]:
    if table is None:
        return ()
    return tuple((record.id, record.name) for record in table.records)


def build_routing_view(
    base: HostBase,
    *,
    filters: Optional[GridFilters] = None,
    layout: GridLayout = CONFIG.grid.layout,
    overrides: Optional[Mapping[str, Any]] = None,
) -> RoutingView:
    """
    Resolve the routing slots and build the week grids.

    Args:
        base: loaded base
        filters: site / canal / week selection; site and canal only apply to the
            row-per-event layout, which is the only one offering them
        layout: row-per-event or cross-product join
        overrides: operator slot choices

    Returns:
        RoutingView; ``grids`` is empty when the configuration is incomplete
    """
    slots = resolve_slots(base, ROUTING_SLOTS, overrides)
    missing = tuple(slots.missing(routing_required(layout)))
    if missing:
        logger.info(f"Routing grid not configured, missing: {missing}")
        return RoutingView(slots=slots, missing=missing, layout=layout)

    weeks = weeks_from_table(slots.table("weeksTable"), slots.field_ref("dateDebutField"), slots.field_ref("dateFinField"))
    blocs = blocs_from_table(slots.table("blocsTable"))
    events = events_from_table(
        slots.table("eventsTable"),
        week_field=slots.field_ref("weekLinkField"),
        bloc_field=slots.field_ref("blocLinkField"),
        days_field=slots.field_ref("joursField"),
        site_field=slots.field_ref("siteLinkField"),
        canal_field=slots.field_ref("canalLinkField"),
    )

    filters = filters or GridFilters()
    if layout is not GridLayout.ROW_PER_EVENT and (filters.site_id or filters.canal_id):
        logger.debug(f"Site / canal selection ignored in the {layout.value} layout")
        filters = GridFilters(week_id=filters.week_id)

    grids = build_grid(events, weeks, blocs, filters, config=GridConfig.for_layout(layout))

    return RoutingView(
        slots=slots,
        grids=tuple(grids),
        weeks=tuple(week_options(weeks)),
        sites=_options(slots.table("sitesTable")),
        canals=_options(slots.table("canalsTable")),
        layout=layout,
    )


# ============================================================
# Box office
# ============================================================


@dataclass(frozen=True)
class BoxOfficeView:
    slots: ResolvedSlots
    missing: Tuple[str, ...] = ()
    shows: Tuple[Show, ...] = ()

    @property
    def configured(self) -> bool:
        return not self.missing


def build_box_office(base: HostBase, overrides: Optional[Mapping[str, Any]] = None) -> BoxOfficeView:
    slots = resolve_slots(base, SALES_SLOTS, overrides)
    missing = tuple(slots.missing(SALES_REQUIRED))
    if missing:
        return BoxOfficeView(slots=slots, missing=missing)
    shows = shows_from_table(slots.table("spectaclesTable"), slots.field_ref("imageField"))
    return BoxOfficeView(slots=slots, shows=tuple(sort_shows(shows)))


def show_performances(slots: ResolvedSlots, show_id: str) -> List[Performance]:
    """Every performance of a show, sorted; filtering is left to the page."""
    table = slots.table("representationsTable")
    if table is None:
        return []
    performances = performances_from_table(
        table,
        show_id,
        link_field=slots.field_ref("spectacleLinkField"),
        name_field=slots.field_ref("repNameField"),
        capacity_field=slots.field_ref("capacityField"),
        revenue_field=slots.field_ref("revenuePotentialField"),
        date_field=slots.field_ref("colDateRep"),
        status_field=slots.field_ref("filterStatusField"),
        columns=[(label, slots.field_ref(key)) for key, label in PERFORMANCE_COLUMN_SLOTS],
    )
    return sort_performances(performances)


def series_request(performances: Sequence[Performance], selected_id: Optional[str]) -> SeriesRequest:
    """
    Request for the chart.

    The show total always covers every performance of the show, whatever the
    table filter shows, so toggling the filter reuses the cached series.
    """
    if selected_id:
        return SeriesRequest.single(selected_id)
    return SeriesRequest.total(p.id for p in performances)


# ============================================================
# Campaign charts
# ============================================================


@dataclass(frozen=True)
class CampaignView:
    slots: ResolvedSlots
    missing: Tuple[str, ...] = ()
    frame: pd.DataFrame = field(default_factory=pd.DataFrame, compare=False)
    filter_options: Tuple[str, ...] = ()
    filter_label: str = ""

    @property
    def configured(self) -> bool:
        return not self.missing


def build_campaign_view(
    base: HostBase,
    *,
    selected: Optional[str] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> CampaignView:
    slots = resolve_slots(base, CAMPAIGN_SLOTS, overrides)
    missing = tuple(slots.missing(CAMPAIGN_REQUIRED))
    if missing:
        return CampaignView(slots=slots, missing=missing)

    table = slots.table("dataTable")
    filter_field = slots.field_ref("filterField")
    records = filter_records(table.records, filter_field, selected)
    frame = campaign_frame(
        records,
        slots.field_ref("campaignField"),
        {key: slots.field_ref(key) for key in METRIC_COLUMNS},
    )
    return CampaignView(
        slots=slots,
        frame=frame,
        filter_options=tuple(filter_options(table.records, filter_field)),
        filter_label=filter_field.name if filter_field else "",
    )


# ============================================================
# Venues map
# ============================================================


@dataclass(frozen=True)
class VenueInputs:
    slots: ResolvedSlots
    missing: Tuple[str, ...] = ()
    rows: Tuple[Tuple[str, str, str], ...] = ()

    @property
    def configured(self) -> bool:
        return not self.missing

    @property
    def table(self) -> Optional[HostTable]:
        return self.slots.table("venuesTable")


def build_venue_inputs(base: HostBase, overrides: Optional[Mapping[str, Any]] = None) -> VenueInputs:
    """``(record_id, label, address)`` of every venue to geocode."""
    slots = resolve_slots(base, VENUE_SLOTS, overrides)
    missing = tuple(slots.missing(VENUE_REQUIRED))
    if missing:
        return VenueInputs(slots=slots, missing=missing)

    label_field = slots.field_ref("labelField")
    address_field = slots.field_ref("addressField")
    rows = tuple(
        (record.id, cell_as_string(record.value(label_field)), cell_as_string(record.value(address_field)))
        for record in slots.table("venuesTable").records
    )
    return VenueInputs(slots=slots, rows=rows)


__all__ = [
    "BoxOfficeView",
    "CampaignView",
    "RoutingView",
    "VenueInputs",
    "build_box_office",
    "build_campaign_view",
    "build_routing_view",
    "build_venue_inputs",
    "series_request",
    "show_performances",
]
