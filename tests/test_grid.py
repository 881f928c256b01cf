"""
Routing grid tests

Grid construction in both layouts, filters, counts and the alert threshold.
"""
from __future__ import annotations

import datetime as dt

import pytest

from interface_dashboard.core.config import GridConfig, GridLayout
from interface_dashboard.domain.models import Bloc, Event, GridFilters, Week
from interface_dashboard.pipeline import build_routing_view
from interface_dashboard.planning.grid import bloc_key, build_grid, day_numbers, event_passes_filters, sort_weeks


ROW_CONFIG = GridConfig.for_layout(GridLayout.ROW_PER_EVENT)
CROSS_CONFIG = GridConfig.for_layout(GridLayout.CROSS_PRODUCT)


def _event(event_id, weeks=("w1",), blocs=("b_am",), days=("L",), sites=(), canals=()):
    return Event(
        id=event_id,
        name=f"Event {event_id}",
        week_ids=tuple(weeks),
        bloc_ids=tuple(blocs),
        active_days=frozenset(days),
        site_ids=tuple(sites),
        canal_ids=tuple(canals),
    )


WEEKS = [Week("w1", "Semaine 1", dt.date(2024, 1, 7)), Week("w2", "Semaine 2", dt.date(2024, 1, 14))]
BLOCS = [Bloc("b_am", "AM"), Bloc("b_soir", "soir "), Bloc("b_x", "Matinee")]


# ============================================================
# Helpers
# ============================================================

def test_day_numbers_cross_month_end():
    """Day numbers roll over the end of the month"""
    assert day_numbers(dt.date(2024, 1, 29)) == (29, 30, 31, 1, 2, 3, 4)


def test_day_numbers_without_start():
    assert day_numbers(None) == (None,) * 7


def test_bloc_key_is_case_insensitive_after_trim():
    assert bloc_key(" Soir ", ROW_CONFIG.bloc_order) == "soir"
    assert bloc_key("SOIR", CROSS_CONFIG.bloc_order) == "SOIR"
    assert bloc_key("Matinee", ROW_CONFIG.bloc_order) is None


def test_sort_weeks_undated_last_in_input_order():
    weeks = [Week("a", "A"), Week("b", "B", dt.date(2024, 3, 1)), Week("c", "C"), Week("d", "D", dt.date(2024, 1, 1))]
    assert [w.id for w in sort_weeks(weeks)] == ["d", "b", "a", "c"]


# ============================================================
# Row-per-event layout
# ============================================================

def test_row_layout_one_row_per_week_link():
    """An event linked to two weeks appears once in each"""
    grids = build_grid([_event("e1", weeks=("w1", "w2"))], WEEKS, BLOCS, config=ROW_CONFIG)

    assert [g.week.id for g in grids] == ["w1", "w2"]
    assert all(len(g.rows) == 1 for g in grids)
    assert grids[0].day_numbers == (7, 8, 9, 10, 11, 12, 13)


def test_row_layout_active_cells():
    grids = build_grid([_event("e1", blocs=("b_am", "b_soir"), days=("L", "Ma"))], WEEKS, BLOCS, config=ROW_CONFIG)
    row = grids[0].rows[0]

    assert row.is_active("am", "L")
    assert row.is_active("soir", "Ma")
    assert not row.is_active("pm", "L")
    assert not row.is_active("am", "D")


def test_counts_match_active_rows():
    events = [
        _event("e1", days=("L", "Ma")),
        _event("e2", days=("L",)),
        _event("e3", blocs=("b_soir",), days=("L",)),
    ]
    grid = build_grid(events, WEEKS, BLOCS, config=ROW_CONFIG)[0]

    for bloc in ROW_CONFIG.bloc_order:
        for day in ROW_CONFIG.day_codes:
            expected = sum(1 for row in grid.rows if row.is_active(bloc, day))
            assert grid.count(bloc, day) == expected

    assert grid.count("am", "L") == 2
    assert grid.count("soir", "L") == 1
    assert grid.display_count("pm", "L") == ""


def test_alert_threshold_is_strictly_greater():
    five = build_grid([_event(f"e{i}") for i in range(5)], WEEKS, BLOCS, config=ROW_CONFIG)[0]
    six = build_grid([_event(f"e{i}") for i in range(6)], WEEKS, BLOCS, config=ROW_CONFIG)[0]

    assert not five.is_over_threshold("am", "L")
    assert six.is_over_threshold("am", "L")


def test_events_without_week_or_bloc_are_dropped():
    events = [
        _event("no_week", weeks=()),
        _event("dangling_week", weeks=("w_missing",)),
        _event("no_bloc", blocs=()),
        _event("dangling_bloc", blocs=("b_missing",)),
    ]
    assert build_grid(events, WEEKS, BLOCS, config=ROW_CONFIG) == []


def test_unknown_bloc_never_creates_cells():
    grids = build_grid([_event("e1", blocs=("b_x",))], WEEKS, BLOCS, config=ROW_CONFIG)

    assert len(grids) == 1
    assert int(grids[0].counts.to_numpy().sum()) == 0


def test_site_and_canal_filters():
    events = [
        _event("e1", sites=("s1",), canals=("c1",)),
        _event("e2", sites=("s2",), canals=("c1",)),
        _event("e3"),
    ]
    grids = build_grid(events, WEEKS, BLOCS, GridFilters(site_id="s1"), config=ROW_CONFIG)
    assert [r.event_id for r in grids[0].rows] == ["e1"]

    grids = build_grid(events, WEEKS, BLOCS, GridFilters(canal_id="c1"), config=ROW_CONFIG)
    assert [r.event_id for r in grids[0].rows] == ["e1", "e2"]

    grids = build_grid(events, WEEKS, BLOCS, GridFilters(site_id="s2", canal_id="c1"), config=ROW_CONFIG)
    assert [r.event_id for r in grids[0].rows] == ["e2"]


@pytest.mark.parametrize("site, canal", [("s1", "c1"), ("s1", "c2"), ("s2", "c1"), ("s3", "c2")])
def test_site_and_canal_filters_commute(site, canal):
    events = [
        _event("e1", sites=("s1",), canals=("c1",)),
        _event("e2", sites=("s1", "s2"), canals=("c2",)),
        _event("e3", sites=("s2",), canals=("c1", "c2")),
        _event("e4", canals=("c1",)),
        _event("e5", sites=("s1",)),
        _event("e6"),
    ]

    def keep(items, filters):
        return [event for event in items if event_passes_filters(event, filters)]

    site_then_canal = keep(keep(events, GridFilters(site_id=site)), GridFilters(canal_id=canal))
    canal_then_site = keep(keep(events, GridFilters(canal_id=canal)), GridFilters(site_id=site))
    both = GridFilters(site_id=site, canal_id=canal)

    assert [e.id for e in site_then_canal] == [e.id for e in canal_then_site] == [e.id for e in keep(events, both)]
    grids = build_grid(events, WEEKS, BLOCS, both, config=ROW_CONFIG)
    assert [r.event_id for g in grids for r in g.rows] == [e.id for e in site_then_canal]


def test_all_sentinel_means_no_filter():
    filters = GridFilters(site_id="__all__", canal_id="", week_id=None)
    assert filters == GridFilters()


def test_week_filter_restricts_materialized_weeks():
    grids = build_grid([_event("e1", weeks=("w1", "w2"))], WEEKS, BLOCS, GridFilters(week_id="w2"), config=ROW_CONFIG)
    assert [g.week.id for g in grids] == ["w2"]


def test_weeks_sorted_by_start_date():
    weeks = [Week("late", "Tard", dt.date(2024, 6, 2)), Week("none", "Sans date"), Week("early", "Tot", dt.date(2024, 2, 4))]
    events = [_event("e1", weeks=("late", "none", "early"))]

    grids = build_grid(events, weeks, BLOCS, config=ROW_CONFIG)

    assert [g.week.id for g in grids] == ["early", "late", "none"]


def test_undated_weeks_keep_table_order():
    weeks = [Week("u1", "Sans date 1"), Week("u2", "Sans date 2")]
    events = [_event("e1", weeks=("u2",)), _event("e2", weeks=("u1",))]

    grids = build_grid(events, weeks, BLOCS, config=ROW_CONFIG)

    assert [g.week.id for g in grids] == ["u1", "u2"]


def _cell_marks(events, config):
    """``(week id, bloc key, day code) -> count`` over every materialized grid."""
    marks = {}
    for grid in build_grid(events, WEEKS, BLOCS, config=config):
        for bloc in config.bloc_order:
            for day in config.day_codes:
                marks[(grid.week.id, bloc, day)] = grid.count(bloc, day)
    return marks


def _cells(links, config):
    names = {bloc.id: bloc.name for bloc in BLOCS}
    return {
        (week, bloc_key(names[bloc], config.bloc_order), day)
        for week in links["weeks"]
        for bloc in links["blocs"]
        for day in links["days"]
    }


@pytest.mark.parametrize("config", [ROW_CONFIG, CROSS_CONFIG], ids=["row", "cross"])
@pytest.mark.parametrize("link", ["weeks", "blocs", "days"])
def test_removing_one_link_only_clears_its_cells(config, link):
    """Dropping one week, bloc or day link only changes the cells built on it"""
    codes = config.day_codes
    links = {"weeks": ("w1", "w2"), "blocs": ("b_am", "b_soir"), "days": (codes[1], codes[2])}
    reduced = dict(links, **{link: links[link][:1]})
    other = _event("e2", weeks=("w1", "w2"), blocs=("b_am", "b_soir"), days=(codes[1], codes[4]))

    before = _cell_marks([_event("e1", **links), other], config)
    after = _cell_marks([_event("e1", **reduced), other], config)

    cleared = _cells(links, config) - _cells(reduced, config)
    assert len(cleared) == 4
    for cell in set(before) | set(after):
        expected = before.get(cell, 0) - (1 if cell in cleared else 0)
        assert after.get(cell, 0) == expected, cell


# ============================================================
# Cross-product layout
# ============================================================

def test_cross_layout_stacks_events_per_bloc():
    events = [
        _event("e1", blocs=("b_am",), days=("L",)),
        _event("e2", blocs=("b_am", "b_soir"), days=("M2",)),
    ]
    grid = build_grid(events, WEEKS, BLOCS, config=CROSS_CONFIG)[0]

    assert grid.rows == ()
    assert list(grid.columns) == list(CROSS_CONFIG.bloc_order)
    assert grid.row_count == 2
    assert [e.event_id for e in grid.columns["AM"]] == ["e1", "e2"]
    assert grid.columns["SOIR"][0].event_id == "e2"
    assert grid.columns["SOIR"][1] is None
    assert grid.columns["PM"] == (None, None)
    assert grid.count("AM", "L") == 1
    assert grid.count("SOIR", "M2") == 1


def test_cross_layout_matrix_row_spans_blocs():
    grid = build_grid([_event("e1", blocs=("b_soir",))], WEEKS, BLOCS, config=CROSS_CONFIG)[0]
    row = grid.matrix_row(0)

    assert len(row) == len(CROSS_CONFIG.bloc_order)
    assert row[CROSS_CONFIG.bloc_order.index("SOIR")].event_id == "e1"


# ============================================================
# Pipeline
# ============================================================

def test_routing_view_from_base(routing_base):
    view = build_routing_view(routing_base, layout=GridLayout.ROW_PER_EVENT)

    assert view.configured
    assert [g.week.name for g in view.grids] == ["S1", "S2"]
    s2 = view.grids[1]
    assert [r.event_name for r in s2.rows] == ["Concert", "Festival"]
    assert s2.count("am", "L") == 2
    assert s2.count("am", "Ma") == 1
    assert s2.count("soir", "L") == 1
    assert view.sites == (("recS1", "Montreal"), ("recS2", "Quebec"))


def test_routing_view_site_filter(routing_base):
    view = build_routing_view(routing_base, filters=GridFilters(site_id="recS1"), layout=GridLayout.ROW_PER_EVENT)

    assert [g.week.name for g in view.grids] == ["S2"]
    assert [r.event_id for r in view.grids[0].rows] == ["recE1"]


def test_routing_view_cross_layout(routing_base):
    view = build_routing_view(routing_base, layout=GridLayout.CROSS_PRODUCT)
    s2 = view.grids[1]

    assert [e.event_id for e in s2.columns["AM"] if e] == ["recE1", "recE2"]
    # "Ma" is not a day code of the cross-product vocabulary
    assert s2.count("AM", "L") == 2
    assert int(s2.counts.loc["AM"].sum()) == 2


def test_cross_layout_ignores_site_and_canal_selection(routing_base):
    """A selection left over from the row layout has no control here, so it never filters"""
    unfiltered = build_routing_view(routing_base, layout=GridLayout.CROSS_PRODUCT)
    leftover = build_routing_view(
        routing_base,
        filters=GridFilters(site_id="recS1", canal_id="recC1"),
        layout=GridLayout.CROSS_PRODUCT,
    )

    assert [g.week.id for g in leftover.grids] == [g.week.id for g in unfiltered.grids]
    for a, b in zip(leftover.grids, unfiltered.grids):
        assert a.columns == b.columns
        assert a.counts.equals(b.counts)


def test_cross_layout_keeps_week_selection(routing_base):
    view = build_routing_view(
        routing_base,
        filters=GridFilters(site_id="recS1", week_id="recW2"),
        layout=GridLayout.CROSS_PRODUCT,
    )

    assert [g.week.id for g in view.grids] == ["recW2"]
    assert [e.event_id for e in view.grids[0].columns["AM"] if e] == ["recE1", "recE2"]


def test_routing_view_missing_configuration():
    from interface_dashboard.domain.records import HostBase, HostTable

    base = HostBase("appEmpty", (HostTable("tbl1", "Evenements"),))
    view = build_routing_view(base, layout=GridLayout.ROW_PER_EVENT)

    assert not view.configured
    assert view.grids == ()
    assert "weekLinkField" in view.missing


@pytest.mark.parametrize("layout", list(GridLayout))
def test_routing_view_is_deterministic(routing_base, layout):
    first = build_routing_view(routing_base, layout=layout)
    second = build_routing_view(routing_base, layout=layout)

    assert [g.week.id for g in first.grids] == [g.week.id for g in second.grids]
    for a, b in zip(first.grids, second.grids):
        assert a.counts.equals(b.counts)
