"""
Shows, performances, presets and KPI tiles
"""
from __future__ import annotations

import datetime as dt

import pytest

from interface_dashboard.analytics.performances import (
    PRESET_ALL,
    PRESET_YTD,
    active_preset,
    filter_performances,
    pad_tiles,
    performances_frame,
    preset_range,
    search_shows,
    show_kpis,
    sort_performances,
    sort_shows,
)
from interface_dashboard.analytics.sales import SeriesRequest
from interface_dashboard.domain.fields import FieldKind, FieldRef
from interface_dashboard.domain.models import KpiTile, Performance, Show
from interface_dashboard.domain.records import HostBase, HostRecord, HostTable
from interface_dashboard.pipeline import build_box_office, series_request, show_performances


TODAY = dt.date(2024, 5, 31)


def _perf(pid, name, date=None, status=""):
    return Performance(id=pid, show_id="recS1", name=name, date=date, status=status)


@pytest.fixture
def box_office_base():
    shows = HostTable(
        "tblShows",
        "Spectacles",
        fields=(
            FieldRef("fldTitre", "Titre", FieldKind.SINGLE_LINE_TEXT),
            FieldRef("fldAffiche", "Affiche", FieldKind.MULTIPLE_ATTACHMENTS),
            FieldRef("fldBillets", "Billets vendus", FieldKind.NUMBER),
        ),
        records=(
            HostRecord("recS1", "Zorro", {"fldBillets": 120, "fldAffiche": [{"url": "https://img/z.png"}]}),
            HostRecord("recS2", "Émile", {"fldBillets": 40}),
            HostRecord("recS3", "avril", {}),
            HostRecord("recS4", "", {}),
        ),
    )
    reps = HostTable(
        "tblReps",
        "Representations",
        fields=(
            FieldRef("fldNom", "Nom", FieldKind.SINGLE_LINE_TEXT),
            FieldRef("fldSpectacle", "Spectacle", FieldKind.MULTIPLE_RECORD_LINKS, "tblShows"),
            FieldRef("fldCapacite", "Capacite", FieldKind.NUMBER),
            FieldRef("fldDate", "Date", FieldKind.DATE),
            FieldRef("fldStatut", "Statut", FieldKind.SINGLE_SELECT),
        ),
        records=(
            HostRecord(
                "recR2",
                "Quebec",
                {"fldNom": "Quebec", "fldSpectacle": [{"id": "recS1", "name": "Zorro"}], "fldCapacite": 800, "fldDate": "2024-06-10"},
            ),
            HostRecord(
                "recR1",
                "Montreal",
                {"fldNom": "Montreal", "fldSpectacle": [{"id": "recS1", "name": "Zorro"}], "fldCapacite": 500, "fldDate": "2024-06-01"},
            ),
            HostRecord("recR3", "Gatineau", {"fldNom": "Gatineau", "fldSpectacle": [{"id": "recS2", "name": "Émile"}]}),
        ),
    )
    return HostBase("appSales", (shows, reps))


# ============================================================
# Gallery
# ============================================================


def test_sort_shows_ignores_case_and_accents():
    shows = [Show("1", "Zorro"), Show("2", "Émile"), Show("3", "avril")]
    assert [s.name for s in sort_shows(shows)] == ["avril", "Émile", "Zorro"]


def test_search_shows():
    shows = [Show("1", "Zorro"), Show("2", "Le Zoo")]
    assert [s.id for s in search_shows(shows, "zo")] == ["1", "2"]
    assert [s.id for s in search_shows(shows, "ZOO")] == ["2"]
    assert search_shows(shows, "") == shows


def test_build_box_office(box_office_base):
    view = build_box_office(box_office_base)

    assert view.configured
    assert [s.name for s in view.shows] == ["avril", "Émile", "Zorro"]
    assert view.shows[2].image_url == "https://img/z.png"


def test_build_box_office_missing_tables():
    view = build_box_office(HostBase("appEmpty"))

    assert not view.configured
    assert "spectaclesTable" in view.missing


# ============================================================
# Performances
# ============================================================


def test_filter_hides_past_and_cancelled():
    performances = [
        _perf("a", "Passee", dt.date(2024, 5, 1)),
        _perf("b", "Aujourd'hui", TODAY),
        _perf("c", "Annulee", dt.date(2024, 7, 1), status="Annulé"),
        _perf("d", "Cancelled", dt.date(2024, 7, 2), status="cancelled"),
        _perf("e", "Sans date"),
    ]

    kept = filter_performances(performances, today=TODAY)

    assert [p.id for p in kept] == ["b", "e"]


def test_filter_show_all_keeps_everything():
    performances = [_perf("a", "Passee", dt.date(2020, 1, 1)), _perf("b", "X", status="Annulé")]
    assert filter_performances(performances, show_all=True, today=TODAY) == performances


def test_sort_performances_dated_first():
    performances = [
        _perf("u2", "zeta"),
        _perf("d2", "b", dt.date(2024, 7, 1)),
        _perf("u1", "Alpha"),
        _perf("d1", "a", dt.date(2024, 6, 1)),
    ]
    assert [p.id for p in sort_performances(performances)] == ["d1", "d2", "u1", "u2"]


def test_show_performances_from_pipeline(box_office_base):
    slots = build_box_office(box_office_base).slots

    performances = show_performances(slots, "recS1")

    assert [p.id for p in performances] == ["recR1", "recR2"]
    assert performances[0].capacity == 500
    assert performances[0].date == dt.date(2024, 6, 1)
    assert performances[0].columns["Date"] == "2024-06-01"
    assert show_performances(slots, "recUnknown") == []


def test_performances_frame():
    frame = performances_frame([Performance("r1", "s", "Montreal", columns={"Salle": "Olympia"})])

    assert list(frame.columns) == ["id", "Representation", "Salle"]
    assert frame.iloc[0]["Salle"] == "Olympia"


def test_series_request_single_or_show_total():
    performances = [_perf("b", "B"), _perf("a", "A")]

    assert series_request(performances, "a") == SeriesRequest.single("a")

    total = series_request(performances, None)
    assert total.aggregate
    assert set(total.record_ids) == {"a", "b"}


# ============================================================
# KPIs
# ============================================================


def test_show_kpis(box_office_base):
    shows = box_office_base.table_by_id("tblShows")
    billets = shows.field_by_id("fldBillets")

    tiles = show_kpis(shows.record_by_id("recS1"), [billets, None])

    assert [(t.label, t.value) for t in tiles] == [("Billets vendus", "120")]
    assert show_kpis(None, [billets]) == []


# ============================================================
# Presets
# ============================================================


@pytest.mark.parametrize(
    "preset, expected",
    [
        (3, ("2024-02-29", None)),
        (6, ("2023-11-30", None)),
        (12, ("2023-05-31", None)),
        (PRESET_YTD, ("2024-01-01", None)),
        (PRESET_ALL, (None, None)),
    ],
)
def test_preset_range(preset, expected):
    assert preset_range(preset, TODAY) == expected


def test_active_preset():
    assert active_preset(None, None, TODAY) == PRESET_ALL
    assert active_preset("2024-02-29", None, TODAY) == 3
    assert active_preset("2024-01-01", None, TODAY) == PRESET_YTD
    assert active_preset("2024-02-29", "2024-03-31", TODAY) is None
    assert active_preset("2024-02-15", None, TODAY) is None


def test_pad_tiles_fills_up_to_six():
    tiles = pad_tiles([KpiTile("Billets vendus", "120")])

    assert len(tiles) == 6
    assert tiles[0].value == "120"
    assert all(t == KpiTile("", "") for t in tiles[1:])
    assert len(pad_tiles([KpiTile(str(i), "1") for i in range(7)])) == 7
