"""
Geocoding and map viewport tests
"""
from __future__ import annotations

import json
import logging

import pytest
import requests

from conftest import FakeResponse, FakeSession
from interface_dashboard.core.config import CONFIG
from interface_dashboard.geo.geocoding import GeocodingStatus, Location, MapboxGeocoder, normalize_address
from interface_dashboard.geo.viewport import (
    MapViewState,
    ViewportStore,
    clamp_zoom,
    fit_bounds,
    focus_view,
    initial_view,
    viewport_key,
)


MONTREAL = Location("rec1", "Olympia", "1004 Ste-Catherine, Montreal", 45.5, -73.57, "1004 ste-catherine, montreal")
QUEBEC = Location("rec2", "Capitole", "972 St-Jean, Quebec", 46.81, -71.21, "972 st-jean, quebec")


def _feature(lng, lat):
    return FakeResponse({"features": [{"center": [lng, lat], "place_name": "x"}]})


# ============================================================
# Geocoding
# ============================================================


def test_lookup_reads_center_as_lng_lat():
    session = FakeSession([_feature(-73.57, 45.5)])
    geocoder = MapboxGeocoder("pk.test", session=session)

    coords = geocoder.lookup("1004 Ste-Catherine, Montreal")

    assert coords.latitude == pytest.approx(45.5)
    assert coords.longitude == pytest.approx(-73.57)
    call = session.calls[0]
    assert call["params"] == {"access_token": "pk.test", "limit": 1}
    assert call["url"].endswith("/1004%20Ste-Catherine%2C%20Montreal.json")


def test_lookup_is_memoized_on_normalized_address():
    session = FakeSession([_feature(-73.57, 45.5)])
    geocoder = MapboxGeocoder("pk.test", session=session)

    geocoder.lookup("Olympia, Montreal")
    again = geocoder.lookup("  olympia, MONTREAL ")

    assert again.latitude == pytest.approx(45.5)
    assert len(session.calls) == 1
    assert geocoder.cache.hits == 1


def test_no_match_is_not_cached():
    session = FakeSession([FakeResponse({"features": []}), _feature(1.0, 2.0)])
    geocoder = MapboxGeocoder("pk.test", session=session)

    assert geocoder.lookup("nowhere") is None
    assert geocoder.lookup("nowhere") is not None
    assert len(session.calls) == 2


def test_request_error_is_logged_and_skipped(caplog):
    geocoder = MapboxGeocoder("pk.test", session=FakeSession([requests.ConnectionError("down")]))

    with caplog.at_level(logging.ERROR):
        assert geocoder.lookup("Olympia") is None

    assert "Geocoding error" in caplog.text


def test_http_error_is_skipped():
    geocoder = MapboxGeocoder("pk.test", session=FakeSession([FakeResponse({}, 401, "Unauthorized")]))
    assert geocoder.lookup("Olympia") is None


def test_missing_token_never_calls_the_api():
    session = FakeSession([])
    assert MapboxGeocoder("", session=session).lookup("Olympia") is None
    assert session.calls == []


def test_geocode_records_skips_empty_and_unmatched():
    session = FakeSession([_feature(-73.57, 45.5), FakeResponse({"features": []})])
    geocoder = MapboxGeocoder("pk.test", session=session)

    locations = geocoder.geocode_records(
        [
            ("rec1", "", "Olympia, Montreal"),
            ("rec2", "Sans adresse", ""),
            ("rec3", "Inconnu", "zzz"),
        ]
    )

    assert [loc.id for loc in locations] == ["rec1"]
    assert locations[0].name == "Olympia, Montreal"
    assert locations[0].geo_key == normalize_address("Olympia, Montreal")
    assert geocoder.status is GeocodingStatus.COMPLETED


# ============================================================
# Viewport store
# ============================================================


def test_viewport_key():
    assert viewport_key("appX", "tblVenues") == "mapView:appX:tblVenues"


def test_store_round_trip_keeps_other_keys(tmp_path):
    store = ViewportStore(tmp_path / "views.json")

    store.write("mapView:a:t1", MapViewState(-73.5, 45.5, 11.0))
    store.write("mapView:a:t2", MapViewState(2.35, 48.85, 6.0))

    assert store.read("mapView:a:t1") == MapViewState(-73.5, 45.5, 11.0)
    assert store.read("mapView:a:t2").zoom == 6.0
    assert store.read("mapView:a:unknown") is None


def test_store_ignores_corrupt_file(tmp_path):
    path = tmp_path / "views.json"
    path.write_text("{not json", encoding="utf-8")
    store = ViewportStore(path)

    assert store.read("mapView:a:t1") is None
    store.write("mapView:a:t1", MapViewState(1.0, 2.0, 3.0))
    assert json.loads(path.read_text(encoding="utf-8")) == {
        "mapView:a:t1": {"longitude": 1.0, "latitude": 2.0, "zoom": 3.0}
    }


@pytest.mark.parametrize(
    "data",
    [
        None,
        "text",
        {"longitude": 1.0, "latitude": 2.0},
        {"longitude": "1", "latitude": 2.0, "zoom": 3.0},
        {"longitude": float("nan"), "latitude": 2.0, "zoom": 3.0},
        {"longitude": True, "latitude": 2.0, "zoom": 3.0},
    ],
)
def test_from_dict_rejects_malformed_views(data):
    assert MapViewState.from_dict(data) is None


# ============================================================
# Camera
# ============================================================


def test_initial_view_single_location():
    view = initial_view([MONTREAL], None)
    assert view == MapViewState(-73.57, 45.5, CONFIG.map.single_location_zoom)


def test_initial_view_fits_several_locations():
    view = initial_view([MONTREAL, QUEBEC], None)

    assert view.latitude == pytest.approx((45.5 + 46.81) / 2)
    assert view.longitude == pytest.approx((-73.57 + -71.21) / 2)
    assert CONFIG.map.min_zoom <= view.zoom <= 16.0


def test_fit_bounds_on_identical_points():
    view = fit_bounds([MONTREAL, MONTREAL])
    assert view.zoom == CONFIG.map.multi_location_zoom


def test_initial_view_saved_then_default():
    saved = MapViewState(2.35, 48.85, 6.0)

    assert initial_view([MONTREAL], saved, auto_center=False) == saved
    assert initial_view([], saved) == saved
    assert initial_view([], None) == MapViewState.from_config()


def test_focus_view_zooms_on_pin():
    assert focus_view(QUEBEC) == MapViewState(-71.21, 46.81, 14.0)


def test_clamp_zoom():
    assert clamp_zoom(0.2) == CONFIG.map.min_zoom
    assert clamp_zoom(30) == CONFIG.map.max_zoom
    assert clamp_zoom(10) == 10.0
