"""Venue geocoding and map viewport."""

from __future__ import annotations

from .geocoding import Coordinates, GeocodingStatus, Location, MapboxGeocoder, normalize_address
from .viewport import MapViewState, ViewportStore, focus_view, initial_view, viewport_key

__all__ = [
    "Coordinates",
    "GeocodingStatus",
    "Location",
    "MapboxGeocoder",
    "normalize_address",
    "MapViewState",
    "ViewportStore",
    "focus_view",
    "initial_view",
    "viewport_key",
]
