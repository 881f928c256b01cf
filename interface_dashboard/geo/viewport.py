"""
Map viewport

Initial camera selection and the persisted "last viewed position" store.
The store is a small JSON file mapping ``mapView:<base>:<table>`` keys to
``{"longitude", "latitude", "zoom"}``; unreadable files and malformed
entries are ignored and the configured default is used instead.
"""

from __future__ import annotations

import json
import logging
import math
import os
import tempfile
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, Union

import numpy as np

from ..core.config import CONFIG, MapConfig
from .geocoding import Location

logger = logging.getLogger(__name__)

# Map size assumed when fitting bounds (pixels)
FIT_WIDTH_PX = 1000
FIT_HEIGHT_PX = 600
FIT_MAX_ZOOM = 16.0
TILE_SIZE_PX = 512


@dataclass(frozen=True)
class MapViewState:
    longitude: float
    latitude: float
    zoom: float

    @classmethod
    def from_config(cls, config: MapConfig = CONFIG.map) -> "MapViewState":
        return cls(config.default_longitude, config.default_latitude, config.default_zoom)

    @classmethod
    def from_dict(cls, data: Any) -> Optional["MapViewState"]:
        """Parse a stored view; all three values must be real numbers."""
        if not isinstance(data, Mapping):
            return None
        values = []
        for key in ("longitude", "latitude", "zoom"):
            value = data.get(key)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                return None
            values.append(float(value))
        return cls(*values)

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def viewport_key(base_id: str, table_id: str) -> str:
    return f"mapView:{base_id}:{table_id}"


def clamp_zoom(zoom: float, config: MapConfig = CONFIG.map) -> float:
    return float(min(max(zoom, config.min_zoom), config.max_zoom))


class ViewportStore:
    """JSON-file key/value store for map viewports."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def _read_all(self) -> Dict[str, Any]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as exc:
            logger.warning(f"Ignoring unreadable viewport store {self.path}: {exc}")
            return {}
        return data if isinstance(data, dict) else {}

    def read(self, key: str) -> Optional[MapViewState]:
        return MapViewState.from_dict(self._read_all().get(key))

    def write(self, key: str, view: MapViewState) -> None:
        data = self._read_all()
        data[key] = view.to_dict()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle)
            os.replace(tmp, self.path)
        except OSError as exc:
            logger.warning(f"Could not persist viewport {key}: {exc}")


# ============================================================
# Camera selection
# ============================================================


def _mercator_y(latitude: float) -> float:
    lat = np.radians(np.clip(latitude, -85.0511, 85.0511))
    return float(np.log(np.tan(np.pi / 4 + lat / 2)))


def fit_bounds(locations: Sequence[Location], config: MapConfig = CONFIG.map) -> MapViewState:
    """Center of the bounding box, zoomed so that the box fits the map."""
    lats = [loc.latitude for loc in locations]
    lngs = [loc.longitude for loc in locations]
    min_lat, max_lat = min(lats), max(lats)
    min_lng, max_lng = min(lngs), max(lngs)

    center_lat = (min_lat + max_lat) / 2
    center_lng = (min_lng + max_lng) / 2

    span_x = max_lng - min_lng
    span_y = abs(_mercator_y(max_lat) - _mercator_y(min_lat))
    if span_x <= 0 and span_y <= 0:
        return MapViewState(center_lng, center_lat, config.multi_location_zoom)

    candidates = []
    if span_x > 0:
        candidates.append(np.log2(FIT_WIDTH_PX / TILE_SIZE_PX * 360.0 / span_x))
    if span_y > 0:
        candidates.append(np.log2(FIT_HEIGHT_PX / TILE_SIZE_PX * 2 * np.pi / span_y))
    zoom = float(min(candidates))
    zoom = min(max(zoom, config.min_zoom), FIT_MAX_ZOOM)
    return MapViewState(center_lng, center_lat, zoom)


def initial_view(
    locations: Sequence[Location],
    saved: Optional[MapViewState],
    *,
    auto_center: bool = True,
    config: MapConfig = CONFIG.map,
) -> MapViewState:
    """
    Camera when the map opens.

    - auto-centering with one location: that location at ``single_location_zoom``
    - auto-centering with several: their bounding box
    - otherwise the saved view, else the configured default
    """
    if auto_center and locations:
        if len(locations) == 1:
            only = locations[0]
            return MapViewState(only.longitude, only.latitude, config.single_location_zoom)
        return fit_bounds(locations, config)
    if saved is not None:
        return saved
    return MapViewState.from_config(config)


def focus_view(location: Location, config: MapConfig = CONFIG.map) -> MapViewState:
    """Camera after clicking a pin."""
    return MapViewState(location.longitude, location.latitude, clamp_zoom(config.focus_zoom, config))


__all__ = [
    "MapViewState",
    "ViewportStore",
    "clamp_zoom",
    "fit_bounds",
    "focus_view",
    "initial_view",
    "viewport_key",
]
