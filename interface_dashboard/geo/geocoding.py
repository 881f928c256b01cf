"""
Address geocoding

Mapbox forward geocoding, one best match per address. Results are memoized
for the session under the lower-cased, trimmed address; addresses without a
match are left out of the map.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple
from urllib.parse import quote

import requests

from ..common.cache import MemoryCache
from ..common.performance import measure_time
from ..core.config import CONFIG, MAPBOX_GEOCODING_URL, MapConfig

logger = logging.getLogger(__name__)


class GeocodingStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Location:
    """A venue placed on the map."""

    id: str
    name: str
    address: str
    latitude: float
    longitude: float
    geo_key: str


def normalize_address(address: str) -> str:
    return (address or "").lower().strip()


class MapboxGeocoder:
    def __init__(
        self,
        token: str,
        *,
        config: MapConfig = CONFIG.map,
        session: Optional[requests.Session] = None,
        cache: Optional[MemoryCache[str, Coordinates]] = None,
    ) -> None:
        self.token = token
        self.config = config
        self.session = session or requests.Session()
        self.cache: MemoryCache[str, Coordinates] = cache if cache is not None else MemoryCache("geocoding")
        self.status = GeocodingStatus.IDLE

    def url_for(self, address: str) -> str:
        return f"{MAPBOX_GEOCODING_URL}/{quote(address, safe='')}.json"

    def lookup(self, address: str) -> Optional[Coordinates]:
        """
        Coordinates of the best match, ``None`` when there is none.

        Failures are logged and treated as "no match"; they are not cached,
        so the next refresh tries again.
        """
        if not self.token or not address:
            return None

        key = normalize_address(address)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        try:
            response = self.session.get(
                self.url_for(address),
                params={"access_token": self.token, "limit": 1},
                timeout=self.config.geocoding_timeout_s,
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error(f"Geocoding error for {address!r}: {exc}")
            return None

        features = payload.get("features") or []
        if not features:
            logger.debug(f"No geocoding result for {address!r}")
            return None

        longitude, latitude = features[0]["center"][:2]
        coords = Coordinates(latitude=float(latitude), longitude=float(longitude))
        self.cache.put(key, coords)
        return coords

    @measure_time
    def geocode_records(self, records: Iterable[Tuple[str, str, str]]) -> List[Location]:
        """
        Place ``(record_id, label, address)`` triples.

        Records without an address or without a match are skipped. The label
        falls back to the address.
        """
        self.status = GeocodingStatus.RUNNING
        locations: List[Location] = []
        for record_id, label, address in records:
            if not address:
                continue
            coords = self.lookup(address)
            if coords is None:
                continue
            locations.append(
                Location(
                    id=record_id,
                    name=label or address,
                    address=address,
                    latitude=coords.latitude,
                    longitude=coords.longitude,
                    geo_key=normalize_address(address),
                )
            )
        self.status = GeocodingStatus.COMPLETED
        logger.info(f"Geocoded {len(locations)} locations ({self.cache.hits} cache hits)")
        return locations


__all__ = [
    "Coordinates",
    "GeocodingStatus",
    "Location",
    "MapboxGeocoder",
    "normalize_address",
]
