from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from .base import HttpProvider, ProviderError, RateLimited, in_range, safe_number
from ..entities import City


PLACE_KEYS = ("city", "town", "village", "municipality")
REGION_KEYS = ("state", "region")


class OpenMeteoGeocodingProvider(HttpProvider):
    """City-name search backed by the Open-Meteo geocoding API."""

    base_url = "https://geocoding-api.open-meteo.com/v1/search"

    def __init__(self, base_url: Optional[str] = None, result_count: int = 10, **kwargs) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url or self.base_url
        self.result_count = result_count
        self._log = logging.getLogger(self.__class__.__name__)

    def search_cities(self, query: str) -> List[City]:
        """Return cities matching ``query``.

        The caller enforces the minimum query length. A body without a
        ``results`` list means zero matches, not a failure.
        """
        params = {
            "name": query,
            "count": self.result_count,
            "language": "en",
            "format": "json",
        }
        response = self._request("GET", self.base_url, params=params)
        data = self._json(response)
        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            return []

        cities: List[City] = []
        for result in results:
            city = self._to_city(result)
            if city is not None:
                cities.append(city)
        return cities

    def _to_city(self, result: Any) -> Optional[City]:
        if not isinstance(result, dict):
            return None
        lat = safe_number(result.get("latitude"))
        lon = safe_number(result.get("longitude"))
        if not in_range(lat, lon):
            self._log.debug("Skipping result without usable coordinates: %s", result.get("name"))
            return None
        return City.from_coordinates(
            name=result.get("name") or "",
            country=result.get("country") or result.get("country_code") or "",
            lat=lat,
            lon=lon,
            admin1=result.get("admin1"),
            admin2=result.get("admin2"),
        )


class NominatimReverseGeocoder(HttpProvider):
    """Best-effort coordinate to place-name lookup using Nominatim."""

    base_url = "https://nominatim.openstreetmap.org/reverse"

    def __init__(
        self,
        base_url: Optional[str] = None,
        user_agent: str = "weather-lookup/1.0",
        language: str = "en",
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url or self.base_url
        self.user_agent = user_agent
        self.language = language
        self._log = logging.getLogger(self.__class__.__name__)

    def reverse_geocode(self, latitude: float, longitude: float) -> Optional[str]:
        params = {
            "lat": latitude,
            "lon": longitude,
            "format": "jsonv2",
            "addressdetails": 1,
            "zoom": 10,
        }
        headers = {"User-Agent": self.user_agent, "Accept-Language": self.language}
        try:
            response = self._request("GET", self.base_url, params=params, headers=headers)
            data = self._json(response)
        except RateLimited:
            raise
        except ProviderError as exc:
            self._log.warning("Reverse geocoding failed for %.4f,%.4f: %s", latitude, longitude, exc)
            return None
        if not isinstance(data, dict):
            return None
        return build_place_label(data.get("address"), data.get("display_name"))


def build_place_label(address: Any, display_name: Any = None) -> Optional[str]:
    """Build ``"Place, Region, Country"`` from structured address data.

    Falls back to the first and last segments of the free-text display name.
    """
    if isinstance(address, dict):
        parts = [
            _first_present(address, PLACE_KEYS),
            _first_present(address, REGION_KEYS),
            address.get("country"),
        ]
        label = ", ".join(part for part in parts if part)
        if label:
            return label

    if isinstance(display_name, str) and display_name.strip():
        segments = [segment.strip() for segment in display_name.split(",") if segment.strip()]
        if len(segments) > 1:
            return f"{segments[0]}, {segments[-1]}"
        if segments:
            return segments[0]
    return None


def _first_present(address: Dict[str, Any], keys) -> Optional[str]:
    for key in keys:
        value = address.get(key)
        if value:
            return value
    return None


__all__ = ["OpenMeteoGeocodingProvider", "NominatimReverseGeocoder", "build_place_label"]
