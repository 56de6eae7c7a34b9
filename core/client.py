"""Thin client for the service's own JSON endpoints."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests


logger = logging.getLogger(__name__)


class ApiClientError(RuntimeError):
    """Raised for error envelopes and transport failures."""

    def __init__(self, code: str, message: str, status: Optional[int] = None) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message
        self.status = status


class WeatherApiClient:
    def __init__(
        self,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = 15.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    # Public API ---------------------------------------------------------
    def search_cities(self, query: str) -> List[Dict[str, Any]]:
        return self._call("GET", "/cities", params={"query": query})

    def geo(self, lat: Optional[float] = None, lon: Optional[float] = None) -> Dict[str, Any]:
        params = {}
        if lat is not None and lon is not None:
            params = {"lat": lat, "lon": lon}
        return self._call("GET", "/geo", params=params)

    def reverse_geocode(self, lat: float, lon: float) -> Optional[str]:
        data = self._call("GET", "/reverse-geocode", params={"lat": lat, "lon": lon})
        return (data or {}).get("locationName")

    def weather(self, lat: float, lon: float, location_name: Optional[str] = None) -> Dict[str, Any]:
        params: Dict[str, Any] = {"lat": lat, "lon": lon}
        if location_name:
            params["locationName"] = location_name
        return self._call("GET", "/weather", params=params)

    def outfit(self, weather: Dict[str, Any]) -> Dict[str, Any]:
        return self._call("POST", "/outfit", json={"weather": weather})

    # Helpers ------------------------------------------------------------
    def _call(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning("Request to %s failed: %s", url, exc)
            raise ApiClientError("PROVIDER_ERROR", "request failed") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise ApiClientError("PROVIDER_ERROR", "invalid json", response.status_code) from exc

        if not response.ok or not isinstance(body, dict) or "data" not in body:
            error = body.get("error") if isinstance(body, dict) else None
            error = error if isinstance(error, dict) else {}
            raise ApiClientError(
                error.get("code", "PROVIDER_ERROR"),
                error.get("message", f"HTTP {response.status_code}"),
                response.status_code,
            )
        return body["data"]


__all__ = ["ApiClientError", "WeatherApiClient"]
