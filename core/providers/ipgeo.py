"""IP to approximate location lookups via ip-api.com."""
from __future__ import annotations

import logging
from typing import Optional

from .base import HttpProvider, ProviderError, RequestConfig, in_range, safe_number
from ..entities import Coordinates


class IpApiGeolocator(HttpProvider):
    """Resolve coordinates for a client IP.

    Every failure mode degrades to ``None`` instead of raising.
    """

    base_url = "http://ip-api.com/json/{ip}"

    def __init__(self, base_url: Optional[str] = None, timeout: float = 5.0, **kwargs) -> None:
        kwargs.setdefault("request_config", RequestConfig(timeout=timeout))
        super().__init__(**kwargs)
        self.base_url = base_url or self.base_url
        self._log = logging.getLogger(self.__class__.__name__)

    def get_location_from_ip(self, ip: str) -> Optional[Coordinates]:
        url = self.base_url.format(ip=ip)
        try:
            response = self._request("GET", url, params={"fields": "status,message,lat,lon"})
            data = self._json(response)
        except ProviderError as exc:
            self._log.warning("IP lookup failed for %s: %s", ip, exc)
            return None

        if not isinstance(data, dict):
            return None
        if data.get("status") == "fail" or data.get("message"):
            self._log.info("IP lookup rejected for %s: %s", ip, data.get("message"))
            return None

        lat = safe_number(_coalesce(data.get("lat"), data.get("latitude")))
        lon = safe_number(_coalesce(data.get("lon"), data.get("longitude")))
        if not in_range(lat, lon):
            self._log.info("IP lookup returned unusable coordinates for %s", ip)
            return None
        return Coordinates(lat=lat, lon=lon)


def _coalesce(value, alternative):
    return alternative if value is None else value


__all__ = ["IpApiGeolocator"]
