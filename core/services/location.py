"""Initial location detection with status messaging.

Prefers device geolocation, falls back to an IP lookup through the ``/geo``
endpoint, then to a fixed default location.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Protocol

from ..client import ApiClientError
from ..entities import Coordinates


logger = logging.getLogger(__name__)

DEFAULT_LOCATION = Coordinates(lat=59.9139, lon=10.7522)
DEFAULT_LOCATION_NAME = "Oslo, Norway"


class LocationState(str, Enum):
    IDLE = "idle"
    LOCATING = "locating"
    USING_GEO = "using-geo"
    USING_IP = "using-ip"
    FALLBACK = "fallback"
    DENIED = "denied"
    ERROR = "error"


@dataclass(frozen=True)
class LocationStatus:
    state: LocationState
    message: str


@dataclass(frozen=True)
class ResolvedLocation:
    coordinates: Coordinates
    name: str
    state: LocationState
    weather: Any = None


class GeolocationError(RuntimeError):
    """Raised by device locators when permission is denied or no fix is available."""


class DeviceLocator(Protocol):
    def current_position(self, *, high_accuracy: bool, timeout: float, maximum_age: float) -> Coordinates:
        """Return the device position or raise :class:`GeolocationError`."""
        ...


class LocationClient(Protocol):
    def geo(self, lat: Optional[float] = None, lon: Optional[float] = None) -> dict:
        ...

    def reverse_geocode(self, lat: float, lon: float) -> Optional[str]:
        ...

    def weather(self, lat: float, lon: float, location_name: Optional[str] = None) -> Any:
        ...


class LocationResolver:
    """Resolve the starting location and fetch its weather.

    Status changes are reported through ``on_status``; after :meth:`cancel`
    a superseded run stops reporting.
    """

    def __init__(
        self,
        client: LocationClient,
        *,
        device_locator: Optional[DeviceLocator] = None,
        fetch_weather: Optional[Callable[[float, float, str], Any]] = None,
        on_status: Optional[Callable[[LocationStatus], None]] = None,
        geolocation_timeout: float = 10.0,
        maximum_age: float = 300.0,
    ) -> None:
        self.client = client
        self.device_locator = device_locator
        self.fetch_weather = fetch_weather or client.weather
        self.on_status = on_status
        self.geolocation_timeout = geolocation_timeout
        self.maximum_age = maximum_age
        self._status = LocationStatus(LocationState.IDLE, "")
        self._cancelled = threading.Event()

    @property
    def status(self) -> LocationStatus:
        return self._status

    @property
    def location_status(self) -> str:
        return self._status.message

    # Public API ---------------------------------------------------------
    def resolve(self, coordinates: Optional[Coordinates] = None) -> ResolvedLocation:
        self._cancelled.clear()
        self._set_status(LocationState.LOCATING, "Detecting location…")
        try:
            return self._detect(coordinates)
        except Exception as exc:  # noqa: BLE001 - the default location is the safety net
            logger.error("Location detection failed", exc_info=exc)
            self._set_status(LocationState.ERROR, "Could not detect location. Using default.")
            return self._fallback_to_default()

    def retry_initial_location(self) -> ResolvedLocation:
        self._status = LocationStatus(LocationState.IDLE, "")
        return self.resolve()

    def cancel(self) -> None:
        self._cancelled.set()

    # Stages -------------------------------------------------------------
    def _detect(self, coordinates: Optional[Coordinates]) -> ResolvedLocation:
        if coordinates is not None and not coordinates.is_sentinel:
            self._set_status(LocationState.USING_GEO, "Using provided location")
            return self._fetch_with_resolved_name(coordinates)

        if self.device_locator is None:
            return self._run_ip_location()

        self._set_status(LocationState.LOCATING, "Requesting device location…")
        position = self._request_device_position()
        if position is None or position.is_sentinel:
            self._set_status(
                LocationState.DENIED,
                "Location permission denied. Falling back to IP-based location.",
            )
            return self._run_ip_location()

        self._set_status(LocationState.USING_GEO, "Using device location")
        return self._fetch_with_resolved_name(position)

    def _request_device_position(self) -> Optional[Coordinates]:
        executor = ThreadPoolExecutor(max_workers=1)
        try:
            future = executor.submit(
                self.device_locator.current_position,
                high_accuracy=False,
                timeout=self.geolocation_timeout,
                maximum_age=self.maximum_age,
            )
            return future.result(timeout=self.geolocation_timeout)
        except FutureTimeout:
            logger.info("Device geolocation timed out after %.1fs", self.geolocation_timeout)
            return None
        except GeolocationError as exc:
            logger.info("Device geolocation unavailable: %s", exc)
            return None
        except Exception as exc:  # noqa: BLE001 - any locator failure counts as denial
            logger.warning("Device geolocation failed: %s", exc, exc_info=exc)
            return None
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def _run_ip_location(self) -> ResolvedLocation:
        self._set_status(LocationState.USING_IP, "Using IP-based location")
        try:
            data = self.client.geo()
            coordinates = Coordinates(lat=float(data["lat"]), lon=float(data["lon"]))
            if data.get("accuracy") == "default":
                return self._fetch_with_resolved_name(coordinates, DEFAULT_LOCATION_NAME)
            if not coordinates.is_sentinel:
                return self._fetch_with_resolved_name(coordinates)
        except (ApiClientError, KeyError, TypeError, ValueError) as exc:
            logger.warning("IP-based location failed: %s", exc)
        return self._fallback_to_default()

    def _fallback_to_default(self) -> ResolvedLocation:
        self._set_status(LocationState.FALLBACK, f"Using default location ({DEFAULT_LOCATION_NAME})")
        weather = None
        try:
            weather = self.fetch_weather(DEFAULT_LOCATION.lat, DEFAULT_LOCATION.lon, DEFAULT_LOCATION_NAME)
        except Exception as exc:  # noqa: BLE001 - the default location must always resolve
            logger.error("Weather for the default location failed", exc_info=exc)
        return ResolvedLocation(DEFAULT_LOCATION, DEFAULT_LOCATION_NAME, LocationState.FALLBACK, weather)

    # Helpers ------------------------------------------------------------
    def _fetch_with_resolved_name(self, coordinates: Coordinates, name: Optional[str] = None) -> ResolvedLocation:
        if name is None:
            name = self._resolve_location_name(coordinates)
        weather = self.fetch_weather(coordinates.lat, coordinates.lon, name)
        return ResolvedLocation(coordinates, name, self._status.state, weather)

    def _resolve_location_name(self, coordinates: Coordinates) -> str:
        try:
            name = self.client.reverse_geocode(coordinates.lat, coordinates.lon)
        except ApiClientError as exc:
            logger.info("Reverse geocoding unavailable, using coordinates: %s", exc)
            name = None
        return name or coordinates.label()

    def _set_status(self, state: LocationState, message: str) -> None:
        if self._cancelled.is_set():
            return
        self._status = LocationStatus(state, message)
        if self.on_status is not None:
            self.on_status(self._status)


__all__ = [
    "DEFAULT_LOCATION",
    "DEFAULT_LOCATION_NAME",
    "DeviceLocator",
    "GeolocationError",
    "LocationResolver",
    "LocationState",
    "LocationStatus",
    "ResolvedLocation",
]
