from __future__ import annotations

import threading
from typing import List, Optional

import pytest

from core.client import ApiClientError
from core.entities import Coordinates
from core.services.location import (
    DEFAULT_LOCATION,
    DEFAULT_LOCATION_NAME,
    GeolocationError,
    LocationResolver,
    LocationState,
    LocationStatus,
)


class ClientStub:
    def __init__(self, geo=None, geo_error: Optional[Exception] = None, names=None) -> None:
        self._geo = geo or {"lat": 59.9139, "lon": 10.7522, "accuracy": "default"}
        self._geo_error = geo_error
        self._names = names or {}
        self.reverse_calls: List[tuple] = []
        self.weather_calls: List[tuple] = []

    def geo(self, lat=None, lon=None):
        if self._geo_error is not None:
            raise self._geo_error
        return self._geo

    def reverse_geocode(self, lat, lon):
        self.reverse_calls.append((lat, lon))
        name = self._names.get((lat, lon))
        if isinstance(name, Exception):
            raise name
        return name

    def weather(self, lat, lon, location_name=None):
        self.weather_calls.append((lat, lon, location_name))
        return {"locationName": location_name, "temperatureC": 1.0, "weatherCode": 0}


class LocatorStub:
    def __init__(self, position: Optional[Coordinates] = None, error: Optional[Exception] = None, delay: float = 0):
        self.position = position
        self.error = error
        self.delay = delay
        self.options = None

    def current_position(self, *, high_accuracy, timeout, maximum_age):
        self.options = {"high_accuracy": high_accuracy, "timeout": timeout, "maximum_age": maximum_age}
        if self.delay:
            threading.Event().wait(self.delay)
        if self.error is not None:
            raise self.error
        return self.position


def make_resolver(client, locator=None, **kwargs):
    statuses: List[LocationStatus] = []
    resolver = LocationResolver(client, device_locator=locator, on_status=statuses.append, **kwargs)
    return resolver, statuses


def states(statuses: List[LocationStatus]) -> List[LocationState]:
    return [status.state for status in statuses]


def test_device_location_is_reverse_geocoded():
    client = ClientStub(names={(48.85, 2.35): "Paris, Île-de-France, France"})
    locator = LocatorStub(Coordinates(48.85, 2.35))
    resolver, statuses = make_resolver(client, locator)

    resolved = resolver.resolve()

    assert resolved.state is LocationState.USING_GEO
    assert resolved.name == "Paris, Île-de-France, France"
    assert client.weather_calls == [(48.85, 2.35, "Paris, Île-de-France, France")]
    assert resolved.weather["locationName"] == "Paris, Île-de-France, France"
    assert states(statuses) == [LocationState.LOCATING, LocationState.LOCATING, LocationState.USING_GEO]
    assert resolver.location_status == "Using device location"
    assert locator.options == {"high_accuracy": False, "timeout": 10.0, "maximum_age": 300.0}


def test_missing_name_falls_back_to_coordinates_label():
    client = ClientStub(names={(48.8566, 2.3522): ApiClientError("RATE_LIMITED", "slow down", 429)})
    resolver, _ = make_resolver(client, LocatorStub(Coordinates(48.8566, 2.3522)))

    resolved = resolver.resolve()

    assert resolved.name == "48.86, 2.35"


def test_denied_geolocation_uses_ip_location():
    client = ClientStub(geo={"lat": 52.52, "lon": 13.4, "accuracy": "approx"}, names={(52.52, 13.4): "Berlin, Germany"})
    resolver, statuses = make_resolver(client, LocatorStub(error=GeolocationError("denied")))

    resolved = resolver.resolve()

    assert states(statuses)[-2:] == [LocationState.DENIED, LocationState.USING_IP]
    assert resolved.state is LocationState.USING_IP
    assert resolved.name == "Berlin, Germany"
    assert resolved.coordinates == Coordinates(52.52, 13.4)


def test_sentinel_device_fix_is_treated_as_denied():
    client = ClientStub()
    resolver, statuses = make_resolver(client, LocatorStub(Coordinates(0, 0)))

    resolver.resolve()

    assert LocationState.DENIED in states(statuses)
    assert LocationState.USING_GEO not in states(statuses)


def test_slow_device_locator_times_out():
    client = ClientStub()
    resolver, statuses = make_resolver(client, LocatorStub(Coordinates(1, 1), delay=1.0), geolocation_timeout=0.05)

    resolved = resolver.resolve()

    assert LocationState.DENIED in states(statuses)
    assert resolved.name == DEFAULT_LOCATION_NAME


def test_default_ip_accuracy_skips_reverse_geocoding():
    client = ClientStub()
    resolver, _ = make_resolver(client)

    resolved = resolver.resolve()

    assert resolved.name == DEFAULT_LOCATION_NAME
    assert resolved.coordinates == DEFAULT_LOCATION
    assert client.reverse_calls == []
    assert client.weather_calls == [(59.9139, 10.7522, "Oslo, Norway")]


def test_sentinel_ip_location_uses_default():
    client = ClientStub(geo={"lat": 0, "lon": 0, "accuracy": "approx"})
    resolver, statuses = make_resolver(client)

    resolved = resolver.resolve()

    assert resolved.state is LocationState.FALLBACK
    assert resolver.location_status == "Using default location (Oslo, Norway)"
    assert client.reverse_calls == []


def test_failed_geo_call_uses_default():
    client = ClientStub(geo_error=ApiClientError("PROVIDER_ERROR", "down", 502))
    resolver, statuses = make_resolver(client)

    resolved = resolver.resolve()

    assert states(statuses)[-2:] == [LocationState.USING_IP, LocationState.FALLBACK]
    assert resolved.coordinates == DEFAULT_LOCATION


def test_locator_failure_falls_through_to_ip_location():
    client = ClientStub(geo={"lat": 48.85, "lon": 2.35, "accuracy": "approx"}, names={(48.85, 2.35): "Paris, France"})
    resolver, statuses = make_resolver(client, LocatorStub(error=OSError("location service unavailable")))

    resolved = resolver.resolve()

    assert states(statuses) == [
        LocationState.LOCATING,
        LocationState.LOCATING,
        LocationState.DENIED,
        LocationState.USING_IP,
    ]
    assert resolved.name == "Paris, France"


def test_unexpected_error_reports_error_then_default():
    client = ClientStub(geo_error=RuntimeError("corrupted response"))
    resolver, statuses = make_resolver(client)

    resolved = resolver.resolve()

    assert states(statuses)[-2:] == [LocationState.ERROR, LocationState.FALLBACK]
    assert resolved.name == DEFAULT_LOCATION_NAME
    assert resolved.weather is not None


def test_default_location_survives_weather_failure():
    client = ClientStub(geo_error=ApiClientError("PROVIDER_ERROR", "down"))

    def failing_weather(lat, lon, name):
        raise ApiClientError("PROVIDER_ERROR", "weather down", 502)

    resolver = LocationResolver(client, fetch_weather=failing_weather)

    resolved = resolver.resolve()

    assert resolved.coordinates == DEFAULT_LOCATION
    assert resolved.weather is None


def test_explicit_coordinates_skip_detection():
    client = ClientStub(names={(40.7, -74.0): "New York, United States"})
    locator = LocatorStub(Coordinates(1, 1))
    resolver, _ = make_resolver(client, locator)

    resolved = resolver.resolve(Coordinates(40.7, -74.0))

    assert resolved.name == "New York, United States"
    assert locator.options is None


def test_explicit_sentinel_is_ignored():
    client = ClientStub()
    resolver, _ = make_resolver(client)

    resolved = resolver.resolve(Coordinates(0, 0))

    assert resolved.coordinates == DEFAULT_LOCATION


def test_retry_restarts_from_locating():
    client = ClientStub()
    resolver, statuses = make_resolver(client, LocatorStub(error=GeolocationError("denied")))
    resolver.resolve()
    statuses.clear()

    resolver.retry_initial_location()

    assert states(statuses)[0] is LocationState.LOCATING
    assert len(client.weather_calls) == 2


def test_cancel_silences_status_updates():
    client = ClientStub()
    statuses: List[LocationStatus] = []
    resolver = LocationResolver(client, on_status=statuses.append)

    def weather_then_cancel(lat, lon, name):
        resolver.cancel()
        raise RuntimeError("navigated away")

    resolver.fetch_weather = weather_then_cancel
    resolver.resolve()

    assert LocationState.ERROR not in states(statuses)
    assert states(statuses)[-1] is LocationState.USING_IP


@pytest.mark.parametrize("geo", [{"lat": "x", "lon": 1}, {"lon": 1}])
def test_malformed_geo_payload_uses_default(geo):
    client = ClientStub(geo=geo)
    resolver, _ = make_resolver(client)

    assert resolver.resolve().coordinates == DEFAULT_LOCATION
