"""REST API views for city search, location and weather information."""
from __future__ import annotations

import logging
from dataclasses import replace
from functools import lru_cache
from typing import Optional

from django.conf import settings
from rest_framework.permissions import AllowAny
from rest_framework.views import APIView

from backend.api import envelope
from backend.api.envelope import ApiErrorCode
from backend.api.serializers import (
    CitySearchSerializer,
    CoordinatesSerializer,
    OptionalCoordinatesSerializer,
    OutfitRequestSerializer,
    WeatherQuerySerializer,
)
from core.entities import Coordinates, cities_to_list
from core.outfit import build_outfit_prompt, recommend_outfit, weather_from_payload
from core.providers.base import ProviderError, RequestConfig
from core.providers.geocoding import NominatimReverseGeocoder, OpenMeteoGeocodingProvider
from core.providers.ipgeo import IpApiGeolocator
from core.providers.openmeteo import OpenMeteoForecastProvider
from core.providers.openrouter import OpenRouterAdvisor
from core.services.location import DEFAULT_LOCATION


logger = logging.getLogger(__name__)

WEATHER_CACHE = {"public": True, "s_maxage": 600, "stale_while_revalidate": 300}
PLACE_NAME_CACHE = {"public": True, "s_maxage": 3600, "stale_while_revalidate": 300}
DEFAULT_LOCATION_CACHE = {"public": True, "s_maxage": 3600}
APPROX_LOCATION_CACHE = {"public": True, "s_maxage": 300, "stale_while_revalidate": 60}


@lru_cache(maxsize=1)
def get_geocoder() -> OpenMeteoGeocodingProvider:
    return OpenMeteoGeocodingProvider(
        base_url=settings.GEOCODING_URL,
        result_count=settings.GEOCODING_RESULT_COUNT,
        request_config=RequestConfig(timeout=settings.PROVIDER_TIMEOUT),
    )


@lru_cache(maxsize=1)
def get_reverse_geocoder() -> NominatimReverseGeocoder:
    return NominatimReverseGeocoder(
        base_url=settings.REVERSE_GEOCODING_URL,
        user_agent=settings.REVERSE_GEOCODING_USER_AGENT,
        request_config=RequestConfig(timeout=settings.PROVIDER_TIMEOUT),
    )


@lru_cache(maxsize=1)
def get_forecast_provider() -> OpenMeteoForecastProvider:
    return OpenMeteoForecastProvider(
        base_url=settings.FORECAST_URL,
        request_config=RequestConfig(timeout=settings.PROVIDER_TIMEOUT),
    )


@lru_cache(maxsize=1)
def get_ip_geolocator() -> IpApiGeolocator:
    return IpApiGeolocator(base_url=settings.IP_GEOLOCATION_URL, timeout=settings.IP_GEOLOCATION_TIMEOUT)


@lru_cache(maxsize=1)
def get_outfit_advisor() -> OpenRouterAdvisor:
    return OpenRouterAdvisor(
        api_key=settings.OPENROUTER_API_KEY,
        model=settings.OPENROUTER_MODEL,
        base_url=settings.OPENROUTER_URL,
        app_name=settings.OPENROUTER_APP_NAME,
        app_url=settings.OPENROUTER_APP_URL,
        timeout=settings.OPENROUTER_TIMEOUT,
    )


def reset_providers() -> None:
    """Drop cached provider instances so changed settings take effect."""
    for factory in (get_geocoder, get_reverse_geocoder, get_forecast_provider, get_ip_geolocator, get_outfit_advisor):
        factory.cache_clear()


def get_client_ip(request) -> Optional[str]:
    forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip() or None
    real_ip = request.META.get("HTTP_X_REAL_IP")
    if real_ip:
        return real_ip.strip() or None
    return None


class CitySearchView(APIView):
    """Autocomplete city search."""

    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        serializer = CitySearchSerializer(data=request.query_params)
        if not serializer.is_valid():
            return envelope.validation_error(serializer.errors, "Invalid query parameter")

        try:
            cities = get_geocoder().search_cities(serializer.validated_data["query"])
        except ProviderError as exc:
            logger.warning("City search failed: %s", exc)
            return envelope.provider_error(exc, "Failed to fetch city data from provider")
        return envelope.success(cities_to_list(cities))


class GeoView(APIView):
    """Best available location: explicit coordinates, then client IP, then the default."""

    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        serializer = OptionalCoordinatesSerializer(data=request.query_params)
        if not serializer.is_valid():
            return envelope.validation_error(serializer.errors, "Invalid lat/lon parameters")

        lat = serializer.validated_data.get("lat")
        lon = serializer.validated_data.get("lon")
        if lat is not None and lon is not None:
            explicit = Coordinates(lat=lat, lon=lon)
            if not explicit.is_sentinel:
                return self._location(explicit, "approx")

        client_ip = get_client_ip(request)
        if client_ip:
            location = get_ip_geolocator().get_location_from_ip(client_ip)
            if location is not None and not location.is_sentinel:
                return self._location(location, "approx")

        return self._location(DEFAULT_LOCATION, "default")

    def _location(self, coordinates: Coordinates, accuracy: str):
        cache = DEFAULT_LOCATION_CACHE if accuracy == "default" else APPROX_LOCATION_CACHE
        return envelope.success(
            {"lat": coordinates.lat, "lon": coordinates.lon, "accuracy": accuracy},
            cache_control=cache,
        )


class ReverseGeocodeView(APIView):
    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        serializer = CoordinatesSerializer(data=request.query_params)
        if not serializer.is_valid():
            return envelope.validation_error(serializer.errors, "Invalid lat/lon parameters")

        data = serializer.validated_data
        try:
            location_name = get_reverse_geocoder().reverse_geocode(data["lat"], data["lon"])
        except ProviderError as exc:
            return envelope.provider_error(exc, "Failed to reverse geocode location")

        if not location_name:
            return envelope.success({"locationName": None})
        return envelope.success({"locationName": location_name}, cache_control=PLACE_NAME_CACHE)


class WeatherView(APIView):
    """Provide normalized weather data for requested coordinates."""

    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        serializer = WeatherQuerySerializer(data=request.query_params)
        if not serializer.is_valid():
            return envelope.validation_error(serializer.errors, "Invalid lat/lon parameters")

        data = serializer.validated_data
        lat, lon = data["lat"], data["lon"]
        location_name = data.get("locationName") or Coordinates(lat=lat, lon=lon).label()
        try:
            weather = get_forecast_provider().get_current_weather(lat, lon, location_name)
        except ProviderError as exc:
            logger.warning("Weather lookup failed for %.4f,%.4f: %s", lat, lon, exc)
            return envelope.provider_error(
                exc,
                "Failed to fetch weather data from provider",
                not_found_message="No weather data available for this location",
            )
        return envelope.success(weather.to_dict(), cache_control=WEATHER_CACHE)


class OutfitView(APIView):
    """Outfit advice: generative first, deterministic rules when that fails."""

    permission_classes = [AllowAny]

    def post(self, request, *args, **kwargs):
        serializer = OutfitRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return envelope.error(ApiErrorCode.VALIDATION, "Invalid weather payload")

        payload = serializer.validated_data["weather"]
        try:
            advice = get_outfit_advisor().advise(build_outfit_prompt(payload))
        except Exception as exc:  # noqa: BLE001 - any AI failure falls back to the rules
            logger.warning("AI outfit advice failed, using fallback: %s", exc)
            advice = replace(recommend_outfit(weather_from_payload(payload)), note=None)
        return envelope.success(advice.to_dict())
