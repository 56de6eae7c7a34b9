"""API URL configuration."""
from __future__ import annotations

from django.urls import path

from backend.api.views import CitySearchView, GeoView, OutfitView, ReverseGeocodeView, WeatherView

urlpatterns = [
    path("cities", CitySearchView.as_view(), name="cities"),
    path("geo", GeoView.as_view(), name="geo"),
    path("reverse-geocode", ReverseGeocodeView.as_view(), name="reverse-geocode"),
    path("weather", WeatherView.as_view(), name="weather"),
    path("outfit", OutfitView.as_view(), name="outfit"),
]
