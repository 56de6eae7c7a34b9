"""Management command to fetch weather using the same adapters as the API."""
from __future__ import annotations

import json
from typing import Any

from django.core.management.base import BaseCommand, CommandError

from backend.api.views import get_forecast_provider, get_geocoder
from core.entities import Coordinates
from core.providers.base import NotFound, ProviderError


class Command(BaseCommand):
    help = "Fetch current, hourly and daily weather for coordinates or a city name"

    def add_arguments(self, parser) -> None:  # noqa: D401
        parser.add_argument("--lat", type=float, help="Latitude")
        parser.add_argument("--lon", type=float, help="Longitude")
        parser.add_argument("--name", type=str, help="Location name to report")
        parser.add_argument("--city", type=str, help="City name, resolved through the geocoding provider")

    def handle(self, *args: Any, **options: Any) -> None:  # noqa: D401
        city = options.get("city")
        latitude = options.get("lat")
        longitude = options.get("lon")
        name = options.get("name")

        try:
            if city:
                matches = get_geocoder().search_cities(city)
                if not matches:
                    raise CommandError(f"No city matches {city!r}")
                match = matches[0]
                latitude, longitude = match.lat, match.lon
                name = name or ", ".join(part for part in (match.name, match.country) if part)
            elif latitude is None or longitude is None:
                raise CommandError("--lat and --lon are required unless using --city")

            name = name or Coordinates(lat=latitude, lon=longitude).label()
            weather = get_forecast_provider().get_current_weather(latitude, longitude, name)
        except NotFound as exc:
            raise CommandError("No weather data available for this location") from exc
        except ProviderError as exc:
            raise CommandError(f"Weather provider failed: {exc}") from exc

        self.stdout.write(json.dumps(weather.to_dict()))
