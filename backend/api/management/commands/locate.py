"""Run initial location detection against a running instance of the API."""
from __future__ import annotations

import json
from typing import Any

from django.core.management.base import BaseCommand, CommandError

from core.client import WeatherApiClient
from core.entities import Coordinates
from core.services.location import LocationResolver, LocationStatus


class Command(BaseCommand):
    help = "Resolve a starting location (coordinates, IP lookup or default) and print its weather"

    def add_arguments(self, parser) -> None:  # noqa: D401
        parser.add_argument("--base-url", default="http://localhost:8000/api", help="API base URL")
        parser.add_argument("--lat", type=float, help="Latitude")
        parser.add_argument("--lon", type=float, help="Longitude")

    def handle(self, *args: Any, **options: Any) -> None:  # noqa: D401
        latitude = options.get("lat")
        longitude = options.get("lon")
        if (latitude is None) != (longitude is None):
            raise CommandError("--lat and --lon must be given together")

        def report(status: LocationStatus) -> None:
            self.stderr.write(f"[{status.state.value}] {status.message}")

        resolver = LocationResolver(WeatherApiClient(options["base_url"]), on_status=report)
        coordinates = Coordinates(lat=latitude, lon=longitude) if latitude is not None else None
        resolved = resolver.resolve(coordinates)

        self.stdout.write(
            json.dumps(
                {
                    "lat": resolved.coordinates.lat,
                    "lon": resolved.coordinates.lon,
                    "locationName": resolved.name,
                    "state": resolved.state.value,
                    "weather": resolved.weather,
                }
            )
        )
