from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple


def format_coordinate(value: float) -> str:
    """Render a coordinate the way JSON does (``10`` rather than ``10.0``)."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _compact(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lon: float

    @property
    def is_sentinel(self) -> bool:
        """``(0, 0)`` marks a failed lookup rather than a real location."""
        return self.lat == 0 and self.lon == 0

    def label(self) -> str:
        return f"{self.lat:.2f}, {self.lon:.2f}"


@dataclass(frozen=True)
class City:
    id: str
    name: str
    country: str
    lat: float
    lon: float
    admin1: Optional[str] = None
    admin2: Optional[str] = None

    @classmethod
    def from_coordinates(cls, name: str, country: str, lat: float, lon: float, **extra: Any) -> "City":
        city_id = f"{format_coordinate(lat)},{format_coordinate(lon)}"
        return cls(id=city_id, name=name, country=country, lat=lat, lon=lon, **extra)

    def to_dict(self) -> Dict[str, Any]:
        return _compact(
            {
                "id": self.id,
                "name": self.name,
                "country": self.country,
                "admin1": self.admin1,
                "admin2": self.admin2,
                "lat": self.lat,
                "lon": self.lon,
            }
        )


@dataclass(frozen=True)
class HourlyForecast:
    """One forecast hour.

    ``time`` is naive ISO-8601 and must be read in the parent weather's
    timezone.
    """

    time: str
    temperature_c: float
    weather_code: int
    is_day: Optional[bool] = None
    precipitation: Optional[float] = None
    humidity: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact(
            {
                "time": self.time,
                "temperatureC": self.temperature_c,
                "weatherCode": self.weather_code,
                "isDay": self.is_day,
                "precipitation": self.precipitation,
                "humidity": self.humidity,
            }
        )


@dataclass(frozen=True)
class DailyForecast:
    date: str
    temperature_max_c: float
    temperature_min_c: float
    weather_code: int
    precipitation: Optional[float] = None
    precipitation_probability: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact(
            {
                "date": self.date,
                "temperatureMaxC": self.temperature_max_c,
                "temperatureMinC": self.temperature_min_c,
                "weatherCode": self.weather_code,
                "precipitation": self.precipitation,
                "precipitationProbability": self.precipitation_probability,
            }
        )


@dataclass(frozen=True)
class Weather:
    """Normalized weather for a location.

    Values are already converted to the public units:
    - temperature in Celsius
    - condition as a WMO weather code (0-99)
    - precipitation in millimetres (mm)
    """

    location_name: str
    temperature_c: float
    weather_code: int
    is_day: Optional[bool] = None
    timezone: str = "UTC"
    hourly: Optional[Tuple[HourlyForecast, ...]] = None
    daily: Optional[Tuple[DailyForecast, ...]] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "locationName": self.location_name,
            "temperatureC": self.temperature_c,
            "weatherCode": self.weather_code,
            "isDay": self.is_day,
            "timezone": self.timezone,
        }
        if self.hourly:
            payload["hourly"] = [hour.to_dict() for hour in self.hourly]
        if self.daily:
            payload["daily"] = [day.to_dict() for day in self.daily]
        return _compact(payload)


@dataclass(frozen=True)
class OutfitAdvice:
    headline: str
    text: str
    note: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({"headline": self.headline, "text": self.text, "note": self.note})


def cities_to_list(cities: List[City]) -> List[Dict[str, Any]]:
    return [city.to_dict() for city in cities]


__all__ = [
    "City",
    "Coordinates",
    "DailyForecast",
    "HourlyForecast",
    "OutfitAdvice",
    "Weather",
    "cities_to_list",
    "format_coordinate",
]
