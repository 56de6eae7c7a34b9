from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

from requests import Response

from .base import HttpProvider, NotFound, ProviderError, safe_number
from ..entities import DailyForecast, HourlyForecast, Weather


HOURLY_FIELDS = ["temperature_2m", "weathercode", "is_day", "precipitation", "relativehumidity_2m"]
DAILY_FIELDS = [
    "weathercode",
    "temperature_2m_max",
    "temperature_2m_min",
    "precipitation_sum",
    "precipitation_probability_max",
]
# 24 hours are shown; the rest absorbs a timezone-shifted "now".
MAX_HOURLY_ENTRIES = 48
FORECAST_DAYS = 7


class OpenMeteoForecastProvider(HttpProvider):
    base_url = "https://api.open-meteo.com/v1/forecast"

    def __init__(self, base_url: Optional[str] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url or self.base_url
        self._log = logging.getLogger(self.__class__.__name__)

    def get_current_weather(self, latitude: float, longitude: float, location_name: str) -> Weather:
        params = {
            "latitude": latitude,
            "longitude": longitude,
            "current_weather": "true",
            "temperature_unit": "celsius",
            "timezone": "auto",
            "hourly": ",".join(HOURLY_FIELDS),
            "daily": ",".join(DAILY_FIELDS),
            "forecast_days": FORECAST_DAYS,
        }
        response = self._request("GET", self.base_url, params=params)
        data = self._json(response)
        if not isinstance(data, dict):
            raise ProviderError("unexpected payload")

        current = data.get("current_weather")
        if not current:
            raise NotFound("missing current weather")
        if not isinstance(current, dict):
            raise ProviderError("unexpected current weather block")

        return Weather(
            location_name=location_name,
            temperature_c=_number_or_zero(current.get("temperature")),
            weather_code=int(_number_or_zero(current.get("weathercode"))),
            is_day=current.get("is_day") == 1,
            timezone=data.get("timezone") or "UTC",
            hourly=self._map_hourly(data.get("hourly")),
            daily=self._map_daily(data.get("daily")),
        )

    # helpers ------------------------------------------------------------
    def _handle_response(self, response: Response) -> Response:
        if response.status_code == 404:
            self._log.info("No forecast for location: %s", response.text[:200])
            raise NotFound("no forecast for location")
        return super()._handle_response(response)

    def _map_hourly(self, hourly: Any) -> Optional[tuple]:
        if not isinstance(hourly, dict):
            return None
        times = _as_list(hourly.get("time"))
        temps = _as_list(hourly.get("temperature_2m"))
        codes = _as_list(hourly.get("weathercode"))
        day_flags = _as_list(hourly.get("is_day"))
        precipitation = _as_list(hourly.get("precipitation"))
        humidity = _as_list(hourly.get("relativehumidity_2m"))
        result: List[HourlyForecast] = []
        for idx, ts in enumerate(times[:MAX_HOURLY_ENTRIES]):
            result.append(
                HourlyForecast(
                    time=ts,
                    temperature_c=_number_or_zero(_safe_index(temps, idx)),
                    weather_code=int(_number_or_zero(_safe_index(codes, idx))),
                    is_day=_safe_index(day_flags, idx) == 1,
                    precipitation=safe_number(_safe_index(precipitation, idx)),
                    humidity=safe_number(_safe_index(humidity, idx)),
                )
            )
        return tuple(result) or None

    def _map_daily(self, daily: Any) -> Optional[tuple]:
        if not isinstance(daily, dict):
            return None
        dates = _as_list(daily.get("time"))
        temps_max = _as_list(daily.get("temperature_2m_max"))
        temps_min = _as_list(daily.get("temperature_2m_min"))
        codes = _as_list(daily.get("weathercode"))
        precipitation = _as_list(daily.get("precipitation_sum"))
        probability = _as_list(daily.get("precipitation_probability_max"))
        result: List[DailyForecast] = []
        for idx, date_str in enumerate(dates):
            result.append(
                DailyForecast(
                    date=date_str,
                    temperature_max_c=_number_or_zero(_safe_index(temps_max, idx)),
                    temperature_min_c=_number_or_zero(_safe_index(temps_min, idx)),
                    weather_code=int(_number_or_zero(_safe_index(codes, idx))),
                    precipitation=safe_number(_safe_index(precipitation, idx)),
                    precipitation_probability=safe_number(_safe_index(probability, idx)),
                )
            )
        return tuple(result) or None


def _as_list(value: Any) -> Sequence[Any]:
    return value if isinstance(value, list) else []


def _safe_index(values: Sequence[Any], index: int) -> Any:
    try:
        return values[index]
    except IndexError:
        return None


def _number_or_zero(value: Any) -> float:
    number = safe_number(value)
    if number is None:
        return 0
    return number


__all__ = ["OpenMeteoForecastProvider", "MAX_HOURLY_ENTRIES", "FORECAST_DAYS"]
