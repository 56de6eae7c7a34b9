"""Outfit suggestions derived from normalized weather."""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from .entities import DailyForecast, OutfitAdvice, Weather


HEADLINE = "What to wear today"
RULE_BASED_NOTE = "Rule-based suggestion. AI fallback used only when the AI provider is unavailable."

WMO_LABELS = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    56: "Light freezing drizzle",
    57: "Dense freezing drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    66: "Light freezing rain",
    67: "Heavy freezing rain",
    71: "Slight snow fall",
    73: "Moderate snow fall",
    75: "Heavy snow fall",
    77: "Snow grains",
    80: "Slight rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    85: "Slight snow showers",
    86: "Heavy snow showers",
    95: "Thunderstorm",
    96: "Thunderstorm with slight hail",
    99: "Thunderstorm with heavy hail",
}


def describe_weather_code(code: int) -> str:
    return WMO_LABELS.get(int(code), "Unknown")


def is_wet(weather_code: int, precipitation: Optional[float] = None) -> bool:
    if precipitation and precipitation >= 0.5:
        return True
    if 51 <= weather_code <= 67:  # drizzle/rain
        return True
    if 80 <= weather_code <= 82:  # showers
        return True
    return weather_code >= 95  # thunderstorms/hail


def is_snowy(weather_code: int) -> bool:
    return 71 <= weather_code <= 77 or 85 <= weather_code <= 86 or 96 <= weather_code <= 99


def recommend_outfit(weather: Weather) -> OutfitAdvice:
    """Deterministic recommendation from temperature bands and weather codes."""
    temp = weather.temperature_c
    code = weather.weather_code
    current_precip = weather.hourly[0].precipitation if weather.hourly else None

    bullets: List[str] = []
    if is_snowy(code):
        bullets.append("Insulated jacket, gloves, beanie, waterproof boots")
    elif temp <= 5:
        bullets.append("Heavy coat, scarf, gloves")
    elif temp <= 12:
        bullets.append("Warm jacket or fleece layer")
    elif temp <= 18:
        bullets.append("Light jacket or thick sweater")
    elif temp <= 24:
        bullets.append("Long sleeves or light layers")
    else:
        bullets.append("T-shirt and breathable fabrics")

    if is_wet(code, current_precip):
        bullets.append("Waterproof layer and umbrella")
    if temp >= 26:
        bullets.append("Cap/sunglasses, stay hydrated")
    if weather.is_day is False and temp <= 16:
        bullets.append("Evening: bring an extra layer")

    return OutfitAdvice(
        headline=HEADLINE,
        text="; ".join(bullets) or "Dress comfortably for mild conditions.",
        note=RULE_BASED_NOTE,
    )


def weather_from_payload(payload: Mapping[str, Any]) -> Weather:
    """Turn a validated outfit request payload into a :class:`Weather`.

    Missing daily values borrow the current reading so the model stays total.
    """
    temperature = payload["temperatureC"]
    code = payload["weatherCode"]
    daily: List[DailyForecast] = []
    for idx, day in enumerate(payload.get("daily") or []):
        daily.append(
            DailyForecast(
                date=day.get("date") or f"day-{idx}",
                temperature_max_c=_pick(day.get("temperatureMaxC"), temperature),
                temperature_min_c=_pick(day.get("temperatureMinC"), temperature),
                weather_code=_pick(day.get("weatherCode"), code),
                precipitation=day.get("precipitation"),
                precipitation_probability=day.get("precipitationProbability"),
            )
        )
    return Weather(
        location_name=payload["locationName"],
        temperature_c=temperature,
        weather_code=code,
        is_day=payload.get("isDay"),
        timezone="UTC",
        daily=tuple(daily) or None,
    )


def build_outfit_prompt(payload: Mapping[str, Any]) -> str:
    code = payload["weatherCode"]
    first_day: Dict[str, Any] = (payload.get("daily") or [{}])[0]
    high = _fmt(first_day.get("temperatureMaxC"))
    low = _fmt(first_day.get("temperatureMinC"))
    precipitation = _pick(payload.get("maxPrecipitation"), first_day.get("precipitation"))
    probability = _pick(payload.get("maxPrecipitationProbability"), first_day.get("precipitationProbability"))
    evening = payload.get("eveningTemperatureC")
    evening_note = (
        f"Evening around {round(evening)}°C." if evening is not None else "Evening trend not provided."
    )
    return "\n".join(
        [
            "You are a weather forecast assistant. Give a concise outfit idea sentence "
            "with a tiny compliment, considering the time of day and the weather.",
            f"Loc: {payload['locationName']}",
            f"Now: {round(payload['temperatureC'])}°C, {describe_weather_code(code)} (code {code})",
            f"Hi/Lo: {high}/{low}°C",
            f"Precip: {precipitation if precipitation is not None else 0} mm max, {_fmt(probability)}% chance",
            f"Evening: {evening_note}",
            "Rules: Max 1 sentence. Be creative. Celsius only.",
        ]
    )


def _pick(value: Any, fallback: Any) -> Any:
    return fallback if value is None else value


def _fmt(value: Any) -> str:
    return "n/a" if value is None else str(value)


__all__ = [
    "HEADLINE",
    "build_outfit_prompt",
    "describe_weather_code",
    "is_snowy",
    "is_wet",
    "recommend_outfit",
    "weather_from_payload",
]
