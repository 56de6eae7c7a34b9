"""Request validation for the public endpoints."""
from __future__ import annotations

import math

from rest_framework import serializers


def _coordinate_errors(label: str, low: int, high: int) -> dict:
    message = f"{label} must be between {low} and {high}"
    return {
        "required": f"{label} is required",
        "invalid": f"{label} must be a valid number",
        "min_value": message,
        "max_value": message,
    }


LATITUDE_ERRORS = _coordinate_errors("Latitude", -90, 90)
LONGITUDE_ERRORS = _coordinate_errors("Longitude", -180, 180)
QUERY_TOO_SHORT = "Query must be at least 2 characters"


class JsonNumberField(serializers.FloatField):
    """Finite JSON number; numeric strings and booleans are rejected."""

    def to_internal_value(self, data):
        if isinstance(data, bool) or not isinstance(data, (int, float)) or not math.isfinite(data):
            self.fail("invalid")
        return data


class CoordinatesSerializer(serializers.Serializer):
    lat = serializers.FloatField(min_value=-90, max_value=90, error_messages=LATITUDE_ERRORS)
    lon = serializers.FloatField(min_value=-180, max_value=180, error_messages=LONGITUDE_ERRORS)

    def validate_lat(self, value: float) -> float:
        if not math.isfinite(value):
            raise serializers.ValidationError(LATITUDE_ERRORS["invalid"])
        return value

    def validate_lon(self, value: float) -> float:
        if not math.isfinite(value):
            raise serializers.ValidationError(LONGITUDE_ERRORS["invalid"])
        return value


class OptionalCoordinatesSerializer(CoordinatesSerializer):
    lat = serializers.FloatField(min_value=-90, max_value=90, required=False, error_messages=LATITUDE_ERRORS)
    lon = serializers.FloatField(min_value=-180, max_value=180, required=False, error_messages=LONGITUDE_ERRORS)


class WeatherQuerySerializer(CoordinatesSerializer):
    locationName = serializers.CharField(required=False, allow_blank=True)


class CitySearchSerializer(serializers.Serializer):
    query = serializers.CharField(
        min_length=2,
        error_messages={
            "required": QUERY_TOO_SHORT,
            "blank": QUERY_TOO_SHORT,
            "min_length": QUERY_TOO_SHORT,
        },
    )


class DailyPayloadSerializer(serializers.Serializer):
    date = serializers.CharField(required=False)
    weatherCode = JsonNumberField(required=False)
    temperatureMaxC = JsonNumberField(required=False)
    temperatureMinC = JsonNumberField(required=False)
    precipitation = JsonNumberField(required=False)
    precipitationProbability = JsonNumberField(required=False)


class OutfitWeatherSerializer(serializers.Serializer):
    locationName = serializers.CharField(allow_blank=True, trim_whitespace=False)
    temperatureC = JsonNumberField()
    weatherCode = JsonNumberField()
    isDay = serializers.BooleanField(required=False)
    daily = DailyPayloadSerializer(many=True, required=False)
    maxPrecipitation = JsonNumberField(required=False)
    maxPrecipitationProbability = JsonNumberField(required=False)
    eveningTemperatureC = JsonNumberField(required=False)


class OutfitRequestSerializer(serializers.Serializer):
    weather = OutfitWeatherSerializer()
