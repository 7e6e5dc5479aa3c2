from rest_framework import serializers

from .entities import Failure, Idle, Loading, Success
from .services.normalizer import icon_for
from .services.presentation import (
    format_clock,
    format_temperature,
    format_visibility,
    user_message,
)


class CitySubmitSerializer(serializers.Serializer):
    # Blank input is accepted here and ignored by the session.
    city = serializers.CharField(max_length=100, allow_blank=True, trim_whitespace=True)


class CoordinatesSerializer(serializers.Serializer):
    latitude = serializers.FloatField(min_value=-90.0, max_value=90.0)
    longitude = serializers.FloatField(min_value=-180.0, max_value=180.0)


class CurrentConditionsSerializer(serializers.Serializer):
    name = serializers.CharField()
    country = serializers.CharField()
    observed_at = serializers.DateTimeField()
    temperature = serializers.FloatField()
    feels_like = serializers.FloatField(allow_null=True)
    humidity = serializers.IntegerField(allow_null=True)
    wind_speed = serializers.FloatField(allow_null=True)
    pressure = serializers.IntegerField(allow_null=True)
    visibility = serializers.IntegerField(allow_null=True)
    sunrise = serializers.DateTimeField(allow_null=True)
    sunset = serializers.DateTimeField(allow_null=True)
    temp_min = serializers.FloatField(allow_null=True)
    temp_max = serializers.FloatField(allow_null=True)
    condition = serializers.CharField()
    description = serializers.CharField()
    icon = serializers.SerializerMethodField()
    display = serializers.SerializerMethodField()

    def get_icon(self, obj):
        return icon_for(obj.condition)

    def get_display(self, obj):
        unit = self.context["unit"]
        return {
            "temperature": format_temperature(obj.temperature, unit),
            "feels_like": format_temperature(obj.feels_like, unit, with_unit=False),
            "temp_min": format_temperature(obj.temp_min, unit, with_unit=False),
            "temp_max": format_temperature(obj.temp_max, unit, with_unit=False),
            "humidity": f"{obj.humidity}%" if obj.humidity is not None else "N/A",
            "wind_speed": f"{obj.wind_speed} {unit.speed_label}" if obj.wind_speed is not None else "N/A",
            "pressure": f"{obj.pressure} hPa" if obj.pressure is not None else "N/A",
            "visibility": format_visibility(obj.visibility),
            "updated": format_clock(obj.observed_at, obj.timezone_offset),
            "sunrise": format_clock(obj.sunrise, obj.timezone_offset),
            "sunset": format_clock(obj.sunset, obj.timezone_offset),
        }


class ForecastEntrySerializer(serializers.Serializer):
    timestamp = serializers.DateTimeField()
    temperature = serializers.FloatField()
    condition = serializers.CharField()
    description = serializers.CharField()
    icon = serializers.SerializerMethodField()
    display = serializers.SerializerMethodField()

    def get_icon(self, obj):
        return icon_for(obj.condition)

    def get_display(self, obj):
        unit = self.context["unit"]
        return {
            "temperature": format_temperature(obj.temperature, unit, with_unit=False),
            "time": format_clock(obj.timestamp, self.context.get("timezone_offset", 0)),
        }


STATUS_NAMES = {
    Idle: "idle",
    Loading: "loading",
    Success: "success",
    Failure: "failure",
}


def serialize_session(session) -> dict:
    """
    Publishes a WeatherSession as the state document the front end renders.
    `current` is whatever data is on display, which survives a failed coordinate
    lookup; `error` is only set in the failure state.
    """
    state = session.state
    result = session.result
    current = None
    forecast = []

    if result is not None:
        # Display strings follow the unit the data was fetched in.
        context = {
            "unit": result.unit,
            "timezone_offset": result.current.timezone_offset,
        }
        current = CurrentConditionsSerializer(result.current, context=context).data
        forecast = ForecastEntrySerializer(result.forecast, many=True, context=context).data

    error = None
    if isinstance(state, Failure):
        error = {
            "kind": state.kind.value,
            "origin": state.origin.value,
            "message": user_message(state.kind, state.origin),
        }

    return {
        "status": STATUS_NAMES[type(state)],
        "loading": session.loading,
        "unit": session.unit.value,
        "unit_symbol": session.unit.symbol,
        "current": current,
        "forecast": forecast,
        "error": error,
    }
