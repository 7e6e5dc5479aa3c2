from datetime import datetime, timezone
from typing import Optional, Tuple

from ..entities import CurrentConditions, ForecastEntry
from ..errors import MalformedResponse

FORECAST_LIMIT = 5

CONDITION_ICONS = {
    "Clear": "☀️",
    "Clouds": "☁️",
    "Rain": "🌧️",
    "Drizzle": "🌦️",
    "Thunderstorm": "⛈️",
    "Snow": "❄️",
    "Mist": "🌫️",
    "Fog": "🌁",
}
DEFAULT_ICON = "🌈"


def icon_for(category: str) -> str:
    return CONDITION_ICONS.get(category, DEFAULT_ICON)


def normalize_current(data: dict) -> CurrentConditions:
    """
    Projects an OpenWeatherMap /weather payload onto CurrentConditions.
    Required fields missing or of the wrong shape raise MalformedResponse.
    """
    try:
        main = data["main"]
        weather = data["weather"][0]
        sys_info = data.get("sys") or {}
        wind = data.get("wind") or {}

        return CurrentConditions(
            name=data["name"],
            country=sys_info.get("country", ""),
            observed_at=_from_unix(data["dt"]),
            temperature=float(main["temp"]),
            feels_like=_optional_float(main.get("feels_like")),
            humidity=_optional_int(main.get("humidity")),
            wind_speed=_optional_float(wind.get("speed")),
            pressure=_optional_int(main.get("pressure")),
            visibility=_optional_int(data.get("visibility")),
            sunrise=_optional_unix(sys_info.get("sunrise")),
            sunset=_optional_unix(sys_info.get("sunset")),
            temp_min=_optional_float(main.get("temp_min")),
            temp_max=_optional_float(main.get("temp_max")),
            condition=weather["main"],
            description=weather.get("description", ""),
            timezone_offset=int(data.get("timezone") or 0),
        )
    except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
        raise MalformedResponse(f"current conditions: {e!r}") from e


def normalize_forecast(data: dict, limit: int = FORECAST_LIMIT) -> Tuple[ForecastEntry, ...]:
    try:
        periods = data["list"]
        if not isinstance(periods, list):
            raise TypeError("forecast list is not an array")

        return tuple(
            ForecastEntry(
                timestamp=_from_unix(period["dt"]),
                temperature=float(period["main"]["temp"]),
                condition=period["weather"][0]["main"],
                description=period["weather"][0].get("description", ""),
            )
            for period in periods[:limit]
        )
    except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
        raise MalformedResponse(f"forecast: {e!r}") from e


def _from_unix(value) -> datetime:
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def _optional_unix(value) -> Optional[datetime]:
    if value is None:
        return None
    return _from_unix(value)


def _optional_float(value) -> Optional[float]:
    if value is None:
        return None
    return float(value)


def _optional_int(value) -> Optional[int]:
    if value is None:
        return None
    return int(value)
