import math
from datetime import datetime, timedelta, timezone
from typing import Optional

from ..entities import QueryOrigin, UnitSystem
from ..errors import ErrorKind

ERROR_MESSAGES = {
    ErrorKind.NETWORK_FAILURE: "Unable to fetch weather data",
    ErrorKind.MALFORMED_RESPONSE: "Received an unexpected response from the weather service",
    ErrorKind.TIMEOUT: "The weather service took too long to respond",
}
NOT_FOUND_MESSAGES = {
    QueryOrigin.CITY: "City not found. Please try again.",
    QueryOrigin.COORDINATES: "Weather data unavailable",
}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_temperature(value: Optional[float], unit: UnitSystem, with_unit: bool = True) -> str:
    if value is None:
        return "N/A"
    suffix = unit.symbol if with_unit else ""
    return f"{round_half_up(value)}°{suffix}"


def format_clock(moment: Optional[datetime], offset_seconds: int = 0) -> str:
    """12-hour clock time ("6:42 AM") at the given offset from UTC."""
    if moment is None:
        return "N/A"
    local = moment.astimezone(timezone(timedelta(seconds=offset_seconds)))
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return f"{hour}:{local.minute:02d} {meridiem}"


def format_visibility(metres: Optional[int]) -> str:
    if metres is None:
        return "N/A"
    return f"{metres / 1000:.1f} km"


def user_message(kind: ErrorKind, origin: QueryOrigin) -> str:
    if kind is ErrorKind.NOT_FOUND:
        return NOT_FOUND_MESSAGES[origin]
    return ERROR_MESSAGES[kind]
