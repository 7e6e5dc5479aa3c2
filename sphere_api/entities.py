from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple, Union

from .errors import ErrorKind


class QueryOrigin(str, Enum):
    CITY = "city"
    COORDINATES = "coordinates"


class UnitSystem(str, Enum):
    METRIC = "metric"
    IMPERIAL = "imperial"

    @property
    def symbol(self) -> str:
        return "C" if self is UnitSystem.METRIC else "F"

    @property
    def speed_label(self) -> str:
        return "m/s" if self is UnitSystem.METRIC else "mph"

    def toggled(self) -> "UnitSystem":
        return UnitSystem.IMPERIAL if self is UnitSystem.METRIC else UnitSystem.METRIC


@dataclass(frozen=True)
class ByCity:
    name: str

    origin = QueryOrigin.CITY

    def __str__(self):
        return self.name


@dataclass(frozen=True)
class ByCoordinates:
    latitude: float
    longitude: float

    origin = QueryOrigin.COORDINATES

    def __str__(self):
        return f"{self.latitude:.4f},{self.longitude:.4f}"


QueryTarget = Union[ByCity, ByCoordinates]


@dataclass(frozen=True)
class CurrentConditions:
    """
    Current observation for one place, projected from the provider payload.
    Temperatures are stored exactly as reported; rounding happens at display time.
    """
    name: str
    country: str
    observed_at: datetime
    temperature: float
    feels_like: Optional[float]
    humidity: Optional[int]
    wind_speed: Optional[float]
    pressure: Optional[int]
    visibility: Optional[int]
    sunrise: Optional[datetime]
    sunset: Optional[datetime]
    temp_min: Optional[float]
    temp_max: Optional[float]
    condition: str
    description: str
    timezone_offset: int = 0


@dataclass(frozen=True)
class ForecastEntry:
    timestamp: datetime
    temperature: float
    condition: str
    description: str


@dataclass(frozen=True)
class Success:
    current: CurrentConditions
    forecast: Tuple[ForecastEntry, ...]
    target: QueryTarget
    unit: UnitSystem


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    target: QueryTarget
    # Prior success still on display after a coordinate lookup failed.
    retained: Optional[Success] = field(default=None, compare=False)

    @property
    def origin(self) -> QueryOrigin:
        return self.target.origin


QueryResult = Union[Success, Failure]


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Loading:
    target: QueryTarget
    unit: UnitSystem


SessionState = Union[Idle, Loading, Success, Failure]
