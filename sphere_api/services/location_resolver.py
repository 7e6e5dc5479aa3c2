import logging
from typing import Callable, Optional, Tuple

from ..entities import ByCity, ByCoordinates
from ..errors import GeolocationUnavailable

logger = logging.getLogger("weathersphere")


class LocationResolver:
    """
    Turns host input into query targets: a device position or a typed place name.
    Returns None whenever there is nothing to query.
    """

    @staticmethod
    def from_text(text: Optional[str]) -> Optional[ByCity]:
        name = (text or "").strip()
        if not name:
            return None
        return ByCity(name)

    @staticmethod
    def from_coordinates(latitude, longitude) -> ByCoordinates:
        try:
            lat = float(latitude)
            lon = float(longitude)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid coordinates: {latitude!r}, {longitude!r}")

        if not -90.0 <= lat <= 90.0 or not -180.0 <= lon <= 180.0:
            raise ValueError(f"Coordinates out of range: {lat}, {lon}")
        return ByCoordinates(lat, lon)

    @classmethod
    def from_device(cls, locate: Callable[[], Optional[Tuple[float, float]]]) -> Optional[ByCoordinates]:
        """Single best-effort geolocation attempt, no retry."""
        try:
            position = locate()
        except GeolocationUnavailable as e:
            logger.info(
                "Location access denied",
                extra={'event': 'geolocation_denied', 'error': str(e)}
            )
            return None

        if position is None:
            logger.info(
                "Geolocation unavailable",
                extra={'event': 'geolocation_unavailable'}
            )
            return None

        latitude, longitude = position
        return cls.from_coordinates(latitude, longitude)
