from enum import Enum


class ErrorKind(str, Enum):
    NETWORK_FAILURE = "network_failure"
    NOT_FOUND = "not_found"
    MALFORMED_RESPONSE = "malformed_response"
    TIMEOUT = "timeout"


class WeatherQueryError(Exception):
    """
    Raised inside the weather client when a provider call cannot produce data.
    Converted to a Failure result at the client boundary, never surfaced to views.
    """
    kind = ErrorKind.NETWORK_FAILURE

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.kind.value)
        self.detail = detail


class NotFound(WeatherQueryError):
    kind = ErrorKind.NOT_FOUND


class MalformedResponse(WeatherQueryError):
    kind = ErrorKind.MALFORMED_RESPONSE


class RequestTimeout(WeatherQueryError):
    kind = ErrorKind.TIMEOUT


class GeolocationUnavailable(Exception):
    """Raised by a host geolocation callable when access is denied or unsupported."""
