import logging
import time
from concurrent.futures import ThreadPoolExecutor, wait

import requests
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from ..entities import ByCity, Failure, QueryResult, QueryTarget, Success, UnitSystem
from ..errors import MalformedResponse, NotFound, RequestTimeout, WeatherQueryError
from .normalizer import normalize_current, normalize_forecast

logger = logging.getLogger("weathersphere")


class OpenWeatherAPI:
    """
    Adapter for the OpenWeatherMap current-conditions and forecast endpoints.
    Both endpoints are queried together and either both succeed or the whole
    query fails; errors are returned as Failure results, never raised.
    """

    CURRENT_ENDPOINT = "weather"
    FORECAST_ENDPOINT = "forecast"

    def __init__(self, api_key: str = None, base_url: str = None, timeout: float = None,
                 forecast_limit: int = None):
        if api_key is None:
            api_key = settings.OPENWEATHER_API_KEY
        if not api_key or not api_key.strip():
            raise ImproperlyConfigured("OPENWEATHER_API_KEY must be set")

        self.api_key = api_key.strip()
        self.base_url = (base_url or settings.OPENWEATHER_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.WEATHER_REQUEST_TIMEOUT
        self.forecast_limit = forecast_limit or settings.WEATHER_FORECAST_LIMIT

    def build_params(self, target: QueryTarget, unit: UnitSystem) -> dict:
        if isinstance(target, ByCity):
            params = {"q": target.name}
        else:
            params = {"lat": target.latitude, "lon": target.longitude}

        params.update({
            "units": unit.value,
            "appid": self.api_key,
            "lang": "en",
        })
        return params

    def endpoint_url(self, endpoint: str) -> str:
        return f"{self.base_url}/{endpoint}"

    def fetch_weather(self, target: QueryTarget, unit: UnitSystem) -> QueryResult:
        params = self.build_params(target, unit)
        log_extra = {
            'city': str(target),
            'origin': target.origin.value,
            'units': unit.value,
        }
        start_time = time.monotonic()

        pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix="openweather")
        try:
            current_future = pool.submit(self._get_json, self.CURRENT_ENDPOINT, params)
            forecast_future = pool.submit(self._get_json, self.FORECAST_ENDPOINT, params)
            # requests' timeout bounds each connect and read, not a slowly
            # trickling body, so the pair also gets an overall deadline.
            _, pending = wait((current_future, forecast_future), timeout=self.timeout)
        finally:
            pool.shutdown(wait=False)

        latency = time.monotonic() - start_time

        try:
            if pending:
                raise RequestTimeout(f"no complete response within {self.timeout}s")

            current_data = current_future.result()
            forecast_data = forecast_future.result()

            result = Success(
                current=normalize_current(current_data),
                forecast=normalize_forecast(forecast_data, self.forecast_limit),
                target=target,
                unit=unit,
            )
        except WeatherQueryError as e:
            logger.error(
                "Weather query failed",
                extra={**log_extra, 'event': 'api_error', 'kind': e.kind.value,
                       'error': str(e), 'latency': f"{latency:.3f}"}
            )
            return Failure(kind=e.kind, target=target)

        logger.info(
            "Weather query succeeded",
            extra={**log_extra, 'event': 'api_success', 'latency': f"{latency:.3f}"}
        )
        return result

    def _get_json(self, endpoint: str, params: dict) -> dict:
        url = self.endpoint_url(endpoint)
        try:
            response = requests.get(url, params=params, timeout=self.timeout)
        except requests.Timeout as e:
            raise RequestTimeout(f"{endpoint}: timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise WeatherQueryError(f"{endpoint}: {e}") from e

        if not response.ok:
            raise NotFound(f"{endpoint}: HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponse(f"{endpoint}: invalid JSON") from e

        if not isinstance(data, dict):
            raise MalformedResponse(f"{endpoint}: expected a JSON object")
        return data
