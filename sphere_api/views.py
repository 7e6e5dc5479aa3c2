import logging
from datetime import datetime

import requests
from django.core.exceptions import ImproperlyConfigured
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from .entities import ByCity, Failure, UnitSystem
from .errors import ErrorKind
from .serializers import CitySubmitSerializer, CoordinatesSerializer, serialize_session
from .services.query_session import WeatherSession
from .services.session_store import load_snapshot, next_generation, save_snapshot
from .services.weather_api_service import OpenWeatherAPI

logger = logging.getLogger(__name__)

FAILURE_STATUS = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.NETWORK_FAILURE: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.MALFORMED_RESPONSE: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.TIMEOUT: status.HTTP_504_GATEWAY_TIMEOUT,
}


class WeatherSessionView(APIView):
    """
    Base view for the weather front end: restores the caller's WeatherSession,
    lets the subclass feed it one event and publishes the resulting state.
    """

    def get_session_key(self):
        session = self.request.session
        if not session.session_key:
            session.create()
        return session.session_key

    def get_client_ip(self):
        x_forwarded_for = self.request.META.get('HTTP_X_FORWARDED_FOR')
        if x_forwarded_for:
            ip = x_forwarded_for.split(',')[0]
        else:
            ip = self.request.META.get('REMOTE_ADDR')
        return ip

    def load_session(self, with_client=True):
        session_key = self.get_session_key()
        client = OpenWeatherAPI() if with_client else None
        return WeatherSession(
            client,
            snapshot=load_snapshot(session_key),
            generations=lambda: next_generation(session_key),
        )

    def respond(self, weather_session, save=True):
        if save:
            save_snapshot(self.get_session_key(), weather_session.snapshot)

        state = weather_session.state
        status_code = status.HTTP_200_OK
        if isinstance(state, Failure):
            status_code = FAILURE_STATUS[state.kind]
        return Response(serialize_session(weather_session), status=status_code)

    def handle_event(self, event):
        """Runs `event(session)` against a freshly restored session with a live client."""
        try:
            weather_session = self.load_session()
        except ImproperlyConfigured as e:
            logger.error(
                f"weather_service_not_configured error={e}",
                extra={'error': str(e), 'event': 'weather_service_not_configured'}
            )
            return Response(
                {"error": "Weather service is not configured"},
                status=status.HTTP_503_SERVICE_UNAVAILABLE
            )

        start_time = datetime.now()
        event(weather_session)
        latency = (datetime.now() - start_time).total_seconds()

        logger.info(
            f"weather_event_done status={type(weather_session.state).__name__} latency={latency:.2f}s",
            extra={
                'ip': self.get_client_ip(),
                'units': weather_session.unit.value,
                'latency': latency,
                'event': 'weather_event_done',
            }
        )
        return self.respond(weather_session)


class WeatherStateView(WeatherSessionView):
    def get(self, request):
        return self.respond(self.load_session(with_client=False), save=False)


class CitySubmitView(WeatherSessionView):
    def post(self, request):
        serializer = CitySubmitSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        city = serializer.validated_data['city']
        if not city:
            # Nothing to look up: no request, no state change.
            return self.respond(self.load_session(with_client=False), save=False)

        logger.info(
            f"weather_request_start city={city} ip={self.get_client_ip()}",
            extra={'city': city, 'ip': self.get_client_ip(), 'event': 'weather_request_start'}
        )
        return self.handle_event(lambda session: session.submit_city(city))


class LocationView(WeatherSessionView):
    def post(self, request):
        serializer = CoordinatesSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        latitude = serializer.validated_data['latitude']
        longitude = serializer.validated_data['longitude']
        return self.handle_event(lambda session: session.geolocation_result(latitude, longitude))


class LocationDeniedView(WeatherSessionView):
    def post(self, request):
        weather_session = self.load_session(with_client=False)
        weather_session.geolocation_denied()
        return self.respond(weather_session, save=False)


class UnitToggleView(WeatherSessionView):
    def post(self, request):
        weather_session = self.load_session(with_client=False)
        if weather_session.result is None:
            # No displayed city to re-query, so no API key is needed.
            weather_session.toggle_unit()
            return self.respond(weather_session)
        return self.handle_event(lambda session: session.toggle_unit())


class HealthCheckView(APIView):
    def get(self, request):
        try:
            client = OpenWeatherAPI()
        except ImproperlyConfigured:
            client = None

        try:
            if client is not None:
                test_response = requests.get(
                    client.endpoint_url(client.CURRENT_ENDPOINT),
                    params=client.build_params(ByCity("London"), UnitSystem.METRIC),
                    timeout=client.timeout
                )

                if test_response.status_code == 200:
                    api_status = "healthy"
                elif test_response.status_code == 401:
                    api_status = "unhealthy: invalid API key"
                else:
                    api_status = f"unhealthy: HTTP {test_response.status_code}"
            else:
                api_status = "unhealthy: API key not configured"

        except requests.exceptions.Timeout:
            api_status = "unhealthy: timeout"
        except requests.exceptions.ConnectionError:
            api_status = "unhealthy: connection failed"
        except requests.RequestException as e:
            api_status = f"unhealthy: {str(e)}"

        health_data = {
            "status": "healthy" if api_status == "healthy" else "degraded",
            "timestamp": datetime.now().isoformat(),
            "components": {
                "external_api": api_status
            }
        }

        status_code = status.HTTP_200_OK if health_data["status"] == "healthy" else status.HTTP_503_SERVICE_UNAVAILABLE

        return Response(health_data, status=status_code)
