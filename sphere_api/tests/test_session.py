from django.test import SimpleTestCase

from ..entities import (
    ByCity,
    ByCoordinates,
    Failure,
    Idle,
    Loading,
    Success,
    UnitSystem,
)
from ..errors import ErrorKind, GeolocationUnavailable
from ..services.normalizer import normalize_current, normalize_forecast
from ..services.query_session import SessionSnapshot, WeatherSession
from .payloads import current_payload, forecast_payload


def make_success(target, unit=UnitSystem.METRIC, name=None, temp=18.4):
    if name is None:
        name = target.name if isinstance(target, ByCity) else 'Lyon'
    return Success(
        current=normalize_current(current_payload(name=name, temp=temp)),
        forecast=normalize_forecast(forecast_payload()),
        target=target,
        unit=unit,
    )


class FakeClient:
    """Records queries; answers with `responder(target, unit)` or a default success."""

    def __init__(self, responder=None):
        self.responder = responder
        self.calls = []

    def fetch_weather(self, target, unit):
        self.calls.append((target, unit))
        if self.responder is not None:
            return self.responder(target, unit)
        return make_success(target, unit)


class StateRecorder:
    def __init__(self, session):
        self.states = []
        self.loading = []
        session.subscribe(self)

    def __call__(self, session):
        self.states.append(session.state)
        self.loading.append(session.loading)


class WeatherSessionTests(SimpleTestCase):
    def setUp(self):
        self.provider = FakeClient()
        self.session = WeatherSession(self.provider)

    def test_starts_idle(self):
        self.assertIsInstance(self.session.state, Idle)
        self.assertFalse(self.session.loading)
        self.assertEqual(self.session.unit, UnitSystem.METRIC)
        self.assertIsNone(self.session.conditions)
        self.assertEqual(self.session.forecast, ())

    def test_submit_city_issues_one_fetch(self):
        recorder = StateRecorder(self.session)

        issued = self.session.submit_city('  Paris ')

        self.assertTrue(issued)
        self.assertEqual(self.provider.calls, [(ByCity('Paris'), UnitSystem.METRIC)])
        self.assertIsInstance(self.session.state, Success)
        self.assertEqual(self.session.conditions.name, 'Paris')
        self.assertEqual(recorder.loading, [True, False])
        self.assertIsInstance(recorder.states[0], Loading)

    def test_blank_submissions_are_ignored(self):
        recorder = StateRecorder(self.session)

        for text in ('', '   ', '\t\n', None):
            self.assertFalse(self.session.submit_city(text))

        self.assertEqual(self.provider.calls, [])
        self.assertEqual(recorder.states, [])
        self.assertIsInstance(self.session.state, Idle)

    def test_city_failure_clears_prior_success(self):
        self.session.submit_city('Paris')
        self.provider.responder = lambda target, unit: Failure(ErrorKind.NOT_FOUND, target)

        self.session.submit_city('Nowhereville')

        self.assertIsInstance(self.session.state, Failure)
        self.assertEqual(self.session.error.kind, ErrorKind.NOT_FOUND)
        self.assertIsNone(self.session.conditions)
        self.assertEqual(self.session.forecast, ())
        self.assertFalse(self.session.loading)

    def test_coordinate_failure_keeps_prior_success(self):
        self.session.submit_city('Paris')
        prior = self.session.result
        self.provider.responder = lambda target, unit: Failure(ErrorKind.TIMEOUT, target)

        self.session.geolocation_result(45.76, 4.83)

        self.assertEqual(self.session.error.kind, ErrorKind.TIMEOUT)
        self.assertIs(self.session.result, prior)
        self.assertEqual(self.session.conditions.name, 'Paris')
        self.assertFalse(self.session.loading)

    def test_toggle_without_result_does_not_fetch(self):
        recorder = StateRecorder(self.session)

        issued = self.session.toggle_unit()

        self.assertFalse(issued)
        self.assertEqual(self.provider.calls, [])
        self.assertEqual(self.session.unit, UnitSystem.IMPERIAL)
        self.assertEqual(len(recorder.states), 1)

    def test_toggle_requeries_displayed_city_in_new_unit(self):
        self.provider.responder = lambda target, unit: make_success(
            target, unit, temp=18.4 if unit is UnitSystem.METRIC else 65.1
        )
        self.session.geolocation_result(45.76, 4.83)

        issued = self.session.toggle_unit()

        self.assertTrue(issued)
        self.assertEqual(self.provider.calls[-1], (ByCity('Lyon'), UnitSystem.IMPERIAL))
        self.assertEqual(self.session.result.unit, UnitSystem.IMPERIAL)
        self.assertEqual(self.session.conditions.temperature, 65.1)

    def test_toggle_after_city_failure_does_not_fetch(self):
        self.provider.responder = lambda target, unit: Failure(ErrorKind.NOT_FOUND, target)
        self.session.submit_city('Nowhereville')

        self.assertFalse(self.session.toggle_unit())
        self.assertEqual(len(self.provider.calls), 1)

    def test_stale_settlement_is_discarded(self):
        def responder(target, unit):
            if target == ByCity('Paris'):
                # A second query starts and settles before Paris returns.
                self.session.submit_city('Rome')
            return make_success(target, unit)

        self.provider.responder = responder
        recorder = StateRecorder(self.session)

        self.session.submit_city('Paris')

        self.assertEqual(self.session.conditions.name, 'Rome')
        self.assertFalse(self.session.loading)
        self.assertEqual(self.session.snapshot.generation, 2)
        self.assertEqual(recorder.loading, [True, True, False])

    def test_start_with_granted_location(self):
        issued = self.session.start(lambda: (48.85, 2.35))

        self.assertTrue(issued)
        self.assertEqual(self.provider.calls, [(ByCoordinates(48.85, 2.35), UnitSystem.METRIC)])

    def test_start_with_denied_location(self):
        def locate():
            raise GeolocationUnavailable('permission denied')

        self.assertFalse(self.session.start(locate))
        self.assertFalse(self.session.start(lambda: None))
        self.assertFalse(self.session.start())
        self.assertEqual(self.provider.calls, [])
        self.assertIsInstance(self.session.state, Idle)

    def test_geolocation_denied_changes_nothing(self):
        self.session.submit_city('Paris')
        state = self.session.state

        self.session.geolocation_denied()

        self.assertIs(self.session.state, state)
        self.assertEqual(len(self.provider.calls), 1)

    def test_restores_from_snapshot(self):
        success = make_success(ByCity('Oslo'), UnitSystem.IMPERIAL)
        snapshot = SessionSnapshot(unit=UnitSystem.IMPERIAL, state=success, generation=4)

        session = WeatherSession(self.provider, snapshot=snapshot)
        session.submit_city('Bergen')

        self.assertEqual(self.provider.calls, [(ByCity('Bergen'), UnitSystem.IMPERIAL)])
        self.assertEqual(session.snapshot.generation, 5)

    def test_unexpected_client_error_does_not_leave_loading(self):
        self.session.submit_city('Paris')

        def responder(target, unit):
            raise RuntimeError('boom')

        self.provider.responder = responder

        with self.assertRaises(RuntimeError):
            self.session.submit_city('Rome')

        self.assertFalse(self.session.loading)
        self.assertEqual(self.session.conditions.name, 'Paris')

    def test_generations_come_from_shared_counter(self):
        issued = iter([7, 9])
        session = WeatherSession(self.provider, generations=lambda: next(issued))

        session.submit_city('Paris')
        self.assertEqual(session.snapshot.generation, 7)

        session.toggle_unit()
        self.assertEqual(session.snapshot.generation, 9)

    def test_toggle_without_result_starts_new_generation(self):
        self.session.toggle_unit()

        self.assertEqual(self.session.snapshot.generation, 1)
