import logging
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional, Tuple

from ..entities import (
    ByCity,
    CurrentConditions,
    Failure,
    ForecastEntry,
    Idle,
    Loading,
    QueryOrigin,
    QueryResult,
    QueryTarget,
    SessionState,
    Success,
    UnitSystem,
)
from .location_resolver import LocationResolver

logger = logging.getLogger("weathersphere")


@dataclass
class SessionSnapshot:
    """Everything a WeatherSession owns besides its client; safe to pickle."""
    unit: UnitSystem = UnitSystem.METRIC
    state: SessionState = field(default_factory=Idle)
    generation: int = 0


class WeatherSession:
    """
    Explicit Idle -> Loading -> Success | Failure state machine for one client.

    Every query takes a new generation number. A settlement that belongs to an
    older generation than the latest started query is discarded, so a slow
    response can never overwrite a newer one. `generations` hands out those
    numbers; pass a shared counter when several sessions restore the same
    snapshot, e.g. one per HTTP request.
    """

    def __init__(self, client, snapshot: SessionSnapshot = None, resolver: LocationResolver = None,
                 generations: Callable[[], int] = None):
        self.client = client
        self._generations = generations
        self.resolver = resolver or LocationResolver()
        self._snapshot = snapshot or SessionSnapshot()
        self._listeners: List[Callable[["WeatherSession"], None]] = []
        # Success on display before the current query; coordinate failures keep it.
        self._visible: Optional[Success] = self._visible_success(self._snapshot.state)

    # Outbound state -----------------------------------------------------

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    @property
    def state(self) -> SessionState:
        return self._snapshot.state

    @property
    def unit(self) -> UnitSystem:
        return self._snapshot.unit

    @property
    def loading(self) -> bool:
        return isinstance(self._snapshot.state, Loading)

    @property
    def error(self) -> Optional[Failure]:
        state = self._snapshot.state
        return state if isinstance(state, Failure) else None

    @property
    def result(self) -> Optional[Success]:
        """The success currently on display, if any."""
        return self._visible_success(self._snapshot.state)

    @property
    def conditions(self) -> Optional[CurrentConditions]:
        result = self.result
        return result.current if result else None

    @property
    def forecast(self) -> Tuple[ForecastEntry, ...]:
        result = self.result
        return result.forecast if result else ()

    def subscribe(self, listener: Callable[["WeatherSession"], None]) -> None:
        self._listeners.append(listener)

    # Inbound events -----------------------------------------------------

    def start(self, locate=None) -> bool:
        """
        Startup hook for hosts that can locate the device themselves: one
        geolocation attempt, querying by coordinates if granted. The HTTP views
        never call it; browsers post their coordinates to `geolocation_result`.
        """
        if locate is None:
            return False
        target = self.resolver.from_device(locate)
        if target is None:
            return False
        self.fetch(target)
        return True

    def submit_city(self, name: Optional[str]) -> bool:
        target = self.resolver.from_text(name)
        if target is None:
            logger.debug(
                "Ignoring empty city submission",
                extra={'event': 'city_submit_ignored'}
            )
            return False
        self.fetch(target)
        return True

    def geolocation_result(self, latitude, longitude) -> None:
        self.fetch(self.resolver.from_coordinates(latitude, longitude))

    def geolocation_denied(self) -> None:
        logger.info(
            "Location access denied",
            extra={'event': 'geolocation_denied'}
        )

    def toggle_unit(self) -> bool:
        """Flips the unit system and re-queries the displayed city, if there is one."""
        self._snapshot.unit = self._snapshot.unit.toggled()
        logger.info(
            "Unit system toggled",
            extra={'event': 'unit_toggle', 'units': self._snapshot.unit.value}
        )

        displayed = self.result
        if displayed is None:
            # Still a new event: results of queries started before it are stale.
            self._snapshot.generation = self._next_generation()
            self._publish()
            return False

        self.fetch(ByCity(displayed.current.name))
        return True

    # Query lifecycle ----------------------------------------------------

    def fetch(self, target: QueryTarget) -> None:
        generation = self._begin(target)
        try:
            result = self.client.fetch_weather(target, self._snapshot.unit)
        except Exception:
            # Never leave the session stuck in Loading.
            if generation == self._snapshot.generation:
                self._snapshot.state = self._visible or Idle()
                self._publish()
            raise
        self._settle(generation, result)

    def _begin(self, target: QueryTarget) -> int:
        if not isinstance(self._snapshot.state, Loading):
            self._visible = self.result
        self._snapshot.generation = self._next_generation()
        self._snapshot.state = Loading(target=target, unit=self._snapshot.unit)
        logger.info(
            "Weather query started",
            extra={'event': 'query_start', 'city': str(target), 'origin': target.origin.value,
                   'units': self._snapshot.unit.value}
        )
        self._publish()
        return self._snapshot.generation

    def _settle(self, generation: int, result: QueryResult) -> None:
        if generation != self._snapshot.generation:
            logger.info(
                "Discarding stale weather result",
                extra={'event': 'stale_result', 'city': str(result.target),
                       'origin': result.target.origin.value}
            )
            return

        if isinstance(result, Failure) and result.origin is QueryOrigin.COORDINATES:
            result = replace(result, retained=self._visible)

        self._snapshot.state = result
        self._visible = self._visible_success(result)
        self._publish()

    def _next_generation(self) -> int:
        if self._generations is not None:
            return self._generations()
        return self._snapshot.generation + 1

    def _publish(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    @staticmethod
    def _visible_success(state: SessionState) -> Optional[Success]:
        if isinstance(state, Success):
            return state
        if isinstance(state, Failure):
            return state.retained
        return None
