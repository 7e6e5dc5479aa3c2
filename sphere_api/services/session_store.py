import logging
import pickle

from django.conf import settings
from django.core.cache import cache

from .query_session import SessionSnapshot

logger = logging.getLogger("weathersphere")


def _cache_key(session_key: str) -> str:
    return f"sphere:session:{session_key}"


def _generation_key(session_key: str) -> str:
    return f"sphere:generation:{session_key}"


def load_snapshot(session_key: str) -> SessionSnapshot:
    """
    Restores the per-client session state from the cache.
    A missing or unreadable entry starts a fresh Idle session.
    """
    cached = cache.get(_cache_key(session_key))
    if cached is None:
        return SessionSnapshot()

    try:
        snapshot = pickle.loads(cached)
    except (pickle.UnpicklingError, AttributeError, EOFError, ImportError) as e:
        logger.warning(
            "Discarding unreadable session state",
            extra={'event': 'session_state_invalid', 'error': str(e)}
        )
        return SessionSnapshot()

    if not isinstance(snapshot, SessionSnapshot):
        return SessionSnapshot()
    return snapshot


def next_generation(session_key: str) -> int:
    """
    Atomically takes the next query generation for a client.
    Shared by every request of that client, so overlapping requests never
    receive the same number.
    """
    key = _generation_key(session_key)
    cache.add(key, 0, timeout=settings.WEATHER_SESSION_TTL)
    try:
        return cache.incr(key)
    except ValueError:
        # Counter expired between add() and incr().
        cache.set(key, 1, timeout=settings.WEATHER_SESSION_TTL)
        return 1


def latest_generation(session_key: str) -> int:
    return cache.get(_generation_key(session_key), 0)


def save_snapshot(session_key: str, snapshot: SessionSnapshot) -> bool:
    """
    Stores the snapshot unless a newer query has started for the same client
    since it was taken. Returns False when the snapshot was dropped as stale.
    """
    latest = latest_generation(session_key)
    if snapshot.generation < latest:
        logger.info(
            "Dropping stale session state",
            extra={'event': 'stale_result', 'error': f"generation {snapshot.generation} < {latest}"}
        )
        return False

    cache.set(_cache_key(session_key), pickle.dumps(snapshot), timeout=settings.WEATHER_SESSION_TTL)
    return True
