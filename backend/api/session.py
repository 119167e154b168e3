"""
Process-wide map session.

One MapState and one SearchOrchestrator per process, built lazily and
shared by all routes.
"""
from typing import Optional

from services.favorites_store import FavoritesStore
from services.gateway import GeocodeGateway
from services.map_state import MapState
from services.search_orchestrator import SearchOrchestrator

_state: Optional[MapState] = None
_orchestrator: Optional[SearchOrchestrator] = None


def init_session(
    favorites: Optional[FavoritesStore] = None,
    gateway: Optional[GeocodeGateway] = None,
) -> SearchOrchestrator:
    """(Re)build the session. Tests call this with a temp store and a stub gateway."""
    global _state, _orchestrator
    _state = MapState(favorites or FavoritesStore())
    _orchestrator = SearchOrchestrator(_state, gateway=gateway)
    return _orchestrator


def get_orchestrator() -> SearchOrchestrator:
    if _orchestrator is None:
        init_session()
    return _orchestrator


def get_map_state() -> MapState:
    return get_orchestrator().state
