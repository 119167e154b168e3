"""
Map state container: favorites, the current selection and the camera.

All mutations go through the methods here; components receive the
container explicitly instead of reaching for a module-level global.
"""
from __future__ import annotations

from typing import Iterable, Optional, Tuple

from domain.errors import StorageError
from domain.models import CameraDirective, CameraState, Place, SelectionCandidate, Severity
from services.favorites_store import FavoritesStore
from services.notifications import NotificationCenter
from settings import settings


class SelectionState:
    """Single-slot register holding the current candidate (or None)."""

    def __init__(self) -> None:
        self._candidate: Optional[SelectionCandidate] = None

    @property
    def current(self) -> Optional[SelectionCandidate]:
        return self._candidate

    def select(
        self,
        lat: float,
        lng: float,
        name: Optional[str] = None,
        category: Optional[str] = None,
    ) -> SelectionCandidate:
        """Replace the candidate wholesale; nothing from the previous one is kept."""
        self._candidate = SelectionCandidate(lat=lat, lng=lng, name=name or "", category=category)
        return self._candidate

    def rename(self, name: str) -> Optional[SelectionCandidate]:
        """Overwrite the candidate's name, keeping its coordinates."""
        if self._candidate is None:
            return None
        self._candidate = SelectionCandidate(
            lat=self._candidate.lat,
            lng=self._candidate.lng,
            name=name,
            category=self._candidate.category,
        )
        return self._candidate

    def clear(self) -> None:
        self._candidate = None

    def is_saved(self, favorites: Iterable[Place]) -> bool:
        """True iff some favorite sits at exactly the candidate's coordinates.

        Exact float equality, no tolerance: a favorite re-selected from the
        list matches, a click a hair away does not.
        """
        if self._candidate is None:
            return False
        return find_favorite_at(favorites, self._candidate.lat, self._candidate.lng) is not None


def find_favorite_at(favorites: Iterable[Place], lat: float, lng: float) -> Optional[Place]:
    for place in favorites:
        if place.lat == lat and place.lng == lng:
            return place
    return None


class Camera:
    """Desired center/zoom. One-directional: state flows to the widget only."""

    def __init__(
        self,
        home: Optional[Tuple[float, float]] = None,
        default_zoom: Optional[int] = None,
        fly_duration: Optional[float] = None,
    ) -> None:
        self.home = home or (settings.MAP_HOME_LAT, settings.MAP_HOME_LNG)
        self.default_zoom = default_zoom if default_zoom is not None else settings.MAP_DEFAULT_ZOOM
        self.fly_duration = fly_duration if fly_duration is not None else settings.MAP_FLY_DURATION
        self._state = CameraState(center=self.home, zoom=self.default_zoom, revision=0)

    @property
    def state(self) -> CameraState:
        return self._state

    def center_on(self, lat: float, lng: float, zoom: Optional[int] = None) -> CameraState:
        self._state = CameraState(
            center=(lat, lng),
            zoom=zoom if zoom is not None else self.default_zoom,
            revision=self._state.revision + 1,
        )
        return self._state

    def reset(self) -> CameraState:
        return self.center_on(self.home[0], self.home[1], self.default_zoom)

    def directive(self) -> CameraDirective:
        return CameraDirective(
            center=self._state.center,
            zoom=self._state.zoom,
            duration=self.fly_duration,
            revision=self._state.revision,
        )


class MapState:
    """Process-wide register set shared by the orchestrator and the widget bridge."""

    def __init__(
        self,
        favorites: FavoritesStore,
        notifications: Optional[NotificationCenter] = None,
        selection: Optional[SelectionState] = None,
        camera: Optional[Camera] = None,
        focus_zoom: Optional[int] = None,
    ) -> None:
        self.favorites = favorites
        self.notifications = notifications or NotificationCenter()
        self.selection = selection or SelectionState()
        self.camera = camera or Camera()
        self.focus_zoom = focus_zoom if focus_zoom is not None else settings.MAP_FOCUS_ZOOM
        if self.favorites.on_storage_error is None and settings.STORAGE_WARNINGS_ENABLED:
            self.favorites.on_storage_error = self._warn_storage

    def _warn_storage(self, exc: StorageError) -> None:
        self.notifications.notify(
            Severity.WARNING,
            "Could not save favorites to disk; changes are kept for this session.",
            "storage-warning",
        )

    def is_selection_saved(self) -> bool:
        return self.selection.is_saved(self.favorites.list())

    def apply_result(self, lat: float, lng: float, name: str) -> None:
        """Set selection and camera together for a search hit."""
        self.selection.select(lat, lng, name)
        self.camera.center_on(lat, lng)

    def save_selection(self, name: str, category: Optional[str] = None) -> Optional[Place]:
        """
        Promote the current selection into the favorites store.

        The selection is cleared only after the store accepted the place, so
        the widget never renders a frame with neither marker.

        Raises:
            ValidationError: name is empty; favorites and selection untouched.
        """
        candidate = self.selection.current
        if candidate is None:
            return None
        place = self.favorites.add(
            candidate.lat,
            candidate.lng,
            name,
            category if category is not None else candidate.category,
        )
        self.selection.clear()
        self.notifications.notify(Severity.SUCCESS, "Place saved successfully!")
        return place

    def remove_favorite(self, place_id: int, reset_camera: bool = False) -> Optional[Place]:
        removed = self.favorites.remove(place_id)
        if removed is None:
            return None
        self.notifications.notify(Severity.SUCCESS, f'Place "{removed.name}" removed.')
        if reset_camera:
            self.camera.reset()
        return removed

    def focus_favorite(self, place_id: int) -> Optional[Place]:
        """Center on a saved place and make it the selection."""
        place = self.favorites.get(place_id)
        if place is None:
            return None
        self.selection.select(place.lat, place.lng, place.name, place.category)
        self.camera.center_on(place.lat, place.lng, self.focus_zoom)
        return place
