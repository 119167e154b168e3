"""
Favorites store.

Keeps the ordered collection of saved places in memory and mirrors the
whole collection into one durable record after every change.
"""
from __future__ import annotations

import json
import logging
import time
from typing import Callable, List, Optional, Sequence

from domain.errors import StorageError, ValidationError
from domain.models import Place
from services.categories import normalize_category_id
from settings import settings
from storage.record_store import SQLiteRecordStore

logger = logging.getLogger(__name__)

RECORD_VERSION = 1


def _now_ms() -> int:
    return int(time.time() * 1000)


class FavoritesStore:
    """Ordered, durable collection of favorites.

    A missing or corrupt record loads as an empty collection. A failed
    write is logged (and reported to ``on_storage_error``) but never rolled
    back: the in-memory collection stays authoritative for the session.
    """

    def __init__(
        self,
        record_store: Optional[SQLiteRecordStore] = None,
        storage_key: Optional[str] = None,
        clock: Callable[[], int] = _now_ms,
        on_storage_error: Optional[Callable[[StorageError], None]] = None,
    ):
        self.record_store = record_store or SQLiteRecordStore(settings.FAVORITES_DB_PATH)
        self.storage_key = storage_key or settings.FAVORITES_STORAGE_KEY
        self.on_storage_error = on_storage_error
        self._clock = clock
        self._places: List[Place] = self._load()
        self._last_id = max((p.id for p in self._places), default=0)

    def _load(self) -> List[Place]:
        try:
            raw = self.record_store.read(self.storage_key)
        except StorageError as exc:
            logger.warning("favorites record unreadable, starting empty: %s", exc)
            return []
        if raw is None:
            return []
        try:
            payload = json.loads(raw)
        except (TypeError, ValueError) as exc:
            logger.warning("favorites record is corrupt, starting empty: %s", exc)
            return []

        items = payload.get("favorites") if isinstance(payload, dict) else payload
        if not isinstance(items, list):
            logger.warning("favorites record has unexpected shape, starting empty")
            return []

        places: List[Place] = []
        seen_ids = set()
        for item in items:
            try:
                place = Place.from_dict(item)
            except (KeyError, TypeError, ValueError):
                logger.warning("skipping malformed favorite entry: %r", item)
                continue
            if place.id in seen_ids:
                logger.warning("skipping favorite with duplicate id %s", place.id)
                continue
            seen_ids.add(place.id)
            places.append(place)
        return places

    def _persist(self) -> bool:
        payload = json.dumps(
            {"version": RECORD_VERSION, "favorites": [p.to_dict() for p in self._places]}
        )
        try:
            self.record_store.write(self.storage_key, payload)
        except StorageError as exc:
            logger.warning("failed to persist favorites: %s", exc)
            if self.on_storage_error:
                self.on_storage_error(exc)
            return False
        return True

    def _next_id(self) -> int:
        # Time-derived, bumped past the last id so rapid adds never collide.
        candidate = max(self._clock(), self._last_id + 1)
        self._last_id = candidate
        return candidate

    def add(self, lat: float, lng: float, name: str, category: Optional[str] = None) -> Place:
        """
        Save a new favorite and persist the collection.

        Args:
            lat, lng: Coordinates, stored exactly as given.
            name: Display name; surrounding whitespace is trimmed.
            category: Category id; unknown ids fall back to the default.

        Returns:
            The created Place with its freshly assigned id.

        Raises:
            ValidationError: name is empty after trimming.
        """
        clean_name = (name or "").strip()
        if not clean_name:
            raise ValidationError("Place name cannot be empty.")
        place = Place(
            id=self._next_id(),
            lat=float(lat),
            lng=float(lng),
            name=clean_name,
            category=normalize_category_id(category),
        )
        self._places.append(place)
        self._persist()
        logger.info("saved favorite %s (%s) at %s,%s", place.id, place.name, place.lat, place.lng)
        return place

    def remove(self, place_id: int) -> Optional[Place]:
        """Remove a favorite by id. Unknown ids are a no-op and return None."""
        for idx, place in enumerate(self._places):
            if place.id == place_id:
                del self._places[idx]
                self._persist()
                logger.info("removed favorite %s (%s)", place.id, place.name)
                return place
        return None

    def get(self, place_id: int) -> Optional[Place]:
        for place in self._places:
            if place.id == place_id:
                return place
        return None

    def list(self) -> Sequence[Place]:
        """Read-only snapshot in insertion order."""
        return tuple(self._places)

    def __len__(self) -> int:
        return len(self._places)
