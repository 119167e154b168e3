import sys
from pathlib import Path

import pytest

# Ensure the backend package root is on sys.path for direct pytest runs
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from services.favorites_store import FavoritesStore  # noqa: E402
from services.map_state import Camera, MapState  # noqa: E402
from storage.record_store import SQLiteRecordStore  # noqa: E402


@pytest.fixture
def record_store(tmp_path):
    return SQLiteRecordStore(str(tmp_path / "favorites.sqlite"))


@pytest.fixture
def favorites(record_store):
    return FavoritesStore(record_store=record_store, storage_key="favorites-storage")


@pytest.fixture
def map_state(favorites):
    return MapState(favorites, camera=Camera(home=(-18.9186, -48.2772), default_zoom=13), focus_zoom=16)
