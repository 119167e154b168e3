import pytest

from domain.errors import StorageError, ValidationError
from domain.models import Severity
from services.favorites_store import FavoritesStore
from services.map_state import Camera, MapState, SelectionState


def test_select_replaces_candidate_wholesale():
    selection = SelectionState()
    selection.select(1.0, 2.0, "First", "food")
    selection.select(3.0, 4.0)
    current = selection.current
    assert (current.lat, current.lng, current.name, current.category) == (3.0, 4.0, "", None)


def test_clear_empties_the_slot():
    selection = SelectionState()
    selection.select(1.0, 2.0, "X")
    selection.clear()
    assert selection.current is None
    assert selection.is_saved([]) is False


def test_rename_keeps_coordinates():
    selection = SelectionState()
    selection.select(-18.9, -48.2, "Loading...")
    selection.rename("Praça Tubal Vilela")
    assert selection.current.position == (-18.9, -48.2)
    assert selection.current.name == "Praça Tubal Vilela"


def test_is_saved_after_saving_and_reselecting_same_point(map_state):
    map_state.selection.select(10.0, 20.0, "X")
    map_state.save_selection("X")

    map_state.selection.select(10.0, 20.0, "again")

    assert map_state.is_selection_saved() is True


def test_is_saved_uses_exact_equality(map_state):
    # Known limitation: a point one ulp away is treated as a different place.
    map_state.favorites.add(0.1 + 0.2, 20.0, "Float")
    map_state.selection.select(0.3, 20.0)
    assert map_state.is_selection_saved() is False


class TestSaveSelection:
    def test_save_adds_favorite_then_clears_selection(self, map_state):
        map_state.selection.select(-18.91, -48.27, "Search hit", "food")

        place = map_state.save_selection("Lunch spot")

        assert place.name == "Lunch spot"
        assert place.category == "food"
        assert (place.lat, place.lng) == (-18.91, -48.27)
        assert map_state.selection.current is None
        assert map_state.favorites.list() == (place,)
        assert map_state.notifications.list()[-1].severity == Severity.SUCCESS

    def test_explicit_category_wins_over_pending_one(self, map_state):
        map_state.selection.select(1.0, 1.0, "x", "food")
        assert map_state.save_selection("Office", "work").category == "work"

    def test_blank_name_leaves_everything_unchanged(self, map_state):
        map_state.selection.select(1.0, 2.0, "Candidate")
        with pytest.raises(ValidationError):
            map_state.save_selection("   ")
        assert map_state.favorites.list() == ()
        assert map_state.selection.current.name == "Candidate"

    def test_save_without_selection_returns_none(self, map_state):
        assert map_state.save_selection("Nothing") is None
        assert map_state.favorites.list() == ()

    def test_storage_failure_warns_but_keeps_place(self):
        class Broken:
            def read(self, key):
                raise StorageError("locked")

            def write(self, key, payload):
                raise StorageError("locked")

        state = MapState(FavoritesStore(record_store=Broken()))
        state.selection.select(1.0, 2.0)

        place = state.save_selection("Still here")

        assert state.favorites.list() == (place,)
        warning = state.notifications.get("storage-warning")
        assert warning is not None
        assert warning.severity == Severity.WARNING


class TestCamera:
    def test_defaults_to_home(self):
        camera = Camera(home=(-18.9186, -48.2772), default_zoom=13, fly_duration=1.2)
        directive = camera.directive()
        assert directive.center == (-18.9186, -48.2772)
        assert directive.zoom == 13
        assert directive.duration == 1.2
        assert directive.revision == 0

    def test_each_move_bumps_revision(self):
        camera = Camera(home=(0.0, 0.0), default_zoom=13)
        camera.center_on(1.0, 1.0)
        camera.center_on(1.0, 1.0)
        assert camera.state.revision == 2
        assert camera.state.zoom == 13

    def test_focus_favorite_uses_focus_zoom(self, map_state):
        place = map_state.favorites.add(-18.92, -48.28, "Home", "home")

        assert map_state.focus_favorite(place.id) == place

        assert map_state.camera.state.center == (-18.92, -48.28)
        assert map_state.camera.state.zoom == 16
        assert map_state.selection.current.name == "Home"
        assert map_state.is_selection_saved() is True

    def test_focus_unknown_favorite_changes_nothing(self, map_state):
        before = map_state.camera.state
        assert map_state.focus_favorite(12345) is None
        assert map_state.camera.state == before
        assert map_state.selection.current is None

    def test_remove_from_list_resets_camera_home(self, map_state):
        place = map_state.favorites.add(1.0, 1.0, "Far away")
        map_state.focus_favorite(place.id)

        removed = map_state.remove_favorite(place.id, reset_camera=True)

        assert removed == place
        assert map_state.camera.state.center == (-18.9186, -48.2772)
        assert map_state.camera.state.zoom == 13
        assert map_state.notifications.list()[-1].message == 'Place "Far away" removed.'

    def test_remove_from_popup_keeps_camera(self, map_state):
        place = map_state.favorites.add(1.0, 1.0, "Pin")
        map_state.camera.center_on(5.0, 5.0)
        map_state.remove_favorite(place.id)
        assert map_state.camera.state.center == (5.0, 5.0)

    def test_removing_unknown_id_leaves_camera_and_notifications_alone(self, map_state):
        map_state.camera.center_on(5.0, 5.0, 16)
        before = map_state.camera.state

        assert map_state.remove_favorite(12345, reset_camera=True) is None

        assert map_state.camera.state == before
        assert map_state.notifications.list() == []
