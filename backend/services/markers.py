"""
Marker reconciliation.

Derives the marker set handed to the map widget from the saved favorites
and the current selection. Holds no state of its own.
"""
from __future__ import annotations

from typing import Iterable, List, Optional

from domain.models import Marker, MarkerKind, Place, Popup, PopupAction, SelectionCandidate
from services.categories import resolve_category
from services.map_state import find_favorite_at

CANDIDATE_COLOR = "#64748b"
CANDIDATE_ICON = "map-pin"
CANDIDATE_OPACITY = 0.8


def format_coords(lat: float, lng: float) -> str:
    return f"{lat:.4f}, {lng:.4f}"


def favorite_marker(place: Place) -> Marker:
    category = resolve_category(place.category)
    popup = Popup(
        title=place.name,
        subtitle=f"{category.label} • {format_coords(place.lat, place.lng)}",
        actions=[PopupAction(action="remove", label="Remove", place_id=place.id)],
    )
    return Marker(
        key=f"favorite-{place.id}",
        kind=MarkerKind.FAVORITE,
        lat=place.lat,
        lng=place.lng,
        color=category.color,
        icon=category.icon,
        opacity=1.0,
        popup=popup,
    )


def candidate_marker(candidate: SelectionCandidate) -> Marker:
    popup = Popup(
        title="Add to favorites",
        subtitle=format_coords(candidate.lat, candidate.lng),
        actions=[PopupAction(action="save", label="Save place")],
        suggested_name=candidate.name or None,
    )
    return Marker(
        key="candidate",
        kind=MarkerKind.CANDIDATE,
        lat=candidate.lat,
        lng=candidate.lng,
        color=CANDIDATE_COLOR,
        icon=CANDIDATE_ICON,
        opacity=CANDIDATE_OPACITY,
        popup=popup,
        open_popup=True,
    )


def reconcile_markers(
    favorites: Iterable[Place],
    selection: Optional[SelectionCandidate],
) -> List[Marker]:
    """
    One marker per favorite, plus a transient marker for the selection
    unless a favorite already sits at exactly the same coordinates.
    """
    places = list(favorites)
    markers = [favorite_marker(p) for p in places]
    if selection is not None and find_favorite_at(places, selection.lat, selection.lng) is None:
        markers.append(candidate_marker(selection))
    return markers
