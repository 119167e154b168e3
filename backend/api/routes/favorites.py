"""
Favorites API routes.

Backs the favorites list: listing, focusing a saved place and removing it.
"""
from typing import List

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from api.session import get_map_state, get_orchestrator
from services.categories import resolve_category

router = APIRouter()


class FavoriteResponse(BaseModel):
    id: int
    lat: float
    lng: float
    name: str
    category: str
    category_label: str
    color: str
    icon: str


def favorite_to_response(place) -> FavoriteResponse:
    category = resolve_category(place.category)
    return FavoriteResponse(
        id=place.id,
        lat=place.lat,
        lng=place.lng,
        name=place.name,
        category=category.id,
        category_label=category.label,
        color=category.color,
        icon=category.icon,
    )


@router.get("", response_model=List[FavoriteResponse])
async def list_favorites():
    """List saved places in insertion order."""
    return [favorite_to_response(p) for p in get_map_state().favorites.list()]


@router.post("/{place_id}/focus", response_model=FavoriteResponse)
async def focus_favorite(place_id: int):
    """Center the map on a saved place and select it."""
    place = get_orchestrator().focus_favorite(place_id)
    if place is None:
        raise HTTPException(status_code=404, detail="Favorite not found")
    return favorite_to_response(place)


@router.delete("/{place_id}")
async def delete_favorite(place_id: int, reset_camera: bool = True):
    """
    Remove a saved place. Removing an unknown id is not an error.

    From the list the camera goes back home; the marker popup passes
    reset_camera=false to leave it where it is.
    """
    removed = get_map_state().remove_favorite(place_id, reset_camera=reset_camera)
    return {"removed": removed is not None, "id": place_id}
