"""
Map API routes.

The map widget polls /map/view for the camera directive, the reconciled
markers and notifications, and posts clicks, searches and saves here.
"""
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from api.routes.favorites import FavoriteResponse, favorite_to_response
from api.session import get_map_state, get_orchestrator
from domain.errors import ValidationError
from domain.models import Marker, SearchStatus, Severity
from services.categories import iter_categories
from services.markers import reconcile_markers

router = APIRouter()


class ClickRequest(BaseModel):
    lat: float
    lng: float


class SearchRequest(BaseModel):
    query: str


class SaveRequest(BaseModel):
    name: str
    category: Optional[str] = None


class CameraResponse(BaseModel):
    center: List[float]
    zoom: int
    duration: float
    revision: int


class PopupActionResponse(BaseModel):
    action: str
    label: str
    place_id: Optional[int] = None
    stop_propagation: bool = True


class PopupResponse(BaseModel):
    title: str
    subtitle: str
    actions: List[PopupActionResponse]
    suggested_name: Optional[str] = None


class MarkerResponse(BaseModel):
    key: str
    kind: str
    lat: float
    lng: float
    color: str
    icon: str
    opacity: float
    open_popup: bool
    popup: PopupResponse


class SelectionResponse(BaseModel):
    lat: float
    lng: float
    name: str
    category: Optional[str] = None
    saved: bool


class SearchStatusResponse(BaseModel):
    phase: str
    query: Optional[str] = None
    error: Optional[str] = None


class NotificationResponse(BaseModel):
    id: str
    severity: str
    message: str


class MapViewResponse(BaseModel):
    camera: CameraResponse
    markers: List[MarkerResponse]
    selection: Optional[SelectionResponse] = None
    search: SearchStatusResponse
    notifications: List[NotificationResponse]


class CategoryResponse(BaseModel):
    id: str
    label: str
    color: str
    icon: str


def marker_to_response(marker: Marker) -> MarkerResponse:
    return MarkerResponse(
        key=marker.key,
        kind=marker.kind.value,
        lat=marker.lat,
        lng=marker.lng,
        color=marker.color,
        icon=marker.icon,
        opacity=marker.opacity,
        open_popup=marker.open_popup,
        popup=PopupResponse(
            title=marker.popup.title,
            subtitle=marker.popup.subtitle,
            suggested_name=marker.popup.suggested_name,
            actions=[
                PopupActionResponse(
                    action=a.action,
                    label=a.label,
                    place_id=a.place_id,
                    stop_propagation=a.stop_propagation,
                )
                for a in marker.popup.actions
            ],
        ),
    )


def status_to_response(status: SearchStatus) -> SearchStatusResponse:
    return SearchStatusResponse(phase=status.phase.value, query=status.query, error=status.error)


def selection_to_response() -> Optional[SelectionResponse]:
    state = get_map_state()
    candidate = state.selection.current
    if candidate is None:
        return None
    return SelectionResponse(
        lat=candidate.lat,
        lng=candidate.lng,
        name=candidate.name,
        category=candidate.category,
        saved=state.is_selection_saved(),
    )


@router.get("/view", response_model=MapViewResponse)
async def map_view():
    """Everything the widget needs to draw the current frame."""
    orchestrator = get_orchestrator()
    state = orchestrator.state
    directive = state.camera.directive()
    markers = reconcile_markers(state.favorites.list(), state.selection.current)
    return MapViewResponse(
        camera=CameraResponse(**directive.to_dict()),
        markers=[marker_to_response(m) for m in markers],
        selection=selection_to_response(),
        search=status_to_response(orchestrator.status),
        notifications=[
            NotificationResponse(id=n.correlation_id, severity=n.severity.value, message=n.message)
            for n in state.notifications.list()
        ],
    )


@router.get("/categories", response_model=List[CategoryResponse])
async def list_categories():
    return [CategoryResponse(id=c.id, label=c.label, color=c.color, icon=c.icon) for c in iter_categories()]


@router.post("/click", response_model=SelectionResponse)
async def map_click(data: ClickRequest):
    """Select the clicked point right away; its name arrives with a later /view."""
    get_orchestrator().click(data.lat, data.lng)
    return selection_to_response()


@router.post("/search", response_model=SearchStatusResponse)
async def submit_search(data: SearchRequest):
    """Start a search and return immediately with the pending status."""
    orchestrator = get_orchestrator()
    orchestrator.submit(data.query)
    return status_to_response(orchestrator.status)


@router.post("/selection/save", response_model=FavoriteResponse)
async def save_selection(data: SaveRequest):
    state = get_map_state()
    try:
        place = state.save_selection(data.name, data.category)
    except ValidationError as exc:
        state.notifications.notify(Severity.ERROR, str(exc))
        raise HTTPException(status_code=422, detail=str(exc))
    if place is None:
        raise HTTPException(status_code=409, detail="Nothing is selected")
    return favorite_to_response(place)


@router.delete("/selection")
async def dismiss_selection():
    get_map_state().selection.clear()
    return {"selection": None}


@router.delete("/notifications/{notification_id}")
async def dismiss_notification(notification_id: str):
    return {"dismissed": get_map_state().notifications.dismiss(notification_id)}
