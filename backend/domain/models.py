"""
Core domain models for the favorites map.
These are framework-agnostic and can be used across all services.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Severity(str, Enum):
    """Severity of a user-facing notification."""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class SearchPhase(str, Enum):
    """
    Lifecycle of the most recent search or reverse lookup.

    IDLE -> PENDING -> RESOLVED | FAILED. A new submission while PENDING
    supersedes the previous one.
    """
    IDLE = "idle"
    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"


class MarkerKind(str, Enum):
    """Kind of marker handed to the map widget."""
    FAVORITE = "favorite"
    CANDIDATE = "candidate"


@dataclass(frozen=True)
class Place:
    """
    A saved favorite.

    The id is assigned by the favorites store and never changes; the other
    fields only change by removing and re-adding the place.
    """
    id: int
    lat: float
    lng: float
    name: str
    category: str = "general"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "lat": self.lat,
            "lng": self.lng,
            "name": self.name,
            "category": self.category,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Place":
        # Unknown keys are ignored so older builds can read newer records.
        name = str(data["name"])
        if not name.strip():
            raise ValueError("place name is empty")
        return cls(
            id=int(data["id"]),
            lat=float(data["lat"]),
            lng=float(data["lng"]),
            name=name,
            category=str(data.get("category") or "general"),
        )


@dataclass(frozen=True)
class SelectionCandidate:
    """The single location currently under consideration (not necessarily saved)."""
    lat: float
    lng: float
    name: str = ""
    category: Optional[str] = None

    @property
    def position(self) -> Tuple[float, float]:
        return (self.lat, self.lng)


@dataclass(frozen=True)
class CameraState:
    """Desired map center and zoom. Never read back from the widget."""
    center: Tuple[float, float]
    zoom: int
    revision: int = 0


@dataclass(frozen=True)
class CameraDirective:
    """Instruction for the rendering widget (fly to center at zoom)."""
    center: Tuple[float, float]
    zoom: int
    duration: float
    revision: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "center": list(self.center),
            "zoom": self.zoom,
            "duration": self.duration,
            "revision": self.revision,
        }


@dataclass(frozen=True)
class Category:
    """A category a favorite can be filed under, with its visual style."""
    id: str
    label: str
    color: str  # hex color used for the marker badge
    icon: str   # icon identifier understood by the widget


@dataclass
class PopupAction:
    """An affordance inside a marker popup."""
    action: str  # "remove" or "save"
    label: str
    place_id: Optional[int] = None
    stop_propagation: bool = True


@dataclass
class Popup:
    title: str
    subtitle: str
    actions: List[PopupAction] = field(default_factory=list)
    suggested_name: Optional[str] = None


@dataclass
class Marker:
    """One entry in the reconciled marker set."""
    key: str
    kind: MarkerKind
    lat: float
    lng: float
    color: str
    icon: str
    opacity: float
    popup: Popup
    open_popup: bool = False


@dataclass
class Notification:
    """A user-facing notification, keyed by correlation id."""
    correlation_id: str
    severity: Severity
    message: str


@dataclass(frozen=True)
class GeocodeHit:
    """One forward geocoding result as returned by the provider (lat/lon may be strings)."""
    lat: Any
    lon: Any
    display_name: str
    raw: Optional[dict] = None


@dataclass(frozen=True)
class ReverseResult:
    """Reverse lookup result: a display name plus structured address fields."""
    name: str
    address: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PostalAddress:
    """Street address resolved from a postal code (CEP)."""
    street: str = ""
    neighborhood: str = ""
    city: str = ""
    state: str = ""

    def to_query(self) -> str:
        """Compose a free-text address suitable for forward geocoding."""
        head = ", ".join(p for p in (self.street, self.neighborhood, self.city) if p)
        if self.state:
            return f"{head} - {self.state}" if head else self.state
        return head


@dataclass
class SearchStatus:
    """Snapshot of the orchestrator's lifecycle state."""
    phase: SearchPhase = SearchPhase.IDLE
    query: Optional[str] = None
    sequence: int = 0
    results: List[GeocodeHit] = field(default_factory=list)
    error: Optional[str] = None
