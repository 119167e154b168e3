"""
Geocode gateway: the one object the search orchestrator talks to for
forward search, reverse lookup and postal-code resolution.
"""
from __future__ import annotations

from typing import List, Optional, Protocol

from domain.models import GeocodeHit, PostalAddress, ReverseResult
from services import geocoding, postal_codes


class GeocodeGateway(Protocol):
    def forward_geocode(self, text: str) -> List[GeocodeHit]: ...

    def reverse_geocode(self, lat: float, lon: float) -> Optional[ReverseResult]: ...

    def resolve_postal_code(self, code: str) -> PostalAddress: ...


class HttpGeocodeGateway:
    """Nominatim for places, BrasilAPI for CEPs. Calls block; run them off the event loop."""

    def __init__(self, postal_code_base_url: Optional[str] = None):
        self.postal_code_base_url = postal_code_base_url

    def forward_geocode(self, text: str) -> List[GeocodeHit]:
        return geocoding.forward_geocode(text, limit=1)

    def reverse_geocode(self, lat: float, lon: float) -> Optional[ReverseResult]:
        return geocoding.reverse_geocode(lat, lon)

    def resolve_postal_code(self, code: str) -> PostalAddress:
        return postal_codes.resolve_postal_code(code, base_url=self.postal_code_base_url)


_default_gateway: Optional[HttpGeocodeGateway] = None


def get_default_gateway() -> HttpGeocodeGateway:
    global _default_gateway
    if _default_gateway is None:
        _default_gateway = HttpGeocodeGateway()
    return _default_gateway
