"""
CEP (Brazilian postal code) recognition and resolution via BrasilAPI.
"""
from __future__ import annotations

import logging
import re
from typing import Optional

import requests

from domain.errors import NetworkError, PostalCodeError
from domain.models import PostalAddress
from settings import settings

logger = logging.getLogger(__name__)

_session = requests.Session()
_CEP_RE = re.compile(r"^\d{8}$")


def normalize_postal_code(text: str) -> str:
    """Strip every non-digit character: '01310-100' -> '01310100'."""
    return re.sub(r"\D", "", text or "")


def looks_like_postal_code(text: str) -> bool:
    """True when the input is eight digits once punctuation and spaces are dropped."""
    return bool(_CEP_RE.match(normalize_postal_code(text)))


def resolve_postal_code(code: str, base_url: Optional[str] = None) -> PostalAddress:
    """
    Resolve a CEP to its street address.

    Raises:
        PostalCodeError: the code is not 8 digits or BrasilAPI does not know it.
        NetworkError: BrasilAPI is unreachable or answered with a server error.
    """
    digits = normalize_postal_code(code)
    if not _CEP_RE.match(digits):
        raise PostalCodeError(f"Invalid postal code: {code!r}")

    url = f"{(base_url or settings.POSTAL_CODE_BASE_URL).rstrip('/')}/{digits}"
    try:
        resp = _session.get(url, timeout=settings.HTTP_TIMEOUT_SECONDS)
    except requests.RequestException as exc:
        logger.warning("postal code lookup failed for %s: %s", digits, exc)
        raise NetworkError(f"Postal code service unavailable: {exc}") from exc

    if resp.status_code in (400, 404):
        raise PostalCodeError(f"Postal code not found: {digits}")
    if not resp.ok:
        logger.warning("postal code lookup for %s returned HTTP %s", digits, resp.status_code)
        raise NetworkError(f"Postal code service returned HTTP {resp.status_code}")

    try:
        data = resp.json()
    except ValueError as exc:
        raise NetworkError("Postal code service returned an invalid response") from exc
    if not isinstance(data, dict):
        raise NetworkError("Postal code service returned an unexpected payload")

    address = PostalAddress(
        street=data.get("street") or "",
        neighborhood=data.get("neighborhood") or "",
        city=data.get("city") or "",
        state=data.get("state") or "",
    )
    if not address.to_query():
        raise PostalCodeError(f"Postal code has no address: {digits}")
    logger.debug("postal code %s -> %s", digits, address.to_query())
    return address
