"""Forward and reverse geocoding helpers using OpenStreetMap Nominatim.

Requests share one session, a global rate limit and the configured
User-Agent. Reverse lookups are cached in SQLite since map clicks tend
to revisit the same spots.
"""

from __future__ import annotations

import json
import os
import re
import sqlite3
import threading
import time
import logging
from typing import Any, Dict, List, Optional

import requests

from domain.errors import NetworkError
from domain.models import GeocodeHit, ReverseResult
from settings import settings

NOMINATIM_BASE_URL = os.getenv("NOMINATIM_BASE_URL", "https://nominatim.openstreetmap.org").rstrip("/")
logger = logging.getLogger(__name__)
_session = requests.Session()
_last_request_ts: float = 0.0
_lock = threading.Lock()
_MIN_INTERVAL_SEC = float(os.getenv("NOMINATIM_MIN_INTERVAL", "1.1"))
_logged_ua = False
NOMINATIM_USER_AGENT = os.getenv("NOMINATIM_USER_AGENT")
NOMINATIM_REFERER = os.getenv("NOMINATIM_REFERER")
NOMINATIM_CACHE_PATH = os.getenv("NOMINATIM_CACHE_PATH")
if not NOMINATIM_CACHE_PATH:
    NOMINATIM_CACHE_PATH = os.path.join(os.path.dirname(__file__), "..", "data", "geocode_cache.sqlite")
NOMINATIM_CACHE_TTL_SECONDS = int(os.getenv("NOMINATIM_CACHE_TTL_SECONDS", str(30 * 24 * 3600)))

FALLBACK_UA = "pin-favorites/0.1 (contact: example@example.com)"
if NOMINATIM_USER_AGENT is None:
    logger.warning(
        "NOMINATIM_USER_AGENT not set in environment; using fallback UA. "
        "This may violate Nominatim usage policy."
    )

def _redact_email(ua: str) -> str:
    if "@" not in ua:
        return ua
    return re.sub(r"\S+@\S+", "<redacted>", ua)

_ua_value = NOMINATIM_USER_AGENT or FALLBACK_UA
NOMINATIM_HEADERS = {
    "User-Agent": _ua_value,
}
if NOMINATIM_REFERER:
    NOMINATIM_HEADERS["Referer"] = NOMINATIM_REFERER

_CACHE_DB_LOCK = threading.Lock()
_CACHE_DB: Optional[sqlite3.Connection] = None

_BOILERPLATE_TOKENS = {
    "brasil", "brazil", "united states", "usa", "região geográfica intermediária",
    "região geográfica imediata", "região sudeste", "região sul", "região nordeste",
    "região norte", "região centro-oeste",
}


def _round_coord(value: float, decimals: int = 5) -> float:
    """Round coordinates before caching / lookup (~1 m) to limit request diversity."""
    return round(value, decimals)


def _throttled_get(
    url: str,
    *,
    params: dict[str, Any],
    headers: dict[str, str],
    timeout: float,
) -> requests.Response:
    """Perform a GET request with a simple global rate limit."""
    global _last_request_ts
    with _lock:
        now = time.time()
        delta = now - _last_request_ts
        if delta < _MIN_INTERVAL_SEC:
            time.sleep(_MIN_INTERVAL_SEC - delta)
        _last_request_ts = time.time()
    return _session.get(url, params=params, headers=headers, timeout=timeout)


def _log_user_agent_once() -> None:
    global _logged_ua
    if not _logged_ua:
        logger.debug("Nominatim User-Agent: %s", _redact_email(_ua_value))
        _logged_ua = True


def _get_json(path: str, params: dict[str, Any]) -> Any:
    """GET a Nominatim endpoint and decode JSON, mapping every failure to NetworkError."""
    _log_user_agent_once()
    url = f"{NOMINATIM_BASE_URL}/{path}"
    try:
        resp = _throttled_get(
            url, params=params, headers=NOMINATIM_HEADERS, timeout=settings.HTTP_TIMEOUT_SECONDS
        )
        resp.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("Nominatim %s request failed: %s", path, exc)
        raise NetworkError(f"Geocoding service unavailable: {exc}") from exc
    try:
        return resp.json()
    except ValueError as exc:
        logger.warning("Nominatim %s JSON error: %s", path, exc)
        raise NetworkError("Geocoding service returned an invalid response") from exc


def _get_geocode_db() -> sqlite3.Connection:
    """Lazily open the geocode cache DB and ensure schema exists."""
    global _CACHE_DB
    with _CACHE_DB_LOCK:
        if _CACHE_DB is None:
            os.makedirs(os.path.dirname(NOMINATIM_CACHE_PATH), exist_ok=True)
            _CACHE_DB = sqlite3.connect(NOMINATIM_CACHE_PATH, check_same_thread=False)
            _CACHE_DB.execute(
                """
                CREATE TABLE IF NOT EXISTS reverse_geocodes (
                    lat REAL NOT NULL,
                    lon REAL NOT NULL,
                    fetched_at INTEGER NOT NULL,
                    name TEXT NOT NULL,
                    address_json TEXT,
                    PRIMARY KEY (lat, lon)
                )
                """
            )
            _CACHE_DB.commit()
        return _CACHE_DB


def _get_reverse_from_cache(lat: float, lon: float) -> Optional[ReverseResult]:
    """Lookup reverse result in SQLite cache respecting TTL."""
    try:
        db = _get_geocode_db()
        with _CACHE_DB_LOCK:
            row = db.execute(
                "SELECT fetched_at, name, address_json FROM reverse_geocodes WHERE lat=? AND lon=?",
                (lat, lon),
            ).fetchone()
        if not row:
            logger.debug("reverse cache miss %s,%s", lat, lon)
            return None
        fetched_at, name, address_json = row
        if NOMINATIM_CACHE_TTL_SECONDS > 0:
            age = time.time() - (fetched_at or 0)
            if age > NOMINATIM_CACHE_TTL_SECONDS:
                logger.debug("reverse cache expired %s,%s", lat, lon)
                return None
        logger.debug("reverse cache hit %s,%s", lat, lon)
        address = json.loads(address_json) if address_json else {}
        return ReverseResult(name=name, address=address)
    except (sqlite3.Error, ValueError) as exc:
        logger.warning("reverse cache read failed for %s,%s: %s", lat, lon, exc)
        return None


def _store_reverse_in_cache(lat: float, lon: float, result: ReverseResult) -> None:
    """Upsert reverse result into SQLite cache."""
    try:
        db = _get_geocode_db()
        with _CACHE_DB_LOCK:
            db.execute(
                "INSERT OR REPLACE INTO reverse_geocodes (lat, lon, fetched_at, name, address_json) VALUES (?, ?, ?, ?, ?)",
                (lat, lon, int(time.time()), result.name, json.dumps(result.address)),
            )
            db.commit()
    except sqlite3.Error as exc:
        logger.warning("reverse cache write failed for %s,%s: %s", lat, lon, exc)


def format_display_name(data: dict) -> Optional[str]:
    """
    Produce a short display name for a reverse-lookup payload.

    Rules:
    - Prefer a concrete 'name' (e.g. 'Parque do Sabiá').
    - Otherwise build 'road, house_number - city' from the address.
    - Otherwise trim boilerplate (country, regions, postcodes) off 'display_name'.
    - Keep it short (< 60 chars); truncate with '…' if necessary.
    """
    name = (data.get("name") or "").strip()
    if name:
        return name if len(name) <= 60 else name[:57] + "…"

    address = data.get("address") or {}
    if isinstance(address, dict):
        parts = []
        road = address.get("road") or address.get("pedestrian") or address.get("street")
        if road:
            number = address.get("house_number")
            parts.append(f"{road}, {number}" if number else str(road))
        city = address.get("city") or address.get("town") or address.get("village")
        if city:
            parts.append(str(city))
        if parts:
            result_str = " - ".join(parts)
            return result_str if len(result_str) <= 60 else result_str[:57] + "…"

    display_name = data.get("display_name") or ""
    if display_name:
        filtered = []
        for part in (p.strip() for p in display_name.split(",")):
            if not part or part.lower() in _BOILERPLATE_TOKENS:
                continue
            # Skip CEP / ZIP codes
            if re.match(r"^\d{5}-?\d{3,4}$", part):
                continue
            filtered.append(part)
        result_str = ", ".join(filtered[:3])
        if result_str:
            return result_str if len(result_str) <= 60 else result_str[:57] + "…"
    return None


def _address_fields(address: Any) -> Dict[str, str]:
    if not isinstance(address, dict):
        return {}
    return {str(k): str(v) for k, v in address.items() if v is not None}


def forward_geocode(text: str, limit: int = 1) -> List[GeocodeHit]:
    """
    Search Nominatim for free text.

    Returns the provider's hits unchanged apart from wrapping; lat/lon keep
    whatever type the provider used. An empty query returns [].

    Raises:
        NetworkError: transport failure, non-2xx status or undecodable body.
    """
    query = (text or "").strip()
    if not query:
        return []
    data = _get_json("search", {"q": query, "format": "json", "limit": str(limit)})
    if not isinstance(data, list):
        raise NetworkError("Geocoding service returned an unexpected payload")
    hits = []
    for item in data:
        if not isinstance(item, dict):
            continue
        hits.append(
            GeocodeHit(
                lat=item.get("lat"),
                lon=item.get("lon"),
                display_name=item.get("display_name") or "",
                raw=item,
            )
        )
    logger.debug("forward_geocode %r -> %d hits", query, len(hits))
    return hits


def reverse_geocode(lat: float, lon: float) -> Optional[ReverseResult]:
    """
    Reverse geocode a coordinate into a ReverseResult using Nominatim.

    Returns None when Nominatim has no place there. Results are cached and
    inputs rounded to avoid hammering the upstream service.

    Raises:
        NetworkError: transport failure, non-2xx status or undecodable body.
    """
    lat_r = _round_coord(lat)
    lon_r = _round_coord(lon)

    cached = _get_reverse_from_cache(lat_r, lon_r)
    if cached:
        return cached

    params = {
        "format": "jsonv2",
        "lat": str(lat_r),
        "lon": str(lon_r),
        "addressdetails": "1",
    }
    data = _get_json("reverse", params)
    if not isinstance(data, dict) or data.get("error"):
        return None

    name = format_display_name(data)
    if not name:
        return None
    result = ReverseResult(name=name, address=_address_fields(data.get("address")))
    _store_reverse_in_cache(lat_r, lon_r, result)
    return result
