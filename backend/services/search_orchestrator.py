"""
Search orchestration.

Drives one forward search or reverse lookup at a time. Every submission
(search or map click) takes a new sequence number; a continuation only
touches the selection/camera when its number is still the latest, so a
slow earlier response can never overwrite a newer one. In-flight HTTP
calls are not cancelled, their results are just ignored. The one exception
is the name of a clicked point: it is still filled in as long as the
loading placeholder is the current selection, so a later search that finds
nothing does not leave the pin named "Loading...".

The blocking gateway calls run in a worker thread; all state mutation
happens back on the event loop.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Coroutine, List, Optional, Set

from domain.errors import MapStateError, NetworkError, NotFoundError, PostalCodeError
from domain.models import GeocodeHit, Place, SearchPhase, SearchStatus, SelectionCandidate, Severity
from services.gateway import GeocodeGateway, get_default_gateway
from services.map_state import MapState
from services.postal_codes import looks_like_postal_code, normalize_postal_code
from settings import settings

logger = logging.getLogger(__name__)

SEARCH_TOAST_ID = "search-toast"

LOADING_NAME = "Loading..."
UNKNOWN_PLACE_NAME = "Unknown place"
LOOKUP_FAILED_NAME = "Address unavailable"

MSG_SEARCHING = "Searching..."
MSG_FOUND = "Place found!"
MSG_NOT_FOUND = "Place not found."
MSG_BLANK_QUERY = "Type an address to search."
MSG_SEARCH_ERROR = "Error while searching for the place. Try again."
MSG_POSTAL_ERROR = "Postal code not found or invalid."
MSG_PARSE_ERROR = "The search returned invalid coordinates."
MSG_REVERSE_ERROR = "Could not look up this address."

Runner = Callable[..., Awaitable[Any]]


class SearchOrchestrator:
    def __init__(
        self,
        state: MapState,
        gateway: Optional[GeocodeGateway] = None,
        retries: Optional[int] = None,
        runner: Optional[Runner] = None,
    ):
        self.state = state
        self.gateway = gateway or get_default_gateway()
        self.retries = settings.SEARCH_RETRIES if retries is None else max(0, retries)
        self._run_blocking: Runner = runner or asyncio.to_thread
        self._sequence = 0
        self._tasks: Set["asyncio.Task[None]"] = set()
        self.status = SearchStatus()

    # ---- lifecycle helpers -------------------------------------------------

    def _notify(self, severity: Severity, message: str) -> None:
        self.state.notifications.notify(severity, message, SEARCH_TOAST_ID)

    def _begin(self, query: str) -> int:
        self._sequence += 1
        self.status = SearchStatus(phase=SearchPhase.PENDING, query=query, sequence=self._sequence)
        self._notify(Severity.INFO, MSG_SEARCHING)
        return self._sequence

    def _is_current(self, seq: int) -> bool:
        if seq != self._sequence:
            logger.debug("discarding stale response #%s (latest is #%s)", seq, self._sequence)
            return False
        return True

    def _resolve(self, seq: int, results: List[GeocodeHit]) -> None:
        self.status = SearchStatus(
            phase=SearchPhase.RESOLVED, query=self.status.query, sequence=seq, results=results
        )

    def _fail(self, seq: int, message: str, exc: Optional[BaseException] = None) -> None:
        self.status = SearchStatus(
            phase=SearchPhase.FAILED,
            query=self.status.query,
            sequence=seq,
            error=type(exc).__name__ if exc else message,
        )
        self._notify(Severity.ERROR, message)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> "asyncio.Task[None]":
        # The loop only keeps weak references to tasks.
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    @property
    def is_pending(self) -> bool:
        return self.status.phase == SearchPhase.PENDING

    def supersede(self) -> None:
        """Invalidate whatever is in flight without starting anything new."""
        self._sequence += 1
        if self.is_pending:
            self.status = SearchStatus(sequence=self._sequence)
            self.state.notifications.dismiss(SEARCH_TOAST_ID)

    # ---- forward search ----------------------------------------------------

    def _lookup(self, query: str) -> List[GeocodeHit]:
        """Blocking resolution path: CEP -> address -> geocode, or geocode directly."""
        attempts = self.retries + 1
        for attempt in range(1, attempts + 1):
            try:
                if looks_like_postal_code(query):
                    address = self.gateway.resolve_postal_code(normalize_postal_code(query))
                    hits = self.gateway.forward_geocode(address.to_query())
                else:
                    hits = self.gateway.forward_geocode(query)
                break
            except NetworkError as exc:
                if attempt >= attempts:
                    raise
                logger.info("search %r failed (%s), retrying %d/%d", query, exc, attempt, self.retries)
        if not hits:
            raise NotFoundError(query)
        return hits

    def submit(self, query: str) -> Optional["asyncio.Task[None]"]:
        """
        Start a search. Must be called from the running event loop.

        Returns the task driving the request, or None for a blank query
        (which only produces a warning).
        """
        text = (query or "").strip()
        if not text:
            self.state.notifications.notify(Severity.WARNING, MSG_BLANK_QUERY)
            return None
        seq = self._begin(text)
        return self._spawn(self._run_search(seq, text))

    async def search(self, query: str) -> SearchStatus:
        """Submit and wait for completion."""
        task = self.submit(query)
        if task is not None:
            await task
        return self.status

    async def _run_search(self, seq: int, query: str) -> None:
        try:
            hits = await self._run_blocking(self._lookup, query)
        except NotFoundError:
            if self._is_current(seq):
                self._resolve(seq, [])
                self._notify(Severity.WARNING, MSG_NOT_FOUND)
            return
        except PostalCodeError as exc:
            if self._is_current(seq):
                self._fail(seq, MSG_POSTAL_ERROR, exc)
            return
        except MapStateError as exc:
            if self._is_current(seq):
                self._fail(seq, MSG_SEARCH_ERROR, exc)
            return
        except Exception as exc:
            logger.exception("unexpected failure while searching for %r", query)
            if self._is_current(seq):
                self._fail(seq, MSG_SEARCH_ERROR, exc)
            return

        if not self._is_current(seq):
            return

        best = hits[0]
        try:
            lat = float(best.lat)
            lng = float(best.lon)
        except (TypeError, ValueError) as exc:
            logger.warning("unparseable coordinates in result for %r: %r/%r", query, best.lat, best.lon)
            self._fail(seq, MSG_PARSE_ERROR, exc)
            return

        # Selection and camera move together or not at all.
        self.state.apply_result(lat, lng, best.display_name)
        self._resolve(seq, hits)
        self._notify(Severity.SUCCESS, MSG_FOUND)

    # ---- reverse lookup (map click) ----------------------------------------

    def click(self, lat: float, lng: float) -> "asyncio.Task[None]":
        """
        Handle a map click. Must be called from the running event loop.

        The selection is set to a loading placeholder before this returns;
        the name is filled in once the reverse lookup comes back.
        """
        placeholder = self.state.selection.select(lat, lng, LOADING_NAME)
        seq = self._begin(f"{lat},{lng}")
        return self._spawn(self._run_reverse(seq, placeholder))

    def _rename_placeholder(self, placeholder: SelectionCandidate, name: str) -> None:
        # Anything that replaced the selection since the click wins.
        if self.state.selection.current is placeholder:
            self.state.selection.rename(name)

    async def _run_reverse(self, seq: int, placeholder: SelectionCandidate) -> None:
        lat, lng = placeholder.position
        try:
            result = await self._run_blocking(self.gateway.reverse_geocode, lat, lng)
        except Exception as exc:
            if not isinstance(exc, MapStateError):
                logger.exception("unexpected failure in reverse lookup for %s,%s", lat, lng)
            self._rename_placeholder(placeholder, LOOKUP_FAILED_NAME)
            if self._is_current(seq):
                self._fail(seq, MSG_REVERSE_ERROR, exc)
            return

        if result is None or not (result.name or "").strip():
            self._rename_placeholder(placeholder, UNKNOWN_PLACE_NAME)
            if self._is_current(seq):
                self._resolve(seq, [])
                self._notify(Severity.WARNING, MSG_NOT_FOUND)
            return

        self._rename_placeholder(placeholder, result.name)
        if self._is_current(seq):
            self._resolve(seq, [GeocodeHit(lat=lat, lon=lng, display_name=result.name, raw=dict(result.address))])
            self._notify(Severity.SUCCESS, MSG_FOUND)

    # ---- selection shortcuts that must beat late responses -----------------

    def focus_favorite(self, place_id: int) -> Optional[Place]:
        place = self.state.favorites.get(place_id)
        if place is None:
            return None
        self.supersede()
        return self.state.focus_favorite(place_id)
