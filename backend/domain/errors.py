"""
Error taxonomy for the favorites map.

None of these are fatal: callers either surface them as notifications or
log them and carry on with the in-memory state.
"""


class MapStateError(Exception):
    """Base class for all domain errors."""


class ValidationError(MapStateError):
    """User input was rejected (e.g. empty favorite name). Nothing was mutated."""


class NotFoundError(MapStateError):
    """A lookup returned zero results."""


class NetworkError(MapStateError):
    """A gateway was unreachable, answered non-2xx, or returned an unreadable body."""


class StorageError(MapStateError):
    """Reading or writing the durable record failed."""


class PostalCodeError(MapStateError):
    """A postal code was malformed or unknown to the lookup service."""
