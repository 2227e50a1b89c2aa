from __future__ import annotations

from typing import Any, Optional


class GeoWatchError(Exception):
    """Base error for everything raised by geowatch."""


class ConnectionError(GeoWatchError):
    """Could not reach the document service."""


class AuthenticationError(GeoWatchError):
    """Invalid API key (401)."""


class NotFoundError(GeoWatchError):
    """Document not found (404)."""


class ServerError(GeoWatchError):
    """Document service failed (5xx)."""


class ValidationError(GeoWatchError, ValueError):
    """Invalid input (400, or a rejected precondition)."""


class InvalidCoordinate(ValidationError):
    def __init__(self, latitude: Any, longitude: Any, message: Optional[str] = None) -> None:
        super().__init__(message or f"Not valid location coordinates: [{latitude}, {longitude}]")
        self.latitude = latitude
        self.longitude = longitude


class InvalidPrecision(ValidationError):
    pass


class InvalidGeohash(ValidationError):
    pass


class InvalidChar(InvalidGeohash):
    pass


class InvalidValue(ValidationError):
    pass


class UnjoinableRangesError(GeoWatchError):
    """Two ranges that cannot be merged were asked to join."""


class MissingLocationField(GeoWatchError):
    def __init__(self, key: str, field: str) -> None:
        super().__init__(f"Document {key!r} has no location field {field!r}")
        self.key = key
        self.field = field


class SubscriptionError(GeoWatchError):
    """A range subscription reported a failure."""

    def __init__(self, message: str, query_range: Optional[Any] = None) -> None:
        super().__init__(message)
        self.query_range = query_range
