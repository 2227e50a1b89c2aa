from __future__ import annotations

from typing import Any, Dict, Optional

from .exceptions import InvalidCoordinate, MissingLocationField
from .geo_utils import cap_radius
from .query import GeoQuery
from .settings import GeoWatchSettings
from .store import DocumentStore, RangeSubscriptionProvider
from .types import GeoPoint, encode_geohash, location_from_value


class GeoStore:
    """Reads and writes locations on documents of an injected store.

    Every located document carries two fields written together: the geohash
    string (``hash_field``) and the exact coordinate (``location_field``).
    """

    def __init__(
        self,
        store: DocumentStore,
        provider: Optional[RangeSubscriptionProvider] = None,
        settings: Optional[GeoWatchSettings] = None,
    ) -> None:
        self.store = store
        self.provider = provider
        self.settings = settings or GeoWatchSettings()

    @property
    def hash_field(self) -> str:
        return self.settings.hash_field

    @property
    def location_field(self) -> str:
        return self.settings.location_field

    def location_fields(self, point: GeoPoint) -> Dict[str, Any]:
        geohash = encode_geohash(point.lat, point.lon, self.settings.hash_precision)
        return {self.hash_field: geohash, self.location_field: point}

    def set_location(self, key: str, point: GeoPoint) -> None:
        if not key:
            raise ValueError("key is required")
        self.store.set(key, self.location_fields(point), merge=True)

    def remove_location(self, key: str) -> None:
        if not key:
            raise ValueError("key is required")
        self.store.update(key, [self.hash_field, self.location_field])

    def get_location(self, key: str) -> Optional[GeoPoint]:
        data = self.store.get(key)
        if data is None or self.location_field not in data:
            return None
        return self.location_from_document(key, data)

    def location_from_document(self, key: str, data: Optional[Dict[str, Any]]) -> GeoPoint:
        if not data or data.get(self.location_field) is None:
            raise MissingLocationField(key, self.location_field)
        value = data[self.location_field]
        try:
            return location_from_value(value)
        except InvalidCoordinate:
            raise
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidCoordinate(
                None, None, f"Unreadable location {value!r} on {key!r}"
            ) from exc

    def query_at_location(self, center: GeoPoint, radius: float) -> GeoQuery:
        if self.provider is None:
            raise ValueError("a RangeSubscriptionProvider is required for queries")
        return GeoQuery(self, self.provider, center, cap_radius(radius))
