"""geowatch: live geohash range queries over a document store."""

from .client import HttpDocumentStore
from .exceptions import (
    AuthenticationError,
    ConnectionError,
    GeoWatchError,
    InvalidChar,
    InvalidCoordinate,
    InvalidGeohash,
    InvalidPrecision,
    InvalidValue,
    MissingLocationField,
    NotFoundError,
    ServerError,
    SubscriptionError,
    UnjoinableRangesError,
    ValidationError,
)
from .geostore import GeoStore
from .memory import InMemoryDocumentStore
from .models import ChangeKind, DocumentChange, DocumentView, QueryEvent, QueryEventType
from .query import GeoQuery, LocationInfo
from .ranges import GeoHashRange, plan_region, query_for_geohash
from .settings import GeoWatchSettings
from .store import DocumentStore, RangeSubscriptionProvider
from .types import GeoHash, GeoPoint, encode_geohash

__all__ = [
    "AuthenticationError",
    "ChangeKind",
    "ConnectionError",
    "DocumentChange",
    "DocumentStore",
    "DocumentView",
    "GeoHash",
    "GeoHashRange",
    "GeoPoint",
    "GeoQuery",
    "GeoStore",
    "GeoWatchError",
    "GeoWatchSettings",
    "HttpDocumentStore",
    "InMemoryDocumentStore",
    "InvalidChar",
    "InvalidCoordinate",
    "InvalidGeohash",
    "InvalidPrecision",
    "InvalidValue",
    "LocationInfo",
    "MissingLocationField",
    "NotFoundError",
    "QueryEvent",
    "QueryEventType",
    "RangeSubscriptionProvider",
    "ServerError",
    "SubscriptionError",
    "UnjoinableRangesError",
    "ValidationError",
    "encode_geohash",
    "plan_region",
    "query_for_geohash",
]
