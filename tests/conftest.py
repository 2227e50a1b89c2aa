from typing import Any, Dict, List, Optional

import pytest

from geowatch import (
    DocumentChange,
    GeoHashRange,
    GeoPoint,
    GeoStore,
    InMemoryDocumentStore,
    QueryEvent,
    encode_geohash,
)
from geowatch.models import ChangeKind


class FakeHandle:
    def __init__(self, start: str, end: str, callback) -> None:
        self.query_range = GeoHashRange(start, end)
        self.callback = callback
        self.cancelled = False

    def deliver(self, changes: Optional[List[DocumentChange]] = None) -> None:
        self.callback(changes or [], None)

    def fail(self, error: Exception) -> None:
        self.callback(None, error)


class FakeProvider:
    """Subscription provider whose deliveries are driven by the test."""

    def __init__(self) -> None:
        self.handles: List[FakeHandle] = []
        self.cancelled: List[FakeHandle] = []

    def subscribe(self, start: str, end: str, callback) -> FakeHandle:
        handle = FakeHandle(start, end, callback)
        self.handles.append(handle)
        return handle

    def cancel(self, handle: FakeHandle) -> None:
        handle.cancelled = True
        self.cancelled.append(handle)

    @property
    def active(self) -> List[FakeHandle]:
        return [handle for handle in self.handles if not handle.cancelled]

    def deliver_all(self) -> None:
        for handle in self.active:
            handle.deliver()

    def deliver(self, changes: List[DocumentChange]) -> None:
        self.active[0].deliver(changes)


class Recorder:
    def __init__(self) -> None:
        self.events: List[QueryEvent] = []

    def __call__(self, event: QueryEvent) -> None:
        self.events.append(event)

    def kinds(self) -> List[str]:
        return [event.type.value for event in self.events]

    def clear(self) -> None:
        self.events.clear()


def document(lat: float, lon: float, **extra: Any) -> Dict[str, Any]:
    return {"g": encode_geohash(lat, lon), "l": GeoPoint(lat, lon), **extra}


def change(kind: ChangeKind, key: str, data: Optional[Dict[str, Any]]) -> DocumentChange:
    return DocumentChange(kind=kind, key=key, data=data)


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def geo_store(provider: FakeProvider) -> GeoStore:
    return GeoStore(InMemoryDocumentStore(), provider)


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()
