from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from functools import partial
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    FrozenSet,
    List,
    Optional,
    Set,
)

from .exceptions import InvalidCoordinate, MissingLocationField, SubscriptionError
from .geo_utils import cap_radius
from .models import ChangeKind, DocumentChange, QueryEvent, QueryEventType
from .ranges import GeoHashRange, plan_region
from .store import RangeSubscriptionProvider
from .types import GeoHash, GeoPoint

if TYPE_CHECKING:
    from .geostore import GeoStore

logger = logging.getLogger(__name__)

QueryListener = Callable[[QueryEvent], None]

ALL_EVENTS: FrozenSet[QueryEventType] = frozenset(QueryEventType)


@dataclass(frozen=True)
class LocationInfo:
    location: GeoPoint
    in_query: bool
    geohash: GeoHash
    data: Optional[Dict[str, Any]]


@dataclass(eq=False)
class _Subscription:
    query_range: GeoHashRange
    handle: Any = None


@dataclass(frozen=True)
class _Listener:
    callback: QueryListener
    events: FrozenSet[QueryEventType]


class GeoQuery:
    """Live view of the documents located within a circle.

    The circle is covered by geohash ranges, each watched through the
    subscription provider. Snapshot callbacks may arrive on any thread; all
    state is guarded by one re-entrant lock and events are delivered to
    listeners synchronously while it is held.
    """

    def __init__(
        self,
        geo_store: "GeoStore",
        provider: RangeSubscriptionProvider,
        center: GeoPoint,
        radius: float,
    ) -> None:
        if radius < 0:
            raise ValueError("radius must not be negative")
        self._geo_store = geo_store
        self._provider = provider
        self._lock = threading.RLock()
        self._center = center
        self._radius = cap_radius(radius)
        self._ranges: Optional[FrozenSet[GeoHashRange]] = None
        self._subscriptions: Dict[GeoHashRange, _Subscription] = {}
        self._outstanding: Set[GeoHashRange] = set()
        self._locations: Dict[str, LocationInfo] = {}
        self._listeners: List[_Listener] = []
        self._ready_fired = False

    def __enter__(self) -> "GeoQuery":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    @property
    def center(self) -> GeoPoint:
        with self._lock:
            return self._center

    @property
    def radius(self) -> float:
        with self._lock:
            return self._radius

    @property
    def ranges(self) -> FrozenSet[GeoHashRange]:
        with self._lock:
            return self._ranges or frozenset()

    @property
    def is_ready(self) -> bool:
        with self._lock:
            return self._ranges is not None and not self._outstanding

    def locations(self) -> Dict[str, LocationInfo]:
        with self._lock:
            return dict(self._locations)

    def add_listener(self, callback: QueryListener, *events: QueryEventType) -> None:
        """Register ``callback`` for ``events`` (all kinds when none are given).

        The first listener starts the query. A listener joining a running
        query is sent ``ENTERED`` for every key already inside, then
        ``READY`` if nothing is outstanding.
        """
        listener = _Listener(callback, frozenset(events) or ALL_EVENTS)
        with self._lock:
            self._listeners.append(listener)
            if self._ranges is None:
                self._setup_queries()
                return
            for key, info in self._locations.items():
                if info.in_query:
                    self._notify(
                        listener,
                        QueryEvent(
                            type=QueryEventType.ENTERED,
                            key=key,
                            location=info.location,
                            data=info.data,
                        ),
                    )
            if self._ready_fired and not self._outstanding:
                self._notify(listener, QueryEvent(type=QueryEventType.READY))

    def remove_listener(self, callback: QueryListener) -> None:
        with self._lock:
            remaining = [item for item in self._listeners if item.callback != callback]
            if len(remaining) == len(self._listeners):
                raise ValueError("listener is not registered")
            self._listeners = remaining
            if not self._listeners:
                self.reset()

    def set_region(self, center: GeoPoint, radius: float) -> None:
        if radius < 0:
            raise ValueError("radius must not be negative")
        with self._lock:
            self._center = center
            self._radius = cap_radius(radius)
            if self._listeners:
                self._setup_queries()

    def reset(self) -> None:
        with self._lock:
            for subscription in self._subscriptions.values():
                self._cancel(subscription)
            self._subscriptions.clear()
            self._outstanding.clear()
            self._locations.clear()
            self._ranges = None
            self._ready_fired = False

    def dispose(self) -> None:
        with self._lock:
            self._listeners = []
            self.reset()

    def _setup_queries(self) -> None:
        old_ranges = self._ranges or frozenset()
        new_ranges = plan_region(self._center, self._radius)
        self._ranges = new_ranges

        for query_range in old_ranges - new_ranges:
            self._outstanding.discard(query_range)
            subscription = self._subscriptions.pop(query_range, None)
            if subscription is not None:
                self._cancel(subscription)

        added = sorted(new_ranges - old_ranges)
        if added:
            # all outstanding before the first subscribe, which may deliver inline
            self._outstanding.update(added)
            self._ready_fired = False
            for query_range in added:
                self._subscriptions[query_range] = _Subscription(query_range)
            for query_range in added:
                subscription = self._subscriptions.get(query_range)
                if subscription is None:
                    continue
                logger.debug("Subscribing to %s", query_range)
                subscription.handle = self._provider.subscribe(
                    query_range.start,
                    query_range.end,
                    partial(self._on_snapshot, subscription),
                )

        # the circle moved, so membership can change without any snapshot
        for key, info in list(self._locations.items()):
            self._update_location(key, info.location, info.data)

        for key, info in list(self._locations.items()):
            if not self._ranges_contain(info.geohash):
                del self._locations[key]

        self._check_ready()

    def _cancel(self, subscription: _Subscription) -> None:
        logger.debug("Cancelling subscription to %s", subscription.query_range)
        if subscription.handle is not None:
            self._provider.cancel(subscription.handle)
            subscription.handle = None

    def _on_snapshot(
        self,
        subscription: _Subscription,
        changes: Optional[List[DocumentChange]],
        error: Optional[Exception],
    ) -> None:
        with self._lock:
            if self._subscriptions.get(subscription.query_range) is not subscription:
                logger.debug("Ignoring snapshot for stale %s", subscription.query_range)
                return

            if error is not None:
                logger.debug("Subscription to %s failed: %s", subscription.query_range, error)
                failure = SubscriptionError(str(error), subscription.query_range)
                failure.__cause__ = error
                self._emit(QueryEvent(type=QueryEventType.ERROR, error=failure))
                return

            if subscription.query_range in self._outstanding:
                self._outstanding.discard(subscription.query_range)
                self._check_ready()

            for change in changes or []:
                self._apply_change(change)

    def _apply_change(self, change: DocumentChange) -> None:
        if change.kind is ChangeKind.REMOVED:
            self._remove_location(change)
            return
        try:
            location = self._geo_store.location_from_document(change.key, change.data)
        except (MissingLocationField, InvalidCoordinate) as exc:
            logger.warning("Skipping %s change for %r: %s", change.kind.value, change.key, exc)
            return
        self._update_location(change.key, location, change.data)

    def _remove_location(self, change: DocumentChange) -> None:
        info = self._locations.get(change.key)
        if info is None:
            return

        location_field = self._geo_store.location_field
        if change.data and change.data.get(location_field) is not None:
            try:
                location = self._geo_store.location_from_document(change.key, change.data)
            except InvalidCoordinate as exc:
                logger.warning("Ignoring location of removed %r: %s", change.key, exc)
            else:
                # the key may have left this range for another active one
                if self._ranges_contain(self._geohash(location)):
                    return

        del self._locations[change.key]
        if info.in_query:
            self._emit(
                QueryEvent(
                    type=QueryEventType.EXITED,
                    key=change.key,
                    location=info.location,
                    data=info.data,
                )
            )

    def _update_location(
        self,
        key: str,
        location: GeoPoint,
        data: Optional[Dict[str, Any]],
    ) -> None:
        old_info = self._locations.get(key)
        was_in_query = old_info is not None and old_info.in_query
        is_in_query = self._in_circle(location)

        events: List[QueryEventType] = []
        if is_in_query and not was_in_query:
            events.append(QueryEventType.ENTERED)
        elif is_in_query:
            if old_info.location != location:
                events.append(QueryEventType.MOVED)
            events.append(QueryEventType.CHANGED)
        elif was_in_query and not is_in_query:
            events.append(QueryEventType.EXITED)

        self._locations[key] = LocationInfo(
            location=location,
            in_query=is_in_query,
            geohash=self._geohash(location),
            data=data,
        )
        for event_type in events:
            self._emit(QueryEvent(type=event_type, key=key, location=location, data=data))

    def _geohash(self, location: GeoPoint) -> GeoHash:
        return GeoHash.encode(
            location.lat, location.lon, self._geo_store.settings.hash_precision
        )

    def _in_circle(self, location: GeoPoint) -> bool:
        return location.distance_to(self._center) <= self._radius

    def _ranges_contain(self, geohash: GeoHash) -> bool:
        return self._ranges is not None and any(
            query_range.contains(geohash) for query_range in self._ranges
        )

    def _check_ready(self) -> None:
        if self._ranges is None or self._outstanding or self._ready_fired:
            return
        self._ready_fired = True
        self._emit(QueryEvent(type=QueryEventType.READY))

    def _emit(self, event: QueryEvent) -> None:
        for listener in list(self._listeners):
            self._notify(listener, event)

    @staticmethod
    def _notify(listener: _Listener, event: QueryEvent) -> None:
        if event.type in listener.events:
            listener.callback(event)
