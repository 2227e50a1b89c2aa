from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .exceptions import NotFoundError
from .models import ChangeKind, DocumentChange
from .store import SnapshotCallback

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class _Watch:
    start: str
    end: str
    callback: SnapshotCallback
    active: bool = True
    # changes written before the initial batch went out
    primed: bool = False
    pending: List[DocumentChange] = field(default_factory=list)


Delivery = Tuple[_Watch, List[DocumentChange]]


class InMemoryDocumentStore:
    """Dict-backed document store that also serves geohash range subscriptions.

    Changes are delivered synchronously on the writing thread, after the
    store's own lock has been released. A new subscription sees its initial
    batch before any change written concurrently with ``subscribe``.
    """

    def __init__(self, hash_field: str = "g") -> None:
        self.hash_field = hash_field
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._watches: List[_Watch] = []
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            document = self._documents.get(key)
            return copy.deepcopy(document) if document is not None else None

    def set(self, key: str, fields: Dict[str, Any], merge: bool = False) -> None:
        with self._lock:
            before = self._documents.get(key)
            after = dict(before) if merge and before is not None else {}
            after.update(copy.deepcopy(fields))
            self._documents[key] = after
            deliveries = self._diff(key, before, after)
        self._deliver(deliveries)

    def update(self, key: str, deletions: Iterable[str]) -> None:
        with self._lock:
            before = self._documents.get(key)
            if before is None:
                raise NotFoundError(f"No document {key!r}")
            after = dict(before)
            for name in deletions:
                after.pop(name, None)
            self._documents[key] = after
            deliveries = self._diff(key, before, after)
        self._deliver(deliveries)

    def delete(self, key: str) -> None:
        with self._lock:
            before = self._documents.pop(key, None)
            deliveries = self._diff(key, before, None)
        self._deliver(deliveries)

    def subscribe(self, start: str, end: str, callback: SnapshotCallback) -> _Watch:
        watch = _Watch(start, end, callback)
        with self._lock:
            self._watches.append(watch)
            matching = sorted(
                (
                    (document[self.hash_field], key)
                    for key, document in self._documents.items()
                    if self._matches(watch, document)
                ),
            )
            initial = [
                DocumentChange(
                    kind=ChangeKind.ADDED,
                    key=key,
                    data=copy.deepcopy(self._documents[key]),
                )
                for _, key in matching
            ]
        logger.debug("Watching [%r, %r) with %d initial document(s)", start, end, len(initial))
        self._deliver([(watch, initial)])
        self._flush_pending(watch)
        return watch

    def _flush_pending(self, watch: _Watch) -> None:
        while True:
            with self._lock:
                pending, watch.pending = watch.pending, []
                if not pending:
                    watch.primed = True
                    return
            for change in pending:
                self._deliver([(watch, [change])])

    def cancel(self, handle: _Watch) -> None:
        with self._lock:
            handle.active = False
            if handle in self._watches:
                self._watches.remove(handle)

    def fail(self, error: Exception) -> None:
        """Report ``error`` to every active subscription."""
        with self._lock:
            callbacks = [watch.callback for watch in self._watches]
        for callback in callbacks:
            callback(None, error)

    def _matches(self, watch: _Watch, document: Optional[Dict[str, Any]]) -> bool:
        if document is None:
            return False
        value = document.get(self.hash_field)
        return isinstance(value, str) and watch.start <= value < watch.end

    def _diff(
        self,
        key: str,
        before: Optional[Dict[str, Any]],
        after: Optional[Dict[str, Any]],
    ) -> List[Delivery]:
        deliveries: List[Delivery] = []
        for watch in self._watches:
            was_match = self._matches(watch, before)
            is_match = self._matches(watch, after)
            if is_match and not was_match:
                kind = ChangeKind.ADDED
            elif is_match and before != after:
                kind = ChangeKind.MODIFIED
            elif was_match and not is_match:
                kind = ChangeKind.REMOVED
            else:
                continue
            data = copy.deepcopy(after) if after is not None else None
            document_change = DocumentChange(kind=kind, key=key, data=data)
            if watch.primed:
                deliveries.append((watch, [document_change]))
            else:
                watch.pending.append(document_change)
        return deliveries

    def _deliver(self, deliveries: List[Delivery]) -> None:
        for watch, changes in deliveries:
            if watch.active:
                watch.callback(changes, None)
