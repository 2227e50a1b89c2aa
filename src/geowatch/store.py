from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol

from .models import DocumentChange

SnapshotCallback = Callable[[Optional[List[DocumentChange]], Optional[Exception]], None]


class DocumentStore(Protocol):
    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the document's fields, or None when it does not exist."""
        ...

    def set(self, key: str, fields: Dict[str, Any], merge: bool = False) -> None:
        ...

    def update(self, key: str, deletions: Iterable[str]) -> None:
        """Delete the named fields of an existing document."""
        ...

    def delete(self, key: str) -> None:
        ...


class RangeSubscriptionProvider(Protocol):
    def subscribe(self, start: str, end: str, callback: SnapshotCallback) -> Any:
        """Watch documents whose geohash field falls in ``[start, end)``.

        ``callback`` receives either a batch of changes and None, or None and
        an error. It may be invoked from any thread. The returned handle is
        passed back to ``cancel``.
        """
        ...

    def cancel(self, handle: Any) -> None:
        ...
