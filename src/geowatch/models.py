from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from .types import GeoPoint


class ChangeKind(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"


class DocumentView(BaseModel):
    id: str
    data: Dict[str, Any] = Field(default_factory=dict)


class DocumentChange(BaseModel):
    kind: ChangeKind
    key: str
    data: Optional[Dict[str, Any]] = None


class QueryEventType(str, Enum):
    ENTERED = "entered"
    EXITED = "exited"
    CHANGED = "changed"
    MOVED = "moved"
    ERROR = "error"
    READY = "ready"


class QueryEvent(BaseModel):
    type: QueryEventType
    key: Optional[str] = None
    location: Optional[GeoPoint] = None
    data: Optional[Dict[str, Any]] = None
    error: Optional[Exception] = None

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)
