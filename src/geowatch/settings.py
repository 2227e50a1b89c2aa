from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel, Field

from .types import DEFAULT_PRECISION, MAX_PRECISION


class GeoWatchSettings(BaseModel):
    collection: str = "locations"
    hash_field: str = "g"
    location_field: str = "l"
    hash_precision: int = Field(default=DEFAULT_PRECISION, ge=1, le=MAX_PRECISION)
    base_url: str = "http://127.0.0.1:8080"
    api_key: Optional[str] = None
    timeout: float = 10.0

    @classmethod
    def from_env(cls) -> "GeoWatchSettings":
        values = {
            "collection": os.getenv("GEOWATCH_COLLECTION"),
            "base_url": os.getenv("GEOWATCH_BASE_URL"),
            "api_key": os.getenv("GEOWATCH_API_KEY"),
            "timeout": os.getenv("GEOWATCH_TIMEOUT"),
            "hash_precision": os.getenv("GEOWATCH_HASH_PRECISION"),
        }
        return cls.model_validate({k: v for k, v in values.items() if v is not None})
