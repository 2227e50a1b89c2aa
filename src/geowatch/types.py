from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

from . import base32
from .exceptions import InvalidCoordinate, InvalidGeohash, InvalidPrecision
from .geo_utils import coordinates_valid, distance

DEFAULT_PRECISION = 10
MAX_PRECISION = 22
MAX_PRECISION_BITS = MAX_PRECISION * base32.BITS_PER_CHAR


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not coordinates_valid(self.lat, self.lon):
            raise InvalidCoordinate(self.lat, self.lon)

    def __str__(self) -> str:
        return f"{self.lat},{self.lon}"

    @property
    def geohash(self) -> "GeoHash":
        return GeoHash.encode(self.lat, self.lon)

    def distance_to(self, other: "GeoPoint") -> float:
        return distance(self.lat, self.lon, other.lat, other.lon)

    @classmethod
    def from_string(cls, value: str) -> "GeoPoint":
        parts = value.split(",", 1)
        if len(parts) != 2:
            raise ValueError("GeoPoint string must be 'lat,lon'")
        lat = float(parts[0].strip())
        lon = float(parts[1].strip())
        return cls(lat=lat, lon=lon)


def location_from_value(value: Any) -> GeoPoint:
    """Read a stored coordinate: a GeoPoint, "lat,lon", [lat, lon] or {"lat", "lon"}."""
    if isinstance(value, GeoPoint):
        return value
    if isinstance(value, str):
        return GeoPoint.from_string(value)
    if isinstance(value, Mapping):
        return GeoPoint(lat=float(value["lat"]), lon=float(value["lon"]))
    if isinstance(value, Sequence) and len(value) == 2:
        return GeoPoint(lat=float(value[0]), lon=float(value[1]))
    raise ValueError(f"Unsupported location value: {value!r}")


def encode_geohash(lat: float, lon: float, precision: int = DEFAULT_PRECISION) -> str:
    if precision < 1:
        raise InvalidPrecision("Precision of a geohash must be larger than zero")
    if precision > MAX_PRECISION:
        raise InvalidPrecision(
            f"Precision of a geohash must be less than {MAX_PRECISION + 1}"
        )
    if not coordinates_valid(lat, lon):
        raise InvalidCoordinate(lat, lon)

    lat_range = [-90.0, 90.0]
    lon_range = [-180.0, 180.0]
    even = True
    geohash = []

    while len(geohash) < precision:
        value = 0
        for _ in range(base32.BITS_PER_CHAR):
            coord, interval = (lon, lon_range) if even else (lat, lat_range)
            mid = (interval[0] + interval[1]) / 2
            if coord > mid:
                value = (value << 1) + 1
                interval[0] = mid
            else:
                value <<= 1
                interval[1] = mid
            even = not even
        geohash.append(base32.value_to_char(value))

    return "".join(geohash)


@dataclass(frozen=True, order=True)
class GeoHash:
    """An encoded cell. Equality and ordering only look at the string."""

    hash: str
    point: Optional[GeoPoint] = field(default=None, compare=False)

    def __str__(self) -> str:
        return self.hash

    def __len__(self) -> int:
        return len(self.hash)

    @classmethod
    def encode(cls, lat: float, lon: float, precision: int = DEFAULT_PRECISION) -> "GeoHash":
        return cls(encode_geohash(lat, lon, precision), GeoPoint(lat, lon))

    @classmethod
    def parse(cls, value: str) -> "GeoHash":
        if not value or not base32.is_valid_string(value):
            raise InvalidGeohash(f"Not a valid geohash: {value!r}")
        return cls(value)
