from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Set, Tuple

from . import base32
from .exceptions import UnjoinableRangesError
from .geo_utils import (
    EARTH_MERIDIONAL_CIRCUMFERENCE,
    distance_to_latitude_degrees,
    distance_to_longitude_degrees,
    wrap_longitude,
)
from .types import MAX_PRECISION_BITS, GeoHash, GeoPoint

logger = logging.getLogger(__name__)

# Sorts after every base32 symbol, so "abc~" bounds all continuations of "abc".
OPEN_END = "~"


@dataclass(frozen=True, order=True)
class GeoHashRange:
    """Half-open interval ``[start, end)`` over geohash strings."""

    start: str
    end: str

    def __str__(self) -> str:
        return f"[{self.start!r}, {self.end!r})"

    def contains(self, geohash: GeoHash | str) -> bool:
        value = geohash if isinstance(geohash, str) else geohash.hash
        return self.start <= value < self.end

    def _is_prefix(self, other: "GeoHashRange") -> bool:
        # other lies below self and touches or overlaps it without covering it
        return other.end >= self.start and other.start < self.start and other.end < self.end

    def _is_super_range(self, other: "GeoHashRange") -> bool:
        # other covers self
        return other.start <= self.start and other.end >= self.end

    def can_join(self, other: "GeoHashRange") -> bool:
        return (
            self._is_prefix(other)
            or other._is_prefix(self)
            or self._is_super_range(other)
            or other._is_super_range(self)
        )

    def join(self, other: "GeoHashRange") -> "GeoHashRange":
        if other._is_prefix(self):
            return GeoHashRange(self.start, other.end)
        if self._is_prefix(other):
            return GeoHashRange(other.start, self.end)
        if self._is_super_range(other):
            return other
        if other._is_super_range(self):
            return self
        raise UnjoinableRangesError(f"Can't join these 2 ranges: {self}, {other}")


def latitude_bits(resolution: float) -> float:
    if resolution <= 0:
        return float(MAX_PRECISION_BITS)
    return min(math.log2(EARTH_MERIDIONAL_CIRCUMFERENCE / 2 / resolution), MAX_PRECISION_BITS)


def longitude_bits(resolution: float, latitude: float) -> float:
    degrees = distance_to_longitude_degrees(resolution, latitude)
    if abs(degrees) > 0:
        return max(1.0, math.log2(360 / degrees))
    return 1.0


def bits_for_bounding_box(center: GeoPoint, radius: float) -> int:
    latitude_delta = distance_to_latitude_degrees(radius)
    latitude_north = min(90.0, center.lat + latitude_delta)
    latitude_south = max(-90.0, center.lat - latitude_delta)
    bits_latitude = math.floor(latitude_bits(radius)) * 2
    bits_longitude_north = math.floor(longitude_bits(radius, latitude_north)) * 2 - 1
    bits_longitude_south = math.floor(longitude_bits(radius, latitude_south)) * 2 - 1
    return min(bits_latitude, bits_longitude_north, bits_longitude_south)


def query_bits(center: GeoPoint, radius: float) -> int:
    return max(1, min(bits_for_bounding_box(center, radius), MAX_PRECISION_BITS))


def precision_for_bits(bits: int) -> int:
    return math.ceil(bits / base32.BITS_PER_CHAR)


def query_for_geohash(geohash: GeoHash | str, bits: int) -> GeoHashRange:
    """Range of every geohash sharing the first ``bits`` bits with ``geohash``."""
    value = geohash if isinstance(geohash, str) else geohash.hash
    precision = precision_for_bits(bits)
    if len(value) < precision:
        return GeoHashRange(value, value + OPEN_END)

    value = value[:precision]
    prefix = value[:-1]
    last_value = base32.char_to_value(value[-1])
    significant_bits = bits - len(prefix) * base32.BITS_PER_CHAR
    unused_bits = base32.BITS_PER_CHAR - significant_bits
    start_value = (last_value >> unused_bits) << unused_bits
    end_value = start_value + (1 << unused_bits)
    start = prefix + base32.value_to_char(start_value)
    if end_value > len(base32.BASE32) - 1:
        end = prefix + OPEN_END
    else:
        end = prefix + base32.value_to_char(end_value)
    return GeoHashRange(start, end)


def candidate_points(center: GeoPoint, radius: float) -> List[GeoPoint]:
    """The center plus the eight compass points at ``radius`` around it."""
    latitude_delta = distance_to_latitude_degrees(radius)
    latitude_north = min(90.0, center.lat + latitude_delta)
    latitude_south = max(-90.0, center.lat - latitude_delta)
    longitude_delta = max(
        distance_to_longitude_degrees(radius, latitude_north),
        distance_to_longitude_degrees(radius, latitude_south),
    )
    west = wrap_longitude(center.lon - longitude_delta)
    east = wrap_longitude(center.lon + longitude_delta)

    return [
        GeoPoint(lat, lon)
        for lat in (center.lat, latitude_north, latitude_south)
        for lon in (center.lon, west, east)
    ]


def join_ranges(ranges: Set[GeoHashRange]) -> Set[GeoHashRange]:
    """Merge joinable pairs until none are left."""
    merged = set(ranges)
    while True:
        pair = _find_joinable_pair(merged)
        if pair is None:
            return merged
        first, second = pair
        merged.discard(first)
        merged.discard(second)
        merged.add(first.join(second))


def _find_joinable_pair(
    ranges: Set[GeoHashRange],
) -> Optional[Tuple[GeoHashRange, GeoHashRange]]:
    ordered = sorted(ranges)
    for index, first in enumerate(ordered):
        for second in ordered[index + 1 :]:
            if first.can_join(second):
                return first, second
    return None


def plan_region(center: GeoPoint, radius: float) -> FrozenSet[GeoHashRange]:
    bits = query_bits(center, radius)
    precision = precision_for_bits(bits)
    candidates = {
        query_for_geohash(GeoHash.encode(point.lat, point.lon, precision), bits)
        for point in candidate_points(center, radius)
    }
    covering = frozenset(join_ranges(candidates))
    logger.debug(
        "Planned %d range(s) at %d bits for %s r=%.1f m",
        len(covering),
        bits,
        center,
        radius,
    )
    return covering
