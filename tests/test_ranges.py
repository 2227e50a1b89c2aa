import itertools

import pytest

from geowatch import GeoHash, GeoHashRange, GeoPoint, UnjoinableRangesError
from geowatch.ranges import (
    OPEN_END,
    bits_for_bounding_box,
    candidate_points,
    join_ranges,
    latitude_bits,
    longitude_bits,
    plan_region,
    precision_for_bits,
    query_bits,
    query_for_geohash,
)
from geowatch.types import MAX_PRECISION_BITS

REGIONS = [
    (GeoPoint(37.7853, -122.4056), 1000),
    (GeoPoint(37.7853, -122.4056), 1),
    (GeoPoint(0, 0), 500),
    (GeoPoint(-33.8688, 151.2093), 25000),
    (GeoPoint(0.5, 179.999), 10000),
    (GeoPoint(-0.5, -179.999), 10000),
    (GeoPoint(89.99, 45), 50000),
    (GeoPoint(-90, 0), 1000),
    (GeoPoint(51.5072, -0.1276), 350000),
    (GeoPoint(40.7128, -74.0060), 5000000),
    (GeoPoint(10, 10), 8587000),
]


def test_join_adjacent_ranges() -> None:
    a = GeoHashRange("abc", "abd")
    b = GeoHashRange("abd", "abe")
    assert a.can_join(b)
    assert a.join(b) == GeoHashRange("abc", "abe")
    assert b.join(a) == GeoHashRange("abc", "abe")


def test_join_overlapping_ranges() -> None:
    a = GeoHashRange("9q8h", "9q8s")
    b = GeoHashRange("9q8p", "9q8~")
    assert a.join(b) == GeoHashRange("9q8h", "9q8~")


def test_join_superset_returns_superset() -> None:
    a = GeoHashRange("abc", "abd")
    b = GeoHashRange("ab", "ab~")
    assert a.can_join(b)
    assert a.join(b) is b
    assert b.join(a) is b


def test_join_identical_ranges() -> None:
    a = GeoHashRange("9q8h", "9q8s")
    assert a.join(GeoHashRange("9q8h", "9q8s")) == a


def test_disjoint_ranges_do_not_join() -> None:
    a = GeoHashRange("abc", "abd")
    b = GeoHashRange("abe", "abf")
    assert not a.can_join(b)
    assert not b.can_join(a)
    with pytest.raises(UnjoinableRangesError):
        a.join(b)


def test_contains_is_half_open() -> None:
    query_range = GeoHashRange("9q8h", "9q8s")
    assert query_range.contains("9q8h")
    assert query_range.contains(GeoHash.parse("9q8hzzzz"))
    assert query_range.contains("9q8rzzzzzz")
    assert not query_range.contains("9q8s")
    assert not query_range.contains("9q8g")


def test_open_end_covers_every_continuation() -> None:
    query_range = GeoHashRange("9q8z", "9q8" + OPEN_END)
    assert query_range.contains("9q8zzzzzzzzzzzzzzzzzzz")
    assert not query_range.contains("9q9")


def test_query_for_geohash() -> None:
    assert query_for_geohash("u4pruydqqvj", 15) == GeoHashRange("u4p", "u4q")
    assert query_for_geohash("u4pruydqqvj", 12) == GeoHashRange("u4h", "u4s")
    assert query_for_geohash("u4pruydqqvj", 11) == GeoHashRange("u4h", "u4~")
    assert query_for_geohash(GeoHash.parse("u4pruydqqvj"), 1) == GeoHashRange("h", "~")
    assert query_for_geohash("0", 1) == GeoHashRange("0", "h")


def test_query_for_short_geohash_is_open() -> None:
    assert query_for_geohash("u4", 15) == GeoHashRange("u4", "u4~")


def test_query_contains_its_geohash() -> None:
    geohash = GeoHash.encode(-23.5505, -46.6333, 22)
    for bits in range(1, MAX_PRECISION_BITS + 1):
        assert query_for_geohash(geohash, bits).contains(geohash)


def test_latitude_bits() -> None:
    assert latitude_bits(40007860 / 2) == pytest.approx(0)
    assert latitude_bits(40007860 / 2 / 1024) == pytest.approx(10)
    assert latitude_bits(1e-30) == MAX_PRECISION_BITS
    assert latitude_bits(0) == MAX_PRECISION_BITS


def test_longitude_bits() -> None:
    assert longitude_bits(111319.49 * 360, 0) == 1
    assert longitude_bits(111319.49 * 45, 0) == pytest.approx(3, abs=1e-4)
    assert longitude_bits(1000, 90) == 1


def test_bounding_box_bits_are_led_by_weakest_axis() -> None:
    center = GeoPoint(37.7853, -122.4056)
    bits = bits_for_bounding_box(center, 1000)
    assert bits == min(
        int(latitude_bits(1000)) * 2,
        int(longitude_bits(1000, 37.7853 + 1000 / 110574)) * 2 - 1,
        int(longitude_bits(1000, 37.7853 - 1000 / 110574)) * 2 - 1,
    )
    assert query_bits(center, 10) > query_bits(center, 1000) > query_bits(center, 100000)


def test_query_bits_is_at_least_one() -> None:
    assert query_bits(GeoPoint(0, 0), 8587000) == 1
    assert precision_for_bits(1) == 1
    assert precision_for_bits(5) == 1
    assert precision_for_bits(6) == 2


def test_candidate_points() -> None:
    points = candidate_points(GeoPoint(0, 179.999), 10000)
    assert len(points) == 9
    assert GeoPoint(0, 179.999) in points
    assert any(point.lon < 0 for point in points)
    assert all(-180 <= point.lon <= 180 for point in points)


def test_candidate_points_are_clamped_at_poles() -> None:
    points = candidate_points(GeoPoint(89.99, 45), 50000)
    assert max(point.lat for point in points) == 90


@pytest.mark.parametrize("center, radius", REGIONS)
def test_every_candidate_is_covered_exactly_once(center: GeoPoint, radius: float) -> None:
    covering = plan_region(center, radius)
    precision = precision_for_bits(query_bits(center, radius))
    for point in candidate_points(center, radius):
        geohash = GeoHash.encode(point.lat, point.lon, precision)
        assert sum(1 for query_range in covering if query_range.contains(geohash)) == 1


@pytest.mark.parametrize("center, radius", REGIONS)
def test_covering_set_is_fully_merged(center: GeoPoint, radius: float) -> None:
    covering = plan_region(center, radius)
    assert 1 <= len(covering) <= 9
    for first, second in itertools.permutations(covering, 2):
        assert not first.can_join(second)


@pytest.mark.parametrize("center, radius", REGIONS)
def test_covering_set_contains_points_inside_circle(center: GeoPoint, radius: float) -> None:
    covering = plan_region(center, radius)
    for fraction in (0.0, 0.3, 0.7, 0.99):
        lat_delta = radius * fraction / 110574
        for lat in (center.lat - lat_delta, center.lat + lat_delta):
            if not -90 <= lat <= 90:
                continue
            geohash = GeoHash.encode(lat, center.lon)
            assert any(query_range.contains(geohash) for query_range in covering)


def test_tiny_radius_collapses_to_few_ranges() -> None:
    covering = plan_region(GeoPoint(37.7853, -122.4056), 1)
    # a 2 m square spans at most 3 x 2 cells at this precision
    assert len(covering) <= 6
    assert all(len(query_range.start) == 10 for query_range in covering)


def test_join_ranges_reaches_fixpoint() -> None:
    ranges = {
        GeoHashRange("9q8h", "9q8j"),
        GeoHashRange("9q8j", "9q8k"),
        GeoHashRange("9q8k", "9q8m"),
        GeoHashRange("9q8", "9q8~"),
        GeoHashRange("9q9h", "9q9j"),
    }
    assert join_ranges(ranges) == {
        GeoHashRange("9q8", "9q8~"),
        GeoHashRange("9q9h", "9q9j"),
    }
