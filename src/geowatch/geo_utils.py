from __future__ import annotations

import logging
import math

logger = logging.getLogger(__name__)

# Length of a degree of latitude at the equator
METERS_PER_DEGREE_LATITUDE = 110574.0
EARTH_MERIDIONAL_CIRCUMFERENCE = 40007860.0
EARTH_EQ_RADIUS = 6378137.0
EARTH_POLAR_RADIUS = 6357852.3
# (r_e^2 - r_p^2) / r_e^2 for r_p = 6356752.3
EARTH_E2 = 0.00669447819799
EPSILON = 1e-12

MAX_SUPPORTED_RADIUS = 8587000.0


def coordinates_valid(latitude: float, longitude: float) -> bool:
    return -90 <= latitude <= 90 and -180 <= longitude <= 180


def distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance in meters on a sphere of the Earth's mean radius."""
    radius = (EARTH_EQ_RADIUS + EARTH_POLAR_RADIUS) / 2
    lat_delta = math.radians(lat1 - lat2)
    lon_delta = math.radians(lon1 - lon2)
    a = (
        math.sin(lat_delta / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(lon_delta / 2) ** 2
    )
    return radius * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_to_latitude_degrees(meters: float) -> float:
    return meters / METERS_PER_DEGREE_LATITUDE


def distance_to_longitude_degrees(meters: float, latitude: float) -> float:
    radians = math.radians(latitude)
    numerator = math.cos(radians) * EARTH_EQ_RADIUS * math.pi / 180
    denominator = 1 / math.sqrt(1 - EARTH_E2 * math.sin(radians) ** 2)
    meters_per_degree = numerator * denominator
    if meters_per_degree < EPSILON:
        return 360.0 if meters > 0 else meters
    return min(360.0, meters / meters_per_degree)


def wrap_longitude(longitude: float) -> float:
    if -180 <= longitude <= 180:
        return longitude
    adjusted = longitude + 180
    if adjusted > 0:
        return adjusted % 360.0 - 180
    return 180 - (-adjusted % 360.0)


def cap_radius(radius: float) -> float:
    if radius > MAX_SUPPORTED_RADIUS:
        logger.warning(
            "Radius %.1f m exceeds the supported maximum, using %.1f m",
            radius,
            MAX_SUPPORTED_RADIUS,
        )
        return MAX_SUPPORTED_RADIUS
    return radius
