from __future__ import annotations

import math
from dataclasses import dataclass

EARTH_RADIUS_KM = 6371.0
# Slightly under 2*pi*R/360 so the box always contains the circle.
KM_PER_DEGREE_LATITUDE = 111.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometers between two (lat, lon) points given in degrees."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


@dataclass(frozen=True)
class EtaModel:
    """Travel + queue heuristic: ceil(distance / speed) + wait."""

    speed_km_per_min: float = 2.0
    wait_minutes: int = 5

    def __post_init__(self) -> None:
        if self.speed_km_per_min <= 0:
            raise ValueError("speed_km_per_min must be positive.")
        if self.wait_minutes < 0:
            raise ValueError("wait_minutes cannot be negative.")

    def estimate_minutes(self, distance_km: float) -> int:
        return math.ceil(max(0.0, distance_km) / self.speed_km_per_min) + self.wait_minutes


@dataclass(frozen=True)
class BoundingBox:
    min_latitude: float
    max_latitude: float
    min_longitude: float
    max_longitude: float


def bounding_box(latitude: float, longitude: float, radius_km: float) -> BoundingBox:
    """Lat/lon box enclosing the circle of radius_km around the origin.

    Near the poles, or when the box would wrap the antimeridian, longitude is left unbounded.
    """
    lat_delta = radius_km / KM_PER_DEGREE_LATITUDE
    min_lat = max(-90.0, latitude - lat_delta)
    max_lat = min(90.0, latitude + lat_delta)

    cos_lat = math.cos(math.radians(max(abs(min_lat), abs(max_lat))))
    if cos_lat <= 1e-9:
        return BoundingBox(min_lat, max_lat, -180.0, 180.0)

    lon_delta = radius_km / (KM_PER_DEGREE_LATITUDE * cos_lat)
    if lon_delta >= 180.0 or longitude - lon_delta < -180.0 or longitude + lon_delta > 180.0:
        return BoundingBox(min_lat, max_lat, -180.0, 180.0)
    return BoundingBox(min_lat, max_lat, longitude - lon_delta, longitude + lon_delta)
