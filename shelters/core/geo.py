"""Great-circle distance and rectangular search bounds."""

from __future__ import annotations

import math
from typing import NamedTuple

EARTH_RADIUS_KM = 6371.0
KM_PER_DEGREE = 111.0


class BoundingBox(NamedTuple):
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def contains(self, latitude: float, longitude: float) -> bool:
        return self.min_lat <= latitude <= self.max_lat and self.min_lng <= longitude <= self.max_lng

    def normalized(self) -> "BoundingBox":
        """Widen to the full longitude range when the box wraps, reaches a pole, or has infinite span.

        Stored longitudes live in [-180, 180], so a box reaching past the
        antimeridian would otherwise miss shelters on the other side. A box
        touching a pole covers every meridian near that pole.
        """
        if (
            self.min_lng < -180.0
            or self.max_lng > 180.0
            or self.min_lat <= -90.0
            or self.max_lat >= 90.0
            or not math.isfinite(self.max_lng - self.min_lng)
        ):
            return self._replace(min_lng=-180.0, max_lng=180.0)
        return self


def distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Haversine distance in kilometres between two points given in degrees."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    # rounding can push a slightly past 1.0 for antipodal points
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def _circle_lng_span(center_lat: float, radius_km: float) -> float:
    """Widest longitude offset reached by the circle, or inf when it covers a pole."""
    angular = radius_km / EARTH_RADIUS_KM
    if angular >= math.pi / 2:
        return math.inf
    ratio = math.sin(angular) / math.cos(math.radians(center_lat))
    if ratio >= 1.0:
        return math.inf
    return math.degrees(math.asin(ratio))


def search_bounds(center_lat: float, center_lng: float, radius_km: float) -> BoundingBox:
    """Rectangle containing every point within ``radius_km`` of the center.

    Spans start from the flat 111 km-per-degree estimate. At high latitudes
    and large radii the circle bulges past ``radius / (111 * cos(lat))`` in
    longitude, so the span is raised to the circle's true extent. Circles
    covering a pole get an infinite span, which amounts to no longitude
    filtering.
    """
    lat_span = radius_km / KM_PER_DEGREE
    cos_lat = math.cos(math.radians(center_lat))
    if cos_lat > 0:
        lng_span = max(radius_km / (KM_PER_DEGREE * cos_lat), _circle_lng_span(center_lat, radius_km))
    else:
        lng_span = math.inf

    return BoundingBox(
        min_lat=center_lat - lat_span,
        max_lat=center_lat + lat_span,
        min_lng=center_lng - lng_span,
        max_lng=center_lng + lng_span,
    )
