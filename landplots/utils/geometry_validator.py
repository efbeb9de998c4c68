# landplots/utils/geometry_validator.py

import math

from shapely.geometry import LinearRing

from landplots.errors import (
    NonFiniteCoordinateError,
    NotClosedError,
    SelfIntersectingError,
    TooFewVerticesError,
)
from landplots.utils.geometry_codec import Ring

MIN_RING_COORDS = 4      # 3 distinct vertices + closing point
MIN_DISTINCT_VERTICES = 3


def validate_wgs84(lon: float, lat: float) -> bool:
    """Finite and within the longitude/latitude domain."""
    if not (math.isfinite(lon) and math.isfinite(lat)):
        return False
    return -180 <= lon <= 180 and -90 <= lat <= 90


def signed_area(ring: Ring) -> float:
    """Shoelace signed area of a closed ring; positive when counter-clockwise."""
    total = math.fsum(
        x1 * y2 - x2 * y1
        for (x1, y1), (x2, y2) in zip(ring, ring[1:])
    )
    return total / 2.0


def is_simple(ring: Ring) -> bool:
    return LinearRing(ring).is_simple


class GeometryValidator:
    """
    Checks a decoded ring and returns it in canonical form.

    Canonical form is closed, has at least three distinct vertices, stays
    inside the WGS84 domain and runs counter-clockwise. Clockwise input is
    reversed; reversing a closed ring keeps its origin vertex in place.
    """

    def __init__(self, check_self_intersection: bool = True):
        self.check_self_intersection = check_self_intersection

    def validate(self, ring: Ring) -> Ring:
        ring = tuple(ring)

        if len(ring) < MIN_RING_COORDS:
            raise TooFewVerticesError(
                f"a polygon ring needs at least {MIN_RING_COORDS} coordinates, got {len(ring)}"
            )

        for i, (x, y) in enumerate(ring):
            if not validate_wgs84(x, y):
                raise NonFiniteCoordinateError(
                    f"coordinate {i} ({x}, {y}) is not a finite lon/lat within [-180,180] x [-90,90]"
                )

        if ring[0] != ring[-1]:
            raise NotClosedError(
                f"ring is not closed: first {ring[0]} != last {ring[-1]}"
            )

        if len(set(ring[:-1])) < MIN_DISTINCT_VERTICES:
            raise TooFewVerticesError(
                f"a polygon ring needs at least {MIN_DISTINCT_VERTICES} distinct vertices"
            )

        if self.check_self_intersection and not is_simple(ring):
            raise SelfIntersectingError("ring edges cross or touch each other")

        if signed_area(ring) < 0:
            ring = ring[::-1]
        return ring


def validate(ring: Ring, check_self_intersection: bool = True) -> Ring:
    return GeometryValidator(check_self_intersection).validate(ring)
