# landplots/utils/measurement.py
"""
Area, perimeter and side lengths of a canonical ring.

Two distance models are supported and one is picked globally through
MEASUREMENT_MODEL so every stored plot is comparable:

  planar    coordinates are treated as Cartesian; results are in coordinate
            units (and units squared for area)
  geodesic  lengths and area on the WGS84 ellipsoid (pyproj / Karney),
            in metres and square metres
"""

import logging
import math
from dataclasses import dataclass
from typing import Tuple

from pyproj import Geod

from landplots.config import MEASUREMENT_MODELS
from landplots.utils.geometry_codec import Ring
from landplots.utils.geometry_validator import signed_area

logger = logging.getLogger(__name__)

geod = Geod(ellps="WGS84")


@dataclass(frozen=True)
class Measurements:
    area: float
    perimeter: float
    side_lengths: Tuple[float, ...]


def planar_side_lengths(ring: Ring) -> Tuple[float, ...]:
    return tuple(
        math.hypot(x2 - x1, y2 - y1)
        for (x1, y1), (x2, y2) in zip(ring, ring[1:])
    )


def planar_area(ring: Ring) -> float:
    return abs(signed_area(ring))


def geodesic_side_lengths(ring: Ring) -> Tuple[float, ...]:
    lons = [x for x, _ in ring]
    lats = [y for _, y in ring]
    return tuple(float(d) for d in geod.line_lengths(lons, lats))


def geodesic_area(ring: Ring) -> float:
    # closing point is implied by pyproj
    lons = [x for x, _ in ring[:-1]]
    lats = [y for _, y in ring[:-1]]
    area, _ = geod.polygon_area_perimeter(lons, lats)
    return abs(float(area))


class MeasurementEngine:

    def __init__(self, model: str = "geodesic"):
        if model not in MEASUREMENT_MODELS:
            raise ValueError(f"unknown measurement model {model!r}; expected one of {MEASUREMENT_MODELS}")
        self.model = model

    def measure(self, ring: Ring) -> Measurements:
        """All three measurements of a validated ring, computed together."""
        if self.model == "geodesic":
            side_lengths = geodesic_side_lengths(ring)
            area = geodesic_area(ring)
        else:
            side_lengths = planar_side_lengths(ring)
            area = planar_area(ring)

        perimeter = math.fsum(side_lengths)
        logger.debug(
            "Measured ring (%s): area=%.6f perimeter=%.6f edges=%d",
            self.model, area, perimeter, len(side_lengths),
        )
        return Measurements(area=area, perimeter=perimeter, side_lengths=side_lengths)


def measure(ring: Ring, model: str = "geodesic") -> Measurements:
    return MeasurementEngine(model).measure(ring)
