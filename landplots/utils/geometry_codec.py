# landplots/utils/geometry_codec.py
# Conversion between exchange geometry and the canonical ring

from numbers import Real
from typing import Any, List, Mapping, Tuple

from geoalchemy2.elements import WKBElement
from geoalchemy2.shape import from_shape, to_shape
from shapely import wkt
from shapely.errors import ShapelyError
from shapely.geometry import Polygon

from landplots.errors import DecodeError

SRID = 4326

Coordinate = Tuple[float, float]
Ring = Tuple[Coordinate, ...]


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _decode_pair(pair: Any, index: int) -> Coordinate:
    if isinstance(pair, (str, bytes)) or not isinstance(pair, (list, tuple)):
        raise DecodeError(f"coordinate {index} is not an [x, y] pair")
    if len(pair) and isinstance(pair[0], (list, tuple)):
        raise DecodeError("nested ring structures are not supported; expected a single linear ring")
    if len(pair) != 2:
        raise DecodeError(f"coordinate {index} must have exactly 2 values, got {len(pair)}")
    x, y = pair
    if not (_is_number(x) and _is_number(y)):
        raise DecodeError(f"coordinate {index} must contain numbers")
    try:
        return (float(x), float(y))
    except OverflowError as exc:
        raise DecodeError(f"coordinate {index} is out of range") from exc


def _decode_coordinate_list(coords: Any) -> Ring:
    if isinstance(coords, (str, bytes)) or not isinstance(coords, (list, tuple)):
        raise DecodeError("geometry coordinates must be a list of [x, y] pairs")
    return tuple(_decode_pair(pair, i) for i, pair in enumerate(coords))


def _decode_geojson(geometry: Mapping) -> Ring:
    geom_type = geometry.get("type")
    if geom_type != "Polygon":
        raise DecodeError(f"unsupported geometry type {geom_type!r}; only single Polygons are accepted")

    rings = geometry.get("coordinates")
    if not isinstance(rings, (list, tuple)) or not rings:
        raise DecodeError("Polygon geometry is missing its coordinate array")
    if len(rings) != 1:
        raise DecodeError("Polygons with interior rings are not supported")
    return _decode_coordinate_list(rings[0])


def _decode_wkt(text: str) -> Ring:
    try:
        shape = wkt.loads(text)
    except (ShapelyError, ValueError) as exc:
        raise DecodeError(f"invalid WKT geometry: {exc}") from exc

    if shape.geom_type != "Polygon":
        raise DecodeError(f"unsupported geometry type {shape.geom_type!r}; only single Polygons are accepted")
    if len(shape.interiors):
        raise DecodeError("Polygons with interior rings are not supported")
    return tuple((float(x), float(y)) for x, y, *_ in shape.exterior.coords)


def decode(geometry: Any) -> Ring:
    """
    Parse exchange geometry into a ring of (x, y) float tuples.

    Accepts an ordered list of [lon, lat] pairs, a GeoJSON-style Polygon
    mapping with exactly one ring, or a WKT POLYGON string. Closure and vertex
    count are not checked here; see GeometryValidator.

    Raises:
        DecodeError: the input is not a single linear ring.
    """
    if geometry is None:
        raise DecodeError("geometry is missing")
    if isinstance(geometry, Mapping):
        return _decode_geojson(geometry)
    if isinstance(geometry, str):
        return _decode_wkt(geometry)
    return _decode_coordinate_list(geometry)


def encode(ring: Ring) -> List[List[float]]:
    """Canonical ring -> list of [lon, lat] pairs."""
    return [[x, y] for x, y in ring]


def encode_geojson(ring: Ring) -> dict:
    return {"type": "Polygon", "coordinates": [encode(ring)]}


def to_storage_bytes(ring: Ring) -> bytes:
    element = from_shape(Polygon(ring), srid=SRID)
    return bytes(element.data)


def from_storage_bytes(data: bytes) -> Ring:
    shape = to_shape(WKBElement(bytes(data), srid=SRID))
    return tuple((x, y) for x, y, *_ in shape.exterior.coords)
