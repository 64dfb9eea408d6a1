import logging
import math
from typing import Any, Iterable, List, Optional, Sequence

from shapely.errors import GEOSException
from shapely.geometry import GeometryCollection
from shapely.geometry import MultiPolygon as ShapelyMultiPolygon
from shapely.geometry import Polygon as ShapelyPolygon
from shapely.ops import unary_union

from .types import Geometry, MultiPolygon, Point, Polygon, Ring

logger = logging.getLogger(__name__)

# WGS84 equatorial radius, the sphere used by GeoJSON area calculations.
EARTH_RADIUS_M = 6378137.0
SQ_METERS_PER_SQ_MILE = 2_589_988.110336

# Vertices closer than this (degrees, per axis) are the same vertex.
VERTEX_EPSILON = 1e-12


def sq_meters_to_sq_miles(area_m2: float) -> float:
    return area_m2 / SQ_METERS_PER_SQ_MILE


def format_sq_mi(area_sq_mi: float) -> str:
    if area_sq_mi < 1:
        return f"{area_sq_mi:.2f} sq mi"
    if area_sq_mi < 10:
        return f"{area_sq_mi:.1f} sq mi"
    return f"{round(area_sq_mi)} sq mi"


# =============================================================================
# Rings
# =============================================================================

def _same_vertex(a: Point, b: Point) -> bool:
    return abs(a.lat - b.lat) <= VERTEX_EPSILON and abs(a.lng - b.lng) <= VERTEX_EPSILON


def close_ring(points: Sequence[Point]) -> Ring:
    """Append a copy of the first point when the ring is open."""
    ring = list(points)
    if len(ring) < 3:
        return ring
    first = ring[0]
    last = ring[-1]
    if first.lat == last.lat and first.lng == last.lng:
        return ring
    return ring + [first.model_copy()]


def _open_ring(points: Sequence[Point]) -> List[Point]:
    ring = list(points)
    if len(ring) > 1 and _same_vertex(ring[0], ring[-1]):
        ring = ring[:-1]
    return ring


def _dedupe(points: Sequence[Point]) -> List[Point]:
    out: List[Point] = []
    for pt in points:
        if out and _same_vertex(out[-1], pt):
            continue
        out.append(pt)
    # Wrap-around duplicate left after removing the closing vertex.
    while len(out) > 1 and _same_vertex(out[0], out[-1]):
        out.pop()
    return out


def _signed_area(points: Sequence[Point]) -> float:
    """Shoelace area in lng/lat space. Positive = counter-clockwise."""
    n = len(points)
    if n < 3:
        return 0.0
    total = 0.0
    for i in range(n):
        j = (i + 1) % n
        total += points[i].lng * points[j].lat
        total -= points[j].lng * points[i].lat
    return total / 2.0


def _normalize_ring(points: Sequence[Point]) -> Ring:
    ring = _dedupe(_open_ring(points))
    if len(ring) >= 3 and _signed_area(ring) < 0:
        ring = ring[::-1]
    if len(ring) >= 2:
        ring = ring + [ring[0]]
    return [pt.model_copy() for pt in ring]


# =============================================================================
# Geometry helpers
# =============================================================================

def _parts(g: Geometry) -> List[Polygon]:
    if isinstance(g, Polygon):
        return [g]
    if isinstance(g, MultiPolygon):
        return list(g.polygons)
    raise TypeError(f"Unsupported geometry: {type(g).__name__}")


def _distinct_vertices(g: Geometry) -> List[Point]:
    out: List[Point] = []
    for part in _parts(g):
        out.extend(_dedupe(_open_ring(part.ring)))
    return out


def to_shapely(g: Geometry) -> Any:
    """Convert to a shapely geometry in (lng, lat) axis order."""
    if isinstance(g, Polygon):
        return ShapelyPolygon([(pt.lng, pt.lat) for pt in close_ring(g.ring)])
    if isinstance(g, MultiPolygon):
        return ShapelyMultiPolygon([to_shapely(part) for part in g.polygons])
    raise TypeError(f"Unsupported geometry: {type(g).__name__}")


def _iter_polygons(geom: Any) -> Iterable[ShapelyPolygon]:
    if geom is None or geom.is_empty:
        return
    if isinstance(geom, ShapelyPolygon):
        yield geom
        return
    if isinstance(geom, ShapelyMultiPolygon):
        for poly in geom.geoms:
            if not poly.is_empty:
                yield poly
        return
    if isinstance(geom, GeometryCollection):
        for item in geom.geoms:
            yield from _iter_polygons(item)


def _polygon_from_shapely(poly: ShapelyPolygon) -> Polygon:
    return Polygon(ring=[Point(lat=float(y), lng=float(x)) for x, y in poly.exterior.coords])


def from_shapely(geom: Any) -> Optional[Geometry]:
    """
    Convert a shapely result back to ``Polygon`` / ``MultiPolygon``.

    Non-areal parts (lines and points from touching boundaries) are dropped.
    Returns None when nothing areal remains.
    """
    polygons = [
        _polygon_from_shapely(poly)
        for poly in _iter_polygons(geom)
        if poly.area > 0
    ]
    if not polygons:
        return None
    if len(polygons) == 1:
        return polygons[0]
    return MultiPolygon(polygons=polygons)


# =============================================================================
# Kernel operations
# =============================================================================

def normalize(g: Geometry) -> Geometry:
    """
    Remove consecutive (near-)duplicate vertices and wind every ring
    counter-clockwise. Rings come back closed. Idempotent.
    """
    if isinstance(g, Polygon):
        return Polygon(ring=_normalize_ring(g.ring))
    if isinstance(g, MultiPolygon):
        return MultiPolygon(polygons=[normalize(part) for part in g.polygons])
    raise TypeError(f"Unsupported geometry: {type(g).__name__}")


def _intersect_pair(a: Polygon, b: Polygon) -> List[Polygon]:
    result = to_shapely(a).intersection(to_shapely(b))
    return [
        _polygon_from_shapely(poly)
        for poly in _iter_polygons(result)
        if poly.area > 0
    ]


def intersect(a: Geometry, b: Geometry) -> Optional[Geometry]:
    """
    Best-effort intersection of two geometries.

    Every (part of a, part of b) pair is intersected on its own. A pair whose
    topology the clipping backend rejects is skipped instead of failing the
    whole operation. The surviving pieces are merged with ``union``.

    Returns:
        The overlap, or None when no pair produced a non-empty piece.
    """
    parts_a = _parts(normalize(a))
    parts_b = _parts(normalize(b))

    pieces: List[Geometry] = []
    for pa in parts_a:
        for pb in parts_b:
            try:
                pieces.extend(_intersect_pair(pa, pb))
            except Exception as exc:  # noqa: BLE001
                logger.debug(f"Skipping polygon pair, intersection failed: {exc}")
                continue

    if not pieces:
        return None
    return union(pieces)


def union(pieces: Sequence[Geometry]) -> Geometry:
    """
    Merge pieces into one geometry. Falls back to the first piece when the
    merge fails or yields nothing areal.
    """
    if not pieces:
        raise ValueError("union() needs at least one piece")
    if len(pieces) == 1:
        return pieces[0]

    try:
        merged = from_shapely(unary_union([to_shapely(piece) for piece in pieces]))
    except Exception as exc:  # noqa: BLE001
        logger.warning(f"Union of {len(pieces)} pieces failed, keeping first piece: {exc}")
        return pieces[0]

    if merged is None:
        return pieces[0]
    return merged


def _ring_area(points: Sequence[Point]) -> float:
    """Spherical polygon area of an open ring (square meters, unsigned)."""
    n = len(points)
    if n < 3:
        return 0.0
    total = 0.0
    for i in range(n):
        lower = points[i - 1]
        middle = points[i]
        upper = points[(i + 1) % n]
        total += (math.radians(upper.lng) - math.radians(lower.lng)) * math.sin(math.radians(middle.lat))
    return abs(total * EARTH_RADIUS_M * EARTH_RADIUS_M / 2.0)


def area(g: Geometry) -> float:
    """Surface area in square meters, summed over polygon parts."""
    return sum(_ring_area(_dedupe(_open_ring(part.ring))) for part in _parts(g))


def centroid(g: Geometry) -> Point:
    """
    Area-weighted centroid of the whole geometry. Zero-area input falls back
    to the mean of its distinct vertices.
    """
    vertices = _distinct_vertices(g)
    if not vertices:
        raise ValueError("centroid() of an empty geometry")

    try:
        geom = to_shapely(g)
        if geom.area > 0:
            c = geom.centroid
            return Point(lat=float(c.y), lng=float(c.x))
    except (GEOSException, ValueError) as exc:
        logger.debug(f"Area-weighted centroid unavailable, using vertex mean: {exc}")

    return Point(
        lat=sum(pt.lat for pt in vertices) / len(vertices),
        lng=sum(pt.lng for pt in vertices) / len(vertices),
    )
