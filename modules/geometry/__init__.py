from .kernel import (
    SQ_METERS_PER_SQ_MILE,
    area,
    centroid,
    close_ring,
    format_sq_mi,
    from_shapely,
    intersect,
    normalize,
    sq_meters_to_sq_miles,
    to_shapely,
    union,
)
from .types import (
    Geometry,
    IsochroneRing,
    MultiPolygon,
    OverlapResult,
    Point,
    Polygon,
    PolylineDecodeResult,
    Ring,
    RouteSummary,
)

__all__ = [
    "SQ_METERS_PER_SQ_MILE",
    "Geometry",
    "IsochroneRing",
    "MultiPolygon",
    "OverlapResult",
    "Point",
    "Polygon",
    "PolylineDecodeResult",
    "Ring",
    "RouteSummary",
    "area",
    "centroid",
    "close_ring",
    "format_sq_mi",
    "from_shapely",
    "intersect",
    "normalize",
    "sq_meters_to_sq_miles",
    "to_shapely",
    "union",
]
