"""
Coordinate and geometry models shared by the codec, the polygon kernel,
the overlap resolver and the ring estimator.

Coordinates are geographic degrees. ``Geometry`` is a discriminated union on
``type`` so every kernel operation dispatches on an explicit tag.
"""

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class Point(BaseModel):
    lat: float = Field(..., description="Latitude (degrees)")
    lng: float = Field(..., description="Longitude (degrees)")
    z: Optional[float] = Field(None, description="Third dimension, carried through unmodified")


Ring = List[Point]


class Polygon(BaseModel):
    """Single outer ring. Holes are not modelled."""

    type: Literal["Polygon"] = "Polygon"
    ring: Ring


class MultiPolygon(BaseModel):
    type: Literal["MultiPolygon"] = "MultiPolygon"
    polygons: List[Polygon] = Field(default_factory=list)


Geometry = Annotated[Union[Polygon, MultiPolygon], Field(discriminator="type")]


class PolylineDecodeResult(BaseModel):
    points: List[Point] = Field(default_factory=list)
    has_third_dimension: bool = False
    third_dim_type: int = 0


class OverlapResult(BaseModel):
    has_overlap: bool
    polygon: Optional[Geometry] = None
    area_sq_mi: Optional[float] = None
    centroid: Optional[Point] = None


class IsochroneRing(BaseModel):
    minutes: int
    points: List[Point] = Field(default_factory=list)


class RouteSummary(BaseModel):
    """Answer of the directions collaborator for one origin/destination pair."""

    time_seconds: float
    distance_miles: float
