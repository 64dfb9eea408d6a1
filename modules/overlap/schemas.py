from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from modules.geometry import Geometry, Point

TravelModeField = Literal["drive", "walk", "bike"]


class OverlapRequest(BaseModel):
    """
    Pre-decoded rings, one per location.
    """
    rings: List[List[Point]] = Field(..., description="Travel-time rings ([{lat, lng}, ...])")
    location_ids: Optional[List[str]] = Field(None, description="Labels matching rings one to one")

    @model_validator(mode="after")
    def _ids_match_rings(self):
        if self.location_ids is not None and len(self.location_ids) != len(self.rings):
            raise ValueError("location_ids must match rings one to one")
        return self


class IsolineLocation(BaseModel):
    id: Optional[str] = Field(None, description="Caller supplied label")
    lat: float = Field(..., description="Latitude", ge=-90, le=90)
    lng: float = Field(..., description="Longitude", ge=-180, le=180)
    time_min: Optional[float] = Field(None, description="Travel time for this location (overrides the request default)", gt=0, le=120)
    mode: Optional[TravelModeField] = Field(None, description="Travel mode for this location (overrides the request default)")


class IsolineOverlapRequest(BaseModel):
    """
    Fetch an isoline for every location from the provider, then overlap them.
    ``time_min`` and ``mode`` apply to locations that don't set their own.
    """
    locations: List[IsolineLocation] = Field(..., min_length=2)
    time_min: float = Field(15, description="Default travel time (minutes)", gt=0, le=120)
    mode: TravelModeField = Field("drive", description="Default travel mode")


class OverlapResponse(BaseModel):
    has_overlap: bool
    polygon: Optional[Geometry] = None
    area_sq_mi: Optional[float] = None
    area_label: Optional[str] = None
    centroid: Optional[Point] = None
    location_ids: List[str] = Field(default_factory=list)
