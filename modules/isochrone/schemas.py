from pydantic import BaseModel, Field
from typing import Annotated, List, Literal, Optional

from modules.geometry import IsochroneRing

class IsochroneRingsRequest(BaseModel):
    """
    Request Model for the approximate isochrone ring estimator.
    Input coordinates are WGS84.
    """
    lat: float = Field(..., description="Latitude", ge=-90, le=90)
    lng: float = Field(..., description="Longitude", ge=-180, le=180)
    time_ranges: List[Annotated[int, Field(gt=0, le=120)]] = Field([5, 10, 15, 20], description="Time Horizons (minutes)", min_length=1)
    mode: Literal["drive", "walk", "bike"] = Field("drive", description="Transportation Mode")
    sample_directions: Optional[int] = Field(None, description="Vertices per ring (default from settings)", ge=3, le=360)

class IsochroneRingsResponse(BaseModel):
    """
    Rings in the order of the requested time ranges (open, not closed)
    """
    mode: str
    rings: List[IsochroneRing]
    calc_time_ms: int = 0
