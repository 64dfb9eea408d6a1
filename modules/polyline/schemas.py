from pydantic import BaseModel, Field


class PolylineDecodeRequest(BaseModel):
    encoded: str = Field(..., min_length=1, description="HERE flexible polyline")
