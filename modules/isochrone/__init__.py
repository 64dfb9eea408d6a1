from .adapter import fetch_isoline_ring, fetch_route_summary
from .core import (
    AVG_SPEED_MPH,
    estimate,
    estimate_rings,
    interpolate_distance,
    naive_distance_miles,
    project_point,
    refine_cardinal_distances,
)

__all__ = [
    "AVG_SPEED_MPH",
    "estimate",
    "estimate_rings",
    "fetch_isoline_ring",
    "fetch_route_summary",
    "interpolate_distance",
    "naive_distance_miles",
    "project_point",
    "refine_cardinal_distances",
]
