"""
Approximate isochrone rings.

Instead of asking an isoline provider for the boundary, the ring is built
from at most 8 route-time queries (two candidate distances along each
cardinal direction) and linear interpolation between the cardinals. The
projection is equirectangular, good enough for a visual travel-time ring.
"""

import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Callable, Dict, List, Literal, Optional, Sequence, Tuple

from core.config import settings
from modules.geometry import IsochroneRing, Point, RouteSummary

from .adapter import fetch_route_summary

logger = logging.getLogger(__name__)

TravelMode = Literal["drive", "walk", "bike"]

# (origin, destination, mode, timeout_s) -> RouteSummary
DirectionsProvider = Callable[[Point, Point, str, float], RouteSummary]

AVG_SPEED_MPH = {
    "walk": 3.0,
    "bike": 12.0,
    "drive": 30.0,
}

MILES_PER_DEGREE_LAT = 69.0
CARDINAL_ANGLES_DEG = (0.0, 90.0, 180.0, 270.0)  # N, E, S, W
CANDIDATE_FACTORS = (0.9, 1.1)


def naive_distance_miles(target_minutes: float, mode: str) -> float:
    if mode not in AVG_SPEED_MPH:
        raise ValueError(f"Unsupported travel mode: {mode}")
    return (target_minutes / 60.0) * AVG_SPEED_MPH[mode]


def project_point(center: Point, distance_miles: float, angle_deg: float) -> Point:
    """Offset ``center`` by ``distance_miles`` along a compass bearing (0 = north)."""
    angle = math.radians(angle_deg)
    lat_offset = distance_miles * math.cos(angle) / MILES_PER_DEGREE_LAT
    lng_offset = distance_miles * math.sin(angle) / (
        MILES_PER_DEGREE_LAT * math.cos(math.radians(center.lat))
    )
    return Point(lat=center.lat + lat_offset, lng=center.lng + lng_offset)


def interpolate_distance(cardinal_distances: Sequence[float], angle_deg: float) -> float:
    """
    Distance at an arbitrary bearing from the N/E/S/W distances.

    On a cardinal bearing the cardinal's distance is returned as is; between
    two cardinals the distances are blended by angular fraction.
    """
    angle = angle_deg % 360.0
    index = int(angle // 90.0) % 4
    t = (angle - index * 90.0) / 90.0
    if t == 0:
        return cardinal_distances[index]
    return cardinal_distances[index] * (1 - t) + cardinal_distances[(index + 1) % 4] * t


def refine_cardinal_distances(
    center: Point,
    target_minutes: float,
    mode: str,
    directions: DirectionsProvider,
    query_timeout_s: float,
) -> List[float]:
    """
    Pick, per cardinal direction, the candidate distance whose routed travel
    time is closest to ``target_minutes``.

    All candidate queries run at once. A query that fails or outlives its
    timeout is dropped; a direction with no surviving query keeps the naive
    distance.
    """
    estimate = naive_distance_miles(target_minutes, mode)
    jobs: List[Tuple[int, float, Point]] = [
        (idx, estimate * factor, project_point(center, estimate * factor, angle))
        for idx, angle in enumerate(CARDINAL_ANGLES_DEG)
        for factor in CANDIDATE_FACTORS
    ]

    results: Dict[int, List[Tuple[float, float]]] = {idx: [] for idx in range(len(CARDINAL_ANGLES_DEG))}

    executor = ThreadPoolExecutor(max_workers=len(jobs))
    try:
        submitted = [
            (
                executor.submit(directions, center, destination, mode, query_timeout_s),
                idx,
                distance,
                time.monotonic(),
            )
            for idx, distance, destination in jobs
        ]
        for future, idx, distance, started in submitted:
            remaining = max(0.0, started + query_timeout_s - time.monotonic())
            try:
                route = future.result(timeout=remaining)
            except FutureTimeout:
                logger.warning(f"Route query timed out (bearing {CARDINAL_ANGLES_DEG[idx]:.0f}, {distance:.2f} mi)")
                continue
            except Exception as exc:  # noqa: BLE001
                logger.warning(f"Route query failed (bearing {CARDINAL_ANGLES_DEG[idx]:.0f}, {distance:.2f} mi): {exc}")
                continue
            if route is None or not route.time_seconds:
                continue
            results[idx].append((distance, route.time_seconds / 60.0))
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    distances: List[float] = []
    for idx in range(len(CARDINAL_ANGLES_DEG)):
        best_distance = estimate
        closest_diff = math.inf
        for distance, minutes in results[idx]:
            diff = abs(minutes - target_minutes)
            if diff < closest_diff:
                closest_diff = diff
                best_distance = distance
        distances.append(best_distance)
    return distances


def estimate(
    center: Point,
    target_minutes: int,
    mode: TravelMode = "drive",
    sample_directions: Optional[int] = None,
    directions: Optional[DirectionsProvider] = None,
    query_timeout_s: Optional[float] = None,
) -> IsochroneRing:
    """
    Approximate travel-time ring around ``center``.

    Args:
        center: Origin point (WGS84)
        target_minutes: Travel time the ring represents
        mode: 'drive', 'walk' or 'bike'. Only 'drive' is refined with route queries.
        sample_directions: Number of ring vertices, evenly spaced from north clockwise;
            defaults to settings.isochrone_sample_directions. At least 3.
        directions: Route-time provider; defaults to HERE routing
        query_timeout_s: Per-query timeout; defaults to settings.route_query_timeout_s

    Returns:
        IsochroneRing with ``sample_directions`` points, not closed.
    """
    if target_minutes <= 0:
        raise ValueError("target_minutes must be positive")
    if int(target_minutes) != target_minutes:
        raise ValueError("target_minutes must be a whole number of minutes")
    if sample_directions is None:
        sample_directions = settings.isochrone_sample_directions
    if sample_directions < 3:
        raise ValueError("sample_directions must be at least 3")

    naive = naive_distance_miles(target_minutes, mode)

    if mode == "drive":
        cardinal_distances = refine_cardinal_distances(
            center,
            target_minutes,
            mode,
            directions or fetch_route_summary,
            query_timeout_s if query_timeout_s is not None else settings.route_query_timeout_s,
        )
    else:
        cardinal_distances = [naive] * len(CARDINAL_ANGLES_DEG)

    points: List[Point] = []
    for j in range(sample_directions):
        angle = j * 360.0 / sample_directions
        distance = interpolate_distance(cardinal_distances, angle)
        points.append(project_point(center, distance, angle))

    logger.debug(f"Estimated {target_minutes}min {mode} ring | cardinal miles: {cardinal_distances}")
    return IsochroneRing(minutes=int(target_minutes), points=points)


def estimate_rings(
    center: Point,
    time_ranges: Sequence[int],
    mode: TravelMode = "drive",
    sample_directions: Optional[int] = None,
    directions: Optional[DirectionsProvider] = None,
    query_timeout_s: Optional[float] = None,
) -> List[IsochroneRing]:
    """One ring per travel time, in the order given."""
    return [
        estimate(
            center,
            minutes,
            mode,
            sample_directions=sample_directions,
            directions=directions,
            query_timeout_s=query_timeout_s,
        )
        for minutes in time_ranges
    ]
