import logging
from typing import Any, Dict, Optional

import requests

from core.config import settings
from core.exceptions import BizError, ExternalApiError
from modules.geometry import Point, Ring, RouteSummary
from modules.polyline import decode_ring

logger = logging.getLogger(__name__)

METERS_PER_MILE = 1609.344

# HERE transport modes for the travel modes this service accepts.
HERE_TRANSPORT_MODES = {
    "walk": "pedestrian",
    "bike": "bicycle",
    "drive": "car",
}


def _fmt_point(pt: Point) -> str:
    return f"{pt.lat},{pt.lng}"


def _get_json(url: str, params: Dict[str, Any], timeout: float) -> Dict[str, Any]:
    if not settings.here_api_key:
        raise ExternalApiError("HERE API key not configured", code=500)

    try:
        resp = requests.get(url, params={"apiKey": settings.here_api_key, **params}, timeout=timeout)
    except requests.RequestException as e:
        logger.error(f"HERE API connection failed: {e}")
        raise ExternalApiError("HERE API request failed", original_error=str(e))

    if resp.status_code == 429:
        logger.warning("HERE API rate limit exceeded")
        raise ExternalApiError("Rate limit exceeded. Please try again later.", resp.text, code=429)

    try:
        resp.raise_for_status()
    except requests.HTTPError as e:
        logger.error(f"HERE API error: {resp.status_code} {resp.text[:200]}")
        raise ExternalApiError("HERE API request failed", original_error=str(e))

    try:
        return resp.json()
    except ValueError as e:
        raise ExternalApiError("HERE API returned invalid JSON", original_error=str(e))


def fetch_isoline_ring(origin: Point, minutes: float, mode: str = "drive") -> Optional[Ring]:
    """
    Fetch a travel-time isoline from HERE and decode its outer boundary.

    Args:
        origin: Center point (WGS84)
        minutes: Travel time; HERE needs at least 60 seconds
        mode: 'drive', 'walk' or 'bike'

    Returns:
        Decoded open ring, or None when HERE returned no usable polygon.
    """
    range_seconds = max(60, round(minutes * 60))
    if range_seconds > settings.here_max_isoline_range_s:
        raise BizError(
            f"Range exceeds maximum ({settings.here_max_isoline_range_s} seconds)",
            code=400,
            payload={"range_seconds": range_seconds},
        )

    params = {
        "origin": _fmt_point(origin),
        "range[type]": "time",
        "range[values]": str(range_seconds),
        "transportMode": HERE_TRANSPORT_MODES.get(mode, "car"),
        "optimizeFor": "balanced",
    }
    logger.info(f"Requesting HERE isoline | Origin: {params['origin']} | Range: {range_seconds}s | Mode: {params['transportMode']}")

    data = _get_json(settings.here_isoline_url, params, settings.here_timeout_s)

    isolines = data.get("isolines") or []
    polygons = (isolines[0].get("polygons") or []) if isolines else []
    outer = polygons[0].get("outer") if polygons else None
    if not outer:
        logger.warning("HERE returned no isoline polygon.")
        return None

    ring = decode_ring(str(outer))
    if len(ring) < 3:
        return None
    return ring


def fetch_route_summary(
    origin: Point,
    destination: Point,
    mode: str = "drive",
    timeout: Optional[float] = None,
) -> RouteSummary:
    """
    Travel time and distance of the first HERE route between two points.
    """
    params = {
        "origin": _fmt_point(origin),
        "destination": _fmt_point(destination),
        "transportMode": HERE_TRANSPORT_MODES.get(mode, "car"),
        "return": "summary",
    }
    data = _get_json(
        settings.here_routes_url,
        params,
        timeout if timeout is not None else settings.here_timeout_s,
    )

    routes = data.get("routes") or []
    sections = (routes[0].get("sections") or []) if routes else []
    if not sections:
        raise ExternalApiError("HERE returned no route", original_error=str(data.get("notices", "")))

    duration_s = 0.0
    length_m = 0.0
    for section in sections:
        summary = section.get("summary") or {}
        duration_s += float(summary.get("duration", 0))
        length_m += float(summary.get("length", 0))

    return RouteSummary(time_seconds=duration_s, distance_miles=length_m / METERS_PER_MILE)
