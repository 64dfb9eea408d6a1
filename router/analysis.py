from fastapi import APIRouter
import logging
import time
import asyncio

from modules.geometry import PolylineDecodeResult, Point, format_sq_mi
from modules.isochrone import estimate_rings, fetch_isoline_ring
from modules.isochrone.schemas import IsochroneRingsRequest, IsochroneRingsResponse
from modules.overlap import resolve
from modules.overlap.schemas import IsolineOverlapRequest, OverlapRequest, OverlapResponse
from modules.polyline import decode
from modules.polyline.schemas import PolylineDecodeRequest

logger = logging.getLogger(__name__)


router = APIRouter(prefix="/api/v1", tags=["Spatial Analysis"])


def _overlap_response(rings, location_ids) -> OverlapResponse:
    result = resolve(rings, location_ids)
    return OverlapResponse(
        has_overlap=result.has_overlap,
        polygon=result.polygon,
        area_sq_mi=result.area_sq_mi,
        area_label=format_sq_mi(result.area_sq_mi) if result.area_sq_mi is not None else None,
        centroid=result.centroid,
        location_ids=list(location_ids or []),
    )


@router.post(
    "/polyline/decode",
    response_model=PolylineDecodeResult,
    summary="Decode Flexible Polyline",
)
async def decode_polyline_endpoint(payload: PolylineDecodeRequest):
    # Malformed input raises PolylineDecodeError, rendered by the BizError handler.
    return decode(payload.encoded)


@router.post(
    "/analysis/overlap",
    response_model=OverlapResponse,
    summary="Overlap of Travel-Time Rings",
    description="Intersects pre-decoded rings and returns the area reachable from every location."
)
async def overlap_endpoint(payload: OverlapRequest):
    return await asyncio.to_thread(_overlap_response, payload.rings, payload.location_ids)


@router.post(
    "/analysis/isoline-overlap",
    response_model=OverlapResponse,
    summary="Overlap of Provider Isolines",
    description="Fetches one HERE isoline per location and intersects them."
)
async def isoline_overlap_endpoint(payload: IsolineOverlapRequest):
    start_time = time.time()
    # All provider requests are in flight at once; results keep location order.
    fetched = await asyncio.gather(*(
        asyncio.to_thread(
            fetch_isoline_ring,
            Point(lat=loc.lat, lng=loc.lng),
            loc.time_min if loc.time_min is not None else payload.time_min,
            loc.mode or payload.mode,
        )
        for loc in payload.locations
    ))

    rings = []
    location_ids = []
    for idx, (loc, ring) in enumerate(zip(payload.locations, fetched)):
        if ring is None:
            logger.warning(f"No isoline for location {loc.id or idx}, skipping")
            continue
        rings.append(ring)
        location_ids.append(loc.id or str(idx))

    response = await asyncio.to_thread(_overlap_response, rings, location_ids)
    logger.info(f"Isoline overlap for {len(rings)} locations in {int((time.time() - start_time) * 1000)}ms")
    return response


@router.post(
    "/analysis/isochrone-rings",
    response_model=IsochroneRingsResponse,
    summary="Approximate Isochrone Rings",
    description="Builds travel-time rings from cardinal route queries plus angular interpolation."
)
async def isochrone_rings_endpoint(payload: IsochroneRingsRequest):
    start_time = time.time()
    rings = await asyncio.to_thread(
        estimate_rings,
        Point(lat=payload.lat, lng=payload.lng),
        payload.time_ranges,
        payload.mode,
        payload.sample_directions,
    )
    return {
        "mode": payload.mode,
        "rings": rings,
        "calc_time_ms": int((time.time() - start_time) * 1000),
    }
