import logging
from typing import List, Optional, Sequence

from modules.geometry import (
    Geometry,
    OverlapResult,
    Polygon,
    Ring,
    area,
    centroid,
    close_ring,
    intersect,
    normalize,
    sq_meters_to_sq_miles,
)

logger = logging.getLogger(__name__)


def resolve(
    rings: Sequence[Ring],
    location_ids: Optional[Sequence[str]] = None,
) -> OverlapResult:
    """
    Find the region reachable from every location.

    Args:
        rings: One travel-time ring per location (open or closed).
        location_ids: Optional labels, same length as ``rings``. Labels of the
            wrong length are ignored with a warning.

    Returns:
        OverlapResult. ``has_overlap`` is False when fewer than two rings are
        given, when the running intersection empties out, or when the kernel
        fails on a step.
    """
    if location_ids is not None and len(location_ids) != len(rings):
        logger.warning(
            f"Ignoring location_ids: {len(location_ids)} labels for {len(rings)} rings"
        )
        location_ids = None

    if len(rings) < 2:
        return OverlapResult(has_overlap=False)

    labels: List[str] = (
        [str(i) for i in location_ids] if location_ids is not None
        else [str(i) for i in range(len(rings))]
    )

    acc: Geometry = Polygon(ring=close_ring(rings[0]))
    for label, ring in zip(labels[1:], rings[1:]):
        try:
            step = intersect(acc, Polygon(ring=close_ring(ring)))
        except Exception as exc:  # noqa: BLE001
            logger.error(f"Overlap computation failed at location {label}: {exc}")
            return OverlapResult(has_overlap=False)

        if step is None:
            logger.info(f"No common reachable area once location {label} is included")
            return OverlapResult(has_overlap=False)
        acc = step

    try:
        polygon = normalize(acc)
        area_sq_mi = sq_meters_to_sq_miles(area(polygon))
        center = centroid(polygon)
    except Exception as exc:  # noqa: BLE001
        logger.error(f"Overlap measurement failed: {exc}")
        return OverlapResult(has_overlap=False)

    return OverlapResult(
        has_overlap=True,
        polygon=polygon,
        area_sq_mi=area_sq_mi,
        centroid=center,
    )
