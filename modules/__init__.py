"""Convenience exports for the geometry engine."""

from .isochrone import estimate, estimate_rings
from .overlap import resolve
from .polyline import decode

__all__ = [
    "decode",
    "estimate",
    "estimate_rings",
    "resolve",
]
