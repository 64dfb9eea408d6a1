"""
HERE flexible polyline decoder.

Format reference: https://github.com/heremaps/flexible-polyline

    [version varint][header varint][lat delta, lng delta, (z delta)]...

Every character carries 5 payload bits plus a continuation flag (0x20).
Decode-only: nothing in this service produces polylines.
"""

from typing import Dict, List, Optional, Tuple

from core.exceptions import InvalidCharacterError, TruncatedVarintError
from modules.geometry.types import Point, PolylineDecodeResult, Ring

ENCODING_CHARS = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"
DECODING_TABLE: Dict[str, int] = {char: idx for idx, char in enumerate(ENCODING_CHARS)}

CONTINUATION_BIT = 0x20
PAYLOAD_MASK = 0x1F


def _decode_unsigned_varint(encoded: str, index: int) -> Tuple[int, int]:
    """
    Read one unsigned varint starting at ``index``.

    Returns:
        (value, index of the next unread character)
    """
    result = 0
    shift = 0
    while index < len(encoded):
        char = encoded[index]
        value = DECODING_TABLE.get(char)
        if value is None:
            raise InvalidCharacterError(char, index)

        result |= (value & PAYLOAD_MASK) << shift
        index += 1
        if not value & CONTINUATION_BIT:
            return result, index
        shift += 5

    raise TruncatedVarintError(index)


def _decode_signed_varint(encoded: str, index: int) -> Tuple[int, int]:
    raw, index = _decode_unsigned_varint(encoded, index)
    # zig-zag
    return (raw >> 1) ^ -(raw & 1), index


def decode(encoded: str) -> PolylineDecodeResult:
    """
    Decode a flexible polyline string.

    Args:
        encoded: Polyline string over the URL-safe base64 alphabet.

    Returns:
        PolylineDecodeResult with the points in encoding order. ``z`` is set
        only when the header declares a third dimension.

    Raises:
        InvalidCharacterError: A character outside the alphabet was found.
        TruncatedVarintError: The input ended in the middle of a varint.
    """
    index = 0
    # Version is consumed but not interpreted.
    _, index = _decode_unsigned_varint(encoded, index)
    header, index = _decode_unsigned_varint(encoded, index)

    precision = header & 0x0F
    third_dim_precision = (header >> 4) & 0x0F
    third_dim_type = (header >> 8) & 0x07

    multiplier = 10 ** precision
    third_multiplier = 10 ** third_dim_precision
    has_third_dimension = third_dim_type != 0

    lat = 0
    lng = 0
    z = 0
    points: List[Point] = []

    while index < len(encoded):
        delta, index = _decode_signed_varint(encoded, index)
        lat += delta
        if index >= len(encoded):
            break

        delta, index = _decode_signed_varint(encoded, index)
        lng += delta

        out_z: Optional[float] = None
        if has_third_dimension and index < len(encoded):
            delta, index = _decode_signed_varint(encoded, index)
            z += delta
            out_z = z / third_multiplier

        points.append(Point(lat=lat / multiplier, lng=lng / multiplier, z=out_z))

    return PolylineDecodeResult(
        points=points,
        has_third_dimension=has_third_dimension,
        third_dim_type=third_dim_type,
    )


def decode_ring(encoded: str) -> Ring:
    """Decode an encoded boundary (e.g. an isoline ``outer``) into a ring."""
    return decode(encoded).points
