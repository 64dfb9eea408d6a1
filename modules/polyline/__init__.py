from .codec import ENCODING_CHARS, decode, decode_ring

__all__ = [
    "ENCODING_CHARS",
    "decode",
    "decode_ring",
]
