"""Processing helpers for snapshot data."""

from .lssnap import decode, describe, encode

__all__ = [
    "decode",
    "describe",
    "encode",
]
