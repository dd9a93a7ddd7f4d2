"""
Layout constants and header inspection for the .lssnap snapshot format.

All multi-byte fields are little-endian:

    0-2    magic "LSS"
    3      version (uint8, must be 1)
    4-7    vertex count (int32)
    8-11   annotation block length (int32)
    12-15  reserved
    16...  vertex records, 9 bytes each (int16 x, y, z in mm; uint8 r, g, b)
    then   annotation block (UTF-8 JSON array)
"""

from __future__ import annotations

import logging
import struct
from dataclasses import asdict, dataclass

import numpy as np

from src.shared.exceptions import FormatError

logger = logging.getLogger(__name__)

MAGIC = b"LSS"
VERSION = 1
HEADER_SIZE = 16
VERTEX_RECORD_SIZE = 9

# Positions are stored as integer millimetres
POSITION_SCALE = 1000.0
COLOR_SCALE = 255.0

HEADER_STRUCT = struct.Struct("<3sBii4x")

VERTEX_DTYPE = np.dtype(
    [
        ("x", "<i2"),
        ("y", "<i2"),
        ("z", "<i2"),
        ("r", "u1"),
        ("g", "u1"),
        ("b", "u1"),
    ]
)


@dataclass(frozen=True)
class SnapshotHeader:
    """Fixed 16-byte header of a snapshot buffer."""

    version: int
    vertex_count: int
    annotation_length: int

    @property
    def vertex_block_size(self) -> int:
        return self.vertex_count * VERTEX_RECORD_SIZE

    @property
    def annotation_offset(self) -> int:
        """Byte offset at which the annotation block starts."""
        return HEADER_SIZE + self.vertex_block_size

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def describe(buffer: bytes | bytearray | memoryview) -> SnapshotHeader:
    """
    Parse and validate only the header of a snapshot buffer.

    Parameters
    ----------
    buffer : bytes | bytearray | memoryview
        Raw snapshot bytes (at least the 16-byte header)

    Returns
    -------
    SnapshotHeader
        Parsed header fields

    Raises
    ------
    FormatError
        If the buffer is shorter than the header, the magic or version is
        wrong, or the vertex count is negative
    """
    size = len(buffer)
    if size < HEADER_SIZE:
        raise FormatError(
            "Buffer too short for snapshot header",
            expected=f"{HEADER_SIZE} bytes",
            actual=f"{size} bytes",
        )

    magic, version, vertex_count, annotation_length = HEADER_STRUCT.unpack_from(buffer, 0)
    if magic != MAGIC or version != VERSION:
        raise FormatError(
            "Not a valid .lssnap file",
            offset=0,
            expected=f"{MAGIC.decode()}{VERSION}",
            actual=f"{magic.decode('latin-1')}{version}",
        )
    if vertex_count < 0:
        raise FormatError(
            "Negative vertex count",
            offset=4,
            expected=">= 0",
            actual=str(vertex_count),
        )

    return SnapshotHeader(
        version=version,
        vertex_count=vertex_count,
        annotation_length=annotation_length,
    )
