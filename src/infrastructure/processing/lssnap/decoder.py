"""
Snapshot decoder for .lssnap buffers.

Decodes the vertex block in one vectorised pass through a NumPy structured
dtype; records land in file order so row ``i`` of positions and colors is
always vertex ``i``.
"""

from __future__ import annotations

import logging

import numpy as np

from src.domain.entities import PointCloudSnapshot
from src.infrastructure.processing.lssnap.annotations import load_annotations
from src.infrastructure.processing.lssnap.format import (
    COLOR_SCALE,
    HEADER_SIZE,
    POSITION_SCALE,
    VERTEX_DTYPE,
    describe,
)
from src.shared.exceptions import FormatError

logger = logging.getLogger(__name__)


def decode(buffer: bytes | bytearray | memoryview) -> PointCloudSnapshot:
    """Decode a complete snapshot buffer.

    Args:
        buffer: Raw .lssnap bytes

    Returns:
        PointCloudSnapshot with ``vertex_count`` positions and colors

    Raises:
        FormatError: If the header is invalid or the vertex block is truncated.
            Problems in the annotation block never raise; they yield an empty
            annotation list.
    """
    header = describe(buffer)
    count = header.vertex_count

    available = len(buffer) - HEADER_SIZE
    if available < header.vertex_block_size:
        raise FormatError(
            "Vertex block truncated",
            offset=HEADER_SIZE,
            expected=f"{header.vertex_block_size} bytes for {count} vertices",
            actual=f"{available} bytes",
        )

    if count:
        records = np.frombuffer(buffer, dtype=VERTEX_DTYPE, count=count, offset=HEADER_SIZE)
    else:
        records = np.zeros(0, dtype=VERTEX_DTYPE)

    positions = np.empty((count, 3), dtype=np.float32)
    colors = np.empty((count, 3), dtype=np.float32)
    for axis, name in enumerate(("x", "y", "z")):
        positions[:, axis] = records[name] / POSITION_SCALE
    for channel, name in enumerate(("r", "g", "b")):
        colors[:, channel] = records[name] / COLOR_SCALE

    annotations = load_annotations(buffer, header.annotation_offset, header.annotation_length)

    logger.debug(
        "Decoded snapshot: %d vertices, %d annotations (%d bytes)",
        count,
        len(annotations),
        len(buffer),
    )

    return PointCloudSnapshot(
        vertex_count=count,
        positions=positions,
        colors=colors,
        annotations=annotations,
    )
