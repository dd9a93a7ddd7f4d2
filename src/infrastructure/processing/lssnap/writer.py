"""
Snapshot writer producing .lssnap buffers.

Inverse of the decoder: positions in metres are quantised to integer
millimetres and colours to bytes. Values outside the int16 range are clipped.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import numpy as np

from src.domain.entities import Annotation
from src.infrastructure.processing.lssnap.annotations import annotations_to_json
from src.infrastructure.processing.lssnap.format import (
    COLOR_SCALE,
    HEADER_STRUCT,
    MAGIC,
    POSITION_SCALE,
    VERSION,
    VERTEX_DTYPE,
)

logger = logging.getLogger(__name__)

_INT16_MAX = np.iinfo(np.int16).max


def _quantize_colors(colors: np.ndarray) -> np.ndarray:
    """Convert [0, 1] floats or 0-255 integers to uint8."""
    if np.issubdtype(colors.dtype, np.integer):
        return np.clip(colors, 0, 255).astype(np.uint8)
    return np.clip(np.rint(colors * COLOR_SCALE), 0, 255).astype(np.uint8)


def encode(
    positions: np.ndarray,
    colors: np.ndarray,
    annotations: Iterable[Annotation | dict[str, Any]] = (),
) -> bytes:
    """Encode a point cloud into snapshot bytes.

    Args:
        positions: (N, 3) positions in metres
        colors: (N, 3) colours, either floats in [0, 1] or integers in 0-255
        annotations: Annotation entities or raw JSON-style dicts

    Returns:
        Complete snapshot buffer

    Raises:
        ValueError: If positions and colors do not have matching (N, 3) shapes
    """
    positions = np.asarray(positions).reshape(-1, 3)
    colors = np.asarray(colors).reshape(-1, 3)
    if positions.shape != colors.shape:
        raise ValueError(
            f"positions {positions.shape} and colors {colors.shape} must match"
        )

    count = positions.shape[0]
    millimetres = np.clip(
        np.rint(positions.astype(np.float64) * POSITION_SCALE), -_INT16_MAX, _INT16_MAX
    ).astype(np.int16)
    color_bytes = _quantize_colors(colors)

    records = np.empty(count, dtype=VERTEX_DTYPE)
    for axis, name in enumerate(("x", "y", "z")):
        records[name] = millimetres[:, axis]
    for channel, name in enumerate(("r", "g", "b")):
        records[name] = color_bytes[:, channel]

    annotations = list(annotations)
    block = annotations_to_json(annotations) if annotations else b""

    header = HEADER_STRUCT.pack(MAGIC, VERSION, count, len(block))
    logger.debug("Encoded snapshot: %d vertices, %d annotation bytes", count, len(block))
    return header + records.tobytes() + block


def write_snapshot(
    file_path: str | Path,
    positions: np.ndarray,
    colors: np.ndarray,
    annotations: Iterable[Annotation | dict[str, Any]] = (),
) -> int:
    """Encode and write a snapshot file, returning the number of bytes written."""
    file_path = Path(file_path)
    data = encode(positions, colors, annotations)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_bytes(data)
    logger.info(f"Wrote {file_path.name} ({len(data)} bytes)")
    return len(data)
