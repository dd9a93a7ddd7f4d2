"""
Scene bounds calculation services.

Provides pure geometric operations for axis-aligned bounding boxes. Unlike a
percentile-trimmed scene box, the cutoffs and camera framing here depend on
the exact min/max of the points, so no outlier rejection or padding is applied.
"""

from __future__ import annotations

import logging

import numpy as np

from src.domain.entities import SceneBounds

logger = logging.getLogger(__name__)


class BoundsService:
    """Service for bounding-box calculations over (N, 3) point arrays."""

    @staticmethod
    def calculate_bounds(points: np.ndarray) -> SceneBounds:
        """
        Calculate the exact axis-aligned bounding box of a point set.

        An empty point set yields all-zero bounds (center at the origin,
        zero size) so downstream framing stays finite.

        :param points: Point cloud [N, 3]
        :return: Calculated scene bounds
        """
        points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        if points.shape[0] == 0:
            logger.debug("Bounds requested for an empty point set")
            return SceneBounds()

        min_coords = points.min(axis=0)
        max_coords = points.max(axis=0)
        center = (min_coords + max_coords) / 2
        sizes = max_coords - min_coords

        logger.debug(
            "Bounds: X [%.3f, %.3f], Y [%.3f, %.3f], Z [%.3f, %.3f]",
            min_coords[0], max_coords[0],
            min_coords[1], max_coords[1],
            min_coords[2], max_coords[2],
        )

        return SceneBounds(
            min_coords=tuple(float(v) for v in min_coords),
            max_coords=tuple(float(v) for v in max_coords),
            center=tuple(float(v) for v in center),
            size=tuple(float(v) for v in sizes),
        )
