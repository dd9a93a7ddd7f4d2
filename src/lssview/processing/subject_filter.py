"""
Subject isolation filter for decoded snapshots.

Cutoffs are relative to the bounding box of the whole cloud:
- x >= center_x
- z <= min_z + range_z * depth_fraction
- y >= min_y + range_y * height_fraction

A point survives only when all three hold. Survivors keep their file order.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import numpy as np

from src.domain.entities import FilteredSubset, PointCloudSnapshot
from src.domain.filters import SubjectFilter
from src.domain.services import BoundsService


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubjectCutoffs:
    """Resolved world-space cutoffs for one snapshot."""

    x_min: float
    z_max: float
    y_min: float

    def mask(self, positions: np.ndarray) -> np.ndarray:
        """Boolean keep-mask over (N, 3) positions."""
        positions = np.asarray(positions, dtype=np.float64)
        return (
            (positions[:, 0] >= self.x_min)
            & (positions[:, 2] <= self.z_max)
            & (positions[:, 1] >= self.y_min)
        )


def compute_cutoffs(positions: np.ndarray, settings: SubjectFilter) -> SubjectCutoffs:
    """Derive the cutoffs from the full-cloud bounding box."""
    bounds = BoundsService.calculate_bounds(positions)
    min_x, min_y, min_z = bounds.min_coords
    _, range_y, range_z = bounds.size
    return SubjectCutoffs(
        x_min=bounds.center[0],
        z_max=min_z + range_z * settings.depth_fraction,
        y_min=min_y + range_y * settings.height_fraction,
    )


class SubjectFilterService:
    """Applies a SubjectFilter to snapshots."""

    def __init__(self, settings: SubjectFilter | None = None):
        self.settings = settings or SubjectFilter()

    def filter(self, snapshot: PointCloudSnapshot) -> FilteredSubset:
        """Return the subset of ``snapshot`` satisfying the active cutoffs.

        A disabled filter returns every point. An empty snapshot returns an
        empty subset.
        """
        positions = snapshot.positions
        colors = snapshot.colors

        if not self.settings.is_active() or snapshot.vertex_count == 0:
            return FilteredSubset(positions=positions.copy(), colors=colors.copy())

        start_time = time.perf_counter()
        cutoffs = compute_cutoffs(positions, self.settings)
        keep = cutoffs.mask(positions)

        subset = FilteredSubset(positions=positions[keep], colors=colors[keep])

        kept = len(subset)
        total = snapshot.vertex_count
        filter_time = (time.perf_counter() - start_time) * 1000
        logger.debug(
            "[Subject Filter] %d/%d points kept (%.1f%%) in %.2fms",
            kept,
            total,
            kept / total * 100.0,
            filter_time,
        )
        return subset


def filter_subject(
    snapshot: PointCloudSnapshot, settings: SubjectFilter | None = None
) -> FilteredSubset:
    """Functional shorthand for ``SubjectFilterService(settings).filter(snapshot)``."""
    return SubjectFilterService(settings).filter(snapshot)
