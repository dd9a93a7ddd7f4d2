"""
Initial camera framing for a filtered subset.

Both policies look at the subset's bounding-box center and scale their
offset by the largest box extent, so a degenerate subset (empty, or a single
point) collapses the camera onto the target instead of dividing by zero.
"""

from __future__ import annotations

import logging
from enum import Enum

import numpy as np

from src.domain.entities import CameraPose, FilteredSubset, SceneBounds
from src.domain.services import BoundsService

logger = logging.getLogger(__name__)


class FramingPolicy(str, Enum):
    """Initial camera placement strategies."""

    ELEVATED_FRONTAL = "elevated_frontal"  # Y-up, slightly above and in front
    TOP_DOWN = "top_down"  # Z-up, looking along +Y from below the subject


# Offsets in units of max_dim, plus the up axis each policy uses
_POLICY_OFFSETS: dict[FramingPolicy, tuple[np.ndarray, np.ndarray]] = {
    FramingPolicy.ELEVATED_FRONTAL: (
        np.array([-0.1, 0.25, 1.6]),
        np.array([0.0, 1.0, 0.0]),
    ),
    FramingPolicy.TOP_DOWN: (
        np.array([-0.5, -2.8, 0.0]),
        np.array([0.0, 0.0, 1.0]),
    ),
}


def frame_bounds(bounds: SceneBounds, policy: FramingPolicy | str) -> CameraPose:
    """Compute the initial pose for precomputed bounds."""
    policy = FramingPolicy(policy)
    offset, up = _POLICY_OFFSETS[policy]

    center = np.asarray(bounds.center, dtype=np.float64)
    max_dim = bounds.max_dim
    position = center + offset * max_dim

    logger.debug(
        f"Framing ({policy.value}): center={center.tolist()}, max_dim={max_dim:.3f}"
    )
    return CameraPose(position=position, target=center, up=up)


def frame_subset(subset: FilteredSubset, policy: FramingPolicy | str) -> CameraPose:
    """
    Compute the initial camera pose for a filtered subset.

    Parameters
    ----------
    subset : FilteredSubset
        Points to frame
    policy : FramingPolicy | str
        ``elevated_frontal`` (Y-up) or ``top_down`` (Z-up)

    Returns
    -------
    CameraPose
        Pose looking at the subset's bounding-box center
    """
    bounds = BoundsService.calculate_bounds(subset.positions)
    return frame_bounds(bounds, policy)
