"""
Core domain entities for LSSView.

Point data is held in NumPy arrays:
- positions: float32 (N, 3) in metres
- colors: float32 (N, 3) in [0, 1]

Everything here is owned by a single viewer session and replaced wholesale
on every load; nothing is mutated after construction except CameraPose,
which the camera controllers update in place each frame.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import numpy as np


def _empty_points() -> np.ndarray:
    return np.zeros((0, 3), dtype=np.float32)


@dataclass
class SceneBounds:
    """Axis-aligned bounding box of a point set."""

    min_coords: tuple[float, float, float] = (0.0, 0.0, 0.0)
    max_coords: tuple[float, float, float] = (0.0, 0.0, 0.0)
    center: tuple[float, float, float] = (0.0, 0.0, 0.0)
    size: tuple[float, float, float] = (0.0, 0.0, 0.0)

    @property
    def max_dim(self) -> float:
        """Largest extent over the three axes."""
        return float(max(self.size))


class AnnotationKind(str, Enum):
    """Annotation record kinds understood by the overlay builder."""

    POINT = "point"
    CIRCLE = "circle"
    FREEHAND = "freehand"


@dataclass(frozen=True)
class Annotation:
    """
    One decoded annotation record.

    ``kind`` keeps the raw ``type`` string from the file, so unknown kinds
    survive decoding and are only dropped when overlays are built.

    Attributes:
        kind: Record type ("point", "circle", "freehand" or anything else)
        positions: Flattened xyz coordinates
        radius: Optional radius in metres
        color: Optional byte triple (0-255 per channel)
    """

    kind: str
    positions: tuple[float, ...] = ()
    radius: float | None = None
    color: tuple[float, float, float] | None = None

    @property
    def point_count(self) -> int:
        return len(self.positions) // 3


@dataclass
class PointCloudSnapshot:
    """
    A decoded .lssnap payload.

    ``vertex_count`` comes from the header and is authoritative;
    ``positions`` and ``colors`` always hold exactly that many rows.
    """

    vertex_count: int
    positions: np.ndarray = field(default_factory=_empty_points)
    colors: np.ndarray = field(default_factory=_empty_points)
    annotations: tuple[Annotation, ...] = ()

    def __post_init__(self):
        if self.positions.shape != (self.vertex_count, 3):
            raise ValueError(
                f"positions must be ({self.vertex_count}, 3), got {self.positions.shape}"
            )
        if self.colors.shape != (self.vertex_count, 3):
            raise ValueError(
                f"colors must be ({self.vertex_count}, 3), got {self.colors.shape}"
            )

    @property
    def flat_positions(self) -> np.ndarray:
        """Positions as a flat ``3 * vertex_count`` sequence."""
        return self.positions.reshape(-1)

    @property
    def flat_colors(self) -> np.ndarray:
        """Colors as a flat ``3 * vertex_count`` sequence."""
        return self.colors.reshape(-1)


@dataclass
class FilteredSubset:
    """Order-preserving subsequence of a snapshot's points."""

    positions: np.ndarray = field(default_factory=_empty_points)
    colors: np.ndarray = field(default_factory=_empty_points)

    def __len__(self) -> int:
        return int(self.positions.shape[0])


@dataclass
class CameraPose:
    """Camera position, look-at target and up axis."""

    position: np.ndarray
    target: np.ndarray
    up: np.ndarray = field(default_factory=lambda: np.array([0.0, 1.0, 0.0]))

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=np.float64).copy()
        self.target = np.asarray(self.target, dtype=np.float64).copy()
        self.up = np.asarray(self.up, dtype=np.float64).copy()
        for name in ("position", "target", "up"):
            value = getattr(self, name)
            if value.shape != (3,):
                raise ValueError(f"{name} must be (3,), got {value.shape}")

    @property
    def distance(self) -> float:
        return float(np.linalg.norm(self.position - self.target))

    def copy(self) -> CameraPose:
        return CameraPose(self.position.copy(), self.target.copy(), self.up.copy())

    def matches(self, other: CameraPose | None) -> bool:
        """True when every component equals ``other`` exactly."""
        if other is None:
            return False
        return (
            np.array_equal(self.position, other.position)
            and np.array_equal(self.target, other.target)
            and np.array_equal(self.up, other.up)
        )

    def to_dict(self) -> dict[str, list[float]]:
        return {
            "position": [float(v) for v in self.position],
            "target": [float(v) for v in self.target],
            "up": [float(v) for v in self.up],
        }


# ============================================================================
# Overlay primitives
# ============================================================================


@dataclass(frozen=True)
class MarkerPrimitive:
    """Filled sphere marker."""

    center: tuple[float, float, float]
    radius: float
    color: tuple[float, float, float]
    opacity: float = 0.7


@dataclass(frozen=True)
class PolylinePrimitive:
    """Connected line strip; ``closed`` strips repeat their first point at the end."""

    points: np.ndarray
    color: tuple[float, float, float]
    closed: bool = False
    opacity: float = 0.8

    @property
    def segment_count(self) -> int:
        return max(int(self.points.shape[0]) - 1, 0)

    def as_segments(self) -> np.ndarray:
        """Return the strip as (segment_count, 2, 3) endpoint pairs."""
        return np.stack([self.points[:-1], self.points[1:]], axis=1)


OverlayPrimitive = MarkerPrimitive | PolylinePrimitive
