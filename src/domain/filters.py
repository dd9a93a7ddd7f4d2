"""
Domain-level filter configuration dataclasses.

These are pure data structures for filter parameters that can be used
across all layers without UI dependencies.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass
class SubjectFilter:
    """Bounding-box-relative cutoffs isolating the scan subject.

    Against the bounding box of the whole cloud a point is kept when:
    - x >= center_x (right half)
    - z <= min_z + range_z * depth_fraction (front part of the depth)
    - y >= min_y + range_y * height_fraction (upper part of the height)

    Both fractions have been used with different values (height 0.45 and 0.5),
    so neither is hard-coded.
    """

    enabled: bool = True
    depth_fraction: float = 0.75
    height_fraction: float = 0.45

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for easy serialization."""
        return asdict(self)

    def is_active(self) -> bool:
        """Check if spatial filtering is applied."""
        return self.enabled
