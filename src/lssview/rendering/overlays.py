"""
Annotation overlay geometry.

Turns decoded annotation records into renderer-agnostic primitives:
- point    -> MarkerPrimitive (sphere)
- circle   -> closed PolylinePrimitive, 64 segments in the plane z = const
- freehand -> open PolylinePrimitive through every point

Records with an unknown kind or the wrong number of coordinates produce
nothing; the rest of the list is still built.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import numpy as np

from src.domain.entities import (
    Annotation,
    AnnotationKind,
    MarkerPrimitive,
    OverlayPrimitive,
    PolylinePrimitive,
)

logger = logging.getLogger(__name__)

DEFAULT_COLOR = (1.0, 0.4, 0.4)

MARKER_OPACITY = 0.7
LINE_OPACITY = 0.8

MARKER_MIN_RADIUS = 0.01
MARKER_FALLBACK_RADIUS = 0.12
MARKER_RADIUS_SCALE = 0.3

CIRCLE_DEFAULT_RADIUS = 0.05
CIRCLE_SEGMENTS = 64


def annotation_color(annotation: Annotation) -> tuple[float, float, float]:
    """Byte triple scaled to [0, 1], or the default highlight."""
    if annotation.color is None:
        return DEFAULT_COLOR
    r, g, b = annotation.color
    return (r / 255.0, g / 255.0, b / 255.0)


def circle_points(
    center: tuple[float, float, float],
    radius: float,
    segments: int = CIRCLE_SEGMENTS,
) -> np.ndarray:
    """Closed ring of ``segments + 1`` points; the last repeats the first angle."""
    theta = np.arange(segments + 1) * (2.0 * np.pi / segments)
    points = np.empty((segments + 1, 3), dtype=np.float64)
    points[:, 0] = center[0] + np.cos(theta) * radius
    points[:, 1] = center[1] + np.sin(theta) * radius
    points[:, 2] = center[2]
    return points


class AnnotationGeometryBuilder:
    """Builds overlay primitives from annotation records."""

    def build(self, annotations: Iterable[Annotation]) -> list[OverlayPrimitive]:
        """Build primitives in input order, skipping invalid records."""
        primitives: list[OverlayPrimitive] = []
        skipped = 0
        for annotation in annotations:
            primitive = self.build_one(annotation)
            if primitive is None:
                skipped += 1
                continue
            primitives.append(primitive)

        if skipped:
            logger.debug(f"Skipped {skipped} invalid annotation record(s)")
        return primitives

    def build_one(self, annotation: Annotation) -> OverlayPrimitive | None:
        """Build the primitive for one record, or None when it is invalid."""
        try:
            kind = AnnotationKind(annotation.kind)
        except ValueError:
            logger.debug(f"Unknown annotation type: {annotation.kind!r}")
            return None

        if kind is AnnotationKind.POINT:
            return self._build_point(annotation)
        if kind is AnnotationKind.CIRCLE:
            return self._build_circle(annotation)
        return self._build_freehand(annotation)

    def _build_point(self, annotation: Annotation) -> MarkerPrimitive | None:
        if len(annotation.positions) != 3:
            return None
        radius = annotation.radius
        if radius is None or radius <= MARKER_MIN_RADIUS:
            radius = MARKER_FALLBACK_RADIUS
        x, y, z = annotation.positions
        return MarkerPrimitive(
            center=(x, y, z),
            radius=radius * MARKER_RADIUS_SCALE,
            color=annotation_color(annotation),
            opacity=MARKER_OPACITY,
        )

    def _build_circle(self, annotation: Annotation) -> PolylinePrimitive | None:
        if len(annotation.positions) != 3:
            return None
        radius = annotation.radius
        if radius is None or radius <= 0:
            radius = CIRCLE_DEFAULT_RADIUS
        x, y, z = annotation.positions
        return PolylinePrimitive(
            points=circle_points((x, y, z), radius),
            color=annotation_color(annotation),
            closed=True,
            opacity=LINE_OPACITY,
        )

    def _build_freehand(self, annotation: Annotation) -> PolylinePrimitive | None:
        count = len(annotation.positions)
        if count < 6 or count % 3 != 0:
            return None
        points = np.asarray(annotation.positions, dtype=np.float64).reshape(-1, 3)
        return PolylinePrimitive(
            points=points,
            color=annotation_color(annotation),
            closed=False,
            opacity=LINE_OPACITY,
        )


def build_overlays(annotations: Iterable[Annotation]) -> list[OverlayPrimitive]:
    """Functional shorthand for ``AnnotationGeometryBuilder().build(...)``."""
    return AnnotationGeometryBuilder().build(annotations)
