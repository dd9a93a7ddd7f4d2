"""Domain interfaces (protocols) for dependency inversion.

This module defines the seams between the viewer core and its collaborators:
- SceneBackend: Receives points, overlays, camera and UI state to display
- ByteFetcher: Resolves a snapshot location to raw bytes
- CameraControllerProtocol: Per-frame camera strategy driven by the session
"""

from __future__ import annotations

from collections.abc import Awaitable, Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import numpy as np


if TYPE_CHECKING:
    from src.domain.entities import CameraPose, OverlayPrimitive
    from src.infrastructure.io.fetch import FetchResult


# ============================================================================
# Scene Backend
# ============================================================================


@runtime_checkable
class SceneBackend(Protocol):
    """Protocol for anything that can display a viewer session.

    The session only ever talks to the renderer through this protocol, so the
    viser adapter and in-memory test fakes are interchangeable.
    """

    def set_points(self, positions: np.ndarray, colors: np.ndarray) -> None:
        """Replace the displayed point cloud.

        Parameters
        ----------
        positions : np.ndarray
            (N, 3) float32 positions in metres
        colors : np.ndarray
            (N, 3) float32 colours in [0, 1]
        """
        ...

    def set_overlays(self, primitives: Sequence[OverlayPrimitive]) -> None:
        """Replace all annotation overlay primitives."""
        ...

    def clear(self) -> None:
        """Remove points and overlays."""
        ...

    def set_camera(self, pose: CameraPose) -> None:
        """Publish the current camera pose."""
        ...

    def set_up_axis(self, up: np.ndarray) -> None:
        """Set the world up axis used by the renderer."""
        ...

    def set_point_size(self, size: float) -> None:
        """Set the rendered point size (slider units)."""
        ...

    def set_dark_background(self, enabled: bool) -> None: ...

    def set_status(self, message: str | None) -> None:
        """Show a status line, or hide it when ``message`` is None."""
        ...

    def set_stats(self, stats: dict[str, Any] | None) -> None:
        """Show snapshot statistics, or hide them when ``stats`` is None."""
        ...

    def dispose(self) -> None:
        """Release every resource held by the backend."""
        ...


# ============================================================================
# Byte Source
# ============================================================================


class ByteFetcher(Protocol):
    """Async callable resolving a location to snapshot bytes."""

    def __call__(self, location: str) -> Awaitable[FetchResult]: ...


# ============================================================================
# Camera Controller
# ============================================================================


@runtime_checkable
class CameraControllerProtocol(Protocol):
    """Per-frame camera strategy.

    Implementations own a mutable pose that ``update()`` advances by one frame
    and ``reset()`` restores to the pose captured after framing.
    """

    @property
    def pose(self) -> CameraPose: ...

    @property
    def autorotate(self) -> bool: ...

    def set_initial_pose(self, pose: CameraPose) -> None: ...

    def update(self) -> None: ...

    def reset(self) -> None: ...

    def set_autorotate(self, enabled: bool) -> None: ...

    def handle_input(self, event: Any) -> None: ...

    def handle_resize(self, width: int, height: int) -> None: ...

    def sync_from_view(self, position: np.ndarray, target: np.ndarray) -> None: ...
