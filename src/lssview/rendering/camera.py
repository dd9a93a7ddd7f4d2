"""
Camera controller contract for the LSSView viewer.

DESIGN: One Contract, Two Strategies
====================================

The session drives a single ``CameraController`` chosen at construction:

1. DampedOrbitController
   - Spherical orbit around the target, up axis fixed
   - Inertial damping on rotate/pan, built-in autorotate

2. TrackballController
   - Unconstrained rotation, the camera up vector rotates too
   - Autorotate is a synthetic in-plane rotation applied before each step

Both own a mutable ``CameraPose``. ``update()`` advances it by one frame and
is called exactly once per tick; ``reset()`` restores the pose captured by
``set_initial_pose()`` and drops any pending motion.

Input arrives as small event objects (``PointerDown``, ``PointerMove``,
``PointerUp``, ``Wheel``) in viewport pixel coordinates. When the browser
moves the camera on its own, ``sync_from_view()`` adopts that pose.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Union

import numpy as np

from src.domain.entities import CameraPose
from src.shared.math import as_vec3

if TYPE_CHECKING:
    from src.lssview.config.settings import CameraSettings

logger = logging.getLogger(__name__)

__all__ = [
    "CameraController",
    "PointerButton",
    "PointerDown",
    "PointerMove",
    "PointerUp",
    "Wheel",
    "InputEvent",
    "create_camera_controller",
    "DEFAULT_VIEWPORT",
]

# Nominal viewport used until the first resize notification
DEFAULT_VIEWPORT = (1280, 720)

# Pose before any snapshot has been framed
_DEFAULT_POSITION = (0.0, 1.0, 3.0)


# =============================================================================
# Input events
# =============================================================================


class PointerButton(Enum):
    """Pointer buttons and the gesture each one drives."""

    PRIMARY = 0  # rotate
    MIDDLE = 1  # dolly / zoom
    SECONDARY = 2  # pan


@dataclass(frozen=True)
class PointerDown:
    x: float
    y: float
    button: PointerButton = PointerButton.PRIMARY


@dataclass(frozen=True)
class PointerMove:
    x: float
    y: float


@dataclass(frozen=True)
class PointerUp:
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class Wheel:
    """Wheel scroll; positive ``delta_y`` scrolls down (zoom out)."""

    delta_y: float


InputEvent = Union[PointerDown, PointerMove, PointerUp, Wheel]


# =============================================================================
# Base controller
# =============================================================================


class CameraController(ABC):
    """
    Base class for per-frame camera strategies.

    Subclasses implement the gesture handlers and ``_step()``; everything
    about pose ownership, reset and viewport bookkeeping lives here.
    """

    def __init__(
        self,
        autorotate: bool = True,
        fov_degrees: float = 50.0,
        near: float = 0.01,
        far: float = 100.0,
    ):
        self.fov_degrees = fov_degrees
        self.near = near
        self.far = far

        self._pose = CameraPose(position=_DEFAULT_POSITION, target=(0.0, 0.0, 0.0))
        self._initial_pose: CameraPose | None = None
        self._autorotate = autorotate

        self._width, self._height = DEFAULT_VIEWPORT
        self._active_button: PointerButton | None = None

    # =========================================================================
    # Pose
    # =========================================================================

    @property
    def pose(self) -> CameraPose:
        """Current camera pose (mutated in place by ``update()``)."""
        return self._pose

    @property
    def initial_pose(self) -> CameraPose | None:
        return self._initial_pose

    def set_initial_pose(self, pose: CameraPose) -> None:
        """Adopt ``pose`` as both the current and the reset pose."""
        self._initial_pose = pose.copy()
        self._pose = pose.copy()
        self._active_button = None
        self._clear_motion()
        logger.debug(f"Initial pose set: {self._initial_pose.to_dict()}")

    def reset(self) -> None:
        """Restore the initial pose exactly and discard pending motion."""
        self._active_button = None
        self._clear_motion()
        if self._initial_pose is None:
            return
        self._pose = self._initial_pose.copy()
        logger.debug("Camera reset to initial pose")

    def sync_from_view(self, position, target) -> None:
        """Adopt a pose the browser's own camera controls produced."""
        self._pose.position = as_vec3(position).copy()
        self._pose.target = as_vec3(target).copy()
        self._clear_motion()

    # =========================================================================
    # Autorotate
    # =========================================================================

    @property
    def autorotate(self) -> bool:
        return self._autorotate

    def set_autorotate(self, enabled: bool) -> None:
        """Toggle autorotation; pending user motion is left untouched."""
        self._autorotate = bool(enabled)

    # =========================================================================
    # Viewport
    # =========================================================================

    @property
    def viewport(self) -> tuple[int, int]:
        return self._width, self._height

    @property
    def aspect(self) -> float:
        return self._width / self._height if self._height else 1.0

    def handle_resize(self, width: int, height: int) -> None:
        """Record a new viewport size; non-positive sizes are ignored."""
        if width <= 0 or height <= 0:
            logger.debug(f"Ignoring degenerate viewport {width}x{height}")
            return
        self._width, self._height = int(width), int(height)
        self._on_resize()

    def _on_resize(self) -> None:
        """Hook for viewport-dependent input mappings."""

    # =========================================================================
    # Input
    # =========================================================================

    @property
    def is_interacting(self) -> bool:
        """True while a pointer button is held."""
        return self._active_button is not None

    def handle_input(self, event: InputEvent) -> None:
        """Dispatch one input event to the matching gesture handler."""
        if isinstance(event, PointerDown):
            self._active_button = event.button
            self._on_pointer_down(event)
        elif isinstance(event, PointerMove):
            if self._active_button is not None:
                self._on_pointer_move(event)
        elif isinstance(event, PointerUp):
            self._active_button = None
            self._on_pointer_up(event)
        elif isinstance(event, Wheel):
            self._on_wheel(event)
        else:
            raise TypeError(f"Unsupported input event: {type(event).__name__}")

    def _on_pointer_up(self, event: PointerUp) -> None:
        """Most strategies need nothing on release."""

    @abstractmethod
    def _on_pointer_down(self, event: PointerDown) -> None: ...

    @abstractmethod
    def _on_pointer_move(self, event: PointerMove) -> None: ...

    @abstractmethod
    def _on_wheel(self, event: Wheel) -> None: ...

    # =========================================================================
    # Frame step
    # =========================================================================

    def update(self) -> None:
        """Advance the camera by one frame."""
        self._step()

    @abstractmethod
    def _step(self) -> None: ...

    @abstractmethod
    def _clear_motion(self) -> None:
        """Drop inertia and accumulated gesture state."""


def create_camera_controller(settings: CameraSettings) -> CameraController:
    """
    Build the controller named by ``settings.controller``.

    Parameters
    ----------
    settings : CameraSettings
        Camera configuration (controller type, damping, autorotate, projection)

    Returns
    -------
    CameraController
        DampedOrbitController or TrackballController

    Raises
    ------
    ValueError
        If the controller type is unknown
    """
    from src.lssview.rendering.orbit_controller import DampedOrbitController
    from src.lssview.rendering.trackball_controller import TrackballController

    common = {
        "autorotate": settings.autorotate,
        "fov_degrees": settings.fov_degrees,
        "near": settings.near,
        "far": settings.far,
    }
    if settings.controller == "orbit":
        return DampedOrbitController(
            damping=settings.orbit_damping,
            autorotate_speed=settings.orbit_autorotate_speed,
            **common,
        )
    if settings.controller == "trackball":
        return TrackballController(
            damping=settings.trackball_damping,
            autorotate_step=settings.trackball_autorotate_step,
            **common,
        )
    raise ValueError(f"Unknown camera controller: {settings.controller!r}")
