"""
Damped orbit camera.

Keeps the camera on a sphere around the target with a fixed up axis.
Rotate and pan gestures accumulate deltas that are applied a fraction
(``damping``) at a time and decay by ``1 - damping`` each frame, which gives
the inertial glide after the pointer is released. Dolly is applied at once.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from src.lssview.rendering.camera import (
    CameraController,
    PointerButton,
    PointerDown,
    PointerMove,
    Wheel,
)
from src.lssview.rendering.quaternion_utils import (
    quat_conjugate,
    quat_from_unit_vectors,
    quat_rotate,
)
from src.shared.math import normalize

logger = logging.getLogger(__name__)

_Y_UP = np.array([0.0, 1.0, 0.0])

# Keeps the polar angle off the poles
_POLE_EPS = 1e-6

# Decayed deltas below this are treated as settled
_SETTLE_EPS = 1e-12


class DampedOrbitController(CameraController):
    """Orbit around the target with inertial damping and built-in autorotate."""

    def __init__(
        self,
        damping: float = 0.08,
        autorotate_speed: float = 0.25,
        rotate_speed: float = 1.0,
        pan_speed: float = 1.0,
        zoom_speed: float = 1.0,
        min_distance: float = 0.0,
        max_distance: float = math.inf,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.damping = damping
        self.autorotate_speed = autorotate_speed
        self.rotate_speed = rotate_speed
        self.pan_speed = pan_speed
        self.zoom_speed = zoom_speed
        self.min_distance = min_distance
        self.max_distance = max_distance

        self._delta_theta = 0.0
        self._delta_phi = 0.0
        self._pan_offset = np.zeros(3)
        self._scale = 1.0
        self._last_pointer: tuple[float, float] | None = None

    @property
    def autorotate_angle(self) -> float:
        """Radians of autorotation added per frame."""
        return 2.0 * math.pi / 60.0 / 60.0 * self.autorotate_speed

    @property
    def has_pending_motion(self) -> bool:
        return (
            abs(self._delta_theta) > _SETTLE_EPS
            or abs(self._delta_phi) > _SETTLE_EPS
            or float(np.abs(self._pan_offset).max()) > _SETTLE_EPS
            or self._scale != 1.0
        )

    def _clear_motion(self) -> None:
        self._delta_theta = 0.0
        self._delta_phi = 0.0
        self._pan_offset = np.zeros(3)
        self._scale = 1.0
        self._last_pointer = None

    # =========================================================================
    # Gestures
    # =========================================================================

    def rotate_left(self, angle: float) -> None:
        self._delta_theta -= angle

    def rotate_up(self, angle: float) -> None:
        self._delta_phi -= angle

    def dolly(self, factor: float) -> None:
        """Scale the orbit radius by ``factor`` on the next update (<1 zooms in)."""
        if factor > 0:
            self._scale *= factor

    def pan(self, dx: float, dy: float) -> None:
        """Pan by a screen-space pixel delta."""
        pose = self.pose
        offset = pose.position - pose.target
        half_fov = math.radians(self.fov_degrees) / 2.0
        target_distance = float(np.linalg.norm(offset)) * math.tan(half_fov)

        forward = normalize(-offset)
        right = normalize(np.cross(forward, pose.up))
        cam_up = np.cross(right, forward)

        _, height = self.viewport
        self._pan_offset += -right * (2.0 * dx * target_distance / height) * self.pan_speed
        self._pan_offset += cam_up * (2.0 * dy * target_distance / height) * self.pan_speed

    def _zoom_factor(self) -> float:
        return 0.95 ** self.zoom_speed

    def _on_pointer_down(self, event: PointerDown) -> None:
        self._last_pointer = (event.x, event.y)

    def _on_pointer_move(self, event: PointerMove) -> None:
        if self._last_pointer is None:
            self._last_pointer = (event.x, event.y)
            return
        dx = event.x - self._last_pointer[0]
        dy = event.y - self._last_pointer[1]
        self._last_pointer = (event.x, event.y)

        _, height = self.viewport
        if self._active_button is PointerButton.PRIMARY:
            self.rotate_left(2.0 * math.pi * dx / height * self.rotate_speed)
            self.rotate_up(2.0 * math.pi * dy / height * self.rotate_speed)
        elif self._active_button is PointerButton.SECONDARY:
            self.pan(dx, dy)
        elif self._active_button is PointerButton.MIDDLE:
            if dy > 0:
                self.dolly(1.0 / self._zoom_factor())
            elif dy < 0:
                self.dolly(self._zoom_factor())

    def _on_wheel(self, event: Wheel) -> None:
        if event.delta_y < 0:
            self.dolly(self._zoom_factor())
        elif event.delta_y > 0:
            self.dolly(1.0 / self._zoom_factor())

    # =========================================================================
    # Frame step
    # =========================================================================

    def _step(self) -> None:
        pose = self.pose
        up = normalize(pose.up, fallback=_Y_UP)

        # Work in a frame where the up axis is +Y
        to_y_up = quat_from_unit_vectors(up, _Y_UP)
        from_y_up = quat_conjugate(to_y_up)
        offset = quat_rotate(to_y_up, pose.position - pose.target)

        radius = float(np.linalg.norm(offset))
        if radius > 0.0:
            theta = math.atan2(offset[0], offset[2])
            phi = math.acos(min(max(offset[1] / radius, -1.0), 1.0))
        else:
            theta = 0.0
            phi = math.pi / 2.0

        if self._autorotate and not self.is_interacting:
            self.rotate_left(self.autorotate_angle)

        theta += self._delta_theta * self.damping
        phi += self._delta_phi * self.damping
        phi = min(max(phi, _POLE_EPS), math.pi - _POLE_EPS)

        radius = min(max(radius * self._scale, self.min_distance), self.max_distance)

        pose.target = pose.target + self._pan_offset * self.damping

        sin_phi = math.sin(phi)
        offset = np.array(
            [
                radius * sin_phi * math.sin(theta),
                radius * math.cos(phi),
                radius * sin_phi * math.cos(theta),
            ]
        )
        pose.position = pose.target + quat_rotate(from_y_up, offset)

        decay = 1.0 - self.damping
        self._delta_theta *= decay
        self._delta_phi *= decay
        self._pan_offset = self._pan_offset * decay
        self._scale = 1.0
