"""
Trackball camera.

Pointer drags are mapped onto a virtual ball spanning the viewport, so the
camera can tumble freely and its up vector rotates with it. After release the
last rotation keeps going, shrinking by ``sqrt(1 - damping)`` per frame; zoom
and pan ease toward their targets by ``damping`` per frame.

Autorotation is not part of the trackball step. When enabled, each frame
first swings the camera position about the target by ``autorotate_step``
radians around the current up axis, then runs the trackball step; any drag
in the same frame is applied on top of the swung position.
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
from src.lssview.rendering.quaternion_utils import quat_from_axis_angle, quat_rotate
from src.shared.math import normalize, rotate_in_plane

logger = logging.getLogger(__name__)

# Wheel pixels to zoom units
_WHEEL_SCALE = 0.00025


class TrackballController(CameraController):
    """Free trackball rotation with explicit per-frame autorotation."""

    def __init__(
        self,
        damping: float = 0.2,
        autorotate_step: float = 0.0005,
        rotate_speed: float = 1.0,
        zoom_speed: float = 1.2,
        pan_speed: float = 0.3,
        static_moving: bool = False,
        min_distance: float = 0.0,
        max_distance: float = math.inf,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.damping = damping
        self.autorotate_step = autorotate_step
        self.rotate_speed = rotate_speed
        self.zoom_speed = zoom_speed
        self.pan_speed = pan_speed
        self.static_moving = static_moving
        self.min_distance = min_distance
        self.max_distance = max_distance

        # Viewport rectangle (left, top, width, height) for the ball mapping
        self._screen = (0.0, 0.0, float(self.viewport[0]), float(self.viewport[1]))
        self._clear_motion()

    # =========================================================================
    # Screen mapping
    # =========================================================================

    @property
    def screen(self) -> tuple[float, float, float, float]:
        return self._screen

    def _on_resize(self) -> None:
        width, height = self.viewport
        self._screen = (0.0, 0.0, float(width), float(height))
        logger.debug(f"Trackball screen mapping updated: {width}x{height}")

    def mouse_on_screen(self, x: float, y: float) -> np.ndarray:
        """Pointer position as a [0, 1] fraction of the viewport."""
        left, top, width, height = self._screen
        return np.array([(x - left) / width, (y - top) / height])

    def mouse_on_circle(self, x: float, y: float) -> np.ndarray:
        """Pointer position on the virtual ball, centre (0, 0), radius 1 horizontally."""
        left, top, width, height = self._screen
        return np.array(
            [
                (x - width * 0.5 - left) / (width * 0.5),
                (height + 2.0 * (top - y)) / width,
            ]
        )

    # =========================================================================
    # Gesture state
    # =========================================================================

    def _clear_motion(self) -> None:
        self._move_prev = np.zeros(2)
        self._move_curr = np.zeros(2)
        self._last_axis = np.zeros(3)
        self._last_angle = 0.0
        self._zoom_start = np.zeros(2)
        self._zoom_end = np.zeros(2)
        self._pan_start = np.zeros(2)
        self._pan_end = np.zeros(2)

    @property
    def has_pending_motion(self) -> bool:
        return bool(
            self._last_angle
            or not np.array_equal(self._move_prev, self._move_curr)
            or not np.array_equal(self._zoom_start, self._zoom_end)
            or not np.array_equal(self._pan_start, self._pan_end)
        )

    def _on_pointer_down(self, event: PointerDown) -> None:
        if event.button is PointerButton.PRIMARY:
            self._move_curr = self.mouse_on_circle(event.x, event.y)
            self._move_prev = self._move_curr.copy()
        elif event.button is PointerButton.MIDDLE:
            self._zoom_start = self.mouse_on_screen(event.x, event.y)
            self._zoom_end = self._zoom_start.copy()
        elif event.button is PointerButton.SECONDARY:
            self._pan_start = self.mouse_on_screen(event.x, event.y)
            self._pan_end = self._pan_start.copy()

    def _on_pointer_move(self, event: PointerMove) -> None:
        if self._active_button is PointerButton.PRIMARY:
            self._move_prev = self._move_curr.copy()
            self._move_curr = self.mouse_on_circle(event.x, event.y)
        elif self._active_button is PointerButton.MIDDLE:
            self._zoom_end = self.mouse_on_screen(event.x, event.y)
        elif self._active_button is PointerButton.SECONDARY:
            self._pan_end = self.mouse_on_screen(event.x, event.y)

    def _on_wheel(self, event: Wheel) -> None:
        self._zoom_start = self._zoom_start - np.array([0.0, event.delta_y * _WHEEL_SCALE])

    # =========================================================================
    # Frame step
    # =========================================================================

    def update(self) -> None:
        """Advance one frame: synthetic autorotation first, then the trackball step."""
        if self._autorotate and self.autorotate_step:
            pose = self.pose
            pose.position = rotate_in_plane(
                pose.position, pose.target, pose.up, self.autorotate_step
            )
        self._step()

    def _step(self) -> None:
        pose = self.pose
        eye = pose.position - pose.target

        eye = self._rotate_camera(eye)
        eye = self._zoom_camera(eye)
        self._pan_camera(eye)

        pose.position = pose.target + eye
        self._check_distances()

    def _rotate_camera(self, eye: np.ndarray) -> np.ndarray:
        pose = self.pose
        delta = self._move_curr - self._move_prev
        angle = float(np.linalg.norm(delta))

        if angle:
            eye_direction = normalize(eye)
            up_direction = normalize(pose.up) * delta[1]
            sideways_direction = normalize(np.cross(normalize(pose.up), eye_direction)) * delta[0]
            move_direction = up_direction + sideways_direction

            axis = normalize(np.cross(move_direction, eye))
            angle *= self.rotate_speed
            q = quat_from_axis_angle(axis, angle)
            eye = quat_rotate(q, eye)
            pose.up = quat_rotate(q, pose.up)

            self._last_axis = axis
            self._last_angle = angle
        elif not self.static_moving and self._last_angle:
            self._last_angle *= math.sqrt(1.0 - self.damping)
            q = quat_from_axis_angle(self._last_axis, self._last_angle)
            eye = quat_rotate(q, eye)
            pose.up = quat_rotate(q, pose.up)

        self._move_prev = self._move_curr.copy()
        return eye

    def _zoom_camera(self, eye: np.ndarray) -> np.ndarray:
        factor = 1.0 + (self._zoom_end[1] - self._zoom_start[1]) * self.zoom_speed
        if factor != 1.0 and factor > 0.0:
            eye = eye * factor

        if self.static_moving:
            self._zoom_start = self._zoom_end.copy()
        else:
            self._zoom_start = self._zoom_start.copy()
            self._zoom_start[1] += (self._zoom_end[1] - self._zoom_start[1]) * self.damping
        return eye

    def _pan_camera(self, eye: np.ndarray) -> None:
        pose = self.pose
        change = self._pan_end - self._pan_start
        if not float(np.dot(change, change)):
            return

        scaled = change * float(np.linalg.norm(eye)) * self.pan_speed
        pan = normalize(np.cross(eye, pose.up)) * scaled[0]
        pan = pan + normalize(pose.up) * scaled[1]

        pose.position = pose.position + pan
        pose.target = pose.target + pan

        if self.static_moving:
            self._pan_start = self._pan_end.copy()
        else:
            self._pan_start = self._pan_start + (self._pan_end - self._pan_start) * self.damping

    def _check_distances(self) -> None:
        pose = self.pose
        offset = pose.position - pose.target
        distance = float(np.linalg.norm(offset))
        if distance == 0.0:
            return
        if distance > self.max_distance:
            pose.position = pose.target + offset * (self.max_distance / distance)
        elif distance < self.min_distance:
            pose.position = pose.target + offset * (self.min_distance / distance)
