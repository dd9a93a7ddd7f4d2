"""Tests for the damped orbit camera."""

import math

import numpy as np
import pytest

from src.domain.entities import CameraPose
from src.domain.interfaces import CameraControllerProtocol
from src.lssview.config.settings import CameraSettings
from src.lssview.rendering.camera import (
    PointerButton,
    PointerDown,
    PointerMove,
    PointerUp,
    Wheel,
    create_camera_controller,
)
from src.lssview.rendering.orbit_controller import DampedOrbitController
from src.lssview.rendering.trackball_controller import TrackballController


def theta(pose: CameraPose) -> float:
    offset = pose.position - pose.target
    return math.atan2(offset[0], offset[2])


@pytest.fixture
def orbit():
    controller = DampedOrbitController(autorotate=False)
    controller.set_initial_pose(CameraPose(position=(0.0, 0.0, 5.0), target=(0.0, 0.0, 0.0)))
    return controller


def drag(controller, dx=100.0, dy=0.0, button=PointerButton.PRIMARY):
    controller.handle_input(PointerDown(640.0, 360.0, button))
    controller.handle_input(PointerMove(640.0 + dx, 360.0 + dy))
    controller.handle_input(PointerUp(640.0 + dx, 360.0 + dy))


class TestReset:
    def test_reset_after_drag_zoom_and_autorotate(self, orbit):
        """Reset restores the initial pose exactly, whatever happened before."""
        initial = orbit.pose.copy()
        orbit.set_autorotate(True)
        drag(orbit, 120.0, -40.0)
        drag(orbit, 30.0, 30.0, PointerButton.SECONDARY)
        orbit.handle_input(Wheel(-100.0))
        for _ in range(20):
            orbit.update()
        assert not orbit.pose.matches(initial)

        orbit.reset()

        assert orbit.pose.matches(initial)
        assert not orbit.has_pending_motion

    def test_reset_is_a_copy(self, orbit):
        orbit.reset()
        orbit.pose.position[0] = 42.0
        orbit.reset()
        assert orbit.pose.position[0] == 0.0

    def test_reset_without_initial_pose(self):
        controller = DampedOrbitController()
        before = controller.pose.copy()
        controller.reset()
        assert controller.pose.matches(before)


class TestRotation:
    def test_drag_keeps_gliding_after_release(self, orbit):
        drag(orbit, 100.0)

        steps = []
        previous = theta(orbit.pose)
        for _ in range(5):
            orbit.update()
            current = theta(orbit.pose)
            steps.append(abs(current - previous))
            previous = current

        assert all(step > 0 for step in steps)
        assert all(later < earlier for earlier, later in zip(steps, steps[1:]))
        # Each frame applies damping times a delta that decays by (1 - damping)
        assert steps[1] / steps[0] == pytest.approx(0.92, rel=1e-6)

    def test_first_frame_applies_damped_fraction(self, orbit):
        drag(orbit, 72.0)
        orbit.update()

        expected = 2.0 * math.pi * 72.0 / 720.0 * 0.08
        assert abs(theta(orbit.pose)) == pytest.approx(expected, rel=1e-9)

    def test_distance_preserved(self, orbit):
        drag(orbit, 80.0, 60.0)
        for _ in range(30):
            orbit.update()
        assert orbit.pose.distance == pytest.approx(5.0)

    def test_polar_angle_clamped(self, orbit):
        """Dragging far past the pole never flips the camera through it."""
        drag(orbit, 0.0, 5000.0)
        for _ in range(200):
            orbit.update()

        offset = orbit.pose.position - orbit.pose.target
        assert np.all(np.isfinite(offset))
        assert orbit.pose.distance == pytest.approx(5.0)
        assert abs(offset[1]) <= 5.0

    def test_motion_settles(self, orbit):
        drag(orbit, 50.0)
        for _ in range(1000):
            orbit.update()
        assert not orbit.has_pending_motion

    def test_move_without_button_ignored(self, orbit):
        orbit.handle_input(PointerMove(900.0, 100.0))
        assert not orbit.has_pending_motion


class TestAutorotate:
    def test_autorotate_angle(self):
        controller = DampedOrbitController(autorotate_speed=0.25)
        assert controller.autorotate_angle == pytest.approx(2 * math.pi / 3600 * 0.25)

    def test_steady_state_rate(self, orbit):
        """With damping the per-frame rotation converges to the autorotate angle."""
        orbit.set_autorotate(True)
        for _ in range(400):
            orbit.update()
        before = theta(orbit.pose)
        orbit.update()
        after = theta(orbit.pose)

        assert abs(after - before) == pytest.approx(orbit.autorotate_angle, rel=1e-6)

    def test_paused_while_interacting(self, orbit):
        orbit.set_autorotate(True)
        orbit.handle_input(PointerDown(10.0, 10.0))
        for _ in range(10):
            orbit.update()

        np.testing.assert_allclose(orbit.pose.position, [0.0, 0.0, 5.0], atol=1e-12)

    def test_disabled_does_not_move(self, orbit):
        for _ in range(10):
            orbit.update()
        np.testing.assert_allclose(orbit.pose.position, [0.0, 0.0, 5.0], atol=1e-12)

    def test_z_up_rotates_about_z(self):
        controller = DampedOrbitController(autorotate=True)
        controller.set_initial_pose(
            CameraPose(position=(0.0, -5.0, 0.0), target=(0.0, 0.0, 0.0), up=(0.0, 0.0, 1.0))
        )
        for _ in range(100):
            controller.update()

        assert controller.pose.position[2] == pytest.approx(0.0, abs=1e-9)
        assert controller.pose.distance == pytest.approx(5.0)
        assert controller.pose.position[0] != pytest.approx(0.0, abs=1e-6)


class TestZoomAndPan:
    def test_wheel_in(self, orbit):
        orbit.handle_input(Wheel(-100.0))
        orbit.update()
        assert orbit.pose.distance == pytest.approx(5.0 * 0.95)

    def test_wheel_out(self, orbit):
        orbit.handle_input(Wheel(100.0))
        orbit.update()
        assert orbit.pose.distance == pytest.approx(5.0 / 0.95)

    def test_zoom_not_carried_over(self, orbit):
        orbit.handle_input(Wheel(-100.0))
        orbit.update()
        orbit.update()
        assert orbit.pose.distance == pytest.approx(5.0 * 0.95)

    def test_distance_limits(self):
        controller = DampedOrbitController(autorotate=False, min_distance=4.9)
        controller.set_initial_pose(CameraPose((0.0, 0.0, 5.0), (0.0, 0.0, 0.0)))
        controller.handle_input(Wheel(-100.0))
        controller.update()
        assert controller.pose.distance == pytest.approx(4.9)

    def test_secondary_drag_pans_target(self, orbit):
        drag(orbit, 100.0, 0.0, PointerButton.SECONDARY)
        for _ in range(10):
            orbit.update()

        assert orbit.pose.target[0] < 0.0
        assert orbit.pose.target[1] == pytest.approx(0.0, abs=1e-12)
        assert orbit.pose.distance == pytest.approx(5.0)


class TestEdgeCases:
    def test_zero_radius_stays_finite(self):
        controller = DampedOrbitController(autorotate=True)
        controller.set_initial_pose(CameraPose((1.0, 1.0, 1.0), (1.0, 1.0, 1.0)))
        drag(controller, 50.0, 50.0)
        for _ in range(5):
            controller.update()

        assert np.all(np.isfinite(controller.pose.position))

    def test_resize(self, orbit):
        orbit.handle_resize(0, 100)
        assert orbit.viewport == (1280, 720)

        orbit.handle_resize(800, 400)
        assert orbit.viewport == (800, 400)
        assert orbit.aspect == 2.0

    def test_resize_changes_drag_sensitivity(self, orbit):
        orbit.handle_resize(1280, 360)
        drag(orbit, 36.0)
        orbit.update()

        expected = 2.0 * math.pi * 36.0 / 360.0 * 0.08
        assert abs(theta(orbit.pose)) == pytest.approx(expected, rel=1e-9)

    def test_sync_from_view(self, orbit):
        drag(orbit, 100.0)
        orbit.sync_from_view([1.0, 2.0, 3.0], [0.0, 1.0, 0.0])

        np.testing.assert_array_equal(orbit.pose.position, [1.0, 2.0, 3.0])
        np.testing.assert_array_equal(orbit.pose.target, [0.0, 1.0, 0.0])
        assert not orbit.has_pending_motion

    def test_unknown_event(self, orbit):
        with pytest.raises(TypeError):
            orbit.handle_input("click")


class TestFactory:
    def test_creates_configured_controllers(self):
        orbit = create_camera_controller(CameraSettings(controller="orbit", orbit_damping=0.1))
        trackball = create_camera_controller(CameraSettings(controller="trackball"))

        assert isinstance(orbit, DampedOrbitController)
        assert orbit.damping == 0.1
        assert isinstance(trackball, TrackballController)
        assert trackball.damping == 0.2

    def test_unknown_controller(self):
        with pytest.raises(ValueError):
            create_camera_controller(CameraSettings(controller="fly"))

    def test_controllers_satisfy_protocol(self):
        for controller in (DampedOrbitController(), TrackballController()):
            assert isinstance(controller, CameraControllerProtocol)
