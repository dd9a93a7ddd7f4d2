"""Tests for the trackball camera."""

import math

import numpy as np
import pytest

from src.domain.entities import CameraPose
from src.lssview.rendering.camera import PointerButton, PointerDown, PointerMove, PointerUp, Wheel
from src.lssview.rendering.trackball_controller import TrackballController
from src.shared.math import rotate_in_plane


def azimuth(pose: CameraPose) -> float:
    offset = pose.position - pose.target
    return math.atan2(offset[0], offset[2])


def make_trackball(**kwargs) -> TrackballController:
    kwargs.setdefault("autorotate", False)
    controller = TrackballController(**kwargs)
    controller.set_initial_pose(CameraPose(position=(0.0, 0.0, 5.0), target=(0.0, 0.0, 0.0)))
    return controller


@pytest.fixture
def trackball():
    return make_trackball()


def drag(controller, dx=100.0, dy=0.0, button=PointerButton.PRIMARY):
    controller.handle_input(PointerDown(640.0, 360.0, button))
    controller.handle_input(PointerMove(640.0 + dx, 360.0 + dy))
    controller.handle_input(PointerUp(640.0 + dx, 360.0 + dy))


class TestScreenMapping:
    def test_mouse_on_screen(self, trackball):
        np.testing.assert_allclose(trackball.mouse_on_screen(640.0, 360.0), [0.5, 0.5])
        np.testing.assert_allclose(trackball.mouse_on_screen(0.0, 720.0), [0.0, 1.0])

    def test_mouse_on_circle(self, trackball):
        np.testing.assert_allclose(trackball.mouse_on_circle(640.0, 360.0), [0.0, 0.0])
        np.testing.assert_allclose(trackball.mouse_on_circle(1280.0, 360.0), [1.0, 0.0])
        np.testing.assert_allclose(trackball.mouse_on_circle(640.0, 0.0), [0.0, 720.0 / 1280.0])

    def test_resize_updates_mapping(self, trackball):
        trackball.handle_resize(800, 600)

        assert trackball.screen == (0.0, 0.0, 800.0, 600.0)
        np.testing.assert_allclose(trackball.mouse_on_circle(400.0, 300.0), [0.0, 0.0])

    def test_degenerate_resize_ignored(self, trackball):
        trackball.handle_resize(-1, 600)
        assert trackball.screen == (0.0, 0.0, 1280.0, 720.0)


class TestRotation:
    def test_horizontal_drag_rotates_about_up(self, trackball):
        drag(trackball, 100.0)
        trackball.update()

        angle = 100.0 / 640.0
        assert azimuth(trackball.pose) == pytest.approx(-angle, rel=1e-9)
        assert trackball.pose.distance == pytest.approx(5.0)
        np.testing.assert_allclose(trackball.pose.up, [0.0, 1.0, 0.0], atol=1e-12)

    def test_vertical_drag_tilts_up_vector(self, trackball):
        drag(trackball, 0.0, -100.0)
        trackball.update()

        assert trackball.pose.distance == pytest.approx(5.0)
        assert np.linalg.norm(trackball.pose.up) == pytest.approx(1.0)
        assert not np.allclose(trackball.pose.up, [0.0, 1.0, 0.0])

    def test_glide_decays_by_sqrt_of_damping(self, trackball):
        drag(trackball, 100.0)

        angles = [0.0]
        for _ in range(4):
            trackball.update()
            angles.append(azimuth(trackball.pose))
        steps = [abs(b - a) for a, b in zip(angles, angles[1:])]

        for earlier, later in zip(steps, steps[1:]):
            assert later / earlier == pytest.approx(math.sqrt(0.8), rel=1e-6)

    def test_static_moving_stops_on_release(self):
        trackball = make_trackball(static_moving=True)
        drag(trackball, 100.0)
        trackball.update()
        after_drag = trackball.pose.copy()

        trackball.update()

        np.testing.assert_allclose(trackball.pose.position, after_drag.position, atol=1e-12)


class TestReset:
    def test_reset_after_drag_zoom_and_autorotate(self, trackball):
        initial = trackball.pose.copy()
        trackball.set_autorotate(True)
        drag(trackball, 120.0, 80.0)
        drag(trackball, 0.0, 50.0, PointerButton.MIDDLE)
        trackball.handle_input(Wheel(300.0))
        for _ in range(15):
            trackball.update()
        assert not trackball.pose.matches(initial)

        trackball.reset()

        assert trackball.pose.matches(initial)
        assert not trackball.has_pending_motion

    def test_update_after_reset_without_autorotate(self, trackball):
        drag(trackball, 120.0)
        trackball.update()
        trackball.reset()
        trackball.update()

        np.testing.assert_allclose(trackball.pose.position, [0.0, 0.0, 5.0], atol=1e-12)


class TestAutorotate:
    def test_fixed_step_about_up(self):
        trackball = make_trackball(autorotate=True, autorotate_step=0.0005)

        trackball.update()
        assert azimuth(trackball.pose) == pytest.approx(0.0005, rel=1e-9)

        trackball.update()
        assert azimuth(trackball.pose) == pytest.approx(0.001, rel=1e-9)
        assert trackball.pose.distance == pytest.approx(5.0)

    def test_z_up_keeps_height(self):
        trackball = TrackballController(autorotate=True)
        trackball.set_initial_pose(
            CameraPose(position=(0.0, -5.0, 1.0), target=(0.0, 0.0, 0.0), up=(0.0, 0.0, 1.0))
        )
        for _ in range(50):
            trackball.update()

        assert trackball.pose.position[2] == pytest.approx(1.0)
        assert trackball.pose.position[0] != pytest.approx(0.0, abs=1e-6)

    def test_drag_applied_after_autorotate_step(self):
        """A drag in an autorotating frame acts on the already swung camera."""
        step = 0.3
        trackball = make_trackball(autorotate=True, autorotate_step=step)
        drag(trackball, 0.0, -100.0)
        trackball.update()

        swung = rotate_in_plane(np.array([0.0, 0.0, 5.0]), np.zeros(3), [0.0, 1.0, 0.0], step)
        expected = TrackballController(autorotate=False)
        expected.set_initial_pose(CameraPose(position=swung, target=(0.0, 0.0, 0.0)))
        drag(expected, 0.0, -100.0)
        expected.update()

        np.testing.assert_allclose(trackball.pose.position, expected.pose.position, atol=1e-12)
        np.testing.assert_allclose(trackball.pose.up, expected.pose.up, atol=1e-12)

        drag_first = make_trackball()
        drag(drag_first, 0.0, -100.0)
        drag_first.update()
        pose = drag_first.pose
        reversed_order = rotate_in_plane(pose.position, pose.target, pose.up, step)
        assert not np.allclose(trackball.pose.position, reversed_order, atol=1e-6)

    def test_toggle_off(self):
        trackball = make_trackball(autorotate=True)
        trackball.set_autorotate(False)
        trackball.update()
        np.testing.assert_allclose(trackball.pose.position, [0.0, 0.0, 5.0], atol=1e-12)


class TestZoomAndPan:
    def test_wheel_zoom_eases(self, trackball):
        """Scroll down zooms out; the remaining zoom shrinks by damping each frame."""
        trackball.handle_input(Wheel(100.0))

        trackball.update()
        assert trackball.pose.distance == pytest.approx(5.0 * 1.03)

        trackball.update()
        assert trackball.pose.distance == pytest.approx(5.0 * 1.03 * 1.024)

    def test_wheel_up_zooms_in(self, trackball):
        trackball.handle_input(Wheel(-100.0))
        trackball.update()
        assert trackball.pose.distance == pytest.approx(5.0 * 0.97)

    def test_pan_moves_target_and_position_together(self, trackball):
        drag(trackball, 100.0, 0.0, PointerButton.SECONDARY)
        trackball.update()

        pan = -(100.0 / 1280.0) * 5.0 * 0.3
        np.testing.assert_allclose(trackball.pose.target, [pan, 0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(
            trackball.pose.position - trackball.pose.target, [0.0, 0.0, 5.0], atol=1e-12
        )

    def test_max_distance(self):
        trackball = make_trackball(max_distance=5.1)
        trackball.handle_input(Wheel(1000.0))
        trackball.update()
        assert trackball.pose.distance == pytest.approx(5.1)


class TestEdgeCases:
    def test_zero_radius_stays_finite(self):
        trackball = TrackballController(autorotate=True)
        trackball.set_initial_pose(CameraPose((2.0, 2.0, 2.0), (2.0, 2.0, 2.0)))
        drag(trackball, 50.0, 30.0)
        drag(trackball, 50.0, 30.0, PointerButton.SECONDARY)
        trackball.handle_input(Wheel(50.0))
        for _ in range(5):
            trackball.update()

        assert np.all(np.isfinite(trackball.pose.position))
        assert np.all(np.isfinite(trackball.pose.up))
