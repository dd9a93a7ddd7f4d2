"""
Viser implementation of the scene backend protocol.

Maps session output onto viser's scene graph and GUI:
- points   -> one point cloud node
- overlays -> icospheres (markers) and line segments (polylines)
- camera   -> pushed to every connected client atomically
- status/stats -> InfoPanel, control visibility -> ViewerControls
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import numpy as np
import viser

from src.domain.entities import CameraPose, MarkerPrimitive, OverlayPrimitive, PolylinePrimitive
from src.lssview.config.settings import DisplaySettings
from src.lssview.ui.controls import ViewerControls
from src.lssview.ui.panels.info_panel import InfoPanel

logger = logging.getLogger(__name__)

POINTS_NODE = "/lssview/points"
OVERLAY_ROOT = "/lssview/annotations"

LINE_WIDTH = 2.0
MARKER_SUBDIVISIONS = 2

# configure_theme resets every option it is not given
THEME_OPTIONS = {
    "control_layout": "floating",
    "control_width": "medium",
    "show_logo": False,
    "show_share_button": False,
}


def _to_uint8(color) -> tuple[int, int, int]:
    rgb = np.clip(np.rint(np.asarray(color, dtype=np.float64) * 255.0), 0, 255)
    return (int(rgb[0]), int(rgb[1]), int(rgb[2]))


class ViserSceneBackend:
    """SceneBackend backed by a running viser server."""

    def __init__(
        self,
        server: viser.ViserServer,
        display: DisplaySettings,
        info_panel: InfoPanel | None = None,
        controls: ViewerControls | None = None,
    ):
        self.server = server
        self.display = display
        self.info_panel = info_panel
        self.controls = controls

        self._points_handle: viser.PointCloudHandle | None = None
        self._overlay_handles: list[Any] = []
        self._point_size = display.point_size
        self._last_pose: CameraPose | None = None
        self._disposed = False

    # =========================================================================
    # Scene content
    # =========================================================================

    def set_points(self, positions: np.ndarray, colors: np.ndarray) -> None:
        self._remove_points()
        colors_u8 = np.clip(np.rint(np.asarray(colors) * 255.0), 0, 255).astype(np.uint8)
        self._points_handle = self.server.scene.add_point_cloud(
            POINTS_NODE,
            points=np.asarray(positions, dtype=np.float32),
            colors=colors_u8,
            point_size=self._point_size * self.display.point_scale,
            point_shape="rounded",
        )
        logger.debug(f"Point cloud node updated ({len(positions)} points)")

    def set_overlays(self, primitives: Sequence[OverlayPrimitive]) -> None:
        self._remove_overlays()
        for index, primitive in enumerate(primitives):
            name = f"{OVERLAY_ROOT}/{index:04d}"
            if isinstance(primitive, MarkerPrimitive):
                handle = self.server.scene.add_icosphere(
                    name,
                    radius=primitive.radius,
                    color=_to_uint8(primitive.color),
                    subdivisions=MARKER_SUBDIVISIONS,
                    opacity=primitive.opacity,
                    position=primitive.center,
                )
            elif isinstance(primitive, PolylinePrimitive):
                if primitive.segment_count == 0:
                    continue
                handle = self.server.scene.add_line_segments(
                    name,
                    points=primitive.as_segments().astype(np.float32),
                    colors=_to_uint8(primitive.color),
                    line_width=LINE_WIDTH,
                )
            else:
                logger.debug(f"Unsupported overlay primitive: {type(primitive).__name__}")
                continue
            self._overlay_handles.append(handle)
        logger.debug(f"Overlay nodes updated ({len(self._overlay_handles)})")

    def clear(self) -> None:
        self._remove_points()
        self._remove_overlays()

    def _remove_points(self) -> None:
        if self._points_handle is not None:
            self._points_handle.remove()
            self._points_handle = None

    def _remove_overlays(self) -> None:
        for handle in self._overlay_handles:
            handle.remove()
        self._overlay_handles = []

    # =========================================================================
    # Camera
    # =========================================================================

    def set_camera(self, pose: CameraPose) -> None:
        self._last_pose = pose.copy()
        self.apply_camera(list(self.server.get_clients().values()))

    def apply_camera(self, clients) -> None:
        """Push the last published pose to ``clients``."""
        if self._last_pose is None:
            return
        position = tuple(float(x) for x in self._last_pose.position)
        look_at = tuple(float(x) for x in self._last_pose.target)
        up_direction = tuple(float(x) for x in self._last_pose.up)

        for client in clients:
            try:
                with client.atomic():
                    client.camera.position = position
                    client.camera.look_at = look_at
                    client.camera.up_direction = up_direction
            except Exception as e:
                logger.debug(f"Error applying camera to client {client.client_id}: {e}")

    def set_up_axis(self, up: np.ndarray) -> None:
        self.server.scene.set_up_direction(tuple(float(v) for v in up))

    # =========================================================================
    # Display
    # =========================================================================

    def set_point_size(self, size: float) -> None:
        self._point_size = float(size)
        if self._points_handle is not None:
            self._points_handle.point_size = self._point_size * self.display.point_scale

    def set_dark_background(self, enabled: bool) -> None:
        self.server.gui.configure_theme(dark_mode=bool(enabled), **THEME_OPTIONS)
        if self.controls is not None:
            self.controls.set_dark_background(enabled)

    def set_status(self, message: str | None) -> None:
        if self.info_panel is not None:
            self.info_panel.set_status(message)

    def set_stats(self, stats: dict[str, Any] | None) -> None:
        if self.info_panel is not None:
            self.info_panel.set_stats(stats)
        if self.controls is not None:
            self.controls.set_visible(stats is not None)

    # =========================================================================
    # Teardown
    # =========================================================================

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self.clear()
        if self.controls is not None:
            self.controls.remove()
        if self.info_panel is not None:
            self.info_panel.remove()
        self.server.stop()
        logger.debug("Viser scene backend disposed")
