"""
Viewer control panel: point size, background, reset and autorotate.

The panel starts hidden and is shown once a snapshot has been installed.
Callbacks are plain callables; the app decides which thread they run on.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

import viser

from src.lssview.config.settings import DisplaySettings

logger = logging.getLogger(__name__)


def autorotate_label(enabled: bool) -> str:
    return f"Auto-Rotate: {'ON' if enabled else 'OFF'}"


def background_label(dark: bool) -> str:
    """Label of the background button; it names the action it will take."""
    return "Clear Bg" if dark else "Dark Bg"


@dataclass
class ControlCallbacks:
    """Actions triggered from the control panel."""

    on_point_size: Callable[[float], None]
    on_toggle_background: Callable[[], None]
    on_reset: Callable[[], None]
    on_toggle_autorotate: Callable[[], None]


class ViewerControls:
    """Control panel handles and their wiring."""

    def __init__(
        self,
        server: viser.ViserServer,
        display: DisplaySettings,
        autorotate: bool,
        callbacks: ControlCallbacks,
    ):
        self._server = server
        self._callbacks = callbacks

        self.folder = server.gui.add_folder("Controls")
        with self.folder:
            self.point_size_slider = server.gui.add_slider(
                "Point Size",
                min=display.point_size_min,
                max=display.point_size_max,
                step=display.point_size_step,
                initial_value=display.point_size,
            )
            self.background_button = server.gui.add_button(
                background_label(display.dark_background),
                icon=viser.Icon.MOON,
            )
            self.reset_button = server.gui.add_button(
                "Reset",
                icon=viser.Icon.REFRESH,
                hint="Restore the initial camera pose",
            )
            self.autorotate_button = server.gui.add_button(
                autorotate_label(autorotate),
                icon=viser.Icon.ROTATE_360,
            )

        @self.point_size_slider.on_update
        def _(_) -> None:
            self._callbacks.on_point_size(float(self.point_size_slider.value))

        @self.background_button.on_click
        def _(_) -> None:
            self._callbacks.on_toggle_background()

        @self.reset_button.on_click
        def _(_) -> None:
            self._callbacks.on_reset()

        @self.autorotate_button.on_click
        def _(_) -> None:
            self._callbacks.on_toggle_autorotate()

        self.set_visible(False)
        logger.debug("Viewer controls created")

    def set_visible(self, visible: bool) -> None:
        self.folder.visible = visible

    def set_autorotate(self, enabled: bool) -> None:
        self.autorotate_button.label = autorotate_label(enabled)

    def set_dark_background(self, dark: bool) -> None:
        self.background_button.label = background_label(dark)

    def remove(self) -> None:
        self.folder.remove()
