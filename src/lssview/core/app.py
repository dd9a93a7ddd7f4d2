"""
LSSView application: binds a ViewerSession to a viser server.

Viser invokes GUI and camera callbacks on its own threads; every callback
here is forwarded onto the session's event loop with
``loop.call_soon_threadsafe`` so the session is only touched from one thread.
"""

from __future__ import annotations

import asyncio
import logging

import viser

from src.lssview.config.settings import ViewerConfig
from src.lssview.core.session import ViewerSession
from src.lssview.interaction.events import Event, EventBus, EventType, ResizeNotifier
from src.lssview.ui.controls import ControlCallbacks, ViewerControls
from src.lssview.ui.panels.info_panel import create_info_panel
from src.lssview.ui.scene_backend import THEME_OPTIONS, ViserSceneBackend

logger = logging.getLogger(__name__)

# Viewport height assumed for clients; width follows the reported aspect
NOMINAL_VIEWPORT_HEIGHT = 720


class LSSViewApp:
    """
    Point-cloud snapshot viewer served through viser.

    Components:
    - ViserSceneBackend: scene graph, camera push and panel updates
    - ViewerControls / InfoPanel: GUI
    - ViewerSession: load pipeline and frame loop
    """

    def __init__(self, config: ViewerConfig):
        """
        Initialize the viewer.

        Parameters
        ----------
        config : ViewerConfig
            Validated viewer configuration
        """
        self.config = config
        self._loop: asyncio.AbstractEventLoop | None = None

        self.server = viser.ViserServer(host=config.host, port=config.port, verbose=False)
        self.server.gui.configure_theme(dark_mode=config.display.dark_background, **THEME_OPTIONS)
        self.server.scene.set_up_direction("+y")
        logger.debug(f"Viser server started on {config.host}:{config.port}")

        self.event_bus = EventBus(name="viewer")
        self.resize_notifier = ResizeNotifier()

        self.info_panel = create_info_panel(self.server, title=config.display.title)
        self.controls = ViewerControls(
            self.server,
            config.display,
            autorotate=config.camera.autorotate,
            callbacks=ControlCallbacks(
                on_point_size=lambda size: self._call_in_loop(self.session.set_point_size, size),
                on_toggle_background=lambda: self._call_in_loop(self.session.toggle_dark_background),
                on_reset=lambda: self._call_in_loop(self.session.reset_camera),
                on_toggle_autorotate=lambda: self._call_in_loop(self.session.toggle_autorotate),
            ),
        )
        self.backend = ViserSceneBackend(
            self.server,
            config.display,
            info_panel=self.info_panel,
            controls=self.controls,
        )
        self.session = ViewerSession(
            config,
            self.backend,
            resize_notifier=self.resize_notifier,
            event_bus=self.event_bus,
        )

        self.event_bus.subscribe(EventType.AUTOROTATE_TOGGLED, self._on_autorotate_toggled)
        self._register_client_handlers()

    # =========================================================================
    # Thread marshalling
    # =========================================================================

    def _call_in_loop(self, fn, *args) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.debug(f"Dropping {getattr(fn, '__name__', fn)}: loop not running")
            return
        loop.call_soon_threadsafe(fn, *args)

    # =========================================================================
    # Client wiring
    # =========================================================================

    def _register_client_handlers(self) -> None:
        @self.server.on_client_connect
        def _(client: viser.ClientHandle) -> None:
            logger.debug(f"Client {client.client_id} connected")
            self.backend.apply_camera([client])
            self._report_viewport(client)

            @client.camera.on_update
            def _(camera) -> None:
                self._call_in_loop(
                    self.session.sync_from_view,
                    tuple(camera.position),
                    tuple(camera.look_at),
                )
                self._report_viewport(client)

        @self.server.on_client_disconnect
        def _(client: viser.ClientHandle) -> None:
            logger.debug(f"Client {client.client_id} disconnected")

    def _report_viewport(self, client: viser.ClientHandle) -> None:
        aspect = float(client.camera.aspect or 0.0)
        if aspect <= 0:
            return
        width = int(round(NOMINAL_VIEWPORT_HEIGHT * aspect))
        size = (width, NOMINAL_VIEWPORT_HEIGHT)
        if self.resize_notifier.size == size:
            return
        self._call_in_loop(self.resize_notifier.notify, width, NOMINAL_VIEWPORT_HEIGHT, "viser")

    def _on_autorotate_toggled(self, event: Event) -> None:
        self.controls.set_autorotate(event.data["enabled"])

    # =========================================================================
    # Run
    # =========================================================================

    async def serve(self, stop: asyncio.Event | None = None) -> None:
        """Run the session until ``stop`` is set (or forever), then tear down."""
        self._loop = asyncio.get_running_loop()
        stop = stop or asyncio.Event()
        try:
            await self.session.start()
            await stop.wait()
        finally:
            await self.session.close()
            self._loop = None

    def run(self) -> None:
        """Run the viewer until interrupted."""
        logger.info(f"LSSView running on http://{self.config.host}:{self.config.port}")
        try:
            asyncio.run(self.serve())
        except KeyboardInterrupt:
            logger.info("LSSView stopped by user")
        finally:
            logger.info("LSSView shutdown complete")
