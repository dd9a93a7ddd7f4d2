"""
Viewer session: load pipeline, frame loop and teardown.

A session owns everything derived from one snapshot (decoded data, filtered
subset, overlay primitives, camera controller state) and replaces it
wholesale on every load.

Concurrency model
-----------------
All work runs on one asyncio event loop:

- The load task awaits the byte fetch (the only suspension point), then
  decodes, filters, frames and builds overlays without yielding. The result
  is installed in a single synchronous step, so the frame loop never sees a
  half-built scene.
- The frame loop task calls ``controller.update()`` and publishes the camera
  once per tick.
- ``close()`` cancels both tasks, releases the resize subscription and
  disposes the backend. A load that completes after ``close()`` is dropped.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from contextlib import suppress
from dataclasses import dataclass, field
from enum import Enum, auto
from functools import partial
from typing import Any

import numpy as np

from src.domain.entities import CameraPose, FilteredSubset, OverlayPrimitive, PointCloudSnapshot
from src.domain.interfaces import ByteFetcher, SceneBackend
from src.infrastructure.io.fetch import FetchResult, fetch_bytes
from src.infrastructure.processing.lssnap import decode
from src.lssview.config.settings import ViewerConfig
from src.lssview.interaction.events import EventBus, EventType, ResizeNotifier, Subscription
from src.lssview.processing.subject_filter import SubjectFilterService
from src.lssview.rendering.camera import CameraController, InputEvent, create_camera_controller
from src.lssview.rendering.framing import frame_subset
from src.lssview.rendering.overlays import AnnotationGeometryBuilder
from src.shared.exceptions import LSSViewError
from src.shared.formatting import format_bytes, format_count

logger = logging.getLogger(__name__)

LOADING_MESSAGE = "Loading point cloud…"
INTERACTION_HINT = "Drag · Scroll · Right-drag to pan"

# Seconds a published pose is remembered to recognise echoes from the browser
_ECHO_WINDOW = 2.0
_ECHO_TOLERANCE = 1e-6


class SessionState(Enum):
    """Viewer session lifecycle states."""

    IDLE = auto()  # Constructed, not started
    LOADING = auto()  # Fetch/decode in progress, scene empty
    READY = auto()  # Scene installed, frame loop publishing
    FAILED = auto()  # Load failed, error status shown
    CLOSED = auto()  # Torn down


@dataclass
class PreparedScene:
    """Everything a load produces, computed before anything is installed."""

    snapshot: PointCloudSnapshot
    subset: FilteredSubset
    overlays: list[OverlayPrimitive]
    initial_pose: CameraPose
    content_length: int

    stats: dict[str, Any] = field(default_factory=dict)


class ViewerSession:
    """
    One embedded viewer instance.

    Parameters
    ----------
    config : ViewerConfig
        Viewer configuration (source, filter, camera, display)
    backend : SceneBackend
        Renderer adapter receiving points, overlays, camera and UI state
    fetcher : ByteFetcher | None
        Async byte source; defaults to :func:`fetch_bytes`
    controller : CameraController | None
        Camera strategy; defaults to the one named in ``config.camera``
    resize_notifier : ResizeNotifier | None
        Source of viewport size changes
    event_bus : EventBus | None
        Bus for lifecycle events; a private one is created when omitted
    """

    def __init__(
        self,
        config: ViewerConfig,
        backend: SceneBackend,
        fetcher: ByteFetcher | None = None,
        controller: CameraController | None = None,
        resize_notifier: ResizeNotifier | None = None,
        event_bus: EventBus | None = None,
    ):
        self.config = config
        self.backend = backend
        self.event_bus = event_bus or EventBus(name="session")
        self.controller = controller or create_camera_controller(config.camera)
        self.resize_notifier = resize_notifier or ResizeNotifier()

        self._fetcher = fetcher or partial(fetch_bytes, timeout=config.request_timeout)
        self._filter_service = SubjectFilterService(config.subject_filter)
        self._overlay_builder = AnnotationGeometryBuilder()

        self._state = SessionState.IDLE
        self._error: str | None = None
        self._scene: PreparedScene | None = None

        self._point_size = config.display.point_size
        self._dark_background = config.display.dark_background

        self._load_task: asyncio.Task | None = None
        self._frame_task: asyncio.Task | None = None
        self._resize_subscription: Subscription | None = self.resize_notifier.subscribe(
            self._on_resize
        )
        self._published: deque[tuple[float, CameraPose]] = deque()
        self._clock = time.monotonic
        self._tick_count = 0

        self.event_bus.emit(EventType.VIEWER_CREATED, source="session")

    # =========================================================================
    # State
    # =========================================================================

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_alive(self) -> bool:
        return self._state is not SessionState.CLOSED

    @property
    def error(self) -> str | None:
        """Message of the last failed load."""
        return self._error

    @property
    def scene(self) -> PreparedScene | None:
        """Currently installed scene, if any."""
        return self._scene

    @property
    def point_size(self) -> float:
        return self._point_size

    @property
    def dark_background(self) -> bool:
        return self._dark_background

    @property
    def tick_count(self) -> int:
        return self._tick_count

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Begin loading the configured source and start the frame loop."""
        if not self.is_alive:
            raise RuntimeError("Cannot start a closed session")
        if self._frame_task is not None:
            return

        self.backend.set_point_size(self._point_size)
        self.backend.set_dark_background(self._dark_background)
        self.load(self.config.source)
        self._frame_task = asyncio.create_task(self._frame_loop(), name="lssview-frame-loop")
        logger.info(f"Viewer session started for {self.config.source}")

    def load(self, source: str) -> asyncio.Task:
        """
        Start loading ``source``, replacing any load in progress.

        The scene is cleared and the loading status shown until the new
        snapshot is installed or the load fails.
        """
        if not self.is_alive:
            raise RuntimeError("Cannot load into a closed session")

        if self._load_task is not None and not self._load_task.done():
            self._load_task.cancel()

        self._state = SessionState.LOADING
        self._error = None
        self._scene = None
        self.backend.clear()
        self.backend.set_stats(None)
        self.backend.set_status(LOADING_MESSAGE)
        self.event_bus.emit(EventType.LOAD_STARTED, source="session", location=source)

        self._load_task = asyncio.create_task(self._load(source), name="lssview-load")
        return self._load_task

    async def wait_until_loaded(self) -> SessionState:
        """Wait for the current load to settle and return the resulting state."""
        task = self._load_task
        if task is not None:
            with suppress(asyncio.CancelledError):
                await task
        return self._state

    async def close(self) -> None:
        """Tear the session down; safe to call more than once."""
        if not self.is_alive:
            return
        self._state = SessionState.CLOSED

        tasks = [t for t in (self._frame_task, self._load_task) if t is not None]
        for task in tasks:
            task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task
        self._frame_task = None
        self._load_task = None

        if self._resize_subscription is not None:
            self._resize_subscription.release()
            self._resize_subscription = None

        self._scene = None
        self.backend.dispose()
        self.event_bus.emit(EventType.VIEWER_DESTROYED, source="session")
        logger.info("Viewer session closed")

    # =========================================================================
    # Load pipeline
    # =========================================================================

    def prepare(self, fetched: FetchResult) -> PreparedScene:
        """Decode, filter, frame and build overlays for fetched bytes.

        Pure with respect to the session: nothing is installed here.

        Raises
        ------
        FormatError
            If the bytes are not a valid snapshot
        """
        snapshot = decode(fetched.data)
        subset = self._filter_service.filter(snapshot)
        initial_pose = frame_subset(subset, self.config.camera.framing)
        overlays = self._overlay_builder.build(snapshot.annotations)

        stats = {
            "title": self.config.display.title,
            "vertex_count": snapshot.vertex_count,
            "vertex_count_text": format_count(snapshot.vertex_count),
            "kept_count": len(subset),
            "annotation_count": len(snapshot.annotations),
            "overlay_count": len(overlays),
            "size_bytes": fetched.content_length,
            "size_text": format_bytes(fetched.content_length),
            "hint": INTERACTION_HINT,
        }
        return PreparedScene(
            snapshot=snapshot,
            subset=subset,
            overlays=overlays,
            initial_pose=initial_pose,
            content_length=fetched.content_length,
            stats=stats,
        )

    async def _load(self, source: str) -> None:
        try:
            fetched = await self._fetcher(source)
            prepared = self.prepare(fetched)
        except asyncio.CancelledError:
            logger.debug(f"Load of {source} cancelled")
            raise
        except LSSViewError as e:
            self._fail(source, e)
            return
        except Exception as e:
            logger.error(f"Unexpected error loading {source}: {e}", exc_info=True)
            self._fail(source, e)
            return

        if not self.is_alive:
            logger.debug(f"Discarding load of {source}: session closed")
            return
        self._install(prepared)

    def _install(self, prepared: PreparedScene) -> None:
        """Swap in a prepared scene in one synchronous step."""
        pose = prepared.initial_pose

        self.backend.set_up_axis(pose.up)
        self.backend.set_points(prepared.subset.positions, prepared.subset.colors)
        self.backend.set_overlays(prepared.overlays)

        self.controller.set_initial_pose(pose)
        self._published.clear()
        self._publish_camera()

        self._scene = prepared
        self._state = SessionState.READY
        self.backend.set_status(None)
        self.backend.set_stats(prepared.stats)

        logger.info(
            f"Loaded snapshot: {prepared.snapshot.vertex_count} vertices "
            f"({len(prepared.subset)} shown), "
            f"{len(prepared.snapshot.annotations)} annotations, "
            f"{format_bytes(prepared.content_length)}"
        )
        self.event_bus.emit(
            EventType.SNAPSHOT_LOADED,
            source="session",
            vertex_count=prepared.snapshot.vertex_count,
            kept_count=len(prepared.subset),
            annotation_count=len(prepared.snapshot.annotations),
            size_bytes=prepared.content_length,
        )

    def _fail(self, source: str, error: Exception) -> None:
        if not self.is_alive:
            logger.debug(f"Ignoring failure for {source}: session closed")
            return
        self._state = SessionState.FAILED
        self._error = str(error)
        self.backend.set_status(f"Error: {error}")
        logger.warning(f"Failed to load {source}: {error}")
        self.event_bus.emit(EventType.LOAD_FAILED, source="session", error=str(error))

    # =========================================================================
    # Frame loop
    # =========================================================================

    async def _frame_loop(self) -> None:
        interval = 1.0 / self.config.frame_rate
        while True:
            try:
                self.tick()
            except Exception as e:
                logger.error(f"Frame tick failed: {e}", exc_info=True)
            await asyncio.sleep(interval)

    def tick(self) -> bool:
        """Advance the camera one frame; returns True if a frame was produced."""
        if self._state is not SessionState.READY:
            return False
        self.controller.update()
        self._publish_camera()
        self._tick_count += 1
        return True

    def _publish_camera(self) -> None:
        pose = self.controller.pose
        if self._published and pose.matches(self._published[-1][1]):
            self._published[-1] = (self._clock(), self._published[-1][1])
            return
        self.backend.set_camera(pose)
        self._remember(pose)

    def _remember(self, pose: CameraPose) -> None:
        now = self._clock()
        self._published.append((now, pose.copy()))
        while self._published and now - self._published[0][0] > _ECHO_WINDOW:
            self._published.popleft()

    # =========================================================================
    # Controls
    # =========================================================================

    def reset_camera(self) -> None:
        """Restore the initial pose."""
        if self._state is not SessionState.READY:
            return
        self.controller.reset()
        self._publish_camera()
        self.event_bus.emit(EventType.CAMERA_RESET, source="session")

    def set_autorotate(self, enabled: bool) -> None:
        self.controller.set_autorotate(enabled)
        self.event_bus.emit(EventType.AUTOROTATE_TOGGLED, source="session", enabled=bool(enabled))

    def toggle_autorotate(self) -> bool:
        """Flip autorotation and return the new value."""
        enabled = not self.controller.autorotate
        self.set_autorotate(enabled)
        return enabled

    def set_point_size(self, size: float) -> None:
        display = self.config.display
        self._point_size = float(min(max(size, display.point_size_min), display.point_size_max))
        self.backend.set_point_size(self._point_size)
        self.event_bus.emit(EventType.POINT_SIZE_CHANGED, source="session", size=self._point_size)

    def toggle_dark_background(self) -> bool:
        """Flip the background and return True when it is now dark."""
        self._dark_background = not self._dark_background
        self.backend.set_dark_background(self._dark_background)
        self.event_bus.emit(
            EventType.BACKGROUND_TOGGLED, source="session", dark=self._dark_background
        )
        return self._dark_background

    def dispatch_input(self, event: InputEvent) -> None:
        """Forward a pointer or wheel event to the controller."""
        if self._state is not SessionState.READY:
            return
        self.controller.handle_input(event)

    def sync_from_view(self, position, target) -> bool:
        """
        Adopt a camera pose reported by the browser.

        Reports matching a pose this session published within the last
        two seconds are echoes and ignored, however many frames have been
        published since. Returns True when the pose was adopted.
        """
        if self._state is not SessionState.READY:
            return False
        position = np.asarray(position, dtype=np.float64)
        target = np.asarray(target, dtype=np.float64)
        for _, pose in self._published:
            if np.allclose(pose.position, position, atol=_ECHO_TOLERANCE) and np.allclose(
                pose.target, target, atol=_ECHO_TOLERANCE
            ):
                return False

        self.controller.sync_from_view(position, target)
        self._remember(self.controller.pose)
        return True

    def _on_resize(self, width: int, height: int) -> None:
        self.controller.handle_resize(width, height)
