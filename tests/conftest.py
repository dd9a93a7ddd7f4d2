"""Pytest configuration and shared fixtures."""

import struct
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pytest

from src.infrastructure.io.fetch import FetchResult
from src.infrastructure.processing.lssnap import encode


def build_snapshot(
    magic: bytes = b"LSS",
    version: int = 1,
    vertex_count: int | None = None,
    annotation_length: int | None = None,
    vertices: bytes = b"",
    annotation_block: bytes = b"",
) -> bytes:
    """Assemble raw snapshot bytes, allowing every header field to lie."""
    if vertex_count is None:
        vertex_count = len(vertices) // 9
    if annotation_length is None:
        annotation_length = len(annotation_block)
    header = struct.pack("<3sBii4x", magic, version, vertex_count, annotation_length)
    return header + vertices + annotation_block


def vertex_record(x: int, y: int, z: int, r: int, g: int, b: int) -> bytes:
    """One 9-byte vertex record (millimetres, colour bytes)."""
    return struct.pack("<hhhBBB", x, y, z, r, g, b)


@pytest.fixture
def two_vertex_bytes():
    """Snapshot with vertices (1, 2, -3) red and (0, 0, 0) green, no annotations."""
    vertices = vertex_record(1, 2, -3, 255, 0, 0) + vertex_record(0, 0, 0, 0, 255, 0)
    return build_snapshot(vertices=vertices)


@pytest.fixture
def cube_grid():
    """Integer grid over [0, 10]^3 (11 x 11 x 11 points), colours by position."""
    axis = np.arange(11, dtype=np.float32)
    xs, ys, zs = np.meshgrid(axis, axis, axis, indexing="ij")
    positions = np.stack([xs.ravel(), ys.ravel(), zs.ravel()], axis=1)
    colors = positions / 10.0
    return positions, colors


@pytest.fixture
def cube_snapshot_bytes(cube_grid):
    """Cube grid encoded as a snapshot with one marker annotation."""
    positions, colors = cube_grid
    annotations = [{"type": "point", "positions": [5.0, 5.0, 5.0], "radius": 0.5}]
    return encode(positions, colors, annotations)


# ============================================================================
# Session fakes
# ============================================================================


@dataclass
class FakeSceneBackend:
    """In-memory SceneBackend recording every call in order."""

    calls: list[tuple[str, Any]] = field(default_factory=list)
    points: tuple[np.ndarray, np.ndarray] | None = None
    overlays: list = field(default_factory=list)
    cameras: list = field(default_factory=list)
    up_axis: np.ndarray | None = None
    point_size: float | None = None
    dark_background: bool | None = None
    status: str | None = None
    stats: dict | None = None
    disposed: bool = False

    def set_points(self, positions, colors):
        self.points = (positions, colors)
        self.calls.append(("set_points", len(positions)))

    def set_overlays(self, primitives):
        self.overlays = list(primitives)
        self.calls.append(("set_overlays", len(self.overlays)))

    def clear(self):
        self.points = None
        self.overlays = []
        self.calls.append(("clear", None))

    def set_camera(self, pose):
        self.cameras.append(pose.copy())
        self.calls.append(("set_camera", None))

    def set_up_axis(self, up):
        self.up_axis = np.asarray(up)
        self.calls.append(("set_up_axis", tuple(float(v) for v in up)))

    def set_point_size(self, size):
        self.point_size = size
        self.calls.append(("set_point_size", size))

    def set_dark_background(self, enabled):
        self.dark_background = enabled
        self.calls.append(("set_dark_background", enabled))

    def set_status(self, message):
        self.status = message
        self.calls.append(("set_status", message))

    def set_stats(self, stats):
        self.stats = stats
        self.calls.append(("set_stats", stats))

    def dispose(self):
        self.disposed = True
        self.calls.append(("dispose", None))

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]


@pytest.fixture
def fake_backend():
    """Fresh recording backend."""
    return FakeSceneBackend()


def make_fetcher(data: bytes | None = None, error: Exception | None = None, gate=None):
    """Build an async fetcher returning ``data`` or raising ``error``.

    When ``gate`` (an asyncio.Event) is given the fetch waits on it first.
    """
    requested: list[str] = []

    async def fetcher(location: str) -> FetchResult:
        requested.append(location)
        if gate is not None:
            await gate.wait()
        if error is not None:
            raise error
        return FetchResult(data=data, content_length=len(data))

    fetcher.requested = requested
    return fetcher
