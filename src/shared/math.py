"""Vector helpers shared by the camera controllers."""

from __future__ import annotations

import numpy as np

_EPS = 1e-9


def as_vec3(value) -> np.ndarray:
    """Return ``value`` as a float64 (3,) array."""
    vec = np.asarray(value, dtype=np.float64).reshape(-1)
    if vec.shape != (3,):
        raise ValueError(f"Expected a 3-vector, got shape {vec.shape}")
    return vec


def normalize(vec: np.ndarray, fallback: np.ndarray | None = None) -> np.ndarray:
    """
    Normalize a vector to unit length.

    Zero-length input returns ``fallback`` (or the input unchanged) instead of
    dividing by zero.
    """
    norm = float(np.linalg.norm(vec))
    if norm < _EPS:
        return vec.copy() if fallback is None else np.asarray(fallback, dtype=np.float64)
    return vec / norm


def plane_basis(up: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """
    Build an orthonormal basis (u, v) of the plane orthogonal to ``up``.

    (u, v, up) is right-handed, so for up = +Z the basis is (+X, +Y) and for
    up = +Y it is (+Z, +X).
    """
    up = normalize(as_vec3(up))
    # Seed with the cyclic successor of the dominant axis; never parallel to up
    dominant = int(np.argmax(np.abs(up)))
    seed = np.zeros(3)
    seed[(dominant + 1) % 3] = 1.0
    u = normalize(seed - up * float(np.dot(seed, up)))
    v = np.cross(up, u)
    return u, v


def rotate_in_plane(
    point: np.ndarray,
    pivot: np.ndarray,
    up: np.ndarray,
    angle: float,
) -> np.ndarray:
    """
    Rotate ``point`` about ``pivot`` by ``angle`` radians around ``up``.

    The offset is split into its in-plane coordinates (a, b) and its component
    along ``up``; only (a, b) go through the 2D rotation.
    """
    pivot = as_vec3(pivot)
    offset = as_vec3(point) - pivot
    up_n = normalize(as_vec3(up))
    u, v = plane_basis(up_n)

    a = float(np.dot(offset, u))
    b = float(np.dot(offset, v))
    h = float(np.dot(offset, up_n))

    cos_t = np.cos(angle)
    sin_t = np.sin(angle)
    a_rot = a * cos_t - b * sin_t
    b_rot = a * sin_t + b * cos_t

    return pivot + a_rot * u + b_rot * v + h * up_n
