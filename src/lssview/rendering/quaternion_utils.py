"""
Quaternion utilities for the camera controllers.

All quaternions use wxyz format (w, x, y, z) to match viser's convention.
w is the scalar component, (x, y, z) is the vector component.
"""

from __future__ import annotations

import numpy as np

IDENTITY = np.array([1.0, 0.0, 0.0, 0.0])


def quat_normalize(q: np.ndarray) -> np.ndarray:
    """Normalize to unit length; near-zero input becomes the identity."""
    norm = np.linalg.norm(q)
    if norm < 1e-12:
        return IDENTITY.copy()
    return q / norm


def quat_conjugate(q: np.ndarray) -> np.ndarray:
    """Conjugate, which is the inverse for unit quaternions."""
    w, x, y, z = q
    return np.array([w, -x, -y, -z])


def quat_from_axis_angle(axis: np.ndarray, angle: float) -> np.ndarray:
    """
    Create quaternion from axis-angle representation.

    Parameters
    ----------
    axis : np.ndarray
        Rotation axis (3,) - will be normalized. A zero axis yields identity.
    angle : float
        Rotation angle in radians

    Returns
    -------
    np.ndarray
        Rotation quaternion (wxyz format)
    """
    axis = np.asarray(axis, dtype=np.float64)
    axis_norm = np.linalg.norm(axis)
    if axis_norm < 1e-12:
        return IDENTITY.copy()

    axis = axis / axis_norm
    half_angle = angle / 2.0
    s = np.sin(half_angle)
    c = np.cos(half_angle)

    return np.array([c, axis[0] * s, axis[1] * s, axis[2] * s])


def quat_from_unit_vectors(v_from: np.ndarray, v_to: np.ndarray) -> np.ndarray:
    """
    Shortest-arc rotation taking unit vector ``v_from`` onto ``v_to``.

    Opposite vectors rotate by pi about any axis orthogonal to ``v_from``.
    """
    v_from = np.asarray(v_from, dtype=np.float64)
    v_to = np.asarray(v_to, dtype=np.float64)
    r = float(np.dot(v_from, v_to)) + 1.0

    if r < 1e-8:
        if abs(v_from[0]) > abs(v_from[2]):
            axis = np.array([-v_from[1], v_from[0], 0.0])
        else:
            axis = np.array([0.0, -v_from[2], v_from[1]])
        return quat_normalize(np.array([0.0, axis[0], axis[1], axis[2]]))

    cross = np.cross(v_from, v_to)
    return quat_normalize(np.array([r, cross[0], cross[1], cross[2]]))


def quat_to_rotation_matrix(q: np.ndarray) -> np.ndarray:
    """Convert a quaternion (wxyz) to a 3x3 rotation matrix."""
    q = quat_normalize(q)
    w, x, y, z = q

    xx, yy, zz = x * x, y * y, z * z
    xy, xz, yz = x * y, x * z, y * z
    wx, wy, wz = w * x, w * y, w * z

    return np.array(
        [
            [1.0 - 2.0 * (yy + zz), 2.0 * (xy - wz), 2.0 * (xz + wy)],
            [2.0 * (xy + wz), 1.0 - 2.0 * (xx + zz), 2.0 * (yz - wx)],
            [2.0 * (xz - wy), 2.0 * (yz + wx), 1.0 - 2.0 * (xx + yy)],
        ]
    )


def quat_rotate(q: np.ndarray, v: np.ndarray) -> np.ndarray:
    """Rotate vector ``v`` (3,) by quaternion ``q``."""
    return quat_to_rotation_matrix(q) @ np.asarray(v, dtype=np.float64)
