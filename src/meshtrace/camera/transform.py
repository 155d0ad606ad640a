"""Rigid transforms with quaternion orientation.

Quaternions are NumPy arrays in ``(w, x, y, z)`` order. Only the handful of
operations the camera needs are provided.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

from meshtrace.core.ray import Vector, as_vec3, cross, length, normalize

IDENTITY_QUAT = np.array((1.0, 0.0, 0.0, 0.0), dtype=np.float64)


def quat_from_axis_angle(axis, angle: float) -> Vector:
    """Unit quaternion rotating by ``angle`` radians about ``axis``.

    A zero axis yields the identity rotation.
    """
    axis = normalize(as_vec3(axis))
    if length(axis) == 0.0:
        return IDENTITY_QUAT.copy()
    half = 0.5 * angle
    s = math.sin(half)
    return np.array((math.cos(half), axis[0] * s, axis[1] * s, axis[2] * s))


def quat_multiply(a: Vector, b: Vector) -> Vector:
    """Hamilton product ``a * b``."""
    aw, ax, ay, az = a
    bw, bx, by, bz = b
    return np.array(
        (
            aw * bw - ax * bx - ay * by - az * bz,
            aw * bx + ax * bw + ay * bz - az * by,
            aw * by - ax * bz + ay * bw + az * bx,
            aw * bz + ax * by - ay * bx + az * bw,
        ),
        dtype=np.float64,
    )


def quat_conjugate(q: Vector) -> Vector:
    return np.array((q[0], -q[1], -q[2], -q[3]), dtype=np.float64)


def quat_rotate(q: Vector, v: Vector) -> Vector:
    """Rotate vector ``v`` by unit quaternion ``q`` via ``q * v * q^-1``."""
    pure = np.array((0.0, v[0], v[1], v[2]), dtype=np.float64)
    r = quat_multiply(quat_multiply(q, pure), quat_conjugate(q))
    return r[1:]


def quat_from_basis(x_axis: Vector, y_axis: Vector, z_axis: Vector) -> Vector:
    """Unit quaternion of the rotation whose matrix columns are the given axes.

    The axes must form a right-handed orthonormal basis.
    """
    m = np.column_stack((x_axis, y_axis, z_axis))
    trace = m[0, 0] + m[1, 1] + m[2, 2]
    if trace > 0.0:
        s = 2.0 * math.sqrt(trace + 1.0)
        q = (0.25 * s, (m[2, 1] - m[1, 2]) / s, (m[0, 2] - m[2, 0]) / s, (m[1, 0] - m[0, 1]) / s)
    elif m[0, 0] > m[1, 1] and m[0, 0] > m[2, 2]:
        s = 2.0 * math.sqrt(1.0 + m[0, 0] - m[1, 1] - m[2, 2])
        q = ((m[2, 1] - m[1, 2]) / s, 0.25 * s, (m[0, 1] + m[1, 0]) / s, (m[0, 2] + m[2, 0]) / s)
    elif m[1, 1] > m[2, 2]:
        s = 2.0 * math.sqrt(1.0 + m[1, 1] - m[0, 0] - m[2, 2])
        q = ((m[0, 2] - m[2, 0]) / s, (m[0, 1] + m[1, 0]) / s, 0.25 * s, (m[1, 2] + m[2, 1]) / s)
    else:
        s = 2.0 * math.sqrt(1.0 + m[2, 2] - m[0, 0] - m[1, 1])
        q = ((m[1, 0] - m[0, 1]) / s, (m[0, 2] + m[2, 0]) / s, (m[1, 2] + m[2, 1]) / s, 0.25 * s)
    q = np.array(q, dtype=np.float64)
    return q / np.linalg.norm(q)


@dataclass(frozen=True, eq=False)
class Transform:
    """Position, orientation and scale of an object in world space.

    Attributes:
        position: World-space translation.
        orientation: Unit quaternion ``(w, x, y, z)``.
        scale: Per-axis scale (unused by the pinhole camera).
    """

    position: Vector
    orientation: Vector = field(default_factory=IDENTITY_QUAT.copy)
    scale: Vector = field(default_factory=lambda: np.ones(3))

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", as_vec3(self.position))
        q = np.asarray(self.orientation, dtype=np.float64)
        norm = np.linalg.norm(q)
        if q.shape != (4,) or norm == 0.0:
            raise ValueError(f"Orientation must be a non-zero quaternion, got {self.orientation}")
        object.__setattr__(self, "orientation", q / norm)
        object.__setattr__(self, "scale", as_vec3(self.scale))

    @classmethod
    def from_axis_angle(cls, position, axis, angle: float) -> Transform:
        """Transform rotated by ``angle`` radians about ``axis``."""
        return cls(position=position, orientation=quat_from_axis_angle(axis, angle))

    @classmethod
    def from_lookat(cls, position, target, up=(0.0, 1.0, 0.0)) -> Transform:
        """Transform whose local +Z axis points from ``position`` at ``target``.

        Local +Y is aligned as closely as possible with ``up``.

        Raises:
            ValueError: If target equals position or the view direction is
                parallel to ``up``.
        """
        forward = normalize(as_vec3(target) - as_vec3(position))
        if length(forward) == 0.0:
            raise ValueError("Look-at target must differ from the position")
        x_axis = normalize(cross(as_vec3(up), forward))
        if length(x_axis) == 0.0:
            raise ValueError("View direction must not be parallel to the up vector")
        y_axis = cross(forward, x_axis)
        return cls(position=position, orientation=quat_from_basis(x_axis, y_axis, forward))
