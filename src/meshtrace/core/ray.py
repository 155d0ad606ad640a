"""Ray data structure and vector utilities for CPU ray tracing.

This module provides the fundamental Ray dataclass and the small set of
vector helpers used by the intersection, shading and camera code. Vectors are
plain NumPy ``float64`` arrays of length 2 or 3, which keeps every operation
free of shared state and therefore safe to call from any worker thread.

Example:
    >>> from meshtrace.core.ray import Ray, vec3
    >>> ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, 1.0))
    >>> ray.at(5.0)
    array([0., 0., 5.])
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

# Type alias for 2D/3D vectors
Vector = npt.NDArray[np.float64]

# Tolerance for ray-triangle rejection tests (determinant and hit distance)
EPSILON = 1e-5


def vec3(x: float, y: float, z: float) -> Vector:
    """Create a 3D vector."""
    return np.array((x, y, z), dtype=np.float64)


def vec2(u: float, v: float) -> Vector:
    """Create a 2D vector (texture coordinate)."""
    return np.array((u, v), dtype=np.float64)


def as_vec3(values) -> Vector:
    """Convert any 3-element sequence into a 3D vector.

    Raises:
        ValueError: If ``values`` does not hold exactly three numbers.
    """
    arr = np.asarray(values, dtype=np.float64).reshape(-1)
    if arr.shape != (3,):
        raise ValueError(f"Expected 3 components, got {arr.shape[0]}")
    return arr


@dataclass(frozen=True, eq=False)
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray.
        direction: The direction vector of the ray. Camera, shadow and
            continuation rays are always normalized so that the hit
            parameter ``t`` is a world-space distance.
    """

    origin: Vector
    direction: Vector

    def __post_init__(self) -> None:
        object.__setattr__(self, "origin", np.asarray(self.origin, dtype=np.float64))
        object.__setattr__(self, "direction", np.asarray(self.direction, dtype=np.float64))

    def at(self, t: float) -> Vector:
        """Compute the point along the ray at parameter t."""
        return self.origin + t * self.direction


# =============================================================================
# Vector Utility Functions
# =============================================================================


def dot(a: Vector, b: Vector) -> float:
    return float(a[0] * b[0] + a[1] * b[1] + a[2] * b[2])


def cross(a: Vector, b: Vector) -> Vector:
    return np.array(
        (
            a[1] * b[2] - a[2] * b[1],
            a[2] * b[0] - a[0] * b[2],
            a[0] * b[1] - a[1] * b[0],
        ),
        dtype=np.float64,
    )


def length(v: Vector) -> float:
    return math.sqrt(dot(v, v))


def normalize(v: Vector) -> Vector:
    """Normalize a vector to unit length.

    Returns:
        A unit vector in the same direction as v. A zero-length vector is
        returned unchanged (as zeros) instead of producing NaNs.
    """
    n = length(v)
    if n == 0.0:
        return np.zeros(3, dtype=np.float64)
    return v / n


def reflect(incident: Vector, normal: Vector) -> Vector:
    """Reflect an incident vector about a normal: ``I - 2(N.I)N``.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * dot(normal, incident) * normal
