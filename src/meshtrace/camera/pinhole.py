"""Pinhole camera model for primary ray generation.

The camera looks down its local +Z axis with +Y up. A pixel ``(x, y)``
(``y`` grows downward, as in image rows) is mapped to the view-space vector

    x_n = (width / 2 - x) / width
    y_n = (height / 2 - y) / height * aspect      aspect = height / width
    v   = (x_n, y_n, 1)

which is rotated into world space with the camera's orientation quaternion
(``q * v * q^-1``) and normalized. Screen right maps to local -X, which keeps
the image unmirrored for a right-handed frame looking down +Z.

There is no lens: every ray starts at the camera position (no depth of field,
no distortion).

Example:
    >>> from meshtrace.camera.pinhole import PinholeCamera
    >>> camera = PinholeCamera.from_axis_angle(
    ...     position=(0.0, 0.0, -5.0), axis=(0.0, 1.0, 0.0), angle=0.0,
    ...     viewport_w=640, viewport_h=480,
    ... )
    >>> ray = camera.ray_for_pixel(320, 240)
    >>> ray.direction
    array([0., 0., 1.])
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from meshtrace.camera.transform import Transform, quat_rotate
from meshtrace.core.ray import Ray, normalize


@dataclass(frozen=True, eq=False)
class PinholeCamera:
    """Immutable pinhole camera.

    Attributes:
        transform: Camera position and orientation.
        viewport_w: Viewport width in pixels.
        viewport_h: Viewport height in pixels.
    """

    transform: Transform
    viewport_w: float
    viewport_h: float

    def __post_init__(self) -> None:
        if self.viewport_w <= 0 or self.viewport_h <= 0:
            raise ValueError(
                f"Viewport dimensions must be positive, got {self.viewport_w}x{self.viewport_h}"
            )

    @classmethod
    def from_axis_angle(
        cls,
        position,
        axis,
        angle: float,
        viewport_w: float,
        viewport_h: float,
    ) -> PinholeCamera:
        """Camera rotated by ``angle`` radians about ``axis``."""
        return cls(Transform.from_axis_angle(position, axis, angle), viewport_w, viewport_h)

    @classmethod
    def from_lookat(
        cls,
        position,
        target,
        viewport_w: float,
        viewport_h: float,
        up=(0.0, 1.0, 0.0),
    ) -> PinholeCamera:
        """Camera at ``position`` looking at ``target``."""
        return cls(Transform.from_lookat(position, target, up), viewport_w, viewport_h)

    @property
    def position(self) -> np.ndarray:
        return self.transform.position

    @property
    def aspect(self) -> float:
        """Vertical scale factor, ``viewport_h / viewport_w``."""
        return self.viewport_h / self.viewport_w

    def view_vector(self, x: float, y: float) -> np.ndarray:
        """Unrotated, unnormalized view-space vector for pixel ``(x, y)``."""
        x_n = (self.viewport_w * 0.5 - x) / self.viewport_w
        y_n = (self.viewport_h * 0.5 - y) / self.viewport_h * self.aspect
        return np.array((x_n, y_n, 1.0), dtype=np.float64)

    def ray_for_pixel(self, x: float, y: float) -> Ray:
        """Generate the primary ray through pixel coordinate ``(x, y)``.

        Args:
            x: Horizontal pixel coordinate, 0 at the left edge.
            y: Vertical pixel coordinate, 0 at the top edge.

        Returns:
            A ray from the camera position with a unit-length direction.
        """
        direction = quat_rotate(self.transform.orientation, self.view_vector(x, y))
        return Ray(origin=self.transform.position.copy(), direction=normalize(direction))
