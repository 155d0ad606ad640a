"""Axis-aligned bounding boxes for triangles and BVH nodes."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from meshtrace.core.ray import Ray, Vector
from meshtrace.geometry.kernels import ray_hits_box


@dataclass(frozen=True, eq=False)
class AABB:
    """An axis-aligned box spanning ``minimum`` to ``maximum``.

    Attributes:
        minimum: Component-wise lower corner.
        maximum: Component-wise upper corner.
    """

    minimum: Vector
    maximum: Vector

    def __post_init__(self) -> None:
        object.__setattr__(self, "minimum", np.asarray(self.minimum, dtype=np.float64))
        object.__setattr__(self, "maximum", np.asarray(self.maximum, dtype=np.float64))

    @classmethod
    def from_points(cls, *points: Vector) -> AABB:
        stacked = np.stack(points)
        return cls(stacked.min(axis=0), stacked.max(axis=0))

    @classmethod
    def surrounding(cls, boxes: list[AABB]) -> AABB:
        """Return the smallest box that contains every box in ``boxes``."""
        lo = np.min(np.stack([b.minimum for b in boxes]), axis=0)
        hi = np.max(np.stack([b.maximum for b in boxes]), axis=0)
        return cls(lo, hi)

    @property
    def extent(self) -> Vector:
        return self.maximum - self.minimum

    @property
    def centroid(self) -> Vector:
        return 0.5 * (self.minimum + self.maximum)

    def surface_area(self) -> float:
        dx, dy, dz = self.extent
        return float(2.0 * (dx * dy + dy * dz + dz * dx))

    def hit(self, ray: Ray, t_min: float, t_max: float) -> bool:
        """Slab test: does ``ray`` cross the box within ``[t_min, t_max]``?

        A zero direction component reduces that axis to a containment check
        of the origin against the slab.
        """
        return bool(
            ray_hits_box(
                ray.origin, ray.direction, self.minimum, self.maximum, float(t_min), float(t_max)
            )
        )
