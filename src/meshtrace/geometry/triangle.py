"""Triangle primitive with Möller–Trumbore ray-triangle intersection.

A triangle is defined by three shaded vertices (position, normal, texture
coordinate) and the name of the material it is drawn with. Intersection is
one-sided: rays that approach the back of a triangle (or run parallel to it)
never hit, so back faces are never rendered.

The winding determines the front face. For vertices ``v0, v1, v2`` the
geometric normal is ``(v1 - v0) x (v2 - v0)`` and a ray hits only when it
travels against that normal.

Example:
    >>> from meshtrace.core.ray import Ray, vec3
    >>> from meshtrace.geometry.triangle import Triangle, Vertex
    >>> tri = Triangle(
    ...     (Vertex((0, 0, 0)), Vertex((1, 0, 0)), Vertex((0, 1, 0))),
    ...     material="white",
    ... )
    >>> hit = tri.intersect(Ray(vec3(0.25, 0.25, 1.0), vec3(0.0, 0.0, -1.0)))
    >>> round(hit.t, 6)
    1.0

Reference: Möller & Trumbore, "Fast, Minimum Storage Ray/Triangle
Intersection", Journal of Graphics Tools, 1997.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

from meshtrace.core.ray import Ray, Vector, cross, length, normalize
from meshtrace.geometry.aabb import AABB
from meshtrace.geometry.kernels import intersect_triangle

if TYPE_CHECKING:
    from meshtrace.materials.material import Material


@dataclass(frozen=True, eq=False)
class Vertex:
    """A shaded triangle corner.

    Attributes:
        position: World-space position.
        normal: Shading normal. A zero normal means "not provided"; the
            loader replaces it with the flat face normal.
        uv: Texture coordinate.
    """

    position: Vector
    normal: Vector = field(default_factory=lambda: np.zeros(3))
    uv: Vector = field(default_factory=lambda: np.zeros(2))

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", np.asarray(self.position, dtype=np.float64))
        object.__setattr__(self, "normal", np.asarray(self.normal, dtype=np.float64))
        object.__setattr__(self, "uv", np.asarray(self.uv, dtype=np.float64))


@dataclass(eq=False)
class Intersection:
    """Record of a ray-triangle intersection.

    Created and consumed within a single trace step.

    Attributes:
        t: Distance along the ray (always > EPSILON).
        position: World-space hit point.
        normal: Interpolated, normalized shading normal.
        uv: Interpolated texture coordinate.
        material_name: Name of the triangle's material.
        material: The resolved material, filled in by the scene query.
    """

    t: float
    position: Vector
    normal: Vector
    uv: Vector
    material_name: str
    material: Material | None = None


@dataclass(eq=False)
class Triangle:
    """A triangle with three shaded vertices and a material reference.

    Attributes:
        vertices: The three corners, counter-clockwise when seen from the
            front face.
        material: Name of the material the triangle is drawn with.
        node_index: Bookkeeping slot written by the BVH while it is being
            built; read-only afterwards.
    """

    vertices: tuple[Vertex, Vertex, Vertex]
    material: str
    node_index: int = 0
    _edge_a: Vector = field(init=False, repr=False)
    _edge_b: Vector = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if len(self.vertices) != 3:
            raise ValueError(f"A triangle needs 3 vertices, got {len(self.vertices)}")
        self.vertices = tuple(self.vertices)
        v0, v1, v2 = (v.position for v in self.vertices)
        self._edge_a = v1 - v0
        self._edge_b = v2 - v0

    # =========================================================================
    # Geometry
    # =========================================================================

    def bounding_box(self) -> AABB:
        """Axis-aligned box of the three vertex positions."""
        return AABB.from_points(*(v.position for v in self.vertices))

    def area(self) -> float:
        return 0.5 * length(cross(self._edge_a, self._edge_b))

    def face_normal(self) -> Vector:
        """Unit geometric normal following the vertex winding."""
        return normalize(cross(self._edge_a, self._edge_b))

    def is_degenerate(self) -> bool:
        """True for zero-area triangles or zero-surface-area bounding boxes."""
        return self.area() == 0.0 or self.bounding_box().surface_area() == 0.0

    def barycentric(self, point: Vector) -> tuple[float, float, float]:
        """Barycentric weights of ``point`` from sub-triangle areas.

        The weights are ratios of edge cross-product magnitudes, so they are
        only meaningful for points inside the triangle, which is the only
        place they are used. They match the Möller–Trumbore ``(1-u-v, u, v)``
        up to floating-point rounding.

        Args:
            point: A point on the triangle.

        Returns:
            Weights ``(w0, w1, w2)`` for vertices 0, 1 and 2.
        """
        w = point - self.vertices[0].position
        denom = length(cross(self._edge_a, self._edge_b))
        w1 = length(cross(self._edge_b, w)) / denom
        w2 = length(cross(self._edge_a, w)) / denom
        return 1.0 - w1 - w2, w1, w2

    # =========================================================================
    # Intersection
    # =========================================================================

    def intersect(self, ray: Ray, t_max: float = math.inf) -> Intersection | None:
        """Test for ray-triangle intersection using Möller–Trumbore.

        Args:
            ray: The ray to test.
            t_max: Hits farther than this are ignored.

        Returns:
            The intersection, or None when the ray misses, approaches the back
            face, runs (nearly) parallel to the plane, or would hit at
            ``t < EPSILON``.
        """
        t = intersect_triangle(
            ray.origin,
            ray.direction,
            self.vertices[0].position,
            self._edge_a,
            self._edge_b,
            float(t_max),
        )
        if t < 0.0:
            return None
        return self.surface_at(ray, t)

    def surface_at(self, ray: Ray, t: float) -> Intersection:
        """Build the intersection record for a hit at distance ``t``.

        The shading normal and texture coordinate are interpolated with
        ``barycentric`` weights of the hit point.
        """
        position = ray.at(t)
        w0, w1, w2 = self.barycentric(position)
        a, b, c = self.vertices
        normal = normalize(w0 * a.normal + w1 * b.normal + w2 * c.normal)
        uv = w0 * a.uv + w1 * b.uv + w2 * c.uv

        return Intersection(
            t=float(t),
            position=position,
            normal=normal,
            uv=uv,
            material_name=self.material,
        )
