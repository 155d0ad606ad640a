"""Scene builder coordinating geometry, materials, lights and the camera.

``SceneManager`` is the single writer of scene data. It collects triangles,
materials and lights, applies the data-quality policies, and finally builds
the BVH and freezes everything into an immutable ``Scene``:

- Degenerate triangles (zero area, or a bounding box with zero surface area)
  are dropped when added; this is not an error.
- Triangles naming an unknown material are resolved at build time to the
  default material: the first material registered, or a built-in gray
  material if none was registered. The rule is deterministic.
- Registering a second material with an existing name keeps the first one,
  matching how material libraries shared between meshes are merged.

Example:
    >>> from meshtrace.scene.manager import SceneManager
    >>> from meshtrace.materials.material import Material
    >>> from meshtrace.lights.sources import PointLight
    >>> from meshtrace.camera.pinhole import PinholeCamera
    >>> scene = SceneManager()
    >>> scene.add_material(Material(name="white", diffuse=(0.73, 0.73, 0.73)))
    >>> scene.add_quad((0, 0, 0), (0, 0, 1), (1, 0, 0), "white")
    2
    >>> scene.add_light(PointLight(position=(0.5, 1.0, 0.5), emission=(1.0, 1.0, 1.0)))
    >>> scene.set_camera(PinholeCamera.from_lookat((0.5, 2, -2), (0.5, 0, 0.5), 64, 64))
    >>> built = scene.build()
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from types import MappingProxyType

import numpy as np

from meshtrace.camera.pinhole import PinholeCamera
from meshtrace.core.ray import Vector, as_vec3, cross, normalize
from meshtrace.geometry.bvh import BVH
from meshtrace.geometry.triangle import Triangle, Vertex
from meshtrace.lights.sources import Light
from meshtrace.materials.material import DEFAULT_MATERIAL_NAME, Material
from meshtrace.scene.scene import Scene

logger = logging.getLogger(__name__)


class SceneManager:
    """Mutable scene builder.

    Attributes:
        triangles: Accepted (non-degenerate) triangles in insertion order.
        materials: Registered materials in registration order.
        lights: Registered lights.
        ambient: Ambient radiance (RGB).
        camera: Camera, required before ``build``.
        discarded: Number of degenerate triangles dropped so far.
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.triangles: list[Triangle] = []
        self.materials: dict[str, Material] = {}
        self.lights: list[Light] = []
        self.ambient: Vector = np.zeros(3)
        self.camera: PinholeCamera | None = None
        self.discarded = 0

    def clear(self) -> None:
        """Remove all geometry, materials and lights."""
        self.triangles.clear()
        self.materials.clear()
        self.lights.clear()
        self.ambient = np.zeros(3)
        self.camera = None
        self.discarded = 0

    # =========================================================================
    # Material Management
    # =========================================================================

    def add_material(self, material: Material) -> str:
        """Register a material; an existing material with that name wins.

        Returns:
            The material name (the key triangles use).
        """
        if material.name not in self.materials:
            self.materials[material.name] = material
        return material.name

    def has_material(self, name: str) -> bool:
        return name in self.materials

    def get_material_count(self) -> int:
        return len(self.materials)

    def default_material_name(self) -> str:
        """Name of the fallback material: the first registered one."""
        if self.materials:
            return next(iter(self.materials))
        return DEFAULT_MATERIAL_NAME

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add_triangle(self, triangle: Triangle) -> bool:
        """Add a triangle unless it is degenerate.

        Returns:
            True if the triangle was kept, False if it was discarded.
        """
        if triangle.is_degenerate():
            self.discarded += 1
            return False
        self.triangles.append(triangle)
        return True

    def add_triangles(self, triangles: Iterable[Triangle]) -> int:
        """Add several triangles; returns how many were kept."""
        return sum(1 for tri in triangles if self.add_triangle(tri))

    def add_quad(
        self,
        corner,
        edge_u,
        edge_v,
        material: str,
    ) -> int:
        """Add a parallelogram as two triangles.

        The quad spans ``corner``, ``corner+edge_u``, ``corner+edge_v`` and
        ``corner+edge_u+edge_v``; its front face is the side that
        ``cross(edge_u, edge_v)`` points to. Vertices get that flat normal
        and texture coordinates spanning [0, 1] x [0, 1].

        Returns:
            Number of triangles kept (0 for a degenerate quad).
        """
        q = as_vec3(corner)
        u = as_vec3(edge_u)
        v = as_vec3(edge_v)
        normal = normalize(cross(u, v))

        def vert(p, uv) -> Vertex:
            return Vertex(position=p, normal=normal, uv=uv)

        first = Triangle((vert(q, (0, 0)), vert(q + u, (1, 0)), vert(q + v, (0, 1))), material)
        second = Triangle(
            (vert(q + u, (1, 0)), vert(q + u + v, (1, 1)), vert(q + v, (0, 1))), material
        )
        return self.add_triangles((first, second))

    def add_box(self, minimum, maximum, material: str) -> int:
        """Add an axis-aligned box with outward-facing quads.

        Returns:
            Number of triangles kept.
        """
        x0, y0, z0 = as_vec3(minimum)
        x1, y1, z1 = as_vec3(maximum)
        dx = np.array((x1 - x0, 0.0, 0.0))
        dy = np.array((0.0, y1 - y0, 0.0))
        dz = np.array((0.0, 0.0, z1 - z0))
        faces = (
            ((x0, y1, z0), dz, dx),  # top, +y
            ((x0, y0, z0), dx, dz),  # bottom, -y
            ((x0, y0, z0), dy, dx),  # front, -z
            ((x0, y0, z1), dx, dy),  # back, +z
            ((x1, y0, z0), dy, dz),  # +x
            ((x0, y0, z0), dz, dy),  # -x
        )
        return sum(self.add_quad(corner, u, v, material) for corner, u, v in faces)

    def get_triangle_count(self) -> int:
        return len(self.triangles)

    # =========================================================================
    # Lights and camera
    # =========================================================================

    def add_light(self, light: Light) -> None:
        self.lights.append(light)

    def set_ambient(self, ambient) -> None:
        self.ambient = as_vec3(ambient)

    def set_camera(self, camera: PinholeCamera) -> None:
        self.camera = camera

    # =========================================================================
    # Build
    # =========================================================================

    def build(self) -> Scene:
        """Resolve materials, build the BVH and freeze the scene.

        The manager can keep being used afterwards; the returned scene holds
        its own copies of the triangle, material and light collections.

        Raises:
            ValueError: If no camera has been set.
        """
        if self.camera is None:
            raise ValueError("A camera must be set before building the scene")

        materials = dict(self.materials)
        if not materials:
            materials[DEFAULT_MATERIAL_NAME] = Material(name=DEFAULT_MATERIAL_NAME)
        default_name = next(iter(materials))

        # Fresh copies per build, since BVH.build writes node_index
        triangles = []
        unresolved = 0
        for triangle in self.triangles:
            material = triangle.material
            if material not in materials:
                material = default_name
                unresolved += 1
            triangles.append(Triangle(triangle.vertices, material))
        if unresolved:
            logger.warning(
                "%d triangles reference unknown materials; using '%s'", unresolved, default_name
            )

        triangles = tuple(triangles)
        bvh = BVH.build(triangles)
        logger.info(
            "Built scene: %d triangles (%d discarded), %d materials, %d lights",
            len(triangles),
            self.discarded,
            len(materials),
            len(self.lights),
        )
        return Scene(
            triangles=triangles,
            materials=MappingProxyType(materials),
            lights=tuple(self.lights),
            ambient=self.ambient.copy(),
            bvh=bvh,
            camera=self.camera,
            default_material=default_name,
        )

    def __repr__(self) -> str:
        return (
            f"SceneManager(triangles={len(self.triangles)}, "
            f"materials={len(self.materials)}, lights={len(self.lights)})"
        )
