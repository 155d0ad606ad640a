"""Immutable scene container.

A ``Scene`` owns everything the tracer reads: triangles, materials keyed by
name, lights, the ambient radiance, the built BVH and the camera. It is
produced by ``SceneManager.build()`` and never modified afterwards, which is
what allows all render workers to share one instance without locks.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

import numpy as np

from meshtrace.camera.pinhole import PinholeCamera
from meshtrace.core.ray import Vector
from meshtrace.geometry.bvh import BVH
from meshtrace.geometry.triangle import Triangle
from meshtrace.lights.sources import DirectionalLight, Light
from meshtrace.materials.material import Material


@dataclass(frozen=True, eq=False)
class Scene:
    """A fully built, read-only scene.

    Attributes:
        triangles: All non-degenerate triangles.
        materials: Read-only mapping from material name to Material.
        lights: Light sources.
        ambient: Ambient radiance (RGB); also the background colour.
        bvh: Spatial index built over ``triangles``.
        camera: The camera used for primary rays.
        default_material: Name of the material used for unknown names.
    """

    triangles: tuple[Triangle, ...]
    materials: Mapping[str, Material]
    lights: tuple[Light, ...]
    ambient: Vector
    bvh: BVH
    camera: PinholeCamera
    default_material: str

    def __post_init__(self) -> None:
        if self.default_material not in self.materials:
            raise ValueError(f"Default material '{self.default_material}' is not registered")
        ambient = np.asarray(self.ambient, dtype=np.float64)
        ambient.setflags(write=False)
        object.__setattr__(self, "ambient", ambient)

    def material_for(self, name: str) -> Material:
        """Look up a material, falling back to the default material."""
        material = self.materials.get(name)
        if material is None:
            return self.materials[self.default_material]
        return material

    def dominant_light(self) -> DirectionalLight | None:
        """First directional light, used for the optional sky gradient."""
        for light in self.lights:
            if isinstance(light, DirectionalLight):
                return light
        return None

    def __repr__(self) -> str:
        return (
            f"Scene(triangles={len(self.triangles)}, materials={len(self.materials)}, "
            f"lights={len(self.lights)})"
        )
