"""Scene-level ray queries.

``intersect_scene`` finds the closest hit along a ray with the compiled BVH
traversal, then interpolates the surface data of that one triangle and
resolves its material. ``is_occluded`` answers the shadow-ray question,
letting rays pass through cutout (fully transparent) surfaces.

Example:
    >>> from meshtrace.scene.intersection import intersect_scene
    >>> hit = intersect_scene(scene, camera.ray_for_pixel(10, 10))
    >>> if hit is not None:
    ...     print(hit.t, hit.material.name)
"""

from __future__ import annotations

import math

from meshtrace.config import DEFAULT_MAX_DEPTH, TextureFilter
from meshtrace.core.ray import Ray
from meshtrace.geometry.triangle import Intersection
from meshtrace.scene.scene import Scene


def intersect_scene(
    scene: Scene,
    ray: Ray,
    t_max: float = math.inf,
) -> Intersection | None:
    """Test a ray against the scene and return the closest intersection.

    Args:
        scene: The scene to query.
        ray: The ray to trace.
        t_max: Maximum distance to consider.

    Returns:
        The closest intersection with its material resolved, or None if the
        ray hits nothing within ``t_max``.
    """
    index, t = scene.bvh.closest(ray, t_max)
    if index < 0:
        return None
    hit = scene.triangles[index].surface_at(ray, t)
    hit.material = scene.material_for(hit.material_name)
    return hit


def is_occluded(
    scene: Scene,
    ray: Ray,
    t_max: float = math.inf,
    texture_filter: TextureFilter = TextureFilter.NEAREST,
    max_skips: int = DEFAULT_MAX_DEPTH,
) -> bool:
    """Shadow-ray query: is there an opaque surface along the ray?

    The nearest hit is checked first. If it is a cutout at its texture
    coordinate it does not block light, and the query continues behind it,
    at most ``max_skips`` times.

    Args:
        scene: The scene to query.
        ray: Shadow ray with a unit direction, starting at the offset point.
        t_max: Distance to the light (``inf`` for directional lights).
        texture_filter: Filter used for the cutout test.
        max_skips: Number of transparent surfaces the ray may pass through.

    Returns:
        True if an opaque occluder lies closer than ``t_max``.
    """
    remaining = t_max
    for _ in range(max_skips + 1):
        hit = intersect_scene(scene, ray, remaining)
        if hit is None:
            return False
        if not hit.material.is_cutout(hit.uv, texture_filter):
            return True
        remaining -= hit.t
        ray = Ray(origin=hit.position, direction=ray.direction)
    return True
