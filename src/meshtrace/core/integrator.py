"""Whitted-style direct-lighting integrator.

``trace`` returns the linear radiance arriving along a ray:

1. Depth check: a ray deeper than ``settings.max_depth`` returns zero.
2. Nearest hit via the BVH; a miss returns the background (the scene's
   ambient term, optionally shaded by a sky gradient).
3. Cutout transparency: if the surface is fully transparent at the hit
   texture coordinate, the ray continues from the hit point in the same
   direction at ``depth + 1``. This tail recursion is written as a loop.
4. Direct lighting: for every light, cast a shadow ray from the hit point
   offset along the normal; if nothing opaque blocks it, add the light's
   incident radiance times the diffuse color and the Lambertian term. Under
   ``ShadingModel.PHONG`` the Phong lobe is added to the Lambertian term
   before the diffuse color is applied.
5. Ambient and emission: ``ambient * diffuse_color + emission`` is always
   added, regardless of shadowing.

The result is unbounded linear radiance; tone mapping happens when pixels are
written (see ``meshtrace.preview.export``).

Example:
    >>> from meshtrace.core.integrator import trace
    >>> radiance = trace(scene, scene.camera.ray_for_pixel(256, 256))
"""

from __future__ import annotations

import math

import numpy as np

from meshtrace.config import RenderSettings, ShadingModel
from meshtrace.core.ray import Ray, Vector, dot, length
from meshtrace.geometry.triangle import Intersection
from meshtrace.materials.material import lambertian, phong_specular
from meshtrace.scene.intersection import intersect_scene, is_occluded
from meshtrace.scene.scene import Scene

_DEFAULT_SETTINGS = RenderSettings()


def trace(
    scene: Scene,
    ray: Ray,
    depth: int = 0,
    settings: RenderSettings = _DEFAULT_SETTINGS,
) -> Vector:
    """Compute the radiance arriving along ``ray``.

    Args:
        scene: The scene to render.
        ray: Ray with a unit-length direction.
        depth: Current trace depth; each cutout pass-through adds one.
        settings: Render settings (depth limit, filtering, shading model).

    Returns:
        Linear RGB radiance as a float64 array.
    """
    while True:
        if depth > settings.max_depth:
            return np.zeros(3, dtype=np.float64)

        hit = intersect_scene(scene, ray)
        if hit is None:
            return background(scene, ray, settings)

        if hit.material.is_cutout(hit.uv, settings.texture_filter):
            ray = Ray(origin=hit.position, direction=ray.direction)
            depth += 1
            continue

        return shade(scene, ray, hit, depth, settings)


def background(scene: Scene, ray: Ray, settings: RenderSettings) -> Vector:
    """Radiance for rays that leave the scene.

    The ambient term, optionally scaled by ``0.5 + 0.5 * cos`` of the angle
    between the ray and the direction toward the first directional light.
    """
    color = np.array(scene.ambient, dtype=np.float64)
    if settings.sky_gradient:
        light = scene.dominant_light()
        if light is not None:
            toward = light.eval_we(ray.origin)
            color *= 0.5 + 0.5 * dot(ray.direction, toward)
    return color


def shade(
    scene: Scene,
    ray: Ray,
    hit: Intersection,
    depth: int,
    settings: RenderSettings,
) -> Vector:
    """Evaluate direct lighting plus ambient and emission at an opaque hit."""
    material = hit.material
    normal = hit.normal
    diffuse_color = material.diffuse_color(hit.uv, settings.texture_filter)
    to_viewer = -ray.direction
    shadow_origin = hit.position + normal * settings.shadow_bias
    # Cutouts a shadow ray may still pass through from this depth
    skips = max(settings.max_depth - depth, 0)

    result = np.zeros(3, dtype=np.float64)
    for light in scene.lights:
        we = light.eval_we(hit.position)
        distance = length(we)
        if distance == 0.0:
            continue
        to_light = we / distance
        max_t = math.inf if light.at_infinity else distance

        n_dot_l = lambertian(normal, to_light)
        if n_dot_l <= 0.0:
            continue

        shadow_ray = Ray(origin=shadow_origin, direction=to_light)
        if is_occluded(scene, shadow_ray, max_t, settings.texture_filter, skips):
            continue

        le = light.eval_le(we)
        if settings.shading is ShadingModel.PHONG:
            spec = phong_specular(normal, to_light, to_viewer, material.shininess)
            contribution = diffuse_color * (n_dot_l + spec)
        elif settings.shading is ShadingModel.PHONG_SPECULAR:
            spec = phong_specular(normal, to_light, to_viewer, material.shininess)
            contribution = diffuse_color * n_dot_l + material.specular * spec
        else:
            contribution = diffuse_color * n_dot_l
        result += le * contribution

    result += scene.ambient * diffuse_color + material.emission
    return result
