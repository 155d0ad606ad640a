"""Core rendering module.

Components:
    ray: Ray type, vector helpers and the intersection epsilon
    integrator: Whitted-style direct-lighting ``trace``
    renderer: Tile partitioning and the parallel ``TileRenderer``

Only the ray helpers are re-exported here; the integrator and renderer pull
in the scene package, so import them from their modules:

    from meshtrace.core.renderer import TileRenderer
"""

from .ray import (
    EPSILON,
    Ray,
    Vector,
    as_vec3,
    cross,
    dot,
    length,
    normalize,
    reflect,
    vec2,
    vec3,
)

__all__ = [
    "EPSILON",
    "Ray",
    "Vector",
    "as_vec3",
    "cross",
    "dot",
    "length",
    "normalize",
    "reflect",
    "vec2",
    "vec3",
]
