"""Light sources for direct illumination.

Every light answers exactly two questions:

    eval_we(point) -> vector from the surface point toward the light
    eval_le(we)    -> radiance arriving along that vector

``DirectionalLight`` and ``PointLight`` are the two variants of the ``Light``
union. New light types are added to the union, not derived from a base class.

For a directional light ``direction`` is the direction the light travels
(e.g. ``(0, -1, 0)`` shines straight down), so ``eval_we`` returns its
negation. For a point light ``eval_we`` is unnormalized: its length is the
distance to the light, which the attenuation and the shadow ray bound use.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Union

from meshtrace.core.ray import Vector, as_vec3, length, normalize


@dataclass(frozen=True, eq=False)
class DirectionalLight:
    """A light infinitely far away, e.g. the sun.

    Attributes:
        direction: Direction in which the light travels.
        emission: Constant radiance (RGB).
    """

    direction: Vector
    emission: Vector

    # Shadow rays toward this light are unbounded
    at_infinity: ClassVar[bool] = True

    def __post_init__(self) -> None:
        direction = as_vec3(self.direction)
        if length(direction) == 0.0:
            raise ValueError("Directional light direction must be non-zero")
        object.__setattr__(self, "direction", normalize(direction))
        object.__setattr__(self, "emission", as_vec3(self.emission))

    def eval_we(self, point: Vector) -> Vector:
        return -self.direction

    def eval_le(self, we: Vector) -> Vector:
        return self.emission


@dataclass(frozen=True, eq=False)
class PointLight:
    """An omnidirectional light with constant/linear/quadratic attenuation.

    Received radiance is ``emission / (c + l*d + q*d^2)`` at distance ``d``,
    the classic OpenGL attenuation model.

    Attributes:
        position: World-space light position.
        emission: Radiance (RGB) before attenuation.
        c: Constant attenuation coefficient.
        l: Linear attenuation coefficient.
        q: Quadratic attenuation coefficient.
    """

    position: Vector
    emission: Vector
    c: float = 1.0
    l: float = 0.0  # noqa: E741
    q: float = 0.0

    at_infinity: ClassVar[bool] = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", as_vec3(self.position))
        object.__setattr__(self, "emission", as_vec3(self.emission))
        if min(self.c, self.l, self.q) < 0.0 or self.c + self.l + self.q == 0.0:
            raise ValueError(
                f"Attenuation coefficients must be non-negative and not all zero, "
                f"got c={self.c}, l={self.l}, q={self.q}"
            )

    def eval_we(self, point: Vector) -> Vector:
        return self.position - point

    def eval_le(self, we: Vector) -> Vector:
        d = length(we)
        return self.emission / (self.c + self.l * d + self.q * d * d)


Light = Union[DirectionalLight, PointLight]
