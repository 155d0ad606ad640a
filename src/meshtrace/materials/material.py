"""Surface material and the local BRDF terms used by the tracer.

A material combines constant reflectance parameters (as found in MTL files)
with optional diffuse and alpha textures. Materials are shared by many
triangles and are never modified once a scene is built.

BRDF terms:
    Lambertian diffuse:   max(0, N.L)
    Phong specular:       max(0, R.V) ^ shininess,  R = reflect(-L, N)
    Fresnel-Schlick:      clamp(1 - N.V, 0, 1) ^ 5

L points from the surface toward the light and V from the surface toward the
viewer. The Fresnel term is provided for callers that want it; the default
shading loop does not use it.

Example:
    >>> from meshtrace.materials.material import Material, lambertian
    >>> red = Material(name="red", diffuse=(0.65, 0.05, 0.05))
    >>> lambertian((0.0, 1.0, 0.0), (0.0, 1.0, 0.0))
    1.0
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from meshtrace.config import CUTOUT_THRESHOLD, TextureFilter
from meshtrace.core.ray import Vector, as_vec3, dot, reflect
from meshtrace.materials.texture import Texture, TextureKind

# Name of the built-in material used when a mesh has no material library
DEFAULT_MATERIAL_NAME = "default"


@dataclass(frozen=True, eq=False)
class Material:
    """Reflectance parameters and textures for a surface.

    Attributes:
        name: Unique material name (triangles refer to materials by name).
        ambient: Ambient reflectance (RGB). Kept for MTL fidelity; the tracer
            modulates ambient light by the diffuse colour.
        diffuse: Diffuse reflectance (RGB).
        specular: Specular reflectance (RGB).
        shininess: Phong exponent, must be >= 0.
        emission: Emitted radiance (RGB), added regardless of lighting.
        diffuse_texture: Optional colour texture (DIFFUSE or NONE).
        alpha_texture: Optional opacity texture (ALPHA or NONE).
    """

    name: str
    ambient: Vector = field(default_factory=lambda: np.zeros(3))
    diffuse: Vector = field(default_factory=lambda: np.full(3, 0.8))
    specular: Vector = field(default_factory=lambda: np.zeros(3))
    shininess: float = 0.0
    emission: Vector = field(default_factory=lambda: np.zeros(3))
    diffuse_texture: Texture = field(default_factory=Texture.none)
    alpha_texture: Texture = field(default_factory=Texture.none)

    def __post_init__(self) -> None:
        for attr in ("ambient", "diffuse", "specular", "emission"):
            object.__setattr__(self, attr, as_vec3(getattr(self, attr)))
        if self.shininess < 0.0:
            raise ValueError(f"Shininess must be non-negative, got {self.shininess}")
        if self.diffuse_texture.kind not in (TextureKind.NONE, TextureKind.DIFFUSE):
            raise ValueError("diffuse_texture must be a DIFFUSE texture")
        if self.alpha_texture.kind not in (TextureKind.NONE, TextureKind.ALPHA):
            raise ValueError("alpha_texture must be an ALPHA texture")

    # =========================================================================
    # Texture lookups
    # =========================================================================

    def diffuse_color(
        self,
        uv,
        texture_filter: TextureFilter = TextureFilter.NEAREST,
    ) -> Vector:
        """Diffuse reflectance at ``uv``: ``diffuse`` times the texel colour."""
        if not self.diffuse_texture.is_present:
            return self.diffuse
        color, _ = self.diffuse_texture.sample(uv, texture_filter)
        return self.diffuse * color

    def is_cutout(
        self,
        uv,
        texture_filter: TextureFilter = TextureFilter.NEAREST,
    ) -> bool:
        """True when the surface is fully transparent at ``uv``.

        Either layer alone cuts the surface out: the alpha texture's alpha or
        the diffuse texture's alpha below ``CUTOUT_THRESHOLD``. Two faint but
        non-zero layers stay opaque. Materials without textures are never cut
        out, which skips the lookup entirely for the common case.
        """
        if self.alpha_texture.is_present:
            if self.alpha_texture.sample(uv, texture_filter)[1] < CUTOUT_THRESHOLD:
                return True
        if self.diffuse_texture.is_present:
            if self.diffuse_texture.sample(uv, texture_filter)[1] < CUTOUT_THRESHOLD:
                return True
        return False


# =============================================================================
# BRDF terms
# =============================================================================


def lambertian(normal, to_light) -> float:
    """Lambertian cosine term ``max(0, N.L)``.

    Light arriving from behind the surface contributes nothing rather than
    subtracting energy.
    """
    return max(0.0, dot(as_vec3(normal), as_vec3(to_light)))


def phong_specular(normal, to_light, to_viewer, shininess: float) -> float:
    """Phong specular term ``max(0, R.V) ^ shininess``.

    ``R`` is the reflection of the incident direction (``-L``) about the
    normal.
    """
    r = reflect(-as_vec3(to_light), as_vec3(normal))
    r_dot_v = max(0.0, dot(r, as_vec3(to_viewer)))
    return r_dot_v**shininess


def fresnel_schlick(normal, to_viewer) -> float:
    """Schlick's Fresnel falloff ``clamp(1 - N.V, 0, 1) ^ 5``."""
    x = 1.0 - dot(as_vec3(normal), as_vec3(to_viewer))
    return min(1.0, max(0.0, x)) ** 5
