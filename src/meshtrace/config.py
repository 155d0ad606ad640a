"""Render configuration.

``RenderSettings`` collects every knob the tracer and the tile scheduler read
during a render. It is a frozen dataclass: one instance is shared by all
worker threads and never changes while a render is running.

Example:
    >>> from meshtrace.config import RenderSettings, TextureFilter
    >>> settings = RenderSettings(width=256, height=256, texture_filter=TextureFilter.BILINEAR)
    >>> settings.resolved_workers() >= 1
    True
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum

# =============================================================================
# Rendering Constants
# =============================================================================

# Maximum trace depth; a ray at depth > DEFAULT_MAX_DEPTH returns zero radiance
DEFAULT_MAX_DEPTH = 4

# Offset along the surface normal for shadow ray origins (avoids shadow acne)
DEFAULT_SHADOW_BIAS = 1e-4

# Coverage below this value counts as a fully transparent cutout (half an 8-bit step)
CUTOUT_THRESHOLD = 0.5 / 255.0

DEFAULT_WIDTH = 512
DEFAULT_HEIGHT = 512


class TextureFilter(str, Enum):
    """Texture filtering policy.

    NEAREST returns the texel that contains the sample coordinate. BILINEAR
    blends the four surrounding texels using 0.5-texel centre offsets.
    """

    NEAREST = "nearest"
    BILINEAR = "bilinear"


class ShadingModel(str, Enum):
    """Direct-lighting model used by the tracer.

    LAMBERT evaluates only the diffuse term. PHONG adds a Phong specular lobe
    tinted by the surface's diffuse color, so a light contributes
    ``diffuse_color * (n.l + spec)``. PHONG_SPECULAR weights the lobe by the
    material's specular reflectance ``Ks`` instead, for materials whose MTL
    files carry meaningful ``Ks`` values.
    """

    LAMBERT = "lambert"
    PHONG = "phong"
    PHONG_SPECULAR = "phong_ks"


@dataclass(frozen=True)
class RenderSettings:
    """Configuration for a single render.

    Attributes:
        width: Output image width in pixels.
        height: Output image height in pixels.
        max_depth: Trace depth limit for cutout continuation.
        workers: Number of worker threads; None uses ``os.cpu_count()``.
        texture_filter: Texture filtering policy for all materials.
        shading: Direct-lighting model.
        shadow_bias: Normal offset for shadow ray origins.
        sky_gradient: Modulate the background by the angle to the first
            directional light.
    """

    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    max_depth: int = DEFAULT_MAX_DEPTH
    workers: int | None = None
    texture_filter: TextureFilter = TextureFilter.NEAREST
    shading: ShadingModel = ShadingModel.PHONG
    shadow_bias: float = DEFAULT_SHADOW_BIAS
    sky_gradient: bool = False

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {self.width}x{self.height}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.workers is not None and self.workers <= 0:
            raise ValueError(f"workers must be positive, got {self.workers}")
        if self.shadow_bias < 0.0:
            raise ValueError(f"shadow_bias must be non-negative, got {self.shadow_bias}")
        # Accept plain strings for the enum fields (CLI, JSON)
        object.__setattr__(self, "texture_filter", TextureFilter(self.texture_filter))
        object.__setattr__(self, "shading", ShadingModel(self.shading))

    def resolved_workers(self) -> int:
        """Worker count, defaulting to the available hardware parallelism."""
        if self.workers is not None:
            return self.workers
        return os.cpu_count() or 1
