"""Texture storage, addressing and filtering.

A texture is a tagged variant: absent (``TextureKind.NONE``), a diffuse
colour image or an alpha (opacity) image. Decoded pixels are stored as a
``float32`` array of shape (H, W, C) with values in [0, 1]; the file path is
never kept.

Addressing is repeat/wrap: each texture coordinate is reduced with a
Euclidean remainder against 1.0, so negative coordinates wrap the same way as
positive ones (``-0.25`` samples like ``0.75``). The V axis points up as in
OBJ files, so ``v = 0`` is the bottom image row.

Channel interpretation:
    1 channel: luminance, opaque
    2 channels: luminance + alpha
    3 channels: RGB, opaque (alpha 1.0)
    4 channels: RGBA

Example:
    >>> import numpy as np
    >>> from meshtrace.materials.texture import Texture, TextureKind
    >>> tex = Texture.from_array(TextureKind.DIFFUSE, np.full((2, 2, 4), 255, np.uint8))
    >>> color, alpha = tex.sample((0.3, -1.7))
    >>> alpha
    1.0
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from meshtrace.config import TextureFilter
from meshtrace.core.ray import Vector
from meshtrace.errors import SceneLoadError

_WHITE = np.ones(3, dtype=np.float64)


class TextureKind(Enum):
    NONE = "none"
    DIFFUSE = "diffuse"
    ALPHA = "alpha"


def wrap_coordinate(value: float) -> float:
    """Reduce a texture coordinate into [0, 1) with a Euclidean remainder."""
    wrapped = value % 1.0
    # -1e-20 % 1.0 rounds to exactly 1.0
    return 0.0 if wrapped >= 1.0 else wrapped


@dataclass(frozen=True, eq=False)
class Texture:
    """A decoded, read-only texture image.

    Attributes:
        kind: Which material slot the texture fills.
        pixels: Float image of shape (H, W, C), or None for ``TextureKind.NONE``.
    """

    kind: TextureKind
    pixels: npt.NDArray[np.float32] | None = None

    @classmethod
    def none(cls) -> Texture:
        return cls(TextureKind.NONE)

    @classmethod
    def from_array(cls, kind: TextureKind, array: npt.ArrayLike) -> Texture:
        """Wrap an image array, converting 8-bit data to [0, 1] floats.

        Args:
            kind: Texture slot (DIFFUSE or ALPHA).
            array: Array of shape (H, W) or (H, W, C) with 1 to 4 channels.

        Raises:
            ValueError: If the array shape or kind is not usable.
        """
        if kind is TextureKind.NONE:
            raise ValueError("Use Texture.none() for an absent texture")
        arr = np.asarray(array)
        if arr.ndim == 2:
            arr = arr[:, :, np.newaxis]
        if arr.ndim != 3 or arr.shape[2] not in (1, 2, 3, 4):
            raise ValueError(f"Unsupported texture shape: {arr.shape}")
        if arr.shape[0] == 0 or arr.shape[1] == 0:
            raise ValueError("Texture must have at least one pixel")
        if arr.dtype == np.uint8:
            pixels = arr.astype(np.float32) / 255.0
        else:
            pixels = arr.astype(np.float32)
        pixels.setflags(write=False)
        return cls(kind, pixels)

    @property
    def is_present(self) -> bool:
        return self.kind is not TextureKind.NONE

    @property
    def width(self) -> int:
        return 0 if self.pixels is None else self.pixels.shape[1]

    @property
    def height(self) -> int:
        return 0 if self.pixels is None else self.pixels.shape[0]

    @property
    def channels(self) -> int:
        return 0 if self.pixels is None else self.pixels.shape[2]

    # =========================================================================
    # Sampling
    # =========================================================================

    def sample(
        self,
        uv,
        texture_filter: TextureFilter = TextureFilter.NEAREST,
    ) -> tuple[Vector, float]:
        """Sample the texture at ``uv``.

        Args:
            uv: Texture coordinate; any real values, wrapped into [0, 1).
            texture_filter: NEAREST or BILINEAR.

        Returns:
            A tuple ``(color, alpha)``. An absent texture samples as opaque
            white so it is neutral when multiplied in.
        """
        if self.pixels is None:
            return _WHITE.copy(), 1.0

        u = wrap_coordinate(float(uv[0]))
        v = wrap_coordinate(float(uv[1]))
        if texture_filter is TextureFilter.BILINEAR:
            texel = self._sample_bilinear(u, v)
        else:
            texel = self._sample_nearest(u, v)
        return _interpret(texel)

    def _sample_nearest(self, u: float, v: float) -> npt.NDArray[np.float32]:
        w, h = self.width, self.height
        ix = min(max(int(u * w), 0), w - 1)
        iy = min(max(int((1.0 - v) * h), 0), h - 1)
        return self.pixels[iy, ix]

    def _sample_bilinear(self, u: float, v: float) -> npt.NDArray[np.float64]:
        w, h = self.width, self.height
        x = u * w - 0.5
        y = (1.0 - v) * h - 0.5
        x0 = math.floor(x)
        y0 = math.floor(y)
        fx = x - x0
        fy = y - y0
        # Neighbours wrap around the edges (repeat addressing)
        x0, x1 = x0 % w, (x0 + 1) % w
        y0, y1 = y0 % h, (y0 + 1) % h

        p = self.pixels.astype(np.float64, copy=False)
        top = p[y0, x0] * (1.0 - fx) + p[y0, x1] * fx
        bottom = p[y1, x0] * (1.0 - fx) + p[y1, x1] * fx
        return top * (1.0 - fy) + bottom * fy


def _interpret(texel: npt.NDArray) -> tuple[Vector, float]:
    """Split a raw texel into (RGB colour, alpha) by channel count."""
    channels = texel.shape[0]
    if channels == 1:
        return np.full(3, float(texel[0])), 1.0
    if channels == 2:
        return np.full(3, float(texel[0])), float(texel[1])
    if channels == 3:
        return texel[:3].astype(np.float64), 1.0
    return texel[:3].astype(np.float64), float(texel[3])


def load_texture(path: str | Path, kind: TextureKind) -> Texture:
    """Decode an image file into a texture.

    Diffuse textures are converted to RGBA (images without alpha become
    fully opaque); alpha textures are converted to luminance + alpha.

    Args:
        path: Image file path.
        kind: DIFFUSE or ALPHA.

    Returns:
        The decoded texture.

    Raises:
        SceneLoadError: If the file is missing or cannot be decoded.
    """
    if kind is TextureKind.NONE:
        return Texture.none()

    mode = "RGBA" if kind is TextureKind.DIFFUSE else "LA"
    try:
        with PILImage.open(path) as image:
            converted = image.convert(mode)
            array = np.asarray(converted, dtype=np.uint8)
    except (OSError, ValueError) as e:
        raise SceneLoadError(f"Failed to load {kind.value} texture '{path}': {e}") from e

    return Texture.from_array(kind, array)
