"""Tone mapping and Matplotlib preview for rendered images.

The tracer produces unbounded linear radiance. Before display or export the
image goes through the same pipeline:

1. Tone mapping (optional): Reinhard ``c / (1 + c)`` or exposure
   ``1 - exp(-c * exposure)``
2. Gamma encoding (optional): ``c ^ (1 / gamma)``
3. Clamping to [0, 1]

With the defaults (no tone mapping, gamma 1.0) this is a plain clamp.

Example:
    >>> from meshtrace.preview.display import show_preview
    >>> image = renderer.render()
    >>> show_preview(image, tone_map="reinhard", gamma=2.2)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from meshtrace.core.renderer import TileRenderer


# Type alias for tone mapping options
ToneMapMethod = Literal["none", "reinhard", "exposure"]

TONE_MAP_METHODS: tuple[str, ...] = ("none", "reinhard", "exposure")


def tone_map_reinhard(
    image: npt.NDArray[np.float32],
) -> npt.NDArray[np.float32]:
    """Apply Reinhard tone mapping: L / (1 + L).

    Args:
        image: Linear HDR image array of shape (H, W, 3).

    Returns:
        Tone mapped image in [0, 1) range.
    """
    image = np.maximum(image, 0.0)
    return (image / (1.0 + image)).astype(np.float32)


def tone_map_exposure(
    image: npt.NDArray[np.float32],
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Apply exposure tone mapping: 1 - exp(-c * exposure).

    Args:
        image: Linear HDR image array of shape (H, W, 3).
        exposure: Higher values brighten the image.

    Returns:
        Tone mapped image in [0, 1) range.
    """
    image = np.maximum(image, 0.0)
    return (1.0 - np.exp(-image * exposure)).astype(np.float32)


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Gamma-encode an image: out = in ^ (1 / gamma).

    Args:
        image: Image array in [0, 1] (values outside are clamped first).
        gamma: Display gamma; 1.0 leaves the image untouched.

    Raises:
        ValueError: If ``gamma`` is not positive.
    """
    if gamma <= 0.0:
        raise ValueError(f"Gamma must be positive, got {gamma}")
    if gamma == 1.0:
        return image

    # Negative values would give NaN
    image = np.clip(image, 0.0, 1.0)
    return np.power(image, 1.0 / gamma).astype(np.float32)


def process_image_for_display(
    image: npt.NDArray[np.float32],
    tone_map: ToneMapMethod = "none",
    gamma: float = 1.0,
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Run the tone mapping, gamma and clamp pipeline.

    Args:
        image: Linear HDR image array of shape (H, W, 3).
        tone_map: "none", "reinhard" or "exposure".
        gamma: Gamma encoding value (1.0 for none).
        exposure: Exposure for the "exposure" tone mapper.

    Returns:
        Image in [0, 1] range as float32.

    Raises:
        ValueError: For an unknown tone mapping method.
    """
    result = np.asarray(image, dtype=np.float32).copy()

    if tone_map == "reinhard":
        result = tone_map_reinhard(result)
    elif tone_map == "exposure":
        result = tone_map_exposure(result, exposure)
    elif tone_map != "none":
        raise ValueError(f"Unknown tone mapping method: {tone_map}")

    result = apply_gamma(result, gamma)
    return np.clip(result, 0.0, 1.0).astype(np.float32)


def show_preview(
    source: npt.NDArray[np.float32] | TileRenderer,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 1.0,
    exposure: float = 1.0,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 8),
    block: bool = True,
) -> None:
    """Display a render in a Matplotlib window.

    Requires the ``preview`` extra (matplotlib).

    Args:
        source: A linear image of shape (H, W, 3), or a renderer that has
            already rendered.
        tone_map: Tone mapping method.
        gamma: Gamma encoding value.
        exposure: Exposure for the "exposure" tone mapper.
        title: Custom title (default shows the image size).
        figsize: Figure size in inches (width, height).
        block: Whether to block until the window is closed.
    """
    import matplotlib.pyplot as plt

    image = source if isinstance(source, np.ndarray) else source.get_image_numpy()
    display_image = process_image_for_display(
        image,
        tone_map=tone_map,
        gamma=gamma,
        exposure=exposure,
    )

    _, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(display_image)
    ax.axis("off")

    if title is None:
        height, width = display_image.shape[:2]
        title = f"Render Preview - {width}x{height}"
        if tone_map != "none":
            title += f" ({tone_map})"
    ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)
