"""Preview module for output and visualization.

Components:
    display: Tone mapping, gamma encoding and the Matplotlib preview
    export: 8-bit conversion and PNG export

Example:
    >>> from meshtrace.preview import save_png, show_preview
    >>> renderer.render()
    >>> save_png(renderer, "output.png", gamma=2.2)
    >>> show_preview(renderer, tone_map="reinhard")
"""

from meshtrace.preview.display import (
    TONE_MAP_METHODS,
    ToneMapMethod,
    apply_gamma,
    process_image_for_display,
    show_preview,
    tone_map_exposure,
    tone_map_reinhard,
)
from meshtrace.preview.export import (
    image_to_uint8,
    save_png,
    save_png_from_array,
)

__all__ = [
    "show_preview",
    # Tone mapping
    "tone_map_reinhard",
    "tone_map_exposure",
    "apply_gamma",
    "process_image_for_display",
    "ToneMapMethod",
    "TONE_MAP_METHODS",
    # Export functions
    "save_png",
    "save_png_from_array",
    "image_to_uint8",
]
