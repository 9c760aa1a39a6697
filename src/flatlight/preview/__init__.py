"""Preview module for output and visualization.

Components:
    display: Tone mapping, gamma encoding and Matplotlib preview
    export: 8-bit PNG export with Pillow

Example:
    >>> from flatlight.preview import show_preview, save_png
    >>> renderer = ProgressiveRenderer(256, 256)
    >>> renderer.render(4)
    >>> show_preview(renderer, tone_map="reinhard")
    >>> save_png(renderer, "output.png", gamma=2.2)
"""

from flatlight.preview.display import (
    ToneMapMethod,
    apply_gamma,
    process_image_for_display,
    show_preview,
    tone_map_exposure,
    tone_map_reinhard,
)
from flatlight.preview.export import (
    image_to_uint8,
    save_png,
    save_png_from_array,
)

__all__ = [
    "show_preview",
    "tone_map_reinhard",
    "tone_map_exposure",
    "apply_gamma",
    "process_image_for_display",
    "ToneMapMethod",
    "save_png",
    "save_png_from_array",
    "image_to_uint8",
]
