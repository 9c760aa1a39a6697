"""Camera module mapping pixels to points of the scene plane.

Pixel (i, j) of a W x H image maps to the centre of its cell in the
viewport rectangle; row 0 is the top of the image.
"""

from .viewport import Viewport, get_viewport_info, pixel_to_point, setup_viewport

__all__ = [
    "Viewport",
    "setup_viewport",
    "pixel_to_point",
    "get_viewport_info",
]
