"""Viewport mapping from pixel coordinates to points on the image plane.

The renderer estimates radiance at points of the scene plane itself, so
the "camera" is a rectangle ``[x_min, x_max] x [y_min, y_max]`` of that
plane sampled on a W x H pixel grid. Pixel (i, j) maps to the centre of
its cell; row 0 is the top of the image and y grows downward, matching the
polygon winding convention.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from flatlight.camera.viewport import Viewport, setup_viewport, pixel_to_point
    >>> setup_viewport(Viewport())  # unit square
    >>> @ti.kernel
    ... def render():
    ...     p = pixel_to_point(0, 0, 512, 512)  # (0.5/512, 0.5/512)
"""

import logging
from dataclasses import dataclass

import taichi as ti

from flatlight.core.vector import vec2

logger = logging.getLogger(__name__)


@dataclass
class Viewport:
    """Rectangle of the scene plane covered by the image.

    Attributes:
        x_min: Scene x at the left edge of the image.
        x_max: Scene x at the right edge of the image.
        y_min: Scene y at the top edge of the image.
        y_max: Scene y at the bottom edge of the image.
    """

    x_min: float = 0.0
    x_max: float = 1.0
    y_min: float = 0.0
    y_max: float = 1.0

    def validate(self) -> None:
        """Raise ValueError if the rectangle is empty or inverted."""
        if self.x_max <= self.x_min or self.y_max <= self.y_min:
            raise ValueError(
                f"Viewport must have x_min < x_max and y_min < y_max, got {self}"
            )

    @property
    def aspect_ratio(self) -> float:
        return (self.x_max - self.x_min) / (self.y_max - self.y_min)


# Lower corner (x_min, y_min) and extent (x_max - x_min, y_max - y_min)
_viewport_origin = ti.Vector.field(2, dtype=ti.f32, shape=())
_viewport_extent = ti.Vector.field(2, dtype=ti.f32, shape=())


def setup_viewport(viewport: Viewport) -> None:
    """Store the viewport rectangle for use by kernels.

    Raises:
        ValueError: If the viewport is empty or inverted.
    """
    viewport.validate()
    _viewport_origin[None] = [viewport.x_min, viewport.y_min]
    _viewport_extent[None] = [viewport.x_max - viewport.x_min, viewport.y_max - viewport.y_min]
    logger.debug("Viewport set to %s", viewport)


@ti.func
def pixel_to_point(i: ti.i32, j: ti.i32, width: ti.i32, height: ti.i32) -> vec2:
    """Scene point at the centre of pixel column ``i``, row ``j``."""
    u = (ti.cast(i, ti.f32) + 0.5) / ti.cast(width, ti.f32)
    v = (ti.cast(j, ti.f32) + 0.5) / ti.cast(height, ti.f32)
    return _viewport_origin[None] + vec2(u, v) * _viewport_extent[None]


def get_viewport_info() -> dict[str, tuple[float, float]]:
    """Get the stored viewport origin and extent for debugging."""
    origin = _viewport_origin[None]
    extent = _viewport_extent[None]
    return {
        "origin": (float(origin[0]), float(origin[1])),
        "extent": (float(extent[0]), float(extent[1])),
    }
