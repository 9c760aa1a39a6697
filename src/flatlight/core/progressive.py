"""Progressive renderer for iterative pass accumulation.

This module provides a convenient wrapper around the core integrator that supports:
- Progressive rendering that refines over time, one pass at a time
- Progress callbacks for UI updates
- A generator interface for iterative processing
- Easy reset and resize

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from flatlight.core.progressive import ProgressiveRenderer
    >>> from flatlight.scene.demo import create_demo_scene
    >>>
    >>> scene, viewport = create_demo_scene()
    >>> renderer = ProgressiveRenderer(256, 256, samples_per_pixel=32, viewport=viewport)
    >>> renderer.render(8)  # 8 passes of 32 samples
    >>> image = renderer.get_image_numpy()
"""

import logging
from collections.abc import Callable, Generator
from typing import Any

import numpy as np
import numpy.typing as npt

from flatlight.camera.viewport import Viewport
from flatlight.core.integrator import (
    MAX_DEPTH,
    SAMPLES_PER_PIXEL,
    clear_render_target,
    get_image,
    get_image_numpy,
    get_pass_count,
    get_total_samples,
    render_image,
    setup_render_target,
)

logger = logging.getLogger(__name__)

# Callback receives (current_passes, target_passes)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """A progressive renderer that accumulates passes over time.

    The renderer keeps its own width, height and sampling settings and
    delegates to the global integrator buffers (which are Taichi fields).

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Angular samples per pixel in each pass.
        max_depth: Maximum number of scattering events per path.
    """

    def __init__(
        self,
        width: int,
        height: int,
        samples_per_pixel: int = SAMPLES_PER_PIXEL,
        max_depth: int = MAX_DEPTH,
        viewport: Viewport | None = None,
    ) -> None:
        """Initialize the progressive renderer.

        Raises:
            ValueError: If dimensions are invalid or a count is not positive.
        """
        if samples_per_pixel <= 0 or max_depth <= 0:
            raise ValueError(
                f"samples_per_pixel and max_depth must be positive, "
                f"got {samples_per_pixel} and {max_depth}"
            )
        self._width = width
        self._height = height
        self._viewport = viewport if viewport is not None else Viewport()
        self.samples_per_pixel = samples_per_pixel
        self.max_depth = max_depth
        setup_render_target(width, height, self._viewport)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def viewport(self) -> Viewport:
        return self._viewport

    @property
    def pass_count(self) -> int:
        """Number of accumulated passes."""
        return get_pass_count()

    @property
    def sample_count(self) -> int:
        """Number of accumulated angular samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Clear the accumulator without changing the image dimensions."""
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and reset the accumulator.

        Raises:
            ValueError: If dimensions exceed maximum supported size.
        """
        self._width = width
        self._height = height
        setup_render_target(width, height, self._viewport)

    def render(
        self,
        num_passes: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render passes with an optional progress callback.

        Args:
            num_passes: Number of passes to add.
            callback: Optional callback called after each pass with
                (current_passes, target_passes).

        Example:
            >>> def progress(current, target):
            ...     print(f"Progress: {current}/{target} passes")
            >>> renderer.render(10, callback=progress)
        """
        for current, target in self.render_progressive(num_passes):
            if callback is not None:
                callback(current, target)

    def render_progressive(self, num_passes: int = 1) -> Generator[tuple[int, int], None, None]:
        """Render passes, yielding progress after each one.

        Yields:
            Tuple of (current_passes, target_passes).

        Example:
            >>> for current, target in renderer.render_progressive(10):
            ...     print(f"Progress: {current}/{target} passes")
        """
        if num_passes <= 0:
            return

        target = self.pass_count + num_passes
        for _ in range(num_passes):
            render_image(1, self.samples_per_pixel, self.max_depth)
            yield (self.pass_count, target)

    def get_image(self) -> Any:
        """Get the raw Taichi color buffer field (full preallocated size)."""
        return get_image()

    def get_image_numpy(self, gamma: float = 1.0) -> npt.NDArray[np.float32]:
        """Get the rendered image as a NumPy array of shape (height, width, 3).

        With the default ``gamma=1.0`` the linear, unclamped radiance is
        returned. Any other gamma clamps to [0, 1] and gamma-encodes.
        """
        image = get_image_numpy()

        if gamma != 1.0:
            image = np.power(np.clip(image, 0.0, 1.0), 1.0 / gamma).astype(np.float32)

        return image

    def get_image_uint8(self, gamma: float = 2.2) -> npt.NDArray[np.uint8]:
        """Get the rendered image clamped, gamma-encoded and as uint8."""
        image = self.get_image_numpy(gamma=gamma)
        return (np.clip(image, 0.0, 1.0) * 255).astype(np.uint8)

    def save_image(self, filepath: str, gamma: float = 2.2) -> None:
        """Save the rendered image to a file (format from the extension)."""
        from PIL import Image as PILImage

        PILImage.fromarray(self.get_image_uint8(gamma=gamma)).save(filepath)
        logger.info("Saved image to %s", filepath)

    def __repr__(self) -> str:
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"passes={self.pass_count}, samples={self.sample_count})"
        )
