"""Path tracing integrator for 2D Monte Carlo light transport.

This module implements the path tracer, the per-point radiance estimator
and the image rendering kernels.

A path starts at a point of the scene plane and follows a direction until
it meets an entity. The entity's material then either continues the path
(new direction, scalar weight) or ends it with a terminal colour. The
returned radiance is the terminal colour multiplied by every weight and
Beer-Lambert transmittance collected along the way. Paths that leave the
scene, or that exhaust ``max_depth`` scattering events without reaching an
emitter, contribute black.

Key features:
    - Iterative path loop carrying a throughput product
    - Beer-Lambert absorption for segments that end on a dielectric along its normal
    - Stratified angular sampling per image point
    - Progressive accumulation of passes with a running average

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from flatlight.core.integrator import render_image, setup_render_target
    >>> from flatlight.scene.demo import create_demo_scene
    >>>
    >>> scene, viewport = create_demo_scene()
    >>> setup_render_target(256, 256, viewport)
    >>> render_image(num_passes=4, samples_per_pixel=64, max_depth=16)
"""

import logging
import math
import time

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from flatlight.camera.viewport import Viewport, pixel_to_point, setup_viewport
from flatlight.core.vector import direction_from_angle, vec2, vec3
from flatlight.materials.dielectric import beer_lambert
from flatlight.materials.material import (
    MATERIAL_DIELECTRIC,
    material_absorptivity,
    material_types,
    sample_material,
)
from flatlight.scene.intersection import intersect_closest

logger = logging.getLogger(__name__)

# =============================================================================
# Rendering Constants
# =============================================================================

# Default number of scattering events per path
MAX_DEPTH = 64

# Default number of angular samples per image point
SAMPLES_PER_PIXEL = 64

# t_min and t_max for ray intersection; t_min suppresses self-intersection
T_MIN = 1e-4
T_MAX = 1e10

# Radiance of rays that leave the scene
BACKGROUND_COLOR = vec3(0.0, 0.0, 0.0)


# =============================================================================
# Path Tracing
# =============================================================================


@ti.func
def trace_path(origin: vec2, direction: vec2, max_depth: ti.i32) -> vec3:
    """Trace a single light path through the scene.

    Args:
        origin: The starting point of the path.
        direction: The unit starting direction.
        max_depth: Maximum number of material samplings along the path.

    Returns:
        The radiance (RGB) carried back along this path.
    """
    radiance = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    ray_origin = origin
    ray_direction = direction

    # Active flag for path continuation
    active = 1

    for _ in range(max_depth):
        if active == 1:
            rec = intersect_closest(ray_origin, ray_direction, T_MIN, T_MAX)

            if rec.hit == 0:
                radiance = throughput * BACKGROUND_COLOR
                active = 0
            else:
                material_id = rec.material_id

                # Segment ending on a dielectric surface along its outward normal
                if (
                    material_types[material_id] == MATERIAL_DIELECTRIC
                    and tm.dot(ray_direction, rec.normal) > 0.0
                ):
                    throughput *= beer_lambert(material_absorptivity[material_id], rec.t)

                sample = sample_material(material_id, ray_direction, rec.normal)
                if sample.is_edge == 0:
                    radiance = throughput * sample.color
                    active = 0
                else:
                    throughput *= sample.weight
                    ray_origin = rec.point
                    ray_direction = sample.direction

    return radiance


@ti.func
def _sanitize(color: vec3) -> vec3:
    """Clamp negatives and replace NaN/Inf channels with zero."""
    result = tm.max(color, vec3(0.0, 0.0, 0.0))
    for c in ti.static(range(3)):
        if tm.isnan(result[c]) or tm.isinf(result[c]):
            result[c] = 0.0
    return result


@ti.func
def estimate_radiance(point: vec2, num_samples: ti.i32, max_depth: ti.i32) -> vec3:
    """Estimate the radiance arriving at ``point`` from all directions.

    Sample ``i`` leaves at angle ``2 * pi * (i + xi) / num_samples`` with a
    fresh ``xi`` per sample, so each of the ``num_samples`` equal sectors of
    the circle receives exactly one jittered direction.

    Args:
        point: The image-plane point to evaluate.
        num_samples: Number of angular samples.
        max_depth: Maximum number of material samplings per path.

    Returns:
        The mean radiance over all samples.
    """
    total = vec3(0.0, 0.0, 0.0)
    inv_n = 1.0 / ti.cast(num_samples, ti.f32)
    for i in range(num_samples):
        angle = 2.0 * math.pi * (ti.cast(i, ti.f32) + ti.random(ti.f32)) * inv_n
        total += _sanitize(trace_path(point, direction_from_angle(angle), max_depth))
    return total * inv_n


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Color accumulation buffer indexed [column, row], row 0 at the top
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Passes accumulated per pixel
_pass_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Total angular samples accumulated per pixel
_sample_total = ti.field(dtype=ti.i32, shape=())

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int, viewport: Viewport | None = None) -> None:
    """Initialize the render target buffers and the viewport.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).
        viewport: Region of the scene plane to image. Defaults to the unit
            square.

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum
            supported size, or the viewport is invalid.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    setup_viewport(viewport if viewport is not None else Viewport())
    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1
    clear_render_target()
    logger.debug("Render target set up: %dx%d", width, height)


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _pass_count.fill(0)
    _sample_total[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def get_image() -> "ti.MatrixField":
    """Get the color buffer.

    Note: This returns the full preallocated buffer. Use get_image_dimensions()
    to determine the active region.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return _color_buffer


def get_pass_count() -> int:
    """Number of passes accumulated into pixel (0, 0)."""
    _check_render_target_initialized()
    return int(_pass_count[0, 0])


def get_total_samples() -> int:
    """Angular samples per pixel accumulated since the last clear."""
    _check_render_target_initialized()
    return int(_sample_total[None])


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_pass(width: ti.i32, height: ti.i32, num_samples: ti.i32, max_depth: ti.i32):
    """Estimate every pixel once and fold it into the running average.

    The outermost loop is parallelized by Taichi; every pixel is written by
    exactly one thread.
    """
    for i, j in ti.ndrange(width, height):
        point = pixel_to_point(i, j, width, height)
        color = estimate_radiance(point, num_samples, max_depth)

        _pass_count[i, j] += 1
        n = _pass_count[i, j]

        # Running average: avg_n = avg_{n-1} + (x_n - avg_{n-1}) / n
        _color_buffer[i, j] += (color - _color_buffer[i, j]) / ti.cast(n, ti.f32)


@ti.kernel
def _render_at(x: ti.f32, y: ti.f32, num_samples: ti.i32, max_depth: ti.i32) -> vec3:
    return estimate_radiance(vec2(x, y), num_samples, max_depth)


@ti.kernel
def _trace_single(
    ox: ti.f32, oy: ti.f32, dx: ti.f32, dy: ti.f32, max_depth: ti.i32
) -> vec3:
    return trace_path(vec2(ox, oy), tm.normalize(vec2(dx, dy)), max_depth)


# =============================================================================
# Public Rendering API
# =============================================================================


def _check_positive(**values: int) -> None:
    for name, value in values.items():
        if value <= 0:
            raise ValueError(f"{name} must be positive, got {value}")


def render_point(
    point: tuple[float, float],
    samples_per_pixel: int = SAMPLES_PER_PIXEL,
    max_depth: int = MAX_DEPTH,
) -> tuple[float, float, float]:
    """Estimate the radiance at a single scene point.

    Python-callable helper for testing and probing; production rendering
    goes through ``render_image``.

    Args:
        point: Scene coordinates (x, y).
        samples_per_pixel: Number of angular samples.
        max_depth: Maximum number of material samplings per path.

    Returns:
        Tuple of (R, G, B) radiance values.
    """
    _check_positive(samples_per_pixel=samples_per_pixel, max_depth=max_depth)
    color = _render_at(point[0], point[1], samples_per_pixel, max_depth)
    return (float(color[0]), float(color[1]), float(color[2]))


def trace_single(
    origin: tuple[float, float],
    direction: tuple[float, float],
    max_depth: int = MAX_DEPTH,
) -> tuple[float, float, float]:
    """Trace one path from Python; ``direction`` is normalized first."""
    _check_positive(max_depth=max_depth)
    color = _trace_single(origin[0], origin[1], direction[0], direction[1], max_depth)
    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(
    num_passes: int = 1,
    samples_per_pixel: int = SAMPLES_PER_PIXEL,
    max_depth: int = MAX_DEPTH,
) -> None:
    """Render passes over the whole image and accumulate them.

    Each pass evaluates ``samples_per_pixel`` stratified directions per
    pixel. Can be called multiple times to keep refining the image.

    Raises:
        ValueError: If an argument is not positive.
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    _check_positive(
        num_passes=num_passes, samples_per_pixel=samples_per_pixel, max_depth=max_depth
    )

    width, height = get_image_dimensions()
    logger.info(
        "Rendering %dx%d: %d pass(es) x %d samples, max depth %d",
        width,
        height,
        num_passes,
        samples_per_pixel,
        max_depth,
    )
    start = time.perf_counter()
    for _ in range(num_passes):
        _render_pass(width, height, samples_per_pixel, max_depth)
        _sample_total[None] += samples_per_pixel
    ti.sync()
    logger.info("Render finished in %.2fs", time.perf_counter() - start)


def get_image_numpy() -> npt.NDArray[np.float32]:
    """Get the accumulated linear radiance as a NumPy array.

    The values are unbounded above; tone mapping and clamping happen at
    export time.

    Returns:
        NumPy array of shape (height, width, 3), row 0 at the top.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    full_image = _color_buffer.to_numpy()

    # Active region, transposed from (width, height, 3) to (height, width, 3)
    image = np.transpose(full_image[:width, :height, :], (1, 0, 2))
    return np.ascontiguousarray(image, dtype=np.float32)


def save_image(filepath: str, gamma: float = 2.2) -> None:
    """Save the rendered image as an 8-bit file, clamped and gamma encoded.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    from PIL import Image as PILImage

    image = np.clip(get_image_numpy(), 0.0, 1.0)
    image = np.power(image, 1.0 / gamma)
    image_8bit = (image * 255).astype(np.uint8)

    PILImage.fromarray(image_8bit).save(filepath)
    logger.info("Saved image to %s", filepath)
