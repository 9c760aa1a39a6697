"""Circle primitive with ray-circle intersection and containment.

This module provides the Circle dataclass, the ShapeHit record shared by all
shape intersection routines, and the circle storage fields used by the scene.

The ray-circle intersection solves
    |p + t * d - center|^2 = radius^2
for t. With a unit direction this is t^2 + 2*h*t + c = 0 where
    h = d . (p - center)
    c = |p - center|^2 - radius^2
and the numerically robust form from Ray Tracing Gems keeps the roots
accurate when h^2 is close to c.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from flatlight.geometry.circle import Circle, hit_circle, vec2
    >>> circle = Circle(center=vec2(0.5, 0.5), radius=0.25)
    >>> # Use hit_circle within a Taichi kernel
"""

import logging

import taichi as ti
import taichi.math as tm

from flatlight.core.vector import length_squared, vec2

logger = logging.getLogger(__name__)


@ti.dataclass
class Circle:
    """A circle defined by center point and radius.

    Attributes:
        center: The center point of the circle (vec2).
        radius: The radius of the circle (positive float).
    """

    center: vec2
    radius: ti.f32


@ti.dataclass
class ShapeHit:
    """Record of the contact reported between a ray and a shape boundary.

    Attributes:
        hit: 1 if the ray met the boundary, 0 otherwise.
        t: Distance along the (unit) ray direction. Only valid if hit == 1.
        point: The contact point. Only valid if hit == 1.
        normal: Unit normal at the contact, pointing out of the shape's
            interior regardless of which side the ray came from.
            Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec2
    normal: vec2


@ti.func
def make_miss() -> ShapeHit:
    """Create a ShapeHit indicating no intersection."""
    return ShapeHit(hit=0, t=0.0, point=vec2(0.0, 0.0), normal=vec2(0.0, 0.0))


@ti.func
def _solve_quadratic_robust(h: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Solve t^2 + 2*h*t + c = 0 given sqrt(h^2 - c).

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant)) avoids catastrophic cancellation
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0
    if ti.abs(q) < 1e-10:
        t0 = -h - sqrt_d
        t1 = -h + sqrt_d
    else:
        t0 = q
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def hit_circle(
    ray_origin: vec2,
    ray_direction: vec2,
    circle: Circle,
    t_min: ti.f32,
) -> ShapeHit:
    """Test for ray-circle intersection.

    Always reports the far root of the quadratic, so a ray from outside
    meets the back of the circle, and a ray from inside meets the exit
    point. The hit is accepted only if that root exceeds ``t_min``, which
    suppresses self-intersection when a path leaves the circle's boundary.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.
        circle: The circle to test against.
        t_min: Minimum accepted distance along the ray.

    Returns:
        A ShapeHit with an outward radial normal.
    """
    oc = ray_origin - circle.center
    h = tm.dot(ray_direction, oc)
    c = length_squared(oc) - circle.radius * circle.radius
    discriminant = h * h - c

    result = make_miss()

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0, t1 = _solve_quadratic_robust(h, c, sqrt_d)

        t = ti.max(t0, t1)
        if t > t_min:
            point = ray_origin + t * ray_direction
            result = ShapeHit(
                hit=1,
                t=t,
                point=point,
                normal=tm.normalize(point - circle.center),
            )

    return result


@ti.func
def inside_circle(point: vec2, circle: Circle) -> ti.i32:
    """Return 1 if ``point`` lies strictly inside the circle."""
    return 1 if length_squared(point - circle.center) < circle.radius * circle.radius else 0


# =============================================================================
# Circle Storage
# =============================================================================

# Maximum number of circles supported in the scene
MAX_CIRCLES = 1024

# Structure of Arrays layout
circle_centers = ti.Vector.field(2, dtype=ti.f32, shape=MAX_CIRCLES)
circle_radii = ti.field(dtype=ti.f32, shape=MAX_CIRCLES)
num_circles = ti.field(dtype=ti.i32, shape=())


def clear_circles() -> None:
    """Clear all stored circles.

    Resets the count to zero; field data is overwritten by later additions.
    """
    num_circles[None] = 0


def add_circle(center: tuple[float, float], radius: float) -> int:
    """Store a circle and return its index.

    Args:
        center: The center point as (x, y).
        radius: The radius (must be positive).

    Returns:
        The index of the stored circle.

    Raises:
        ValueError: If the radius is not positive.
        RuntimeError: If the maximum number of circles is exceeded.
    """
    if radius <= 0.0:
        raise ValueError(f"Circle radius must be positive, got {radius}")

    idx = num_circles[None]
    if idx >= MAX_CIRCLES:
        raise RuntimeError(f"Maximum number of circles ({MAX_CIRCLES}) exceeded")

    circle_centers[idx] = [center[0], center[1]]
    circle_radii[idx] = radius
    num_circles[None] = idx + 1
    logger.debug("Stored circle %d: center=%s radius=%s", idx, center, radius)
    return idx


def get_circle_count() -> int:
    """Get the number of stored circles."""
    return int(num_circles[None])


@ti.func
def get_circle(idx: ti.i32) -> Circle:
    """Load a stored circle by index."""
    return Circle(center=circle_centers[idx], radius=circle_radii[idx])
