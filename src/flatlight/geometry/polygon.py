"""Convex polygon primitive with ray intersection and containment.

A polygon is a closed loop of vertices stored in a shared vertex pool. Its
interior lies on the right-hand side of every directed edge (a, b), i.e.
``cross(b - a, p - a) < 0`` for interior points. In image orientation, with
the y axis pointing down, that is a counter-clockwise winding. The
``rectangle`` and ``ngon`` helpers produce this winding.

Ray-polygon intersection tests every edge:
1. The ray's line must separate the edge endpoints (the cross products of
   ``a - p`` and ``b - p`` with ``d`` have opposite signs).
2. The edge normal ``n`` (outward perpendicular of ``b - a``) gives
   ``t = n . (a - p) / n . d``.
3. The nearest accepted edge beyond ``t_min`` wins.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from flatlight.geometry.polygon import add_polygon, rectangle
    >>> idx = add_polygon(rectangle((0.5, 0.5), 0.0, 0.2, 0.1))
    >>> # Use hit_polygon(origin, direction, idx, t_min) within a kernel
"""

import logging
import math
from collections.abc import Sequence

import taichi as ti
import taichi.math as tm

from flatlight.core.vector import cross2, vec2
from flatlight.geometry.circle import ShapeHit, make_miss

logger = logging.getLogger(__name__)

# Minimum |n . d| for an edge to count as crossed (rejects parallel rays)
PARALLEL_EPSILON = 1e-8


# =============================================================================
# Host-side Vertex Helpers
# =============================================================================


def rectangle(
    center: tuple[float, float],
    theta: float,
    width: float,
    height: float,
) -> list[tuple[float, float]]:
    """Vertices of a rotated rectangle.

    Args:
        center: The rectangle center as (x, y).
        theta: Rotation angle in radians.
        width: Extent along the rotated x axis.
        height: Extent along the rotated y axis.

    Returns:
        Four vertices wound with the interior on the right of every edge.
    """
    cos_t = math.cos(theta)
    sin_t = math.sin(theta)
    corners = [
        (width / 2.0, -height / 2.0),
        (-width / 2.0, -height / 2.0),
        (-width / 2.0, height / 2.0),
        (width / 2.0, height / 2.0),
    ]
    return [
        (center[0] + cos_t * x - sin_t * y, center[1] + sin_t * x + cos_t * y)
        for x, y in corners
    ]


def ngon(center: tuple[float, float], radius: float, n: int) -> list[tuple[float, float]]:
    """Vertices of a regular polygon.

    Args:
        center: The polygon center as (x, y).
        radius: Distance from the center to each vertex.
        n: Number of vertices.

    Returns:
        ``n`` vertices wound with the interior on the right of every edge.
    """
    return [
        (
            center[0] + radius * math.cos(2.0 * math.pi * i / n),
            center[1] - radius * math.sin(2.0 * math.pi * i / n),
        )
        for i in range(n)
    ]


def validate_polygon_points(points: Sequence[Sequence[float]]) -> list[tuple[float, float]]:
    """Check a vertex list and normalize it to a list of (x, y) tuples.

    Raises:
        ValueError: If fewer than 2 points are given or a point is not 2D.
    """
    if len(points) < 2:
        raise ValueError(f"Polygon needs at least 2 points, got {len(points)}")
    result = []
    for p in points:
        if len(p) != 2:
            raise ValueError(f"Polygon points must be 2D, got {p!r}")
        result.append((float(p[0]), float(p[1])))
    return result


# =============================================================================
# Polygon Storage
# =============================================================================

MAX_POLYGONS = 512
MAX_POLYGON_VERTICES = 8192

# Shared vertex pool plus per-polygon (first vertex, vertex count)
polygon_vertices = ti.Vector.field(2, dtype=ti.f32, shape=MAX_POLYGON_VERTICES)
polygon_first = ti.field(dtype=ti.i32, shape=MAX_POLYGONS)
polygon_count = ti.field(dtype=ti.i32, shape=MAX_POLYGONS)
num_polygons = ti.field(dtype=ti.i32, shape=())
num_polygon_vertices = ti.field(dtype=ti.i32, shape=())


def clear_polygons() -> None:
    """Clear all stored polygons and the vertex pool."""
    num_polygons[None] = 0
    num_polygon_vertices[None] = 0


def add_polygon(points: Sequence[Sequence[float]]) -> int:
    """Store a polygon and return its index.

    Args:
        points: The vertices, wound with the interior on the right of
            every directed edge.

    Returns:
        The index of the stored polygon.

    Raises:
        ValueError: If fewer than 2 points are given.
        RuntimeError: If the polygon or vertex capacity is exceeded.
    """
    vertices = validate_polygon_points(points)

    idx = num_polygons[None]
    if idx >= MAX_POLYGONS:
        raise RuntimeError(f"Maximum number of polygons ({MAX_POLYGONS}) exceeded")

    first = num_polygon_vertices[None]
    if first + len(vertices) > MAX_POLYGON_VERTICES:
        raise RuntimeError(
            f"Maximum number of polygon vertices ({MAX_POLYGON_VERTICES}) exceeded"
        )

    for offset, (x, y) in enumerate(vertices):
        polygon_vertices[first + offset] = [x, y]
    polygon_first[idx] = first
    polygon_count[idx] = len(vertices)
    num_polygon_vertices[None] = first + len(vertices)
    num_polygons[None] = idx + 1
    logger.debug("Stored polygon %d with %d vertices", idx, len(vertices))
    return idx


def get_polygon_count() -> int:
    """Get the number of stored polygons."""
    return int(num_polygons[None])


# =============================================================================
# Intersection and Containment
# =============================================================================


@ti.func
def _edge(polygon_idx: ti.i32, i: ti.i32):
    """Return the endpoints (a, b) of edge ``i``, wrapping at the end."""
    first = polygon_first[polygon_idx]
    count = polygon_count[polygon_idx]
    a = polygon_vertices[first + i]
    b = polygon_vertices[first + (i + 1) % count]
    return a, b


@ti.func
def hit_polygon(
    ray_origin: vec2,
    ray_direction: vec2,
    polygon_idx: ti.i32,
    t_min: ti.f32,
) -> ShapeHit:
    """Test for ray-polygon intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.
        polygon_idx: Index of the stored polygon.
        t_min: Minimum accepted distance along the ray.

    Returns:
        A ShapeHit for the nearest crossed edge, with that edge's outward
        normal.
    """
    result = make_miss()
    closest_t = 0.0

    for i in range(polygon_count[polygon_idx]):
        a, b = _edge(polygon_idx, i)
        va = a - ray_origin
        vb = b - ray_origin

        # The ray's line must separate the two endpoints
        if cross2(va, ray_direction) * cross2(vb, ray_direction) < 0.0:
            normal = tm.normalize(vec2(va.y - vb.y, vb.x - va.x))
            denom = tm.dot(ray_direction, normal)
            if ti.abs(denom) > PARALLEL_EPSILON:
                t = tm.dot(normal, va) / denom
                if t > t_min and (result.hit == 0 or t < closest_t):
                    closest_t = t
                    result = ShapeHit(
                        hit=1,
                        t=t,
                        point=ray_origin + t * ray_direction,
                        normal=normal,
                    )

    return result


@ti.func
def inside_polygon(point: vec2, polygon_idx: ti.i32) -> ti.i32:
    """Return 1 if ``point`` is strictly right of every directed edge.

    Points on an edge or vertex are not inside.
    """
    inside = 1
    for i in range(polygon_count[polygon_idx]):
        a, b = _edge(polygon_idx, i)
        if cross2(b - a, point - a) >= 0.0:
            inside = 0
    return inside
