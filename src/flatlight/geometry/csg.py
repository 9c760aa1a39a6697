"""Shape descriptions and constructive solid geometry (CSG) evaluation.

A shape is a closed tagged variant over four cases:

    CircleShape | PolygonShape | UnionShape(a, b) | IntersectionShape(a, b)

The host-side descriptions are immutable dataclasses. ``compile_shape``
flattens a description into a post-order node program stored in Taichi
fields, so each shape occupies a contiguous node range ``[first, root]``
whose last node is the root. For a combinator node ``k``:

    right operand root  = k - 1
    right operand first = shape_node_first[k - 1]
    left operand root   = shape_node_first[k - 1] - 1
    left operand first  = shape_node_first[k]

Device code evaluates a program left to right with a small value stack,
dispatching on the node kind. The combinator rules are:

    Union        boundary: the nearer operand hit.
                 interior: A or B.
    Intersection boundary: a hit on one operand that lies inside the other;
                 the nearer one if both qualify.
                 interior: A and B.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from flatlight.geometry.csg import CircleShape, IntersectionShape, compile_shape
    >>> lens = IntersectionShape(CircleShape((0.4, 0.5), 0.2), CircleShape((0.6, 0.5), 0.2))
    >>> first, root = compile_shape(lens)
    >>> # Use intersect_shape(origin, direction, first, root, t_min) in a kernel
"""

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Union

import taichi as ti
import taichi.math as tm

from flatlight.core.vector import vec2
from flatlight.geometry.circle import (
    ShapeHit,
    add_circle,
    clear_circles,
    get_circle,
    hit_circle,
    inside_circle,
    make_miss,
)
from flatlight.geometry.polygon import (
    add_polygon,
    clear_polygons,
    hit_polygon,
    inside_polygon,
    ngon,
    rectangle,
    validate_polygon_points,
)

logger = logging.getLogger(__name__)


class ShapeKind(IntEnum):
    """Node kinds of a compiled shape program."""

    CIRCLE = 0
    POLYGON = 1
    UNION = 2
    INTERSECTION = 3


SHAPE_CIRCLE = int(ShapeKind.CIRCLE)
SHAPE_POLYGON = int(ShapeKind.POLYGON)
SHAPE_UNION = int(ShapeKind.UNION)
SHAPE_INTERSECTION = int(ShapeKind.INTERSECTION)

# Evaluation stack slots available to one shape program
MAX_SHAPE_STACK = 8

# Stack value marking "no hit" (valid hits always have t > t_min > 0)
MISS_T = -1.0


# =============================================================================
# Host-side Shape Descriptions
# =============================================================================


@dataclass(frozen=True)
class CircleShape:
    """A circle primitive.

    Attributes:
        center: The center point as (x, y).
        radius: The radius (positive).
    """

    center: tuple[float, float]
    radius: float

    def __post_init__(self) -> None:
        if self.radius <= 0.0:
            raise ValueError(f"Circle radius must be positive, got {self.radius}")
        object.__setattr__(self, "center", (float(self.center[0]), float(self.center[1])))


@dataclass(frozen=True)
class PolygonShape:
    """A convex polygon primitive.

    Attributes:
        points: Vertices wound with the interior on the right of every
            directed edge (counter-clockwise with y pointing down).
    """

    points: tuple[tuple[float, float], ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "points", tuple(validate_polygon_points(self.points)))

    @classmethod
    def rectangle(
        cls, center: tuple[float, float], theta: float, width: float, height: float
    ) -> "PolygonShape":
        """Rotated rectangle centred on ``center``."""
        return cls(tuple(rectangle(center, theta, width, height)))

    @classmethod
    def ngon(cls, center: tuple[float, float], radius: float, n: int) -> "PolygonShape":
        """Regular ``n``-gon with circumradius ``radius``."""
        return cls(tuple(ngon(center, radius, n)))


@dataclass(frozen=True)
class UnionShape:
    """Boolean union of two shapes."""

    a: "Shape"
    b: "Shape"


@dataclass(frozen=True)
class IntersectionShape:
    """Boolean intersection of two shapes."""

    a: "Shape"
    b: "Shape"


Shape = Union[CircleShape, PolygonShape, UnionShape, IntersectionShape]


def shape_node_count(shape: Shape) -> int:
    """Number of program nodes ``shape`` compiles to."""
    if isinstance(shape, (UnionShape, IntersectionShape)):
        return 1 + shape_node_count(shape.a) + shape_node_count(shape.b)
    return 1


def shape_stack_depth(shape: Shape) -> int:
    """Evaluation stack slots the post-order program of ``shape`` needs."""
    if isinstance(shape, (UnionShape, IntersectionShape)):
        return max(shape_stack_depth(shape.a), 1 + shape_stack_depth(shape.b))
    return 1


def shape_to_dict(shape: Shape) -> dict[str, Any]:
    """Serialize a shape description to a plain dict."""
    if isinstance(shape, CircleShape):
        return {"type": "circle", "center": list(shape.center), "radius": shape.radius}
    if isinstance(shape, PolygonShape):
        return {"type": "polygon", "points": [list(p) for p in shape.points]}
    if isinstance(shape, UnionShape):
        return {"type": "union", "a": shape_to_dict(shape.a), "b": shape_to_dict(shape.b)}
    if isinstance(shape, IntersectionShape):
        return {
            "type": "intersection",
            "a": shape_to_dict(shape.a),
            "b": shape_to_dict(shape.b),
        }
    raise TypeError(f"Not a shape: {shape!r}")


def shape_from_dict(data: dict[str, Any]) -> Shape:
    """Rebuild a shape description from ``shape_to_dict`` output.

    Raises:
        ValueError: If the shape type is unknown or the geometry is invalid.
    """
    shape_type = data.get("type")
    if shape_type == "circle":
        return CircleShape(tuple(data["center"]), float(data["radius"]))
    if shape_type == "polygon":
        return PolygonShape(tuple(tuple(p) for p in data["points"]))
    if shape_type == "union":
        return UnionShape(shape_from_dict(data["a"]), shape_from_dict(data["b"]))
    if shape_type == "intersection":
        return IntersectionShape(shape_from_dict(data["a"]), shape_from_dict(data["b"]))
    raise ValueError(f"Unknown shape type: {shape_type!r}")


# =============================================================================
# Shape Program Storage
# =============================================================================

MAX_SHAPE_NODES = 4096

shape_node_kinds = ti.field(dtype=ti.i32, shape=MAX_SHAPE_NODES)
# Index into circle or polygon storage for leaves, -1 for combinators
shape_node_primitives = ti.field(dtype=ti.i32, shape=MAX_SHAPE_NODES)
# First node of the subtree rooted at each node
shape_node_first = ti.field(dtype=ti.i32, shape=MAX_SHAPE_NODES)
num_shape_nodes = ti.field(dtype=ti.i32, shape=())


def clear_shapes() -> None:
    """Clear all shape programs and the primitives they reference."""
    num_shape_nodes[None] = 0
    clear_circles()
    clear_polygons()


def get_shape_node_count() -> int:
    """Get the number of stored shape program nodes."""
    return int(num_shape_nodes[None])


def _append_node(kind: ShapeKind, primitive: int, first: int) -> int:
    idx = num_shape_nodes[None]
    shape_node_kinds[idx] = int(kind)
    shape_node_primitives[idx] = primitive
    shape_node_first[idx] = first
    num_shape_nodes[None] = idx + 1
    return idx


def _emit(shape: Shape) -> int:
    first = num_shape_nodes[None]
    if isinstance(shape, CircleShape):
        return _append_node(ShapeKind.CIRCLE, add_circle(shape.center, shape.radius), first)
    if isinstance(shape, PolygonShape):
        return _append_node(ShapeKind.POLYGON, add_polygon(shape.points), first)
    if isinstance(shape, UnionShape):
        kind = ShapeKind.UNION
    elif isinstance(shape, IntersectionShape):
        kind = ShapeKind.INTERSECTION
    else:
        raise TypeError(f"Not a shape: {shape!r}")
    _emit(shape.a)
    _emit(shape.b)
    return _append_node(kind, -1, first)


def compile_shape(shape: Shape) -> tuple[int, int]:
    """Store a shape description as a post-order node program.

    Args:
        shape: The shape description.

    Returns:
        Tuple of (first, root) node indices delimiting the program.

    Raises:
        ValueError: If evaluating the shape would need more than
            MAX_SHAPE_STACK stack slots.
        RuntimeError: If the node capacity is exceeded.
    """
    depth = shape_stack_depth(shape)
    if depth > MAX_SHAPE_STACK:
        raise ValueError(
            f"Shape needs {depth} evaluation stack slots, maximum is {MAX_SHAPE_STACK}. "
            "Nest combinators on the left operand to reduce depth."
        )

    count = shape_node_count(shape)
    first = num_shape_nodes[None]
    if first + count > MAX_SHAPE_NODES:
        raise RuntimeError(f"Maximum number of shape nodes ({MAX_SHAPE_NODES}) exceeded")

    root = _emit(shape)
    logger.debug("Compiled shape into nodes [%d, %d]", first, root)
    return first, root


# =============================================================================
# Device-side Evaluation
# =============================================================================


@ti.func
def _hit_primitive(
    ray_origin: vec2, ray_direction: vec2, kind: ti.i32, primitive: ti.i32, t_min: ti.f32
) -> ShapeHit:
    rec = make_miss()
    if kind == SHAPE_CIRCLE:
        rec = hit_circle(ray_origin, ray_direction, get_circle(primitive), t_min)
    else:
        rec = hit_polygon(ray_origin, ray_direction, primitive, t_min)
    return rec


@ti.func
def _inside_primitive(point: vec2, kind: ti.i32, primitive: ti.i32) -> ti.i32:
    inside = 0
    if kind == SHAPE_CIRCLE:
        inside = inside_circle(point, get_circle(primitive))
    else:
        inside = inside_polygon(point, primitive)
    return inside


@ti.func
def _nearer(t_a: ti.f32, n_a: vec2, t_b: ti.f32, n_b: vec2):
    """Pick the nearer of two stack entries; ties and misses favour ``b``."""
    t = t_b
    normal = n_b
    if t_a > 0.0 and (t_b <= 0.0 or t_a < t_b):
        t = t_a
        normal = n_a
    return t, normal


@ti.func
def is_inside_shape(point: vec2, first: ti.i32, root: ti.i32) -> ti.i32:
    """Evaluate interior membership of a compiled shape.

    The boolean evaluation stack is packed into the bits of an integer.

    Args:
        point: The query point.
        first: First node of the shape program.
        root: Root (last) node of the shape program.

    Returns:
        1 if ``point`` is strictly inside the shape, 0 otherwise.
    """
    stack = 0
    for k in range(first, root + 1):
        kind = shape_node_kinds[k]
        bit = 0
        if kind == SHAPE_CIRCLE or kind == SHAPE_POLYGON:
            bit = _inside_primitive(point, kind, shape_node_primitives[k])
        else:
            inside_b = stack & 1
            stack = stack >> 1
            inside_a = stack & 1
            stack = stack >> 1
            if kind == SHAPE_UNION:
                bit = inside_a | inside_b
            else:
                bit = inside_a & inside_b
        stack = (stack << 1) | bit
    return stack & 1


@ti.func
def intersect_shape(
    ray_origin: vec2,
    ray_direction: vec2,
    first: ti.i32,
    root: ti.i32,
    t_min: ti.f32,
) -> ShapeHit:
    """Find the boundary contact a ray reports on a compiled shape.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.
        first: First node of the shape program.
        root: Root (last) node of the shape program.
        t_min: Minimum accepted distance along the ray.

    Returns:
        A ShapeHit whose normal points out of the operand that was hit.
    """
    # Stack entries are (t, normal); t == MISS_T marks a miss
    stack_t = ti.Vector([0.0] * MAX_SHAPE_STACK, dt=ti.f32)
    stack_nx = ti.Vector([0.0] * MAX_SHAPE_STACK, dt=ti.f32)
    stack_ny = ti.Vector([0.0] * MAX_SHAPE_STACK, dt=ti.f32)
    sp = 0

    for k in range(first, root + 1):
        kind = shape_node_kinds[k]
        t = MISS_T
        normal = vec2(0.0, 0.0)

        if kind == SHAPE_CIRCLE or kind == SHAPE_POLYGON:
            rec = _hit_primitive(
                ray_origin, ray_direction, kind, shape_node_primitives[k], t_min
            )
            if rec.hit == 1:
                t = rec.t
                normal = rec.normal
        else:
            t_a = MISS_T
            n_a = vec2(0.0, 0.0)
            t_b = MISS_T
            n_b = vec2(0.0, 0.0)
            for s in ti.static(range(MAX_SHAPE_STACK)):
                if s == sp - 2:
                    t_a = stack_t[s]
                    n_a = vec2(stack_nx[s], stack_ny[s])
                if s == sp - 1:
                    t_b = stack_t[s]
                    n_b = vec2(stack_nx[s], stack_ny[s])
            sp -= 2

            if kind == SHAPE_UNION:
                t, normal = _nearer(t_a, n_a, t_b, n_b)
            else:
                right_first = shape_node_first[k - 1]
                left_first = shape_node_first[k]
                a_valid = 0
                if t_a > 0.0:
                    a_valid = is_inside_shape(
                        ray_origin + t_a * ray_direction, right_first, k - 1
                    )
                b_valid = 0
                if t_b > 0.0:
                    b_valid = is_inside_shape(
                        ray_origin + t_b * ray_direction, left_first, right_first - 1
                    )

                if a_valid == 1 and b_valid == 1:
                    t, normal = _nearer(t_a, n_a, t_b, n_b)
                elif a_valid == 1:
                    t = t_a
                    normal = n_a
                elif b_valid == 1:
                    t = t_b
                    normal = n_b

        for s in ti.static(range(MAX_SHAPE_STACK)):
            if s == sp:
                stack_t[s] = t
                stack_nx[s] = normal.x
                stack_ny[s] = normal.y
        sp += 1

    result = make_miss()
    if stack_t[0] > 0.0:
        result = ShapeHit(
            hit=1,
            t=stack_t[0],
            point=ray_origin + stack_t[0] * ray_direction,
            normal=tm.normalize(vec2(stack_nx[0], stack_ny[0])),
        )
    return result
