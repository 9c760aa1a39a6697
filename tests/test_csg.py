"""Unit tests for shape descriptions and CSG evaluation.

Tests cover:
- Interior membership of unions and intersections against a reference
- Ray intersection of a lens (intersection of two circles) from outside and inside
- Disjoint intersections are empty
- Stack depth limits on deeply nested shapes
- Dict serialization of shape descriptions
"""

import numpy as np
import pytest
import taichi as ti


def _membership(first, root, points):
    """Evaluate is_inside_shape for an (N, 2) array of points."""
    from flatlight.geometry.csg import is_inside_shape

    n = points.shape[0]
    query = ti.Vector.field(2, dtype=ti.f32, shape=n)
    inside = ti.field(dtype=ti.i32, shape=n)
    query.from_numpy(points.astype(np.float32))

    @ti.kernel
    def test_kernel(f: ti.i32, r: ti.i32):
        for i in range(n):
            inside[i] = is_inside_shape(query[i], f, r)

    test_kernel(first, root)
    return inside.to_numpy().astype(bool)


def _intersect(first, root, origin, direction):
    from flatlight.geometry.csg import intersect_shape, vec2

    hit = ti.field(dtype=ti.i32, shape=())
    t = ti.field(dtype=ti.f32, shape=())
    normal = ti.Vector.field(2, dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel(f: ti.i32, r: ti.i32, ox: ti.f32, oy: ti.f32, dx: ti.f32, dy: ti.f32):
        rec = intersect_shape(vec2(ox, oy), vec2(dx, dy), f, r, 1e-4)
        hit[None] = rec.hit
        t[None] = rec.t
        normal[None] = rec.normal

    test_kernel(first, root, *origin, *direction)
    return hit[None], t[None], normal[None]


class TestCSGMembership:
    """Tests for is_inside_shape on composed shapes."""

    def _reference_points(self):
        rng = np.random.default_rng(7)
        points = rng.uniform(0.0, 1.0, size=(1000, 2))
        d_a = np.hypot(points[:, 0] - 0.4, points[:, 1] - 0.5)
        d_b = np.hypot(points[:, 0] - 0.6, points[:, 1] - 0.5)
        # Drop points too close to a boundary for float32 to agree
        keep = (np.abs(d_a - 0.25) > 1e-4) & (np.abs(d_b - 0.25) > 1e-4)
        return points[keep], d_a[keep] < 0.25, d_b[keep] < 0.25

    def test_union_is_or(self):
        from flatlight.geometry.csg import CircleShape, UnionShape, compile_shape

        first, root = compile_shape(
            UnionShape(CircleShape((0.4, 0.5), 0.25), CircleShape((0.6, 0.5), 0.25))
        )
        points, in_a, in_b = self._reference_points()
        result = _membership(first, root, points)
        np.testing.assert_array_equal(result, in_a | in_b)

    def test_intersection_is_and(self):
        from flatlight.geometry.csg import CircleShape, IntersectionShape, compile_shape

        first, root = compile_shape(
            IntersectionShape(CircleShape((0.4, 0.5), 0.25), CircleShape((0.6, 0.5), 0.25))
        )
        points, in_a, in_b = self._reference_points()
        result = _membership(first, root, points)
        np.testing.assert_array_equal(result, in_a & in_b)

    def test_nested_program_after_other_shapes(self):
        """Programs compiled later evaluate from their own node range."""
        from flatlight.geometry.csg import (
            CircleShape,
            IntersectionShape,
            PolygonShape,
            UnionShape,
            compile_shape,
        )

        compile_shape(CircleShape((0.9, 0.9), 0.05))
        shape = UnionShape(
            IntersectionShape(
                PolygonShape.rectangle((0.5, 0.5), 0.0, 0.4, 0.4),
                CircleShape((0.5, 0.5), 0.15),
            ),
            CircleShape((0.1, 0.1), 0.05),
        )
        first, root = compile_shape(shape)
        assert first == 1
        assert root == 5

        points = np.array([[0.5, 0.5], [0.68, 0.5], [0.1, 0.1], [0.9, 0.9], [0.3, 0.3]])
        result = _membership(first, root, points)
        np.testing.assert_array_equal(result, [True, False, True, False, False])

    def test_disjoint_intersection_is_empty(self):
        from flatlight.geometry.csg import CircleShape, IntersectionShape, compile_shape

        first, root = compile_shape(
            IntersectionShape(CircleShape((0.2, 0.5), 0.1), CircleShape((0.8, 0.5), 0.1))
        )
        grid = np.stack(np.meshgrid(np.linspace(0, 1, 40), np.linspace(0, 1, 40)), -1)
        result = _membership(first, root, grid.reshape(-1, 2))
        assert not result.any()

        hit, _, _ = _intersect(first, root, (0.0, 0.5), (1.0, 0.0))
        assert hit == 0


class TestCSGIntersection:
    """Tests for intersect_shape."""

    def test_lens_from_outside(self):
        """From outside, a lens reports the far side of its first circle."""
        from flatlight.geometry.csg import CircleShape, IntersectionShape, compile_shape

        first, root = compile_shape(
            IntersectionShape(CircleShape((0.4, 0.5), 0.2), CircleShape((0.6, 0.5), 0.2))
        )
        hit, t, n = _intersect(first, root, (0.0, 0.5), (1.0, 0.0))
        assert hit == 1
        assert abs(t - 0.6) < 1e-5
        assert abs(n[0] - 1.0) < 1e-5

    def test_lens_exit(self):
        from flatlight.geometry.csg import CircleShape, IntersectionShape, compile_shape

        first, root = compile_shape(
            IntersectionShape(CircleShape((0.4, 0.5), 0.2), CircleShape((0.6, 0.5), 0.2))
        )
        hit, t, n = _intersect(first, root, (0.5, 0.5), (1.0, 0.0))
        assert hit == 1
        assert abs(t - 0.1) < 1e-5
        assert abs(n[0] - 1.0) < 1e-5

    def test_union_takes_nearer_operand(self):
        from flatlight.geometry.csg import CircleShape, PolygonShape, UnionShape, compile_shape

        first, root = compile_shape(
            UnionShape(
                CircleShape((0.7, 0.5), 0.1),
                PolygonShape.rectangle((0.3, 0.5), 0.0, 0.2, 0.2),
            )
        )
        hit, t, n = _intersect(first, root, (0.0, 0.5), (1.0, 0.0))
        assert hit == 1
        assert abs(t - 0.2) < 1e-5
        assert abs(n[0] + 1.0) < 1e-5

    def test_single_primitive(self):
        from flatlight.geometry.csg import CircleShape, compile_shape

        first, root = compile_shape(CircleShape((0.5, 0.5), 0.25))
        assert first == root
        hit, t, _ = _intersect(first, root, (0.5, 0.0), (0.0, 1.0))
        assert hit == 1
        assert abs(t - 0.75) < 1e-5


class TestShapeDescriptions:
    """Tests for host-side shape helpers."""

    def test_node_count_and_depth(self):
        from flatlight.geometry.csg import (
            CircleShape,
            IntersectionShape,
            UnionShape,
            shape_node_count,
            shape_stack_depth,
        )

        c = CircleShape((0.0, 0.0), 1.0)
        shape = UnionShape(IntersectionShape(c, c), c)
        assert shape_node_count(shape) == 5
        assert shape_stack_depth(shape) == 2
        assert shape_stack_depth(UnionShape(c, UnionShape(c, c))) == 3

    def test_deep_right_nesting_rejected(self):
        from flatlight.geometry.csg import (
            MAX_SHAPE_STACK,
            CircleShape,
            UnionShape,
            compile_shape,
        )

        c = CircleShape((0.5, 0.5), 0.1)
        shape = c
        for _ in range(MAX_SHAPE_STACK):
            shape = UnionShape(c, shape)
        with pytest.raises(ValueError):
            compile_shape(shape)

    def test_deep_left_nesting_accepted(self):
        from flatlight.geometry.csg import (
            MAX_SHAPE_STACK,
            CircleShape,
            UnionShape,
            compile_shape,
            shape_node_count,
        )

        c = CircleShape((0.5, 0.5), 0.1)
        shape = c
        for _ in range(2 * MAX_SHAPE_STACK):
            shape = UnionShape(shape, c)
        first, root = compile_shape(shape)
        assert root - first + 1 == shape_node_count(shape)

    def test_invalid_primitives(self):
        from flatlight.geometry.csg import CircleShape, PolygonShape

        with pytest.raises(ValueError):
            CircleShape((0.0, 0.0), 0.0)
        with pytest.raises(ValueError):
            PolygonShape(((0.0, 0.0),))

    def test_dict_round_trip(self):
        from flatlight.geometry.csg import (
            CircleShape,
            IntersectionShape,
            PolygonShape,
            UnionShape,
            shape_from_dict,
            shape_to_dict,
        )

        shape = UnionShape(
            IntersectionShape(CircleShape((0.1, 0.2), 0.3), PolygonShape.ngon((0.1, 0.2), 0.3, 5)),
            PolygonShape(((0.0, 0.0), (1.0, 0.0), (1.0, 1.0))),
        )
        data = shape_to_dict(shape)
        assert data["type"] == "union"
        assert data["a"]["type"] == "intersection"
        assert shape_from_dict(data) == shape

    def test_unknown_type(self):
        from flatlight.geometry.csg import shape_from_dict

        with pytest.raises(ValueError):
            shape_from_dict({"type": "ellipse"})
