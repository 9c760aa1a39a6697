"""Unit tests for convex polygon intersection, containment and helpers.

Tests cover:
- rectangle and ngon vertex generation and winding
- Ray-polygon intersection from outside and inside
- Containment excludes vertices and exterior points
- Polygon validation and storage
"""

import math

import pytest
import taichi as ti


def _signed_area(points):
    area = 0.0
    for i, (x0, y0) in enumerate(points):
        x1, y1 = points[(i + 1) % len(points)]
        area += x0 * y1 - x1 * y0
    return 0.5 * area


class TestVertexHelpers:
    """Tests for rectangle and ngon."""

    def test_rectangle_corners(self):
        from flatlight.geometry.polygon import rectangle

        points = rectangle((0.5, 0.5), 0.0, 0.4, 0.2)
        assert len(points) == 4
        xs = sorted(p[0] for p in points)
        ys = sorted(p[1] for p in points)
        assert abs(xs[0] - 0.3) < 1e-9 and abs(xs[-1] - 0.7) < 1e-9
        assert abs(ys[0] - 0.4) < 1e-9 and abs(ys[-1] - 0.6) < 1e-9

    def test_rectangle_rotation(self):
        from flatlight.geometry.polygon import rectangle

        points = rectangle((0.0, 0.0), math.pi / 2, 0.4, 0.2)
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        assert abs(max(xs) - 0.1) < 1e-9
        assert abs(max(ys) - 0.2) < 1e-9

    def test_ngon_vertices_on_circle(self):
        from flatlight.geometry.polygon import ngon

        points = ngon((1.0, 2.0), 0.5, 6)
        assert len(points) == 6
        for x, y in points:
            assert abs(math.hypot(x - 1.0, y - 2.0) - 0.5) < 1e-9

    def test_helpers_share_winding(self):
        """Both helpers wind with a negative signed area in y-up terms."""
        from flatlight.geometry.polygon import ngon, rectangle

        assert _signed_area(rectangle((0.0, 0.0), 0.3, 1.0, 2.0)) < 0.0
        assert _signed_area(ngon((0.0, 0.0), 1.0, 5)) < 0.0

    def test_validation(self):
        from flatlight.geometry.polygon import validate_polygon_points

        with pytest.raises(ValueError):
            validate_polygon_points([(0.0, 0.0)])
        with pytest.raises(ValueError):
            validate_polygon_points([(0.0, 0.0), (1.0, 2.0, 3.0)])
        assert validate_polygon_points([[0, 1], [2, 3]]) == [(0.0, 1.0), (2.0, 3.0)]


class TestPolygonIntersection:
    """Tests for hit_polygon and inside_polygon."""

    def _run_hit(self, idx, origin, direction):
        from flatlight.geometry.polygon import hit_polygon, vec2

        hit = ti.field(dtype=ti.i32, shape=())
        t = ti.field(dtype=ti.f32, shape=())
        normal = ti.Vector.field(2, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(i: ti.i32, ox: ti.f32, oy: ti.f32, dx: ti.f32, dy: ti.f32):
            rec = hit_polygon(vec2(ox, oy), vec2(dx, dy), i, 1e-4)
            hit[None] = rec.hit
            t[None] = rec.t
            normal[None] = rec.normal

        test_kernel(idx, *origin, *direction)
        return hit[None], t[None], normal[None]

    def test_hit_square_from_left(self):
        from flatlight.geometry.polygon import add_polygon, rectangle

        idx = add_polygon(rectangle((0.5, 0.5), 0.0, 0.2, 0.2))
        hit, t, n = self._run_hit(idx, (0.0, 0.5), (1.0, 0.0))
        assert hit == 1
        assert abs(t - 0.4) < 1e-5
        assert abs(n[0] + 1.0) < 1e-5
        assert abs(n[1]) < 1e-5

    def test_hit_square_from_inside(self):
        from flatlight.geometry.polygon import add_polygon, rectangle

        idx = add_polygon(rectangle((0.5, 0.5), 0.0, 0.2, 0.2))
        hit, t, n = self._run_hit(idx, (0.5, 0.5), (0.0, -1.0))
        assert hit == 1
        assert abs(t - 0.1) < 1e-5
        # Normal stays outward even from inside
        assert abs(n[1] + 1.0) < 1e-5

    def test_miss(self):
        from flatlight.geometry.polygon import add_polygon, rectangle

        idx = add_polygon(rectangle((0.5, 0.5), 0.0, 0.2, 0.2))
        hit, _, _ = self._run_hit(idx, (0.0, 0.1), (1.0, 0.0))
        assert hit == 0

    def test_triangle_normal_is_unit(self):
        from flatlight.geometry.polygon import add_polygon, ngon

        idx = add_polygon(ngon((0.5, 0.5), 0.2, 3))
        hit, _, n = self._run_hit(idx, (0.0, 0.45), (1.0, 0.0))
        assert hit == 1
        assert abs(math.hypot(n[0], n[1]) - 1.0) < 1e-5
        assert n[0] < 0.0

    def test_containment(self):
        from flatlight.geometry.polygon import add_polygon, inside_polygon, rectangle, vec2

        idx = add_polygon(rectangle((0.5, 0.5), 0.0, 0.2, 0.2))
        results = ti.field(dtype=ti.i32, shape=4)

        @ti.kernel
        def test_kernel(i: ti.i32):
            results[0] = inside_polygon(vec2(0.5, 0.5), i)
            results[1] = inside_polygon(vec2(0.4, 0.4), i)
            results[2] = inside_polygon(vec2(3.0, -2.0), i)
            results[3] = inside_polygon(vec2(0.55, 0.45), i)

        test_kernel(idx)
        assert results[0] == 1
        assert results[1] == 0
        assert results[2] == 0
        assert results[3] == 1

    @pytest.mark.parametrize(
        "points",
        [
            pytest.param(((0.5, 0.5), 0.0, 0.2, 0.2), id="rectangle"),
            pytest.param(((0.5, 0.5), 0.3, 0.4, 0.1), id="rotated-rectangle"),
            pytest.param(((0.5, 0.5), 0.2, 3), id="triangle"),
            pytest.param(((0.5, 0.5), 0.2, 7), id="heptagon"),
        ],
    )
    def test_vertices_are_not_inside(self, points):
        from flatlight.geometry.polygon import add_polygon, inside_polygon, ngon, rectangle, vec2

        vertices = rectangle(*points) if len(points) == 4 else ngon(*points)
        idx = add_polygon(vertices)
        n = len(vertices)
        query = ti.Vector.field(2, dtype=ti.f32, shape=n)
        results = ti.field(dtype=ti.i32, shape=n)
        for i, (x, y) in enumerate(vertices):
            query[i] = [x, y]

        @ti.kernel
        def test_kernel(p: ti.i32):
            for i in range(n):
                results[i] = inside_polygon(vec2(query[i][0], query[i][1]), p)

        test_kernel(idx)
        assert (results.to_numpy() == 0).all()


class TestPolygonStorage:
    """Tests for polygon storage helpers."""

    def test_add_and_clear(self):
        from flatlight.geometry.polygon import (
            add_polygon,
            clear_polygons,
            get_polygon_count,
            ngon,
        )

        clear_polygons()
        assert add_polygon(ngon((0.0, 0.0), 1.0, 5)) == 0
        assert add_polygon([(0.0, 0.0), (1.0, 0.0)]) == 1
        assert get_polygon_count() == 2

        clear_polygons()
        assert get_polygon_count() == 0

    def test_too_few_points(self):
        from flatlight.geometry.polygon import add_polygon

        with pytest.raises(ValueError):
            add_polygon([(0.0, 0.0)])
