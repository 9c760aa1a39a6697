"""Unit tests for entity storage and closest-hit queries.

Tests cover:
- Empty scene returns a miss
- Closest entity wins along a ray
- Exact ties keep the entity added first
- t_min and t_max limits
- Entity validation (unregistered material)
"""

import pytest
import taichi as ti


def _query(origin, direction, t_min=1e-4, t_max=1e10):
    from flatlight.scene.intersection import intersect_closest, vec2

    hit = ti.field(dtype=ti.i32, shape=())
    t = ti.field(dtype=ti.f32, shape=())
    entity = ti.field(dtype=ti.i32, shape=())
    material = ti.field(dtype=ti.i32, shape=())
    normal = ti.Vector.field(2, dtype=ti.f32, shape=())

    @ti.kernel
    def test_kernel(
        ox: ti.f32, oy: ti.f32, dx: ti.f32, dy: ti.f32, tmin: ti.f32, tmax: ti.f32
    ):
        rec = intersect_closest(vec2(ox, oy), vec2(dx, dy), tmin, tmax)
        hit[None] = rec.hit
        t[None] = rec.t
        entity[None] = rec.entity_id
        material[None] = rec.material_id
        normal[None] = rec.normal

    test_kernel(*origin, *direction, t_min, t_max)
    return hit[None], t[None], entity[None], material[None], normal[None]


class TestIntersectClosest:
    """Tests for intersect_closest."""

    def test_empty_scene_misses(self):
        hit, _, entity, material, _ = _query((0.5, 0.5), (1.0, 0.0))
        assert hit == 0
        assert entity == -1
        assert material == -1

    def test_closest_entity_wins(self):
        from flatlight.geometry.csg import CircleShape, PolygonShape
        from flatlight.materials.material import Material, add_material
        from flatlight.scene.intersection import add_entity

        wall = add_material(Material.lambert())
        light = add_material(Material.emissive((1.0, 1.0, 1.0)))
        add_entity(CircleShape((0.8, 0.5), 0.1), light)
        add_entity(PolygonShape.rectangle((0.4, 0.5), 0.0, 0.1, 0.4), wall)

        hit, t, entity, material, normal = _query((0.0, 0.5), (1.0, 0.0))
        assert hit == 1
        assert abs(t - 0.35) < 1e-5
        assert entity == 1
        assert material == wall
        assert abs(normal[0] + 1.0) < 1e-5

    def test_tie_keeps_first_entity(self):
        from flatlight.geometry.csg import CircleShape
        from flatlight.materials.material import Material, add_material
        from flatlight.scene.intersection import add_entity

        first = add_material(Material.lambert())
        second = add_material(Material.mirror())
        add_entity(CircleShape((0.5, 0.5), 0.1), first)
        add_entity(CircleShape((0.5, 0.5), 0.1), second)

        hit, _, entity, material, _ = _query((0.0, 0.5), (1.0, 0.0))
        assert hit == 1
        assert entity == 0
        assert material == first

    def test_t_max_limits_search(self):
        from flatlight.geometry.csg import CircleShape
        from flatlight.materials.material import Material, add_material
        from flatlight.scene.intersection import add_entity

        mid = add_material(Material.lambert())
        add_entity(CircleShape((0.8, 0.5), 0.1), mid)

        hit, _, _, _, _ = _query((0.0, 0.5), (1.0, 0.0), t_max=0.5)
        assert hit == 0
        hit, _, _, _, _ = _query((0.0, 0.5), (1.0, 0.0), t_max=1.0)
        assert hit == 1

    def test_t_min_skips_surface_at_origin(self):
        from flatlight.geometry.csg import PolygonShape
        from flatlight.materials.material import Material, add_material
        from flatlight.scene.intersection import add_entity

        mid = add_material(Material.dielectric(1.5))
        add_entity(PolygonShape.rectangle((0.5, 0.5), 0.0, 0.2, 0.2), mid)

        # Start exactly on the left face and travel inward
        hit, t, _, _, normal = _query((0.4, 0.5), (1.0, 0.0))
        assert hit == 1
        assert abs(t - 0.2) < 1e-5
        assert abs(normal[0] - 1.0) < 1e-5


class TestEntityStorage:
    """Tests for add_entity and clear_entities."""

    def test_unregistered_material_rejected(self):
        from flatlight.geometry.csg import CircleShape
        from flatlight.scene.intersection import add_entity, get_entity_count

        with pytest.raises(ValueError):
            add_entity(CircleShape((0.5, 0.5), 0.1), 0)
        assert get_entity_count() == 0

    def test_clear_keeps_materials(self):
        from flatlight.geometry.csg import CircleShape, get_shape_node_count
        from flatlight.materials.material import Material, add_material, get_material_count
        from flatlight.scene.intersection import add_entity, clear_entities, get_entity_count

        mid = add_material(Material.lambert())
        assert add_entity(CircleShape((0.5, 0.5), 0.1), mid) == 0
        assert add_entity(CircleShape((0.2, 0.5), 0.1), mid) == 1
        assert get_entity_count() == 2
        assert get_shape_node_count() == 2

        clear_entities()
        assert get_entity_count() == 0
        assert get_shape_node_count() == 0
        assert get_material_count() == 1
