"""Scene-level entity storage and closest-hit queries.

An entity pairs a compiled shape program with a material id. The scene
stores entities in Taichi fields and ``intersect_closest`` tests a ray
against every entity, returning the nearest contact together with the
entity and material that produced it.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from flatlight.geometry.csg import CircleShape
    >>> from flatlight.materials.material import Material, add_material
    >>> from flatlight.scene.intersection import add_entity, clear_entities
    >>> clear_entities()
    >>> light = add_material(Material.emissive((5.0, 5.0, 5.0)))
    >>> add_entity(CircleShape((0.5, 0.5), 0.1), light)
    >>> # Use intersect_closest within a Taichi kernel
"""

import logging

import taichi as ti

from flatlight.core.vector import vec2
from flatlight.geometry.csg import Shape, clear_shapes, compile_shape, intersect_shape
from flatlight.materials.material import num_materials

logger = logging.getLogger(__name__)


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with entity and material information.

    Attributes:
        hit: Whether the ray intersected any entity (1 if hit, 0 if miss).
        t: Distance along the ray to the contact. Only valid if hit == 1.
        point: The contact point. Only valid if hit == 1.
        normal: Outward unit normal of the entity's shape at the contact.
            Only valid if hit == 1.
        entity_id: Index of the entity that was hit, -1 on a miss.
        material_id: Material of the entity that was hit, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec2
    normal: vec2
    entity_id: ti.i32
    material_id: ti.i32


# Maximum number of entities supported in the scene
MAX_ENTITIES = 1024

# Entity storage: shape program range plus material id
entity_shape_first = ti.field(dtype=ti.i32, shape=MAX_ENTITIES)
entity_shape_root = ti.field(dtype=ti.i32, shape=MAX_ENTITIES)
entity_material_ids = ti.field(dtype=ti.i32, shape=MAX_ENTITIES)
num_entities = ti.field(dtype=ti.i32, shape=())


def clear_entities() -> None:
    """Remove all entities and the shape programs they own.

    Materials are kept; clear them separately with ``clear_materials``.
    """
    num_entities[None] = 0
    clear_shapes()


def add_entity(shape: Shape, material_id: int) -> int:
    """Add an entity to the scene.

    Args:
        shape: The entity's shape description.
        material_id: Id of a registered material.

    Returns:
        The index of the added entity.

    Raises:
        ValueError: If the material id is not registered or the shape is
            invalid.
        RuntimeError: If the maximum number of entities is exceeded.
    """
    if not 0 <= material_id < num_materials[None]:
        raise ValueError(f"Material id {material_id} is not registered")

    idx = num_entities[None]
    if idx >= MAX_ENTITIES:
        raise RuntimeError(f"Maximum number of entities ({MAX_ENTITIES}) exceeded")

    first, root = compile_shape(shape)
    entity_shape_first[idx] = first
    entity_shape_root[idx] = root
    entity_material_ids[idx] = material_id
    num_entities[None] = idx + 1
    logger.debug("Added entity %d with material %d", idx, material_id)
    return idx


def get_entity_count() -> int:
    """Get the number of entities in the scene."""
    return int(num_entities[None])


@ti.func
def _make_miss_record() -> SceneHitRecord:
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec2(0.0, 0.0),
        normal=vec2(0.0, 0.0),
        entity_id=-1,
        material_id=-1,
    )


@ti.func
def intersect_closest(
    ray_origin: vec2,
    ray_direction: vec2,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Test a ray against all entities in the scene.

    Contacts at or below ``t_min`` are ignored. Among the remaining ones the
    smallest ``t`` wins; on an exact tie the entity added first is kept.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The unit direction of the ray.
        t_min: Minimum t value to consider a valid hit.
        t_max: Maximum t value to consider a valid hit.

    Returns:
        A SceneHitRecord containing the closest intersection, or a miss
        record if no intersection was found.
    """
    closest_t = t_max
    result = _make_miss_record()

    for i in range(num_entities[None]):
        rec = intersect_shape(
            ray_origin, ray_direction, entity_shape_first[i], entity_shape_root[i], t_min
        )
        if rec.hit == 1 and rec.t < closest_t:
            closest_t = rec.t
            result = SceneHitRecord(
                hit=1,
                t=rec.t,
                point=rec.point,
                normal=rec.normal,
                entity_id=i,
                material_id=entity_material_ids[i],
            )

    return result
