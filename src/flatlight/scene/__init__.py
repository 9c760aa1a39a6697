"""Scene module for entities and ray-scene queries.

Components:
    intersection: Entity storage and the closest-hit query
    manager: SceneManager coordinating materials and entities
    demo: Ready-made demonstration scene

Scene data is kept in Structure-of-Arrays Taichi fields; only one scene
is resident at a time.
"""

from .demo import DemoParams, create_demo_scene
from .intersection import (
    MAX_ENTITIES,
    SceneHitRecord,
    add_entity,
    clear_entities,
    get_entity_count,
    intersect_closest,
)
from .manager import EntityInfo, MaterialInfo, SceneConfig, SceneManager

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_entity",
    "clear_entities",
    "get_entity_count",
    "intersect_closest",
    "MAX_ENTITIES",
    # Manager module
    "SceneManager",
    "MaterialInfo",
    "EntityInfo",
    "SceneConfig",
    # Demo scene
    "DemoParams",
    "create_demo_scene",
]
