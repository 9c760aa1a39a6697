"""Unified scene manager for coordinating entities and materials.

This module provides a high-level scene management API on top of the
material registry and entity storage. A scene is a list of materials and a
list of entities, where each entity is a shape description bound to one
material id.

The SceneManager maintains:
- Host-side copies of every material and entity added
- Convenience methods for the common shapes (circle, polygon, rectangle,
  regular n-gon)
- Scene serialization to a SceneConfig or a JSON-compatible dict

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from flatlight.materials.material import Material
    >>> from flatlight.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> light = scene.add_material(Material.emissive((5.0, 5.0, 5.0)))
    >>> scene.add_circle((0.5, 0.5), 0.1, light)
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from flatlight.geometry.csg import (
    CircleShape,
    PolygonShape,
    Shape,
    shape_from_dict,
    shape_to_dict,
)
from flatlight.materials.material import (
    MAX_MATERIALS,
    Material,
    add_material,
    clear_materials,
)
from flatlight.scene.intersection import (
    MAX_ENTITIES,
    add_entity,
    clear_entities,
    get_entity_count,
)

logger = logging.getLogger(__name__)


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The material id used by entities.
        material: The material description.
    """

    material_id: int
    material: Material


@dataclass
class EntityInfo:
    """Information about an entity in the scene.

    Attributes:
        entity_index: The index in the entity storage arrays.
        shape: The shape description.
        material_id: The material id assigned to the entity.
    """

    entity_index: int
    shape: Shape
    material_id: int


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        materials: List of material configurations, in id order.
        entities: List of entity configurations.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    entities: list[dict[str, Any]] = field(default_factory=list)


class SceneManager:
    """Scene manager coordinating entities and materials.

    Only one scene is resident at a time: creating a SceneManager or
    calling ``clear`` resets the shared Taichi storage.

    Attributes:
        materials: List of MaterialInfo for all registered materials.
        entities: List of EntityInfo for all entities in the scene.

    Example:
        >>> scene = SceneManager()
        >>> glass = scene.add_material(Material.dielectric(1.5))
        >>> wall = scene.add_material(Material.lambert())
        >>> scene.add_ngon((0.5, 0.5), 0.1, 3, glass)
        >>> scene.add_rectangle((0.5, 0.9), 0.0, 1.0, 0.05, wall)
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.materials: list[MaterialInfo] = []
        self.entities: list[EntityInfo] = []
        self._clear_all()

    def _clear_all(self) -> None:
        clear_entities()
        clear_materials()
        self.materials.clear()
        self.entities.clear()

    def clear(self) -> None:
        """Clear the entire scene (entities and materials)."""
        self._clear_all()
        logger.debug("Scene cleared")

    # =========================================================================
    # Materials and Entities
    # =========================================================================

    def add_material(self, material: Material) -> int:
        """Register a material and return its id.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
        """
        material_id = add_material(material)
        self.materials.append(MaterialInfo(material_id=material_id, material=material))
        return material_id

    def add_entity(self, shape: Shape, material_id: int) -> int:
        """Add an entity with an arbitrary shape.

        Args:
            shape: The shape description (primitive or CSG combination).
            material_id: A material id returned by ``add_material``.

        Returns:
            The index of the added entity.

        Raises:
            ValueError: If the material id is unknown or the shape is invalid.
            RuntimeError: If a storage capacity is exceeded.
        """
        entity_index = add_entity(shape, material_id)
        self.entities.append(
            EntityInfo(entity_index=entity_index, shape=shape, material_id=material_id)
        )
        return entity_index

    def add_circle(self, center: tuple[float, float], radius: float, material_id: int) -> int:
        """Add a circular entity."""
        return self.add_entity(CircleShape(center, radius), material_id)

    def add_polygon(self, points: list[tuple[float, float]], material_id: int) -> int:
        """Add a convex polygon entity.

        The points must be wound with the interior on the right of every
        directed edge.
        """
        return self.add_entity(PolygonShape(tuple(points)), material_id)

    def add_rectangle(
        self,
        center: tuple[float, float],
        theta: float,
        width: float,
        height: float,
        material_id: int,
    ) -> int:
        """Add a rotated rectangle entity."""
        return self.add_entity(PolygonShape.rectangle(center, theta, width, height), material_id)

    def add_ngon(
        self, center: tuple[float, float], radius: float, n: int, material_id: int
    ) -> int:
        """Add a regular n-gon entity."""
        return self.add_entity(PolygonShape.ngon(center, radius, n), material_id)

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_entity_count(self) -> int:
        """Get the number of entities in the scene."""
        return get_entity_count()

    def get_material_count(self) -> int:
        """Get the number of registered materials."""
        return len(self.materials)

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig()
        for info in self.materials:
            config.materials.append(info.material.to_dict())
        for entity in self.entities:
            config.entities.append(
                {"shape": shape_to_dict(entity.shape), "material_id": entity.material_id}
            )
        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Clears the current scene and loads the configuration.

        Raises:
            ValueError: If the configuration contains invalid data.
        """
        self.clear()

        # Materials first so entity material ids resolve
        for mat_config in config.materials:
            self.add_material(Material.from_dict(mat_config))

        for entity_config in config.entities:
            if "shape" not in entity_config:
                raise ValueError(f"Entity configuration has no shape: {entity_config!r}")
            shape = shape_from_dict(entity_config["shape"])
            self.add_entity(shape, int(entity_config.get("material_id", 0)))

        logger.info(
            "Loaded scene with %d materials and %d entities",
            len(self.materials),
            len(self.entities),
        )

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        config = self.to_config()
        return {"materials": config.materials, "entities": config.entities}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary with 'materials' and 'entities' keys."""
        config = SceneConfig(
            materials=data.get("materials", []),
            entities=data.get("entities", []),
        )
        self.from_config(config)

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_entities() -> int:
        """Get the maximum number of entities supported."""
        return MAX_ENTITIES

    @staticmethod
    def get_max_materials() -> int:
        """Get the maximum number of materials supported."""
        return MAX_MATERIALS
