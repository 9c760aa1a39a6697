"""Demonstration scene exercising every material and shape combinator.

The scene lives in the unit square (y pointing down) and contains:
- A bright circular light near the top
- A biconvex glass lens built as the intersection of two circles, with a
  blue-tinting absorption
- A triangular glass prism
- A directional light strip on the left wall, aimed across the scene
- A mirror bar along the bottom
- Two rotated diffuse blocks, one of them a union of two rectangles

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from flatlight.scene.demo import create_demo_scene
    >>> scene, viewport = create_demo_scene()
"""

import logging
import math
from dataclasses import dataclass

from flatlight.camera.viewport import Viewport
from flatlight.geometry.csg import CircleShape, IntersectionShape, PolygonShape, UnionShape
from flatlight.materials.material import Material
from flatlight.scene.manager import SceneManager

logger = logging.getLogger(__name__)


@dataclass
class DemoParams:
    """Parameters for configuring the demonstration scene.

    Attributes:
        light_intensity: Scale applied to ``light_color``.
        light_color: RGB colour of the main light.
        directional_intensity: Radiance of the directional strip.
        lens_eta: Refractive index of the lens.
        lens_absorptivity: Per-channel absorption inside the lens.
        prism_eta: Refractive index of the prism.
    """

    light_intensity: float = 6.0
    light_color: tuple[float, float, float] = (1.0, 0.95, 0.85)
    directional_intensity: float = 4.0
    lens_eta: float = 1.5
    lens_absorptivity: tuple[float, float, float] = (4.0, 2.0, 0.5)
    prism_eta: float = 1.7


def create_demo_scene(params: DemoParams | None = None) -> tuple[SceneManager, Viewport]:
    """Build the demonstration scene.

    Args:
        params: Optional DemoParams; defaults are used when None.

    Returns:
        A tuple of (SceneManager, Viewport) where the viewport covers the
        unit square the scene is laid out in.
    """
    if params is None:
        params = DemoParams()

    scene = SceneManager()

    light = scene.add_material(
        Material.emissive(tuple(params.light_intensity * c for c in params.light_color))
    )
    beam = scene.add_material(
        Material.directional_emissive((params.directional_intensity,) * 3)
    )
    lens_glass = scene.add_material(
        Material.dielectric(params.lens_eta, params.lens_absorptivity)
    )
    prism_glass = scene.add_material(Material.dielectric(params.prism_eta))
    mirror = scene.add_material(Material.mirror())
    diffuse = scene.add_material(Material.lambert())

    scene.add_circle((0.5, 0.12), 0.06, light)
    scene.add_rectangle((0.03, 0.45), 0.0, 0.02, 0.2, beam)

    lens = IntersectionShape(
        CircleShape((0.18, 0.45), 0.2),
        CircleShape((0.42, 0.45), 0.2),
    )
    scene.add_entity(lens, lens_glass)
    scene.add_ngon((0.7, 0.45), 0.12, 3, prism_glass)

    scene.add_rectangle((0.5, 0.95), 0.0, 0.8, 0.03, mirror)

    scene.add_rectangle((0.2, 0.78), math.radians(20.0), 0.12, 0.08, diffuse)
    block = UnionShape(
        PolygonShape.rectangle((0.8, 0.78), -math.radians(15.0), 0.14, 0.05),
        PolygonShape.rectangle((0.8, 0.78), -math.radians(15.0), 0.05, 0.14),
    )
    scene.add_entity(block, diffuse)

    logger.info(
        "Demo scene built: %d materials, %d entities",
        scene.get_material_count(),
        scene.get_entity_count(),
    )
    return scene, Viewport()
