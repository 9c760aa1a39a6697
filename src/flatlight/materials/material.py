"""Material records, the material registry and scatter dispatch.

Every entity in a scene references one material by id. A material is a
flat record carrying its type tag plus the parameters any type may need:

    - LAMBERT: ideal diffuse reflector.
    - MIRROR: perfect specular reflector.
    - DIELECTRIC: refracting medium with index ``eta`` and per-channel
      ``absorptivity`` applied while the path travels inside it.
    - EMISSIVE: isotropic light source of colour ``emissivity``.
    - DIRECTIONAL_EMISSIVE: light source radiating only along its normal.

``sample_material`` is the single device-side entry point used by the
integrator. It returns a SampleResult that either continues the path
(``is_edge == 1``, with a new direction and scalar weight) or terminates
it with a colour.

Example:
    >>> from flatlight.materials.material import Material, add_material
    >>> glass_id = add_material(Material.dielectric(1.5))
    >>> light_id = add_material(Material.emissive((5.0, 5.0, 5.0)))
"""

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

import taichi as ti

from flatlight.core.vector import vec2, vec3
from flatlight.materials.dielectric import scatter_dielectric
from flatlight.materials.emissive import emit_directional, emit_emissive
from flatlight.materials.lambert import scatter_lambert
from flatlight.materials.mirror import scatter_mirror

logger = logging.getLogger(__name__)


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Values are stored in Taichi fields and compared inside kernels.
    """

    LAMBERT = 0
    DIELECTRIC = 1
    MIRROR = 2
    EMISSIVE = 3
    DIRECTIONAL_EMISSIVE = 4


# Plain int copies for use inside Taichi functions
MATERIAL_LAMBERT = int(MaterialType.LAMBERT)
MATERIAL_DIELECTRIC = int(MaterialType.DIELECTRIC)
MATERIAL_MIRROR = int(MaterialType.MIRROR)
MATERIAL_EMISSIVE = int(MaterialType.EMISSIVE)
MATERIAL_DIRECTIONAL_EMISSIVE = int(MaterialType.DIRECTIONAL_EMISSIVE)


def _check_color(name: str, value: tuple[float, float, float]) -> tuple[float, float, float]:
    if len(value) != 3:
        raise ValueError(f"{name} must have 3 components, got {value!r}")
    color = (float(value[0]), float(value[1]), float(value[2]))
    if any(c < 0.0 for c in color):
        raise ValueError(f"{name} components must be non-negative, got {value!r}")
    return color


@dataclass(frozen=True)
class Material:
    """Host-side description of a material.

    Attributes:
        mtype: The material type.
        absorptivity: Per-channel absorption coefficient (dielectrics only).
        eta: Refractive index, at least 1.0 (dielectrics only).
        emissivity: Emitted RGB radiance (emitters only).
    """

    mtype: MaterialType
    absorptivity: tuple[float, float, float] = (0.0, 0.0, 0.0)
    eta: float = 1.0
    emissivity: tuple[float, float, float] = (0.0, 0.0, 0.0)

    def __post_init__(self) -> None:
        object.__setattr__(self, "mtype", MaterialType(self.mtype))
        object.__setattr__(self, "absorptivity", _check_color("absorptivity", self.absorptivity))
        object.__setattr__(self, "emissivity", _check_color("emissivity", self.emissivity))
        if self.eta < 1.0:
            raise ValueError(f"Refractive index must be >= 1.0, got {self.eta}")

    @classmethod
    def lambert(cls) -> "Material":
        return cls(MaterialType.LAMBERT)

    @classmethod
    def mirror(cls) -> "Material":
        return cls(MaterialType.MIRROR)

    @classmethod
    def dielectric(
        cls,
        eta: float,
        absorptivity: tuple[float, float, float] = (0.0, 0.0, 0.0),
    ) -> "Material":
        return cls(MaterialType.DIELECTRIC, absorptivity=absorptivity, eta=eta)

    @classmethod
    def emissive(cls, emissivity: tuple[float, float, float]) -> "Material":
        return cls(MaterialType.EMISSIVE, emissivity=emissivity)

    @classmethod
    def directional_emissive(cls, emissivity: tuple[float, float, float]) -> "Material":
        return cls(MaterialType.DIRECTIONAL_EMISSIVE, emissivity=emissivity)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        return {
            "type": self.mtype.name.lower(),
            "absorptivity": list(self.absorptivity),
            "eta": self.eta,
            "emissivity": list(self.emissivity),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Material":
        """Create a Material from a dictionary produced by ``to_dict``.

        Raises:
            ValueError: If the type name is unknown or a parameter is invalid.
        """
        type_name = str(data["type"]).upper()
        if type_name not in MaterialType.__members__:
            raise ValueError(f"Unknown material type: {data['type']!r}")
        return cls(
            MaterialType[type_name],
            absorptivity=tuple(data.get("absorptivity", (0.0, 0.0, 0.0))),
            eta=float(data.get("eta", 1.0)),
            emissivity=tuple(data.get("emissivity", (0.0, 0.0, 0.0))),
        )


# =============================================================================
# Material Registry
# =============================================================================

MAX_MATERIALS = 256

# Structure of Arrays layout, indexed by material id
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_absorptivity = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
material_eta = ti.field(dtype=ti.f32, shape=MAX_MATERIALS)
material_emissivity = ti.Vector.field(3, dtype=ti.f32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_materials() -> None:
    """Clear all registered materials."""
    num_materials[None] = 0


def add_material(material: Material) -> int:
    """Register a material and return its id.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    idx = num_materials[None]
    if idx >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    material_types[idx] = int(material.mtype)
    material_absorptivity[idx] = list(material.absorptivity)
    material_eta[idx] = material.eta
    material_emissivity[idx] = list(material.emissivity)
    num_materials[None] = idx + 1
    logger.debug("Registered material %d: %s", idx, material.mtype.name)
    return idx


def get_material_count() -> int:
    """Get the number of registered materials."""
    return int(num_materials[None])


def get_material(material_id: int) -> Material:
    """Read a registered material back from the device fields.

    Raises:
        IndexError: If the id is not registered.
    """
    if not 0 <= material_id < num_materials[None]:
        raise IndexError(f"Material id {material_id} is not registered")
    absorptivity = material_absorptivity[material_id]
    emissivity = material_emissivity[material_id]
    return Material(
        MaterialType(int(material_types[material_id])),
        absorptivity=(float(absorptivity[0]), float(absorptivity[1]), float(absorptivity[2])),
        eta=float(material_eta[material_id]),
        emissivity=(float(emissivity[0]), float(emissivity[1]), float(emissivity[2])),
    )


# =============================================================================
# Scatter Dispatch
# =============================================================================


@ti.dataclass
class SampleResult:
    """Outcome of sampling a material at a surface contact.

    Attributes:
        is_edge: 1 if the path continues, 0 if it terminates here.
        direction: The new direction (valid if is_edge == 1).
        weight: Scalar throughput factor (valid if is_edge == 1).
        color: Terminal radiance (valid if is_edge == 0).
    """

    is_edge: ti.i32
    direction: vec2
    weight: ti.f32
    color: vec3


@ti.func
def make_terminal(color: vec3) -> SampleResult:
    return SampleResult(is_edge=0, direction=vec2(0.0, 0.0), weight=0.0, color=color)


@ti.func
def make_edge(direction: vec2, weight: ti.f32) -> SampleResult:
    return SampleResult(is_edge=1, direction=direction, weight=weight, color=vec3(0.0, 0.0, 0.0))


@ti.func
def sample_material(material_id: ti.i32, incident: vec2, normal: vec2) -> SampleResult:
    """Sample the material at a surface contact.

    Args:
        material_id: Registered material id.
        incident: The incoming ray direction (normalized).
        normal: The outward surface normal at the contact (normalized).

    Returns:
        A SampleResult describing either the continuing path segment or
        the terminal colour.
    """
    mtype = material_types[material_id]
    result = make_terminal(vec3(0.0, 0.0, 0.0))

    if mtype == MATERIAL_LAMBERT:
        direction, weight, did_scatter = scatter_lambert(incident, normal)
        if did_scatter == 1:
            result = make_edge(direction, weight)
    elif mtype == MATERIAL_MIRROR:
        direction, weight = scatter_mirror(incident, normal)
        result = make_edge(direction, weight)
    elif mtype == MATERIAL_DIELECTRIC:
        direction, weight = scatter_dielectric(material_eta[material_id], incident, normal)
        result = make_edge(direction, weight)
    elif mtype == MATERIAL_EMISSIVE:
        result = make_terminal(emit_emissive(material_emissivity[material_id]))
    elif mtype == MATERIAL_DIRECTIONAL_EMISSIVE:
        result = make_terminal(
            emit_directional(material_emissivity[material_id], incident, normal)
        )

    return result
