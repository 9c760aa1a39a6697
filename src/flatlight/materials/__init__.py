"""Materials module for light scattering at surfaces.

Components:
    lambert: Ideal diffuse reflection
    mirror: Perfect specular reflection
    dielectric: Refraction with Fresnel reflectance and Beer-Lambert absorption
    emissive: Isotropic and directional light sources
    material: Material records, registry and the sample_material dispatch

Each sampling call yields either a continuation (direction and weight) or
a terminal colour, see SampleResult.
"""

from .dielectric import beer_lambert, fresnel_reflectance, scatter_dielectric, will_reflect
from .emissive import emit_directional, emit_emissive
from .lambert import scatter_lambert
from .material import (
    MAX_MATERIALS,
    Material,
    MaterialType,
    SampleResult,
    add_material,
    clear_materials,
    get_material,
    get_material_count,
    sample_material,
)
from .mirror import scatter_mirror

__all__ = [
    "Material",
    "MaterialType",
    "SampleResult",
    "MAX_MATERIALS",
    "add_material",
    "clear_materials",
    "get_material",
    "get_material_count",
    "sample_material",
    "scatter_lambert",
    "scatter_mirror",
    "scatter_dielectric",
    "fresnel_reflectance",
    "will_reflect",
    "beer_lambert",
    "emit_emissive",
    "emit_directional",
]
