"""Core rendering module.

Components:
    vector: 2D vector helpers, reflection, refraction, Fresnel, sampling
    integrator: Path tracer, radiance estimator and render target
    progressive: Pass-by-pass accumulation wrapper
    config: RenderConfig and Taichi initialization

Only ``vector`` is re-exported here. ``integrator`` and ``progressive``
allocate Taichi fields, so import them directly once Taichi is
initialized:
    from flatlight.core.progressive import ProgressiveRenderer
"""

from .vector import (
    cross2,
    direction_from_angle,
    fresnel_dielectric,
    from_local,
    length_squared,
    mirror_reflect,
    perpendicular,
    refract,
    sample_lobe_direction,
    to_local,
    vec2,
    vec3,
)

__all__ = [
    "vec2",
    "vec3",
    "cross2",
    "length_squared",
    "perpendicular",
    "to_local",
    "from_local",
    "mirror_reflect",
    "refract",
    "fresnel_dielectric",
    "direction_from_angle",
    "sample_lobe_direction",
]
