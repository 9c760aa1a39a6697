"""Emissive materials: isotropic and directional light sources.

Emitters terminate the path. An isotropic emitter returns its emissivity
for any incoming direction. A directional emitter only radiates along its
outward normal, so it contributes when the tracked ray hits it almost
exactly head-on (``wi . n < -DIRECTIONAL_COS``) and is black otherwise.
"""

import taichi as ti
import taichi.math as tm

from flatlight.core.vector import vec2, vec3

# Cosine threshold for a directional emitter to be seen
DIRECTIONAL_COS = 0.9999


@ti.func
def emit_emissive(emissivity: vec3) -> vec3:
    return emissivity


@ti.func
def emit_directional(emissivity: vec3, incident: vec2, normal: vec2) -> vec3:
    """Radiance of a directional emitter seen along ``incident``."""
    color = vec3(0.0, 0.0, 0.0)
    if tm.dot(incident, normal) < -DIRECTIONAL_COS:
        color = emissivity
    return color
