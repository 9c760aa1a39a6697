"""Lambert (ideal diffuse) material.

In the plane, an ideal diffuse surface scatters into the half-circle on the
side the light came from, with density proportional to the cosine of the
angle from the normal. Sampling ``sin(theta) = 2 * xi - 1`` yields exactly
that density, so the path weight is a constant 1.0.

A ray reaching the surface from behind its normal (``wi . n >= 0``) is the
degenerate self-occlusion case and terminates the path with black.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from flatlight.materials.lambert import scatter_lambert
    >>> # Use within a Taichi kernel:
    >>> # direction, weight, did_scatter = scatter_lambert(incident, normal)
"""

import taichi as ti
import taichi.math as tm

from flatlight.core.vector import sample_lobe_direction, vec2


@ti.func
def scatter_lambert(incident: vec2, normal: vec2):
    """Sample an outgoing direction from a diffuse surface.

    Args:
        incident: The incoming ray direction (normalized, direction of travel).
        normal: The outward surface normal (normalized).

    Returns:
        A tuple of (direction, weight, did_scatter) where:
        - direction: The sampled direction on the outward side of ``normal``.
        - weight: Always 1.0.
        - did_scatter: 1 if the ray struck the front side, 0 otherwise.
    """
    direction = vec2(0.0, 0.0)
    weight = 0.0
    did_scatter = 0
    if tm.dot(incident, normal) < 0.0:
        direction = sample_lobe_direction(normal)
        weight = 1.0
        did_scatter = 1
    return direction, weight, did_scatter
