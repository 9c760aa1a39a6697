"""Mirror (perfect specular) material.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from flatlight.materials.mirror import scatter_mirror
    >>> # Use within a Taichi kernel:
    >>> # direction, weight = scatter_mirror(incident, normal)
"""

import taichi as ti

from flatlight.core.vector import mirror_reflect, vec2


@ti.func
def scatter_mirror(incident: vec2, normal: vec2):
    """Reflect the incoming direction about the surface tangent.

    Works from either side of the surface; the result is deterministic.

    Args:
        incident: The incoming ray direction (normalized).
        normal: The surface normal (normalized).

    Returns:
        A tuple of (direction, weight) with weight 1.0.
    """
    return mirror_reflect(incident, normal), 1.0
