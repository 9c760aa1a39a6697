"""Dielectric (glass/water) material implementation.

This module implements the dielectric scatter, which models transparent
materials such as glass with refraction, Fresnel reflectance and
Beer-Lambert absorption inside the medium.

Key physics:
    - Vector form of Snell's law for refraction
    - Unpolarized Fresnel reflectance from the exact s/p equations
    - Total internal reflection when no transmitted ray exists

The scatter works in the local (tangent, normal) frame. The sign of the
local y component picks the relative index: a ray travelling against the
outward normal uses ``eta``, and a ray travelling along it uses ``1 / eta``
with the local normal negated. Circle hits report the far root, so a ray
arriving at a circle from outside takes the ``1 / eta`` branch. Flipping the
frame lets the same refraction formula serve both sides.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from flatlight.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, weight = scatter_dielectric(eta, incident, normal)
"""

import taichi as ti

from flatlight.core.vector import (
    fresnel_dielectric,
    from_local,
    refract,
    to_local,
    vec2,
    vec3,
)


@ti.func
def _relative_eta(eta: ti.f32, local_incident: vec2):
    """Return (flip, eta_r) for a ray given in the local frame.

    ``flip`` is 1.0 when the ray travels against the normal and -1.0 when
    it travels along it.
    """
    flip = 1.0
    eta_r = eta
    if local_incident.y > 0.0:
        flip = -1.0
        eta_r = 1.0 / eta
    return flip, eta_r


@ti.func
def scatter_dielectric(eta: ti.f32, incident: vec2, normal: vec2):
    """Compute the scattered direction for a dielectric surface.

    The choice between reflection and refraction is made stochastically
    with probability equal to the Fresnel reflectance. Under total internal
    reflection the ray always reflects. With ``eta == 1`` the transmitted
    direction equals the incoming one.

    Args:
        eta: Refractive index of the medium (>= 1).
        incident: The incoming ray direction (normalized).
        normal: The outward surface normal (normalized).

    Returns:
        A tuple of (direction, weight) with weight 1.0.
    """
    local = to_local(incident, normal)
    flip, eta_r = _relative_eta(eta, local)

    # In the flipped frame the ray always travels toward -y
    w = vec2(local.x, flip * local.y)
    reflectance = fresnel_dielectric(-w.y, eta_r)
    refracted, ok = refract(w, vec2(0.0, 1.0), eta_r)

    out = vec2(w.x, -w.y)
    if ok == 1 and ti.random(ti.f32) >= reflectance:
        out = refracted

    return from_local(vec2(out.x, flip * out.y), normal), 1.0


@ti.func
def will_reflect(eta: ti.f32, incident: vec2, normal: vec2) -> ti.i32:
    """Return 1 if the ray is totally internally reflected."""
    local = to_local(incident, normal)
    flip, eta_r = _relative_eta(eta, local)
    cos_i = -flip * local.y
    k = 1.0 - eta_r * eta_r * (1.0 - cos_i * cos_i)
    return 1 if k < 0.0 else 0


@ti.func
def fresnel_reflectance(eta: ti.f32, incident: vec2, normal: vec2) -> ti.f32:
    """Fresnel reflectance seen by ``incident`` at the surface."""
    local = to_local(incident, normal)
    flip, eta_r = _relative_eta(eta, local)
    return fresnel_dielectric(-flip * local.y, eta_r)


@ti.func
def beer_lambert(absorptivity: vec3, distance: ti.f32) -> vec3:
    """Per-channel transmittance ``exp(-absorptivity * distance)``."""
    return ti.exp(-absorptivity * distance)
