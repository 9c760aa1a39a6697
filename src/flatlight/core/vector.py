"""2D vector utilities for light transport in the plane.

This module provides the small vector toolkit every other module builds on:
cross products, the tangent/normal surface frame, specular reflection,
vector refraction, Fresnel reflectance and the random direction samplers
used by the path integrator. All operations are Taichi functions meant to
be called from inside kernels.

Conventions:
    - Directions are unit ``vec2`` values.
    - A surface normal ``n`` defines the tangent ``t = (n.y, -n.x)``, a
      clockwise quarter turn of ``n``. The pair ``(t, n)`` is the local
      surface frame: local x runs along ``t``, local y along ``n``.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from flatlight.core.vector import mirror_reflect, vec2
    >>> # Inside a Taichi kernel:
    >>> # wo = mirror_reflect(vec2(1.0, -1.0).normalized(), vec2(0.0, 1.0))
"""

import taichi as ti
import taichi.math as tm

# Type aliases for 2D geometry and RGB colour
vec2 = tm.vec2
vec3 = tm.vec3


@ti.func
def cross2(a: vec2, b: vec2) -> ti.f32:
    """Compute the scalar 2D cross product ``a.x * b.y - a.y * b.x``.

    Positive when ``b`` lies counter-clockwise of ``a`` in a y-up frame.
    """
    return a.x * b.y - a.y * b.x


@ti.func
def length_squared(v: vec2) -> ti.f32:
    """Squared Euclidean length of a vector."""
    return tm.dot(v, v)


@ti.func
def perpendicular(normal: vec2) -> vec2:
    """Return the surface tangent ``(n.y, -n.x)`` for a normal ``n``."""
    return vec2(normal.y, -normal.x)


@ti.func
def to_local(v: vec2, normal: vec2) -> vec2:
    """Express ``v`` in the (tangent, normal) frame of a surface.

    Args:
        v: A direction in world coordinates.
        normal: The unit surface normal.

    Returns:
        ``(v . t, v . n)`` where ``t`` is the tangent of ``normal``.
    """
    tangent = perpendicular(normal)
    return vec2(tm.dot(tangent, v), tm.dot(normal, v))


@ti.func
def from_local(v: vec2, normal: vec2) -> vec2:
    """Map a local (tangent, normal) direction back to world coordinates.

    The result is renormalized to keep the unit-length invariant despite
    rounding.
    """
    tangent = perpendicular(normal)
    return tm.normalize(v.x * tangent + v.y * normal)


@ti.func
def mirror_reflect(incident: vec2, normal: vec2) -> vec2:
    """Reflect a direction about the surface tangent.

    Computes ``wo = (t . wi) t - (n . wi) n``: the tangential component is
    kept and the normal component is flipped. Reflecting twice about the
    same normal returns the original direction.

    Args:
        incident: The incoming direction (unit length).
        normal: The unit surface normal.

    Returns:
        The specularly reflected direction.
    """
    tangent = perpendicular(normal)
    return tm.dot(tangent, incident) * tangent - tm.dot(normal, incident) * normal


@ti.func
def refract(incident: vec2, normal: vec2, eta: ti.f32):
    """Refract a direction through an interface with the vector formula.

    Computes ``wo = eta * wi - (eta * (n . wi) + sqrt(k)) * n`` with
    ``k = 1 - eta^2 * (1 - (n . wi)^2)``. The normal must face the incoming
    ray (``n . wi <= 0``).

    Args:
        incident: The incoming direction (unit length).
        normal: The unit normal on the incident side of the interface.
        eta: Ratio of refractive indices, incident over transmitted.

    Returns:
        A tuple ``(direction, ok)``. ``ok`` is 0 under total internal
        reflection (``k < 0``), in which case ``direction`` is zero.
    """
    cos_dot = tm.dot(normal, incident)
    k = 1.0 - eta * eta * (1.0 - cos_dot * cos_dot)
    direction = vec2(0.0, 0.0)
    ok = 0
    if k >= 0.0:
        direction = tm.normalize(eta * incident - (eta * cos_dot + ti.sqrt(k)) * normal)
        ok = 1
    return direction, ok


@ti.func
def fresnel_dielectric(cos_incident: ti.f32, eta: ti.f32) -> ti.f32:
    """Unpolarized Fresnel reflectance of a dielectric interface.

    Averages the s- and p-polarized reflectances computed from the incident
    and transmitted angle cosines. Returns 1.0 when no transmitted ray
    exists (total internal reflection or exact grazing).

    Args:
        cos_incident: Cosine between the incoming ray and the normal, in [0, 1].
        eta: Ratio of refractive indices, incident over transmitted.

    Returns:
        The reflectance in [0, 1].
    """
    k = 1.0 - eta * eta * (1.0 - cos_incident * cos_incident)
    reflectance = 1.0
    if k > 0.0:
        cos_transmitted = ti.sqrt(k)
        rs = (eta * cos_incident - cos_transmitted) / (eta * cos_incident + cos_transmitted)
        rp = (cos_incident - eta * cos_transmitted) / (cos_incident + eta * cos_transmitted)
        reflectance = 0.5 * (rs * rs + rp * rp)
    return reflectance


@ti.func
def direction_from_angle(angle: ti.f32) -> vec2:
    """Unit direction ``(cos a, sin a)``."""
    return vec2(ti.cos(angle), ti.sin(angle))


@ti.func
def sample_lobe_direction(normal: vec2) -> vec2:
    """Sample the 2D diffuse lobe around a normal.

    Draws ``sin(theta) = 2 * xi - 1`` with ``xi ~ U(0, 1)``, so theta lies in
    [-pi/2, pi/2] measured from the normal and the density is proportional to
    ``cos(theta)``: the 2D analogue of cosine-weighted hemisphere sampling.

    Args:
        normal: The unit normal the lobe is centred on.

    Returns:
        A unit direction with non-negative component along ``normal``.
    """
    sin_theta = 2.0 * ti.random(ti.f32) - 1.0
    cos_theta = ti.sqrt(tm.max(0.0, 1.0 - sin_theta * sin_theta))
    return from_local(vec2(sin_theta, cos_theta), normal)
