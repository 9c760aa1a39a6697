"""Two-dimensional Monte Carlo light transport on Taichi.

flatlight estimates, for every point of an image plane, the radiance that
arrives from all directions by tracing light paths through a scene of
circles, convex polygons and their boolean combinations.

Subpackages:
    core: Vector helpers, path integrator, progressive renderer, config
    geometry: Circle and polygon primitives, CSG shape programs
    materials: Lambert, mirror, dielectric and emissive materials
    scene: Entity storage, scene manager and the demo scene
    camera: Pixel to image-plane mapping
    preview: Tone mapping, PNG export and Matplotlib preview

Modules that allocate Taichi fields (everything except ``core.vector``,
``core.config``, ``logconfig`` and ``preview``) must be imported after
``ti.init``.
"""

__version__ = "0.1.0"
