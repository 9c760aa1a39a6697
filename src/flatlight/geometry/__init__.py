"""Geometry module for shape primitives and CSG.

Components:
    circle: Circle primitive, ShapeHit record and circle storage
    polygon: Convex polygon primitive, vertex pool and rectangle/ngon helpers
    csg: Shape descriptions compiled to post-order node programs

All intersection and containment routines are Taichi functions. Shapes
follow the pattern:
    rec = intersect_shape(ray_origin, ray_direction, first, root, t_min)
    inside = is_inside_shape(point, first, root)
"""

from .circle import Circle, ShapeHit, add_circle, clear_circles, hit_circle, inside_circle
from .csg import (
    MAX_SHAPE_STACK,
    CircleShape,
    IntersectionShape,
    PolygonShape,
    Shape,
    ShapeKind,
    UnionShape,
    clear_shapes,
    compile_shape,
    intersect_shape,
    is_inside_shape,
    shape_from_dict,
    shape_to_dict,
)
from .polygon import add_polygon, clear_polygons, hit_polygon, inside_polygon, ngon, rectangle

__all__ = [
    # Circle
    "Circle",
    "ShapeHit",
    "hit_circle",
    "inside_circle",
    "add_circle",
    "clear_circles",
    # Polygon
    "hit_polygon",
    "inside_polygon",
    "add_polygon",
    "clear_polygons",
    "rectangle",
    "ngon",
    # CSG
    "Shape",
    "ShapeKind",
    "CircleShape",
    "PolygonShape",
    "UnionShape",
    "IntersectionShape",
    "MAX_SHAPE_STACK",
    "compile_shape",
    "clear_shapes",
    "intersect_shape",
    "is_inside_shape",
    "shape_to_dict",
    "shape_from_dict",
]
