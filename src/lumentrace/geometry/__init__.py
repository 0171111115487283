"""Geometry primitives and ray intersection.

Components:
    hit_record: HitRecord and front-face normal orientation
    sphere: Sphere primitive with ray-sphere intersection
    quad: Parallelogram primitive
    plane: Infinite plane primitive

All intersection routines are Taichi functions (@ti.func) with the same
shape:

    rec = hit_shape(ray, shape, interval)

where ``interval`` is the open range of accepted ray parameters. The
scene stores one kind tag per primitive (see GeometryKind) and dispatches
on it.
"""

from enum import IntEnum

from .hit_record import HitRecord, make_hit_record, make_miss_record, set_face_normal
from .plane import Plane, hit_plane, make_plane
from .quad import Quad, hit_quad, make_quad
from .sphere import Sphere, hit_sphere, make_sphere


class GeometryKind(IntEnum):
    """Tag identifying the primitive type of a scene object."""

    SPHERE = 0
    QUAD = 1
    PLANE = 2


__all__ = [
    "GeometryKind",
    "HitRecord",
    "set_face_normal",
    "make_hit_record",
    "make_miss_record",
    "Sphere",
    "hit_sphere",
    "make_sphere",
    "Quad",
    "hit_quad",
    "make_quad",
    "Plane",
    "hit_plane",
    "make_plane",
]
