"""Infinite plane primitive.

A plane is stored as a point on it and a unit outward normal. Planes make
convenient ground surfaces: unlike a quad they have no edges for the
camera to see past.

A ray parallel to the plane (|dot(normal, direction)| below
``PARALLEL_EPSILON``) never hits it, including rays lying in the plane.
"""

import taichi as ti
import taichi.math as tm

from lumentrace.core.ray import Interval, Ray, interval_surrounds, ray_at

from .hit_record import HitRecord, make_hit_record, make_miss_record, set_face_normal

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

PARALLEL_EPSILON = 1e-6


@ti.dataclass
class Plane:
    """An infinite plane.

    Attributes:
        point: Any point on the plane (vec3).
        normal: Unit outward normal (vec3).
    """

    point: vec3
    normal: vec3


@ti.func
def hit_plane(ray: Ray, plane: Plane, interval: Interval) -> HitRecord:
    """Intersect a ray with an infinite plane.

    Solves dot(normal, origin + t * direction - point) = 0 for t.

    Args:
        ray: The ray to test.
        plane: The plane to test against.
        interval: Open range of accepted ray parameters.

    Returns:
        A HitRecord if the crossing lies inside the interval, else a miss.
    """
    denom = tm.dot(plane.normal, ray.direction)
    result = make_miss_record()

    if ti.abs(denom) >= PARALLEL_EPSILON:
        t = tm.dot(plane.point - ray.origin, plane.normal) / denom
        if interval_surrounds(interval, t):
            point = ray_at(ray, t)
            normal, front_face = set_face_normal(ray, plane.normal)
            result = make_hit_record(t, point, normal, front_face)

    return result


@ti.func
def make_plane(point: vec3, normal: vec3) -> Plane:
    return Plane(point=point, normal=normal)
