"""Hit record shared by every primitive and the scene query.

The stored normal always faces the incoming ray. ``front_face`` remembers
whether that required flipping the geometric outward normal, which is what
the dielectric material uses to pick its refraction ratio.
"""

import taichi as ti
import taichi.math as tm

from lumentrace.core.ray import Ray

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class HitRecord:
    """Record of a ray-surface intersection.

    Attributes:
        hit: 1 if the ray intersected a surface, 0 on a miss. Other fields
            are only meaningful when hit == 1.
        t: The ray parameter of the intersection.
        point: The 3D intersection point in world space.
        local_point: The intersection point in the primitive's object
            space; equals ``point`` for untransformed primitives.
        normal: Unit surface normal, oriented against the incoming ray.
        front_face: 1 if the ray arrived from the outward side, 0 otherwise.
        material_id: Unified material ID of the surface (-1 if unassigned).
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    local_point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


@ti.func
def set_face_normal(ray: Ray, outward_normal: vec3):
    """Orient a geometric normal against the ray.

    Args:
        ray: The incoming ray.
        outward_normal: The unit normal pointing out of the surface.

    Returns:
        A tuple (normal, front_face) where ``dot(normal, ray.direction)``
        is never positive.
    """
    front_face = 1
    normal = outward_normal
    if tm.dot(ray.direction, outward_normal) >= 0.0:
        front_face = 0
        normal = -outward_normal
    return normal, front_face


@ti.func
def make_hit_record(t: ti.f32, point: vec3, normal: vec3, front_face: ti.i32) -> HitRecord:
    return HitRecord(
        hit=1,
        t=t,
        point=point,
        local_point=point,
        normal=normal,
        front_face=front_face,
        material_id=-1,
    )


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        local_point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )
