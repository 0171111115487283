"""Scene-level primitive intersection testing.

The scene is an ordered list of primitives. Each entry records its
geometry kind (sphere, quad, plane), the index of its data in the
kind-specific storage and the material ID assigned to it. Geometry data
is kept in Structure-of-Arrays Taichi fields.

``intersect_scene`` walks the list in insertion order, shrinking the
interval's upper bound to the closest hit found so far, and returns the
nearest hit tagged with the primitive's material ID. Because the bound is
exclusive, the earlier primitive wins a tie at equal t.

A primitive may carry an affine transform. Its inverse is stored per slot;
the ray is carried into object space, intersected with the untransformed
shape, and the hit point and normal are carried back to world space. The
ray parameter t is the same in both spaces because the object-space
direction is not renormalized.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumentrace.scene.intersection import (
    ...     add_sphere, add_quad, intersect_scene, clear_scene
    ... )
    >>> clear_scene()
    >>> add_sphere(vec3(0, 0, -1), 0.5, material_id=0)
    >>> add_quad(vec3(-1, -0.5, -2), vec3(2, 0, 0), vec3(0, 1, 0), material_id=1)
    >>> # Use intersect_scene within a Taichi kernel
"""

import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from lumentrace.core.ray import Interval, Ray, make_interval, ray_at
from lumentrace.core.transform import (
    identity,
    inverse,
    is_identity,
    to_ti_mat4,
    transform_normal,
    transform_point,
    transform_vector,
)
from lumentrace.geometry import GeometryKind
from lumentrace.geometry.hit_record import HitRecord, make_miss_record, set_face_normal
from lumentrace.geometry.plane import Plane, hit_plane
from lumentrace.geometry.quad import Quad, hit_quad
from lumentrace.geometry.sphere import Sphere, hit_sphere

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


# Maximum number of primitives supported in the scene
MAX_SPHERES = 1024
MAX_QUADS = 1024
MAX_PLANES = 64
MAX_PRIMITIVES = MAX_SPHERES + MAX_QUADS + MAX_PLANES

# Ordered primitive table
primitive_kinds = ti.field(dtype=ti.i32, shape=MAX_PRIMITIVES)
primitive_indices = ti.field(dtype=ti.i32, shape=MAX_PRIMITIVES)
primitive_material_ids = ti.field(dtype=ti.i32, shape=MAX_PRIMITIVES)
# Inverse object transform per slot; has_transform == 0 means identity
primitive_inv_transforms = ti.Matrix.field(4, 4, dtype=ti.f32, shape=MAX_PRIMITIVES)
primitive_has_transform = ti.field(dtype=ti.i32, shape=MAX_PRIMITIVES)
num_primitives = ti.field(dtype=ti.i32, shape=())

# Sphere storage: Structure of Arrays layout
sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())

# Quad storage: quad_corners stores the Q (corner point) of each quad
quad_corners = ti.Vector.field(3, dtype=ti.f32, shape=MAX_QUADS)
quad_edge_u = ti.Vector.field(3, dtype=ti.f32, shape=MAX_QUADS)
quad_edge_v = ti.Vector.field(3, dtype=ti.f32, shape=MAX_QUADS)
num_quads = ti.field(dtype=ti.i32, shape=())

# Plane storage
plane_points = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PLANES)
plane_normals = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PLANES)
num_planes = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all primitives from the scene.

    Resets the primitive counts to zero. The actual field data is not
    cleared but will be overwritten when new primitives are added.
    """
    num_primitives[None] = 0
    num_spheres[None] = 0
    num_quads[None] = 0
    num_planes[None] = 0


def _append_primitive(
    kind: GeometryKind,
    index: int,
    material_id: int,
    transform: npt.ArrayLike | None,
) -> int:
    slot = num_primitives[None]
    if slot >= MAX_PRIMITIVES:
        raise RuntimeError(f"Maximum number of primitives ({MAX_PRIMITIVES}) exceeded")

    if transform is None or is_identity(transform):
        primitive_inv_transforms[slot] = to_ti_mat4(identity())
        primitive_has_transform[slot] = 0
    else:
        primitive_inv_transforms[slot] = to_ti_mat4(inverse(transform))
        primitive_has_transform[slot] = 1

    primitive_kinds[slot] = int(kind)
    primitive_indices[slot] = index
    primitive_material_ids[slot] = material_id
    num_primitives[None] = slot + 1
    return slot


def add_sphere(
    center: vec3,
    radius: float,
    material_id: int = 0,
    transform: npt.ArrayLike | None = None,
) -> int:
    """Add a sphere to the scene.

    Args:
        center: The center point of the sphere in object space.
        radius: The radius of the sphere (should be positive).
        material_id: The material ID to associate with this sphere.
        transform: Optional 4x4 object-to-world transform.

    Returns:
        The index of the added sphere.

    Raises:
        RuntimeError: If the maximum number of spheres is exceeded.
        ValueError: If the transform is not an invertible affine matrix.
    """
    idx = num_spheres[None]
    if idx >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")
    _append_primitive(GeometryKind.SPHERE, idx, material_id, transform)
    sphere_centers[idx] = center
    sphere_radii[idx] = radius
    num_spheres[None] = idx + 1
    return idx


def add_quad(
    q: vec3,
    u: vec3,
    v: vec3,
    material_id: int = 0,
    transform: npt.ArrayLike | None = None,
) -> int:
    """Add a quad to the scene.

    The quad represents a parallelogram with vertices at Q, Q+u, Q+v, Q+u+v.

    Args:
        q: The corner point of the quad.
        u: Edge vector from q to adjacent corner.
        v: Edge vector from q to other adjacent corner.
        material_id: The material ID to associate with this quad.
        transform: Optional 4x4 object-to-world transform.

    Returns:
        The index of the added quad.

    Raises:
        RuntimeError: If the maximum number of quads is exceeded.
        ValueError: If the transform is not an invertible affine matrix.
    """
    idx = num_quads[None]
    if idx >= MAX_QUADS:
        raise RuntimeError(f"Maximum number of quads ({MAX_QUADS}) exceeded")
    _append_primitive(GeometryKind.QUAD, idx, material_id, transform)
    quad_corners[idx] = q
    quad_edge_u[idx] = u
    quad_edge_v[idx] = v
    num_quads[None] = idx + 1
    return idx


def add_plane(
    point: vec3,
    normal: vec3,
    material_id: int = 0,
    transform: npt.ArrayLike | None = None,
) -> int:
    """Add an infinite plane to the scene.

    Args:
        point: Any point on the plane.
        normal: Unit outward normal of the plane.
        material_id: The material ID to associate with this plane.
        transform: Optional 4x4 object-to-world transform.

    Returns:
        The index of the added plane.

    Raises:
        RuntimeError: If the maximum number of planes is exceeded.
        ValueError: If the transform is not an invertible affine matrix.
    """
    idx = num_planes[None]
    if idx >= MAX_PLANES:
        raise RuntimeError(f"Maximum number of planes ({MAX_PLANES}) exceeded")
    _append_primitive(GeometryKind.PLANE, idx, material_id, transform)
    plane_points[idx] = point
    plane_normals[idx] = normal
    num_planes[None] = idx + 1
    return idx


def get_sphere_count() -> int:
    """Get the number of spheres in the scene."""
    return int(num_spheres[None])


def get_quad_count() -> int:
    """Get the number of quads in the scene."""
    return int(num_quads[None])


def get_plane_count() -> int:
    """Get the number of planes in the scene."""
    return int(num_planes[None])


def get_primitive_count() -> int:
    """Get the total number of primitives in the scene."""
    return int(num_primitives[None])


@ti.func
def hit_primitive(slot: ti.i32, ray: Ray, interval: Interval) -> HitRecord:
    """Intersect a ray with one entry of the primitive table.

    Dispatches on the entry's GeometryKind, carrying the ray into object
    space first when the entry is transformed, and stamps the entry's
    material ID onto a successful hit.
    """
    kind = primitive_kinds[slot]
    idx = primitive_indices[slot]
    has_transform = primitive_has_transform[slot]
    inv = primitive_inv_transforms[slot]

    local_ray = ray
    if has_transform == 1:
        local_ray = Ray(
            origin=transform_point(inv, ray.origin),
            direction=transform_vector(inv, ray.direction),
        )

    rec = make_miss_record()
    if kind == int(GeometryKind.SPHERE):
        sphere = Sphere(center=sphere_centers[idx], radius=sphere_radii[idx])
        rec = hit_sphere(local_ray, sphere, interval)
    elif kind == int(GeometryKind.QUAD):
        quad = Quad(Q=quad_corners[idx], u=quad_edge_u[idx], v=quad_edge_v[idx])
        rec = hit_quad(local_ray, quad, interval)
    elif kind == int(GeometryKind.PLANE):
        plane = Plane(point=plane_points[idx], normal=plane_normals[idx])
        rec = hit_plane(local_ray, plane, interval)

    if rec.hit == 1:
        rec.material_id = primitive_material_ids[slot]
        if has_transform == 1:
            outward = rec.normal
            if rec.front_face == 0:
                outward = -rec.normal
            normal, front_face = set_face_normal(ray, transform_normal(inv, outward))
            rec.point = ray_at(ray, rec.t)
            rec.normal = normal
            rec.front_face = front_face
    return rec


@ti.func
def intersect_scene(ray: Ray, interval: Interval) -> HitRecord:
    """Test ray against all primitives in the scene.

    Args:
        ray: The ray to trace.
        interval: Open range of accepted ray parameters.

    Returns:
        The HitRecord with the smallest t inside the interval, or a miss
        record if nothing was hit (always a miss for an empty scene).
    """
    closest_t = interval.t_max
    result = make_miss_record()

    for slot in range(num_primitives[None]):
        rec = hit_primitive(slot, ray, make_interval(interval.t_min, closest_t))
        if rec.hit == 1:
            closest_t = rec.t
            result = rec

    return result
