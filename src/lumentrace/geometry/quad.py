"""Quad primitive with ray-quad intersection.

A quad is defined by:
- Q: A corner point of the quad
- u: Edge vector from Q to adjacent corner
- v: Edge vector from Q to other adjacent corner

The quad spans the parallelogram from Q to Q+u+v. Its outward normal is
normalize(cross(u, v)) (right-hand rule).

Ray-quad intersection uses the parametric plane test:
1. Find where ray intersects the plane containing the quad
2. Check if the intersection point lies within the quad bounds

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumentrace.geometry.quad import Quad, hit_quad
    >>> # Floor quad at y=0, spanning x=[0,1] and z=[0,1]
    >>> quad = Quad(
    ...     Q=ti.math.vec3(0, 0, 0),
    ...     u=ti.math.vec3(1, 0, 0),
    ...     v=ti.math.vec3(0, 0, 1)
    ... )
    >>> # Use hit_quad within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from lumentrace.core.ray import Interval, Ray, interval_surrounds, ray_at

from .hit_record import HitRecord, make_hit_record, make_miss_record, set_face_normal

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Rays whose direction is this close to the quad plane are treated as parallel
PARALLEL_EPSILON = 1e-8


@ti.dataclass
class Quad:
    """A quad (parallelogram) defined by a corner point and two edge vectors.

    Attributes:
        Q: The corner point of the quad (vec3).
        u: Edge vector from Q to adjacent corner (vec3).
        v: Edge vector from Q to other adjacent corner (vec3).
    """

    Q: vec3
    u: vec3
    v: vec3


@ti.func
def _compute_quad_frame(quad: Quad):
    """Compute the quad's plane normal and barycentric helper vectors.

    The intersection point P can be expressed as:
        P = Q + alpha * u + beta * v

    With n = u x v (unnormalized), the vectors
        w_u = (v x n) / dot(n, n)
        w_v = (n x u) / dot(n, n)
    satisfy alpha = dot(w_u, P - Q) and beta = dot(w_v, P - Q).

    Returns:
        Tuple of (normal, d, w_u, w_v) where d is the plane constant
        dot(normal, Q). Degenerate quads (parallel edges) get zero vectors.
    """
    n = tm.cross(quad.u, quad.v)
    n_dot_n = tm.dot(n, n)

    normal = vec3(0.0, 0.0, 0.0)
    w_u = vec3(0.0, 0.0, 0.0)
    w_v = vec3(0.0, 0.0, 0.0)

    if n_dot_n > 1e-10:
        normal = n / ti.sqrt(n_dot_n)
        w_u = tm.cross(quad.v, n) / n_dot_n
        w_v = tm.cross(n, quad.u) / n_dot_n

    d = tm.dot(normal, quad.Q)
    return normal, d, w_u, w_v


@ti.func
def hit_quad(ray: Ray, quad: Quad, interval: Interval) -> HitRecord:
    """Test for ray-quad intersection.

    Args:
        ray: The ray to test (direction need not be normalized).
        quad: The quad to test intersection against.
        interval: Open range of accepted ray parameters.

    Returns:
        A HitRecord for the plane hit if it lies inside the parallelogram
        and the interval, otherwise a miss record.
    """
    normal, d, w_u, w_v = _compute_quad_frame(quad)
    denom = tm.dot(normal, ray.direction)

    result = make_miss_record()

    if ti.abs(denom) > PARALLEL_EPSILON:
        t = (d - tm.dot(normal, ray.origin)) / denom

        if interval_surrounds(interval, t):
            point = ray_at(ray, t)
            p_minus_q = point - quad.Q
            alpha = tm.dot(w_u, p_minus_q)
            beta = tm.dot(w_v, p_minus_q)

            if alpha >= 0.0 and alpha <= 1.0 and beta >= 0.0 and beta <= 1.0:
                face_normal, front_face = set_face_normal(ray, normal)
                result = make_hit_record(t, point, face_normal, front_face)

    return result


@ti.func
def make_quad(q: vec3, u: vec3, v: vec3) -> Quad:
    return Quad(Q=q, u=u, v=v)

