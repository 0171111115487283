"""Sphere primitive with robust ray-sphere intersection.

The ray-sphere intersection is found by substituting the ray into the
sphere's implicit equation:

    |origin + t * direction - center|^2 = radius^2

which gives a*t^2 + 2*h*t + c = 0 with

    a = dot(direction, direction)
    h = dot(direction, oc)     (half of the traditional b)
    c = dot(oc, oc) - radius^2
    oc = origin - center

The roots are computed with the cancellation-free form from Ray Tracing
Gems (chapter 7). A discriminant that is zero or negative is reported as a
miss: tangent rays are not considered hits.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumentrace.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from lumentrace.core.ray import Interval, Ray, interval_surrounds, ray_at

from .hit_record import HitRecord, make_hit_record, make_miss_record, set_face_normal

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f32


@ti.func
def _solve_quadratic_robust(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Solve a*t^2 + 2*h*t + c = 0 without catastrophic cancellation.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of the (positive) discriminant h^2 - a*c.

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant))
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-10:
        # Fall back to standard formula for edge cases
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere, interval: Interval) -> HitRecord:
    """Find the nearest intersection of a ray with a sphere.

    Args:
        ray: The ray to test (direction need not be normalized).
        sphere: The sphere to test against.
        interval: Open range of accepted ray parameters.

    Returns:
        A HitRecord for the smaller root that lies inside the interval, or
        a miss record. The normal faces the incoming ray.
    """
    oc = ray.origin - sphere.center
    a = tm.dot(ray.direction, ray.direction)
    h = tm.dot(ray.direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = h * h - a * c

    result = make_miss_record()

    if discriminant > 0.0 and a > 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0, t1 = _solve_quadratic_robust(h, a, c, sqrt_d)

        # Prefer the nearer root; fall back to the far one (ray inside)
        t = t0
        valid = interval_surrounds(interval, t)
        if not valid:
            t = t1
            valid = interval_surrounds(interval, t)

        if valid:
            point = ray_at(ray, t)
            outward_normal = (point - sphere.center) / sphere.radius
            normal, front_face = set_face_normal(ray, outward_normal)
            result = make_hit_record(t, point, normal, front_face)

    return result


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    return Sphere(center=center, radius=radius)
