"""Ray and parameter-interval data structures.

A ray is the half-line ``origin + t * direction``; an interval bounds the
values of ``t`` that count as a hit. The lower bound is kept slightly above
zero (``T_MIN``) so a ray leaving a surface does not immediately re-hit it
("shadow acne"), and the upper bound shrinks as closer hits are found.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumentrace.core.ray import Ray, make_interval, ray_at
    >>> # Inside a Taichi kernel:
    >>> # ray = Ray(origin=vec3(0, 0, 0), direction=vec3(0, 0, -1))
    >>> # point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Smallest accepted hit distance for secondary rays
T_MIN = 1e-3

# Effectively unbounded far distance
T_MAX = 1e10


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to
            be unit length.
    """

    origin: vec3
    direction: vec3


@ti.dataclass
class Interval:
    """Open range of accepted ray parameters ``(t_min, t_max)``."""

    t_min: ti.f32
    t_max: ti.f32


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    return Ray(origin=origin, direction=direction)


@ti.func
def make_interval(t_min: ti.f32, t_max: ti.f32) -> Interval:
    return Interval(t_min=t_min, t_max=t_max)


@ti.func
def interval_contains(interval: Interval, t: ti.f32) -> ti.i32:
    """1 if ``t_min <= t <= t_max``."""
    return interval.t_min <= t and t <= interval.t_max


@ti.func
def interval_surrounds(interval: Interval, t: ti.f32) -> ti.i32:
    """1 if ``t_min < t < t_max``; hit tests use this strict form."""
    return interval.t_min < t and t < interval.t_max
