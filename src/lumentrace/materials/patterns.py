"""Stripe and checker color patterns for diffuse surfaces.

A pattern alternates between two colors ``a`` and ``b`` as a function of
a point in pattern space, scaled by ``scale`` (the width of one band or
cell):

- SOLID: always ``a``.
- STRIPE: ``a`` where ``floor(x / scale)`` is even, otherwise ``b``.
- CHECKER: ``a`` where ``floor(x/s) + floor(y/s) + floor(z/s)`` is even,
  otherwise ``b``.

Cell parity is computed in floating point, so negative cells alternate the
same way as positive ones and far-away points never overflow an integer
cell index. Beyond 2**24 every f32 cell index is even.
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors
vec3 = tm.vec3


class PatternType(IntEnum):
    SOLID = 0
    STRIPE = 1
    CHECKER = 2


@ti.func
def _parity(x: ti.f32, scale: ti.f32) -> ti.f32:
    """0.0 for an even cell index, 1.0 for an odd one."""
    cell = ti.floor(x / scale)
    return cell - 2.0 * ti.floor(cell * 0.5)


@ti.func
def stripe_color(a: vec3, b: vec3, scale: ti.f32, point: vec3) -> vec3:
    result = b
    if _parity(point.x, scale) == 0.0:
        result = a
    return result


@ti.func
def checker_color(a: vec3, b: vec3, scale: ti.f32, point: vec3) -> vec3:
    result = b
    parity = _parity(point.x, scale) + _parity(point.y, scale) + _parity(point.z, scale)
    if parity == 0.0 or parity == 2.0:
        result = a
    return result


@ti.func
def pattern_color(pattern: ti.i32, a: vec3, b: vec3, scale: ti.f32, point: vec3) -> vec3:
    """Evaluate a pattern at a pattern-space point.

    Args:
        pattern: A PatternType value.
        a: Primary color.
        b: Alternate color.
        scale: Band or cell width (positive).
        point: The pattern-space point to evaluate.

    Returns:
        The pattern color at ``point``. Unknown pattern types yield ``a``.
    """
    result = a
    if pattern == int(PatternType.STRIPE):
        result = stripe_color(a, b, scale, point)
    elif pattern == int(PatternType.CHECKER):
        result = checker_color(a, b, scale, point)
    return result
