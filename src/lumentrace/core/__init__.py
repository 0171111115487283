"""Core rendering module.

Components:
    vector: Vector/color math (host and Taichi device functions)
    ray: Ray and parameter interval structures
    transform: Affine transforms for primitives and patterns
    integrator: ray_color, background and render-target kernels
    renderer: Render driver producing gamma-corrected pixel buffers

All compute-intensive operations use Taichi kernels.
"""

from .ray import (
    T_MAX,
    T_MIN,
    Interval,
    Ray,
    interval_contains,
    interval_surrounds,
    make_interval,
    make_ray,
    ray_at,
)
from .transform import (
    chain,
    identity,
    inverse,
    rotation_x,
    rotation_y,
    rotation_z,
    scaling,
    shearing,
    translation,
)
from .vector import (
    DegenerateVectorError,
    as_vec3,
    cross,
    dot,
    length,
    length_squared,
    lerp,
    near_zero,
    normalize,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    reflect,
    refract,
    schlick_reflectance,
    unit_vector,
    vec3,
)

# Note: integrator and renderer are NOT imported here to avoid circular imports.
# Import directly from lumentrace.core.integrator or lumentrace.core.renderer.

__all__ = [
    "Ray",
    "Interval",
    "T_MIN",
    "T_MAX",
    "ray_at",
    "make_ray",
    "make_interval",
    "interval_contains",
    "interval_surrounds",
    "identity",
    "translation",
    "scaling",
    "rotation_x",
    "rotation_y",
    "rotation_z",
    "shearing",
    "chain",
    "inverse",
    "vec3",
    "DegenerateVectorError",
    "as_vec3",
    "unit_vector",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "lerp",
    "reflect",
    "refract",
    "schlick_reflectance",
    "near_zero",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
]
