"""Vector and color math shared by every stage of the renderer.

A single 3-component type, ``vec3``, stands in for points, directions and
RGB colors. Two flavors of helpers live here:

* Taichi functions (``@ti.func``) used inside kernels for intersection,
  scattering and sampling.
* Host-side NumPy helpers used while building the camera and scene, which
  validate their input and raise instead of producing NaNs.

Example:
    >>> import numpy as np
    >>> from lumentrace.core.vector import unit_vector
    >>> unit_vector((3.0, 0.0, 4.0))
    array([0.6, 0. , 0.8])
    >>> unit_vector((0.0, 0.0, 0.0))
    Traceback (most recent call last):
        ...
    lumentrace.core.vector.DegenerateVectorError: cannot normalize a zero-length vector
"""

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Squared length below which a vector is treated as zero
DEGENERATE_EPSILON = 1e-12

# Component threshold for near_zero()
NEAR_ZERO_EPSILON = 1e-8


class DegenerateVectorError(ValueError):
    """Raised when a zero-length vector would have to be normalized."""


# =============================================================================
# Host-side helpers (NumPy)
# =============================================================================


def as_vec3(values: Sequence[float] | npt.ArrayLike, name: str = "vector") -> npt.NDArray[np.float64]:
    """Convert a 3-sequence into a float64 NumPy vector.

    Args:
        values: Three numeric components.
        name: Name used in error messages.

    Returns:
        A float64 array of shape (3,).

    Raises:
        ValueError: If ``values`` does not hold exactly three finite numbers.
    """
    arr = np.asarray(values, dtype=np.float64)
    if arr.shape != (3,):
        raise ValueError(f"{name} must have exactly 3 components, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"{name} components must be finite, got {tuple(arr.tolist())}")
    return arr


def unit_vector(values: Sequence[float] | npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Normalize a vector on the host.

    Args:
        values: Three numeric components.

    Returns:
        The unit-length vector pointing the same way.

    Raises:
        DegenerateVectorError: If the vector has (near) zero length.
    """
    v = as_vec3(values)
    length_sq = float(np.dot(v, v))
    if length_sq <= DEGENERATE_EPSILON:
        raise DegenerateVectorError("cannot normalize a zero-length vector")
    return v / np.sqrt(length_sq)


def to_ti_vec3(values: Sequence[float] | npt.ArrayLike) -> tm.vec3:
    """Convert a host 3-sequence into a Taichi ``vec3`` for field assignment."""
    v = as_vec3(values)
    return vec3(float(v[0]), float(v[1]), float(v[2]))


# =============================================================================
# Device-side helpers (Taichi)
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Squared length; avoids the square root when only comparing."""
    return tm.dot(v, v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    return tm.cross(a, b)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Zero-length input is a programming error. With ``ti.init(debug=True)``
    the assertion below raises ``TaichiAssertionError``; callers on the hot
    path guard their inputs (see ``near_zero``) so the release build never
    reaches the division with a zero vector.

    Args:
        v: The input vector, must have non-zero length.

    Returns:
        A unit vector in the same direction as v.
    """
    assert length_squared(v) > 0.0, "cannot normalize a zero-length vector"
    return v / tm.length(v)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Used to catch degenerate scatter directions before they are used.

    Returns:
        1 if all components are near zero, 0 otherwise.
    """
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def lerp(a: vec3, b: vec3, t: ti.f32) -> vec3:
    """Linear blend ``(1 - t) * a + t * b``."""
    return (1.0 - t) * a + t * b


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a unit normal.

    R = I - 2(I . N)N
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, eta: ti.f32) -> vec3:
    """Refract a unit incident vector through a surface using Snell's law.

    Args:
        incident: The incoming direction (unit length).
        normal: The surface normal facing the incident ray (unit length).
        eta: Ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        The refracted direction, or a zero vector on total internal
        reflection.
    """
    cos_i = tm.min(-tm.dot(incident, normal), 1.0)
    sin2_t = eta * eta * (1.0 - cos_i * cos_i)
    result = vec3(0.0, 0.0, 0.0)
    if sin2_t <= 1.0:
        cos_t = ti.sqrt(1.0 - sin2_t)
        result = eta * incident + (eta * cos_i - cos_t) * normal
    return result


@ti.func
def schlick_reflectance(cosine: ti.f32, ref_ratio: ti.f32) -> ti.f32:
    """Probability of reflection at a dielectric boundary (Schlick).

    An index-matched boundary (ratio 1) is optically invisible and never
    reflects.

    Args:
        cosine: Cosine of the angle between the incident ray and the normal.
        ref_ratio: Ratio of refractive indices across the boundary.

    Returns:
        Reflectance in [0, 1].
    """
    result = 0.0
    if ti.abs(ref_ratio - 1.0) > 1e-6:
        r0 = (1.0 - ref_ratio) / (1.0 + ref_ratio)
        r0 = r0 * r0
        result = r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)
    return result


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_in_unit_sphere() -> vec3:
    """Random point strictly inside the unit sphere (rejection sampling).

    Points too close to the origin are rejected as well so the result can
    always be normalized.
    """
    p = vec3(0.0, 0.0, 1e-3)
    found = False
    for _ in range(100):  # Max iterations to avoid infinite loops
        if not found:
            candidate = vec3(
                ti.random(ti.f32) * 2.0 - 1.0,
                ti.random(ti.f32) * 2.0 - 1.0,
                ti.random(ti.f32) * 2.0 - 1.0,
            )
            lsq = length_squared(candidate)
            if DEGENERATE_EPSILON < lsq and lsq < 1.0:
                p = candidate
                found = True
    return p


@ti.func
def random_unit_vector() -> vec3:
    """Random unit vector, uniformly distributed on the sphere."""
    return normalize(random_in_unit_sphere())


@ti.func
def random_in_unit_disk() -> vec3:
    """Random point (x, y, 0) inside the unit disk, for lens sampling."""
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(100):  # Max iterations to avoid infinite loops
        if not found:
            candidate = vec3(
                ti.random(ti.f32) * 2.0 - 1.0,
                ti.random(ti.f32) * 2.0 - 1.0,
                0.0,
            )
            if candidate.x * candidate.x + candidate.y * candidate.y < 1.0:
                p = candidate
                found = True
    return p
