"""Affine transforms for primitives and patterns.

Transforms are 4x4 NumPy matrices built on the host and applied to column
vectors, points as (x, y, z, 1) and directions as (x, y, z, 0). Only the
inverse is uploaded to Taichi: a primitive is intersected by carrying the
world ray into object space, and a pattern is evaluated by carrying the
object-space hit point into pattern space.

``chain`` composes transforms in the order they are applied, so

    chain(scaling(0.5, 0.5, 0.5), translation(1.5, 0.5, -0.5))

first halves an object and then moves it.

Example:
    >>> import math
    >>> from lumentrace.core.transform import chain, inverse, rotation_y, translation
    >>> m = chain(rotation_y(math.pi / 4), translation(0.0, 0.0, 5.0))
    >>> inverse(m) @ m  # identity
"""

import math

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

# Type aliases
vec3 = tm.vec3
mat4 = tm.mat4
Matrix4 = npt.NDArray[np.float64]

# Determinant magnitude below which a transform is treated as singular
SINGULAR_EPSILON = 1e-12


# =============================================================================
# Host-side builders (NumPy)
# =============================================================================


def identity() -> Matrix4:
    return np.eye(4, dtype=np.float64)


def translation(x: float, y: float, z: float) -> Matrix4:
    m = identity()
    m[:3, 3] = (x, y, z)
    return m


def scaling(x: float, y: float, z: float) -> Matrix4:
    return np.diag([x, y, z, 1.0]).astype(np.float64)


def rotation_x(radians: float) -> Matrix4:
    """Rotation about the x axis (right-handed, y toward z)."""
    c, s = math.cos(radians), math.sin(radians)
    m = identity()
    m[1, 1], m[1, 2] = c, -s
    m[2, 1], m[2, 2] = s, c
    return m


def rotation_y(radians: float) -> Matrix4:
    """Rotation about the y axis (z toward x)."""
    c, s = math.cos(radians), math.sin(radians)
    m = identity()
    m[0, 0], m[0, 2] = c, s
    m[2, 0], m[2, 2] = -s, c
    return m


def rotation_z(radians: float) -> Matrix4:
    """Rotation about the z axis (x toward y)."""
    c, s = math.cos(radians), math.sin(radians)
    m = identity()
    m[0, 0], m[0, 1] = c, -s
    m[1, 0], m[1, 1] = s, c
    return m


def shearing(xy: float, xz: float, yx: float, yz: float, zx: float, zy: float) -> Matrix4:
    """Shear each coordinate in proportion to the other two.

    ``xy`` moves x in proportion to y, ``xz`` moves x in proportion to z,
    and so on.
    """
    m = identity()
    m[0, 1], m[0, 2] = xy, xz
    m[1, 0], m[1, 2] = yx, yz
    m[2, 0], m[2, 1] = zx, zy
    return m


def as_matrix4(values: npt.ArrayLike, name: str = "transform") -> Matrix4:
    """Validate an affine 4x4 transform.

    Raises:
        ValueError: If the matrix is not 4x4, has non-finite entries or its
            bottom row is not (0, 0, 0, 1).
    """
    m = np.asarray(values, dtype=np.float64)
    if m.shape != (4, 4):
        raise ValueError(f"{name} must be a 4x4 matrix, got shape {m.shape}")
    if not np.all(np.isfinite(m)):
        raise ValueError(f"{name} entries must be finite")
    if not np.array_equal(m[3], [0.0, 0.0, 0.0, 1.0]):
        raise ValueError(f"{name} must be affine (bottom row 0, 0, 0, 1), got {m[3].tolist()}")
    return m


def chain(*transforms: npt.ArrayLike) -> Matrix4:
    """Compose transforms, applying the first argument first."""
    result = identity()
    for t in transforms:
        result = as_matrix4(t) @ result
    return result


def inverse(values: npt.ArrayLike, name: str = "transform") -> Matrix4:
    """Invert an affine transform.

    Raises:
        ValueError: If the transform is malformed or singular (for example
            a zero scale factor).
    """
    m = as_matrix4(values, name)
    if abs(np.linalg.det(m)) < SINGULAR_EPSILON:
        raise ValueError(f"{name} is singular and cannot be inverted")
    return np.linalg.inv(m)


def is_identity(values: npt.ArrayLike) -> bool:
    return bool(np.array_equal(np.asarray(values, dtype=np.float64), identity()))


def to_ti_mat4(values: npt.ArrayLike) -> ti.Matrix:
    """Convert a host matrix into a Taichi matrix for field assignment."""
    return ti.Matrix(np.asarray(values, dtype=np.float64).tolist())


# =============================================================================
# Device-side application (Taichi)
# =============================================================================


@ti.func
def transform_point(m: mat4, p: vec3) -> vec3:
    r = m @ tm.vec4(p.x, p.y, p.z, 1.0)
    return vec3(r[0], r[1], r[2])


@ti.func
def transform_vector(m: mat4, v: vec3) -> vec3:
    """Apply the linear part only; translation does not move directions."""
    r = m @ tm.vec4(v.x, v.y, v.z, 0.0)
    return vec3(r[0], r[1], r[2])


@ti.func
def transform_normal(inverse_m: mat4, n: vec3) -> vec3:
    """Carry an object-space normal to world space.

    Normals transform by the inverse transpose, so this takes the inverse
    transform that is already stored for intersection.
    """
    r = inverse_m.transpose() @ tm.vec4(n.x, n.y, n.z, 0.0)
    return tm.normalize(vec3(r[0], r[1], r[2]))
