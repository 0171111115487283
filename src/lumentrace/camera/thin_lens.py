"""Thin-lens camera model for perspective ray generation with defocus blur.

This module implements a positionable camera that generates primary rays.
The camera supports:
- Look-at positioning (lookfrom, lookat, vup)
- Vertical field of view in degrees
- Arbitrary aspect ratios
- Defocus blur through a circular lens aperture
- Jittered or pixel-center sampling

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport sits on the focal plane, ``focus_dist`` in front of the
camera. With a zero aperture every ray starts at ``lookfrom`` (a pinhole
camera); otherwise rays start at a random point on the lens disk and still
pass through the same focal-plane point, so objects at the focus distance
stay sharp.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumentrace.camera.thin_lens import Camera, setup_camera, get_ray
    >>>
    >>> # Create camera looking at origin from z=3
    >>> camera = Camera(
    ...     lookfrom=(0.0, 0.0, 3.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=60.0,
    ...     aspect_ratio=16.0/9.0
    ... )
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(0.5, 0.5)  # Ray through image center
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from lumentrace.core.ray import Ray, make_ray
from lumentrace.core.vector import (
    DegenerateVectorError,
    as_vec3,
    normalize,
    random_in_unit_disk,
    unit_vector,
)

logger = logging.getLogger(__name__)

vec3 = tm.vec3

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class Camera:
    """Configuration for a thin-lens (perspective) camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. 0 gives a pinhole camera with no blur.
        focus_dist: Distance to the plane of perfect focus. Defaults to
            the distance from lookfrom to lookat.

    Raises:
        ValueError: On construction if any parameter is out of range.
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    vfov: float = 90.0
    aspect_ratio: float = 16.0 / 9.0
    aperture: float = 0.0
    focus_dist: float | None = None

    def __post_init__(self) -> None:
        as_vec3(self.lookfrom, "lookfrom")
        as_vec3(self.lookat, "lookat")
        as_vec3(self.vup, "vup")
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov must be in (0, 180) degrees, got {self.vfov}")
        if not self.aspect_ratio > 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if not self.aperture >= 0.0:
            raise ValueError(f"aperture must be non-negative, got {self.aperture}")
        if self.focus_dist is not None and not self.focus_dist > 0.0:
            raise ValueError(f"focus_dist must be positive, got {self.focus_dist}")

    @property
    def lens_radius(self) -> float:
        return self.aperture / 2.0

    def resolved_focus_dist(self) -> float:
        """The focus distance, defaulting to |lookfrom - lookat|."""
        if self.focus_dist is not None:
            return self.focus_dist
        return float(np.linalg.norm(as_vec3(self.lookfrom) - as_vec3(self.lookat)))


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

# Camera origin (position)
_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Viewport vectors on the focal plane
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full width
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full height
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())  # Lower-left of viewport

_lens_radius = ti.field(dtype=ti.f32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def setup_camera(camera: Camera) -> None:
    """Initialize camera state from configuration.

    Computes the camera's orthonormal basis (u, v, w) and the focal-plane
    viewport. This must be called before rendering.

    Args:
        camera: Camera configuration with position, orientation, FOV and lens.

    Raises:
        ValueError: If lookfrom equals lookat or vup is parallel to the view
            direction (the basis would be degenerate).
    """
    theta = math.radians(camera.vfov)
    h = math.tan(theta / 2.0)
    focus_dist = camera.resolved_focus_dist()

    viewport_height = 2.0 * h
    viewport_width = camera.aspect_ratio * viewport_height

    lookfrom = as_vec3(camera.lookfrom, "lookfrom")
    lookat = as_vec3(camera.lookat, "lookat")
    vup = as_vec3(camera.vup, "vup")

    try:
        # w points from lookat toward lookfrom (backward)
        w = unit_vector(lookfrom - lookat)
    except DegenerateVectorError as e:
        raise ValueError("Camera lookfrom and lookat must differ") from e

    try:
        # u points right (perpendicular to w and vup)
        u = unit_vector(np.cross(vup, w))
    except DegenerateVectorError as e:
        raise ValueError("Camera vup must not be parallel to the view direction") from e

    v = np.cross(w, u)

    horizontal = focus_dist * viewport_width * u
    vertical = focus_dist * viewport_height * v
    lower_left = lookfrom - horizontal / 2.0 - vertical / 2.0 - focus_dist * w

    _camera_origin[None] = lookfrom.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()
    _lens_radius[None] = camera.lens_radius

    logger.debug(
        "Camera at %s looking at %s, vfov=%g, aperture=%g, focus_dist=%g",
        camera.lookfrom,
        camera.lookat,
        camera.vfov,
        camera.aperture,
        focus_dist,
    )


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def get_ray(s: ti.f32, t: ti.f32) -> Ray:
    """Generate a ray through normalized image coordinates (s, t).

    The coordinates are normalized:
    - s = 0: left edge of image, s = 1: right edge
    - t = 0: bottom edge of image, t = 1: top edge

    With a non-zero aperture the ray origin is jittered across the lens
    disk; the ray still passes through the same point of the focal plane.

    Args:
        s: Horizontal coordinate in [0, 1] (left to right).
        t: Vertical coordinate in [0, 1] (bottom to top).

    Returns:
        A Ray with unit direction toward the specified viewport point.
    """
    origin = _camera_origin[None]

    # No random draw for a pinhole camera
    lens_radius = _lens_radius[None]
    if lens_radius > 0.0:
        rd = lens_radius * random_in_unit_disk()
        origin = origin + _camera_u[None] * rd.x + _camera_v[None] * rd.y

    point_on_viewport = (
        _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]
    )
    direction = normalize(point_on_viewport - origin)

    return make_ray(origin, direction)


@ti.func
def get_ray_for_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    jitter: ti.i32,
) -> Ray:
    """Generate a ray for one sample of a pixel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        jitter: 1 for a uniform random sub-pixel offset (anti-aliasing),
            0 to sample the pixel center.

    Returns:
        A Ray through the sampled point of the pixel.
    """
    offset_u = 0.5
    offset_v = 0.5
    if jitter == 1:
        offset_u = ti.random(ti.f32)
        offset_v = ti.random(ti.f32)

    s = (ti.cast(pixel_i, ti.f32) + offset_u) / ti.cast(width, ti.f32)
    t = (ti.cast(pixel_j, ti.f32) + offset_v) / ti.cast(height, ti.f32)

    return get_ray(s, t)


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float] | float]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left
        (3-tuples) and lens_radius.
    """
    fields = {
        "origin": _camera_origin,
        "u": _camera_u,
        "v": _camera_v,
        "w": _camera_w,
        "horizontal": _viewport_horizontal,
        "vertical": _viewport_vertical,
        "lower_left": _lower_left_corner,
    }
    info: dict[str, tuple[float, float, float] | float] = {}
    for name, f in fields.items():
        vec = f[None]
        info[name] = (float(vec[0]), float(vec[1]), float(vec[2]))
    info["lens_radius"] = float(_lens_radius[None])
    return info
