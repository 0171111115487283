"""Ray color integrator and render-target kernels.

``ray_color`` follows a ray through the scene, scattering off materials
until it escapes to the sky, is absorbed, or runs out of bounce depth:

    ray_color(ray, 0)     = black
    ray_color(ray, depth) = background(ray.direction)      if nothing is hit
                          = black                          if absorbed
                          = attenuation * ray_color(scattered, depth - 1)

It is evaluated iteratively, carrying the product of attenuations
(throughput) instead of recursing. Scattered rays start at the hit point;
hits closer than ``T_MIN`` are ignored so a ray does not re-hit the surface
it just left.

The render target is a pair of preallocated Taichi fields (running color
average and per-pixel sample count). ``_render_one_spp`` adds one sample to
every pixel in parallel; the outermost loop of a Taichi kernel is
parallelized and every worker thread keeps its own random state.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumentrace.core.integrator import render_image, setup_render_target
    >>> from lumentrace.scene.presets import create_three_spheres_scene
    >>> from lumentrace.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_three_spheres_scene()
    >>> setup_camera(camera)
    >>> setup_render_target(400, 225)
    >>> render_image(num_samples=10, max_depth=50)
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from lumentrace.camera.thin_lens import get_ray_for_pixel
from lumentrace.core.ray import T_MAX, T_MIN, Ray, make_interval, make_ray
from lumentrace.core.vector import lerp
from lumentrace.geometry.hit_record import HitRecord
from lumentrace.materials.dielectric import scatter_dielectric_by_id
from lumentrace.materials.lambertian import scatter_lambertian_by_id
from lumentrace.materials.metal import scatter_metal_by_id
from lumentrace.materials.record import MaterialType, ScatterRecord, make_absorbed_record
from lumentrace.scene.intersection import intersect_scene
from lumentrace.scene.manager import get_material_type, get_material_type_index

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Default maximum ray bounces (path length)
MAX_DEPTH = 50

# =============================================================================
# Background (sky gradient)
# =============================================================================

DEFAULT_HORIZON_COLOR = (1.0, 1.0, 1.0)
DEFAULT_ZENITH_COLOR = (0.5, 0.7, 1.0)

_background_horizon = ti.Vector.field(3, dtype=ti.f32, shape=())
_background_zenith = ti.Vector.field(3, dtype=ti.f32, shape=())
# 0 until set_background() is called; the defaults apply meanwhile
_background_custom = ti.field(dtype=ti.i32, shape=())


def set_background(
    horizon: tuple[float, float, float] = DEFAULT_HORIZON_COLOR,
    zenith: tuple[float, float, float] = DEFAULT_ZENITH_COLOR,
) -> None:
    """Set the sky gradient colors.

    Args:
        horizon: Color for rays pointing straight down (blend parameter 0).
        zenith: Color for rays pointing straight up (blend parameter 1).
    """
    _background_horizon[None] = [horizon[0], horizon[1], horizon[2]]
    _background_zenith[None] = [zenith[0], zenith[1], zenith[2]]
    _background_custom[None] = 1


def reset_background() -> None:
    """Restore the default white-to-sky-blue gradient."""
    _background_custom[None] = 0


def get_background() -> tuple[tuple[float, float, float], tuple[float, float, float]]:
    """Get the (horizon, zenith) colors currently in effect."""
    if _background_custom[None] == 0:
        return DEFAULT_HORIZON_COLOR, DEFAULT_ZENITH_COLOR
    h = _background_horizon[None]
    z = _background_zenith[None]
    return (float(h[0]), float(h[1]), float(h[2])), (float(z[0]), float(z[1]), float(z[2]))


@ti.func
def background(direction: vec3) -> vec3:
    """Sky color seen along a direction.

    Blends horizon and zenith colors by ``0.5 * (unit_direction.y + 1)``.
    """
    horizon = vec3(DEFAULT_HORIZON_COLOR[0], DEFAULT_HORIZON_COLOR[1], DEFAULT_HORIZON_COLOR[2])
    zenith = vec3(DEFAULT_ZENITH_COLOR[0], DEFAULT_ZENITH_COLOR[1], DEFAULT_ZENITH_COLOR[2])
    if _background_custom[None] == 1:
        horizon = _background_horizon[None]
        zenith = _background_zenith[None]

    a = 0.5
    len_dir = tm.length(direction)
    if len_dir > 0.0:
        a = 0.5 * (direction.y / len_dir + 1.0)
    return lerp(horizon, zenith, a)


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Running average of sample colors (preallocated to max size)
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel (preallocated to max size)
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.

    Args:
        width: Image width in pixels, 1..MAX_IMAGE_WIDTH.
        height: Image height in pixels, 1..MAX_IMAGE_HEIGHT.

    Raises:
        ValueError: If a dimension is zero, negative or above the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def scatter_material(material_id: ti.i32, ray: Ray, rec: HitRecord) -> ScatterRecord:
    """Dispatch to the scattering function of the hit material.

    Args:
        material_id: The unified material ID.
        ray: The incoming ray.
        rec: The hit record of the surface.

    Returns:
        The material's ScatterRecord. Unknown material IDs absorb the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    result = make_absorbed_record(rec.point)

    if mat_type == int(MaterialType.LAMBERTIAN):
        result = scatter_lambertian_by_id(type_index, rec.point, rec.local_point, rec.normal)
    elif mat_type == int(MaterialType.METAL):
        result = scatter_metal_by_id(type_index, ray.direction, rec.point, rec.normal)
    elif mat_type == int(MaterialType.DIELECTRIC):
        result = scatter_dielectric_by_id(
            type_index, ray.direction, rec.point, rec.normal, rec.front_face
        )

    return result


# =============================================================================
# Light Transport
# =============================================================================


@ti.func
def ray_color(ray: Ray, max_depth: ti.i32) -> vec3:
    """Color carried back along a ray.

    Args:
        ray: The ray to trace.
        max_depth: Remaining bounce budget. 0 always returns black.

    Returns:
        The linear RGB color seen along the ray.
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    current = ray

    # Active flag for path continuation (no break in ti.func loops)
    active = 1

    for _ in range(max_depth):
        if active == 1:
            rec = intersect_scene(current, make_interval(T_MIN, T_MAX))

            if rec.hit == 0:
                color = throughput * background(current.direction)
                active = 0
            else:
                srec = scatter_material(rec.material_id, current, rec)
                if srec.scattered == 0:
                    active = 0
                else:
                    throughput *= srec.attenuation
                    current = make_ray(srec.origin, srec.direction)

    return color


@ti.func
def render_sample_impl(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
    jitter: ti.i32,
) -> vec3:
    """Render a single camera sample for a pixel."""
    ray = get_ray_for_pixel(pixel_i, pixel_j, width, height, jitter)
    return ray_color(ray, max_depth)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_one_spp(width: ti.i32, height: ti.i32, max_depth: ti.i32, jitter: ti.i32):
    """Render one sample per pixel and accumulate into the running average."""
    for i, j in ti.ndrange(width, height):
        color = render_sample_impl(i, j, width, height, max_depth, jitter)

        # Clamp negative values (numerical errors)
        color = tm.max(color, vec3(0.0, 0.0, 0.0))

        # Check for NaN/Inf and replace with zero
        for c in ti.static(range(3)):
            if tm.isnan(color[c]) or tm.isinf(color[c]):
                color[c] = 0.0

        _sample_count[i, j] += 1
        n = _sample_count[i, j]

        # Running average: avg_n = avg_{n-1} + (x_n - avg_{n-1}) / n
        _color_buffer[i, j] += (color - _color_buffer[i, j]) / ti.cast(n, ti.f32)


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
    jitter: ti.i32,
) -> vec3:
    return render_sample_impl(pixel_i, pixel_j, width, height, max_depth, jitter)


@ti.kernel
def _trace_ray_kernel(origin: vec3, direction: vec3, max_depth: ti.i32) -> vec3:
    return ray_color(make_ray(origin, direction), max_depth)


# =============================================================================
# Public Rendering API
# =============================================================================


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = MAX_DEPTH,
) -> tuple[float, float, float]:
    """Evaluate ray_color for one ray from Python.

    Args:
        origin: Ray origin.
        direction: Ray direction (non-zero, any length).
        max_depth: Bounce budget.

    Returns:
        Tuple of (R, G, B) linear color values.
    """
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")
    color = _trace_ray_kernel(vec3(*origin), vec3(*direction), max_depth)
    return (float(color[0]), float(color[1]), float(color[2]))


def render_sample(
    pixel_i: int,
    pixel_j: int,
    max_depth: int = MAX_DEPTH,
    jitter: bool = True,
) -> tuple[float, float, float]:
    """Render a single sample for a specific pixel.

    This is a Python-callable function for testing. For production rendering,
    use render_image() which processes all pixels in parallel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        max_depth: Bounce budget.
        jitter: Whether to jitter the sample within the pixel.

    Returns:
        Tuple of (R, G, B) color values.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    color = _render_single_pixel(pixel_i, pixel_j, width, height, max_depth, int(jitter))

    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(num_samples: int = 1, max_depth: int = MAX_DEPTH, jitter: bool = True) -> None:
    """Render the image with the specified number of samples per pixel.

    Progressively accumulates samples into the color buffer. Can be called
    multiple times to add more samples for convergence.

    Args:
        num_samples: Number of samples to render per pixel.
        max_depth: Bounce budget per sample.
        jitter: Whether to jitter samples within each pixel.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    for _ in range(num_samples):
        _render_one_spp(width, height, max_depth, int(jitter))


def get_total_samples() -> int:
    """Get the number of samples per pixel rendered so far.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    return int(_sample_count[0, 0])


def get_linear_image_numpy() -> npt.NDArray[np.float32]:
    """Get the averaged linear image as a NumPy array.

    The array is row-major with the top image row first, shape
    (height, width, 3). Values are not clamped.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    full_image = _color_buffer.to_numpy()
    image = full_image[:width, :height, :]

    # (width, height, 3) -> (height, width, 3)
    image = np.transpose(image, (1, 0, 2))

    # Flip vertically (j = 0 is the bottom row, images start at the top)
    image = np.flipud(image)

    return np.ascontiguousarray(image, dtype=np.float32)
