"""Lambertian (ideal diffuse) material implementation.

The scattered direction is the hit normal plus a random unit vector. The
resulting directions follow a cosine-weighted distribution about the
normal, so the attenuation is exactly the albedo and no PDF weighting is
needed:

    direction = normal + random_unit_vector()
    attenuation = albedo

A sample that lands almost exactly opposite the normal would give a
near-zero direction; in that case the normal itself is used.

The albedo can vary over the surface through a pattern (see
``lumentrace.materials.patterns``). Patterns are evaluated at the hit
point in the primitive's object space, carried through the material's
own inverse pattern transform, so a pattern moves with its object.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumentrace.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # rec = scatter_lambertian(albedo, hit_point, normal)
"""

import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from lumentrace.core.transform import identity, inverse, to_ti_mat4, transform_point
from lumentrace.core.vector import near_zero, random_unit_vector

from .patterns import PatternType, pattern_color
from .record import ScatterRecord

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_lambertian(albedo: vec3, point: vec3, normal: vec3) -> ScatterRecord:
    """Scatter a ray off a diffuse surface.

    Args:
        albedo: The diffuse reflectance color at the hit point.
        point: The hit point; becomes the scattered ray's origin.
        normal: The unit surface normal facing the incoming ray.

    Returns:
        A ScatterRecord that always scatters with attenuation == albedo.
    """
    direction = normal + random_unit_vector()

    # Degenerate sample (random vector opposite the normal)
    if near_zero(direction):
        direction = normal

    return ScatterRecord(scattered=1, attenuation=albedo, origin=point, direction=direction)


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 256

# Storage for Lambertian material properties
lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
lambertian_alt_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
lambertian_patterns = ti.field(dtype=ti.i32, shape=MAX_LAMBERTIAN_MATERIALS)
lambertian_pattern_scales = ti.field(dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
lambertian_pattern_inv_transforms = ti.Matrix.field(4, 4, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def _validate_albedo(albedo: tuple[float, float, float], name: str = "Albedo") -> None:
    if len(albedo) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(albedo)}")
    for i, component in enumerate(albedo):
        if not 0.0 <= component <= 1.0:
            raise ValueError(
                f"{name} component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_lambertian_materials[None] = 0


def add_lambertian_material(
    albedo: tuple[float, float, float],
    pattern: PatternType = PatternType.SOLID,
    albedo_alt: tuple[float, float, float] | None = None,
    pattern_scale: float = 1.0,
    pattern_transform: npt.ArrayLike | None = None,
) -> int:
    """Add a Lambertian material to the material registry.

    Args:
        albedo: The diffuse reflectance color as (R, G, B) tuple.
            Each component should be in [0, 1] for energy conservation.
        pattern: How the albedo varies over the surface.
        albedo_alt: The second pattern color. Defaults to ``albedo``.
        pattern_scale: Width of one stripe or checker cell, in pattern space.
        pattern_transform: Optional 4x4 pattern-to-object transform.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1], the pattern
            scale is not positive or the pattern transform is singular.
    """
    _validate_albedo(albedo)
    if albedo_alt is None:
        albedo_alt = albedo
    _validate_albedo(albedo_alt, name="Alternate albedo")
    if pattern_scale <= 0.0:
        raise ValueError(f"Pattern scale must be positive, got {pattern_scale}")
    pattern = PatternType(pattern)
    inv_transform = identity() if pattern_transform is None else inverse(pattern_transform, "pattern_transform")

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    lambertian_alt_albedos[idx] = vec3(albedo_alt[0], albedo_alt[1], albedo_alt[2])
    lambertian_patterns[idx] = int(pattern)
    lambertian_pattern_scales[idx] = pattern_scale
    lambertian_pattern_inv_transforms[idx] = to_ti_mat4(inv_transform)
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32, local_point: vec3) -> vec3:
    """Get the albedo of a Lambertian material at a hit point.

    Args:
        material_idx: The index of the material in the registry.
        local_point: The hit point in the primitive's object space.

    Returns:
        The albedo color (RGB), with the material's pattern applied.
    """
    return pattern_color(
        lambertian_patterns[material_idx],
        lambertian_albedos[material_idx],
        lambertian_alt_albedos[material_idx],
        lambertian_pattern_scales[material_idx],
        transform_point(lambertian_pattern_inv_transforms[material_idx], local_point),
    )


@ti.func
def scatter_lambertian_by_id(
    material_idx: ti.i32,
    point: vec3,
    local_point: vec3,
    normal: vec3,
) -> ScatterRecord:
    """Scatter off a registered Lambertian material.

    Looks up the (possibly patterned) albedo at ``local_point`` and calls
    scatter_lambertian with the world-space ``point``.
    """
    albedo = get_lambertian_albedo(material_idx, local_point)
    return scatter_lambertian(albedo, point, normal)
