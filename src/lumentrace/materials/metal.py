"""Metal (specular reflective) material implementation.

This module implements mirror reflection with optional fuzziness. A perfect
metal (fuzz=0) reflects exactly; a fuzzy metal perturbs the unit reflected
direction by a random vector scaled by ``fuzz``:

    R = I - 2(I . N)N
    direction = normalize(R) + fuzz * random_unit_vector()

If the perturbation pushes the direction into the surface
(``dot(direction, N) <= 0``) the ray is absorbed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumentrace.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # rec = scatter_metal(albedo, fuzz, incident_dir, hit_point, normal)
"""

import taichi as ti
import taichi.math as tm

from lumentrace.core.vector import normalize, random_unit_vector, reflect

from .record import ScatterRecord

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    point: vec3,
    normal: vec3,
) -> ScatterRecord:
    """Scatter a ray off a metal surface.

    Args:
        albedo: The reflective color (RGB).
        fuzz: Fuzziness in [0, 1].
        incident_direction: The incoming ray direction (non-zero, any length).
        point: The hit point; becomes the scattered ray's origin.
        normal: The unit surface normal facing the incoming ray.

    Returns:
        A ScatterRecord; ``scattered`` is 0 when the fuzzed direction points
        into the surface.
    """
    direction = normalize(reflect(incident_direction, normal))

    # No random draw for perfect mirrors
    if fuzz > 0.0:
        direction = direction + fuzz * random_unit_vector()

    scattered = 1 if tm.dot(direction, normal) > 0.0 else 0

    return ScatterRecord(scattered=scattered, attenuation=albedo, origin=point, direction=direction)


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 256

# Storage for metal material properties
metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_metal_materials[None] = 0


def add_metal_material(
    albedo: tuple[float, float, float],
    fuzz: float = 0.0,
) -> int:
    """Add a metal material to the material registry.

    Args:
        albedo: The reflective color as (R, G, B) tuple.
            Each component should be in [0, 1].
        fuzz: Reflection fuzziness in [0, 1]. Default is 0 (perfect mirror).

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If albedo components are outside [0, 1] or fuzz is
            outside [0, 1].
    """
    if len(albedo) != 3:
        raise ValueError(f"Albedo must have 3 components, got {len(albedo)}")
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )

    if fuzz < 0.0 or fuzz > 1.0:
        raise ValueError(f"Fuzz = {fuzz} is outside [0, 1].")

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded")

    metal_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    metal_fuzzes[idx] = fuzz
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    return metal_fuzzes[material_idx]


@ti.func
def scatter_metal_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    point: vec3,
    normal: vec3,
) -> ScatterRecord:
    """Scatter off a registered metal material.

    Convenience function that looks up albedo and fuzz from the material
    registry and calls scatter_metal.
    """
    albedo = get_metal_albedo(material_idx)
    fuzz = get_metal_fuzz(material_idx)
    return scatter_metal(albedo, fuzz, incident_direction, point, normal)
