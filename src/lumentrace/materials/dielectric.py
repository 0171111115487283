"""Dielectric (glass/water) material implementation.

This module implements transparent materials like glass and water with
refraction and Fresnel reflectance.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Schlick's approximation for Fresnel reflectance
    - Total internal reflection when sin(theta_t) > 1

The material randomly chooses between reflection and refraction based on
the Fresnel reflectance probability, which increases at grazing angles.

The refraction ratio is chosen from the hit record's ``front_face`` flag
(1/ior entering, ior leaving) rather than re-deriving it from the sign of
dot(direction, normal), so grazing rays pick a consistent side.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumentrace.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # rec = scatter_dielectric(ior, incident_dir, hit_point, normal, front_face)
"""

import taichi as ti
import taichi.math as tm

from lumentrace.core.vector import near_zero, normalize, reflect, refract, schlick_reflectance

from .record import ScatterRecord

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def refraction_ratio(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    """n_incident / n_transmitted for a ray arriving on the given side."""
    ratio = 1.0 / ior
    if front_face == 0:
        ratio = ior
    return ratio


@ti.func
def will_reflect(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.i32:
    """Determine if total internal reflection will occur.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (unit length).
        normal: The surface normal facing the incoming ray.
        front_face: 1 if the ray hits the outside of the surface.

    Returns:
        1 if the ray cannot refract, 0 otherwise.
    """
    ratio = refraction_ratio(ior, front_face)
    cos_theta = tm.min(-tm.dot(incident_direction, normal), 1.0)
    # Must match the test in refract()
    sin2_t = ratio * ratio * (1.0 - cos_theta * cos_theta)
    return 1 if sin2_t > 1.0 else 0


@ti.func
def fresnel_reflectance(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.f32:
    """Schlick reflectance for a unit incident direction."""
    ratio = refraction_ratio(ior, front_face)
    cos_theta = tm.min(-tm.dot(incident_direction, normal), 1.0)
    return schlick_reflectance(cos_theta, ratio)


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    point: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ScatterRecord:
    """Scatter a ray through a dielectric boundary.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (non-zero, any length).
        point: The hit point; becomes the scattered ray's origin.
        normal: The unit surface normal facing the incoming ray.
        front_face: 1 if the ray hits the outside of the surface,
            0 if the ray is inside the material.

    Returns:
        A ScatterRecord that always scatters with white attenuation.
    """
    unit_direction = normalize(incident_direction)
    ratio = refraction_ratio(ior, front_face)

    cannot_refract = will_reflect(ior, unit_direction, normal, front_face)
    reflectance = fresnel_reflectance(ior, unit_direction, normal, front_face)

    direction = vec3(0.0, 0.0, 0.0)
    if cannot_refract == 1 or ti.random(ti.f32) < reflectance:
        direction = reflect(unit_direction, normal)
    else:
        direction = refract(unit_direction, normal, ratio)
        if near_zero(direction):
            direction = reflect(unit_direction, normal)

    return ScatterRecord(
        scattered=1,
        attenuation=vec3(1.0, 1.0, 1.0),
        origin=point,
        direction=direction,
    )


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 256

# Storage for dielectric material properties
dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        ior: Index of refraction. Default is 1.5 (typical glass).
            Must be >= 1.0.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If IOR is less than 1.0.
    """
    if ior < 1.0:
        raise ValueError(
            f"Index of refraction = {ior} is less than 1.0. "
            "IOR must be >= 1.0 for physically meaningful materials."
        )

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    return dielectric_iors[material_idx]


@ti.func
def scatter_dielectric_by_id(
    material_idx: ti.i32,
    incident_direction: vec3,
    point: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ScatterRecord:
    """Scatter off a registered dielectric material by index."""
    ior = get_dielectric_ior(material_idx)
    return scatter_dielectric(ior, incident_direction, point, normal, front_face)
