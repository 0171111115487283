"""Materials module for surface scattering models.

Components:
    record: MaterialType tag and the ScatterRecord result
    lambertian: Ideal diffuse reflection
    metal: Specular reflection with optional fuzz
    dielectric: Glass-like materials with refraction (Schlick Fresnel)
    patterns: Stripe and checker albedo patterns

Each material provides a ``scatter_*`` Taichi function returning a
ScatterRecord (absorbed or a scattered ray plus attenuation) and a
bounded registry stored in Taichi fields (``add_*_material``,
``clear_*_materials``, ``scatter_*_by_id``).
"""

from .dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
    fresnel_reflectance,
    get_dielectric_ior,
    get_dielectric_material_count,
    refraction_ratio,
    scatter_dielectric,
    scatter_dielectric_by_id,
    will_reflect,
)
from .lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
    scatter_lambertian_by_id,
)
from .metal import (
    add_metal_material,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    get_metal_material_count,
    scatter_metal,
    scatter_metal_by_id,
)
from .patterns import PatternType, checker_color, pattern_color, stripe_color
from .record import MaterialType, ScatterRecord, make_absorbed_record

__all__ = [
    "MaterialType",
    "ScatterRecord",
    "make_absorbed_record",
    # Patterns
    "PatternType",
    "pattern_color",
    "stripe_color",
    "checker_color",
    # Lambertian
    "scatter_lambertian",
    "scatter_lambertian_by_id",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_material_count",
    "get_lambertian_albedo",
    # Metal
    "scatter_metal",
    "scatter_metal_by_id",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_material_count",
    "get_metal_albedo",
    "get_metal_fuzz",
    # Dielectric
    "scatter_dielectric",
    "scatter_dielectric_by_id",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_material_count",
    "get_dielectric_ior",
    "refraction_ratio",
    "fresnel_reflectance",
    "will_reflect",
]
