"""Scene module: primitive storage, scene construction and presets.

Components:
    intersection: Ordered primitive table and nearest-hit queries
    manager: SceneManager coordinating primitives and materials
    presets: Ready-made scenes with matching cameras

Scene data is organized for kernel access:
    - One ordered table of (kind, index, material ID, inverse transform)
      entries
    - Structure-of-Arrays layout for each primitive kind
    - Unified material ID space mapped to per-type registries
"""

from .intersection import (
    MAX_PLANES,
    MAX_PRIMITIVES,
    MAX_QUADS,
    MAX_SPHERES,
    add_plane,
    add_quad,
    add_sphere,
    clear_scene,
    get_plane_count,
    get_primitive_count,
    get_quad_count,
    get_sphere_count,
    hit_primitive,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    PrimitiveInfo,
    SceneConfig,
    SceneManager,
    get_material_type,
    get_material_type_index,
)
from .presets import (
    create_single_sphere_scene,
    create_striped_plane_scene,
    create_three_spheres_scene,
    create_walled_room_scene,
)

__all__ = [
    # Intersection module
    "add_sphere",
    "add_quad",
    "add_plane",
    "clear_scene",
    "get_sphere_count",
    "get_quad_count",
    "get_plane_count",
    "get_primitive_count",
    "hit_primitive",
    "intersect_scene",
    "MAX_SPHERES",
    "MAX_QUADS",
    "MAX_PLANES",
    "MAX_PRIMITIVES",
    # Manager module
    "SceneManager",
    "MaterialInfo",
    "PrimitiveInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    # Presets
    "create_three_spheres_scene",
    "create_single_sphere_scene",
    "create_striped_plane_scene",
    "create_walled_room_scene",
]
