"""Scene builder coordinating primitives and materials.

SceneManager gives every material a unified ID, whatever its type, and
records which type-specific registry the ID points into so the integrator
can dispatch on it. Primitives are kept in one list in insertion order,
which is also the order of the kernel-side primitive table; that order
decides which primitive wins a tie at equal t, so configs preserve it.

Materials are shared handles: any number of primitives may reference the
same material ID, and a material is never changed after it is added.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumentrace.core.transform import scaling
    >>> from lumentrace.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> red = scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3))
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5, material_id=red)
    >>> scene.add_sphere((0, 0, 0), 1.0, red, transform=scaling(2.0, 0.5, 2.0))
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any

import numpy.typing as npt
import taichi as ti

from lumentrace.core.transform import Matrix4, as_matrix4
from lumentrace.core.vector import DegenerateVectorError, as_vec3, to_ti_vec3, unit_vector
from lumentrace.geometry import GeometryKind
from lumentrace.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from lumentrace.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from lumentrace.materials.metal import (
    add_metal_material,
    clear_metal_materials,
)
from lumentrace.materials.patterns import PatternType
from lumentrace.materials.record import MaterialType
from lumentrace.scene.intersection import (
    add_plane,
    add_quad,
    add_sphere,
    clear_scene,
    get_primitive_count,
)

logger = logging.getLogger(__name__)

Vec3Tuple = tuple[float, float, float]


# Maximum number of materials across all types
MAX_MATERIALS = 768  # 256 per type * 3 types

# Kernel-side lookup: material_types[i] is the MaterialType of material ID i,
# material_type_indices[i] its index in the type-specific registry
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """MaterialType of a unified material ID, or -1 if the ID is unknown."""
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Index into the type-specific registry, or -1 if the ID is unknown."""
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass
class MaterialInfo:
    """A registered material.

    Attributes:
        material_id: The unified material ID.
        material_type: Lambertian, Metal or Dielectric.
        type_index: The index within the type-specific registry.
        params: The parameters as given, in config form.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class PrimitiveInfo:
    """One entry of the ordered primitive list.

    Attributes:
        kind: Sphere, quad or plane.
        index: The index within the kind-specific storage.
        material_id: The unified material ID of the surface.
        params: The shape parameters in config form.
        transform: The object-to-world transform, or None for identity.
    """

    kind: GeometryKind
    index: int
    material_id: int
    params: dict[str, Any]
    transform: Matrix4 | None = None


@dataclass
class SceneConfig:
    """Serializable scene description.

    Attributes:
        materials: Material configs; list position is the material ID.
        primitives: Primitive configs in scene order, each with a ``kind``
            key ("sphere", "quad" or "plane").
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    primitives: list[dict[str, Any]] = field(default_factory=list)


def _as_tuple(values: Any, name: str) -> Vec3Tuple:
    v = as_vec3(values, name)
    return (float(v[0]), float(v[1]), float(v[2]))


def _as_transform(transform: npt.ArrayLike | None, name: str = "transform") -> Matrix4 | None:
    if transform is None:
        return None
    return as_matrix4(transform, name)


class SceneManager:
    """Builds a scene into the global primitive and material fields.

    Primitive storage is global (Taichi fields), so creating a SceneManager
    clears whatever scene was loaded before.

    Attributes:
        materials: MaterialInfo per material ID.
        primitives: PrimitiveInfo per primitive, in scene order.

    Example:
        >>> scene = SceneManager()
        >>> red_diffuse = scene.add_lambertian_material(albedo=(0.8, 0.1, 0.1))
        >>> gold_metal = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        >>> glass = scene.add_dielectric_material(ior=1.5)
        >>> scene.add_sphere((0, 0, -1), 0.5, red_diffuse)
        >>> scene.add_sphere((1, 0, -1), 0.5, gold_metal)
        >>> scene.add_sphere((-1, 0, -1), 0.5, glass)
    """

    def __init__(self) -> None:
        self.materials: list[MaterialInfo] = []
        self.primitives: list[PrimitiveInfo] = []
        self.clear()

    def clear(self) -> None:
        """Clear the entire scene (primitives and materials)."""
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        self.materials.clear()
        self.primitives.clear()
        logger.debug("Scene cleared")

    # =========================================================================
    # Materials
    # =========================================================================

    def _register_material(
        self,
        material_type: MaterialType,
        type_index: int,
        params: dict[str, Any],
    ) -> int:
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(MaterialInfo(material_id, material_type, type_index, params))
        logger.debug("Added %s material %d: %s", material_type.name.lower(), material_id, params)
        return material_id

    def add_lambertian_material(
        self,
        albedo: Vec3Tuple,
        pattern: PatternType = PatternType.SOLID,
        albedo_alt: Vec3Tuple | None = None,
        pattern_scale: float = 1.0,
        pattern_transform: npt.ArrayLike | None = None,
    ) -> int:
        """Add a Lambertian (diffuse) material.

        Args:
            albedo: Diffuse reflectance (R, G, B), each in [0, 1].
            pattern: Pattern applied to the albedo.
            albedo_alt: Second pattern color (defaults to ``albedo``).
            pattern_scale: Width of one stripe or checker cell.
            pattern_transform: Optional 4x4 pattern-to-object transform.

        Returns:
            The unified material ID.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If a color, the scale or the transform is invalid.
        """
        albedo = _as_tuple(albedo, "albedo")
        if albedo_alt is not None:
            albedo_alt = _as_tuple(albedo_alt, "albedo_alt")
        pattern = PatternType(pattern)
        pattern_transform = _as_transform(pattern_transform, "pattern_transform")
        type_index = add_lambertian_material(albedo, pattern, albedo_alt, pattern_scale, pattern_transform)

        params: dict[str, Any] = {"albedo": list(albedo)}
        if pattern != PatternType.SOLID:
            params["pattern"] = pattern.name.lower()
            params["albedo_alt"] = list(albedo_alt if albedo_alt is not None else albedo)
            params["pattern_scale"] = pattern_scale
        if pattern_transform is not None:
            params["pattern_transform"] = pattern_transform.tolist()
        return self._register_material(MaterialType.LAMBERTIAN, type_index, params)

    def add_metal_material(self, albedo: Vec3Tuple, fuzz: float = 0.0) -> int:
        """Add a metal material; ``fuzz`` in [0, 1] blurs the reflection.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component or fuzz is outside [0, 1].
        """
        albedo = _as_tuple(albedo, "albedo")
        type_index = add_metal_material(albedo, fuzz)
        return self._register_material(MaterialType.METAL, type_index, {"albedo": list(albedo), "fuzz": fuzz})

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Add a dielectric (glass/water) material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If IOR is less than 1.0.
        """
        type_index = add_dielectric_material(ior)
        return self._register_material(MaterialType.DIELECTRIC, type_index, {"ior": ior})

    def get_material_count(self) -> int:
        return int(num_materials[None])

    def _check_material_id(self, material_id: int) -> None:
        if material_id < 0 or material_id >= num_materials[None]:
            raise ValueError(f"Invalid material_id: {material_id}")

    # =========================================================================
    # Primitives
    # =========================================================================

    def _record_primitive(
        self,
        kind: GeometryKind,
        index: int,
        material_id: int,
        params: dict[str, Any],
        transform: Matrix4 | None,
    ) -> int:
        self.primitives.append(PrimitiveInfo(kind, index, material_id, params, transform))
        logger.debug(
            "Added %s %d %s (material %d%s)",
            kind.name.lower(),
            index,
            params,
            material_id,
            ", transformed" if transform is not None else "",
        )
        return index

    def add_sphere(
        self,
        center: Vec3Tuple,
        radius: float,
        material_id: int,
        transform: npt.ArrayLike | None = None,
    ) -> int:
        """Add a sphere.

        Args:
            center: Center in object space.
            radius: Radius (must be positive).
            material_id: The unified material ID of the surface.
            transform: Optional 4x4 object-to-world transform.

        Returns:
            The index of the added sphere.

        Raises:
            RuntimeError: If the maximum number of spheres is exceeded.
            ValueError: If the radius, material ID or transform is invalid.
        """
        self._check_material_id(material_id)
        center = _as_tuple(center, "center")
        if not (math.isfinite(radius) and radius > 0.0):
            raise ValueError(f"Sphere radius must be positive, got {radius}")
        transform = _as_transform(transform)

        index = add_sphere(to_ti_vec3(center), radius, material_id, transform)
        params = {"center": list(center), "radius": radius}
        return self._record_primitive(GeometryKind.SPHERE, index, material_id, params, transform)

    def add_quad(
        self,
        corner: Vec3Tuple,
        edge_u: Vec3Tuple,
        edge_v: Vec3Tuple,
        material_id: int,
        transform: npt.ArrayLike | None = None,
    ) -> int:
        """Add a parallelogram spanning corner + a*edge_u + b*edge_v, a, b in [0, 1].

        Raises:
            RuntimeError: If the maximum number of quads is exceeded.
            ValueError: If the edges are parallel, or the material ID or
                transform is invalid.
        """
        self._check_material_id(material_id)
        corner = _as_tuple(corner, "corner")
        edge_u = _as_tuple(edge_u, "edge_u")
        edge_v = _as_tuple(edge_v, "edge_v")
        try:
            unit_vector(
                (
                    edge_u[1] * edge_v[2] - edge_u[2] * edge_v[1],
                    edge_u[2] * edge_v[0] - edge_u[0] * edge_v[2],
                    edge_u[0] * edge_v[1] - edge_u[1] * edge_v[0],
                )
            )
        except DegenerateVectorError as e:
            raise ValueError(f"Quad edges {edge_u} and {edge_v} are parallel or zero") from e
        transform = _as_transform(transform)

        index = add_quad(to_ti_vec3(corner), to_ti_vec3(edge_u), to_ti_vec3(edge_v), material_id, transform)
        params = {"corner": list(corner), "edge_u": list(edge_u), "edge_v": list(edge_v)}
        return self._record_primitive(GeometryKind.QUAD, index, material_id, params, transform)

    def add_plane(
        self,
        point: Vec3Tuple,
        normal: Vec3Tuple,
        material_id: int,
        transform: npt.ArrayLike | None = None,
    ) -> int:
        """Add an infinite plane; the normal is normalized before storage.

        Raises:
            RuntimeError: If the maximum number of planes is exceeded.
            ValueError: If the normal is zero-length, or the material ID or
                transform is invalid.
        """
        self._check_material_id(material_id)
        point = _as_tuple(point, "point")
        unit_normal = _as_tuple(unit_vector(normal), "normal")
        transform = _as_transform(transform)

        index = add_plane(to_ti_vec3(point), to_ti_vec3(unit_normal), material_id, transform)
        params = {"point": list(point), "normal": list(unit_normal)}
        return self._record_primitive(GeometryKind.PLANE, index, material_id, params, transform)

    def add_lambertian_sphere(
        self,
        center: Vec3Tuple,
        radius: float,
        albedo: Vec3Tuple,
        transform: npt.ArrayLike | None = None,
    ) -> tuple[int, int]:
        """Add a sphere with a new Lambertian material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_lambertian_material(albedo)
        return self.add_sphere(center, radius, material_id, transform), material_id

    def add_metal_sphere(
        self,
        center: Vec3Tuple,
        radius: float,
        albedo: Vec3Tuple,
        fuzz: float = 0.0,
        transform: npt.ArrayLike | None = None,
    ) -> tuple[int, int]:
        material_id = self.add_metal_material(albedo, fuzz)
        return self.add_sphere(center, radius, material_id, transform), material_id

    def add_dielectric_sphere(
        self,
        center: Vec3Tuple,
        radius: float,
        ior: float = 1.5,
        transform: npt.ArrayLike | None = None,
    ) -> tuple[int, int]:
        material_id = self.add_dielectric_material(ior)
        return self.add_sphere(center, radius, material_id, transform), material_id

    def get_primitive_count(self) -> int:
        return get_primitive_count()

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export materials and primitives, keeping the primitive order."""
        config = SceneConfig()
        for mat in self.materials:
            config.materials.append({"type": mat.material_type.name.lower(), **mat.params})
        for prim in self.primitives:
            entry: dict[str, Any] = {"kind": prim.kind.name.lower(), **prim.params, "material_id": prim.material_id}
            if prim.transform is not None:
                entry["transform"] = prim.transform.tolist()
            config.primitives.append(entry)
        return config

    def from_config(self, config: SceneConfig) -> None:
        """Replace the current scene with a configuration.

        Primitives are re-added in list order, so a round trip through
        to_config/from_config renders identically.

        Raises:
            ValueError: If the configuration contains invalid data.
        """
        self.clear()

        # Materials first (primitives reference them)
        for mat_config in config.materials:
            mat_type = mat_config.get("type", "").lower()
            if mat_type == "lambertian":
                pattern_name = mat_config.get("pattern", "solid")
                try:
                    pattern = PatternType[pattern_name.upper()]
                except KeyError as e:
                    raise ValueError(f"Unknown pattern: {pattern_name}") from e
                self.add_lambertian_material(
                    mat_config.get("albedo", [0.5, 0.5, 0.5]),
                    pattern=pattern,
                    albedo_alt=mat_config.get("albedo_alt"),
                    pattern_scale=mat_config.get("pattern_scale", 1.0),
                    pattern_transform=mat_config.get("pattern_transform"),
                )
            elif mat_type == "metal":
                self.add_metal_material(mat_config.get("albedo", [0.8, 0.8, 0.8]), mat_config.get("fuzz", 0.0))
            elif mat_type == "dielectric":
                self.add_dielectric_material(mat_config.get("ior", 1.5))
            else:
                raise ValueError(f"Unknown material type: {mat_type}")

        for prim in config.primitives:
            kind = prim.get("kind", "").lower()
            material_id = prim.get("material_id", 0)
            transform = prim.get("transform")
            if kind == "sphere":
                self.add_sphere(prim.get("center", [0, 0, 0]), prim.get("radius", 1.0), material_id, transform)
            elif kind == "quad":
                self.add_quad(
                    prim.get("corner", [0, 0, 0]),
                    prim.get("edge_u", [1, 0, 0]),
                    prim.get("edge_v", [0, 1, 0]),
                    material_id,
                    transform,
                )
            elif kind == "plane":
                self.add_plane(prim.get("point", [0, 0, 0]), prim.get("normal", [0, 1, 0]), material_id, transform)
            else:
                raise ValueError(f"Unknown primitive kind: {kind}")

        logger.info(
            "Loaded scene: %d materials, %d primitives",
            self.get_material_count(),
            self.get_primitive_count(),
        )

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a JSON-friendly dictionary."""
        config = self.to_config()
        return {"materials": config.materials, "primitives": config.primitives}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary with optional 'materials' and 'primitives' keys."""
        self.from_config(SceneConfig(materials=data.get("materials", []), primitives=data.get("primitives", [])))
