"""Material tags and the scatter result shared by every material."""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors
vec3 = tm.vec3


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the integrator to determine which
    scattering function to call.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


@ti.dataclass
class ScatterRecord:
    """Outcome of scattering a ray off a surface.

    Attributes:
        scattered: 1 if a ray leaves the surface, 0 if it was absorbed.
        attenuation: Per-channel color multiplier for the scattered ray.
        origin: Origin of the scattered ray (always the hit point).
        direction: Direction of the scattered ray (not necessarily unit).
    """

    scattered: ti.i32
    attenuation: vec3
    origin: vec3
    direction: vec3


@ti.func
def make_absorbed_record(point: vec3) -> ScatterRecord:
    """A ScatterRecord for a ray that was absorbed at ``point``."""
    return ScatterRecord(
        scattered=0,
        attenuation=vec3(0.0, 0.0, 0.0),
        origin=point,
        direction=vec3(0.0, 0.0, 0.0),
    )
