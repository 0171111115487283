"""CPU ray tracer built on Taichi.

This package renders scenes of spheres, quads and planes with diffuse,
metal and glass materials by recursively tracing camera rays, and hands
back a gamma-corrected pixel buffer for the image writers.

Subpackages:
    core: Vector math, rays, the ray_color integrator and the render driver
    geometry: Primitive structs and ray-primitive intersection
    materials: Lambertian, metal and dielectric scattering, color patterns
    scene: Ordered primitive list, scene manager and preset scenes
    camera: Thin-lens camera with optional defocus blur
    output: Gamma correction, quantization and PNG/PPM export

Modules that declare Taichi fields must be imported after ``ti.init``;
use :func:`lumentrace.config.init_backend` first.
"""

__version__ = "0.1.0"
