"""Ready-made scenes used by the example scripts and tests.

Each factory clears the global scene, builds its primitives and materials
through a fresh SceneManager and returns it with a matching Camera. Call
``setup_camera`` (or ``render_image``) with the returned camera before
rendering.

Example:
    >>> from lumentrace.scene.presets import create_three_spheres_scene
    >>> from lumentrace.core.renderer import render_image
    >>> scene, camera = create_three_spheres_scene()
    >>> buffer = render_image(camera, settings)
"""

import logging
import math

from lumentrace.camera.thin_lens import Camera
from lumentrace.core.transform import chain, rotation_x, rotation_y, scaling, translation
from lumentrace.materials.patterns import PatternType
from lumentrace.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# =============================================================================
# Scene Constants
# =============================================================================

GROUND_ALBEDO = (0.8, 0.8, 0.0)
CENTER_ALBEDO = (0.1, 0.2, 0.5)
METAL_ALBEDO = (0.8, 0.6, 0.2)
GLASS_IOR = 1.5

SINGLE_SPHERE_CENTER = (0.0, 0.0, -1.0)
SINGLE_SPHERE_RADIUS = 0.5
SINGLE_SPHERE_ALBEDO = (0.7, 0.3, 0.3)

FLOOR_STRIPE_COLORS = ((1.0, 0.9, 0.9), (0.3, 0.3, 0.35))
ROOM_WALL_ALBEDO = (1.0, 0.9, 0.9)

# Unit spheres placed by transform, shared by the plane and room scenes
MIDDLE_SPHERE_TRANSFORM = translation(-0.5, 1.0, 0.5)
RIGHT_SPHERE_TRANSFORM = chain(scaling(0.5, 0.5, 0.5), translation(1.5, 0.5, -0.5))
LEFT_SPHERE_TRANSFORM = chain(scaling(0.33, 0.33, 0.33), translation(-1.5, 0.33, -0.75))


def create_three_spheres_scene(
    aspect_ratio: float = 16.0 / 9.0,
    metal_fuzz: float = 0.0,
) -> tuple[SceneManager, Camera]:
    """Diffuse, glass and metal spheres resting on a huge ground sphere.

    Args:
        aspect_ratio: Aspect ratio of the returned camera.
        metal_fuzz: Fuzz of the right-hand metal sphere.

    Returns:
        Tuple of (scene, camera).
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material(GROUND_ALBEDO)
    center = scene.add_lambertian_material(CENTER_ALBEDO)
    glass = scene.add_dielectric_material(GLASS_IOR)
    metal = scene.add_metal_material(METAL_ALBEDO, fuzz=metal_fuzz)

    scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, center)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, metal)

    camera = Camera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=aspect_ratio,
    )
    logger.debug("Created three-spheres scene")
    return scene, camera


def create_single_sphere_scene(aspect_ratio: float = 1.0) -> tuple[SceneManager, Camera]:
    """One diffuse sphere straight ahead of a pinhole camera at the origin.

    Returns:
        Tuple of (scene, camera).
    """
    scene = SceneManager()
    scene.add_lambertian_sphere(SINGLE_SPHERE_CENTER, SINGLE_SPHERE_RADIUS, SINGLE_SPHERE_ALBEDO)

    camera = Camera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=SINGLE_SPHERE_CENTER,
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=aspect_ratio,
    )
    return scene, camera


def create_striped_plane_scene(
    aspect_ratio: float = 4.0 / 3.0,
    aperture: float = 0.0,
) -> tuple[SceneManager, Camera]:
    """Three spheres on an infinite striped floor plane.

    Args:
        aspect_ratio: Aspect ratio of the returned camera.
        aperture: Lens aperture; non-zero values blur everything off the
            focal plane through the middle sphere.

    Returns:
        Tuple of (scene, camera).
    """
    scene = SceneManager()

    floor = scene.add_lambertian_material(
        FLOOR_STRIPE_COLORS[0],
        pattern=PatternType.STRIPE,
        albedo_alt=FLOOR_STRIPE_COLORS[1],
        pattern_scale=1.0,
    )
    scene.add_plane((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), floor)

    _add_standing_spheres(scene)

    camera = _room_camera(aspect_ratio, aperture)
    logger.debug("Created striped-plane scene")
    return scene, camera


def create_walled_room_scene(
    aspect_ratio: float = 2.0,
    aperture: float = 0.0,
) -> tuple[SceneManager, Camera]:
    """The standing spheres in a corner built from flattened spheres.

    The floor and both walls are unit spheres squashed to 10 x 0.01 x 10;
    each wall is then stood upright and swung 45 degrees to one side.

    Returns:
        Tuple of (scene, camera).
    """
    scene = SceneManager()

    wall = scene.add_lambertian_material(ROOM_WALL_ALBEDO)
    slab = scaling(10.0, 0.01, 10.0)
    scene.add_sphere((0.0, 0.0, 0.0), 1.0, wall, transform=slab)
    for angle in (-math.pi / 4.0, math.pi / 4.0):
        scene.add_sphere(
            (0.0, 0.0, 0.0),
            1.0,
            wall,
            transform=chain(slab, rotation_x(math.pi / 2.0), rotation_y(angle), translation(0.0, 0.0, 5.0)),
        )
    _add_standing_spheres(scene)

    camera = _room_camera(aspect_ratio, aperture)
    logger.debug("Created walled-room scene")
    return scene, camera


def _add_standing_spheres(scene: SceneManager) -> None:
    origin = (0.0, 0.0, 0.0)
    scene.add_lambertian_sphere(origin, 1.0, (0.1, 1.0, 0.5), transform=MIDDLE_SPHERE_TRANSFORM)
    scene.add_metal_sphere(origin, 1.0, (0.5, 1.0, 0.1), fuzz=0.3, transform=RIGHT_SPHERE_TRANSFORM)
    scene.add_dielectric_sphere(origin, 1.0, ior=GLASS_IOR, transform=LEFT_SPHERE_TRANSFORM)


def _room_camera(aspect_ratio: float, aperture: float) -> Camera:
    return Camera(
        lookfrom=(0.0, 1.5, -5.0),
        lookat=(0.0, 1.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=60.0,
        aspect_ratio=aspect_ratio,
        aperture=aperture,
    )
