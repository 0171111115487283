"""Camera module for view and ray generation.

Components:
    thin_lens: Look-at perspective camera with optional defocus blur

Camera responsibilities:
    - Transform (s, t) image coordinates to world-space rays
    - Apply anti-aliasing jitter for sub-pixel sampling
    - Support look-at positioning with up vector
    - Jitter ray origins across the lens for depth of field

Ray generation uses normalized device coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image
"""

from .thin_lens import (
    Camera,
    get_camera_info,
    get_ray,
    get_ray_for_pixel,
    setup_camera,
)

__all__ = [
    "Camera",
    "setup_camera",
    "get_ray",
    "get_ray_for_pixel",
    "get_camera_info",
]
