"""Output module: gamma correction and image export.

Components:
    gamma: Clamp and gamma-correct linear images
    export: Quantize and write pixel buffers as PPM or PNG

Example:
    >>> from lumentrace.output import gamma_correct, save_image
    >>> buffer = gamma_correct(linear_image, gamma=2.0)
    >>> save_image(buffer, "output.png")
"""

from .export import (
    compute_rmse,
    image_to_uint8,
    quantize,
    save_image,
    save_png,
    save_ppm,
    to_ppm,
)
from .gamma import DEFAULT_GAMMA, clamp_image, gamma_correct

__all__ = [
    "DEFAULT_GAMMA",
    "clamp_image",
    "gamma_correct",
    "quantize",
    "image_to_uint8",
    "to_ppm",
    "save_ppm",
    "save_png",
    "save_image",
    "compute_rmse",
]
