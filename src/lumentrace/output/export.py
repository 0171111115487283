"""Image export utilities for rendered pixel buffers.

A pixel buffer here is a gamma-corrected float array of shape
(height, width, 3), row-major with the top row first, values in [0, 1].

Supported formats:
    - PPM (plain "P3" text, 8-bit)
    - PNG (8-bit via Pillow)

Example:
    >>> from lumentrace.output.export import save_image
    >>> from lumentrace.core.renderer import render_image
    >>>
    >>> buffer = render_image(camera, settings)
    >>> save_image(buffer, "output.ppm")
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from lumentrace.output.gamma import clamp_image

logger = logging.getLogger(__name__)

# Plain PPM readers are only required to handle lines up to 70 characters
PPM_MAX_LINE_LENGTH = 70


def _check_buffer(buffer: npt.ArrayLike) -> npt.NDArray[np.float64]:
    arr = np.asarray(buffer, dtype=np.float64)
    if arr.ndim != 3 or arr.shape[2] != 3:
        raise ValueError(f"Pixel buffer must have shape (height, width, 3), got {arr.shape}")
    return arr


def quantize(image: npt.ArrayLike, max_value: int = 255) -> npt.NDArray[np.int64]:
    """Quantize [0, 1] values to integers in [0, max_value].

    Values are clamped first and rounded half up: ``floor(x * max + 0.5)``.

    Args:
        image: Float values of any shape.
        max_value: Largest output value.

    Returns:
        Integer array of the same shape.
    """
    scaled = clamp_image(image) * max_value + 0.5
    return np.floor(scaled).astype(np.int64)


def image_to_uint8(buffer: npt.ArrayLike) -> npt.NDArray[np.uint8]:
    """Convert a pixel buffer to an 8-bit RGB array."""
    return quantize(_check_buffer(buffer)).astype(np.uint8)


def to_ppm(buffer: npt.ArrayLike, max_value: int = 255) -> str:
    """Encode a pixel buffer as a plain (P3) PPM document.

    Pixel values are written row by row, top row first. Each image row
    starts a new line, and lines are wrapped so none exceeds 70 characters.
    The document ends with a newline.

    Args:
        buffer: Pixel buffer of shape (height, width, 3).
        max_value: Maximum color value written to the header.

    Returns:
        The PPM text.
    """
    values = quantize(_check_buffer(buffer), max_value)
    height, width, _ = values.shape

    lines = ["P3", f"{width} {height}", str(max_value)]
    for row in values:
        line = ""
        for value in row.reshape(-1):
            token = str(int(value))
            if not line:
                line = token
            elif len(line) + 1 + len(token) > PPM_MAX_LINE_LENGTH:
                lines.append(line)
                line = token
            else:
                line = f"{line} {token}"
        if line:
            lines.append(line)

    return "\n".join(lines) + "\n"


def save_ppm(buffer: npt.ArrayLike, filepath: str | Path) -> None:
    """Write a pixel buffer as a plain PPM file."""
    path = Path(filepath)
    path.write_text(to_ppm(buffer), encoding="ascii")
    logger.info("Wrote %s", path)


def save_png(buffer: npt.ArrayLike, filepath: str | Path) -> None:
    """Write a pixel buffer as an 8-bit PNG using Pillow."""
    path = Path(filepath)
    pil_image = PILImage.fromarray(image_to_uint8(buffer))
    pil_image.save(path)
    logger.info("Wrote %s", path)


def save_image(buffer: npt.ArrayLike, filepath: str | Path) -> None:
    """Write a pixel buffer, choosing the format from the file extension.

    ``.ppm`` files are written as plain PPM; any other extension Pillow
    understands (``.png``, ``.bmp``, ...) goes through Pillow.
    """
    path = Path(filepath)
    if path.suffix.lower() == ".ppm":
        save_ppm(buffer, path)
    else:
        save_png(buffer, path)


def compute_rmse(
    image_a: npt.NDArray[np.floating[npt.NBitBase]],
    image_b: npt.NDArray[np.floating[npt.NBitBase]],
) -> float:
    """Compute root mean squared error between two images.

    Args:
        image_a: First image array.
        image_b: Second image array (must have same shape as image_a).

    Returns:
        RMSE value (lower is more similar).

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
