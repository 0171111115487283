"""Gamma correction for linear pixel buffers.

Rendered colors are linear. Before quantization they are clamped to
[0, 1] and raised to ``1 / gamma``; the default gamma of 2.0 makes this a
square root, so a linear 0.25 displays as 0.5.
"""

import numpy as np
import numpy.typing as npt

DEFAULT_GAMMA = 2.0


def clamp_image(image: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Clamp to [0, 1], mapping NaN to 0."""
    arr = np.nan_to_num(np.asarray(image, dtype=np.float64), nan=0.0, posinf=1.0, neginf=0.0)
    return np.clip(arr, 0.0, 1.0)


def gamma_correct(image: npt.ArrayLike, gamma: float = DEFAULT_GAMMA) -> npt.NDArray[np.float64]:
    """Clamp a linear image to [0, 1] and apply gamma correction.

    Args:
        image: Linear color values of any shape (scalars work too).
        gamma: Display gamma. Must be positive.

    Returns:
        ``clamp(image) ** (1 / gamma)`` as float64. 0 and 1 map to
        themselves.

    Raises:
        ValueError: If gamma is not positive.
    """
    if not gamma > 0.0:
        raise ValueError(f"Gamma must be positive, got {gamma}")
    return np.power(clamp_image(image), 1.0 / gamma)
