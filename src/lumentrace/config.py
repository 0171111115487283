"""Backend initialization and render settings.

Taichi must be initialized before any lumentrace module that declares
fields is imported, so scripts start with::

    from lumentrace.config import init_backend
    init_backend(seed=42)

    from lumentrace.core.renderer import Renderer  # noqa: E402

Determinism: the random state of each Taichi CPU worker is derived from
``seed``, but which pixels a worker handles depends on scheduling.
``init_backend(deterministic=True)`` limits the CPU backend to a single
thread so repeated renders draw the same random numbers for the same
pixels. Renders that draw no random numbers at all (pixel-center sampling,
zero aperture, no diffuse/fuzzy/glass bounce) are reproducible either way.
"""

import logging
from dataclasses import dataclass

import taichi as ti

logger = logging.getLogger(__name__)


@dataclass
class RenderSettings:
    """Settings for one render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Camera samples averaged per pixel.
        max_depth: Bounce budget per sample. 0 renders black.
        gamma: Display gamma applied to the averaged linear color.
        jitter: Jitter samples within each pixel (anti-aliasing). When
            False every sample goes through the pixel center.
        batch_size: Samples per pixel rendered between progress reports.

    Raises:
        ValueError: On construction if any value is out of range.
    """

    width: int = 400
    height: int = 225
    samples_per_pixel: int = 100
    max_depth: int = 50
    gamma: float = 2.0
    jitter: bool = True
    batch_size: int = 10

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {self.width}x{self.height}")
        if self.samples_per_pixel <= 0:
            raise ValueError(f"samples_per_pixel must be positive, got {self.samples_per_pixel}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if not self.gamma > 0.0:
            raise ValueError(f"gamma must be positive, got {self.gamma}")
        if self.batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


def init_backend(seed: int = 0, deterministic: bool = False, debug: bool = False) -> None:
    """Initialize Taichi on the CPU.

    Args:
        seed: Seed for Taichi's per-thread random states.
        deterministic: Run kernels on a single CPU thread so random draws
            are reproducible for a given seed.
        debug: Enable Taichi debug mode (bounds checks and ``assert`` in
            device code, e.g. zero-length normalization).
    """
    kwargs = {}
    if deterministic:
        kwargs["cpu_max_num_threads"] = 1
    ti.init(arch=ti.cpu, random_seed=seed, debug=debug, **kwargs)
    logger.info(
        "Taichi initialized (cpu, seed=%d, deterministic=%s, debug=%s)",
        seed,
        deterministic,
        debug,
    )
