"""Render driver: sample accumulation and pixel-buffer production.

This module provides a wrapper around the integrator kernels that supports:
- Rendering a full image at a fixed number of samples per pixel
- Batch rendering with progress callbacks or a progress generator
- Reset and resize
- Averaging, clamping and gamma-correcting into a pixel buffer

The scene, camera and materials are global Taichi fields and are only read
while a kernel runs.

Example:
    >>> from lumentrace.config import RenderSettings, init_backend
    >>> init_backend(seed=42)
    >>> from lumentrace.core.renderer import Renderer
    >>> from lumentrace.scene.presets import create_three_spheres_scene
    >>> from lumentrace.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_three_spheres_scene()
    >>> setup_camera(camera)
    >>>
    >>> renderer = Renderer(RenderSettings(width=400, height=225, samples_per_pixel=50))
    >>> renderer.render()
    >>> buffer = renderer.get_pixel_buffer()
"""

import logging
import time
from collections.abc import Callable, Generator
from pathlib import Path

import numpy as np
import numpy.typing as npt

from lumentrace.camera.thin_lens import Camera, setup_camera
from lumentrace.config import RenderSettings
from lumentrace.core.integrator import (
    clear_render_target,
    get_linear_image_numpy,
    get_total_samples,
    render_image as _render_samples,
    setup_render_target,
)
from lumentrace.output.export import image_to_uint8, save_image
from lumentrace.output.gamma import gamma_correct

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class Renderer:
    """Accumulates samples for a render target and produces pixel buffers.

    The renderer owns the render settings and delegates to the global
    integrator buffers (which are Taichi fields), so only one Renderer
    should be active at a time.

    Attributes:
        settings: The RenderSettings in effect.
    """

    def __init__(self, settings: RenderSettings) -> None:
        """Initialize the renderer and clear the render target.

        Raises:
            ValueError: If the dimensions exceed the maximum supported size.
        """
        self.settings = settings
        setup_render_target(settings.width, settings.height)

    @property
    def width(self) -> int:
        return self.settings.width

    @property
    def height(self) -> int:
        return self.settings.height

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Clear the accumulated samples without changing dimensions."""
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and reset the accumulator.

        Raises:
            ValueError: If dimensions are invalid.
        """
        settings = RenderSettings(
            width=width,
            height=height,
            samples_per_pixel=self.settings.samples_per_pixel,
            max_depth=self.settings.max_depth,
            gamma=self.settings.gamma,
            jitter=self.settings.jitter,
            batch_size=self.settings.batch_size,
        )
        setup_render_target(width, height)
        self.settings = settings

    def _batches(self, num_samples: int, batch_size: int) -> Generator[tuple[int, int], None, None]:
        start_samples = self.sample_count
        target_samples = start_samples + num_samples

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            _render_samples(batch, self.settings.max_depth, self.settings.jitter)
            remaining -= batch
            yield (self.sample_count, target_samples)

    def render(
        self,
        num_samples: int | None = None,
        batch_size: int | None = None,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render samples with an optional progress callback.

        Accumulates samples into the existing buffer, so calling render()
        again keeps refining the image.

        Args:
            num_samples: Samples per pixel to add. Defaults to
                settings.samples_per_pixel.
            batch_size: Samples rendered before each callback. Defaults to
                settings.batch_size.
            callback: Optional function called after each batch with
                (current_total_samples, target_total_samples).

        Example:
            >>> def progress(current, target):
            ...     print(f"Progress: {current}/{target} samples")
            >>> renderer.render(100, batch_size=10, callback=progress)
        """
        if num_samples is None:
            num_samples = self.settings.samples_per_pixel
        if batch_size is None:
            batch_size = self.settings.batch_size
        if num_samples <= 0:
            return

        logger.info(
            "Rendering %dx%d, %d spp, max depth %d",
            self.width,
            self.height,
            num_samples,
            self.settings.max_depth,
        )
        start = time.perf_counter()

        for current, target in self._batches(num_samples, batch_size):
            logger.debug("Progress: %d/%d samples", current, target)
            if callback is not None:
                callback(current, target)

        logger.info("Render finished in %.2fs", time.perf_counter() - start)

    def render_progressive(
        self,
        num_samples: int | None = None,
        batch_size: int | None = None,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples, yielding progress after each batch.

        This is a generator-based alternative to render() with callbacks.

        Yields:
            Tuple of (current_total_samples, target_total_samples).

        Example:
            >>> for current, target in renderer.render_progressive(100, batch_size=10):
            ...     print(f"Progress: {current}/{target} samples")
        """
        if num_samples is None:
            num_samples = self.settings.samples_per_pixel
        if batch_size is None:
            batch_size = self.settings.batch_size
        if num_samples <= 0:
            return

        yield from self._batches(num_samples, batch_size)

    def get_linear_image(self) -> npt.NDArray[np.float32]:
        """Averaged linear colors, shape (height, width, 3), top row first."""
        return get_linear_image_numpy()

    def get_pixel_buffer(self) -> npt.NDArray[np.float64]:
        """Gamma-corrected pixel buffer with values in [0, 1].

        Returns:
            Array of shape (height, width, 3), row-major, top row first.
        """
        return gamma_correct(self.get_linear_image(), self.settings.gamma)

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Pixel buffer quantized to 8 bits (round half up)."""
        return image_to_uint8(self.get_pixel_buffer())

    def save_image(self, filepath: str | Path) -> None:
        """Save the pixel buffer; the extension picks PPM or Pillow formats."""
        save_image(self.get_pixel_buffer(), filepath)

    def __repr__(self) -> str:
        return f"Renderer(width={self.width}, height={self.height}, samples={self.sample_count})"


def render_image(camera: Camera, settings: RenderSettings) -> npt.NDArray[np.float64]:
    """Render the current scene once and return the pixel buffer.

    Sets up the camera, renders ``settings.samples_per_pixel`` samples for
    every pixel and returns the gamma-corrected buffer.

    Args:
        camera: The camera to render from.
        settings: Image size, sampling and gamma settings.

    Returns:
        Array of shape (height, width, 3) with values in [0, 1].
    """
    if abs(camera.aspect_ratio - settings.aspect_ratio) > 1e-3:
        logger.warning(
            "Camera aspect ratio %.4f differs from image aspect ratio %.4f",
            camera.aspect_ratio,
            settings.aspect_ratio,
        )
    setup_camera(camera)
    renderer = Renderer(settings)
    renderer.render()
    return renderer.get_pixel_buffer()
