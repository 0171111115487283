"""Integration tests for end-to-end rendering pipeline.

This module tests the complete rendering pipeline from scene creation through
final image output. It verifies that all components work together correctly
and that the output meets basic quality criteria.

Tests are designed to be fast (low resolution, few samples) while still
exercising the full pipeline.

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

from __future__ import annotations

import numpy as np
import pytest


def _expected_sky_pixel(i: int, j: int, width: int, height: int) -> np.ndarray:
    """Gamma-corrected sky color at the center of pixel (i, j), 90 degree square view."""
    s = (i + 0.5) / width
    t = (j + 0.5) / height
    direction = np.array([-1.0 + 2.0 * s, -1.0 + 2.0 * t, -1.0])
    a = 0.5 * (direction[1] / np.linalg.norm(direction) + 1.0)
    linear = (1.0 - a) * np.array([1.0, 1.0, 1.0]) + a * np.array([0.5, 0.7, 1.0])
    return np.sqrt(linear)


class TestSingleSphereDeterminism:
    """Pixel-center sampling with one bounce draws no visible randomness."""

    WIDTH = 9
    HEIGHT = 9

    def _render(self) -> np.ndarray:
        from lumentrace.config import RenderSettings
        from lumentrace.core.renderer import render_image
        from lumentrace.scene.presets import create_single_sphere_scene

        _, camera = create_single_sphere_scene()
        settings = RenderSettings(
            width=self.WIDTH,
            height=self.HEIGHT,
            samples_per_pixel=1,
            max_depth=1,
            jitter=False,
        )
        return render_image(camera, settings)

    def test_repeated_renders_are_identical(self) -> None:
        from lumentrace.output.export import to_ppm

        first = to_ppm(self._render())
        second = to_ppm(self._render())
        assert first == second

    def test_center_pixel_is_black(self) -> None:
        buffer = self._render()
        np.testing.assert_array_equal(buffer[self.HEIGHT // 2, self.WIDTH // 2], [0.0, 0.0, 0.0])

    def test_corner_pixels_show_sky(self) -> None:
        buffer = self._render()

        # Row 0 of the buffer is the top of the image (j = HEIGHT - 1)
        corners = {
            (0, 0): (0, self.HEIGHT - 1),
            (0, self.WIDTH - 1): (self.WIDTH - 1, self.HEIGHT - 1),
            (self.HEIGHT - 1, 0): (0, 0),
        }
        for (row, col), (i, j) in corners.items():
            expected = _expected_sky_pixel(i, j, self.WIDTH, self.HEIGHT)
            np.testing.assert_allclose(buffer[row, col], expected, atol=1e-4)


class TestThreeSpheresScene:
    """End-to-end render of the three-spheres preset."""

    def test_render_is_finite_and_in_range(self) -> None:
        from lumentrace.config import RenderSettings
        from lumentrace.core.renderer import render_image
        from lumentrace.scene.presets import create_three_spheres_scene

        settings = RenderSettings(width=32, height=18, samples_per_pixel=2, max_depth=8)
        scene, camera = create_three_spheres_scene(aspect_ratio=settings.aspect_ratio)
        buffer = render_image(camera, settings)

        assert scene.get_primitive_count() == 4
        assert buffer.shape == (18, 32, 3)
        assert np.all(np.isfinite(buffer))
        assert np.all((buffer >= 0.0) & (buffer <= 1.0))
        # The sky is visible at the top, the ground at the bottom
        assert buffer[0].mean() > buffer[-1].mean() * 0.5
        assert buffer.mean() > 0.1

    def test_save_ppm(self, tmp_path) -> None:
        from lumentrace.config import RenderSettings
        from lumentrace.core.renderer import render_image
        from lumentrace.output.export import PPM_MAX_LINE_LENGTH, save_image
        from lumentrace.scene.presets import create_three_spheres_scene

        settings = RenderSettings(width=20, height=10, samples_per_pixel=1, max_depth=4)
        _, camera = create_three_spheres_scene(aspect_ratio=settings.aspect_ratio)
        path = tmp_path / "spheres.ppm"
        save_image(render_image(camera, settings), path)

        text = path.read_text(encoding="ascii")
        lines = text.split("\n")
        assert lines[:3] == ["P3", "20 10", "255"]
        assert text.endswith("\n")
        assert all(len(line) <= PPM_MAX_LINE_LENGTH for line in lines)
        assert len(" ".join(lines[3:]).split()) == 20 * 10 * 3


class TestProgressiveRefinement:
    def test_more_samples_reduce_noise(self) -> None:
        """Two independent 16-spp renders differ less than two 1-spp renders."""
        from lumentrace.camera.thin_lens import setup_camera
        from lumentrace.config import RenderSettings
        from lumentrace.core.renderer import Renderer
        from lumentrace.output.export import compute_rmse
        from lumentrace.scene.presets import create_three_spheres_scene

        settings = RenderSettings(width=24, height=12, samples_per_pixel=1, max_depth=6)
        _, camera = create_three_spheres_scene(aspect_ratio=settings.aspect_ratio)
        setup_camera(camera)

        def render(spp: int) -> np.ndarray:
            renderer = Renderer(settings)
            renderer.render(num_samples=spp)
            return renderer.get_linear_image()

        noisy = compute_rmse(render(1), render(1))
        smooth = compute_rmse(render(16), render(16))
        assert smooth < noisy


class TestStripedPlaneScene:
    @pytest.mark.parametrize("aperture", [0.0, 0.1])
    def test_render(self, aperture: float) -> None:
        from lumentrace.config import RenderSettings
        from lumentrace.core.renderer import render_image
        from lumentrace.scene.presets import create_striped_plane_scene

        settings = RenderSettings(width=24, height=18, samples_per_pixel=2, max_depth=6)
        scene, camera = create_striped_plane_scene(aspect_ratio=settings.aspect_ratio, aperture=aperture)
        buffer = render_image(camera, settings)

        assert [p.kind.name for p in scene.primitives] == ["PLANE", "SPHERE", "SPHERE", "SPHERE"]
        assert np.all(np.isfinite(buffer))


class TestWalledRoomScene:
    def test_render(self) -> None:
        from lumentrace.config import RenderSettings
        from lumentrace.core.renderer import render_image
        from lumentrace.scene.presets import create_walled_room_scene

        settings = RenderSettings(width=20, height=10, samples_per_pixel=2, max_depth=6)
        scene, camera = create_walled_room_scene(aspect_ratio=settings.aspect_ratio)
        buffer = render_image(camera, settings)

        assert scene.get_primitive_count() == 6
        assert all(p.transform is not None for p in scene.primitives)
        assert np.all(np.isfinite(buffer))
        assert buffer.max() > 0.0
