#!/usr/bin/env python3
"""Render three spheres standing on a striped floor plane or in a walled corner.

Usage:
    python -m examples.render_plane [options]

Options:
    --width WIDTH       Image width in pixels (default: 800)
    --height HEIGHT     Image height in pixels (default: 600)
    --samples SAMPLES   Samples per pixel (default: 50)
    --aperture APERTURE Lens aperture, 0 for a pinhole camera (default: 0.0)
    --scene SCENE       "plane" or "room" (default: plane)
    --seed SEED         Random seed (default: 0)
    --output OUTPUT     Output file; .ppm or any Pillow format (default: plane.png)
    --deterministic     Render on a single thread for reproducible output
    --quiet             Only log warnings and errors
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

logger = logging.getLogger("lumentrace.examples.render_plane")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render three spheres on a striped plane.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=800, help="Image width in pixels (default: 800)")
    parser.add_argument("--height", type=int, default=600, help="Image height in pixels (default: 600)")
    parser.add_argument("--samples", type=int, default=50, help="Samples per pixel (default: 50)")
    parser.add_argument(
        "--aperture",
        type=float,
        default=0.0,
        help="Lens aperture, 0 for a pinhole camera (default: 0.0)",
    )
    parser.add_argument(
        "--scene",
        choices=("plane", "room"),
        default="plane",
        help="Striped floor plane or walled room (default: plane)",
    )
    parser.add_argument("--seed", type=int, default=0, help="Random seed (default: 0)")
    parser.add_argument(
        "--output",
        type=str,
        default="plane.png",
        help="Output file; .ppm or any Pillow format (default: plane.png)",
    )
    parser.add_argument(
        "--deterministic",
        action="store_true",
        help="Render on a single thread for reproducible output",
    )
    parser.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    return parser.parse_args()


def render_plane(
    width: int = 800,
    height: int = 600,
    num_samples: int = 50,
    aperture: float = 0.0,
    output_path: str = "plane.png",
    scene_name: str = "plane",
) -> Path:
    """Render the striped-plane or walled-room scene with progress logging and save it.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from lumentrace.camera.thin_lens import setup_camera
    from lumentrace.config import RenderSettings
    from lumentrace.core.renderer import Renderer
    from lumentrace.scene.presets import create_striped_plane_scene, create_walled_room_scene

    settings = RenderSettings(width=width, height=height, samples_per_pixel=num_samples)
    create_scene = create_walled_room_scene if scene_name == "room" else create_striped_plane_scene
    _, camera = create_scene(aspect_ratio=settings.aspect_ratio, aperture=aperture)
    setup_camera(camera)

    renderer = Renderer(settings)

    def progress_callback(current: int, target: int) -> None:
        logger.info("Progress: %d/%d samples (%.1f%%)", current, target, 100.0 * current / target)

    renderer.render(callback=progress_callback)

    output_file = Path(output_path)
    renderer.save_image(output_file)
    logger.info("Saved to %s", output_file.absolute())
    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    from lumentrace.config import init_backend
    from lumentrace.logging_config import setup_logging

    setup_logging("WARNING" if args.quiet else "INFO")
    init_backend(seed=args.seed, deterministic=args.deterministic)

    try:
        render_plane(
            width=args.width,
            height=args.height,
            num_samples=args.samples,
            aperture=args.aperture,
            output_path=args.output,
            scene_name=args.scene,
        )
        return 0
    except ValueError as e:
        logger.error("Error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
