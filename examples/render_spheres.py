#!/usr/bin/env python3
"""Render the three-spheres scene.

Diffuse, glass and metal spheres on a large ground sphere under the default
sky gradient.

Usage:
    python -m examples.render_spheres [options]

Options:
    --width WIDTH       Image width in pixels (default: 400)
    --height HEIGHT     Image height in pixels (default: 225)
    --samples SAMPLES   Samples per pixel (default: 100)
    --max-depth DEPTH   Bounce budget per sample (default: 50)
    --fuzz FUZZ         Fuzz of the metal sphere (default: 0.0)
    --seed SEED         Random seed (default: 0)
    --output OUTPUT     Output file; .ppm or any Pillow format (default: spheres.ppm)
    --quiet             Only log warnings and errors

Example:
    python -m examples.render_spheres --width 200 --height 112 --samples 20
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

logger = logging.getLogger("lumentrace.examples.render_spheres")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the three-spheres scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=400, help="Image width in pixels (default: 400)")
    parser.add_argument("--height", type=int, default=225, help="Image height in pixels (default: 225)")
    parser.add_argument("--samples", type=int, default=100, help="Samples per pixel (default: 100)")
    parser.add_argument("--max-depth", type=int, default=50, help="Bounce budget per sample (default: 50)")
    parser.add_argument("--fuzz", type=float, default=0.0, help="Fuzz of the metal sphere (default: 0.0)")
    parser.add_argument("--seed", type=int, default=0, help="Random seed (default: 0)")
    parser.add_argument(
        "--output",
        type=str,
        default="spheres.ppm",
        help="Output file; .ppm or any Pillow format (default: spheres.ppm)",
    )
    parser.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    return parser.parse_args()


def render_spheres(
    width: int = 400,
    height: int = 225,
    num_samples: int = 100,
    max_depth: int = 50,
    fuzz: float = 0.0,
    output_path: str = "spheres.ppm",
) -> Path:
    """Render the three-spheres scene and save it.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from lumentrace.config import RenderSettings
    from lumentrace.core.renderer import render_image
    from lumentrace.output.export import save_image
    from lumentrace.scene.presets import create_three_spheres_scene

    settings = RenderSettings(
        width=width,
        height=height,
        samples_per_pixel=num_samples,
        max_depth=max_depth,
    )
    _, camera = create_three_spheres_scene(aspect_ratio=settings.aspect_ratio, metal_fuzz=fuzz)

    buffer = render_image(camera, settings)

    output_file = Path(output_path)
    save_image(buffer, output_file)
    logger.info("Saved to %s", output_file.absolute())
    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    from lumentrace.config import init_backend
    from lumentrace.logging_config import setup_logging

    setup_logging("WARNING" if args.quiet else "INFO")
    init_backend(seed=args.seed)

    try:
        render_spheres(
            width=args.width,
            height=args.height,
            num_samples=args.samples,
            max_depth=args.max_depth,
            fuzz=args.fuzz,
            output_path=args.output,
        )
        return 0
    except ValueError as e:
        logger.error("Error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
