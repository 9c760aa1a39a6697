#!/usr/bin/env python3
"""Render the flatlight demonstration scene.

Builds the demo scene (light, glass lens, prism, mirror, diffuse blocks),
renders it progressively and writes a tone-mapped PNG.

Usage:
    python examples/render_demo_scene.py [options]

Example:
    python examples/render_demo_scene.py --width 256 --height 256 --samples 64 --passes 4
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

from flatlight.core.config import ARCH_NAMES, RenderConfig, init_taichi
from flatlight.logconfig import setup_logging

logger = logging.getLogger("flatlight.examples.render_demo_scene")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the flatlight demonstration scene.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=512, help="Image width in pixels")
    parser.add_argument("--height", type=int, default=512, help="Image height in pixels")
    parser.add_argument(
        "--samples", type=int, default=64, help="Angular samples per pixel per pass"
    )
    parser.add_argument("--passes", type=int, default=4, help="Number of passes to accumulate")
    parser.add_argument(
        "--max-depth", type=int, default=64, help="Maximum scattering events per path"
    )
    parser.add_argument("--arch", choices=ARCH_NAMES, default="cpu", help="Taichi backend")
    parser.add_argument(
        "--threads", type=int, default=None, help="CPU worker threads (default: all cores)"
    )
    parser.add_argument("--seed", type=int, default=0, help="Random seed")
    parser.add_argument(
        "--tone-map",
        choices=("none", "reinhard", "exposure"),
        default="reinhard",
        help="Tone mapping applied before export",
    )
    parser.add_argument(
        "--output", type=str, default="flatlight_demo.png", help="Output file path"
    )
    parser.add_argument("--preview", action="store_true", help="Show a Matplotlib preview")
    parser.add_argument("--log-file", type=str, default=None, help="Also log to this file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def render_demo_scene(
    config: RenderConfig, output_path: str, tone_map: str, preview: bool
) -> Path:
    """Render the demo scene with ``config`` and save it to ``output_path``.

    Taichi must already be initialized.
    """
    # Lazy imports so Taichi is initialized before fields are allocated
    from flatlight.core.progressive import ProgressiveRenderer
    from flatlight.preview.display import show_preview
    from flatlight.preview.export import save_png
    from flatlight.scene.demo import create_demo_scene

    _, viewport = create_demo_scene()
    renderer = ProgressiveRenderer(
        config.width,
        config.height,
        samples_per_pixel=config.samples_per_pixel,
        max_depth=config.max_depth,
        viewport=viewport,
    )

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        elapsed = time.time() - start_time
        logger.info("Pass %d/%d done (%.1fs elapsed)", current, target, elapsed)

    renderer.render(config.passes, callback=progress_callback)

    output_file = Path(output_path)
    save_png(renderer, str(output_file), tone_map=tone_map, gamma=2.2)
    logger.info("Saved %s in %.2fs total", output_file.absolute(), time.time() - start_time)

    if preview:
        show_preview(renderer, tone_map=tone_map)

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(
        "flatlight",
        level=logging.DEBUG if args.verbose else logging.INFO,
        log_file=args.log_file,
    )

    config = RenderConfig(
        width=args.width,
        height=args.height,
        samples_per_pixel=args.samples,
        max_depth=args.max_depth,
        passes=args.passes,
        arch=args.arch,
        cpu_threads=args.threads,
        random_seed=args.seed,
    )

    try:
        init_taichi(config)
        render_demo_scene(config, args.output, args.tone_map, args.preview)
    except (ValueError, RuntimeError, OSError) as e:
        logger.error("Render failed: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
