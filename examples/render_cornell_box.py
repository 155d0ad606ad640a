#!/usr/bin/env python3
"""Render the Cornell box scene.

Builds the triangle Cornell box, renders it on all CPU cores and writes a PNG.

Usage:
    python examples/render_cornell_box.py [options]

Options:
    --width WIDTH       Image width in pixels (default: 256)
    --height HEIGHT     Image height in pixels (default: 256)
    --workers N         Worker threads (default: CPU count)
    --output OUTPUT     Output file path (default: cornell_box.png)
    --quiet             Suppress progress output

Example:
    python examples/render_cornell_box.py --width 128 --height 128
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

from meshtrace.config import RenderSettings
from meshtrace.core.renderer import TileRenderer
from meshtrace.preview.export import save_png
from meshtrace.scene.cornell_box import create_cornell_box_scene


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the Cornell box scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=256, help="Image width (default: 256)")
    parser.add_argument("--height", type=int, default=256, help="Image height (default: 256)")
    parser.add_argument("--workers", type=int, default=None, help="Worker threads")
    parser.add_argument(
        "--output",
        type=str,
        default="cornell_box.png",
        help="Output file path (default: cornell_box.png)",
    )
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    return parser.parse_args()


def render_cornell_box(
    width: int = 256,
    height: int = 256,
    workers: int | None = None,
    output_path: str = "cornell_box.png",
    quiet: bool = False,
) -> Path:
    """Render the Cornell box scene and save to file.

    Returns:
        Path to the saved image file.
    """
    if not quiet:
        print(f"Creating Cornell box scene ({width}x{height})...")
    scene = create_cornell_box_scene(width, height)
    renderer = TileRenderer(scene, RenderSettings(width=width, height=height, workers=workers))

    start_time = time.time()

    def progress_callback(done: int, total: int) -> None:
        if not quiet:
            print(f"\r  Tiles: {done}/{total}", end="", flush=True)

    renderer.render(callback=progress_callback)
    if not quiet:
        print()

    output_file = Path(output_path)
    save_png(renderer, output_file, gamma=2.2)

    if not quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {time.time() - start_time:.2f}s")
    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()
    try:
        render_cornell_box(
            width=args.width,
            height=args.height,
            workers=args.workers,
            output_path=args.output,
            quiet=args.quiet,
        )
        return 0
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
