"""Command-line front end.

Usage:
    meshtrace [options]
    python -m meshtrace [options]

Options:
    --width WIDTH           Image width in pixels (default: 512)
    --height HEIGHT         Image height in pixels (default: 512)
    --scene PATH            Scene JSON file (default: ./res/scene.json)
    --cornell-box           Render the built-in Cornell box instead of --scene
    --output PATH           Output PNG path (default: render.png)
    --workers N             Worker threads (default: CPU count)
    --max-depth N           Maximum trace depth (default: 4)
    --filter MODE           Texture filter: nearest or bilinear
    --shading MODEL         Shading model: lambert, phong or phong_ks
    --sky-gradient          Shade escaping rays with a gradient
    --tone-map METHOD       none, reinhard or exposure (default: none)
    --gamma GAMMA           Output gamma (default: 1.0)
    --preview               Show the result in a Matplotlib window
    --quiet / --verbose     Less or more log output

Example:
    meshtrace --width 256 --height 256 --cornell-box --output cornell.png
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from collections.abc import Sequence

from meshtrace import __version__
from meshtrace.config import (
    DEFAULT_HEIGHT,
    DEFAULT_MAX_DEPTH,
    DEFAULT_WIDTH,
    RenderSettings,
    ShadingModel,
    TextureFilter,
)
from meshtrace.core.renderer import TileRenderer
from meshtrace.errors import SceneLoadError
from meshtrace.preview.display import TONE_MAP_METHODS, show_preview
from meshtrace.preview.export import save_png
from meshtrace.scene.cornell_box import create_cornell_box_scene
from meshtrace.scene.loader import load_scene

logger = logging.getLogger(__name__)

DEFAULT_SCENE = "./res/scene.json"
DEFAULT_OUTPUT = "render.png"


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="meshtrace",
        description="Render a triangle-mesh scene with a Whitted-style ray tracer.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--width",
        type=int,
        default=DEFAULT_WIDTH,
        help=f"Image width in pixels (default: {DEFAULT_WIDTH})",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=DEFAULT_HEIGHT,
        help=f"Image height in pixels (default: {DEFAULT_HEIGHT})",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--scene",
        default=DEFAULT_SCENE,
        help=f"Scene description file (default: {DEFAULT_SCENE})",
    )
    source.add_argument(
        "--cornell-box",
        action="store_true",
        help="Render the built-in Cornell box scene",
    )
    parser.add_argument(
        "--output",
        default=DEFAULT_OUTPUT,
        help=f"Output PNG path (default: {DEFAULT_OUTPUT})",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of worker threads (default: CPU count)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=DEFAULT_MAX_DEPTH,
        help=f"Maximum trace depth (default: {DEFAULT_MAX_DEPTH})",
    )
    parser.add_argument(
        "--filter",
        choices=[f.value for f in TextureFilter],
        default=TextureFilter.NEAREST.value,
        help="Texture filter (default: nearest)",
    )
    parser.add_argument(
        "--shading",
        choices=[s.value for s in ShadingModel],
        default=ShadingModel.PHONG.value,
        help="Shading model (default: phong)",
    )
    parser.add_argument(
        "--sky-gradient",
        action="store_true",
        help="Shade rays that leave the scene with a gradient toward the main light",
    )
    parser.add_argument(
        "--tone-map",
        choices=TONE_MAP_METHODS,
        default="none",
        help="Tone mapping applied before export (default: none)",
    )
    parser.add_argument(
        "--gamma",
        type=float,
        default=1.0,
        help="Output gamma (default: 1.0)",
    )
    parser.add_argument(
        "--preview",
        action="store_true",
        help="Show the result in a Matplotlib window (needs the preview extra)",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    verbosity.add_argument("--verbose", action="store_true", help="Log debug details")
    return parser


def configure_logging(quiet: bool = False, verbose: bool = False) -> None:
    level = logging.INFO
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _settings_from_args(args: argparse.Namespace) -> RenderSettings:
    return RenderSettings(
        width=args.width,
        height=args.height,
        max_depth=args.max_depth,
        workers=args.workers,
        texture_filter=args.filter,
        shading=args.shading,
        sky_gradient=args.sky_gradient,
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Run the renderer; returns the process exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.quiet, args.verbose)

    try:
        settings = _settings_from_args(args)
    except ValueError as e:
        parser.error(str(e))
    if args.gamma <= 0.0:
        parser.error(f"--gamma must be positive, got {args.gamma}")

    start = time.perf_counter()
    try:
        if args.cornell_box:
            scene = create_cornell_box_scene(settings.width, settings.height)
        else:
            scene = load_scene(args.scene, settings.width, settings.height)
    except SceneLoadError as e:
        logger.error("Failed to load scene: %s", e)
        return 1
    logger.info("Scene ready in %.2fs: %r", time.perf_counter() - start, scene)

    def progress(done: int, total: int) -> None:
        logger.debug("Merged tile %d/%d", done, total)

    renderer = TileRenderer(scene, settings)
    renderer.render(callback=progress)

    try:
        save_png(renderer, args.output, tone_map=args.tone_map, gamma=args.gamma)
    except OSError as e:
        logger.error("Failed to write '%s': %s", args.output, e)
        return 1
    logger.info("Saved %s", args.output)

    if args.preview:
        try:
            show_preview(renderer, tone_map=args.tone_map, gamma=args.gamma)
        except ImportError as e:
            logger.error("--preview needs matplotlib, install the 'preview' extra (%s)", e)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
