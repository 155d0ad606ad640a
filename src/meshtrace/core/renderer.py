"""Tiled multithreaded renderer.

The image plane is cut into a grid of rectangular tiles: each axis is split
into ``workers`` bands of equal size, and any remainder pixels are given to
the last band of that axis, so the tiles cover every pixel exactly once.
Tiles are traced on a ``ThreadPoolExecutor``; each worker fills a private
buffer and returns it, and the calling thread copies the buffers into the
output image after every worker has finished. Workers share the scene and
settings read-only, so no locks are needed anywhere.

A fault in any worker is re-raised by ``render_image`` and aborts the whole
render; there is no partial-image recovery and no cancellation.

Example:
    >>> from meshtrace.config import RenderSettings
    >>> from meshtrace.core.renderer import TileRenderer
    >>> from meshtrace.scene.cornell_box import create_cornell_box_scene
    >>>
    >>> settings = RenderSettings(width=128, height=128)
    >>> renderer = TileRenderer(create_cornell_box_scene(128, 128), settings)
    >>> renderer.render()
    >>> renderer.save_image("cornell_box.png")
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from meshtrace.config import RenderSettings
from meshtrace.core.integrator import trace
from meshtrace.scene.scene import Scene

logger = logging.getLogger(__name__)

# Callback receives (tiles_done, tiles_total)
ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class Tile:
    """A half-open rectangle ``[x0, x1) x [y0, y1)`` of the image plane."""

    x0: int
    y0: int
    x1: int
    y1: int

    @property
    def width(self) -> int:
        return self.x1 - self.x0

    @property
    def height(self) -> int:
        return self.y1 - self.y0

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def pixels(self) -> Iterator[tuple[int, int]]:
        """Iterate ``(x, y)`` coordinates row by row."""
        for y in range(self.y0, self.y1):
            for x in range(self.x0, self.x1):
                yield x, y


def _bands(size: int, count: int) -> list[tuple[int, int]]:
    """Split ``[0, size)`` into ``count`` bands, remainder to the last one."""
    step = size // count
    bands = [(i * step, (i + 1) * step) for i in range(count)]
    bands[-1] = (bands[-1][0], size)
    return bands


def partition_tiles(width: int, height: int, workers: int) -> list[Tile]:
    """Partition a ``width`` x ``height`` image into non-overlapping tiles.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        workers: Number of bands per axis (the render worker count).

    Returns:
        Non-empty tiles whose union is every pixel exactly once.

    Raises:
        ValueError: If any argument is not positive.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if workers <= 0:
        raise ValueError(f"Worker count must be positive, got {workers}")

    tiles = []
    for y0, y1 in _bands(height, workers):
        for x0, x1 in _bands(width, workers):
            tile = Tile(x0, y0, x1, y1)
            if not tile.is_empty:
                tiles.append(tile)
    return tiles


def render_tile(
    scene: Scene,
    tile: Tile,
    settings: RenderSettings,
) -> npt.NDArray[np.float32]:
    """Trace every pixel of ``tile`` into a private buffer.

    Returns:
        Linear radiance of shape (tile.height, tile.width, 3).
    """
    buffer = np.zeros((tile.height, tile.width, 3), dtype=np.float32)
    camera = scene.camera
    for x, y in tile.pixels():
        ray = camera.ray_for_pixel(x, y)
        buffer[y - tile.y0, x - tile.x0] = trace(scene, ray, 0, settings)
    return buffer


def render_image(
    scene: Scene,
    settings: RenderSettings,
    callback: ProgressCallback | None = None,
) -> npt.NDArray[np.float32]:
    """Render the full image in parallel.

    Args:
        scene: A built scene; shared read-only by all workers.
        settings: Render settings; ``width``/``height`` give the image size.
        callback: Optional progress callback, invoked on the calling thread
            once per merged tile with ``(tiles_done, tiles_total)``.

    Returns:
        Linear radiance image of shape (height, width, 3).

    Raises:
        ValueError: If the camera viewport does not match the image size.
        Exception: Whatever a worker raised; the render is abandoned.
    """
    camera = scene.camera
    if (camera.viewport_w, camera.viewport_h) != (settings.width, settings.height):
        raise ValueError(
            f"Camera viewport {camera.viewport_w}x{camera.viewport_h} does not match "
            f"image size {settings.width}x{settings.height}"
        )

    workers = settings.resolved_workers()
    tiles = partition_tiles(settings.width, settings.height, workers)
    logger.info(
        "Rendering %dx%d with %d workers (%d tiles)",
        settings.width,
        settings.height,
        workers,
        len(tiles),
    )
    start = time.perf_counter()

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="meshtrace") as pool:
        futures = [pool.submit(render_tile, scene, tile, settings) for tile in tiles]
        wait(futures)

    image = np.zeros((settings.height, settings.width, 3), dtype=np.float32)
    for done, (tile, future) in enumerate(zip(tiles, futures), start=1):
        # Re-raises a worker exception
        image[tile.y0 : tile.y1, tile.x0 : tile.x1] = future.result()
        if callback is not None:
            callback(done, len(tiles))

    logger.info("Render finished in %.2fs", time.perf_counter() - start)
    return image


class TileRenderer:
    """Convenience wrapper holding a scene, settings and the last image.

    Attributes:
        scene: The scene being rendered.
        settings: Render settings.
    """

    def __init__(self, scene: Scene, settings: RenderSettings) -> None:
        self.scene = scene
        self.settings = settings
        self._image: npt.NDArray[np.float32] | None = None

    @property
    def width(self) -> int:
        return self.settings.width

    @property
    def height(self) -> int:
        return self.settings.height

    @property
    def has_image(self) -> bool:
        return self._image is not None

    def render(self, callback: ProgressCallback | None = None) -> npt.NDArray[np.float32]:
        """Render the scene and keep the linear result."""
        self._image = render_image(self.scene, self.settings, callback)
        return self._image

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the last rendered linear radiance image, shape (H, W, 3).

        Raises:
            RuntimeError: If ``render`` has not been called yet.
        """
        if self._image is None:
            raise RuntimeError("Nothing rendered yet; call render() first")
        return self._image

    def get_image_uint8(self, gamma: float = 1.0) -> npt.NDArray[np.uint8]:
        """Get the last render as 8-bit RGB (clamped, optionally gamma encoded)."""
        from meshtrace.preview.export import image_to_uint8

        return image_to_uint8(self.get_image_numpy(), gamma=gamma)

    def save_image(self, filepath: str, gamma: float = 1.0) -> None:
        """Save the last render as an 8-bit PNG."""
        from meshtrace.preview.export import save_png

        save_png(self, filepath, gamma=gamma)

    def __repr__(self) -> str:
        return (
            f"TileRenderer(width={self.width}, height={self.height}, "
            f"rendered={self.has_image})"
        )
