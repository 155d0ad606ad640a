"""Tests for tile partitioning and the parallel renderer.

Tests cover:
- Tiles covering every pixel exactly once, remainder in the last band
- Argument validation
- Parallel output matching a single-worker render
- Worker faults propagating to the caller
- TileRenderer state and PNG output
"""

import numpy as np
import pytest
from conftest import IMAGE_SIZE
from PIL import Image as PILImage

import meshtrace.core.renderer as renderer_module
from meshtrace.config import RenderSettings
from meshtrace.core.integrator import trace
from meshtrace.core.renderer import Tile, TileRenderer, partition_tiles, render_image, render_tile
from meshtrace.lights.sources import PointLight


@pytest.fixture
def lit_scene(floor_manager):
    floor_manager.add_light(PointLight(position=(0.0, 3.0, 0.0), emission=(1.0, 1.0, 1.0)))
    return floor_manager.build()


def coverage(width, height, tiles):
    counts = np.zeros((height, width), dtype=int)
    for tile in tiles:
        counts[tile.y0 : tile.y1, tile.x0 : tile.x1] += 1
    return counts


class TestPartitionTiles:
    """Tests for the image-plane partition."""

    @pytest.mark.parametrize(
        "width, height, workers",
        [(8, 8, 2), (10, 7, 3), (640, 480, 8), (5, 3, 4), (1, 1, 6), (17, 1, 2)],
    )
    def test_every_pixel_exactly_once(self, width, height, workers):
        tiles = partition_tiles(width, height, workers)
        assert np.all(coverage(width, height, tiles) == 1)
        assert all(not tile.is_empty for tile in tiles)

    def test_grid_of_workers_squared(self):
        assert len(partition_tiles(64, 64, 4)) == 16

    def test_remainder_goes_to_last_band(self):
        tiles = partition_tiles(10, 7, 3)
        widths = sorted({tile.width for tile in tiles})
        heights = sorted({tile.height for tile in tiles})
        assert widths == [3, 4]
        assert heights == [2, 3]
        last = max(tiles, key=lambda t: (t.y0, t.x0))
        assert (last.x1, last.y1) == (10, 7)
        assert (last.width, last.height) == (4, 3)

    def test_more_workers_than_pixels(self):
        """Test that empty bands are dropped instead of producing empty tiles."""
        tiles = partition_tiles(2, 2, 4)
        assert tiles == [Tile(0, 0, 2, 2)]

    @pytest.mark.parametrize("width, height, workers", [(0, 8, 2), (8, -1, 2), (8, 8, 0)])
    def test_invalid_arguments(self, width, height, workers):
        with pytest.raises(ValueError):
            partition_tiles(width, height, workers)

    def test_tile_pixels_row_major(self):
        assert list(Tile(1, 2, 3, 4).pixels()) == [(1, 2), (2, 2), (1, 3), (2, 3)]


class TestRenderImage:
    """Tests for the parallel render."""

    def test_tile_matches_per_pixel_trace(self, lit_scene, settings):
        tile = Tile(2, 1, 5, 4)
        buffer = render_tile(lit_scene, tile, settings)
        assert buffer.shape == (3, 3, 3)
        expected = trace(lit_scene, lit_scene.camera.ray_for_pixel(3, 2), 0, settings)
        assert np.allclose(buffer[1, 1], expected)

    def test_parallel_matches_single_worker(self, lit_scene):
        single = render_image(lit_scene, RenderSettings(IMAGE_SIZE, IMAGE_SIZE, workers=1))
        parallel = render_image(lit_scene, RenderSettings(IMAGE_SIZE, IMAGE_SIZE, workers=3))
        assert single.shape == (IMAGE_SIZE, IMAGE_SIZE, 3)
        assert single.dtype == np.float32
        assert np.array_equal(single, parallel)

    def test_floor_is_visible(self, lit_scene, settings):
        image = render_image(lit_scene, settings)
        # The camera looks down at the floor, so the bottom row sees it
        assert np.all(image[-1] > 0.1)

    def test_callback_called_per_tile(self, lit_scene, settings):
        calls = []
        render_image(lit_scene, settings, callback=lambda done, total: calls.append((done, total)))
        assert calls == [(i, 4) for i in range(1, 5)]

    def test_viewport_mismatch_rejected(self, lit_scene):
        with pytest.raises(ValueError):
            render_image(lit_scene, RenderSettings(width=IMAGE_SIZE * 2, height=IMAGE_SIZE))

    def test_worker_fault_propagates(self, lit_scene, settings, monkeypatch):
        """Test that an exception in any worker aborts the render."""

        def failing_trace(scene, ray, depth, settings):
            if ray.direction[0] < -0.3:
                raise RuntimeError("worker failed")
            return np.zeros(3)

        monkeypatch.setattr(renderer_module, "trace", failing_trace)
        with pytest.raises(RuntimeError, match="worker failed"):
            render_image(lit_scene, settings)


class TestTileRenderer:
    """Tests for the TileRenderer wrapper."""

    def test_no_image_before_render(self, lit_scene, settings):
        renderer = TileRenderer(lit_scene, settings)
        assert not renderer.has_image
        with pytest.raises(RuntimeError):
            renderer.get_image_numpy()

    def test_render_and_convert(self, lit_scene, settings):
        renderer = TileRenderer(lit_scene, settings)
        image = renderer.render()

        assert renderer.has_image
        assert renderer.get_image_numpy() is image
        image_uint8 = renderer.get_image_uint8()
        assert image_uint8.shape == (IMAGE_SIZE, IMAGE_SIZE, 3)
        assert image_uint8.dtype == np.uint8

    def test_save_image(self, lit_scene, settings, tmp_path):
        renderer = TileRenderer(lit_scene, settings)
        renderer.render()
        path = tmp_path / "render.png"

        renderer.save_image(str(path))

        with PILImage.open(path) as saved:
            assert saved.size == (IMAGE_SIZE, IMAGE_SIZE)
            assert saved.mode == "RGB"
