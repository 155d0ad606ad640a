"""Tests for the preview module.

This module tests the preview/display and preview/export functionality including:
- Tone mapping functions (Reinhard, exposure)
- Gamma correction
- PNG export

Note: Tests avoid displaying actual windows by not calling show_preview
in automated tests. The processing functions are tested directly.
"""

import numpy as np
import pytest
from PIL import Image as PILImage

from meshtrace.config import RenderSettings
from meshtrace.core.renderer import TileRenderer
from meshtrace.preview.display import (
    TONE_MAP_METHODS,
    apply_gamma,
    process_image_for_display,
    tone_map_exposure,
    tone_map_reinhard,
)
from meshtrace.preview.export import image_to_uint8, save_png, save_png_from_array


class TestToneMapReinhard:
    """Test Reinhard tone mapping."""

    def test_reinhard_preserves_black(self):
        result = tone_map_reinhard(np.zeros((10, 10, 3), dtype=np.float32))
        assert np.allclose(result, 0.0)

    def test_reinhard_compresses_bright_values(self):
        """Test that Reinhard compresses bright HDR values."""
        result = tone_map_reinhard(np.full((10, 10, 3), 10.0, dtype=np.float32))
        # 10 / (1 + 10) = 10/11 ~ 0.909
        assert np.allclose(result, 10.0 / 11.0, atol=1e-5)

    def test_reinhard_output_in_01_range(self):
        result = tone_map_reinhard(np.full((10, 10, 3), 1000.0, dtype=np.float32))
        assert np.all(result >= 0.0)
        assert np.all(result <= 1.0)

    def test_reinhard_handles_negative_input(self):
        result = tone_map_reinhard(np.full((10, 10, 3), -1.0, dtype=np.float32))
        assert np.all(result >= 0.0)

    @pytest.mark.parametrize("value", [0.0, 0.5, 1.0, 2.0, 5.0])
    def test_reinhard_formula(self, value):
        """Test Reinhard formula: L / (1 + L)."""
        result = tone_map_reinhard(np.full((2, 2, 3), value, dtype=np.float32))
        assert np.allclose(result, value / (1.0 + value), atol=1e-6)


class TestToneMapExposure:
    """Test exposure-based tone mapping."""

    def test_exposure_preserves_black(self):
        result = tone_map_exposure(np.zeros((10, 10, 3), dtype=np.float32), exposure=2.0)
        assert np.allclose(result, 0.0)

    def test_exposure_higher_value_brighter(self):
        image = np.full((10, 10, 3), 0.5, dtype=np.float32)
        assert np.mean(tone_map_exposure(image, 2.0)) > np.mean(tone_map_exposure(image, 0.5))

    def test_exposure_output_in_01_range(self):
        result = tone_map_exposure(np.full((10, 10, 3), 100.0, dtype=np.float32), exposure=5.0)
        assert np.all(result >= 0.0)
        assert np.all(result <= 1.0)

    def test_exposure_formula(self):
        """Test exposure formula: 1 - exp(-c * exposure)."""
        image = np.full((2, 2, 3), 0.75, dtype=np.float32)
        result = tone_map_exposure(image, exposure=1.5)
        assert np.allclose(result, 1.0 - np.exp(-0.75 * 1.5), atol=1e-6)


class TestApplyGamma:
    """Test gamma correction."""

    def test_default_gamma_is_identity(self):
        image = np.array([[[0.25, 0.5, 0.75]]], dtype=np.float32)
        assert apply_gamma(image) is image

    def test_gamma_brightens_midtones(self):
        """Test that gamma 2.2 brightens midtones (0.5 -> ~0.73)."""
        result = apply_gamma(np.full((4, 4, 3), 0.5, dtype=np.float32), gamma=2.2)
        assert np.all(result > 0.5)
        assert np.allclose(result, 0.5 ** (1.0 / 2.2), atol=1e-6)

    def test_gamma_preserves_black_and_white(self):
        image = np.array([[[0.0, 1.0, 0.0]]], dtype=np.float32)
        result = apply_gamma(image, gamma=2.2)
        assert np.isclose(result[0, 0, 0], 0.0)
        assert np.isclose(result[0, 0, 1], 1.0)

    def test_gamma_clamps_negative(self):
        result = apply_gamma(np.full((2, 2, 3), -0.5, dtype=np.float32), gamma=2.2)
        assert np.all(result >= 0.0)

    @pytest.mark.parametrize("gamma", [0.0, -2.2])
    def test_non_positive_gamma_raises(self, gamma):
        with pytest.raises(ValueError):
            apply_gamma(np.zeros((1, 1, 3), dtype=np.float32), gamma=gamma)


class TestProcessImageForDisplay:
    """Test the full display pipeline."""

    def test_defaults_only_clamp(self):
        image = np.array([[[-1.0, 0.5, 3.0]]], dtype=np.float32)
        result = process_image_for_display(image)
        assert result.dtype == np.float32
        assert np.allclose(result, [[[0.0, 0.5, 1.0]]])

    def test_process_with_reinhard(self):
        image = np.full((4, 4, 3), 1.0, dtype=np.float32)
        result = process_image_for_display(image, tone_map="reinhard")
        assert np.allclose(result, 0.5)

    def test_process_with_exposure_and_gamma(self):
        image = np.full((4, 4, 3), 1.0, dtype=np.float32)
        result = process_image_for_display(image, tone_map="exposure", gamma=2.2, exposure=2.0)
        expected = (1.0 - np.exp(-2.0)) ** (1.0 / 2.2)
        assert np.allclose(result, expected, atol=1e-5)

    def test_does_not_modify_input(self):
        image = np.full((2, 2, 3), 4.0, dtype=np.float32)
        process_image_for_display(image, tone_map="reinhard", gamma=2.2)
        assert np.all(image == 4.0)

    @pytest.mark.parametrize("tone_map", TONE_MAP_METHODS)
    def test_process_output_always_valid(self, tone_map):
        rng = np.random.default_rng(3)
        image = rng.uniform(-5.0, 50.0, size=(8, 8, 3)).astype(np.float32)
        result = process_image_for_display(image, tone_map=tone_map, gamma=2.2)
        assert np.all(result >= 0.0)
        assert np.all(result <= 1.0)
        assert np.all(np.isfinite(result))

    def test_process_invalid_tone_map_raises(self):
        with pytest.raises(ValueError):
            process_image_for_display(np.zeros((2, 2, 3), dtype=np.float32), tone_map="filmic")


class TestImageToUint8:
    """Test 8-bit conversion."""

    def test_image_to_uint8_output_type(self):
        result = image_to_uint8(np.full((4, 6, 3), 0.5, dtype=np.float32))
        assert result.dtype == np.uint8
        assert result.shape == (4, 6, 3)

    def test_image_to_uint8_black_and_white(self):
        image = np.zeros((1, 2, 3), dtype=np.float32)
        image[0, 1] = 1.0
        result = image_to_uint8(image)
        assert np.all(result[0, 0] == 0)
        assert np.all(result[0, 1] == 255)

    def test_out_of_range_values_clamped(self):
        image = np.array([[[-3.0, 7.0, 0.5]]], dtype=np.float32)
        assert image_to_uint8(image).tolist() == [[[0, 255, 127]]]


class TestSavePng:
    """Test PNG export."""

    def test_save_png_from_array(self, tmp_path):
        image = np.zeros((32, 64, 3), dtype=np.float32)
        image[:, :32, 0] = 1.0
        filepath = tmp_path / "array.png"

        save_png_from_array(image, filepath)

        with PILImage.open(filepath) as img:
            assert img.size == (64, 32)  # PIL size is (width, height)
            assert img.mode == "RGB"
            assert img.getpixel((0, 0)) == (255, 0, 0)
            assert img.getpixel((63, 31)) == (0, 0, 0)

    def test_save_png_from_renderer(self, floor_manager, tmp_path):
        scene = floor_manager.build()
        renderer = TileRenderer(scene, RenderSettings(width=8, height=8, workers=2))
        renderer.render()
        filepath = tmp_path / "render.png"

        save_png(renderer, filepath, tone_map="reinhard", gamma=2.2)

        with PILImage.open(filepath) as img:
            assert img.size == (8, 8)
            assert img.mode == "RGB"

    def test_save_png_before_render_raises(self, floor_manager, tmp_path):
        renderer = TileRenderer(floor_manager.build(), RenderSettings(width=8, height=8))
        with pytest.raises(RuntimeError):
            save_png(renderer, tmp_path / "never.png")
