"""Unit tests for materials and BRDF terms.

Tests cover:
- Material defaults and validation
- Diffuse colour modulation by the diffuse texture
- The cutout threshold, per texture layer
- Lambert, Phong and Schlick terms
"""

import math

import numpy as np
import pytest

from meshtrace.config import CUTOUT_THRESHOLD, TextureFilter
from meshtrace.materials.material import Material, fresnel_schlick, lambertian, phong_specular
from meshtrace.materials.texture import Texture, TextureKind


def alpha_texture(value: int) -> Texture:
    return Texture.from_array(TextureKind.ALPHA, np.array([[[255, value]]], dtype=np.uint8))


class TestMaterial:
    """Tests for material construction."""

    def test_defaults(self):
        mat = Material(name="plain")
        assert np.allclose(mat.diffuse, 0.8)
        assert np.allclose(mat.specular, 0.0)
        assert np.allclose(mat.emission, 0.0)
        assert mat.shininess == 0.0
        assert not mat.diffuse_texture.is_present
        assert not mat.alpha_texture.is_present

    def test_tuples_converted_to_arrays(self):
        mat = Material(name="red", diffuse=(0.65, 0.05, 0.05))
        assert isinstance(mat.diffuse, np.ndarray)
        assert mat.diffuse.shape == (3,)

    def test_negative_shininess_rejected(self):
        with pytest.raises(ValueError):
            Material(name="bad", shininess=-1.0)

    def test_wrong_texture_slot_rejected(self):
        with pytest.raises(ValueError):
            Material(name="bad", diffuse_texture=alpha_texture(255))

    def test_is_frozen(self):
        mat = Material(name="plain")
        with pytest.raises(AttributeError):
            mat.shininess = 10.0


class TestDiffuseColor:
    """Tests for texture-modulated diffuse colour."""

    def test_untextured_returns_constant(self):
        mat = Material(name="red", diffuse=(0.65, 0.05, 0.05))
        assert np.allclose(mat.diffuse_color((0.3, 0.3)), (0.65, 0.05, 0.05))

    def test_texture_modulates_diffuse(self):
        texture = Texture.from_array(
            TextureKind.DIFFUSE, np.array([[[255, 128, 0, 255]]], dtype=np.uint8)
        )
        mat = Material(name="tex", diffuse=(0.5, 0.5, 0.5), diffuse_texture=texture)
        assert np.allclose(mat.diffuse_color((0.5, 0.5)), (0.5, 0.5 * 128 / 255, 0.0))


class TestCutout:
    """Tests for cutout transparency."""

    def test_untextured_never_cutout(self):
        assert not Material(name="plain").is_cutout((0.5, 0.5))

    def test_zero_alpha_is_cutout(self):
        mat = Material(name="hole", alpha_texture=alpha_texture(0))
        assert mat.is_cutout((0.5, 0.5))

    def test_one_step_alpha_is_opaque(self):
        """Test that the smallest non-zero 8-bit alpha is above the threshold."""
        assert 1 / 255 > CUTOUT_THRESHOLD
        mat = Material(name="faint", alpha_texture=alpha_texture(1))
        assert not mat.is_cutout((0.5, 0.5))

    def test_diffuse_alpha_counts(self):
        texture = Texture.from_array(TextureKind.DIFFUSE, np.array([[[255, 0, 0, 0]]], np.uint8))
        mat = Material(name="leaf", diffuse_texture=texture)
        assert mat.is_cutout((0.5, 0.5), TextureFilter.BILINEAR)

    def test_faint_layers_do_not_combine(self):
        """Test that two layers at 10/255 each stay opaque."""
        diffuse = Texture.from_array(
            TextureKind.DIFFUSE, np.array([[[255, 255, 255, 10]]], np.uint8)
        )
        mat = Material(name="both", diffuse_texture=diffuse, alpha_texture=alpha_texture(10))
        assert not mat.is_cutout((0.5, 0.5))

    def test_either_layer_cuts_out(self):
        opaque_diffuse = Texture.from_array(
            TextureKind.DIFFUSE, np.array([[[255, 255, 255, 255]]], np.uint8)
        )
        clear_diffuse = Texture.from_array(
            TextureKind.DIFFUSE, np.array([[[255, 255, 255, 0]]], np.uint8)
        )
        by_alpha = Material(
            name="a", diffuse_texture=opaque_diffuse, alpha_texture=alpha_texture(0)
        )
        by_diffuse = Material(
            name="d", diffuse_texture=clear_diffuse, alpha_texture=alpha_texture(255)
        )
        assert by_alpha.is_cutout((0.5, 0.5))
        assert by_diffuse.is_cutout((0.5, 0.5))


class TestBRDFTerms:
    """Tests for the shading terms."""

    def test_lambert_facing(self):
        assert lambertian((0, 1, 0), (0, 1, 0)) == pytest.approx(1.0)

    def test_lambert_oblique(self):
        to_light = (0.0, math.cos(math.radians(60)), math.sin(math.radians(60)))
        assert lambertian((0, 1, 0), to_light) == pytest.approx(0.5)

    def test_lambert_clamped_behind(self):
        """Test that light from behind contributes zero, not negative."""
        assert lambertian((0, 1, 0), (0, -1, 0)) == 0.0

    def test_phong_mirror_direction(self):
        """Test that viewing along the reflection gives the peak value."""
        assert phong_specular((0, 1, 0), (0, 1, 0), (0, 1, 0), 32.0) == pytest.approx(1.0)

    def test_phong_falls_off(self):
        to_light = (math.sqrt(0.5), math.sqrt(0.5), 0.0)
        to_viewer = (0.0, 1.0, 0.0)
        # R = (-sqrt(.5), sqrt(.5), 0); R.V = sqrt(.5)
        expected = math.sqrt(0.5) ** 8
        assert phong_specular((0, 1, 0), to_light, to_viewer, 8.0) == pytest.approx(expected)

    def test_phong_zero_away_from_lobe(self):
        to_light = (math.sqrt(0.5), math.sqrt(0.5), 0.0)
        to_viewer = (math.sqrt(0.5), -math.sqrt(0.5), 0.0)
        assert phong_specular((0, 1, 0), to_light, to_viewer, 4.0) == 0.0

    def test_fresnel_schlick(self):
        assert fresnel_schlick((0, 1, 0), (0, 1, 0)) == pytest.approx(0.0)
        assert fresnel_schlick((0, 1, 0), (1, 0, 0)) == pytest.approx(1.0)
        grazing = (math.sqrt(0.75), 0.5, 0.0)
        assert fresnel_schlick((0, 1, 0), grazing) == pytest.approx(0.5**5)
