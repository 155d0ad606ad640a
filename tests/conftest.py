"""Pytest configuration for meshtrace tests.

Shared fixtures build small scenes out of axis-aligned quads so expected
radiance values can be worked out by hand:

- ``floor_manager``: a 10x10 white floor on the y = 0 plane facing +y, with
  a camera looking down at it and ambient radiance 0.1. No lights.
- ``settings``: a tiny render configuration matching the fixture camera.
"""

import numpy as np
import pytest

from meshtrace.camera.pinhole import PinholeCamera
from meshtrace.config import RenderSettings
from meshtrace.core.ray import Ray, vec3
from meshtrace.materials.material import Material
from meshtrace.materials.texture import Texture, TextureKind
from meshtrace.scene.manager import SceneManager

IMAGE_SIZE = 8


def down_ray(x: float, z: float, height: float = 1.0) -> Ray:
    """A ray pointing straight down at ``(x, 0, z)`` from ``height``."""
    return Ray(origin=vec3(x, height, z), direction=vec3(0.0, -1.0, 0.0))


def overhead_camera() -> PinholeCamera:
    """Camera above the origin; the integrator tests trace their own rays."""
    return PinholeCamera.from_axis_angle(
        (0.0, 1.0, 0.0), (0.0, 1.0, 0.0), 0.0, IMAGE_SIZE, IMAGE_SIZE
    )


def transparent_material(name: str = "glass_cutout") -> Material:
    """A material whose alpha texture is fully transparent everywhere."""
    alpha = Texture.from_array(TextureKind.ALPHA, np.zeros((1, 1, 2), dtype=np.uint8))
    return Material(name=name, diffuse=(1.0, 0.0, 0.0), alpha_texture=alpha)


@pytest.fixture
def settings():
    """Small render settings matching the fixture camera viewport."""
    return RenderSettings(width=IMAGE_SIZE, height=IMAGE_SIZE, workers=2)


@pytest.fixture
def floor_manager():
    """SceneManager holding a white floor quad, a camera and ambient light."""
    manager = SceneManager()
    manager.add_material(Material(name="white", diffuse=(0.5, 0.5, 0.5)))
    # Spans x, z in [-5, 5]; cross((0,0,10), (10,0,0)) points up
    manager.add_quad((-5.0, 0.0, -5.0), (0.0, 0.0, 10.0), (10.0, 0.0, 0.0), "white")
    manager.set_ambient((0.1, 0.1, 0.1))
    manager.set_camera(
        PinholeCamera.from_lookat((0.0, 4.0, -4.0), (0.0, 0.0, 0.0), IMAGE_SIZE, IMAGE_SIZE)
    )
    yield manager
    manager.clear()
