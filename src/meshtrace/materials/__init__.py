"""Materials module.

Components:
    texture: Decoded textures with wrap addressing and nearest/bilinear filtering
    material: Material parameters and the Lambert, Phong and Schlick terms
"""

from .material import (
    DEFAULT_MATERIAL_NAME,
    Material,
    fresnel_schlick,
    lambertian,
    phong_specular,
)
from .texture import Texture, TextureKind, load_texture, wrap_coordinate

__all__ = [
    "DEFAULT_MATERIAL_NAME",
    "Material",
    "fresnel_schlick",
    "lambertian",
    "phong_specular",
    "Texture",
    "TextureKind",
    "load_texture",
    "wrap_coordinate",
]
