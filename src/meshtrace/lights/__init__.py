"""Light sources: directional and point lights."""

from .sources import DirectionalLight, Light, PointLight

__all__ = ["DirectionalLight", "Light", "PointLight"]
