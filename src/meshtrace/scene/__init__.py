"""Scene module for scene construction, queries and loading.

Components:
    scene: Immutable ``Scene`` shared read-only by render workers
    manager: ``SceneManager`` builder applying the data-quality policies
    intersection: Closest-hit and shadow-ray queries
    loader: OBJ/MTL mesh and JSON scene loading
    cornell_box: Programmatic Cornell box demo scene
"""

from .cornell_box import BOX_SIZE, CornellBoxParams, create_cornell_box_scene, populate_cornell_box
from .intersection import intersect_scene, is_occluded
from .loader import load_model, load_mtl, load_scene
from .manager import SceneManager
from .scene import Scene

__all__ = [
    "Scene",
    "SceneManager",
    "intersect_scene",
    "is_occluded",
    "load_model",
    "load_mtl",
    "load_scene",
    "create_cornell_box_scene",
    "populate_cornell_box",
    "CornellBoxParams",
    "BOX_SIZE",
]
