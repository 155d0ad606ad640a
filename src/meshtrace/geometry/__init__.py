"""Geometry module: bounding boxes, triangles and the BVH.

Components:
    aabb: Axis-aligned bounding box with a slab ray test
    triangle: Vertex, Triangle (Moller-Trumbore intersection) and Intersection
    bvh: Median-split bounding volume hierarchy over triangles
"""

from .aabb import AABB
from .bvh import BVH, MAX_LEAF_SIZE, BVHNode
from .triangle import Intersection, Triangle, Vertex

__all__ = [
    "AABB",
    "BVH",
    "BVHNode",
    "MAX_LEAF_SIZE",
    "Intersection",
    "Triangle",
    "Vertex",
]
