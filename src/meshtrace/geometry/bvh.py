"""Bounding Volume Hierarchy over scene triangles.

The tracer relies on these operations:

    bvh = BVH.build(triangles)
    index, t = bvh.closest(ray, t_max)
    candidates = bvh.query(ray, triangles, t_max)

``closest`` runs the whole nearest-hit search (traversal plus exact
triangle tests) in compiled code. ``query`` returns a conservative, unsorted
superset of the triangles whose leaf boxes the ray may cross.

Construction recursively splits on the longest axis of the centroid bounds at
the median centroid, stopping at ``MAX_LEAF_SIZE`` triangles. Nodes are
stored in a flat list and traversed with an explicit stack, so a built BVH is
plain read-only data that any number of threads can query at once.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from meshtrace.core.ray import Ray
from meshtrace.geometry.aabb import AABB
from meshtrace.geometry.kernels import closest_hit, collect_candidates
from meshtrace.geometry.triangle import Triangle

logger = logging.getLogger(__name__)

# Maximum number of triangles stored in a single leaf
MAX_LEAF_SIZE = 4


@dataclass(frozen=True, eq=False)
class BVHNode:
    """A flattened BVH node.

    Interior nodes have ``count == 0`` and reference their children by index;
    leaves reference ``count`` entries of ``BVH.order`` starting at ``start``.
    """

    box: AABB
    left: int = -1
    right: int = -1
    start: int = 0
    count: int = 0

    @property
    def is_leaf(self) -> bool:
        return self.count > 0


class BVH:
    """Read-only bounding volume hierarchy.

    Besides the node objects, the hierarchy keeps flat arrays of node bounds,
    links and triangle edges that the compiled kernels in
    ``meshtrace.geometry.kernels`` traverse without holding the GIL.

    Attributes:
        nodes: Flattened node list, root at index 0.
        order: Triangle indices grouped by leaf.
    """

    def __init__(
        self,
        nodes: list[BVHNode],
        order: list[int],
        triangles: Sequence[Triangle] = (),
    ) -> None:
        self.nodes = tuple(nodes)
        self.order = tuple(order)

        count = len(self.nodes)
        self._node_lo = np.zeros((count, 3), dtype=np.float64)
        self._node_hi = np.zeros((count, 3), dtype=np.float64)
        self._node_left = np.full(count, -1, dtype=np.int64)
        self._node_right = np.full(count, -1, dtype=np.int64)
        self._node_start = np.zeros(count, dtype=np.int64)
        self._node_count = np.zeros(count, dtype=np.int64)
        for i, node in enumerate(self.nodes):
            self._node_lo[i] = node.box.minimum
            self._node_hi[i] = node.box.maximum
            self._node_left[i] = node.left
            self._node_right[i] = node.right
            self._node_start[i] = node.start
            self._node_count[i] = node.count
        self._order = np.asarray(self.order, dtype=np.int64)

        self._tri_v0 = np.zeros((len(triangles), 3), dtype=np.float64)
        self._tri_edge_a = np.zeros((len(triangles), 3), dtype=np.float64)
        self._tri_edge_b = np.zeros((len(triangles), 3), dtype=np.float64)
        for i, tri in enumerate(triangles):
            v0, v1, v2 = (v.position for v in tri.vertices)
            self._tri_v0[i] = v0
            self._tri_edge_a[i] = v1 - v0
            self._tri_edge_b[i] = v2 - v0

        for array in (
            self._node_lo,
            self._node_hi,
            self._node_left,
            self._node_right,
            self._node_start,
            self._node_count,
            self._order,
            self._tri_v0,
            self._tri_edge_a,
            self._tri_edge_b,
        ):
            array.setflags(write=False)

    def __len__(self) -> int:
        return len(self.order)

    @classmethod
    def build(cls, triangles: Sequence[Triangle]) -> BVH:
        """Build a hierarchy over ``triangles``.

        Each triangle's ``node_index`` is set to the index of the leaf that
        holds it. The triangle list itself is not reordered.
        """
        if not triangles:
            return cls([], [])

        boxes = [tri.bounding_box() for tri in triangles]
        centroids = np.stack([box.centroid for box in boxes])
        nodes: list[BVHNode] = []
        order: list[int] = []

        def _build(indices: list[int]) -> int:
            box = AABB.surrounding([boxes[i] for i in indices])
            node_id = len(nodes)
            nodes.append(BVHNode(box=box))  # replaced once children exist

            if len(indices) <= MAX_LEAF_SIZE:
                start = len(order)
                order.extend(indices)
                for i in indices:
                    triangles[i].node_index = node_id
                nodes[node_id] = BVHNode(box=box, start=start, count=len(indices))
                return node_id

            pts = centroids[indices]
            axis = int(np.argmax(pts.max(axis=0) - pts.min(axis=0)))
            ranked = sorted(indices, key=lambda i: centroids[i][axis])
            mid = len(ranked) // 2
            left = _build(ranked[:mid])
            right = _build(ranked[mid:])
            nodes[node_id] = BVHNode(box=box, left=left, right=right)
            return node_id

        _build(list(range(len(triangles))))
        logger.debug("Built BVH: %d triangles, %d nodes", len(triangles), len(nodes))
        return cls(nodes, order, triangles)

    def query(
        self,
        ray: Ray,
        triangles: Sequence[Triangle],
        t_max: float = math.inf,
    ) -> list[Triangle]:
        """Collect candidate triangles whose leaf boxes the ray crosses.

        Args:
            ray: The query ray.
            triangles: The triangle list the hierarchy was built over.
            t_max: Boxes entirely beyond this distance are skipped.

        Returns:
            Candidate triangles in traversal order (not sorted by distance).
        """
        if not self.nodes:
            return []

        out = np.empty(len(self._order), dtype=np.int64)
        n = collect_candidates(
            ray.origin,
            ray.direction,
            float(t_max),
            self._node_lo,
            self._node_hi,
            self._node_left,
            self._node_right,
            self._node_start,
            self._node_count,
            self._order,
            out,
        )
        return [triangles[i] for i in out[:n]]

    def closest(self, ray: Ray, t_max: float = math.inf) -> tuple[int, float]:
        """Nearest triangle along ``ray``, tested exactly in compiled code.

        Returns:
            ``(index, t)`` into the triangle list the hierarchy was built
            over; ``index`` is -1 on a miss.
        """
        if not self.nodes:
            return -1, math.inf

        index, t = closest_hit(
            ray.origin,
            ray.direction,
            float(t_max),
            self._tri_v0,
            self._tri_edge_a,
            self._tri_edge_b,
            self._node_lo,
            self._node_hi,
            self._node_left,
            self._node_right,
            self._node_start,
            self._node_count,
            self._order,
        )
        return int(index), float(t)
