"""Compiled intersection kernels.

The per-ray work of a render (Möller–Trumbore, the slab test and BVH
traversal) runs in these Numba functions over flat NumPy arrays. They are
compiled with ``nogil=True`` so that the render worker threads can trace rays
at the same time; the Python objects in ``triangle``, ``aabb`` and ``bvh``
only pack their data and call in here.

Array layout (built by ``BVH.build``):

    tri_v0, tri_edge_a, tri_edge_b   (T, 3) float64, first vertex and the
                                     edges v1 - v0, v2 - v0 per triangle
    node_lo, node_hi                 (N, 3) float64, node bounds
    node_left, node_right            (N,) int64, children of interior nodes
    node_start, node_count           (N,) int64, leaf range in ``order``
    order                            (T,) int64, triangle indices by leaf

All kernels are pure functions of their arguments.
"""

import numpy as np
from numba import njit

from meshtrace.core.ray import EPSILON

# Traversal stack depth; a median-split tree over 2**60 triangles fits
STACK_SIZE = 64


# =============================================================================
# Ray-Triangle (Möller–Trumbore)
# =============================================================================


@njit(cache=True, nogil=True)
def intersect_triangle(origin, direction, v0, edge_a, edge_b, t_max):
    """One-sided Möller–Trumbore test.

    Args:
        origin: Ray origin, shape (3,).
        direction: Ray direction, shape (3,).
        v0: First triangle vertex.
        edge_a: ``v1 - v0``.
        edge_b: ``v2 - v0``.
        t_max: Hits farther than this are rejected.

    Returns:
        The hit distance ``t`` in ``[EPSILON, t_max]``, or -1.0 for a miss,
        a back-face or parallel approach, or a hit closer than ``EPSILON``.
    """
    # p = direction x edge_b
    px = direction[1] * edge_b[2] - direction[2] * edge_b[1]
    py = direction[2] * edge_b[0] - direction[0] * edge_b[2]
    pz = direction[0] * edge_b[1] - direction[1] * edge_b[0]

    det = edge_a[0] * px + edge_a[1] * py + edge_a[2] * pz
    if det < EPSILON:
        return -1.0
    inv_det = 1.0 / det

    sx = origin[0] - v0[0]
    sy = origin[1] - v0[1]
    sz = origin[2] - v0[2]
    u = (sx * px + sy * py + sz * pz) * inv_det
    if u < 0.0 or u > 1.0:
        return -1.0

    # q = s x edge_a
    qx = sy * edge_a[2] - sz * edge_a[1]
    qy = sz * edge_a[0] - sx * edge_a[2]
    qz = sx * edge_a[1] - sy * edge_a[0]
    v = (direction[0] * qx + direction[1] * qy + direction[2] * qz) * inv_det
    if v < 0.0 or u + v > 1.0:
        return -1.0

    t = (edge_b[0] * qx + edge_b[1] * qy + edge_b[2] * qz) * inv_det
    if t < EPSILON or t > t_max:
        return -1.0
    return t


# =============================================================================
# Ray-AABB (slab method)
# =============================================================================


@njit(cache=True, nogil=True)
def ray_hits_box(origin, direction, lo, hi, t_min, t_max):
    """Slab test: does the ray cross ``[lo, hi]`` within ``[t_min, t_max]``?

    A zero direction component reduces that axis to a containment check of
    the origin against the slab.
    """
    for axis in range(3):
        d = direction[axis]
        o = origin[axis]
        if d == 0.0:
            if o < lo[axis] or o > hi[axis]:
                return False
            continue
        inv_d = 1.0 / d
        t0 = (lo[axis] - o) * inv_d
        t1 = (hi[axis] - o) * inv_d
        if inv_d < 0.0:
            t0, t1 = t1, t0
        if t0 > t_min:
            t_min = t0
        if t1 < t_max:
            t_max = t1
        if t_max < t_min:
            return False
    return True


# =============================================================================
# BVH traversal
# =============================================================================


@njit(cache=True, nogil=True)
def collect_candidates(
    origin,
    direction,
    t_max,
    node_lo,
    node_hi,
    node_left,
    node_right,
    node_start,
    node_count,
    order,
    out,
):
    """Write the triangle indices of every leaf the ray crosses into ``out``.

    Returns:
        Number of indices written. ``out`` must hold ``len(order)`` entries.
    """
    n = 0
    stack = np.empty(STACK_SIZE, dtype=np.int64)
    stack[0] = 0
    top = 1
    while top > 0:
        top -= 1
        node = stack[top]
        if not ray_hits_box(origin, direction, node_lo[node], node_hi[node], 0.0, t_max):
            continue
        count = node_count[node]
        if count > 0:
            for k in range(node_start[node], node_start[node] + count):
                out[n] = order[k]
                n += 1
        else:
            stack[top] = node_right[node]
            stack[top + 1] = node_left[node]
            top += 2
    return n


@njit(cache=True, nogil=True)
def closest_hit(
    origin,
    direction,
    t_max,
    tri_v0,
    tri_edge_a,
    tri_edge_b,
    node_lo,
    node_hi,
    node_left,
    node_right,
    node_start,
    node_count,
    order,
):
    """Nearest triangle along the ray.

    Boxes beyond the closest hit found so far are skipped. On equal
    distances the first triangle in traversal order wins.

    Returns:
        ``(triangle_index, t)``; the index is -1 when nothing is hit within
        ``t_max``.
    """
    best = -1
    closest = t_max
    stack = np.empty(STACK_SIZE, dtype=np.int64)
    stack[0] = 0
    top = 1
    while top > 0:
        top -= 1
        node = stack[top]
        if not ray_hits_box(origin, direction, node_lo[node], node_hi[node], 0.0, closest):
            continue
        count = node_count[node]
        if count > 0:
            for k in range(node_start[node], node_start[node] + count):
                tri = order[k]
                t = intersect_triangle(
                    origin, direction, tri_v0[tri], tri_edge_a[tri], tri_edge_b[tri], closest
                )
                if t > 0.0 and t < closest:
                    closest = t
                    best = tri
        else:
            stack[top] = node_right[node]
            stack[top + 1] = node_left[node]
            top += 2
    return best, closest
