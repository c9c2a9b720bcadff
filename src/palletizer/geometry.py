"""Geometry utilities for pallet packing."""

from __future__ import annotations

EPSILON = 1e-6

Bounds = tuple[float, float, float, float, float, float]


def boxes_overlap(a: Bounds, b: Bounds) -> bool:
    """
    Axis-aligned bounding box (AABB) overlap test.

    a, b are bounds: (x1, y1, z1, x2, y2, z2)

    Overlap exists only if they overlap on ALL 3 axes with positive volume.
    Touching faces/edges (ax2 == bx1) is NOT considered overlap.
    """
    ax1, ay1, az1, ax2, ay2, az2 = a
    bx1, by1, bz1, bx2, by2, bz2 = b

    return (
        (ax1 < bx2 - EPSILON and ax2 > bx1 + EPSILON)
        and (ay1 < by2 - EPSILON and ay2 > by1 + EPSILON)
        and (az1 < bz2 - EPSILON and az2 > bz1 + EPSILON)
    )


def placement_bounds(x: float, y: float, z: float, dims: tuple[float, float, float]) -> Bounds:
    L, W, H = dims
    return (x, y, z, x + L, y + W, z + H)


def within_pallet(bounds: Bounds, max_length: float, max_width: float, max_height: float) -> bool:
    x1, y1, z1, x2, y2, z2 = bounds
    if x1 < -EPSILON or y1 < -EPSILON or z1 < -EPSILON:
        return False
    return x2 <= max_length + EPSILON and y2 <= max_width + EPSILON and z2 <= max_height + EPSILON


def footprint_overlap_area(a: Bounds, b: Bounds) -> float:
    """Area shared by the XY projections of two boxes (0 when they only touch)."""
    dx = min(a[3], b[3]) - max(a[0], b[0])
    dy = min(a[4], b[4]) - max(a[1], b[1])
    if dx <= EPSILON or dy <= EPSILON:
        return 0.0
    return dx * dy



def blocks_point(bounds: Bounds, point: tuple[float, float, float]) -> bool:
    """
    True when any box whose minimum corner sits at ``point`` would overlap
    ``bounds``, i.e. the point lies in the half-open box [x1,x2) x [y1,y2) x [z1,z2).
    """
    x, y, z = point
    x1, y1, z1, x2, y2, z2 = bounds
    return (
        x1 - EPSILON <= x < x2 - EPSILON
        and y1 - EPSILON <= y < y2 - EPSILON
        and z1 - EPSILON <= z < z2 - EPSILON
    )
