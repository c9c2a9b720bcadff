"""Support-area and stability checks for candidate placements."""

from __future__ import annotations

from typing import Sequence

from palletizer.geometry import EPSILON, Bounds, footprint_overlap_area
from palletizer.packing.instances import Placement


def supporters(bounds: Bounds, placed: Sequence[Placement]) -> list[tuple[Placement, float]]:
    """
    Placed cartons whose top face touches the candidate's base, with the
    shared footprint area of each.
    """
    z = bounds[2]
    out: list[tuple[Placement, float]] = []
    for p in placed:
        if abs(p.top - z) > EPSILON:
            continue
        area = footprint_overlap_area(bounds, p.bounds)
        if area > 0.0:
            out.append((p, area))
    return out


def support_ratio(bounds: Bounds, placed: Sequence[Placement]) -> float:
    """
    Share of the candidate's base resting on the floor or on carton tops.

    A carton on the pallet floor is fully supported. Overlaps between
    supporters cannot happen (placed cartons never overlap), so areas add up.
    """
    if bounds[2] <= EPSILON:
        return 1.0
    base_area = (bounds[3] - bounds[0]) * (bounds[4] - bounds[1])
    if base_area <= 0.0:
        return 0.0
    supported = sum(area for _, area in supporters(bounds, placed))
    return min(supported / base_area, 1.0)


def rests_on_fragile(bounds: Bounds, placed: Sequence[Placement]) -> bool:
    return any(p.fragile for p, _ in supporters(bounds, placed))


def center_of_gravity(placements: Sequence[Placement]) -> tuple[float, float, float]:
    """
    Weight-weighted centroid of the cartons' geometric centers.

    Falls back to the plain centroid when every carton weighs nothing, and to
    the origin for an empty pallet.
    """
    if not placements:
        return (0.0, 0.0, 0.0)

    total_weight = sum(p.weight for p in placements)
    if total_weight > 0:
        weights = [p.weight for p in placements]
    else:
        weights = [1.0] * len(placements)
        total_weight = float(len(placements))

    cx = cy = cz = 0.0
    for p, w in zip(placements, weights):
        L, W, H = p.dims
        cx += (p.x + L / 2.0) * w
        cy += (p.y + W / 2.0) * w
        cz += (p.z + H / 2.0) * w
    return (cx / total_weight, cy / total_weight, cz / total_weight)
