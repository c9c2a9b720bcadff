# src/palletizer/packing/pallet.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from palletizer.errors import InternalLimitExceeded
from palletizer.geometry import EPSILON, blocks_point, boxes_overlap, placement_bounds, within_pallet
from palletizer.models import PalletConstraints
from palletizer.packing.instances import CartonInstance, Placement
from palletizer.packing.orientation import Dims, Orientation
from palletizer.packing.support import rests_on_fragile, support_ratio


@dataclass(frozen=True)
class Anchor:
    """Candidate minimum corner for the next carton.

    ``source`` is the arena index of the placed carton that produced the
    anchor, or None for the pallet origin.
    """

    x: float
    y: float
    z: float
    source: Optional[int] = None

    @property
    def point(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def sort_key(self) -> tuple[float, float, float, int]:
        # deepest-bottom-left: lowest z, then y, then x
        return (self.z, self.y, self.x, -1 if self.source is None else self.source)


class PalletState:
    """
    Mutable packing state of one pallet during a run.

    Placed cartons live in an arena (``placed``) and anchors refer to them by
    index only.
    """

    def __init__(self, pallet_id: int, constraints: PalletConstraints, max_anchors: int):
        self.pallet_id = pallet_id
        self.constraints = constraints
        self.max_anchors = max_anchors
        self.placed: list[Placement] = []
        self.anchors: list[Anchor] = [Anchor(0.0, 0.0, 0.0)]
        self.total_weight = 0.0
        self.total_height = 0.0
        self.packed_volume = 0.0

    def __repr__(self) -> str:
        return (
            f"PalletState(pallet_id={self.pallet_id}, cartons={len(self.placed)}, "
            f"weight={self.total_weight:g}, height={self.total_height:g})"
        )

    def can_carry(self, weight: float) -> bool:
        return self.total_weight + weight <= float(self.constraints.max_weight) + EPSILON

    def check(self, anchor: Anchor, dims: Dims, instance: CartonInstance, min_support: float) -> Optional[str]:
        """
        Validate a candidate placement. Returns None when it is feasible,
        otherwise a short rejection reason.
        """
        c = self.constraints
        bounds = placement_bounds(anchor.x, anchor.y, anchor.z, dims)

        if not within_pallet(bounds, float(c.max_length), float(c.max_width), float(c.max_height)):
            return "out of bounds"
        if not self.can_carry(instance.weight):
            return "over weight"
        for p in self.placed:
            if boxes_overlap(bounds, p.bounds):
                return f"overlaps {p.instance_id}"
        if support_ratio(bounds, self.placed) < min_support - EPSILON:
            return "insufficient support"
        if rests_on_fragile(bounds, self.placed):
            return "rests on fragile carton"
        return None

    def commit(self, anchor: Anchor, orientation: Orientation, dims: Dims, instance: CartonInstance) -> Placement:
        """Place the instance at the anchor and update the anchor set."""
        placement = Placement(
            instance_id=instance.instance_id,
            pallet_id=self.pallet_id,
            x=anchor.x,
            y=anchor.y,
            z=anchor.z,
            dims=dims,
            orientation=orientation,
            weight=instance.weight,
            fragile=instance.fragile,
        )
        index = len(self.placed)
        anchors = self._next_anchors(anchor, placement, index)
        if len(anchors) > self.max_anchors:
            raise InternalLimitExceeded(
                f"carton {instance.instance_id}: pallet {self.pallet_id} would hold "
                f"{len(anchors)} anchors (limit {self.max_anchors})",
                instance.instance_id,
            )

        instance.assign(placement)
        self.placed.append(placement)
        self.anchors = anchors
        self.total_weight += placement.weight
        self.total_height = max(self.total_height, placement.top)
        self.packed_volume += placement.volume
        return placement

    def _next_anchors(self, consumed: Anchor, placement: Placement, index: int) -> list[Anchor]:
        c = self.constraints
        L, W, H = placement.dims
        x, y, z = placement.x, placement.y, placement.z
        bounds = placement.bounds

        kept = [a for a in self.anchors if a != consumed and not blocks_point(bounds, a.point)]
        candidates = [
            Anchor(x, y, z + H, index),
            Anchor(x + L, y, z, index),
            Anchor(x, y + W, z, index),
        ]
        for cand in candidates:
            if (
                cand.x >= float(c.max_length) - EPSILON
                or cand.y >= float(c.max_width) - EPSILON
                or cand.z >= float(c.max_height) - EPSILON
            ):
                continue
            if any(blocks_point(p.bounds, cand.point) for p in self.placed):
                continue
            if any(_same_point(cand, a) for a in kept):
                continue
            kept.append(cand)

        kept.sort(key=Anchor.sort_key)
        return kept


def _same_point(a: Anchor, b: Anchor) -> bool:
    return abs(a.x - b.x) <= EPSILON and abs(a.y - b.y) <= EPSILON and abs(a.z - b.z) <= EPSILON
