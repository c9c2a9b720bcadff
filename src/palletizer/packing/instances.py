from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from palletizer.geometry import Bounds, placement_bounds
from palletizer.models import Carton
from palletizer.packing.orientation import Dims, Orientation


@dataclass(frozen=True)
class Placement:
    """Where and how one carton instance was placed. Written once."""

    instance_id: str
    pallet_id: int
    x: float
    y: float
    z: float
    # Oriented dims (L, W, H) as placed
    dims: Dims
    orientation: Orientation
    weight: float
    fragile: bool = False

    @property
    def bounds(self) -> Bounds:
        return placement_bounds(self.x, self.y, self.z, self.dims)

    @property
    def volume(self) -> float:
        L, W, H = self.dims
        return L * W * H

    @property
    def top(self) -> float:
        return self.z + self.dims[2]


@dataclass
class CartonInstance:
    """One physical unit of a carton spec after quantity expansion."""

    instance_id: str
    spec: Carton
    orientations: list[tuple[Orientation, Dims]]
    sequence: int
    placement: Optional[Placement] = field(default=None)

    @property
    def volume(self) -> float:
        return float(self.spec.length) * float(self.spec.width) * float(self.spec.height)

    @property
    def weight(self) -> float:
        return float(self.spec.weight)

    @property
    def fragile(self) -> bool:
        return self.spec.fragile

    def assign(self, placement: Placement) -> None:
        if self.placement is not None:
            raise RuntimeError(f"Carton instance {self.instance_id} is already placed")
        self.placement = placement
