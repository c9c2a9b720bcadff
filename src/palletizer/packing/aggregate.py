from __future__ import annotations

from typing import Sequence

from palletizer.errors import PalletizerError
from palletizer.models import (
    Dimensions,
    PackingResponse,
    PackingSummary,
    Pallet,
    PalletConstraints,
    PlacedCarton,
    Point3D,
)
from palletizer.packing.instances import Placement
from palletizer.packing.pallet import PalletState
from palletizer.packing.support import center_of_gravity


def utilization_percentage(constraints: PalletConstraints, packed_volume: float, total_height: float) -> float:
    """Packed volume over the pallet's footprint times its loaded height, in percent."""
    bounding_volume = float(constraints.max_length) * float(constraints.max_width) * float(total_height)
    return 0.0 if bounding_volume <= 0 else packed_volume / bounding_volume * 100.0


def placed_carton(p: Placement) -> PlacedCarton:
    L, W, H = p.dims
    return PlacedCarton(
        carton_id=p.instance_id,
        position=Point3D(x=p.x, y=p.y, z=p.z),
        dimensions=Dimensions(length=L, width=W, height=H),
        orientation=p.orientation.value,
        weight=p.weight,
    )


def summarize_pallet(state: PalletState) -> Pallet:
    cx, cy, cz = center_of_gravity(state.placed)
    return Pallet(
        pallet_id=state.pallet_id,
        total_weight=state.total_weight,
        total_height=state.total_height,
        utilization_percentage=utilization_percentage(state.constraints, state.packed_volume, state.total_height),
        cartons=[placed_carton(p) for p in state.placed],
        center_of_gravity=Point3D(x=cx, y=cy, z=cz),
    )


def format_error(issues: Sequence[PalletizerError]) -> str | None:
    if not issues:
        return None
    return "; ".join(str(e) for e in issues)


def build_response(
    pallets: Sequence[PalletState],
    issues: Sequence[PalletizerError],
    computation_time_ms: int,
) -> PackingResponse:
    out = [summarize_pallet(state) for state in pallets]
    average = sum(p.utilization_percentage for p in out) / len(out) if out else 0.0
    summary = PackingSummary(
        total_pallets=len(out),
        total_cartons_packed=sum(len(p.cartons) for p in out),
        average_utilization=average,
        computation_time_ms=int(computation_time_ms),
    )
    return PackingResponse(pallets=out, summary=summary, error=format_error(issues))
