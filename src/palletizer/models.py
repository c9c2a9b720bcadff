from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Carton(BaseModel):
    """Carton specification as submitted by the caller (millimeters and grams).

    Positivity is checked by the normalizer, not here, so that one bad carton
    is reported on its own instead of rejecting the whole request.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Carton identifier, shared by all units of this spec")
    length: float = Field(description="Length in millimeters")
    width: float = Field(description="Width in millimeters")
    height: float = Field(description="Height in millimeters")
    weight: float = Field(description="Weight of one unit in grams")
    quantity: int = Field(default=1, description="Number of identical cartons")
    fragile: bool = Field(default=False, description="Nothing may be stacked on a fragile carton")
    allow_rotation: bool = Field(default=False, description="Whether the carton may be rotated")


class PalletConstraints(BaseModel):
    """Maximum dimensions and payload of one pallet."""

    model_config = ConfigDict(frozen=True)

    max_length: float = Field(gt=0, description="Maximum length in millimeters")
    max_width: float = Field(gt=0, description="Maximum width in millimeters")
    max_height: float = Field(gt=0, description="Maximum height in millimeters")
    max_weight: float = Field(gt=0, description="Maximum payload in grams")


class PackingOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    support_percentage: float = Field(
        default=0.0,
        ge=0,
        le=100,
        description=(
            "Minimum share of a carton's base that must rest on the pallet floor or on carton "
            "tops. The default of 0 disables the check, so cartons placed above the floor may "
            "rest on nothing"
        ),
    )


class PackingRequest(BaseModel):
    cartons: list[Carton] = Field(min_length=1, description="Cartons to pack")
    pallet_constraints: PalletConstraints
    packing_options: PackingOptions = Field(default_factory=PackingOptions)


class Point3D(BaseModel):
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class Dimensions(BaseModel):
    length: float
    width: float
    height: float


class PlacedCarton(BaseModel):
    """A carton instance as it sits on a pallet."""

    carton_id: str = Field(description="Instance id, '<carton id>_<n>'")
    position: Point3D = Field(description="Minimum corner of the carton")
    # dimensions AFTER orientation is applied
    dimensions: Dimensions
    orientation: str
    weight: float


class Pallet(BaseModel):
    pallet_id: int = Field(ge=1, description="1-based sequential pallet number")
    total_weight: float = 0.0
    total_height: float = 0.0
    utilization_percentage: float = 0.0
    cartons: list[PlacedCarton] = Field(default_factory=list)
    center_of_gravity: Point3D = Field(default_factory=Point3D)


class PackingSummary(BaseModel):
    total_pallets: int = 0
    total_cartons_packed: int = 0
    average_utilization: float = 0.0
    computation_time_ms: int = 0


class PackingResponse(BaseModel):
    """Result of one packing run.

    ``error`` may be set while ``pallets`` is non-empty: failures are reported
    next to whatever was packed successfully.
    """

    pallets: list[Pallet] = Field(default_factory=list)
    summary: PackingSummary = Field(default_factory=PackingSummary)
    error: Optional[str] = None


class HealthResponse(BaseModel):
    status: str


class MetricsResponse(BaseModel):
    total_requests: int = 0
    total_cartons: int = 0
    total_pallets: int = 0
    average_time_ms: float = 0.0
    average_util_pct: float = 0.0
    success_rate: float = 0.0
    uptime_seconds: int = 0
    memory_alloc_mb: float = 0.0
    memory_sys_mb: float = 0.0
    num_threads: int = 0
    num_gc: int = 0
    last_gc_pause_ms: float = 0.0
    python_version: str = ""
    build_version: str = ""
    build_time: str = ""
