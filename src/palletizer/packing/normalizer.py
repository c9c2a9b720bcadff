# src/palletizer/packing/normalizer.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from palletizer.errors import CapacityExhausted, ValidationError
from palletizer.geometry import EPSILON
from palletizer.models import Carton, PalletConstraints
from palletizer.packing.instances import CartonInstance
from palletizer.packing.orientation import orientations_for

logger = logging.getLogger(__name__)


@dataclass
class NormalizedCartons:
    instances: list[CartonInstance] = field(default_factory=list)
    issues: list[ValidationError] = field(default_factory=list)


def carton_volume(carton: Carton) -> float:
    return float(carton.length) * float(carton.width) * float(carton.height)


def validate_carton(carton: Carton, constraints: PalletConstraints) -> None:
    """
    Raise ValidationError if the spec is malformed, CapacityExhausted if it can
    never be packed, even alone on an empty pallet.
    """
    for name in ("length", "width", "height", "weight"):
        value = float(getattr(carton, name))
        if not value > 0:
            raise ValidationError(f"carton {carton.id}: {name} must be positive, got {value:g}", carton.id)
    if carton.quantity < 1:
        raise ValidationError(f"carton {carton.id}: quantity must be positive, got {carton.quantity}", carton.id)

    if carton.weight > constraints.max_weight + EPSILON:
        raise CapacityExhausted(
            f"carton {carton.id}: weight {carton.weight:g} g exceeds pallet max weight {constraints.max_weight:g} g",
            carton.id,
        )

    for _, (L, W, H) in orientations_for(carton.length, carton.width, carton.height, carton.allow_rotation):
        if (
            L <= constraints.max_length + EPSILON
            and W <= constraints.max_width + EPSILON
            and H <= constraints.max_height + EPSILON
        ):
            return
    raise CapacityExhausted(
        f"carton {carton.id}: {carton.length:g}x{carton.width:g}x{carton.height:g} mm "
        f"does not fit a {constraints.max_length:g}x{constraints.max_width:g}x{constraints.max_height:g} mm pallet",
        carton.id,
    )


def _processing_key(instance: CartonInstance) -> tuple[bool, float, float, int]:
    # fragile last, then big and heavy first, then input order
    return (instance.fragile, -instance.volume, -instance.weight, instance.sequence)


def normalize_cartons(
    cartons: Iterable[Carton],
    constraints: PalletConstraints,
    max_instances: Optional[int] = None,
) -> NormalizedCartons:
    """
    Validate carton specs and expand them into individual instances.

    Invalid specs are collected in ``issues``, one per spec; valid specs are
    expanded by quantity into ``instances`` ("<id>_1", "<id>_2", ...), sorted
    in processing order: non-fragile first, then descending volume, then
    descending weight, then input order.

    With ``max_instances`` set, a spec whose quantity would take the request
    past that many instances is rejected whole.
    """
    result = NormalizedCartons()
    sequence = 0

    for carton in cartons:
        try:
            validate_carton(carton, constraints)
            if max_instances is not None and sequence + carton.quantity > max_instances:
                raise ValidationError(
                    f"carton {carton.id}: quantity {carton.quantity} exceeds the limit of "
                    f"{max_instances} cartons per request",
                    carton.id,
                )
        except ValidationError as e:
            logger.warning(f"Rejected carton spec: {e}")
            result.issues.append(e)
            continue

        orientations = orientations_for(carton.length, carton.width, carton.height, carton.allow_rotation)
        for n in range(1, carton.quantity + 1):
            result.instances.append(
                CartonInstance(
                    instance_id=f"{carton.id}_{n}",
                    spec=carton,
                    orientations=orientations,
                    sequence=sequence,
                )
            )
            sequence += 1

    result.instances.sort(key=_processing_key)
    return result
