# src/palletizer/packing/engine.py

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

from palletizer.errors import CapacityExhausted, InternalLimitExceeded, PackingCancelled, PalletizerError
from palletizer.models import PackingOptions, PalletConstraints
from palletizer.packing.instances import CartonInstance, Placement
from palletizer.packing.pallet import PalletState

logger = logging.getLogger(__name__)

# How often (in candidate evaluations) the cancel flag is polled inside a search
CANCEL_CHECK_INTERVAL = 256


class PlacementState(str, Enum):
    ALLOCATING = "allocating"
    VALIDATING = "validating"
    COMMITTED = "committed"
    REJECTED = "rejected"


@dataclass(frozen=True)
class PackingLimits:
    """Safety valves: candidate evaluations per instance, anchors per pallet, instances per request."""

    max_passes: int = 200_000
    max_anchors: int = 5_000
    max_instances: int = 50_000


@dataclass
class EngineResult:
    pallets: list[PalletState] = field(default_factory=list)
    issues: list[PalletizerError] = field(default_factory=list)

    @property
    def placements(self) -> list[Placement]:
        return [p for pallet in self.pallets for p in pallet.placed]


class _PassBudget:
    """Counts candidate evaluations for one instance and polls for cancellation."""

    def __init__(self, instance_id: str, limit: int, cancel_event: Optional[threading.Event]):
        self.instance_id = instance_id
        self.limit = limit
        self.cancel_event = cancel_event
        self.used = 0

    def spend(self) -> None:
        self.used += 1
        if self.used > self.limit:
            raise InternalLimitExceeded(
                f"carton {self.instance_id}: gave up after {self.limit} placement attempts",
                self.instance_id,
            )
        if self.cancel_event is not None and self.used % CANCEL_CHECK_INTERVAL == 0:
            _check_cancelled(self.cancel_event)


def _check_cancelled(cancel_event: Optional[threading.Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise PackingCancelled("packing run cancelled")


def try_place(
    pallet: PalletState,
    instance: CartonInstance,
    min_support: float,
    budget: _PassBudget,
) -> Optional[Placement]:
    """
    First-fit search of one pallet: walk anchors in deepest-bottom-left order
    and orientations in preference order, commit the FIRST feasible candidate.
    """
    if not pallet.can_carry(instance.weight):
        return None

    debug = logger.isEnabledFor(logging.DEBUG)
    for anchor in list(pallet.anchors):
        for orientation, dims in instance.orientations:
            budget.spend()
            state = PlacementState.ALLOCATING
            if debug:
                logger.debug(
                    f"{instance.instance_id} pallet={pallet.pallet_id} {state.value} "
                    f"anchor={anchor.point} orientation={orientation.value}"
                )
            state = PlacementState.VALIDATING
            reason = pallet.check(anchor, dims, instance, min_support)
            if reason is None:
                placement = pallet.commit(anchor, orientation, dims, instance)
                state = PlacementState.COMMITTED
                if debug:
                    logger.debug(f"{instance.instance_id} {state.value} at {anchor.point}")
                return placement
            state = PlacementState.REJECTED
            if debug:
                logger.debug(f"{instance.instance_id} {state.value}: {reason}")
    return None


def pack_instances(
    instances: Iterable[CartonInstance],
    constraints: PalletConstraints,
    options: PackingOptions,
    limits: PackingLimits = PackingLimits(),
    cancel_event: Optional[threading.Event] = None,
) -> EngineResult:
    """
    Place carton instances, in the given order, onto as many pallets as needed.

    - Existing pallets are tried in creation order; a new pallet is opened
      only when none of them can take the instance.
    - An instance that does not fit even a fresh pallet is reported as
      CapacityExhausted and the fresh pallet is discarded.
    - A tripped safety limit is reported for that instance only.
    - Raises PackingCancelled as soon as ``cancel_event`` is set.

    Deterministic: no randomness, no unordered iteration.
    """
    result = EngineResult()
    min_support = float(options.support_percentage) / 100.0

    for instance in instances:
        _check_cancelled(cancel_event)
        budget = _PassBudget(instance.instance_id, limits.max_passes, cancel_event)

        try:
            placement = None
            for pallet in result.pallets:
                placement = try_place(pallet, instance, min_support, budget)
                if placement is not None:
                    break

            if placement is None:
                fresh = PalletState(len(result.pallets) + 1, constraints, limits.max_anchors)
                placement = try_place(fresh, instance, min_support, budget)
                if placement is None:
                    raise CapacityExhausted(
                        f"carton {instance.instance_id}: does not fit on an empty pallet",
                        instance.spec.id,
                    )
                result.pallets.append(fresh)
                logger.debug(f"Opened pallet {fresh.pallet_id} for {instance.instance_id}")

        except (CapacityExhausted, InternalLimitExceeded) as e:
            logger.warning(f"Could not place {instance.instance_id}: {e}")
            result.issues.append(e)

    return result
