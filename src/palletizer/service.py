"""Packing run boundary: normalize, place, aggregate, never raise on bad input."""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from palletizer.errors import PackingCancelled, PalletizerError
from palletizer.models import PackingRequest, PackingResponse
from palletizer.packing.aggregate import build_response
from palletizer.packing.engine import PackingLimits, pack_instances
from palletizer.packing.normalizer import normalize_cartons
from palletizer.service_metrics import ServiceMetrics

logger = logging.getLogger(__name__)


def run_packing(
    request: PackingRequest,
    limits: PackingLimits = PackingLimits(),
    cancel_event: Optional[threading.Event] = None,
    metrics: Optional[ServiceMetrics] = None,
) -> PackingResponse:
    """
    Pack the request's cartons onto pallets.

    Per-carton failures (invalid specs, cartons too big or too heavy, tripped
    safety limits) are reported in ``response.error`` next to whatever was
    packed. The only exception that leaves this function is PackingCancelled.
    """
    start = time.perf_counter()
    constraints = request.pallet_constraints

    try:
        normalized = normalize_cartons(request.cartons, constraints, max_instances=limits.max_instances)
        engine_result = pack_instances(
            normalized.instances,
            constraints,
            request.packing_options,
            limits=limits,
            cancel_event=cancel_event,
        )
    except PackingCancelled:
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        logger.warning(f"Packing run cancelled after {elapsed_ms:.0f} ms")
        if metrics is not None:
            metrics.record_failure(elapsed_ms)
        raise

    issues: list[PalletizerError] = [*normalized.issues, *engine_result.issues]
    elapsed_ms = int(round((time.perf_counter() - start) * 1000.0))
    response = build_response(engine_result.pallets, issues, elapsed_ms)

    logger.info(
        f"cartons={len(normalized.instances)}, packed={response.summary.total_cartons_packed}, "
        f"pallets={response.summary.total_pallets}, time_ms={elapsed_ms}, "
        f"issues={len(issues)}"
    )
    if metrics is not None:
        metrics.record_response(response)
    return response
