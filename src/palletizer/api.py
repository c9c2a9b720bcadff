"""FastAPI service exposing the packing engine."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from palletizer.config import Settings
from palletizer.errors import PackingCancelled
from palletizer.models import HealthResponse, MetricsResponse, PackingRequest, PackingResponse
from palletizer.packing.engine import PackingLimits
from palletizer.service import run_packing
from palletizer.service_metrics import ServiceMetrics

logger = logging.getLogger(__name__)

# nginx's "client closed request"; there is no standard code for it
CLIENT_CLOSED_REQUEST = 499
DISCONNECT_POLL_SECONDS = 0.1


async def _watch_disconnect(request: Request, cancel_event: threading.Event) -> None:
    while not cancel_event.is_set():
        if await request.is_disconnected():
            logger.warning("Client disconnected, cancelling packing run")
            cancel_event.set()
            return
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)


def create_app(settings: Optional[Settings] = None, metrics: Optional[ServiceMetrics] = None) -> FastAPI:
    """Build the application with its own settings and metrics counters."""
    settings = settings or Settings.from_env()
    limits = PackingLimits(
        max_passes=settings.max_passes,
        max_anchors=settings.max_anchors,
        max_instances=settings.max_instances,
    )

    app = FastAPI(
        title="Palletizer API",
        description="3D pallet packing service",
    )
    app.state.settings = settings
    app.state.metrics = metrics if metrics is not None else ServiceMetrics()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        max_age=3600,
    )

    @app.post("/api/v1/pack", response_model=PackingResponse, response_model_exclude_none=True)
    async def pack(body: PackingRequest, request: Request) -> Any:
        """
        Pack cartons onto pallets.

        Carton-level failures come back with status 200 in ``error``, next to
        the pallets that could be packed.
        """
        service_metrics: ServiceMetrics = request.app.state.metrics
        cancel_event = threading.Event()
        watcher = asyncio.create_task(_watch_disconnect(request, cancel_event))
        try:
            return await run_in_threadpool(
                run_packing,
                body,
                limits=limits,
                cancel_event=cancel_event,
                metrics=service_metrics,
            )
        except PackingCancelled:
            return JSONResponse(status_code=CLIENT_CLOSED_REQUEST, content={"error": "request cancelled"})
        except Exception as e:
            logger.error(f"ERROR in /api/v1/pack endpoint: {e}", exc_info=True)
            service_metrics.record_failure()
            return JSONResponse(status_code=500, content={"error": str(e)})
        finally:
            cancel_event.set()
            watcher.cancel()

    @app.get("/api/v1/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="healthy")

    @app.get("/api/v1/metrics", response_model=MetricsResponse)
    async def service_metrics(request: Request) -> MetricsResponse:
        return request.app.state.metrics.snapshot()

    return app


app = create_app()
