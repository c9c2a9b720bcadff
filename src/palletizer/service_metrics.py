"""Process-wide request counters for the packing service."""

from __future__ import annotations

import gc
import os
import platform
import sys
import threading
import time
from datetime import datetime, timezone
from importlib.metadata import PackageNotFoundError, version
from typing import Any, Optional

from palletizer.models import MetricsResponse, PackingResponse

BYTES_PER_MB = 1024.0 * 1024.0


def _build_version() -> str:
    try:
        return version("palletizer")
    except PackageNotFoundError:
        return "unknown"


class _GcPauseTimer:
    """gc callback timing the most recent collection."""

    def __init__(self) -> None:
        self._started: Optional[float] = None
        self.last_pause_ms = 0.0

    def __call__(self, phase: str, info: dict[str, Any]) -> None:
        if phase == "start":
            self._started = time.perf_counter()
        elif phase == "stop" and self._started is not None:
            self.last_pause_ms = (time.perf_counter() - self._started) * 1000.0
            self._started = None


# gc callbacks are process-wide; one timer serves every ServiceMetrics
_gc_timer = _GcPauseTimer()
gc.callbacks.append(_gc_timer)


def _gc_collections() -> int:
    return sum(generation["collections"] for generation in gc.get_stats())


def _peak_rss_mb() -> float:
    if sys.platform == "win32":
        return 0.0
    import resource

    peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # bytes on macOS, kilobytes elsewhere
    if sys.platform == "darwin":
        return peak / BYTES_PER_MB
    return peak / 1024.0


def _current_rss_mb() -> float:
    """Resident set size now; the peak where /proc is unavailable."""
    try:
        with open("/proc/self/statm", encoding="ascii") as f:
            resident_pages = int(f.read().split()[1])
    except OSError:
        return _peak_rss_mb()
    return resident_pages * os.sysconf("SC_PAGE_SIZE") / BYTES_PER_MB


class ServiceMetrics:
    """
    Aggregate counters shared by all requests of one service instance.

    Created explicitly by the application factory; every update and snapshot
    holds the lock so readers never see a half-applied request.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._started = time.monotonic()
        self.started_at = datetime.now(timezone.utc).isoformat(timespec="seconds")
        self.total_requests = 0
        self.successes = 0
        self.failures = 0
        self.total_cartons = 0
        self.total_pallets = 0
        self.total_time_ms = 0.0
        self.total_utilization = 0.0

    def record_response(self, response: PackingResponse) -> None:
        with self._lock:
            self.total_requests += 1
            if response.error:
                self.failures += 1
            else:
                self.successes += 1
            self.total_cartons += response.summary.total_cartons_packed
            self.total_pallets += response.summary.total_pallets
            self.total_time_ms += response.summary.computation_time_ms
            self.total_utilization += response.summary.average_utilization

    def record_failure(self, elapsed_ms: float = 0.0) -> None:
        with self._lock:
            self.total_requests += 1
            self.failures += 1
            self.total_time_ms += elapsed_ms

    def snapshot(self) -> MetricsResponse:
        """
        Current counters plus process figures.

        Memory is reported as resident set size: ``memory_alloc_mb`` now,
        ``memory_sys_mb`` at its peak. ``build_time`` is when this service
        instance started.
        """
        with self._lock:
            requests = self.total_requests
            return MetricsResponse(
                total_requests=requests,
                total_cartons=self.total_cartons,
                total_pallets=self.total_pallets,
                average_time_ms=self.total_time_ms / requests if requests else 0.0,
                average_util_pct=self.total_utilization / requests if requests else 0.0,
                success_rate=self.successes / requests * 100.0 if requests else 0.0,
                uptime_seconds=int(time.monotonic() - self._started),
                memory_alloc_mb=_current_rss_mb(),
                memory_sys_mb=_peak_rss_mb(),
                num_threads=threading.active_count(),
                num_gc=_gc_collections(),
                last_gc_pause_ms=_gc_timer.last_pause_ms,
                python_version=platform.python_version(),
                build_version=_build_version(),
                build_time=self.started_at,
            )
