"""Tests for the HTTP service."""

from __future__ import annotations

import asyncio
import gc
import threading

from fastapi.testclient import TestClient

from palletizer import api
from palletizer.api import create_app
from palletizer.config import Settings
from palletizer.errors import PackingCancelled


def make_client() -> TestClient:
    return TestClient(create_app(Settings()))


def pack_body(**overrides) -> dict:
    body = {
        "cartons": [
            {
                "id": "BOX001",
                "length": 609.6,
                "width": 457.2,
                "height": 406.4,
                "weight": 18143.68,
                "quantity": 4,
                "allow_rotation": True,
            }
        ],
        "pallet_constraints": {
            "max_length": 1016.0,
            "max_width": 1219.2,
            "max_height": 1219.2,
            "max_weight": 680388.0,
        },
        "packing_options": {"support_percentage": 80.0},
    }
    body.update(overrides)
    return body


def test_pack_returns_pallets_and_summary() -> None:
    client = make_client()

    response = client.post("/api/v1/pack", json=pack_body())

    assert response.status_code == 200
    data = response.json()
    assert "error" not in data
    assert data["summary"]["total_cartons_packed"] == 4
    assert data["summary"]["total_pallets"] == len(data["pallets"])
    assert isinstance(data["summary"]["computation_time_ms"], int)

    pallet = data["pallets"][0]
    assert pallet["pallet_id"] == 1
    assert set(pallet.keys()) == {
        "pallet_id",
        "total_weight",
        "total_height",
        "utilization_percentage",
        "cartons",
        "center_of_gravity",
    }
    carton = pallet["cartons"][0]
    assert carton["carton_id"] == "BOX001_1"
    assert set(carton["position"].keys()) == {"x", "y", "z"}
    assert set(carton["dimensions"].keys()) == {"length", "width", "height"}


def test_unpackable_carton_reported_in_body() -> None:
    client = make_client()
    body = pack_body(
        cartons=[{"id": "HUGE", "length": 5000, "width": 5000, "height": 5000, "weight": 1, "quantity": 1}]
    )

    response = client.post("/api/v1/pack", json=body)

    assert response.status_code == 200
    data = response.json()
    assert data["pallets"] == []
    assert "HUGE" in data["error"]


def test_malformed_request_is_422() -> None:
    client = make_client()

    assert client.post("/api/v1/pack", json=pack_body(cartons=[])).status_code == 422
    assert client.post("/api/v1/pack", json={"cartons": []}).status_code == 422
    bad_options = pack_body(packing_options={"support_percentage": 150})
    assert client.post("/api/v1/pack", json=bad_options).status_code == 422


def test_health() -> None:
    response = make_client().get("/api/v1/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_metrics_count_requests() -> None:
    client = make_client()
    gc.collect()
    client.post("/api/v1/pack", json=pack_body())

    response = client.get("/api/v1/metrics")

    assert response.status_code == 200
    data = response.json()
    assert data["total_requests"] == 1
    assert data["total_cartons"] == 4
    assert data["success_rate"] == 100.0
    assert data["python_version"]
    assert data["memory_alloc_mb"] > 0
    assert data["memory_sys_mb"] > 0
    assert data["num_gc"] >= 1
    assert data["last_gc_pause_ms"] >= 0
    assert data["build_time"]


def test_each_app_has_its_own_metrics() -> None:
    first = make_client()
    first.post("/api/v1/pack", json=pack_body())

    assert make_client().get("/api/v1/metrics").json()["total_requests"] == 0


def test_cancelled_run_answers_499(monkeypatch) -> None:
    def cancelled(*args, **kwargs):
        raise PackingCancelled("packing run cancelled")

    monkeypatch.setattr(api, "run_packing", cancelled)

    response = make_client().post("/api/v1/pack", json=pack_body())

    assert response.status_code == 499
    assert response.json() == {"error": "request cancelled"}


def test_unexpected_failure_answers_500_and_counts(monkeypatch) -> None:
    def broken(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(api, "run_packing", broken)
    client = make_client()

    response = client.post("/api/v1/pack", json=pack_body())

    assert response.status_code == 500
    assert response.json() == {"error": "boom"}
    metrics = client.get("/api/v1/metrics").json()
    assert metrics["total_requests"] == 1
    assert metrics["success_rate"] == 0.0


class DisconnectingRequest:
    def __init__(self, connected_polls: int):
        self.connected_polls = connected_polls

    async def is_disconnected(self) -> bool:
        self.connected_polls -= 1
        return self.connected_polls < 0


def test_disconnect_watcher_sets_cancel_event() -> None:
    cancel = threading.Event()

    asyncio.run(api._watch_disconnect(DisconnectingRequest(connected_polls=2), cancel))

    assert cancel.is_set()


def test_disconnect_watcher_stops_when_run_finishes() -> None:
    cancel = threading.Event()
    cancel.set()
    request = DisconnectingRequest(connected_polls=100)

    asyncio.run(api._watch_disconnect(request, cancel))

    assert request.connected_polls == 100
