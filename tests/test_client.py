from __future__ import annotations

import asyncio
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from palletizer.api import create_app
from palletizer.client import AsyncPalletizerClient, PalletizerClient
from palletizer.config import Settings
from palletizer.errors import PalletizerAPIError, PalletizerClientError
from palletizer.models import Carton, PackingOptions, PackingRequest
from palletizer.pallets import standard_pallet

MOCK_RESPONSE = {
    "pallets": [
        {
            "pallet_id": 1,
            "total_weight": 18143.68,
            "total_height": 406.4,
            "utilization_percentage": 95.0,
            "cartons": [
                {
                    "carton_id": "BOX001_1",
                    "position": {"x": 0, "y": 0, "z": 0},
                    "dimensions": {"length": 609.6, "width": 457.2, "height": 406.4},
                    "orientation": "original",
                    "weight": 18143.68,
                }
            ],
            "center_of_gravity": {"x": 304.8, "y": 228.6, "z": 203.2},
        }
    ],
    "summary": {
        "total_pallets": 1,
        "total_cartons_packed": 1,
        "average_utilization": 95.0,
        "computation_time_ms": 5,
    },
}


def box_request() -> PackingRequest:
    return PackingRequest(
        cartons=[
            Carton(
                id="BOX001",
                length=609.6,
                width=457.2,
                height=406.4,
                weight=18143.68,
                quantity=1,
                allow_rotation=True,
            )
        ],
        pallet_constraints=standard_pallet(),
        packing_options=PackingOptions(support_percentage=80.0),
    )


def mock_client(handler) -> PalletizerClient:
    return PalletizerClient("http://palletizer.test/", http_client=httpx.Client(transport=httpx.MockTransport(handler)))


def test_pack_posts_json_and_parses_response() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=MOCK_RESPONSE)

    response = mock_client(handler).pack(box_request())

    assert seen["method"] == "POST"
    assert seen["path"] == "/api/v1/pack"
    assert seen["body"]["cartons"][0]["id"] == "BOX001"
    assert seen["body"]["cartons"][0]["allow_rotation"] is True
    assert seen["body"]["pallet_constraints"]["max_weight"] == 680388.0
    assert seen["body"]["packing_options"] == {"support_percentage": 80.0}

    assert response.summary.total_pallets == 1
    assert response.summary.total_cartons_packed == 1
    assert response.pallets[0].cartons[0].carton_id == "BOX001_1"
    assert response.error is None


def test_api_error_uses_error_field() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error": "invalid pallet"})

    with pytest.raises(PalletizerAPIError) as excinfo:
        mock_client(handler).pack(box_request())

    assert excinfo.value.status_code == 400
    assert excinfo.value.message == "invalid pallet"
    assert "status 400" in str(excinfo.value)


def test_api_error_falls_back_to_raw_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway")

    with pytest.raises(PalletizerAPIError) as excinfo:
        mock_client(handler).pack(box_request())

    assert excinfo.value.status_code == 502
    assert excinfo.value.message == "bad gateway"


def test_transport_failure_is_client_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(PalletizerClientError) as excinfo:
        mock_client(handler).pack(box_request())

    assert not isinstance(excinfo.value, PalletizerAPIError)
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


def test_unparseable_response_is_client_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="not json")

    with pytest.raises(PalletizerClientError):
        mock_client(handler).pack(box_request())


def test_health_and_metrics() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "GET"
        if request.url.path == "/api/v1/health":
            return httpx.Response(200, json={"status": "healthy"})
        if request.url.path == "/api/v1/metrics":
            return httpx.Response(200, json={"total_requests": 100, "success_rate": 99.0, "uptime_seconds": 3600})
        return httpx.Response(404)

    client = mock_client(handler)

    assert client.health().status == "healthy"
    metrics = client.metrics()
    assert metrics.total_requests == 100
    assert metrics.success_rate == 99.0
    assert metrics.uptime_seconds == 3600


def test_health_failure_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    with pytest.raises(PalletizerAPIError) as excinfo:
        mock_client(handler).health()

    assert excinfo.value.status_code == 503


def test_base_url_trailing_slash_is_stripped() -> None:
    assert PalletizerClient("https://palletizer.app/").base_url == "https://palletizer.app"


def test_async_client() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/v1/pack":
            return httpx.Response(200, json=MOCK_RESPONSE)
        return httpx.Response(200, json={"status": "healthy"})

    async def main():
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        async with AsyncPalletizerClient("http://palletizer.test", http_client=http_client) as client:
            packed = await client.pack(box_request())
            health = await client.health()
        await http_client.aclose()
        return packed, health

    packed, health = asyncio.run(main())

    assert packed.summary.total_pallets == 1
    assert health.status == "healthy"


def test_client_against_service() -> None:
    """End to end: the client talking to the FastAPI app."""
    with TestClient(create_app(Settings())) as http_client:
        client = PalletizerClient("http://testserver", http_client=http_client)

        response = client.pack(box_request())

        assert response.error is None
        assert response.summary.total_cartons_packed == 1
        assert response.pallets[0].cartons[0].carton_id == "BOX001_1"
        assert client.health().status == "healthy"
        assert client.metrics().total_requests == 1
