"""
HTTP client for a palletizer service.

Example:

    from palletizer.client import PalletizerClient
    from palletizer.models import Carton, PackingOptions, PackingRequest
    from palletizer.pallets import standard_pallet

    request = PackingRequest(
        cartons=[
            Carton(id="BOX001", length=609.6, width=457.2, height=406.4,
                   weight=18143.68, quantity=30, allow_rotation=True),
        ],
        pallet_constraints=standard_pallet(),
        packing_options=PackingOptions(support_percentage=80.0),
    )
    with PalletizerClient("https://palletizer.app") as client:
        response = client.pack(request)
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Type, TypeVar

import certifi
import httpx
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from palletizer.config import DEFAULT_BASE_URL
from palletizer.errors import PalletizerAPIError, PalletizerClientError
from palletizer.models import HealthResponse, MetricsResponse, PackingRequest, PackingResponse

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0

PACK_PATH = "/api/v1/pack"
HEALTH_PATH = "/api/v1/health"
METRICS_PATH = "/api/v1/metrics"

ModelT = TypeVar("ModelT", bound=BaseModel)


def _parse(model: Type[ModelT], body: bytes) -> ModelT:
    try:
        return model.model_validate_json(body)
    except SchemaError as e:
        raise PalletizerClientError(f"failed to parse response: {e}") from e


def _error_message(body: bytes) -> str:
    """The service's ``error`` field when there is one, the raw body otherwise."""
    try:
        data = json.loads(body)
    except ValueError:
        return body.decode("utf-8", errors="replace")
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return body.decode("utf-8", errors="replace")


def _pack_result(response: httpx.Response) -> PackingResponse:
    if response.status_code != 200:
        raise PalletizerAPIError(response.status_code, _error_message(response.content))
    return _parse(PackingResponse, response.content)


def _checked(response: httpx.Response, what: str) -> bytes:
    if response.status_code != 200:
        raise PalletizerAPIError(response.status_code, f"{what} failed")
    return response.content


def _request_body(request: PackingRequest) -> dict[str, Any]:
    return request.model_dump(mode="json")


class PalletizerClient:
    """Synchronous client. Pass ``http_client`` to reuse or customize transport."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: Optional[httpx.Client] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.Client(timeout=timeout, verify=certifi.where())

    def __enter__(self) -> "PalletizerClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self.http_client.close()

    def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = self.base_url + path
        logger.debug(f"{method} {url}")
        try:
            return self.http_client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise PalletizerClientError(f"failed to send request to {url}: {e}") from e

    def pack(self, request: PackingRequest) -> PackingResponse:
        """Send a packing request and return the packed pallets."""
        response = self._send("POST", PACK_PATH, json=_request_body(request))
        return _pack_result(response)

    def health(self) -> HealthResponse:
        response = self._send("GET", HEALTH_PATH)
        return _parse(HealthResponse, _checked(response, "health check"))

    def metrics(self) -> MetricsResponse:
        response = self._send("GET", METRICS_PATH)
        return _parse(MetricsResponse, _checked(response, "metrics request"))


class AsyncPalletizerClient:
    """Asynchronous client. Cancelling the awaiting task aborts the request."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(timeout=timeout, verify=certifi.where())

    async def __aenter__(self) -> "AsyncPalletizerClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.http_client.aclose()

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = self.base_url + path
        logger.debug(f"{method} {url}")
        try:
            return await self.http_client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise PalletizerClientError(f"failed to send request to {url}: {e}") from e

    async def pack(self, request: PackingRequest) -> PackingResponse:
        response = await self._send("POST", PACK_PATH, json=_request_body(request))
        return _pack_result(response)

    async def health(self) -> HealthResponse:
        response = await self._send("GET", HEALTH_PATH)
        return _parse(HealthResponse, _checked(response, "health check"))

    async def metrics(self) -> MetricsResponse:
        response = await self._send("GET", METRICS_PATH)
        return _parse(MetricsResponse, _checked(response, "metrics request"))
