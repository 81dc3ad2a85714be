"""Shared fixtures: settings with credentials and a scripted fake processor."""

import json
from typing import Any, Callable

import httpx
import pytest

from vaultpay.common.config import GatewaySettings
from vaultpay.services.checkout.client import ProcessorClient
from vaultpay.services.checkout.credentials import CredentialBroker
from vaultpay.services.checkout.idempotency import InMemoryIdempotencyStore
from vaultpay.services.checkout.orders import OrderOrchestrator
from vaultpay.services.checkout.service import CheckoutService


ALREADY_CAPTURED_BODY = {
    "name": "UNPROCESSABLE_ENTITY",
    "message": "The requested action could not be performed.",
    "debug_id": "dbg-1",
    "details": [{"issue": "ORDER_ALREADY_CAPTURED", "description": "Order already captured."}],
}


class FakeProcessor:
    """In-memory stand-in for the processor API, served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.calls: list[httpx.Request] = []
        self.bodies: list[bytes] = []
        self.routes: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self.on("POST", "/v1/oauth2/token", 200, {"access_token": "A21-access", "id_token": "id-token-1"})
        self.on("POST", "/v2/checkout/orders", 201, {"id": "ORDER-1", "status": "CREATED"})
        self.on(
            "POST",
            "/v2/checkout/orders/ORDER-1/capture",
            201,
            {"id": "ORDER-1", "status": "COMPLETED", "purchase_units": [{"payments": {"captures": [{"id": "CAP-1"}]}}]},
        )
        self.on("GET", "/v2/checkout/orders/ORDER-1", 200, {"id": "ORDER-1", "status": "COMPLETED"})

    def on(self, method: str, path: str, status: int, body: Any) -> None:
        self.routes[(method, path)] = lambda request: httpx.Response(status, json=body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        self.bodies.append(request.content)
        responder = self.routes.get((request.method, request.url.path))
        if responder is None:
            return httpx.Response(404, json={"name": "RESOURCE_NOT_FOUND"})
        return responder(request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def paths(self) -> list[tuple[str, str]]:
        return [(r.method, r.url.path) for r in self.calls]

    def json_sent(self, method: str, path: str) -> dict:
        for request, body in zip(self.calls, self.bodies):
            if request.method == method and request.url.path == path:
                return json.loads(body)
        raise AssertionError(f"no {method} {path} call recorded")

    def requests_to(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.calls if r.method == method and r.url.path == path]


@pytest.fixture
def config() -> GatewaySettings:
    return GatewaySettings(
        _env_file=None,
        paypal_client_id="client-id",
        paypal_client_secret="client-secret",
        paypal_mode="sandbox",
    )


@pytest.fixture
def fake() -> FakeProcessor:
    return FakeProcessor()


@pytest.fixture
def processor(config, fake) -> ProcessorClient:
    return ProcessorClient(config, transport=fake.transport())


@pytest.fixture
def broker(processor) -> CredentialBroker:
    return CredentialBroker(processor)


@pytest.fixture
def orchestrator(processor, broker) -> OrderOrchestrator:
    return OrderOrchestrator(processor, broker)


@pytest.fixture
def store(config) -> InMemoryIdempotencyStore:
    return InMemoryIdempotencyStore(config.idempotency_ttl_seconds)


@pytest.fixture
def checkout(orchestrator, store, config) -> CheckoutService:
    return CheckoutService(orchestrator, store, config)
