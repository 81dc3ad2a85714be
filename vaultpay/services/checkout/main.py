"""Public HTTP entrypoint for the storefront checkout.

Maps storefront requests onto the credential broker, order orchestrator and
one-click flow, and renders every gateway error as a structured JSON body.
"""

import asyncio
from contextlib import asynccontextmanager, suppress
from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, Header, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vaultpay.common.config import settings
from vaultpay.common.errors import AuthConfigError, GatewayError, ValidationError
from vaultpay.common.logging import configure_logging, logger, request_context
from vaultpay.common.metrics import http_request_duration_seconds, http_requests_total, metrics_response
from vaultpay.common.startup import log_startup_config
from vaultpay.common.tracing import instrument_app, setup_tracing
from vaultpay.services.checkout.client import ProcessorClient
from vaultpay.services.checkout.credentials import CredentialBroker
from vaultpay.services.checkout.idempotency import build_store, sweep_forever
from vaultpay.services.checkout.orders import OrderOrchestrator
from vaultpay.services.checkout.schemas import (
    ConfigResponse,
    CreateOrderRequest,
    OneClickChargeRequest,
    OneClickChargeResponse,
)
from vaultpay.services.checkout.service import CheckoutService, OneClickRequest

configure_logging()
setup_tracing(settings.service_name)
log_startup_config(
    settings,
    [
        "paypal_mode",
        "paypal_client_id",
        "paypal_client_secret",
        "idempotency_backend",
        "idempotency_ttl_seconds",
        "idempotency_sweep_interval_seconds",
        "redis_url",
    ],
)
processor = ProcessorClient(settings)
broker = CredentialBroker(processor)
orchestrator = OrderOrchestrator(processor, broker)
store = build_store(settings)
checkout = CheckoutService(orchestrator, store, settings)


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Run the idempotency expiry sweep with the app lifecycle."""

    sweep_task = asyncio.create_task(sweep_forever(store, settings.idempotency_sweep_interval_seconds))
    yield
    sweep_task.cancel()
    with suppress(asyncio.CancelledError):
        await sweep_task


app = FastAPI(title="VaultPay Checkout Gateway", lifespan=lifespan)
instrument_app(app)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    """Record request count and latency, and bind fresh logging context per request."""

    start = perf_counter()
    route = request.url.path
    method = request.method
    status_code = 500
    with request_context(request.headers.get("x-correlation-id") or str(uuid4())):
        try:
            response = await call_next(request)
            status_code = response.status_code
            route_obj = request.scope.get("route")
            if route_obj is not None and getattr(route_obj, "path", None):
                route = route_obj.path
            return response
        finally:
            elapsed = max(0.0, perf_counter() - start)
            http_request_duration_seconds.labels(
                service=settings.service_name,
                route=route,
                method=method,
            ).observe(elapsed)
            http_requests_total.labels(
                service=settings.service_name,
                route=route,
                method=method,
                status_code=str(status_code),
            ).inc()


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError):
    """Render gateway errors as `{error, code, details}`."""

    if exc.status_code >= 500:
        logger.error("%s %s failed code=%s error=%s", request.method, request.url.path, exc.code, exc.message)
    else:
        logger.info("%s %s rejected code=%s error=%s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


def _describe_validation_error(errors: list[dict]) -> str:
    if not errors:
        return "invalid request"
    first = errors[0]
    loc = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    msg = first.get("msg", "invalid value")
    return f"{loc}: {msg}" if loc else msg


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Body/query parsing failures use the same `{error, code, details}` contract."""

    errors = jsonable_encoder(exc.errors())
    return await gateway_error_handler(request, ValidationError(_describe_validation_error(errors), details=errors))


def _base_url(request: Request) -> str:
    return str(request.base_url).rstrip("/")


@app.get("/health")
def health():
    """Liveness probe."""

    return {"status": "OK", "mode": settings.paypal_mode}


@app.get("/metrics")
def metrics():
    """Prometheus scrape endpoint."""

    return metrics_response()


@app.get("/api/config", response_model=ConfigResponse)
def get_config():
    """Client id and mode for the front-end SDK loader."""

    if not settings.paypal_client_id:
        raise AuthConfigError("PAYPAL_CLIENT_ID is not configured")
    return ConfigResponse(client_id=settings.paypal_client_id, mode=settings.paypal_mode)


@app.get("/api/generate-client-token")
async def generate_client_token(customer_id: str | None = None):
    """Identity token for the SDK; pass `customer_id` for a returning payer."""

    id_token = await broker.fetch_identity_token(customer_id or None)
    return {"id_token": id_token}


@app.get("/api/payment-tokens/{customer_id}")
async def list_payment_tokens(customer_id: str):
    """Stored instruments for a vault customer (processor passthrough)."""

    return await orchestrator.list_payment_tokens(customer_id)


@app.post("/api/orders")
async def create_order(req: CreateOrderRequest, request: Request):
    """Create an order: interactive payer with vault-on-success, or a stored instrument."""

    return await checkout.create_order(
        base_url=_base_url(request),
        customer_id=req.customer_id,
        vault_id=req.vault_id,
        shipping_mode=req.shipping_mode,
        shipping_address=req.shipping,
        amount=req.amount,
        currency=req.currency,
        description=req.description,
    )


@app.post("/api/orders/oneclick", response_model=OneClickChargeResponse)
async def one_click_charge(
    req: OneClickChargeRequest | None = None,
    x_idempotency_key: str | None = Header(default=None),
    paypal_request_id: str | None = Header(default=None),
):
    """Create + capture against a vaulted instrument, deduplicated by request id."""

    # A missing body is a missing vaultId, reported by the one-click validation.
    req = req or OneClickChargeRequest()
    result = await checkout.one_click(
        OneClickRequest(
            vault_id=req.vault_id,
            customer_id=req.customer_id,
            amount=req.amount,
            currency=req.currency,
            description=req.description,
        ),
        request_id=x_idempotency_key or paypal_request_id,
    )
    return OneClickChargeResponse(**result)


@app.post("/api/orders/{order_id}/capture")
async def capture_order(order_id: str):
    """Capture an approved order (processor passthrough)."""

    return await orchestrator.capture_order(order_id)
