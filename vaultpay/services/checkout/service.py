"""Checkout use cases: plain order creation and the one-click charge.

The one-click path composes the orchestrator with the idempotency store so a
retried charge with the same request id converges on one cached outcome.
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from vaultpay.common.config import GatewaySettings
from vaultpay.common.errors import GatewayError, UpstreamCaptureError, ValidationError
from vaultpay.common.logging import logger, order_id_ctx, request_id_ctx
from vaultpay.common.metrics import oneclick_outcomes_total
from vaultpay.services.checkout.idempotency import IdempotencyRecord, IdempotencyStore
from vaultpay.services.checkout.issues import ProcessorIssue
from vaultpay.services.checkout.orders import OrderOrchestrator, new_request_id
from vaultpay.services.checkout.payloads import ExperienceContext, OrderDraft, ShippingMode


ZERO_DECIMAL_CURRENCIES = {"JPY", "HUF", "TWD"}
AMOUNT_RE = re.compile(r"^[0-9]+(\.[0-9]+)?$")


def default_amount(currency: str) -> str:
    return "100" if currency in ZERO_DECIMAL_CURRENCIES else "1.00"


def normalize_amount(amount: str | None, currency: str) -> str:
    """Validate an amount string for a currency, applying the default when absent."""

    if amount is None or str(amount).strip() == "":
        return default_amount(currency)
    amount = str(amount).strip()
    if currency in ZERO_DECIMAL_CURRENCIES and "." in amount:
        raise ValidationError(f"{currency} does not support decimals")
    if not AMOUNT_RE.match(amount) or Decimal(amount) <= 0:
        raise ValidationError(f"invalid amount: {amount}")
    return amount


@dataclass
class OneClickRequest:
    vault_id: str | None
    customer_id: str | None = None
    amount: str | None = None
    currency: str | None = None
    description: str | None = None


class CheckoutService:
    def __init__(self, orchestrator: OrderOrchestrator, store: IdempotencyStore, config: GatewaySettings) -> None:
        self.orchestrator = orchestrator
        self.store = store
        self.config = config

    def _currency(self, currency: str | None) -> str:
        return (currency or self.config.default_currency).strip().upper()

    async def create_order(
        self,
        *,
        base_url: str,
        customer_id: str | None = None,
        vault_id: str | None = None,
        shipping_mode: ShippingMode = ShippingMode.NONE,
        shipping_address: dict[str, Any] | None = None,
        amount: str | None = None,
        currency: str | None = None,
        description: str | None = None,
    ) -> dict[str, Any]:
        """Create an order for the interactive or stored-instrument flow."""

        currency = self._currency(currency)
        draft = OrderDraft(
            amount=normalize_amount(amount, currency),
            currency=currency,
            description=description or self.config.default_description,
            vault_id=vault_id or None,
            customer_id=customer_id or None,
            shipping_mode=ShippingMode(shipping_mode),
            experience=ExperienceContext(
                brand_name=self.config.brand_name,
                locale=self.config.locale,
                return_url=f"{base_url}/success",
                cancel_url=f"{base_url}/cancel",
            ),
        )
        if shipping_address:
            draft.shipping_address = shipping_address
        return await self.orchestrator.create_order(draft)

    def _validate_one_click(self, req: OneClickRequest) -> OrderDraft:
        if not req.vault_id or not req.vault_id.strip():
            raise ValidationError("vaultId required")
        currency = self._currency(req.currency)
        return OrderDraft(
            amount=normalize_amount(req.amount, currency),
            currency=currency,
            description=req.description or self.config.default_description,
            vault_id=req.vault_id.strip(),
            customer_id=req.customer_id or None,
        )

    async def _recover_already_captured(self, order_id: str, creation_status: str | None) -> IdempotencyRecord:
        # The processor says the order is done; read it back instead of re-capturing.
        try:
            order = await self.orchestrator.get_order(order_id)
        except GatewayError as exc:
            logger.warning("already-captured order lookup failed order_id=%s error=%s", order_id, exc)
            return IdempotencyRecord(order_id=order_id, order_status=creation_status, capture=None)
        return IdempotencyRecord(
            order_id=order_id,
            order_status=order.get("status") or creation_status,
            capture=order,
        )

    async def one_click(self, req: OneClickRequest, request_id: str | None = None) -> dict[str, Any]:
        """Create and capture against a stored instrument, at most once per request id.

        A cached outcome is returned without any processor call. Only terminal
        outcomes are cached: capture success, or an already-captured order.
        Any other failure propagates and leaves the request id retryable.
        """

        draft = self._validate_one_click(req)
        request_id = request_id or new_request_id("ONECLICK")
        request_id_ctx.set(request_id)

        cached = self.store.get(request_id)
        if cached is not None:
            logger.info("one-click replay served from cache order_id=%s", cached.order_id)
            oneclick_outcomes_total.labels(outcome="replayed").inc()
            return cached.response()

        try:
            order = await self.orchestrator.create_order(draft, request_id=request_id)
        except Exception:
            oneclick_outcomes_total.labels(outcome="failed").inc()
            raise
        order_id = order["id"]
        order_id_ctx.set(order_id)

        outcome = "created"
        try:
            capture = await self.orchestrator.capture_order(order_id)
            record = IdempotencyRecord(order_id=order_id, order_status=order.get("status"), capture=capture)
        except UpstreamCaptureError as exc:
            if exc.issue is not ProcessorIssue.ORDER_ALREADY_CAPTURED:
                oneclick_outcomes_total.labels(outcome="failed").inc()
                raise
            logger.info("order already captured, recovering order_id=%s", order_id)
            outcome = "recovered"
            record = await self._recover_already_captured(order_id, order.get("status"))
        except Exception:
            oneclick_outcomes_total.labels(outcome="failed").inc()
            raise

        stored = self.store.put(request_id, record)
        oneclick_outcomes_total.labels(outcome=outcome).inc()
        return stored.response()
