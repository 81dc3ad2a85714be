"""Order orchestrator: order creation, capture, lookup and vault listing."""

from typing import Any
from uuid import uuid4

from vaultpay.common.errors import UpstreamAuthError, UpstreamCaptureError, UpstreamOrderError, UpstreamVaultError
from vaultpay.common.logging import logger
from vaultpay.services.checkout.client import ProcessorClient
from vaultpay.services.checkout.credentials import CredentialBroker
from vaultpay.services.checkout.issues import decode_issue
from vaultpay.services.checkout.payloads import OrderDraft, PaymentSourceKind, build_order_payload


ORDERS_PATH = "/v2/checkout/orders"
PAYMENT_TOKENS_PATH = "/v3/vault/payment-tokens"


def new_request_id(prefix: str) -> str:
    return f"{prefix}-{uuid4()}"


class OrderOrchestrator:
    """Builds and submits order requests; never retries on its own."""

    def __init__(self, client: ProcessorClient, broker: CredentialBroker) -> None:
        self.client = client
        self.broker = broker

    async def _headers(self, request_id: str | None = None) -> dict[str, str]:
        token = await self.broker.fetch_access_token()
        headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
        if request_id:
            headers["PayPal-Request-Id"] = request_id
        return headers

    async def create_order(self, draft: OrderDraft, request_id: str | None = None) -> dict[str, Any]:
        """Create an order.

        `request_id` is forwarded as the processor idempotency key when the
        caller owns one (one-click path); otherwise a fresh key is generated.
        """

        payload = build_order_payload(draft)
        headers = await self._headers(request_id or new_request_id("ORDER"))
        if draft.source_kind is PaymentSourceKind.TOKEN:
            logger.info("order create: vaulted instrument customer_id=%s", draft.customer_id)
        elif draft.customer_id:
            logger.info("order create: returning payer customer_id=%s", draft.customer_id)
        else:
            logger.info("order create: new payer")
        order = await self.client.request(
            "create_order", "POST", ORDERS_PATH, UpstreamOrderError, json=payload, headers=headers
        )
        if not order.get("id"):
            raise UpstreamOrderError("order response is missing id", details=order)
        logger.info("order created order_id=%s status=%s", order.get("id"), order.get("status"))
        return order

    async def capture_order(self, order_id: str) -> dict[str, Any]:
        """Capture an order; the raised error carries the decoded processor issue."""

        try:
            headers = await self._headers(new_request_id("CAPTURE"))
        except UpstreamAuthError as exc:
            # A capture that never reached the processor is still a capture failure.
            raise UpstreamCaptureError(
                f"capture_order could not authenticate: {exc.message}",
                details=exc.details,
                upstream_status=exc.upstream_status,
            ) from exc
        try:
            return await self.client.request(
                "capture_order",
                "POST",
                f"{ORDERS_PATH}/{order_id}/capture",
                UpstreamCaptureError,
                json={},
                headers=headers,
            )
        except UpstreamCaptureError as exc:
            exc.issue = decode_issue(exc.details)
            raise

    async def get_order(self, order_id: str) -> dict[str, Any]:
        headers = await self._headers()
        return await self.client.request(
            "get_order", "GET", f"{ORDERS_PATH}/{order_id}", UpstreamOrderError, headers=headers
        )

    async def list_payment_tokens(self, customer_id: str) -> dict[str, Any]:
        """Stored instruments for a vault customer, passed through as-is."""

        headers = await self._headers()
        return await self.client.request(
            "list_payment_tokens",
            "GET",
            PAYMENT_TOKENS_PATH,
            UpstreamVaultError,
            params={"customer_id": customer_id},
            headers=headers,
        )
