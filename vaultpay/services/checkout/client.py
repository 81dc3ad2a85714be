"""Thin async HTTP transport to the payment processor.

Every call records latency/outcome metrics and converts non-2xx responses and
transport failures into the caller-chosen `UpstreamError` subclass.
"""

from time import perf_counter
from typing import Any

import httpx

from vaultpay.common.config import GatewaySettings
from vaultpay.common.errors import UpstreamError
from vaultpay.common.logging import logger
from vaultpay.common.metrics import upstream_latency_seconds, upstream_requests_total


def _error_body(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text or None


class ProcessorClient:
    """Sends requests to the processor's REST API base for the configured mode."""

    def __init__(self, config: GatewaySettings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.config = config
        self.transport = transport

    @property
    def base_url(self) -> str:
        return self.config.paypal_api_base

    async def request(
        self,
        operation: str,
        method: str,
        path: str,
        error_cls: type[UpstreamError],
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Send one request and return the decoded JSON body.

        Raises `error_cls` with the processor body attached on non-2xx, and
        with the exception text on transport failures.
        """

        start = perf_counter()
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.config.http_timeout_seconds,
                transport=self.transport,
            ) as client:
                resp = await client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            upstream_requests_total.labels(operation=operation, outcome="transport_error").inc()
            logger.error("processor %s transport error: %s", operation, exc)
            raise error_cls(f"{operation} failed: {exc}") from exc
        finally:
            upstream_latency_seconds.labels(operation=operation).observe(max(0.0, perf_counter() - start))

        if resp.status_code >= 300:
            body = _error_body(resp)
            upstream_requests_total.labels(operation=operation, outcome="rejected").inc()
            logger.error("processor %s rejected status=%s body=%s", operation, resp.status_code, body)
            raise error_cls(
                f"{operation} rejected by processor (status={resp.status_code})",
                details=body,
                upstream_status=resp.status_code,
            )
        upstream_requests_total.labels(operation=operation, outcome="ok").inc()
        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as exc:
            raise error_cls(f"{operation} returned a non-JSON body", details=resp.text) from exc
