"""Credential broker: exchanges client id/secret for processor tokens.

Nothing is cached; every call re-authenticates.
"""

import httpx

from vaultpay.common.errors import AuthConfigError, UpstreamAuthError
from vaultpay.common.logging import logger
from vaultpay.services.checkout.client import ProcessorClient


TOKEN_PATH = "/v1/oauth2/token"


class CredentialBroker:
    def __init__(self, client: ProcessorClient) -> None:
        self.client = client

    def _basic_auth(self) -> httpx.BasicAuth:
        config = self.client.config
        if not config.paypal_client_id or not config.paypal_client_secret:
            raise AuthConfigError("PAYPAL_CLIENT_ID / PAYPAL_CLIENT_SECRET are not configured")
        return httpx.BasicAuth(config.paypal_client_id, config.paypal_client_secret)

    async def _exchange(self, operation: str, form: dict[str, str], field: str) -> str:
        auth = self._basic_auth()
        body = await self.client.request(
            operation,
            "POST",
            TOKEN_PATH,
            UpstreamAuthError,
            data=form,
            auth=auth,
        )
        token = body.get(field)
        if not isinstance(token, str) or not token:
            raise UpstreamAuthError(f"token response is missing {field}", details=body)
        return token

    async def fetch_access_token(self) -> str:
        """Client-credentials grant; returns a short-lived bearer token."""

        return await self._exchange(
            "access_token",
            {"grant_type": "client_credentials"},
            "access_token",
        )

    async def fetch_identity_token(self, customer_id: str | None = None) -> str:
        """Per-session identity token for the front-end SDK.

        With `customer_id` the token is scoped to that vault customer so the SDK
        can offer the returning payer's saved instruments.
        """

        form = {"grant_type": "client_credentials", "response_type": "id_token"}
        if customer_id:
            form["target_customer_id"] = customer_id
            logger.info("id_token requested for returning payer customer_id=%s", customer_id)
        else:
            logger.info("id_token requested for new payer")
        return await self._exchange("id_token", form, "id_token")
