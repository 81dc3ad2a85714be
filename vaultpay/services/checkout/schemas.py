"""API request/response schemas for the checkout endpoints."""

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from vaultpay.services.checkout.payloads import ShippingMode


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys as the storefront sends them."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChargeFields(CamelModel):
    amount: str | None = None
    currency: str | None = None
    description: str | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def amount_as_text(cls, value: Any) -> Any:
        # Storefronts send amounts as JSON numbers as often as strings.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class CreateOrderRequest(ChargeFields):
    """Body accepted by `POST /api/orders`."""

    customer_id: str | None = None
    vault_id: str | None = None
    shipping_mode: ShippingMode = ShippingMode.NONE
    shipping: dict[str, Any] | None = None


class OneClickChargeRequest(ChargeFields):
    """Body accepted by `POST /api/orders/oneclick`.

    `vault_id` is optional here so a missing value yields the gateway's own
    validation error rather than a generic 422.
    """

    vault_id: str | None = None
    customer_id: str | None = None


class OneClickChargeResponse(CamelModel):
    order_id: str
    order_status: str | None = None
    capture: dict[str, Any] | None = None


class ConfigResponse(CamelModel):
    client_id: str
    mode: str
