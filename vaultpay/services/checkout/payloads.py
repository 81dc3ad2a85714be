"""Order-creation payload construction.

Request shape is driven by two closed axes: the payment source kind (interactive
payer vs. stored instrument) and the shipping mode.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ShippingMode(str, Enum):
    NONE = "none"
    NO_SHIPPING = "no_shipping"
    SET_PROVIDED = "set_provided"


class PaymentSourceKind(str, Enum):
    PAYPAL = "paypal"
    TOKEN = "token"


# mode -> (attach address block, shipping_preference sent to the processor)
SHIPPING_RULES: dict[ShippingMode, tuple[bool, str]] = {
    ShippingMode.NONE: (False, "NO_SHIPPING"),
    ShippingMode.NO_SHIPPING: (True, "NO_SHIPPING"),
    # Enables proof-of-shipping seller protection; may disqualify pure one-click.
    ShippingMode.SET_PROVIDED: (True, "SET_PROVIDED_ADDRESS"),
}

DEFAULT_SHIPPING_ADDRESS: dict[str, Any] = {
    "name": {"full_name": "Taro Yamada"},
    "address": {
        "address_line_1": "1-1-1 Chiyoda",
        "admin_area_2": "Chiyoda-ku",
        "admin_area_1": "Tokyo",
        "postal_code": "100-0001",
        "country_code": "JP",
    },
}


@dataclass
class ExperienceContext:
    """Payer-facing checkout options for the interactive source."""

    brand_name: str
    locale: str
    return_url: str
    cancel_url: str
    landing_page: str = "LOGIN"
    user_action: str = "PAY_NOW"
    payment_method_preference: str = "IMMEDIATE_PAYMENT_REQUIRED"


@dataclass
class OrderDraft:
    amount: str
    currency: str
    description: str
    vault_id: str | None = None
    customer_id: str | None = None
    shipping_mode: ShippingMode = ShippingMode.NONE
    shipping_address: dict[str, Any] = field(default_factory=lambda: copy.deepcopy(DEFAULT_SHIPPING_ADDRESS))
    experience: ExperienceContext | None = None

    @property
    def source_kind(self) -> PaymentSourceKind:
        return PaymentSourceKind.TOKEN if self.vault_id else PaymentSourceKind.PAYPAL


def shipping_fields(mode: ShippingMode) -> tuple[bool, str]:
    """Return (address attached, shipping preference) for a shipping mode."""

    return SHIPPING_RULES[ShippingMode(mode)]


def _token_source(draft: OrderDraft) -> dict[str, Any]:
    # Already vaulted: no vault attributes, no payer experience.
    return {"token": {"id": draft.vault_id, "type": "PAYMENT_METHOD_TOKEN"}}


def _paypal_source(draft: OrderDraft, shipping_preference: str) -> dict[str, Any]:
    if draft.experience is None:
        raise ValueError("interactive payer source requires an experience context")
    exp = draft.experience
    vault: dict[str, Any] = {
        "store_in_vault": "ON_SUCCESS",
        "usage_type": "MERCHANT",
        "customer_type": "CONSUMER",
    }
    if draft.customer_id:
        # Returning payer: link the new instrument to the existing vault customer.
        vault["customer_id"] = draft.customer_id
    return {
        "paypal": {
            "experience_context": {
                "payment_method_preference": exp.payment_method_preference,
                "brand_name": exp.brand_name,
                "locale": exp.locale,
                "landing_page": exp.landing_page,
                "shipping_preference": shipping_preference,
                "user_action": exp.user_action,
                "return_url": exp.return_url,
                "cancel_url": exp.cancel_url,
            },
            "attributes": {"vault": vault},
        }
    }


def build_order_payload(draft: OrderDraft) -> dict[str, Any]:
    """Build the `POST /v2/checkout/orders` body for a draft."""

    attach_address, shipping_preference = shipping_fields(draft.shipping_mode)
    unit: dict[str, Any] = {
        "amount": {"currency_code": draft.currency, "value": draft.amount},
        "description": draft.description,
    }
    if attach_address:
        unit["shipping"] = {"type": "SHIPPING", **draft.shipping_address}

    if draft.source_kind is PaymentSourceKind.TOKEN:
        source = _token_source(draft)
    else:
        source = _paypal_source(draft, shipping_preference)

    return {
        "intent": "CAPTURE",
        "purchase_units": [unit],
        "payment_source": source,
    }
