"""Order payload construction across payment-source and shipping axes."""

import pytest

from vaultpay.services.checkout.payloads import (
    DEFAULT_SHIPPING_ADDRESS,
    ExperienceContext,
    OrderDraft,
    ShippingMode,
    build_order_payload,
    shipping_fields,
)


def _draft(**overrides) -> OrderDraft:
    fields = dict(
        amount="100",
        currency="JPY",
        description="Vault test item",
        experience=ExperienceContext(
            brand_name="Demo",
            locale="ja-JP",
            return_url="http://shop.test/success",
            cancel_url="http://shop.test/cancel",
        ),
    )
    fields.update(overrides)
    return OrderDraft(**fields)


@pytest.mark.parametrize(
    "mode, has_address, preference",
    [
        (ShippingMode.NONE, False, "NO_SHIPPING"),
        (ShippingMode.NO_SHIPPING, True, "NO_SHIPPING"),
        (ShippingMode.SET_PROVIDED, True, "SET_PROVIDED_ADDRESS"),
    ],
)
def test_shipping_mode_mapping(mode, has_address, preference):
    payload = build_order_payload(_draft(shipping_mode=mode))
    unit = payload["purchase_units"][0]
    context = payload["payment_source"]["paypal"]["experience_context"]

    assert ("shipping" in unit) is has_address
    assert context["shipping_preference"] == preference
    assert shipping_fields(mode) == (has_address, preference)


def test_shipping_modes_accept_plain_strings():
    assert shipping_fields("set_provided") == (True, "SET_PROVIDED_ADDRESS")
    with pytest.raises(ValueError):
        shipping_fields("express")


def test_new_payer_requests_vault_on_success():
    payload = build_order_payload(_draft())

    assert payload["intent"] == "CAPTURE"
    assert payload["purchase_units"][0]["amount"] == {"currency_code": "JPY", "value": "100"}
    paypal = payload["payment_source"]["paypal"]
    assert paypal["attributes"]["vault"] == {
        "store_in_vault": "ON_SUCCESS",
        "usage_type": "MERCHANT",
        "customer_type": "CONSUMER",
    }
    context = paypal["experience_context"]
    assert context["landing_page"] == "LOGIN"
    assert context["user_action"] == "PAY_NOW"
    assert context["return_url"] == "http://shop.test/success"
    assert context["cancel_url"] == "http://shop.test/cancel"


def test_returning_payer_links_vault_customer():
    payload = build_order_payload(_draft(customer_id="CUST-9"))
    assert payload["payment_source"]["paypal"]["attributes"]["vault"]["customer_id"] == "CUST-9"


def test_stored_instrument_uses_token_source_without_vault_attributes():
    payload = build_order_payload(_draft(vault_id="TOKEN1", customer_id="CUST-9", experience=None))

    assert payload["payment_source"] == {"token": {"id": "TOKEN1", "type": "PAYMENT_METHOD_TOKEN"}}


def test_stored_instrument_still_carries_address_when_requested():
    payload = build_order_payload(_draft(vault_id="TOKEN1", shipping_mode=ShippingMode.SET_PROVIDED))
    shipping = payload["purchase_units"][0]["shipping"]

    assert shipping["type"] == "SHIPPING"
    assert shipping["address"] == DEFAULT_SHIPPING_ADDRESS["address"]


def test_interactive_source_requires_experience_context():
    with pytest.raises(ValueError):
        build_order_payload(_draft(experience=None))


def test_default_address_is_not_shared_between_drafts():
    first = _draft(shipping_mode=ShippingMode.NO_SHIPPING)
    first.shipping_address["address"]["postal_code"] = "999-9999"

    payload = build_order_payload(_draft(shipping_mode=ShippingMode.NO_SHIPPING))

    assert payload["purchase_units"][0]["shipping"]["address"]["postal_code"] == "100-0001"
    assert DEFAULT_SHIPPING_ADDRESS["address"]["postal_code"] == "100-0001"
