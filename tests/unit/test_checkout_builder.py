from decimal import Decimal

import pytest
import stripe

from storefront import config
from storefront.checkout import GatewayError, build_session_params, create_checkout_session, to_minor_units, validate_session_request

ORIGIN = "https://durvalis.example"


def _request(**customer):
    body = {
        "items": [
            {"name": "Paste - Single Tube", "price": 14.99, "quantity": 1, "image": "/assets/1.webp"},
            {"name": "Paste - 2-Pack", "price": 21.99, "quantity": 2, "description": "2 tubes per pack"},
        ]
    }
    if customer:
        body["customerData"] = customer
    return validate_session_request(body)


def _tax_error():
    return stripe.InvalidRequestError(
        "Stripe Tax has not been activated on your account.",
        "automatic_tax[enabled]",
    )


class FakeCreate:
    """Remplace stripe_client.create_session: enchaîne les résultats prévus, enregistre les params."""
    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def __call__(self, params):
        self.calls.append(params)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


OK = {"id": "cs_test_1", "url": "https://checkout.stripe.com/c/pay/cs_test_1"}


@pytest.mark.parametrize("price, minor", [
    ("14.99", 1499),
    ("21.99", 2199),
    ("0.01", 1),
    ("1.005", 100),   # 100.5 -> pair inférieur
    ("1.015", 102),   # 101.5 -> pair supérieur
    ("19.999", 2000),
])
def test_to_minor_units(price, minor):
    assert to_minor_units(Decimal(price)) == minor


def test_session_params_content():
    params = build_session_params(
        _request(email="jane@example.com", deliveryInstructions="Back gate", marketingOptIn=True),
        ORIGIN + "/",
    )
    assert params["mode"] == "payment"
    assert params["payment_method_types"] == ["card"]
    assert params["success_url"] == f"{ORIGIN}/success?session_id={{CHECKOUT_SESSION_ID}}"
    assert params["cancel_url"] == f"{ORIGIN}/checkout"
    assert params["automatic_tax"] == {"enabled": True}
    assert params["billing_address_collection"] == "required"
    assert params["shipping_address_collection"] == {"allowed_countries": ["US", "CA"]}
    assert params["phone_number_collection"] == {"enabled": True}
    assert params["customer_creation"] == "always"
    assert params["customer_email"] == "jane@example.com"
    assert params["metadata"] == {
        "source": "durvalis_website",
        "deliveryInstructions": "Back gate",
        "marketingOptIn": "true",
    }

    first, second = params["line_items"]
    assert first["quantity"] == 1
    assert first["price_data"]["currency"] == "usd"
    assert first["price_data"]["unit_amount"] == 1499
    assert first["price_data"]["product_data"]["images"] == [f"{config.SITE_ORIGIN}/assets/1.webp"]
    assert first["price_data"]["product_data"]["description"] == config.DEFAULT_ITEM_DESCRIPTION
    assert second["price_data"]["unit_amount"] == 2199
    assert second["price_data"]["product_data"]["images"] == []
    assert second["price_data"]["product_data"]["description"] == "2 tubes per pack"


def test_free_shipping_option():
    rate = build_session_params(_request(), ORIGIN)["shipping_options"][0]["shipping_rate_data"]
    assert rate["fixed_amount"] == {"amount": 0, "currency": "usd"}
    assert rate["display_name"] == "Free Standard Shipping"
    assert rate["delivery_estimate"]["minimum"] == {"unit": "business_day", "value": 3}
    assert rate["delivery_estimate"]["maximum"] == {"unit": "business_day", "value": 5}


def test_no_customer_email_and_default_metadata():
    params = build_session_params(_request(), ORIGIN)
    assert "customer_email" not in params
    assert params["metadata"]["deliveryInstructions"] == ""
    assert params["metadata"]["marketingOptIn"] == "false"


def test_build_without_tax():
    assert "automatic_tax" not in build_session_params(_request(), ORIGIN, automatic_tax=False)


def test_create_returns_handle_only():
    create = FakeCreate(dict(OK, extra="ignored"))
    handle = create_checkout_session(_request(), ORIGIN, create=create)
    assert handle.model_dump() == OK
    assert len(create.calls) == 1


def test_tax_error_degrades_once_without_tax():
    create = FakeCreate(_tax_error(), OK)
    handle = create_checkout_session(_request(), ORIGIN, create=create)
    assert handle.id == "cs_test_1"
    assert len(create.calls) == 2
    assert "automatic_tax" in create.calls[0]
    assert "automatic_tax" not in create.calls[1]
    # tout le reste est identique
    assert {k: v for k, v in create.calls[0].items() if k != "automatic_tax"} == create.calls[1]


def test_tax_error_then_failure_raises_after_two_attempts():
    create = FakeCreate(_tax_error(), stripe.InvalidRequestError("Invalid currency", "currency"))
    with pytest.raises(GatewayError):
        create_checkout_session(_request(), ORIGIN, create=create)
    assert len(create.calls) == 2


def test_non_tax_error_is_not_retried():
    create = FakeCreate(stripe.InvalidRequestError("No such price", "line_items"), OK)
    with pytest.raises(GatewayError) as exc:
        create_checkout_session(_request(), ORIGIN, create=create)
    assert len(create.calls) == 1
    assert isinstance(exc.value.__cause__, stripe.InvalidRequestError)


def test_auth_error_is_not_retried():
    create = FakeCreate(stripe.AuthenticationError("Invalid API Key provided"), OK)
    with pytest.raises(GatewayError):
        create_checkout_session(_request(), ORIGIN, create=create)
    assert len(create.calls) == 1


def test_connection_error_retried_once_with_same_params():
    create = FakeCreate(stripe.APIConnectionError("timed out"), OK)
    handle = create_checkout_session(_request(), ORIGIN, create=create)
    assert handle.url == OK["url"]
    assert create.calls[0] == create.calls[1]


def test_connection_error_twice_gives_up():
    create = FakeCreate(stripe.APIConnectionError("timed out"), stripe.APIConnectionError("timed out"), OK)
    with pytest.raises(GatewayError):
        create_checkout_session(_request(), ORIGIN, create=create)
    assert len(create.calls) == 2


def test_session_without_url_is_gateway_error():
    with pytest.raises(GatewayError):
        create_checkout_session(_request(), ORIGIN, create=FakeCreate({"id": "cs_1", "url": None}))
