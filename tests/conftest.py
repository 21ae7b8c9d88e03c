import hashlib
import hmac
import json
import os
import time
from typing import Any, Dict, Generator, List, Tuple

import pytest

# Pas de Redis en tests: le lifespan désactive proprement le rate limiting
os.environ.setdefault("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS", "1")

from fastapi.testclient import TestClient

from storefront import config
from storefront.app import app as fastapi_app
from storefront.notifications import NotificationError
from storefront.webhooks.ledger import InMemoryEventLedger
from storefront.webhooks.views import get_event_ledger, get_notification_sender

WEBHOOK_SECRET = "whsec_test_secret"

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


class FakeSender:
    """Transport de notifications en mémoire; fail_for = adresses qui échouent."""
    def __init__(self, fail_for: Tuple[str, ...] = ()):
        self.sent: List[Tuple[str, str, str]] = []
        self.fail_for = fail_for

    async def send(self, to: str, subject: str, body: str) -> None:
        if to in self.fail_for or "*" in self.fail_for:
            raise NotificationError(f"boom {to}")
        self.sent.append((to, subject, body))


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """En-tête Stripe-Signature au format officiel t=...,v1=HMAC-SHA256."""
    ts = timestamp or int(time.time())
    signed = f"{ts}.".encode("utf-8") + payload
    sig = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={sig}"


def make_session(**overrides: Any) -> Dict[str, Any]:
    session = {
        "id": "cs_test_123",
        "object": "checkout.session",
        "created": 1760000000,
        "amount_total": 6297,
        "currency": "usd",
        "payment_status": "paid",
        "customer_details": {"email": "buyer@example.com", "name": "Jane Rider"},
        "shipping_details": {
            "name": "Jane Rider",
            "address": {
                "line1": "1 Stable Road",
                "line2": None,
                "city": "Austin",
                "state": "TX",
                "postal_code": "78731",
                "country": "US",
            },
        },
        "total_details": {"amount_tax": 299},
        "metadata": {"source": "durvalis_website", "deliveryInstructions": "Leave at the barn", "marketingOptIn": "false"},
    }
    session.update(overrides)
    return session


def make_event(event_type: str = "checkout.session.completed", obj: Dict[str, Any] | None = None, event_id: str = "evt_1") -> Dict[str, Any]:
    return {
        "id": event_id,
        "object": "event",
        "type": event_type,
        "data": {"object": obj if obj is not None else make_session()},
    }


LINE_ITEMS = [
    {"description": "Durvalis Ivermectin Paste 1.87% - Single Tube", "quantity": 1, "amount_total": 1499},
    {"description": "Durvalis Ivermectin Paste 1.87% - 2-Pack", "quantity": 2, "amount_total": 4398},
]


@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

@pytest.fixture()
def webhook_secret(monkeypatch) -> str:
    monkeypatch.setattr(config, "STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    return WEBHOOK_SECRET

@pytest.fixture()
def fake_sender(app) -> Generator[FakeSender, None, None]:
    sender = FakeSender()
    app.dependency_overrides[get_notification_sender] = lambda: sender
    yield sender
    app.dependency_overrides.pop(get_notification_sender, None)

@pytest.fixture()
def ledger(app) -> Generator[InMemoryEventLedger, None, None]:
    fresh = InMemoryEventLedger(max_size=16)
    app.dependency_overrides[get_event_ledger] = lambda: fresh
    yield fresh
    app.dependency_overrides.pop(get_event_ledger, None)

@pytest.fixture()
def line_items_calls(monkeypatch) -> List[str]:
    """Remplace l'appel Stripe list_line_items; enregistre les session_id demandés."""
    calls: List[str] = []

    def _fake_list_line_items(session_id: str):
        calls.append(session_id)
        return [dict(it) for it in LINE_ITEMS]

    monkeypatch.setattr("storefront.checkout.stripe_client.list_line_items", _fake_list_line_items)
    return calls

def to_body(event: Dict[str, Any]) -> bytes:
    return json.dumps(event).encode("utf-8")
