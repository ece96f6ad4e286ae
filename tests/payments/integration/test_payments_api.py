"""Integration tests for Payments API endpoints via TestClient."""

import asyncio
import hashlib
import hmac
import json
import time

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from catalogue.ledger.memory_adapter import InMemoryStockLedger
from catalogue.ledger.port import Product
from ordering.checkout import set_checkout_service
from ordering.checkout.service import CheckoutService
from ordering.order.reconciliation import ReconciliationPolicy
from payments.api.routes import payment_router
from payments.gateway import set_gateway
from payments.gateway.fake_adapter import FakeGateway
from payments.webhook import set_verifier
from payments.webhook.verifier import CardWebhookVerifier, RegionalWebhookVerifier
from shared.http_errors import install_error_handlers

SECRET = "whsec_api"
SHOPPER = {"X-User-Id": "user-1"}
ONE_MUG = {"items": [{"productId": "P1", "quantity": 1}]}
TWO_MUGS = {"items": [{"productId": "P1", "quantity": 2}]}


@pytest.fixture()
def gateway():
    gateway = FakeGateway()
    set_gateway(gateway)
    return gateway


@pytest.fixture()
def ledger():
    ledger = InMemoryStockLedger()
    ledger.add_product(Product(id="P1", name="Ceramic Mug", price=4999, stock=5))
    return ledger


@pytest.fixture()
def client(ledger, gateway):
    set_checkout_service(CheckoutService(gateway=gateway, ledger=ledger, policy=ReconciliationPolicy.LOG_ONLY))
    set_verifier("regional", RegionalWebhookVerifier(SECRET))
    set_verifier("card", CardWebhookVerifier(SECRET))

    app = FastAPI()
    app.include_router(payment_router)
    install_error_handlers(app)
    return TestClient(app)


def _regional_body():
    return json.dumps(
        {
            "event": "payment.captured",
            "payload": {
                "payment": {
                    "entity": {
                        "id": "pay_29QQoUBi66xm2f",
                        "order_id": "order_9A33XWu170gUtm",
                        "amount": 250000,
                        "currency": "INR",
                        "status": "captured",
                    }
                }
            },
        }
    ).encode()


def _regional_signature(body: bytes) -> str:
    return hmac.new(SECRET.encode(), body, hashlib.sha256).hexdigest()


class TestPaymentIntentEndpoint:
    def test_intent_amount_is_catalogue_total(self, client):
        response = client.post("/payments/intent", json=TWO_MUGS, headers=SHOPPER)

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["provider"] == "fake"
        assert data["amount"] == "99.98"
        assert data["amount_minor"] == 9998
        assert data["currency"] == "USD"
        assert data["provider_reference"].startswith("fake_order_")

    def test_intent_requires_authentication(self, client):
        response = client.post("/payments/intent", json=ONE_MUG)
        assert response.status_code == 401

    def test_intent_for_empty_cart(self, client):
        response = client.post("/payments/intent", json={"items": []}, headers=SHOPPER)
        assert response.status_code == 400
        assert response.json()["error"] == "empty_cart"

    def test_intent_when_provider_down(self, client, gateway):
        gateway.configure(available=False)

        response = client.post("/payments/intent", json=ONE_MUG, headers=SHOPPER)

        assert response.status_code == 503
        assert response.json() == {
            "success": False,
            "error": "gateway_unavailable",
            "message": "Payment provider temporarily unavailable",
        }

    def test_provider_call_runs_off_the_event_loop(self, client, gateway, monkeypatch):
        seen = []
        create = gateway.create_payment_intent

        def create_and_record(amount, currency):
            try:
                asyncio.get_running_loop()
                seen.append("event loop")
            except RuntimeError:
                seen.append("worker thread")
            return create(amount, currency)

        monkeypatch.setattr(gateway, "create_payment_intent", create_and_record)

        assert client.post("/payments/intent", json=ONE_MUG, headers=SHOPPER).status_code == 201
        assert seen == ["worker thread"]


class TestWebhookEndpoint:
    def test_regional_webhook(self, client):
        body = _regional_body()

        response = client.post(
            "/payments/webhook/regional",
            content=body,
            headers={"X-Razorpay-Signature": _regional_signature(body)},
        )

        assert response.status_code == 200
        event = response.json()["event"]
        assert event["type"] == "payment_success"
        assert event["payment_id"] == "pay_29QQoUBi66xm2f"
        assert event["amount"] == "2500.00"

    def test_signature_header_comes_from_the_provider_verifier(self, client):
        class ShopVerifier(RegionalWebhookVerifier):
            signature_header = "x-shop-signature"

        set_verifier("regional", ShopVerifier(SECRET))
        body = _regional_body()
        signature = _regional_signature(body)

        accepted = client.post("/payments/webhook/regional", content=body, headers={"X-Shop-Signature": signature})
        ignored = client.post("/payments/webhook/regional", content=body, headers={"X-Razorpay-Signature": signature})

        assert accepted.status_code == 200
        assert ignored.status_code == 400
        assert ignored.json()["error"] == "invalid_signature"

    def test_default_webhook_uses_regional_provider(self, client):
        body = _regional_body()
        response = client.post(
            "/payments/webhook", content=body, headers={"X-Webhook-Signature": _regional_signature(body)}
        )
        assert response.status_code == 200

    def test_default_webhook_follows_payment_provider(self, client, monkeypatch):
        monkeypatch.setenv("PAYMENT_PROVIDER", "card")
        body = _regional_body()
        response = client.post(
            "/payments/webhook", content=body, headers={"X-Webhook-Signature": _regional_signature(body)}
        )
        assert response.status_code == 400

    def test_card_webhook(self, client):
        body = json.dumps(
            {
                "type": "payment_intent.succeeded",
                "data": {"object": {"id": "pi_1", "amount": 4999, "currency": "usd", "status": "succeeded"}},
            }
        ).encode()
        timestamp = str(int(time.time()))
        signature = hmac.new(SECRET.encode(), timestamp.encode() + b"." + body, hashlib.sha256).hexdigest()

        response = client.post(
            "/payments/webhook/card",
            content=body,
            headers={"Stripe-Signature": f"t={timestamp},v1={signature}"},
        )

        assert response.status_code == 200
        event = response.json()["event"]
        assert event["type"] == "payment_success"
        assert event["amount"] == "49.99"
        assert event["currency"] == "USD"

    def test_invalid_signature(self, client):
        response = client.post(
            "/payments/webhook/regional",
            content=_regional_body(),
            headers={"X-Razorpay-Signature": "0" * 64},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_signature"

    def test_missing_signature(self, client):
        response = client.post("/payments/webhook/regional", content=_regional_body())
        assert response.status_code == 400

    def test_unknown_provider(self, client):
        response = client.post("/payments/webhook/paypal", content=b"{}")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_unknown_event_is_acknowledged(self, client):
        body = json.dumps({"event": "refund.processed", "payload": {}}).encode()
        response = client.post(
            "/payments/webhook/regional",
            content=body,
            headers={"X-Razorpay-Signature": _regional_signature(body)},
        )
        assert response.status_code == 200
        assert response.json()["event"]["type"] == "unknown"


class TestGatewayConfigureEndpoint:
    def test_toggle_availability(self, client, gateway):
        response = client.post("/payments/gateway/configure", json={"available": False})

        assert response.status_code == 200
        assert response.json() == {"gateway": "FakeGateway", "available": False}
        assert gateway.available is False

    def test_not_available_in_production(self, client, monkeypatch):
        monkeypatch.setenv("PROTEAN_ENV", "production")
        response = client.post("/payments/gateway/configure", json={"available": False})
        assert response.status_code == 403
