"""Tests for gateway port/adapter integration."""

import json
from types import SimpleNamespace

import httpx
import pytest
import stripe
from payments.gateway import build_gateway, get_gateway, reset_gateway, set_gateway
from payments.gateway.card_adapter import CardGateway
from payments.gateway.fake_adapter import FakeGateway
from payments.gateway.port import PaymentIntent
from payments.gateway.regional_adapter import RegionalGateway
from shared.errors import ConfigurationError, GatewayUnavailable, InvalidAmount, ValidationError


class FakeStripeClient:
    """Stands in for stripe.StripeClient's payment_intents service."""

    def __init__(self, error=None, status="succeeded", latest_charge="ch_789"):
        self.created = []
        self.retrieved = []
        self.error = error
        self.status = status
        self.latest_charge = latest_charge
        self.payment_intents = SimpleNamespace(create=self._create, retrieve=self._retrieve)

    def _create(self, params):
        if self.error is not None:
            raise self.error
        self.created.append(params)
        return SimpleNamespace(id="pi_123", client_secret="pi_123_secret_abc")

    def _retrieve(self, intent_id):
        self.retrieved.append(intent_id)
        if self.error is not None:
            raise self.error
        if intent_id != "pi_123":
            raise stripe.InvalidRequestError(f"No such payment_intent: '{intent_id}'", "intent", code="resource_missing")
        return SimpleNamespace(
            id="pi_123",
            client_secret="pi_123_secret_abc",
            status=self.status,
            latest_charge=self.latest_charge,
        )


class TestFakeGateway:
    def test_create_payment_intent(self):
        gateway = FakeGateway()
        intent = gateway.create_payment_intent("99.98", "USD")
        assert isinstance(intent, PaymentIntent)
        assert intent.amount_minor == 9998
        assert intent.provider == "fake"
        assert intent.provider_reference.startswith("fake_order_")

    def test_unavailable_gateway(self):
        gateway = FakeGateway()
        gateway.configure(available=False)
        with pytest.raises(GatewayUnavailable):
            gateway.create_payment_intent("10.00", "USD")

    @pytest.mark.parametrize("amount", [0, "-1.00", "0.00"])
    def test_non_positive_amount(self, amount):
        with pytest.raises(InvalidAmount):
            FakeGateway().create_payment_intent(amount, "USD")

    def test_call_logging(self):
        gateway = FakeGateway()
        gateway.create_payment_intent("10.00", "USD")
        gateway.verify_payment_authenticity("o", "p", "x")
        assert [call["method"] for call in gateway.calls] == [
            "create_payment_intent",
            "verify_payment_authenticity",
        ]


class TestCardGateway:
    def test_creates_intent_in_minor_units(self):
        client = FakeStripeClient()
        gateway = CardGateway(api_key="sk_test", client=client)

        intent = gateway.create_payment_intent("49.99", "USD")

        assert client.created == [
            {"amount": 4999, "currency": "usd", "automatic_payment_methods": {"enabled": True}}
        ]
        assert intent.provider_reference == "pi_123"
        assert intent.client_secret_or_order_id == "pi_123_secret_abc"
        assert intent.provider == "card"

    @pytest.mark.parametrize(
        "error",
        [
            stripe.APIConnectionError("timed out"),
            stripe.RateLimitError("slow down"),
            stripe.APIError("internal error"),
        ],
    )
    def test_transient_provider_errors_are_gateway_unavailable(self, error):
        gateway = CardGateway(api_key="sk_test", client=FakeStripeClient(error=error))
        with pytest.raises(GatewayUnavailable):
            gateway.create_payment_intent("10.00", "USD")

    def test_rejected_api_key_is_configuration_error(self):
        gateway = CardGateway(api_key="sk_bad", client=FakeStripeClient(error=stripe.AuthenticationError("bad key")))
        with pytest.raises(ConfigurationError):
            gateway.create_payment_intent("10.00", "USD")

    def test_rejected_intent_is_validation_error(self):
        error = stripe.InvalidRequestError("Amount must be at least 50 cents", "amount")
        gateway = CardGateway(api_key="sk_test", client=FakeStripeClient(error=error))
        with pytest.raises(ValidationError):
            gateway.create_payment_intent("0.10", "USD")

    def test_missing_api_key_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            CardGateway(api_key="").create_payment_intent("10.00", "USD")

    def test_rejects_non_positive_amount_before_calling_provider(self):
        client = FakeStripeClient()
        gateway = CardGateway(api_key="sk_test", client=client)
        with pytest.raises(InvalidAmount):
            gateway.create_payment_intent("0", "USD")
        assert client.created == []


class TestCardPaymentConfirmation:
    def test_succeeded_intent_with_matching_client_secret(self):
        client = FakeStripeClient()
        gateway = CardGateway(api_key="sk_test", client=client)

        assert gateway.verify_payment_authenticity("pi_123", "pi_123", "pi_123_secret_abc") is True
        assert client.retrieved == ["pi_123"]

    def test_latest_charge_is_accepted_as_payment_reference(self):
        gateway = CardGateway(api_key="sk_test", client=FakeStripeClient())
        verification = gateway.verify("pi_123", "ch_789", "pi_123_secret_abc")
        assert verification.valid is True
        assert verification.provider_payment_id == "ch_789"

    @pytest.mark.parametrize("status", ["requires_payment_method", "processing", "canceled"])
    def test_unsettled_intent_is_rejected(self, status):
        gateway = CardGateway(api_key="sk_test", client=FakeStripeClient(status=status))
        assert gateway.verify_payment_authenticity("pi_123", "pi_123", "pi_123_secret_abc") is False

    def test_wrong_client_secret_is_rejected(self):
        gateway = CardGateway(api_key="sk_test", client=FakeStripeClient())
        assert gateway.verify_payment_authenticity("pi_123", "pi_123", "pi_123_secret_xyz") is False

    def test_payment_reference_from_another_intent_is_rejected(self):
        gateway = CardGateway(api_key="sk_test", client=FakeStripeClient())
        assert gateway.verify_payment_authenticity("pi_123", "ch_other", "pi_123_secret_abc") is False

    def test_unknown_intent_is_rejected(self):
        gateway = CardGateway(api_key="sk_test", client=FakeStripeClient())
        assert gateway.verify_payment_authenticity("pi_missing", "pi_missing", "pi_missing_secret") is False

    def test_missing_references_skip_the_provider(self):
        client = FakeStripeClient()
        gateway = CardGateway(api_key="sk_test", client=client)
        assert gateway.verify_payment_authenticity("", "pi_123", "pi_123_secret_abc") is False
        assert client.retrieved == []

    def test_provider_outage_during_confirmation(self):
        gateway = CardGateway(api_key="sk_test", client=FakeStripeClient(error=stripe.APIConnectionError("down")))
        with pytest.raises(GatewayUnavailable):
            gateway.verify_payment_authenticity("pi_123", "pi_123", "pi_123_secret_abc")

    def test_rejected_api_key_during_confirmation(self):
        gateway = CardGateway(api_key="sk_bad", client=FakeStripeClient(error=stripe.AuthenticationError("bad key")))
        with pytest.raises(ConfigurationError):
            gateway.verify_payment_authenticity("pi_123", "pi_123", "pi_123_secret_abc")


class TestRegionalGateway:
    def _gateway(self, handler):
        return RegionalGateway(
            key_id="rzp_test",
            key_secret="key-secret",
            transport=httpx.MockTransport(handler),
        )

    def test_creates_hosted_order(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            seen["auth"] = request.headers["authorization"]
            return httpx.Response(200, json={"id": "order_9A33XWu170gUtm", "amount": 9998, "currency": "INR"})

        intent = self._gateway(handler).create_payment_intent("99.98", "INR")

        assert seen["url"] == "https://api.razorpay.com/v1/orders"
        assert seen["body"]["amount"] == 9998
        assert seen["body"]["currency"] == "INR"
        assert seen["body"]["receipt"].startswith("receipt_")
        assert seen["auth"].startswith("Basic ")
        assert intent.provider_reference == "order_9A33XWu170gUtm"
        assert intent.client_secret_or_order_id == "order_9A33XWu170gUtm"
        assert intent.amount_minor == 9998

    def test_timeout_is_gateway_unavailable(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(GatewayUnavailable):
            self._gateway(handler).create_payment_intent("10.00", "INR")

    def test_provider_5xx_is_gateway_unavailable(self):
        with pytest.raises(GatewayUnavailable):
            self._gateway(lambda request: httpx.Response(502)).create_payment_intent("10.00", "INR")

    def test_bad_credentials_are_configuration_error(self):
        with pytest.raises(ConfigurationError):
            self._gateway(lambda request: httpx.Response(401)).create_payment_intent("10.00", "INR")

    def test_rejected_order_is_validation_error(self):
        with pytest.raises(ValidationError):
            self._gateway(lambda request: httpx.Response(400)).create_payment_intent("10.00", "INR")


class TestGatewayFactory:
    def test_default_is_fake(self):
        reset_gateway()
        assert isinstance(get_gateway(), FakeGateway)

    def test_set_gateway(self):
        gateway = FakeGateway()
        set_gateway(gateway)
        assert get_gateway() is gateway

    def test_builds_card_gateway_from_environment(self, monkeypatch):
        monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test")
        monkeypatch.setenv("PAYMENT_GATEWAY_TIMEOUT", "3")
        gateway = build_gateway("card")
        assert isinstance(gateway, CardGateway)
        assert gateway.timeout == 3.0
        assert gateway.api_key == "sk_test"

    def test_builds_regional_gateway_from_environment(self, monkeypatch):
        monkeypatch.setenv("PAYMENT_PROVIDER", "regional")
        monkeypatch.setenv("RAZORPAY_KEY_ID", "rzp_test")
        monkeypatch.setenv("RAZORPAY_KEY_SECRET", "key-secret")
        gateway = build_gateway()
        assert isinstance(gateway, RegionalGateway)
        assert gateway.key_secret == "key-secret"

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            build_gateway("carrier-pigeon")
