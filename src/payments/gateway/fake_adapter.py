"""Configurable fake payment gateway for development and testing.

This adapter simulates a real payment gateway without any external calls.
It can be configured at runtime to succeed or fail, and signs proofs with a
known secret so tests can produce authentic and forged confirmations.
"""

from uuid import uuid4

from payments.gateway.port import HmacProofMixin, PaymentGateway, PaymentIntent, sign_payment
from shared.errors import GatewayUnavailable

FAKE_PROOF_SECRET = "fake-proof-secret"


class FakeGateway(HmacProofMixin, PaymentGateway):
    """Configurable fake payment gateway."""

    name = "fake"

    def __init__(self, proof_secret: str = FAKE_PROOF_SECRET) -> None:
        self.proof_secret = proof_secret
        self.available: bool = True
        self.calls: list[dict] = []

    def configure(self, available: bool) -> None:
        """Configure gateway behavior at runtime."""
        self.available = available

    def create_payment_intent(self, amount, currency: str) -> PaymentIntent:
        amount_minor = self._amount_in_minor_units(amount, currency)
        self.calls.append(
            {
                "method": "create_payment_intent",
                "amount_minor": amount_minor,
                "currency": currency,
            }
        )
        if not self.available:
            raise GatewayUnavailable("Payment provider is unavailable")

        order_id = f"fake_order_{uuid4().hex[:12]}"
        return PaymentIntent(
            provider_reference=order_id,
            client_secret_or_order_id=order_id,
            amount_minor=amount_minor,
            currency=currency,
            provider=self.name,
        )

    def verify_payment_authenticity(self, provider_order_ref, provider_payment_ref, client_supplied_proof) -> bool:
        self.calls.append(
            {
                "method": "verify_payment_authenticity",
                "provider_order_ref": provider_order_ref,
                "provider_payment_ref": provider_payment_ref,
            }
        )
        return self._check_proof(self.proof_secret, provider_order_ref, provider_payment_ref, client_supplied_proof)

    def sign(self, provider_order_ref: str, provider_payment_ref: str) -> str:
        """Produce the proof the provider would hand back to the client."""
        return sign_payment(provider_order_ref, provider_payment_ref, self.proof_secret)
