"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement.
This enables swapping between FakeGateway (dev/test), CardGateway (card
payment intents) and RegionalGateway (hosted order + signature flow) without
changing the checkout orchestration.
"""

import hashlib
import hmac
from abc import ABC, abstractmethod
from dataclasses import dataclass

from shared.errors import ConfigurationError, InvalidAmount
from shared.money import minor_unit_factor, to_minor_units


@dataclass(frozen=True)
class PaymentIntent:
    """Result of creating a payment intent/order with the provider."""

    provider_reference: str
    client_secret_or_order_id: str
    amount_minor: int
    currency: str
    provider: str


@dataclass(frozen=True)
class PaymentVerification:
    """Outcome of checking a client-reported payment completion."""

    valid: bool
    provider_order_id: str | None = None
    provider_payment_id: str | None = None


def sign_payment(provider_order_ref: str, provider_payment_ref: str, secret: str) -> str:
    """Return the hex HMAC-SHA256 proof for ``order_ref|payment_ref``."""
    message = f"{provider_order_ref}|{provider_payment_ref}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    name = "gateway"

    @abstractmethod
    def create_payment_intent(self, amount, currency: str) -> PaymentIntent:
        """Create a payment intent/order for ``amount`` major units of ``currency``."""
        ...

    @abstractmethod
    def verify_payment_authenticity(
        self,
        provider_order_ref: str,
        provider_payment_ref: str,
        client_supplied_proof: str,
    ) -> bool:
        """Return True only when the proof is authentic for the two references."""
        ...

    def verify(self, provider_order_ref, provider_payment_ref, client_supplied_proof) -> PaymentVerification:
        valid = self.verify_payment_authenticity(provider_order_ref, provider_payment_ref, client_supplied_proof)
        return PaymentVerification(
            valid=valid,
            provider_order_id=provider_order_ref if valid else None,
            provider_payment_id=provider_payment_ref if valid else None,
        )

    @staticmethod
    def _amount_in_minor_units(amount, currency: str) -> int:
        minor = to_minor_units(amount, minor_unit_factor(currency))
        if minor <= 0:
            raise InvalidAmount()
        return minor


class HmacProofMixin:
    """Verifies ``HMAC(secret, order_ref|payment_ref)`` in constant time."""

    def _check_proof(self, secret: str | None, order_ref, payment_ref, proof) -> bool:
        if not secret:
            raise ConfigurationError(f"{type(self).__name__} has no signing secret configured")
        if not order_ref or not payment_ref or not proof:
            return False
        expected = sign_payment(str(order_ref), str(payment_ref), secret)
        return hmac.compare_digest(expected.encode(), str(proof).encode())
