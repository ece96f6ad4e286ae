"""Card payment gateway adapter (Stripe payment intents).

Intent creation goes through ``stripe.StripeClient`` with a bounded request
timeout. Stripe gives the client nothing it could sign, so a completed
payment is confirmed by retrieving the intent again: it must have
``succeeded`` and its client secret must match the one the client returns.
"""

import hmac

import stripe
import structlog

from payments.gateway.port import PaymentGateway, PaymentIntent
from shared.errors import ConfigurationError, GatewayUnavailable, ValidationError

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10


class CardGateway(PaymentGateway):
    """Card payments via Stripe PaymentIntents."""

    name = "card"

    def __init__(self, api_key: str, timeout: float = DEFAULT_TIMEOUT_SECONDS, client=None) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self._client = client

    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise ConfigurationError("CardGateway has no API key configured")
            self._client = stripe.StripeClient(
                self.api_key,
                http_client=stripe.RequestsClient(timeout=self.timeout),
            )
        return self._client

    def create_payment_intent(self, amount, currency: str = "usd") -> PaymentIntent:
        amount_minor = self._amount_in_minor_units(amount, currency)
        try:
            intent = self.client.payment_intents.create(
                params={
                    "amount": amount_minor,
                    "currency": currency.lower(),
                    "automatic_payment_methods": {"enabled": True},
                }
            )
        except stripe.InvalidRequestError as exc:
            raise ValidationError(f"Card payment provider rejected the intent: {exc.user_message or exc}") from exc
        except stripe.StripeError as exc:
            raise self._provider_error(exc) from exc

        return PaymentIntent(
            provider_reference=intent.id,
            client_secret_or_order_id=intent.client_secret,
            amount_minor=amount_minor,
            currency=currency,
            provider=self.name,
        )

    def verify_payment_authenticity(self, provider_order_ref, provider_payment_ref, client_supplied_proof) -> bool:
        if not provider_order_ref or not provider_payment_ref or not client_supplied_proof:
            return False
        try:
            intent = self.client.payment_intents.retrieve(str(provider_order_ref))
        except stripe.InvalidRequestError as exc:
            # Unknown or malformed intent id
            logger.info("Card payment intent not found", provider_order_ref=provider_order_ref, error=str(exc))
            return False
        except stripe.StripeError as exc:
            raise self._provider_error(exc) from exc

        if intent.status != "succeeded":
            logger.info("Card payment intent not settled", provider_order_ref=provider_order_ref, status=intent.status)
            return False
        if str(provider_payment_ref) not in (intent.id, getattr(intent, "latest_charge", None)):
            return False
        return hmac.compare_digest(str(intent.client_secret or "").encode(), str(client_supplied_proof).encode())

    @staticmethod
    def _provider_error(exc: "stripe.StripeError") -> Exception:
        if isinstance(exc, (stripe.AuthenticationError, stripe.PermissionError)):
            logger.error("Card provider rejected the configured credentials", error=str(exc))
            return ConfigurationError("Card payment provider rejected the configured credentials")
        logger.warning("Card provider unavailable", error=str(exc), error_type=type(exc).__name__)
        return GatewayUnavailable("Card payment provider is unavailable")
