"""Regional payment gateway adapter (hosted order + signature flow).

Orders are created through the provider's REST API. After checkout the
provider hands the client ``order_id``, ``payment_id`` and a signature equal
to ``HMAC_SHA256(key_secret, order_id|payment_id)``, which is checked here
without another round-trip.
"""

import time

import httpx
import structlog

from payments.gateway.port import HmacProofMixin, PaymentGateway, PaymentIntent
from shared.errors import ConfigurationError, GatewayUnavailable, ValidationError

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://api.razorpay.com/v1"
DEFAULT_TIMEOUT_SECONDS = 10.0


class RegionalGateway(HmacProofMixin, PaymentGateway):
    """Hosted-order gateway verified by HMAC signature."""

    name = "regional"

    def __init__(
        self,
        key_id: str,
        key_secret: str | None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.key_id = key_id
        self.key_secret = key_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def create_payment_intent(self, amount, currency: str = "INR") -> PaymentIntent:
        amount_minor = self._amount_in_minor_units(amount, currency)
        payload = {
            "amount": amount_minor,
            "currency": currency,
            "receipt": f"receipt_{int(time.time() * 1000)}",
        }
        try:
            with httpx.Client(
                auth=(self.key_id, self.key_secret or ""),
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = client.post(f"{self.base_url}/orders", json=payload)
                response.raise_for_status()
        except httpx.TimeoutException as exc:
            logger.warning("Regional provider timed out", error=str(exc))
            raise GatewayUnavailable("Regional payment provider timed out") from exc
        except httpx.TransportError as exc:
            logger.warning("Regional provider unreachable", error=str(exc))
            raise GatewayUnavailable("Regional payment provider is unavailable") from exc
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status >= 500:
                raise GatewayUnavailable("Regional payment provider is unavailable") from exc
            if status in (401, 403):
                raise ConfigurationError("Regional payment provider rejected the configured credentials") from exc
            raise ValidationError(f"Regional payment provider rejected the order ({status})") from exc

        order = response.json()
        return PaymentIntent(
            provider_reference=order["id"],
            client_secret_or_order_id=order["id"],
            amount_minor=int(order.get("amount", amount_minor)),
            currency=order.get("currency", currency),
            provider=self.name,
        )

    def verify_payment_authenticity(self, provider_order_ref, provider_payment_ref, client_supplied_proof) -> bool:
        return self._check_proof(self.key_secret, provider_order_ref, provider_payment_ref, client_supplied_proof)
