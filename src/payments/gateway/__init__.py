"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing (default)
- CardGateway when PAYMENT_PROVIDER=card
- RegionalGateway when PAYMENT_PROVIDER=regional

The checkout service takes its gateway as a constructor argument; this
factory only supplies the process default for the HTTP app.
"""

import os

from payments.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def build_gateway(provider: str | None = None) -> PaymentGateway:
    """Build a gateway for ``provider`` from environment configuration."""
    provider = (provider or os.environ.get("PAYMENT_PROVIDER") or "fake").lower()
    timeout = float(os.environ.get("PAYMENT_GATEWAY_TIMEOUT", "10"))

    if provider == "card":
        from payments.gateway.card_adapter import CardGateway

        return CardGateway(
            api_key=os.environ.get("STRIPE_SECRET_KEY", ""),
            timeout=timeout,
        )
    if provider == "regional":
        from payments.gateway.regional_adapter import RegionalGateway

        return RegionalGateway(
            key_id=os.environ.get("RAZORPAY_KEY_ID", ""),
            key_secret=os.environ.get("RAZORPAY_KEY_SECRET"),
            timeout=timeout,
        )
    if provider == "fake":
        from payments.gateway.fake_adapter import FakeGateway

        return FakeGateway()
    raise ValueError(f"Unknown payment provider: {provider}")


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway. Defaults to the configured provider."""
    global _current_gateway
    if _current_gateway is None:
        _current_gateway = build_gateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
