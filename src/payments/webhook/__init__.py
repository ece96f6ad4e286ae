"""Webhook verifier registry, keyed by provider name."""

import os

from payments.webhook.verifier import CardWebhookVerifier, RegionalWebhookVerifier, WebhookVerifier

# Provider name -> (verifier class, environment variable holding its secret)
WEBHOOK_PROVIDERS: dict[str, tuple[type[WebhookVerifier], str]] = {
    RegionalWebhookVerifier.provider: (RegionalWebhookVerifier, "RAZORPAY_WEBHOOK_SECRET"),
    CardWebhookVerifier.provider: (CardWebhookVerifier, "STRIPE_WEBHOOK_SECRET"),
}

_verifiers: dict[str, WebhookVerifier] = {}


def get_verifier(provider: str) -> WebhookVerifier:
    """Return the verifier for ``provider`` ("card" or "regional")."""
    if provider not in _verifiers:
        if provider not in WEBHOOK_PROVIDERS:
            raise ValueError(f"Unknown webhook provider: {provider}")
        verifier_class, secret_variable = WEBHOOK_PROVIDERS[provider]
        _verifiers[provider] = verifier_class(os.environ.get(secret_variable))
    return _verifiers[provider]


def set_verifier(provider: str, verifier: WebhookVerifier) -> None:
    _verifiers[provider] = verifier


def reset_verifiers() -> None:
    _verifiers.clear()
