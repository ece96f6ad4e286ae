"""Webhook verification and event classification.

Signatures are checked against the raw request bytes before anything is
parsed. Verified payloads are reduced to a ClassifiedEvent; event types the
verifier does not recognise classify as ``unknown`` instead of failing.
"""

import hashlib
import hmac
import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

import stripe

from shared.errors import ConfigurationError, InvalidSignature, ValidationError
from shared.money import from_minor_units, minor_unit_factor


class EventType(Enum):
    PAYMENT_SUCCESS = "payment_success"
    PAYMENT_FAILED = "payment_failed"
    ORDER_PAID = "order_paid"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ClassifiedEvent:
    type: EventType
    provider: str
    provider_event_type: str
    payment_id: str | None = None
    order_id: str | None = None
    amount: Decimal | None = None
    currency: str | None = None
    status: str | None = None
    error_code: str | None = None
    error_description: str | None = None
    raw: dict = field(default_factory=dict, compare=False, repr=False)

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "provider": self.provider,
            "provider_event_type": self.provider_event_type,
            "payment_id": self.payment_id,
            "order_id": self.order_id,
            "amount": str(self.amount) if self.amount is not None else None,
            "currency": self.currency,
            "status": self.status,
            "error_code": self.error_code,
            "error_description": self.error_description,
        }


def _as_bytes(raw_payload) -> bytes:
    if isinstance(raw_payload, str):
        return raw_payload.encode()
    return bytes(raw_payload)


def _parse(raw_payload: bytes) -> dict:
    try:
        event = json.loads(raw_payload)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValidationError(f"Malformed webhook payload: {exc}") from exc
    if not isinstance(event, dict):
        raise ValidationError("Malformed webhook payload: expected an object")
    return event


def _object(container: dict, key: str) -> dict:
    value = container.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError(f"Malformed webhook payload: '{key}' must be an object")
    return value


def _event_type(event: dict, key: str) -> str:
    value = event.get(key) or ""
    if not isinstance(value, str):
        raise ValidationError(f"Malformed webhook payload: '{key}' must be a string")
    return value


def _currency(entity: dict) -> str | None:
    value = entity.get("currency")
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("Malformed webhook payload: currency must be a string")
    return value.upper()


def _amount(minor, currency: str | None) -> Decimal | None:
    if minor is None:
        return None
    if isinstance(minor, bool) or not isinstance(minor, (int, str)):
        raise ValidationError("Malformed webhook payload: amount must be an integer")
    try:
        minor = int(minor)
    except (TypeError, ValueError) as exc:
        raise ValidationError("Malformed webhook payload: amount must be an integer") from exc
    return from_minor_units(minor, minor_unit_factor(currency))


class WebhookVerifier(ABC):
    """Verify-then-classify template shared by all providers."""

    provider = "provider"
    signature_header = "x-signature"

    def __init__(self, secret: str | None) -> None:
        self.secret = secret

    def handle_webhook(self, raw_payload, signature_header: str | None) -> ClassifiedEvent:
        if not self.secret:
            raise ConfigurationError(f"{type(self).__name__} has no webhook secret configured")
        payload = _as_bytes(raw_payload)
        if not signature_header:
            raise InvalidSignature("Missing webhook signature")
        if not self.verify_signature(payload, signature_header):
            raise InvalidSignature()
        return self.classify(_parse(payload))

    @abstractmethod
    def verify_signature(self, payload: bytes, signature_header: str) -> bool: ...

    @abstractmethod
    def classify(self, event: dict) -> ClassifiedEvent: ...


class RegionalWebhookVerifier(WebhookVerifier):
    """Hex HMAC-SHA256 of the raw body, sent in ``X-Razorpay-Signature``."""

    provider = "regional"
    signature_header = "x-razorpay-signature"

    def verify_signature(self, payload: bytes, signature_header: str) -> bool:
        expected = hmac.new(self.secret.encode(), payload, hashlib.sha256).hexdigest()
        return hmac.compare_digest(expected.encode(), signature_header.strip().encode())

    def classify(self, event: dict) -> ClassifiedEvent:
        event_type = _event_type(event, "event")
        body = _object(event, "payload")

        if event_type in ("payment.captured", "payment.failed"):
            payment = _object(_object(body, "payment"), "entity")
            currency = _currency(payment)
            if event_type == "payment.captured":
                return ClassifiedEvent(
                    type=EventType.PAYMENT_SUCCESS,
                    provider=self.provider,
                    provider_event_type=event_type,
                    payment_id=payment.get("id"),
                    order_id=payment.get("order_id"),
                    amount=_amount(payment.get("amount"), currency),
                    currency=currency,
                    status=payment.get("status"),
                    raw=event,
                )
            return ClassifiedEvent(
                type=EventType.PAYMENT_FAILED,
                provider=self.provider,
                provider_event_type=event_type,
                payment_id=payment.get("id"),
                order_id=payment.get("order_id"),
                amount=_amount(payment.get("amount"), currency),
                currency=currency,
                status=payment.get("status"),
                error_code=payment.get("error_code"),
                error_description=payment.get("error_description"),
                raw=event,
            )

        if event_type == "order.paid":
            order = _object(_object(body, "order"), "entity")
            currency = _currency(order)
            return ClassifiedEvent(
                type=EventType.ORDER_PAID,
                provider=self.provider,
                provider_event_type=event_type,
                order_id=order.get("id"),
                amount=_amount(order.get("amount"), currency),
                currency=currency,
                status=order.get("status"),
                raw=event,
            )

        return ClassifiedEvent(
            type=EventType.UNKNOWN,
            provider=self.provider,
            provider_event_type=event_type,
            raw=event,
        )


class CardWebhookVerifier(WebhookVerifier):
    """``Stripe-Signature`` headers, checked with ``stripe.WebhookSignature``.

    Only the signature check is delegated to the SDK. Classification works on
    the plain decoded dict so it stays independent of Stripe object types.
    """

    provider = "card"
    signature_header = "stripe-signature"

    def __init__(self, secret: str | None, tolerance: int = stripe.Webhook.DEFAULT_TOLERANCE) -> None:
        super().__init__(secret)
        self.tolerance = tolerance

    def verify_signature(self, payload: bytes, signature_header: str) -> bool:
        try:
            stripe.WebhookSignature.verify_header(
                payload.decode("utf-8"), signature_header, self.secret, tolerance=self.tolerance
            )
        except UnicodeDecodeError:
            return False
        except stripe.SignatureVerificationError:
            return False
        return True

    def classify(self, event: dict) -> ClassifiedEvent:
        event_type = _event_type(event, "type")
        intent = _object(_object(event, "data"), "object")
        currency = _currency(intent)

        if event_type == "payment_intent.succeeded":
            return ClassifiedEvent(
                type=EventType.PAYMENT_SUCCESS,
                provider=self.provider,
                provider_event_type=event_type,
                payment_id=intent.get("id"),
                order_id=intent.get("id"),
                amount=_amount(intent.get("amount"), currency),
                currency=currency,
                status=intent.get("status"),
                raw=event,
            )
        if event_type == "payment_intent.payment_failed":
            error = _object(intent, "last_payment_error")
            return ClassifiedEvent(
                type=EventType.PAYMENT_FAILED,
                provider=self.provider,
                provider_event_type=event_type,
                payment_id=intent.get("id"),
                order_id=intent.get("id"),
                currency=currency,
                status=intent.get("status"),
                error_code=error.get("code"),
                error_description=error.get("message"),
                raw=event,
            )
        return ClassifiedEvent(
            type=EventType.UNKNOWN,
            provider=self.provider,
            provider_event_type=event_type,
            raw=event,
        )
