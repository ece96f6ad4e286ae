"""Checkout service: coordinates payment verification, stock and order persistence.

Synchronous (client-redirect) payment flow:
    1. Client asks for a payment intent; the amount is the cart's current
       catalogue-priced total, never a client-asserted number.
    2. Client pays the provider directly.
    3. Client submits the cart again with the provider-issued proof.
    4. The proof is verified; a bad proof aborts before stock is touched.
    5. The order is created with the verified payment reference.
    6. A confirmation email is handed to the notification sink.

Provider webhooks arrive independently and are verified, classified and,
depending on the reconciliation policy, applied to matching orders.
"""

from dataclasses import dataclass

import structlog
from protean.utils.globals import current_domain

from catalogue.ledger import get_ledger
from catalogue.ledger.port import StockLedger
from notifications.sink import NotificationSink, get_notification_sink
from ordering.order.assembler import AssembledOrder, OrderAssembler
from ordering.order.creation import create_order
from ordering.order.order import SHIPPING_NOTIFICATION_STATUSES, Order
from ordering.order.reconciliation import ReconcilePayment, ReconciliationPolicy, target_status_for
from ordering.order.status import update_order_status
from payments.gateway import get_gateway
from payments.gateway.port import PaymentGateway, PaymentIntent
from payments.webhook import get_verifier
from payments.webhook.verifier import ClassifiedEvent
from shared.errors import InvalidPayment, ValidationError
from shared.money import format_amount, from_minor_units, minor_unit_factor, to_minor_units

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PaymentProof:
    """What the client brings back from the provider after paying."""

    provider_order_id: str
    provider_payment_id: str
    signature: str

    @classmethod
    def from_dict(cls, data: dict) -> "PaymentProof":
        if not isinstance(data, dict):
            raise ValidationError("Payment proof must be an object")
        return cls(
            provider_order_id=str(data.get("provider_order_id") or data.get("providerOrderId") or ""),
            provider_payment_id=str(data.get("provider_payment_id") or data.get("providerPaymentId") or ""),
            signature=str(data.get("signature") or ""),
        )


@dataclass(frozen=True)
class PaymentQuote:
    intent: PaymentIntent
    quote: AssembledOrder


class CheckoutService:
    def __init__(
        self,
        gateway: PaymentGateway | None = None,
        ledger: StockLedger | None = None,
        notifier: NotificationSink | None = None,
        policy: ReconciliationPolicy | None = None,
    ):
        self._gateway = gateway
        self._ledger = ledger
        self._notifier = notifier
        self.policy = policy or ReconciliationPolicy.from_env()

    @property
    def gateway(self) -> PaymentGateway:
        return self._gateway or get_gateway()

    @property
    def ledger(self) -> StockLedger:
        return self._ledger or get_ledger()

    @property
    def notifier(self) -> NotificationSink:
        return self._notifier or get_notification_sink()

    def quote_payment_intent(self, cart_items) -> PaymentQuote:
        """Create a provider payment intent for the cart's current total."""
        quote = OrderAssembler(self.ledger).quote(cart_items)
        amount = from_minor_units(quote.total, minor_unit_factor(quote.currency))
        intent = self.gateway.create_payment_intent(amount, quote.currency)
        logger.info(
            "Payment intent created",
            provider=intent.provider,
            provider_reference=intent.provider_reference,
            amount_minor=intent.amount_minor,
            currency=intent.currency,
        )
        return PaymentQuote(intent=intent, quote=quote)

    def place_order(
        self,
        user_id,
        cart_items,
        shipping_address,
        payment_proof=None,
        user_email=None,
        provider_order_id=None,
    ) -> Order:
        """Verify the payment proof (when given) and create the order.

        Without a proof the order is created ``pending``; with a valid proof it
        is created ``paid``. An invalid proof raises InvalidPayment and leaves
        stock and orders untouched.

        ``provider_order_id`` links a proof-less order to the intent quoted
        earlier, so that a verified webhook for that intent can settle it under
        the ``update_status`` policy. A proof, when present, takes precedence.
        """
        payment_reference = payment_provider = None
        provider_order_id = str(provider_order_id).strip() if provider_order_id else None
        if provider_order_id:
            payment_provider = self.gateway.name

        if payment_proof is not None:
            proof = payment_proof if isinstance(payment_proof, PaymentProof) else PaymentProof.from_dict(payment_proof)
            gateway = self.gateway
            verification = gateway.verify(proof.provider_order_id, proof.provider_payment_id, proof.signature)
            if not verification.valid:
                logger.warning(
                    "Payment verification failed",
                    user_id=str(user_id),
                    provider=gateway.name,
                    provider_order_id=proof.provider_order_id,
                )
                raise InvalidPayment()

            payment_reference = verification.provider_payment_id
            provider_order_id = verification.provider_order_id
            payment_provider = gateway.name

        order = create_order(
            user_id=user_id,
            items=cart_items,
            shipping_address=shipping_address,
            payment_reference=payment_reference,
            user_email=user_email,
            provider_order_id=provider_order_id,
            payment_provider=payment_provider,
            ledger=self.ledger,
        )

        self.notifier.send_order_confirmation(order.user_email, _order_summary(order))
        return order

    def update_status(self, order_id, new_status) -> Order:
        order = update_order_status(order_id, new_status)
        if order.status in SHIPPING_NOTIFICATION_STATUSES:
            self.notifier.send_shipping_notification(
                order.user_email,
                {"order_id": str(order.id), "status": order.status},
            )
        return order

    def handle_webhook(self, provider: str, raw_payload, signature_header) -> ClassifiedEvent:
        """Verify and classify a provider webhook, then reconcile per policy."""
        event = get_verifier(provider).handle_webhook(raw_payload, signature_header)
        logger.info(
            "Webhook received",
            provider=provider,
            event_type=event.type.value,
            provider_event_type=event.provider_event_type,
            payment_id=event.payment_id,
            order_id=event.order_id,
            amount=str(event.amount) if event.amount is not None else None,
        )

        if self.policy is ReconciliationPolicy.UPDATE_STATUS and target_status_for(event.type.value):
            current_domain.process(
                ReconcilePayment(
                    provider=provider,
                    event_type=event.type.value,
                    provider_order_id=event.order_id,
                    payment_id=event.payment_id,
                    amount_minor=_minor_units(event),
                ),
                asynchronous=False,
            )
        return event


def _minor_units(event: ClassifiedEvent) -> int | None:
    if event.amount is None:
        return None
    return to_minor_units(event.amount, minor_unit_factor(event.currency))


def _order_summary(order: Order) -> dict:
    factor = minor_unit_factor(order.currency)
    return {
        "order_id": str(order.id),
        "total": format_amount(order.total, factor),
        "currency": order.currency,
        "items": [
            {
                "product_name": item.product_name or str(item.product_id),
                "quantity": item.quantity,
                "price": format_amount(item.price, factor),
            }
            for item in order.items
        ],
    }
