"""Payment reconciliation: applies verified webhook events to orders.

Whether verified webhook events change order status is a deployment choice:

- ``log_only`` (default): events are logged and orders are left untouched.
- ``update_status``: a successful payment moves a matching ``pending`` order
  to ``paid``; a failed payment moves it to ``cancelled``.

A success event whose amount differs from the order total settles nothing.

Reconciliation is idempotent: re-delivered events find the order already
moved and change nothing.
"""

import os
from enum import Enum

import structlog
from protean import handle
from protean.fields import Integer, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order, OrderStatus

logger = structlog.get_logger(__name__)


class ReconciliationPolicy(Enum):
    LOG_ONLY = "log_only"
    UPDATE_STATUS = "update_status"

    @classmethod
    def from_env(cls) -> "ReconciliationPolicy":
        value = os.environ.get("WEBHOOK_RECONCILIATION", cls.LOG_ONLY.value).strip().lower()
        try:
            return cls(value)
        except ValueError:
            logger.warning("Unknown reconciliation policy, using log_only", value=value)
            return cls.LOG_ONLY


# Classified event type → target order status
_TARGET_STATUS = {
    "payment_success": OrderStatus.PAID.value,
    "order_paid": OrderStatus.PAID.value,
    "payment_failed": OrderStatus.CANCELLED.value,
}


def target_status_for(event_type: str) -> str | None:
    return _TARGET_STATUS.get(event_type)


@ordering.command(part_of="Order")
class ReconcilePayment:
    provider = String(required=True, max_length=50)
    event_type = String(required=True, max_length=50)
    provider_order_id = String(max_length=255)
    payment_id = String(max_length=255)
    amount_minor = Integer()


@ordering.command_handler(part_of=Order)
class ReconcilePaymentHandler:
    @handle(ReconcilePayment)
    def reconcile(self, command):
        new_status = target_status_for(command.event_type)
        if new_status is None:
            return None

        order = _find_order(command.provider_order_id, command.payment_id)
        if order is None:
            logger.warning(
                "No order matches webhook event",
                provider=command.provider,
                event_type=command.event_type,
                provider_order_id=command.provider_order_id,
                payment_id=command.payment_id,
            )
            return None

        if (
            new_status == OrderStatus.PAID.value
            and command.amount_minor is not None
            and command.amount_minor != order.total
        ):
            logger.warning(
                "Webhook amount does not match order total",
                order_id=str(order.id),
                event_type=command.event_type,
                amount_minor=command.amount_minor,
                order_total=order.total,
            )
            return None

        changed = order.reconcile_payment(
            provider=command.provider,
            event_type=command.event_type,
            new_status=new_status,
            payment_id=command.payment_id,
        )
        if changed:
            current_domain.repository_for(Order).add(order)
            logger.info(
                "Order reconciled from webhook",
                order_id=str(order.id),
                event_type=command.event_type,
                status=new_status,
            )
        else:
            logger.info(
                "Webhook event already reflected on order",
                order_id=str(order.id),
                event_type=command.event_type,
                status=order.status,
            )
        return str(order.id)


def _find_order(provider_order_id, payment_id) -> Order | None:
    query = current_domain.repository_for(Order)._dao.query
    if provider_order_id:
        results = query.filter(provider_order_id=provider_order_id).all().items
        if results:
            return results[0]
    if payment_id:
        results = query.filter(payment_reference=payment_id).all().items
        if results:
            return results[0]
    return None
