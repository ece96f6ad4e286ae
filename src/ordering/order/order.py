"""Order aggregate: a stock-committed, priced snapshot of a customer's cart.

Line item prices are captured from the catalogue when the order is placed and
never change afterwards. Amounts are integer minor units.

Status lifecycle:
    pending → paid → processing → shipped → delivered
    cancelled / cancelled_refunded reachable from any state

Transitions are admin-driven and permissive: any valid status may be set from
any other. ``is_valid_status`` is the single place that decides what is
allowed.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text

from ordering.domain import ordering
from ordering.order.events import OrderPaymentReconciled, OrderPlaced, OrderStatusChanged
from shared.errors import InvalidStatus


class OrderStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    CANCELLED_REFUNDED = "cancelled_refunded"


_STATUS_VALUES = frozenset(status.value for status in OrderStatus)

# Statuses that trigger a shipping notification to the customer
SHIPPING_NOTIFICATION_STATUSES = frozenset(
    {OrderStatus.PROCESSING.value, OrderStatus.SHIPPED.value, OrderStatus.DELIVERED.value}
)

# Statuses whose totals count as revenue
REVENUE_STATUSES = frozenset(
    {
        OrderStatus.PAID.value,
        OrderStatus.PROCESSING.value,
        OrderStatus.SHIPPED.value,
        OrderStatus.DELIVERED.value,
    }
)


def is_valid_status(status) -> bool:
    return isinstance(status, str) and status in _STATUS_VALUES


@ordering.entity(part_of="Order")
class OrderItem:
    """A line item priced from the catalogue at the moment the order was placed."""

    product_id = Identifier(required=True)
    product_name = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    price = Integer(required=True, min_value=0)  # unit price, minor units

    @property
    def line_total(self) -> int:
        return self.price * self.quantity


@ordering.aggregate
class Order:
    user_id = Identifier(required=True)
    user_email = String(max_length=254)
    items = HasMany(OrderItem)
    total = Integer(required=True, min_value=0)
    currency = String(max_length=3, default="USD")
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    shipping_address = Text(required=True)
    payment_reference = String(max_length=255)
    provider_order_id = String(max_length=255)
    payment_provider = String(max_length=50)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def total_equals_sum_of_line_items(self):
        if not self.items:
            return
        if self.total != sum(item.price * item.quantity for item in self.items):
            raise ValidationError({"total": ["Order total must equal the sum of its line items"]})

    @classmethod
    def place(
        cls,
        user_id,
        items_data,
        shipping_address,
        currency="USD",
        order_id=None,
        user_email=None,
        payment_reference=None,
        provider_order_id=None,
        payment_provider=None,
    ):
        """Create an order from assembled line items.

        ``items_data`` holds dicts with product_id, product_name, quantity and
        price (unit price in minor units). The order starts ``paid`` when a
        verified payment reference is supplied, ``pending`` otherwise.
        """
        now = datetime.now(UTC)
        status = OrderStatus.PAID.value if payment_reference else OrderStatus.PENDING.value

        identity = {"id": order_id} if order_id else {}
        order = cls(
            **identity,
            user_id=user_id,
            user_email=user_email,
            items=[OrderItem(**item) for item in items_data],
            total=sum(item["price"] * item["quantity"] for item in items_data),
            currency=currency,
            status=status,
            shipping_address=shipping_address,
            payment_reference=payment_reference,
            provider_order_id=provider_order_id,
            payment_provider=payment_provider,
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                user_id=str(user_id),
                items=json.dumps(items_data),
                total=order.total,
                currency=currency,
                status=status,
                payment_reference=payment_reference,
                placed_at=now,
            )
        )
        return order

    def change_status(self, new_status):
        """Set the order status. Setting the current status again is a no-op."""
        if not is_valid_status(new_status):
            raise InvalidStatus(f"Invalid status: {new_status}")
        if new_status == self.status:
            return

        previous = self.status
        now = datetime.now(UTC)
        self.status = new_status
        self.updated_at = now
        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous,
                new_status=new_status,
                changed_at=now,
            )
        )

    def reconcile_payment(self, provider, event_type, new_status, payment_id=None):
        """Apply a verified provider payment event.

        Only ``pending`` orders move; anything else (including a re-delivered
        event for an order already reconciled) is left untouched. Returns True
        when the order changed.
        """
        if self.status != OrderStatus.PENDING.value or new_status == self.status:
            return False

        previous = self.status
        now = datetime.now(UTC)
        self.status = new_status
        if payment_id and not self.payment_reference:
            self.payment_reference = payment_id
        self.updated_at = now
        self.raise_(
            OrderPaymentReconciled(
                order_id=str(self.id),
                provider=provider,
                event_type=event_type,
                payment_id=payment_id,
                previous_status=previous,
                new_status=new_status,
                reconciled_at=now,
            )
        )
        return True

    def belongs_to(self, user_id) -> bool:
        return str(self.user_id) == str(user_id)

    def to_dict(self) -> dict:
        """Serialize for API responses and notifications."""
        return {
            "id": str(self.id),
            "user_id": str(self.user_id),
            "user_email": self.user_email,
            "items": [
                {
                    "product_id": str(item.product_id),
                    "product_name": item.product_name,
                    "quantity": item.quantity,
                    "price": item.price,
                }
                for item in self.items
            ],
            "total": self.total,
            "currency": self.currency,
            "status": self.status,
            "shipping_address": self.shipping_address,
            "payment_reference": self.payment_reference,
            "provider_order_id": self.provider_order_id,
            "payment_provider": self.payment_provider,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
