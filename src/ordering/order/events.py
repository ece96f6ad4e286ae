"""Domain events for the Order aggregate.

All events are versioned, immutable facts about an order's lifecycle.
Amounts are carried in integer minor units alongside the currency.
"""

from protean.fields import DateTime, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """A cart was turned into a stock-committed order."""

    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of item dicts
    total = Integer(required=True)
    currency = String(default="USD")
    status = String(required=True)
    payment_reference = String()
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderPaymentReconciled:
    """A verified provider webhook was matched to this order."""

    __version__ = 1

    order_id = Identifier(required=True)
    provider = String(required=True)
    event_type = String(required=True)
    payment_id = String()
    previous_status = String(required=True)
    new_status = String(required=True)
    reconciled_at = DateTime(required=True)
