"""Order creation: command, handler and the create-order unit of work.

``create_order`` prices the cart, commits stock for every line in one atomic
ledger call and then persists the order. If persisting fails, the stock
commit is released so that no stock is lost without an order.
"""

import json
from uuid import uuid4

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from catalogue.ledger import get_ledger
from catalogue.ledger.port import StockLedger
from ordering.domain import ordering
from ordering.order.assembler import OrderAssembler
from ordering.order.order import Order
from shared.errors import ConflictError

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class PlaceOrder:
    order_id = Identifier(required=True)
    user_id = Identifier(required=True)
    user_email = String(max_length=254)
    items = Text(required=True)  # JSON: list of priced item dicts
    shipping_address = Text(required=True)
    currency = String(max_length=3, default="USD")
    payment_reference = String(max_length=255)
    provider_order_id = String(max_length=255)
    payment_provider = String(max_length=50)


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        items_data = json.loads(command.items) if isinstance(command.items, str) else command.items

        order = Order.place(
            order_id=command.order_id,
            user_id=command.user_id,
            user_email=command.user_email,
            items_data=items_data,
            shipping_address=command.shipping_address,
            currency=command.currency or "USD",
            payment_reference=command.payment_reference,
            provider_order_id=command.provider_order_id,
            payment_provider=command.payment_provider,
        )
        current_domain.repository_for(Order).add(order)
        return str(order.id)


def find_by_payment_reference(payment_reference: str) -> Order | None:
    repo = current_domain.repository_for(Order)
    results = repo._dao.query.filter(payment_reference=payment_reference).all().items
    return results[0] if results else None


def find_by_provider_order_id(provider_order_id: str) -> Order | None:
    repo = current_domain.repository_for(Order)
    results = repo._dao.query.filter(provider_order_id=provider_order_id).all().items
    return results[0] if results else None


def create_order(
    user_id,
    items,
    shipping_address,
    payment_reference=None,
    user_email=None,
    provider_order_id=None,
    payment_provider=None,
    ledger: StockLedger | None = None,
) -> Order:
    """Create an order from cart items, committing stock and the order together.

    Raises EmptyCart, MissingShippingAddress, ProductNotFound or
    InsufficientStock from pricing, and ConflictError when an order already
    exists for ``payment_reference``, or for ``provider_order_id`` on an order
    still awaiting payment. None of these leave any stock change.
    """
    ledger = ledger or get_ledger()
    assembled = OrderAssembler(ledger).assemble(user_id, items, shipping_address)

    if payment_reference and find_by_payment_reference(payment_reference) is not None:
        raise ConflictError(f"An order already exists for payment reference {payment_reference}")
    if not payment_reference and provider_order_id and find_by_provider_order_id(provider_order_id) is not None:
        raise ConflictError(f"An order already exists for provider order {provider_order_id}")

    order_id = str(uuid4())
    # The ledger rejects a reference it has already committed, which closes the
    # window between the lookup above and the commit below.
    reference = payment_reference or provider_order_id or order_id
    ledger.commit(reference, assembled.stock_lines)

    try:
        current_domain.process(
            PlaceOrder(
                order_id=order_id,
                user_id=str(user_id),
                user_email=user_email,
                items=json.dumps([item.to_dict() for item in assembled.items]),
                shipping_address=str(shipping_address).strip(),
                currency=assembled.currency,
                payment_reference=payment_reference,
                provider_order_id=provider_order_id,
                payment_provider=payment_provider,
            ),
            asynchronous=False,
        )
    except Exception:
        logger.error(
            "Order persistence failed, releasing committed stock",
            order_id=order_id,
            reference=reference,
        )
        ledger.release(reference)
        raise

    order = current_domain.repository_for(Order).get(order_id)
    logger.info(
        "Order created",
        order_id=order_id,
        user_id=str(user_id),
        total=order.total,
        status=order.status,
    )
    return order
