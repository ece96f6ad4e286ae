"""Order status updates: admin-driven status changes."""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.order import Order, is_valid_status
from shared.errors import InvalidStatus, NotFoundError

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=50)


@ordering.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        repo = current_domain.repository_for(Order)
        try:
            order = repo.get(command.order_id)
        except ObjectNotFoundError:
            raise NotFoundError("Order not found") from None

        order.change_status(command.status)
        repo.add(order)
        return str(order.id)


def update_order_status(order_id, new_status) -> Order:
    # Checked here so an invalid value never reaches the command field validation
    if not is_valid_status(new_status):
        raise InvalidStatus(f"Invalid status: {new_status}")

    current_domain.process(UpdateOrderStatus(order_id=str(order_id), status=new_status), asynchronous=False)
    order = current_domain.repository_for(Order).get(str(order_id))
    logger.info("Order status updated", order_id=str(order_id), status=new_status)
    return order
