"""Order read side: lookups, listings and admin statistics."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ordering.order.order import REVENUE_STATUSES, Order, is_valid_status
from shared.errors import InvalidStatus, NotFoundError

RECENT_ORDERS_LIMIT = 10
_PAGE_SIZE = 100


def get_order_by_id(order_id, requesting_user_id=None) -> Order:
    """Return an order.

    When ``requesting_user_id`` is given (a non-admin caller), an order owned
    by someone else is reported as not found so its existence is not revealed.
    """
    try:
        order = current_domain.repository_for(Order).get(str(order_id))
    except ObjectNotFoundError:
        raise NotFoundError("Order not found") from None

    if requesting_user_id is not None and not order.belongs_to(requesting_user_id):
        raise NotFoundError("Order not found")
    return order


def list_orders_for_user(user_id) -> list[Order]:
    query = current_domain.repository_for(Order)._dao.query.filter(user_id=str(user_id))
    return _fetch_all(query.order_by("-created_at"))


def list_all_orders(status=None) -> list[Order]:
    query = current_domain.repository_for(Order)._dao.query
    if status:
        if not is_valid_status(status):
            raise InvalidStatus(f"Invalid status: {status}")
        query = query.filter(status=status)
    return _fetch_all(query.order_by("-created_at"))


def order_stats() -> dict:
    orders = list_all_orders()
    revenue = sum(order.total for order in orders if order.status in REVENUE_STATUSES)

    by_status: dict[str, int] = {}
    for order in orders:
        by_status[order.status] = by_status.get(order.status, 0) + 1

    return {
        "total_orders": len(orders),
        "total_revenue": revenue,
        "orders_by_status": by_status,
        "recent_orders": orders[:RECENT_ORDERS_LIMIT],
    }


def _fetch_all(query) -> list[Order]:
    results: list[Order] = []
    offset = 0
    while True:
        page = query.offset(offset).limit(_PAGE_SIZE).all().items
        results.extend(page)
        if len(page) < _PAGE_SIZE:
            return results
        offset += _PAGE_SIZE
