"""FastAPI routes for the Ordering domain: order placement, lookup and admin status."""

from fastapi import APIRouter, Depends, Query

from ordering.api.auth import CurrentUser, require_admin, require_auth
from ordering.api.concurrency import run_blocking
from ordering.api.schemas import (
    OrderListResponse,
    OrderResponse,
    OrderStatsResponse,
    OrderStatsView,
    OrderView,
    PlaceOrderRequest,
    UpdateStatusRequest,
)
from ordering.checkout import get_checkout_service
from ordering.checkout.service import CheckoutService, PaymentProof
from ordering.order.order import Order
from ordering.order.queries import get_order_by_id, list_all_orders, list_orders_for_user, order_stats
from shared.money import format_amount, minor_unit_factor

order_router = APIRouter(prefix="/orders", tags=["orders"])


def order_view(order: Order) -> OrderView:
    factor = minor_unit_factor(order.currency)
    data = order.to_dict()
    return OrderView(
        id=data["id"],
        user_id=data["user_id"],
        items=[
            {
                "product_id": item["product_id"],
                "product_name": item["product_name"],
                "quantity": item["quantity"],
                "price": format_amount(item["price"], factor),
                "price_minor": item["price"],
            }
            for item in data["items"]
        ],
        total=format_amount(order.total, factor),
        total_minor=order.total,
        currency=data["currency"],
        status=data["status"],
        shipping_address=data["shipping_address"],
        payment_reference=data["payment_reference"],
        provider_order_id=data["provider_order_id"],
        created_at=data["created_at"],
        updated_at=data["updated_at"],
    )


@order_router.post("", status_code=201, response_model=OrderResponse)
async def place_order(
    body: PlaceOrderRequest,
    user: CurrentUser = Depends(require_auth),
    service: CheckoutService = Depends(get_checkout_service),
) -> OrderResponse:
    proof = None
    if body.payment_proof is not None:
        proof = PaymentProof(
            provider_order_id=body.payment_proof.provider_order_id,
            provider_payment_id=body.payment_proof.provider_payment_id,
            signature=body.payment_proof.signature,
        )

    order = await run_blocking(
        service.place_order,
        user_id=user.id,
        user_email=user.email,
        cart_items=[{"product_id": item.product_id, "quantity": item.quantity} for item in body.items],
        shipping_address=body.shipping_address,
        payment_proof=proof,
        provider_order_id=body.provider_order_id,
    )
    return OrderResponse(order=order_view(order))


@order_router.get("", response_model=OrderListResponse)
async def list_orders(
    status: str | None = Query(default=None),
    user: CurrentUser = Depends(require_auth),
) -> OrderListResponse:
    """Caller's own orders; admins see every order, optionally filtered by status."""
    if user.is_admin:
        orders = await run_blocking(list_all_orders, status=status)
    else:
        orders = await run_blocking(list_orders_for_user, user.id)
    return OrderListResponse(orders=[order_view(order) for order in orders])


@order_router.get("/stats", response_model=OrderStatsResponse)
async def get_order_stats(user: CurrentUser = Depends(require_admin)) -> OrderStatsResponse:
    stats = await run_blocking(order_stats)
    return OrderStatsResponse(
        stats=OrderStatsView(
            total_orders=stats["total_orders"],
            total_revenue=format_amount(stats["total_revenue"]),
            total_revenue_minor=stats["total_revenue"],
            orders_by_status=stats["orders_by_status"],
            recent_orders=[order_view(order) for order in stats["recent_orders"]],
        )
    )


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, user: CurrentUser = Depends(require_auth)) -> OrderResponse:
    order = await run_blocking(get_order_by_id, order_id, requesting_user_id=None if user.is_admin else user.id)
    return OrderResponse(order=order_view(order))


@order_router.patch("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    body: UpdateStatusRequest,
    user: CurrentUser = Depends(require_admin),
    service: CheckoutService = Depends(get_checkout_service),
) -> OrderResponse:
    order = await run_blocking(service.update_status, order_id, body.status)
    return OrderResponse(order=order_view(order))
