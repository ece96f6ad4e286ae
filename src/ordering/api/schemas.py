"""Pydantic request/response schemas for the Ordering API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands. Amounts leave the API as decimal strings in
major units; the ``*_minor`` fields carry the exact integer minor units.
"""

from pydantic import BaseModel, ConfigDict, Field


class CartItemSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(alias="productId")
    quantity: int


class PaymentProofSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    provider_order_id: str = Field(alias="providerOrderId")
    provider_payment_id: str = Field(alias="providerPaymentId")
    signature: str


class PlaceOrderRequest(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "items": [{"productId": "P1", "quantity": 2}],
                    "shippingAddress": "221B Baker Street, London",
                    "paymentProof": {
                        "providerOrderId": "order_9A33XWu170gUtm",
                        "providerPaymentId": "pay_29QQoUBi66xm2f",
                        "signature": "9ef4dffbfd84f1318f6739a3ce19f9d85851857ae648f114332d8401e0949a3d",
                    },
                }
            ]
        },
    )

    items: list[CartItemSchema] = Field(default_factory=list)
    shipping_address: str | None = Field(default=None, alias="shippingAddress")
    payment_proof: PaymentProofSchema | None = Field(default=None, alias="paymentProof")
    # Intent reference from POST /payments/intent, for orders paid later and confirmed by webhook
    provider_order_id: str | None = Field(default=None, alias="providerOrderId")


class UpdateStatusRequest(BaseModel):
    status: str


class OrderItemView(BaseModel):
    product_id: str
    product_name: str | None = None
    quantity: int
    price: str
    price_minor: int


class OrderView(BaseModel):
    id: str
    user_id: str
    items: list[OrderItemView]
    total: str
    total_minor: int
    currency: str
    status: str
    shipping_address: str
    payment_reference: str | None = None
    provider_order_id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class OrderResponse(BaseModel):
    success: bool = True
    order: OrderView


class OrderListResponse(BaseModel):
    success: bool = True
    orders: list[OrderView]


class OrderStatsView(BaseModel):
    total_orders: int
    total_revenue: str
    total_revenue_minor: int
    orders_by_status: dict[str, int]
    recent_orders: list[OrderView]


class OrderStatsResponse(BaseModel):
    success: bool = True
    stats: OrderStatsView
