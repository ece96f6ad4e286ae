"""Pydantic request/response schemas for the Payments API.

These are external contracts (anti-corruption layer), separate from
internal gateway and verifier types.
"""

from pydantic import BaseModel, Field

from ordering.api.schemas import CartItemSchema


class PaymentIntentRequest(BaseModel):
    items: list[CartItemSchema] = Field(default_factory=list)


class PaymentIntentResponse(BaseModel):
    success: bool = True
    provider: str
    provider_reference: str
    client_secret_or_order_id: str
    amount: str
    amount_minor: int
    currency: str


class WebhookEventView(BaseModel):
    type: str
    provider: str
    provider_event_type: str
    payment_id: str | None = None
    order_id: str | None = None
    amount: str | None = None
    currency: str | None = None
    status: str | None = None
    error_code: str | None = None
    error_description: str | None = None


class WebhookResponse(BaseModel):
    success: bool = True
    event: WebhookEventView


class ConfigureGatewayRequest(BaseModel):
    available: bool = True


class GatewayConfigResponse(BaseModel):
    gateway: str
    available: bool
