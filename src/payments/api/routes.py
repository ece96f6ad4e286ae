"""FastAPI routes for the Payments domain: payment intents and provider webhooks."""

import os

from fastapi import APIRouter, Depends, Request

from ordering.api.auth import CurrentUser, require_auth
from ordering.api.concurrency import run_blocking
from ordering.checkout import get_checkout_service
from ordering.checkout.service import CheckoutService
from payments.api.schemas import (
    ConfigureGatewayRequest,
    GatewayConfigResponse,
    PaymentIntentRequest,
    PaymentIntentResponse,
    WebhookResponse,
)
from payments.gateway import get_gateway
from payments.gateway.fake_adapter import FakeGateway
from payments.webhook import WEBHOOK_PROVIDERS, get_verifier
from shared.errors import ForbiddenError, NotFoundError, ValidationError
from shared.money import format_amount, minor_unit_factor

payment_router = APIRouter(prefix="/payments", tags=["payments"])


def _default_webhook_provider() -> str:
    provider = (os.environ.get("PAYMENT_PROVIDER") or "regional").lower()
    return provider if provider in WEBHOOK_PROVIDERS else "regional"


@payment_router.post("/intent", status_code=201, response_model=PaymentIntentResponse)
async def create_payment_intent(
    body: PaymentIntentRequest,
    user: CurrentUser = Depends(require_auth),
    service: CheckoutService = Depends(get_checkout_service),
) -> PaymentIntentResponse:
    """Create a provider payment intent for the cart's catalogue-priced total."""
    quote = await run_blocking(
        service.quote_payment_intent,
        [{"product_id": item.product_id, "quantity": item.quantity} for item in body.items],
    )
    intent = quote.intent
    return PaymentIntentResponse(
        provider=intent.provider,
        provider_reference=intent.provider_reference,
        client_secret_or_order_id=intent.client_secret_or_order_id,
        amount=format_amount(intent.amount_minor, minor_unit_factor(intent.currency)),
        amount_minor=intent.amount_minor,
        currency=intent.currency,
    )


async def _handle_webhook(provider: str, request: Request, service: CheckoutService) -> WebhookResponse:
    if provider not in WEBHOOK_PROVIDERS:
        raise NotFoundError(f"Unknown payment provider: {provider}")

    raw_body = await request.body()
    header = get_verifier(provider).signature_header
    signature = request.headers.get(header) or request.headers.get("x-webhook-signature")
    event = await run_blocking(service.handle_webhook, provider, raw_body, signature)
    return WebhookResponse(event=event.to_dict())


@payment_router.post("/webhook", response_model=WebhookResponse)
async def process_webhook(
    request: Request,
    service: CheckoutService = Depends(get_checkout_service),
) -> WebhookResponse:
    """Webhook endpoint for the configured provider. Always succeeds once the signature checks out."""
    return await _handle_webhook(_default_webhook_provider(), request, service)


@payment_router.post("/webhook/{provider}", response_model=WebhookResponse)
async def process_provider_webhook(
    provider: str,
    request: Request,
    service: CheckoutService = Depends(get_checkout_service),
) -> WebhookResponse:
    return await _handle_webhook(provider, request, service)


@payment_router.post("/gateway/configure", response_model=GatewayConfigResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> GatewayConfigResponse:
    """Toggle FakeGateway availability (non-production only).

    Lets manual API testing exercise the provider-outage path.
    """
    if os.environ.get("PROTEAN_ENV") == "production":
        raise ForbiddenError("Gateway configuration not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakeGateway):
        raise ValidationError("Gateway configuration only available for FakeGateway")

    gateway.configure(available=body.available)
    return GatewayConfigResponse(gateway=type(gateway).__name__, available=gateway.available)
