"""Storefront checkout FastAPI application.

Serves order placement, order lookup and admin status management, payment
intent creation and provider webhooks. Each request under an ordering route
runs inside the ordering domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ordering.utils.logging import add_context, clear_context, configure_logging

configure_logging()

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# Initialized at module level so uvicorn workers share the domain.
# PROTEAN_ENV selects the config overlay from ordering/domain.toml.
from ordering.domain import ordering  # noqa: E402

ordering.init()

_DOMAIN_PREFIXES = ("/orders", "/payments")


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    from notifications.sink import reset_notification_sink

    # Let queued emails drain on shutdown
    reset_notification_sink(wait=True)


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront Checkout API",
    description="Order placement, payment verification and webhook reconciliation",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the ordering domain context for order and payment routes."""
    if not request.url.path.startswith(_DOMAIN_PREFIXES):
        # Health check, docs, etc.
        return await call_next(request)

    add_context(path=request.url.path, user_id=request.headers.get("x-user-id"))
    try:
        with ordering.domain_context():
            return await call_next(request)
    finally:
        clear_context()


# ---------------------------------------------------------------------------
# Routers and error translation
# ---------------------------------------------------------------------------
from ordering.api import order_router  # noqa: E402
from payments.api import payment_router  # noqa: E402
from shared.http_errors import install_error_handlers  # noqa: E402

app.include_router(order_router)
app.include_router(payment_router)
install_error_handlers(app)


@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domains": {"ordering": {"name": ordering.name}}})
