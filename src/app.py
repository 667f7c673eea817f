"""Storefront checkout FastAPI application.

Serves carts, payment initialization/verification/webhooks, orders and the
order admin endpoints. Every request runs inside the checkout domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 9000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects Protean's config overlay.
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from checkout.domain import checkout
from checkout.utils.logging import add_context, clear_context

checkout.init()

_DOMAIN_PREFIXES = ("/carts", "/payments", "/orders", "/admin/orders")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront Checkout API",
    description="Carts, payment reconciliation and orders",
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
    """Push the checkout domain context and a request id for each API request."""
    if not request.url.path.startswith(_DOMAIN_PREFIXES):
        # Health check, docs, etc.
        return await call_next(request)

    clear_context()
    add_context(request_id=request.headers.get("x-request-id") or uuid4().hex, path=request.url.path)
    with checkout.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from checkout.api.carts import cart_router  # noqa: E402
from checkout.api.errors import register_checkout_exception_handlers  # noqa: E402
from checkout.api.orders import admin_order_router, order_router  # noqa: E402
from checkout.api.payments import payment_router  # noqa: E402

app.include_router(cart_router)
app.include_router(payment_router)
app.include_router(order_router)
app.include_router(admin_order_router)
register_checkout_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": checkout.name})
