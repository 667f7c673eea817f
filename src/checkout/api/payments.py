"""FastAPI routes for payments — initialize, verify, webhook and gateway callback."""

from dataclasses import asdict
from urllib.parse import urlencode

from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse
from protean.exceptions import ValidationError

from checkout.api.presenters import order_response, payment_response
from checkout.api.schemas import (
    AmountCheckResponse,
    InitializePaymentRequest,
    InitializePaymentResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
    WebhookAckResponse,
)
from checkout.config import get_settings
from checkout.gateway import get_provider
from checkout.payment.service import initialize_payment, verify_payment
from checkout.payment.webhook import handle_webhook

payment_router = APIRouter(prefix="/payments", tags=["payments"])


def _verify_response(result, order) -> VerifyPaymentResponse:
    return VerifyPaymentResponse(
        outcome=result.outcome.value,
        order=order_response(order),
        payment=payment_response(order.payment),
        amount_check=AmountCheckResponse(**result.amount_check.to_dict()) if result.amount_check else None,
    )


@payment_router.post("/{provider}/initialize", response_model=InitializePaymentResponse)
async def initialize(provider: str, body: InitializePaymentRequest) -> InitializePaymentResponse:
    """Open a hosted payment page for a cart."""
    initialized = initialize_payment(
        provider_name=provider,
        cart_id=body.cart_id,
        email=body.email,
        customer_id=body.customer_id,
        callback_url=body.callback_url,
        channels=body.channels,
        metadata=body.metadata,
    )
    return InitializePaymentResponse(**asdict(initialized))


@payment_router.get("/{provider}/verify", response_model=VerifyPaymentResponse)
async def verify_from_redirect(
    provider: str,
    reference: str | None = None,
    trxref: str | None = None,
    tx_ref: str | None = None,
    transaction_id: str | None = None,
) -> VerifyPaymentResponse:
    """Verify using the query string the gateway appends to its redirect."""
    lookup = transaction_id or reference or trxref or tx_ref
    result, order = verify_payment(provider, lookup)
    return _verify_response(result, order)


@payment_router.post("/{provider}/verify", response_model=VerifyPaymentResponse)
async def verify(provider: str, body: VerifyPaymentRequest) -> VerifyPaymentResponse:
    result, order = verify_payment(provider, body.reference)
    return _verify_response(result, order)


@payment_router.post("/{provider}/webhook", response_model=WebhookAckResponse)
async def webhook(provider: str, request: Request) -> WebhookAckResponse:
    """Gateway webhook. 400 only for a missing or invalid signature."""
    raw_body = await request.body()
    return WebhookAckResponse(**handle_webhook(provider, raw_body, request.headers))


@payment_router.get("/{provider}/callback")
async def callback(
    provider: str,
    reference: str | None = None,
    trxref: str | None = None,
    tx_ref: str | None = None,
    transaction_id: str | None = None,
) -> RedirectResponse:
    """Send the browser back to the storefront's verification page."""
    gateway = get_provider(provider)
    lookup = reference or trxref or transaction_id or tx_ref
    if not lookup:
        raise ValidationError({"reference": ["Payment reference is required"]})

    query = urlencode({"provider": gateway.name, "reference": lookup})
    return RedirectResponse(f"{get_settings().frontend_url}/checkout/verify?{query}", status_code=307)
