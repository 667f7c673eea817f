"""FastAPI routes for orders and order administration."""

import json

from fastapi import APIRouter
from protean.utils.globals import current_domain

from checkout.api.presenters import order_response, payment_response
from checkout.api.schemas import (
    ImportLegacyPaymentRequest,
    OrderResponse,
    PaymentStatusResponse,
    RecordFulfillmentRequest,
)
from checkout.errors import OrderNotFound
from checkout.order.fulfillment import RecordFulfillment
from checkout.order.legacy import ImportLegacyPaymentState
from checkout.order.queries import find_order_by_reference, get_order, orders_for_customer

# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("", response_model=list[OrderResponse])
async def list_customer_orders(customer_id: str, limit: int = 50) -> list[OrderResponse]:
    return [order_response(order) for order in orders_for_customer(customer_id, limit=limit)]


@order_router.get("/by-reference/{provider}/{reference}", response_model=OrderResponse)
async def get_order_by_reference(provider: str, reference: str) -> OrderResponse:
    order = find_order_by_reference(provider.lower(), reference)
    if order is None:
        raise OrderNotFound(f"No order for {provider} payment {reference}", provider=provider, reference=reference)
    return order_response(order)


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order_detail(order_id: str) -> OrderResponse:
    return order_response(get_order(order_id))


# ---------------------------------------------------------------------------
# Admin Router
# ---------------------------------------------------------------------------
admin_order_router = APIRouter(prefix="/admin/orders", tags=["admin"])


@admin_order_router.get("/{order_id}/payment-status", response_model=PaymentStatusResponse)
async def get_payment_status(order_id: str) -> PaymentStatusResponse:
    order = get_order(order_id)
    return PaymentStatusResponse(
        order_id=str(order.id),
        payment_status=order.payment_status,
        payment=payment_response(order.payment),
    )


@admin_order_router.post("/{order_id}/fulfillment", response_model=OrderResponse)
async def record_fulfillment(order_id: str, body: RecordFulfillmentRequest) -> OrderResponse:
    get_order(order_id)
    command = RecordFulfillment(order_id=order_id, fulfillment_status=body.fulfillment_status)
    current_domain.process(command, asynchronous=False)
    return order_response(get_order(order_id))


@admin_order_router.post("/{order_id}/legacy-payment", response_model=PaymentStatusResponse)
async def import_legacy_payment(order_id: str, body: ImportLegacyPaymentRequest) -> PaymentStatusResponse:
    get_order(order_id)
    command = ImportLegacyPaymentState(
        order_id=order_id,
        collection_status=body.collection_status,
        metadata=json.dumps(body.metadata),
    )
    current_domain.process(command, asynchronous=False)
    order = get_order(order_id)
    return PaymentStatusResponse(
        order_id=str(order.id),
        payment_status=order.payment_status,
        payment=payment_response(order.payment),
    )
