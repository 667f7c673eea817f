"""FastAPI routes for shopping carts."""

import json

from fastapi import APIRouter
from protean.utils.globals import current_domain

from checkout.api.presenters import cart_response
from checkout.api.schemas import (
    AddCartItemRequest,
    CartIdResponse,
    CartResponse,
    CreateCartRequest,
    ItemIdResponse,
    SetCartAdjustmentsRequest,
    StatusResponse,
    UpdateCartAddressesRequest,
    UpdateCartItemRequest,
)
from checkout.cart.cart import ShoppingCart
from checkout.cart.items import AddCartItem, RemoveCartItem, UpdateCartItemQuantity
from checkout.cart.management import CreateCart, ResetCart, SetCartAdjustments, UpdateCartAddresses

cart_router = APIRouter(prefix="/carts", tags=["carts"])


def _load(cart_id: str) -> ShoppingCart:
    return current_domain.repository_for(ShoppingCart).get(cart_id)


@cart_router.post("", status_code=201, response_model=CartIdResponse)
async def create_cart(body: CreateCartRequest) -> CartIdResponse:
    command = CreateCart(
        customer_id=body.customer_id,
        email=body.email,
        currency_code=body.currency_code.upper(),
        region=body.region,
    )
    result = current_domain.process(command, asynchronous=False)
    return CartIdResponse(cart_id=result)


@cart_router.get("/{cart_id}", response_model=CartResponse)
async def get_cart(cart_id: str) -> CartResponse:
    return cart_response(_load(cart_id))


@cart_router.post("/{cart_id}/items", status_code=201, response_model=ItemIdResponse)
async def add_cart_item(cart_id: str, body: AddCartItemRequest) -> ItemIdResponse:
    cart = _load(cart_id)
    command = AddCartItem(
        cart_id=cart_id,
        variant_id=body.variant_id,
        product_id=body.product_id,
        title=body.title,
        quantity=body.quantity,
        unit_price=body.unit_price_in_minor_units(cart.currency_code),
    )
    result = current_domain.process(command, asynchronous=False)
    return ItemIdResponse(item_id=result)


@cart_router.put("/{cart_id}/items/{item_id}", response_model=StatusResponse)
async def update_cart_item(cart_id: str, item_id: str, body: UpdateCartItemRequest) -> StatusResponse:
    command = UpdateCartItemQuantity(cart_id=cart_id, item_id=item_id, new_quantity=body.quantity)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.delete("/{cart_id}/items/{item_id}", response_model=StatusResponse)
async def remove_cart_item(cart_id: str, item_id: str) -> StatusResponse:
    current_domain.process(RemoveCartItem(cart_id=cart_id, item_id=item_id), asynchronous=False)
    return StatusResponse()


@cart_router.put("/{cart_id}/addresses", response_model=StatusResponse)
async def update_cart_addresses(cart_id: str, body: UpdateCartAddressesRequest) -> StatusResponse:
    command = UpdateCartAddresses(
        cart_id=cart_id,
        shipping_address=json.dumps(body.shipping_address.model_dump()) if body.shipping_address else None,
        billing_address=json.dumps(body.billing_address.model_dump()) if body.billing_address else None,
        email=body.email,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.put("/{cart_id}/adjustments", response_model=StatusResponse)
async def set_cart_adjustments(cart_id: str, body: SetCartAdjustmentsRequest) -> StatusResponse:
    command = SetCartAdjustments(
        cart_id=cart_id,
        shipping_total=body.shipping_total_minor,
        tax_total=body.tax_total_minor,
        discount_total=body.discount_total_minor,
        delivery_option=body.delivery_option,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@cart_router.delete("/{cart_id}", response_model=StatusResponse)
async def reset_cart(cart_id: str) -> StatusResponse:
    current_domain.process(ResetCart(cart_id=cart_id), asynchronous=False)
    return StatusResponse()
