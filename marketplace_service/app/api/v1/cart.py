"""Saved cart for signed-in customers."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, status

from ...schemas.cart import CartCheckoutRequest, CartItemAdd, CartItemUpdate
from ...services.cart_service import CartService, cart_response
from ...services.order_service import OrderService
from ...utils.logging import setup_marketplace_logging
from ...utils.responses import success_response
from ..deps import (
    CartServiceDep,
    CorrelationIdDep,
    CustomerUserDep,
    OrderServiceDep,
    subject_id,
)

logger = setup_marketplace_logging("cart_api")
router = APIRouter(prefix="/cart")


@router.get("")
async def get_cart(
    customer: Dict[str, Any] = CustomerUserDep,
    service: CartService = CartServiceDep,
) -> Dict[str, Any]:
    cart = await service.get_cart(subject_id(customer))
    return success_response(cart_response(cart))


@router.post("/items")
async def add_cart_item(
    data: CartItemAdd,
    customer: Dict[str, Any] = CustomerUserDep,
    service: CartService = CartServiceDep,
) -> Dict[str, Any]:
    cart = await service.add_item(subject_id(customer), data)
    return success_response(cart_response(cart), "Item added to cart")


@router.patch("/items/{product_id}")
async def update_cart_item(
    product_id: int,
    data: CartItemUpdate,
    customer: Dict[str, Any] = CustomerUserDep,
    service: CartService = CartServiceDep,
) -> Dict[str, Any]:
    cart = await service.update_item(subject_id(customer), product_id, data.quantity)
    return success_response(cart_response(cart), "Cart updated")


@router.delete("/items/{product_id}")
async def remove_cart_item(
    product_id: int,
    customer: Dict[str, Any] = CustomerUserDep,
    service: CartService = CartServiceDep,
) -> Dict[str, Any]:
    cart = await service.remove_item(subject_id(customer), product_id)
    return success_response(cart_response(cart), "Item removed from cart")


@router.delete("")
async def clear_cart(
    customer: Dict[str, Any] = CustomerUserDep,
    service: CartService = CartServiceDep,
) -> Dict[str, Any]:
    cart = await service.clear(subject_id(customer))
    return success_response(cart_response(cart), "Cart cleared")


@router.post("/checkout", status_code=status.HTTP_201_CREATED)
async def checkout_cart(
    data: CartCheckoutRequest,
    customer: Dict[str, Any] = CustomerUserDep,
    correlation_id: Optional[str] = CorrelationIdDep,
    service: CartService = CartServiceDep,
    orders: OrderService = OrderServiceDep,
) -> Dict[str, Any]:
    """Place an order for the whole cart and empty it"""
    order = await service.checkout(subject_id(customer), data, customer)
    logger.info(
        f"Cart checked out: {order.order_number}",
        extra={"correlation_id": correlation_id, "order_id": order.id},
    )
    return success_response(orders.to_response(order), "Order placed successfully")
