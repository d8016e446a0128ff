"""Saved carts for signed-in customers and checkout from them"""

from decimal import Decimal
from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.settings import get_settings
from ..models.cart import Cart, CartItem
from ..models.catalog import ApprovalStatus, Product
from ..models.order import Order
from ..models.user import VendorStatus
from ..repository.cart_repository import CartRepository
from ..repository.catalog_repository import ProductRepository
from ..schemas.cart import CartItemAdd, CartItemResponse, CartResponse
from ..schemas.order import CheckoutDetails, CheckoutItem, CheckoutRequest
from ..utils.logging import setup_marketplace_logging as setup_logging
from .notification_service import NotificationService
from .order_rules import OrderBusinessRules
from .order_service import OrderService

settings = get_settings()
logger = setup_logging("cart_service", log_level=settings.LOG_LEVEL)


def is_available(product: Optional[Product]) -> bool:
    """Whether the product can be bought right now, ignoring stock."""
    if product is None or not product.is_active:
        return False
    if product.approval_status != ApprovalStatus.APPROVED:
        return False
    return product.vendor is None or product.vendor.status == VendorStatus.APPROVED


def cart_item_response(item: CartItem) -> CartItemResponse:
    product = item.product
    stock = product.stock if product else 0
    return CartItemResponse(
        id=item.id,
        product_id=item.product_id,
        title=product.name if product else None,
        slug=product.slug if product else None,
        image=product.image if product else None,
        vendor_id=product.vendor_id if product else None,
        price=float(item.price),
        current_price=float(product.price) if product else None,
        quantity=item.quantity,
        line_total=float(item.line_total),
        shipping=float(product.shipping_cost or 0) if product else 0,
        stock=stock,
        in_stock=stock >= item.quantity,
        available=is_available(product),
        attributes=item.attributes,
    )


def cart_response(cart: Cart) -> Dict[str, Any]:
    return CartResponse(
        id=cart.id,
        items=[cart_item_response(item) for item in cart.items],
        total_items=cart.total_items,
        total_amount=float(cart.total_amount),
    ).model_dump()


class CartService:
    def __init__(
        self,
        session: AsyncSession,
        notification_service: Optional[NotificationService] = None,
    ):
        self.session = session
        self.repository = CartRepository(session)
        self.product_repository = ProductRepository(session)
        self.notification_service = notification_service
        self.business_rules = OrderBusinessRules()

    async def _existing_cart(self, user_id: int) -> Cart:
        cart = await self.repository.get_for_user(user_id)
        if cart is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Cart not found"
            )
        return cart

    def _find_item(self, cart: Cart, product_id: int) -> Optional[CartItem]:
        return next((item for item in cart.items if item.product_id == product_id), None)

    def _check_quantity(self, product: Product, quantity: int) -> None:
        if quantity > self.business_rules.max_item_quantity:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Maximum quantity per item is {self.business_rules.max_item_quantity}",
            )
        if product.stock < quantity:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Only {product.stock} items available in stock",
            )

    async def get_cart(self, user_id: int) -> Cart:
        cart = await self.repository.get_or_create(user_id)
        return await self.repository.save(cart)

    async def add_item(self, user_id: int, data: CartItemAdd) -> Cart:
        """Add a product, or top up the quantity of a line already in the cart."""
        product = await self.product_repository.get_product_by_id(data.product_id)
        if not is_available(product):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Product not found"
            )

        cart = await self.repository.get_or_create(user_id)
        item = self._find_item(cart, product.id)
        quantity = data.quantity + (item.quantity if item else 0)
        self._check_quantity(product, quantity)

        if item is None:
            cart.items.append(
                CartItem(
                    product_id=product.id,
                    quantity=quantity,
                    price=Decimal(product.price),
                    attributes=data.attributes,
                )
            )
        else:
            item.quantity = quantity
            item.price = Decimal(product.price)
            if data.attributes is not None:
                item.attributes = data.attributes

        cart = await self.repository.save(cart)
        logger.info(
            "Cart item added",
            extra={"user_id": user_id, "product_id": product.id, "quantity": quantity},
        )
        return cart

    async def update_item(self, user_id: int, product_id: int, quantity: int) -> Cart:
        cart = await self._existing_cart(user_id)
        item = self._find_item(cart, product_id)
        if item is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Item not found in cart"
            )

        if quantity == 0:
            self.repository.remove_item(cart, item)
        else:
            product = await self.product_repository.get_product_by_id(product_id)
            if product is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND, detail="Product not found"
                )
            self._check_quantity(product, quantity)
            item.quantity = quantity

        return await self.repository.save(cart)

    async def remove_item(self, user_id: int, product_id: int) -> Cart:
        cart = await self._existing_cart(user_id)
        item = self._find_item(cart, product_id)
        if item is not None:
            self.repository.remove_item(cart, item)
        return await self.repository.save(cart)

    async def clear(self, user_id: int) -> Cart:
        cart = await self.repository.get_or_create(user_id)
        cart.items.clear()
        return await self.repository.save(cart)

    async def checkout(
        self, user_id: int, details: CheckoutDetails, current_user: Dict[str, Any]
    ) -> Order:
        """
        Place an order for everything in the cart.

        Checkout goes through the regular order flow, so prices, stock and
        availability are checked against the live catalog. The cart is only
        emptied once the order exists.
        """
        cart = await self._existing_cart(user_id)
        if not cart.items:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="Cart is empty"
            )

        request = CheckoutRequest(
            **details.model_dump(),
            items=[
                CheckoutItem(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    attributes=item.attributes,
                )
                for item in cart.items
            ],
        )
        order = await OrderService(self.session, self.notification_service).create_order(
            request, current_user
        )

        cart.items.clear()
        await self.repository.save(cart)
        logger.info(
            "Cart checked out",
            extra={"user_id": user_id, "order_id": order.id, "order_number": order.order_number},
        )
        return order
