"""Repository for saved customer carts"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.cart import Cart, CartItem


class CartRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_for_user(self, user_id: int) -> Optional[Cart]:
        result = await self.db.execute(select(Cart).where(Cart.user_id == user_id))
        return result.scalar_one_or_none()

    async def get_or_create(self, user_id: int) -> Cart:
        cart = await self.get_for_user(user_id)
        if cart is None:
            cart = Cart(user_id=user_id, items=[])
            self.db.add(cart)
            await self.db.flush()
        return cart

    def remove_item(self, cart: Cart, item: CartItem) -> None:
        # delete-orphan removes the row on flush
        cart.items.remove(item)

    async def save(self, cart: Cart) -> Cart:
        await self.db.commit()
        # Reload lines and their products, including lines added since the last load
        result = await self.db.execute(
            select(Cart).where(Cart.id == cart.id).execution_options(populate_existing=True)
        )
        return result.scalar_one()
