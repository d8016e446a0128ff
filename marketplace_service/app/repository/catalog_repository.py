"""Category and product repositories"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.catalog import ApprovalStatus, Category, Product

PRODUCT_SORTS = {
    "newest": (Product.created_at.desc(), Product.id.desc()),
    "oldest": (Product.created_at.asc(), Product.id.asc()),
    "price_asc": (Product.price.asc(), Product.id.asc()),
    "price_desc": (Product.price.desc(), Product.id.desc()),
    "name": (Product.name.asc(), Product.id.asc()),
}


class CategoryRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_category(self, **fields) -> Category:
        category = Category(**fields)
        self.db.add(category)
        await self.db.commit()
        await self.db.refresh(category)
        return category

    async def get_category_by_id(self, category_id: int) -> Optional[Category]:
        result = await self.db.execute(select(Category).where(Category.id == category_id))
        return result.scalar_one_or_none()

    async def get_category_by_slug(self, slug: str) -> Optional[Category]:
        result = await self.db.execute(select(Category).where(Category.slug == slug))
        return result.scalar_one_or_none()

    async def list_categories(self, include_inactive: bool = False) -> List[Category]:
        query = select(Category)
        if not include_inactive:
            query = query.where(Category.is_active.is_(True))
        result = await self.db.execute(
            query.order_by(Category.sort_order.asc(), Category.name.asc())
        )
        return list(result.scalars().all())

    async def slugs_like(self, base_slug: str) -> List[str]:
        result = await self.db.execute(
            select(Category.slug).where(
                or_(Category.slug == base_slug, Category.slug.like(f"{base_slug}-%"))
            )
        )
        return list(result.scalars().all())

    async def count_products(self, category_id: int) -> int:
        total = await self.db.scalar(
            select(func.count(Product.id)).where(Product.category_id == category_id)
        )
        return total or 0

    async def save(self, category: Category) -> Category:
        await self.db.commit()
        await self.db.refresh(category)
        return category

    async def delete_category(self, category: Category) -> None:
        await self.db.delete(category)
        await self.db.commit()


class ProductRepository:
    """Repository for product database operations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_product(self, **fields) -> Product:
        product = Product(**fields)
        self.db.add(product)
        await self.db.commit()
        await self.db.refresh(product)
        return product

    async def get_product_by_id(self, product_id: int) -> Optional[Product]:
        result = await self.db.execute(select(Product).where(Product.id == product_id))
        return result.scalar_one_or_none()

    async def get_product_by_slug(self, slug: str) -> Optional[Product]:
        result = await self.db.execute(select(Product).where(Product.slug == slug))
        return result.scalar_one_or_none()

    async def get_products_by_ids(self, product_ids: List[int]) -> Dict[int, Product]:
        if not product_ids:
            return {}
        result = await self.db.execute(select(Product).where(Product.id.in_(product_ids)))
        return {product.id: product for product in result.scalars().all()}

    async def slugs_like(self, base_slug: str) -> List[str]:
        result = await self.db.execute(
            select(Product.slug).where(
                or_(Product.slug == base_slug, Product.slug.like(f"{base_slug}-%"))
            )
        )
        return list(result.scalars().all())

    async def search_products(
        self,
        page: int = 1,
        limit: int = 20,
        query_text: Optional[str] = None,
        category_id: Optional[int] = None,
        vendor_id: Optional[int] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        sort: str = "newest",
        public_only: bool = True,
        approval_status: Optional[str] = None,
        is_featured: Optional[bool] = None,
        is_premium: Optional[bool] = None,
    ) -> Tuple[List[Product], int]:
        """Filtered, paginated product listing."""
        query = select(Product)

        if public_only:
            query = query.where(
                Product.is_active.is_(True),
                Product.approval_status == ApprovalStatus.APPROVED,
            )
        if approval_status:
            query = query.where(Product.approval_status == approval_status)
        if query_text:
            pattern = f"%{query_text.strip()}%"
            query = query.where(
                or_(
                    Product.name.ilike(pattern),
                    Product.description.ilike(pattern),
                    Product.brand.ilike(pattern),
                )
            )
        if category_id is not None:
            query = query.where(Product.category_id == category_id)
        if vendor_id is not None:
            query = query.where(Product.vendor_id == vendor_id)
        if min_price is not None:
            query = query.where(Product.price >= min_price)
        if max_price is not None:
            query = query.where(Product.price <= max_price)
        if is_featured is not None:
            query = query.where(Product.is_featured.is_(is_featured))
        if is_premium is not None:
            query = query.where(Product.is_premium.is_(is_premium))

        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))

        order_by = PRODUCT_SORTS.get(sort, PRODUCT_SORTS["newest"])
        if is_featured or is_premium:
            order_by = (Product.featured_order.asc(), *order_by)

        result = await self.db.execute(
            query.order_by(*order_by).offset((page - 1) * limit).limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def iter_all_products(self, batch_size: int = 200) -> List[Product]:
        result = await self.db.execute(
            select(Product).order_by(Product.id).execution_options(yield_per=batch_size)
        )
        return list(result.scalars().all())

    async def image_statistics(self) -> Dict[str, Any]:
        products = await self.iter_all_products()
        total = len(products)
        with_images = sum(1 for p in products if p.all_images)
        return {
            "total": total,
            "with_images": with_images,
            "with_alt_text": sum(1 for p in products if p.alt_text),
            "with_seo_keywords": sum(1 for p in products if p.seo_keywords),
            "total_images": sum(len(p.all_images) for p in products),
        }

    async def save(self, product: Product) -> Product:
        await self.db.commit()
        await self.db.refresh(product)
        return product

    async def delete_product(self, product_id: int) -> bool:
        result = await self.db.execute(delete(Product).where(Product.id == product_id))
        await self.db.commit()
        return result.rowcount > 0
