"""Category and product business logic"""

from typing import Any, Dict, List, Optional, Tuple

from fastapi import HTTPException, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.settings import get_settings
from ..models.catalog import ApprovalStatus, Category, Product
from ..repository.catalog_repository import CategoryRepository, ProductRepository
from ..schemas.catalog import (
    AdminProductCreate,
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    ProductApprovalUpdate,
    ProductCreate,
    ProductHighlightUpdate,
    ProductResponse,
    ProductUpdate,
)
from ..utils.logging import setup_marketplace_logging as setup_logging
from ..utils.seo import (
    extract_keywords,
    generate_category_alt_text,
    generate_meta_description,
    generate_meta_title,
    generate_product_alt_text,
    generate_slug,
    unique_slug,
)
from .storage_service import UploadStorage, get_upload_storage

settings = get_settings()
logger = setup_logging("catalog_service", log_level=settings.LOG_LEVEL)


class CategoryService:
    def __init__(self, db: AsyncSession, storage: Optional[UploadStorage] = None):
        self.db = db
        self.repository = CategoryRepository(db)
        self.storage = storage or get_upload_storage()

    async def _slug_for(self, name: str, requested: Optional[str] = None) -> str:
        base_slug = generate_slug(requested or name) or "category"
        return unique_slug(base_slug, await self.repository.slugs_like(base_slug))

    async def get_category(self, category_id: int) -> Category:
        category = await self.repository.get_category_by_id(category_id)
        if not category:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Category not found"
            )
        return category

    async def get_category_by_slug(self, slug: str) -> Category:
        category = await self.repository.get_category_by_slug(slug)
        if not category or not category.is_active:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Category not found"
            )
        return category

    async def list_categories(self, include_inactive: bool = False) -> List[Category]:
        return await self.repository.list_categories(include_inactive=include_inactive)

    async def create_category(self, data: CategoryCreate) -> Category:
        if data.parent_id:
            await self.get_category(data.parent_id)

        fields = data.model_dump(exclude={"slug"})
        fields["slug"] = await self._slug_for(data.name, data.slug)
        fields["image_alt"] = generate_category_alt_text(data.name, settings.SITE_NAME)
        if not fields.get("meta_title"):
            fields["meta_title"] = generate_meta_title(data.name, settings.SITE_NAME)
        if not fields.get("meta_description") and data.description:
            fields["meta_description"] = generate_meta_description(data.description)

        category = await self.repository.create_category(**fields)
        logger.info(
            "Category created",
            extra={"category_id": category.id, "category_slug": category.slug},
        )
        return category

    async def update_category(self, category_id: int, data: CategoryUpdate) -> Category:
        category = await self.get_category(category_id)
        changes = data.model_dump(exclude_unset=True)

        if changes.get("parent_id") == category_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A category cannot be its own parent",
            )
        if "slug" in changes or "name" in changes:
            requested = changes.pop("slug", None)
            new_base = generate_slug(requested or changes.get("name") or category.name)
            if new_base and new_base != category.slug:
                category.slug = await self._slug_for(category.name, new_base)
        if changes.get("name"):
            category.image_alt = generate_category_alt_text(changes["name"], settings.SITE_NAME)

        for field, value in changes.items():
            setattr(category, field, value)
        return await self.repository.save(category)

    async def upload_category_image(self, category_id: int, upload: UploadFile) -> Category:
        category = await self.get_category(category_id)
        stored = await self.storage.save_image(upload, "categories", category.name)
        old_image = category.image
        category.image = stored["path"]
        category = await self.repository.save(category)
        if old_image and old_image != category.image:
            self.storage.delete(old_image)
        return category

    async def delete_category(self, category_id: int) -> None:
        category = await self.get_category(category_id)
        product_count = await self.repository.count_products(category_id)
        if product_count:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Category still has {product_count} products",
            )
        image = category.image
        await self.repository.delete_category(category)
        self.storage.delete(image)
        logger.info("Category deleted", extra={"category_id": category_id})


def convert_category_response(category: Category) -> Dict[str, Any]:
    return CategoryResponse.model_validate(category).model_dump()


class ProductService:
    """Service class for product business logic"""

    def __init__(self, db: AsyncSession, storage: Optional[UploadStorage] = None):
        self.db = db
        self.repository = ProductRepository(db)
        self.category_repository = CategoryRepository(db)
        self.storage = storage or get_upload_storage()

    def _convert_to_product_response(self, product: Product) -> ProductResponse:
        """Database product to ProductResponse, with category and vendor names"""
        fields = {
            name: getattr(product, name)
            for name in ProductResponse.model_fields
            if hasattr(product, name)
        }
        fields.update(
            images=list(product.images or []),
            seo_keywords=list(product.seo_keywords or []),
            tags=list(product.tags or []),
            category_name=product.category.name if product.category else None,
            vendor_name=product.vendor.business_name if product.vendor else None,
        )
        return ProductResponse(**fields)

    def to_response(self, product: Product) -> Dict[str, Any]:
        return self._convert_to_product_response(product).model_dump()

    async def _slug_for(self, name: str) -> str:
        base_slug = generate_slug(name) or "product"
        return unique_slug(base_slug, await self.repository.slugs_like(base_slug))

    async def _category_name(self, category_id: Optional[int]) -> Optional[str]:
        if category_id is None:
            return None
        category = await self.category_repository.get_category_by_id(category_id)
        if not category:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Category {category_id} does not exist",
            )
        return category.name

    def _seo_defaults(
        self, fields: Dict[str, Any], category_name: Optional[str]
    ) -> Dict[str, Any]:
        name = fields["name"]
        if not fields.get("alt_text"):
            fields["alt_text"] = generate_product_alt_text(
                name, settings.SITE_NAME, brand=fields.get("brand"), category=category_name
            )
        if not fields.get("meta_title"):
            fields["meta_title"] = generate_meta_title(name, settings.SITE_NAME, category_name)
        if not fields.get("meta_description") and fields.get("description"):
            fields["meta_description"] = generate_meta_description(fields["description"])
        fields["seo_keywords"] = extract_keywords(
            " ".join(filter(None, [name, fields.get("brand"), fields.get("description")]))
        )
        return fields

    async def get_product(self, product_id: int) -> Product:
        product = await self.repository.get_product_by_id(product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Product not found"
            )
        return product

    async def get_vendor_product(self, product_id: int, vendor_id: int) -> Product:
        product = await self.get_product(product_id)
        if product.vendor_id != vendor_id:
            # Other vendors' products are indistinguishable from missing ones
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Product not found"
            )
        return product

    async def get_public_product(self, slug: str) -> Product:
        product = await self.repository.get_product_by_slug(slug)
        if (
            not product
            or not product.is_active
            or product.approval_status != ApprovalStatus.APPROVED
        ):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Product not found"
            )
        return product

    async def search_products(
        self, category_slug: Optional[str] = None, **filters
    ) -> Tuple[List[Product], int]:
        if category_slug:
            category = await self.category_repository.get_category_by_slug(category_slug)
            if not category:
                return [], 0
            filters["category_id"] = category.id
        return await self.repository.search_products(**filters)

    async def create_product(
        self, data: ProductCreate, vendor_id: Optional[int] = None
    ) -> Product:
        """
        Create a product.

        Vendor products wait for admin approval; admin products go live at once.
        """
        category_name = await self._category_name(data.category_id)

        fields = self._seo_defaults(data.model_dump(), category_name)
        fields["slug"] = await self._slug_for(data.name)

        if isinstance(data, AdminProductCreate):
            fields["approval_status"] = ApprovalStatus.APPROVED
        else:
            fields["vendor_id"] = vendor_id
            fields["approval_status"] = (
                ApprovalStatus.PENDING if vendor_id else ApprovalStatus.APPROVED
            )

        product = await self.repository.create_product(**fields)
        logger.info(
            "Product created successfully",
            extra={
                "product_id": product.id,
                "product_slug": product.slug,
                "vendor_id": product.vendor_id,
                "approval_status": product.approval_status,
            },
        )
        return product

    async def update_product(
        self, product: Product, data: ProductUpdate, by_vendor: bool = False
    ) -> Product:
        changes = data.model_dump(exclude_unset=True)
        if "category_id" in changes:
            await self._category_name(changes["category_id"])

        if changes.get("name") and changes["name"] != product.name:
            product.slug = await self._slug_for(changes["name"])

        for field, value in changes.items():
            setattr(product, field, value)

        if "name" in changes or "description" in changes or "brand" in changes:
            product.seo_keywords = extract_keywords(
                " ".join(filter(None, [product.name, product.brand, product.description]))
            )

        if by_vendor and changes:
            # Edited vendor listings go back through moderation
            product.approval_status = ApprovalStatus.PENDING
            product.rejection_reason = None

        product = await self.repository.save(product)
        logger.info(
            "Product updated",
            extra={
                "product_id": product.id,
                "fields": sorted(changes),
                "by_vendor": by_vendor,
                "approval_status": product.approval_status,
            },
        )
        return product

    async def set_approval(self, product_id: int, data: ProductApprovalUpdate) -> Product:
        product = await self.get_product(product_id)
        if data.approval_status == ApprovalStatus.REJECTED and not data.rejection_reason:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A rejection reason is required",
            )
        product.approval_status = data.approval_status
        product.rejection_reason = (
            data.rejection_reason if data.approval_status == ApprovalStatus.REJECTED else None
        )
        product = await self.repository.save(product)
        logger.info(
            "Product moderated",
            extra={"product_id": product.id, "approval_status": product.approval_status},
        )
        return product

    async def set_highlights(self, product_id: int, data: ProductHighlightUpdate) -> Product:
        product = await self.get_product(product_id)
        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(product, field, value)
        return await self.repository.save(product)

    async def upload_product_image(
        self, product: Product, upload: UploadFile, watermark: bool = True
    ) -> Product:
        """Store an image; the first becomes the main image, later ones join the gallery."""
        category_name = product.category.name if product.category else None
        stored = await self.storage.save_image(
            upload, "products", product.name, category=category_name, watermark=watermark
        )

        index = len(product.all_images)
        alt_text = generate_product_alt_text(
            product.name,
            settings.SITE_NAME,
            index=index,
            brand=product.brand,
            category=category_name,
        )
        if not product.image:
            product.image = stored["path"]
            product.alt_text = product.alt_text or alt_text
        else:
            product.images = [*(product.images or []), stored["path"]]
        product.image_alt_texts = [*(product.image_alt_texts or []), alt_text]
        product.image_metadata = {
            **(product.image_metadata or {}),
            stored["path"]: {"size": stored["size"], "alt_text": alt_text},
        }
        return await self.repository.save(product)

    async def delete_product(self, product: Product) -> List[str]:
        """
        Delete a product and the images uploaded for it; returns the removed files.

        Only paths recorded by `upload_product_image` are deleted. Paths typed
        into `image`/`images` may point at files owned by someone else.
        """
        owned = product.image_metadata or {}
        images = [path for path in product.all_images if path in owned]
        product_id = product.id
        if not await self.repository.delete_product(product_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Product not found"
            )

        removed = self.storage.delete_many(images)
        logger.info(
            "Product deleted",
            extra={"product_id": product_id, "removed_files": removed},
        )
        return removed
