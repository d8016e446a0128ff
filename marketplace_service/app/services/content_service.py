"""Homepage content, payment accounts and visit places"""

from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from fastapi import HTTPException, UploadFile, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.settings import get_settings
from ..models.base import MarketplaceBaseModel
from ..models.catalog import Category
from ..models.content import (
    HomepageBanner,
    HomepageCard,
    HomepageCategory,
    PaymentAccount,
    VisitPlace,
)
from ..repository.catalog_repository import CategoryRepository, ProductRepository
from ..repository.content_repository import ContentRepository
from ..schemas.content import (
    BannerResponse,
    CardResponse,
    HomepageCategoryCreate,
    HomepageCategoryResponse,
    PaymentAccountResponse,
)
from ..utils.logging import setup_marketplace_logging as setup_logging
from .catalog_service import ProductService
from .storage_service import UploadStorage, get_upload_storage

settings = get_settings()
logger = setup_logging("content_service", log_level=settings.LOG_LEVEL)

ContentModel = TypeVar("ContentModel", bound=MarketplaceBaseModel)

HOMEPAGE_PRODUCT_LIMIT = 12


class ContentService(Generic[ContentModel]):
    """Admin CRUD for one content table, with optional image upload"""

    def __init__(
        self,
        session: AsyncSession,
        model: Type[ContentModel],
        upload_kind: str = "homepage",
        storage: Optional[UploadStorage] = None,
    ):
        self.session = session
        self.model = model
        self.upload_kind = upload_kind
        self.repository = ContentRepository(session, model)
        self.storage = storage or get_upload_storage()
        self.label = model.__name__

    async def get(self, record_id: int) -> ContentModel:
        record = await self.repository.get(record_id)
        if not record:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"{self.label} not found",
            )
        return record

    async def list_records(self, active_only: bool = False) -> List[ContentModel]:
        return await self.repository.list_all(active_only=active_only)

    async def create(self, data: BaseModel) -> ContentModel:
        record = await self.repository.create(**data.model_dump())
        logger.info(f"{self.label} created", extra={"record_id": record.id})
        return record

    async def update(self, record_id: int, data: BaseModel) -> ContentModel:
        record = await self.get(record_id)
        changes = data.model_dump(exclude_unset=True)
        old_image = getattr(record, "image", None)
        record = await self.repository.update(record, **changes)
        if "image" in changes and old_image and old_image != changes["image"]:
            self.storage.delete(old_image)
        return record

    async def upload_image(self, record_id: int, upload: UploadFile) -> ContentModel:
        """Replace the record's image; the previous file is removed."""
        record = await self.get(record_id)
        name_hint = getattr(record, "title", None) or getattr(record, "name", None) or self.label
        stored = await self.storage.save_image(upload, self.upload_kind, name_hint)
        old_image = record.image
        record = await self.repository.update(record, image=stored["path"])
        if old_image and old_image != record.image:
            self.storage.delete(old_image)
        return record

    async def delete(self, record_id: int) -> None:
        record = await self.get(record_id)
        image = getattr(record, "image", None)
        await self.repository.delete(record)
        if image:
            self.storage.delete(image)
        logger.info(f"{self.label} deleted", extra={"record_id": record_id})


def homepage_category_response(entry: HomepageCategory) -> Dict[str, Any]:
    category: Optional[Category] = entry.category
    return HomepageCategoryResponse(
        id=entry.id,
        category_id=entry.category_id,
        name=entry.display_name or (category.name if category else ""),
        slug=category.slug if category else None,
        image=entry.image or (category.image if category else None),
        sort_order=entry.sort_order,
        is_active=entry.is_active,
    ).model_dump()


class HomepageService:
    def __init__(self, session: AsyncSession, storage: Optional[UploadStorage] = None):
        self.session = session
        self.banners = ContentService(session, HomepageBanner, storage=storage)
        self.cards = ContentService(session, HomepageCard, storage=storage)
        self.categories = ContentService(session, HomepageCategory, storage=storage)
        self.category_repository = CategoryRepository(session)
        self.product_repository = ProductRepository(session)
        self.product_service = ProductService(session, storage=storage)

    async def add_homepage_category(self, data: HomepageCategoryCreate) -> HomepageCategory:
        if not await self.category_repository.get_category_by_id(data.category_id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Category {data.category_id} does not exist",
            )
        if await self.categories.repository.find_one(category_id=data.category_id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Category is already on the homepage",
            )
        return await self.categories.create(data)

    async def _highlighted(self, **flag: bool) -> List[Dict[str, Any]]:
        products, _ = await self.product_repository.search_products(
            page=1, limit=HOMEPAGE_PRODUCT_LIMIT, **flag
        )
        return [self.product_service.to_response(product) for product in products]

    async def homepage(self) -> Dict[str, Any]:
        """Everything the storefront landing page renders, in one payload."""
        banners = await self.banners.list_records(active_only=True)
        cards = await self.cards.list_records(active_only=True)
        categories = await self.categories.list_records(active_only=True)
        return {
            "banners": [BannerResponse.model_validate(b).model_dump() for b in banners],
            "cards": [CardResponse.model_validate(c).model_dump() for c in cards],
            "categories": [
                homepage_category_response(entry)
                for entry in categories
                if entry.category is None or entry.category.is_active
            ],
            "featured_products": await self._highlighted(is_featured=True),
            "premium_products": await self._highlighted(is_premium=True),
        }


class PaymentAccountService(ContentService[PaymentAccount]):
    def __init__(self, session: AsyncSession):
        super().__init__(session, PaymentAccount)

    @staticmethod
    def to_response(account: PaymentAccount) -> Dict[str, Any]:
        return PaymentAccountResponse.model_validate(account).model_dump()


class VisitPlaceService(ContentService[VisitPlace]):
    """Visit places always carry an image."""

    def __init__(self, session: AsyncSession, storage: Optional[UploadStorage] = None):
        super().__init__(session, VisitPlace, upload_kind="visit-places", storage=storage)

    async def create_place(
        self, name: str, description: str, upload: UploadFile
    ) -> VisitPlace:
        if not name.strip() or not description.strip():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Name and description are required",
            )
        stored = await self.storage.save_image(upload, self.upload_kind, name)
        place = await self.repository.create(
            name=name.strip(), description=description.strip(), image=stored["path"]
        )
        logger.info(
            "Visit place created",
            extra={"visit_place_id": place.id, "image_path": place.image},
        )
        return place

    async def update_place(
        self,
        place_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
        upload: Optional[UploadFile] = None,
    ) -> VisitPlace:
        place = await self.get(place_id)
        changes: Dict[str, Any] = {}
        if name is not None and name.strip():
            changes["name"] = name.strip()
        if description is not None and description.strip():
            changes["description"] = description.strip()

        old_image = None
        if upload is not None and upload.filename:
            stored = await self.storage.save_image(
                upload, self.upload_kind, changes.get("name", place.name)
            )
            old_image = place.image
            changes["image"] = stored["path"]

        place = await self.repository.update(place, **changes)
        if old_image and old_image != place.image:
            self.storage.delete(old_image)
        logger.info(
            "Visit place updated",
            extra={
                "visit_place_id": place.id,
                "fields": sorted(changes),
                "replaced_image": old_image,
            },
        )
        return place
