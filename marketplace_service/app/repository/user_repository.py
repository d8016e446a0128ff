"""User and vendor repositories for database operations"""

from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.user import User, Vendor


class UserRepository:
    """Repository for customer and admin accounts"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_user(self, **fields) -> User:
        user = User(**fields)
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(func.lower(User.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def list_users(
        self,
        page: int = 1,
        limit: int = 20,
        role: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[User], int]:
        query = select(User)
        if role:
            query = query.where(User.role == role)
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(User.name.ilike(pattern), User.email.ilike(pattern)))

        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))
        result = await self.db.execute(
            query.order_by(User.created_at.desc(), User.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def save(self, user: User) -> User:
        await self.db.commit()
        await self.db.refresh(user)
        return user


class VendorRepository:
    """Repository for vendor accounts"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_vendor(self, **fields) -> Vendor:
        vendor = Vendor(**fields)
        self.db.add(vendor)
        await self.db.commit()
        await self.db.refresh(vendor)
        return vendor

    async def get_vendor_by_id(self, vendor_id: int) -> Optional[Vendor]:
        result = await self.db.execute(select(Vendor).where(Vendor.id == vendor_id))
        return result.scalar_one_or_none()

    async def get_vendor_by_email(self, email: str) -> Optional[Vendor]:
        result = await self.db.execute(
            select(Vendor).where(func.lower(Vendor.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def get_vendor_by_slug(self, slug: str) -> Optional[Vendor]:
        result = await self.db.execute(select(Vendor).where(Vendor.slug == slug))
        return result.scalar_one_or_none()

    async def get_vendors_by_ids(self, vendor_ids: List[int]) -> List[Vendor]:
        if not vendor_ids:
            return []
        result = await self.db.execute(select(Vendor).where(Vendor.id.in_(vendor_ids)))
        return list(result.scalars().all())

    async def slugs_like(self, base_slug: str) -> List[str]:
        result = await self.db.execute(
            select(Vendor.slug).where(
                or_(Vendor.slug == base_slug, Vendor.slug.like(f"{base_slug}-%"))
            )
        )
        return list(result.scalars().all())

    async def list_vendors(
        self,
        page: int = 1,
        limit: int = 20,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Vendor], int]:
        query = select(Vendor)
        if status:
            query = query.where(Vendor.status == status)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(Vendor.business_name.ilike(pattern), Vendor.email.ilike(pattern))
            )

        total = await self.db.scalar(select(func.count()).select_from(query.subquery()))
        result = await self.db.execute(
            query.order_by(Vendor.created_at.desc(), Vendor.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def save(self, vendor: Vendor) -> Vendor:
        await self.db.commit()
        await self.db.refresh(vendor)
        return vendor
