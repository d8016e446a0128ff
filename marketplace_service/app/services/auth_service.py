from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.password_security import SecurityUtils
from ..core.settings import get_settings
from ..models.user import User, UserRole, Vendor, VendorStatus
from ..repository.user_repository import UserRepository, VendorRepository
from ..schemas.auth import (
    LoginRequest,
    ProfileUpdate,
    UserAdminUpdate,
    UserRegister,
    VendorProfileUpdate,
    VendorRegister,
    VendorStatusUpdate,
)
from ..utils.jwt_handler import JWTHandler
from ..utils.logging import setup_marketplace_logging as setup_logging
from ..utils.seo import generate_slug, unique_slug

settings = get_settings()
logger = setup_logging("marketplace_service.auth", log_level=settings.LOG_LEVEL)

jwt_handler = JWTHandler(secret_key=settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def set_auth_cookie(response: Response, access_token: str) -> None:
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=access_token,
        httponly=True,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        expires=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        path="/",
        samesite="lax",
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(key=settings.AUTH_COOKIE_NAME, path="/")


class AuthService:
    """Customer, admin and vendor accounts"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repository = UserRepository(session)
        self.vendor_repository = VendorRepository(session)

    async def _ensure_email_available(self, email: str) -> None:
        # One address may not be both a shopper and a vendor
        if await self.user_repository.get_user_by_email(
            email
        ) or await self.vendor_repository.get_vendor_by_email(email):
            logger.warning("Registration failed, email already exists", extra={"email": email})
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered",
            )

    def _issue_token(self, subject_id: int, email: str, role: str, name: str) -> str:
        return jwt_handler.create_access_token(
            subject_id,
            email,
            role,
            name=name,
            expires_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
        )

    async def register_user(self, data: UserRegister) -> User:
        """Register a new customer account"""
        await self._ensure_email_available(data.email)

        user = await self.user_repository.create_user(
            email=data.email.lower(),
            password_hash=SecurityUtils.hash_password(data.password),
            name=data.name,
            phone=data.phone,
            address=data.address,
            city=data.city,
            role=UserRole.CUSTOMER,
        )
        logger.info("Customer registered", extra={"user_id": user.id, "email": user.email})
        return user

    async def authenticate_user(
        self, data: LoginRequest, response: Response
    ) -> Dict[str, Any]:
        """Authenticate a customer or admin and set the session cookie"""
        user = await self.user_repository.get_user_by_email(data.email)
        if not user or not SecurityUtils.verify_password(data.password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
            )
        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="User account is inactive",
            )

        user.last_login_at = datetime.now(timezone.utc).replace(tzinfo=None)
        await self.user_repository.save(user)

        access_token = self._issue_token(user.id, user.email, user.role, user.name)
        set_auth_cookie(response, access_token)

        logger.info("User logged in", extra={"user_id": user.id, "role": user.role})
        return {"user": user, "access_token": access_token, "token_type": "bearer"}

    async def get_user(self, user_id: int) -> User:
        user = await self.user_repository.get_user_by_id(user_id)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="User not found"
            )
        return user

    async def update_profile(self, user_id: int, data: ProfileUpdate) -> User:
        user = await self.get_user(user_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(user, field, value)
        return await self.user_repository.save(user)

    async def list_users(self, **filters):
        return await self.user_repository.list_users(**filters)

    async def admin_update_user(
        self, user_id: int, data: UserAdminUpdate, admin_id: Optional[int] = None
    ) -> User:
        user = await self.get_user(user_id)
        if admin_id is not None and user.id == admin_id and (
            data.role == UserRole.CUSTOMER or data.is_active is False
        ):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Admins cannot demote or deactivate themselves",
            )

        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in changes.items():
            setattr(user, field, value)
        user = await self.user_repository.save(user)

        logger.info(
            "User updated by admin",
            extra={"user_id": user.id, "admin_id": admin_id, "changes": changes},
        )
        return user

    # Vendors

    async def register_vendor(self, data: VendorRegister) -> Vendor:
        """Register a vendor; the account waits for admin approval"""
        await self._ensure_email_available(data.email)

        base_slug = generate_slug(data.business_name) or "vendor"
        slug = unique_slug(base_slug, await self.vendor_repository.slugs_like(base_slug))

        vendor = await self.vendor_repository.create_vendor(
            business_name=data.business_name,
            slug=slug,
            email=data.email.lower(),
            password_hash=SecurityUtils.hash_password(data.password),
            owner_name=data.owner_name,
            phone=data.phone,
            address=data.address,
            city=data.city,
            description=data.description,
            status=VendorStatus.PENDING,
        )
        logger.info(
            "Vendor registered",
            extra={"vendor_id": vendor.id, "vendor_slug": vendor.slug},
        )
        return vendor

    async def authenticate_vendor(
        self, data: LoginRequest, response: Response
    ) -> Dict[str, Any]:
        vendor = await self.vendor_repository.get_vendor_by_email(data.email)
        if not vendor or not SecurityUtils.verify_password(
            data.password, vendor.password_hash
        ):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
            )
        if vendor.status in VendorStatus.BLOCKED:
            logger.warning(
                "Blocked vendor login attempt",
                extra={"vendor_id": vendor.id, "vendor_status": vendor.status},
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Vendor account is {vendor.status}",
            )

        vendor.last_login_at = datetime.now(timezone.utc).replace(tzinfo=None)
        await self.vendor_repository.save(vendor)

        access_token = self._issue_token(
            vendor.id, vendor.email, UserRole.VENDOR, vendor.business_name
        )
        set_auth_cookie(response, access_token)

        logger.info("Vendor logged in", extra={"vendor_id": vendor.id})
        return {"vendor": vendor, "access_token": access_token, "token_type": "bearer"}

    async def get_vendor(self, vendor_id: int) -> Vendor:
        vendor = await self.vendor_repository.get_vendor_by_id(vendor_id)
        if not vendor:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Vendor not found"
            )
        return vendor

    async def get_public_vendor(self, slug: str) -> Vendor:
        vendor = await self.vendor_repository.get_vendor_by_slug(slug)
        if not vendor or vendor.status != VendorStatus.APPROVED:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Vendor not found"
            )
        return vendor

    async def update_vendor_profile(
        self, vendor_id: int, data: VendorProfileUpdate
    ) -> Vendor:
        vendor = await self.get_vendor(vendor_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(vendor, field, value)
        return await self.vendor_repository.save(vendor)

    async def update_vendor_logo(self, vendor_id: int, logo_path: str) -> Vendor:
        vendor = await self.get_vendor(vendor_id)
        vendor.logo = logo_path
        return await self.vendor_repository.save(vendor)

    async def list_vendors(self, **filters):
        return await self.vendor_repository.list_vendors(**filters)

    async def set_vendor_status(
        self, vendor_id: int, data: VendorStatusUpdate, admin_id: Optional[int] = None
    ) -> Vendor:
        vendor = await self.get_vendor(vendor_id)
        old_status = vendor.status

        vendor.status = data.status
        if data.status == VendorStatus.APPROVED and not vendor.approved_at:
            vendor.approved_at = datetime.now(timezone.utc).replace(tzinfo=None)
        if data.commission_rate is not None:
            vendor.commission_rate = Decimal(str(data.commission_rate))

        vendor = await self.vendor_repository.save(vendor)
        logger.info(
            "Vendor status changed",
            extra={
                "vendor_id": vendor.id,
                "old_status": old_status,
                "new_status": vendor.status,
                "admin_id": admin_id,
            },
        )
        return vendor
