"""Admin management of customer accounts and vendors."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Query

from ...schemas.auth import UserAdminUpdate, UserResponse, VendorResponse, VendorStatusUpdate
from ...services.auth_service import AuthService
from ...utils.responses import build_pagination, success_response
from ..deps import AdminUserDep, AuthServiceDep, subject_id

router = APIRouter(prefix="/admin")


@router.get("/users")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    role: Optional[str] = Query(None, pattern="^(customer|admin)$"),
    search: Optional[str] = Query(None, max_length=100),
    admin: Dict[str, Any] = AdminUserDep,
    service: AuthService = AuthServiceDep,
) -> Dict[str, Any]:
    users, total = await service.list_users(page=page, limit=limit, role=role, search=search)
    return success_response(
        [UserResponse.model_validate(u).model_dump() for u in users],
        pagination=build_pagination(page, limit, total),
    )


@router.patch("/users/{user_id}")
async def update_user(
    user_id: int,
    data: UserAdminUpdate,
    admin: Dict[str, Any] = AdminUserDep,
    service: AuthService = AuthServiceDep,
) -> Dict[str, Any]:
    user = await service.admin_update_user(user_id, data, admin_id=subject_id(admin))
    return success_response(UserResponse.model_validate(user).model_dump(), "User updated")


@router.get("/vendors")
async def list_vendors(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = Query(None, pattern="^(pending|approved|rejected|suspended)$"),
    search: Optional[str] = Query(None, max_length=100),
    admin: Dict[str, Any] = AdminUserDep,
    service: AuthService = AuthServiceDep,
) -> Dict[str, Any]:
    vendors, total = await service.list_vendors(
        page=page, limit=limit, status=status, search=search
    )
    return success_response(
        [VendorResponse.model_validate(v).model_dump() for v in vendors],
        pagination=build_pagination(page, limit, total),
    )


@router.patch("/vendors/{vendor_id}/status")
async def set_vendor_status(
    vendor_id: int,
    data: VendorStatusUpdate,
    admin: Dict[str, Any] = AdminUserDep,
    service: AuthService = AuthServiceDep,
) -> Dict[str, Any]:
    vendor = await service.set_vendor_status(vendor_id, data, admin_id=subject_id(admin))
    return success_response(
        VendorResponse.model_validate(vendor).model_dump(),
        f"Vendor {vendor.status}",
    )
