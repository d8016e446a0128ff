from typing import Any, Dict, Optional

from fastapi import APIRouter, File, Query, UploadFile, status
from fastapi.responses import Response

from ...models.user import VendorStatus
from ...schemas.auth import (
    LoginRequest,
    VendorProfileUpdate,
    VendorPublicResponse,
    VendorRegister,
    VendorResponse,
)
from ...services.auth_service import AuthService
from ...services.storage_service import UploadStorage
from ...services.vendor_order_service import VendorOrderService
from ...utils.logging import setup_marketplace_logging
from ...utils.responses import build_pagination, success_response
from ..deps import (
    AuthServiceDep,
    CorrelationIdDep,
    StorageDep,
    VendorOrderServiceDep,
    VendorUserDep,
    subject_id,
)

logger = setup_marketplace_logging("vendors_api")
router = APIRouter(prefix="/vendors")


def vendor_payload(vendor) -> Dict[str, Any]:
    return VendorResponse.model_validate(vendor).model_dump()


@router.post("/auth/register", status_code=status.HTTP_201_CREATED)
async def register_vendor(
    data: VendorRegister,
    service: AuthService = AuthServiceDep,
    correlation_id: Optional[str] = CorrelationIdDep,
) -> Dict[str, Any]:
    vendor = await service.register_vendor(data)
    logger.info(
        f"Vendor registered: {vendor.slug}",
        extra={"correlation_id": correlation_id},
    )
    return success_response(
        vendor_payload(vendor),
        "Registration received. Your account will be reviewed by an administrator.",
    )


@router.post("/auth/login")
async def login_vendor(
    response: Response,
    data: LoginRequest,
    service: AuthService = AuthServiceDep,
) -> Dict[str, Any]:
    result = await service.authenticate_vendor(data, response)
    return success_response(
        {
            "vendor": vendor_payload(result["vendor"]),
            "access_token": result["access_token"],
            "token_type": result["token_type"],
        },
        "Login successful",
    )


@router.get("/me")
async def vendor_profile(
    current_vendor: Dict[str, Any] = VendorUserDep,
    service: AuthService = AuthServiceDep,
) -> Dict[str, Any]:
    vendor = await service.get_vendor(subject_id(current_vendor))
    return success_response(vendor_payload(vendor))


@router.put("/me")
async def update_vendor_profile(
    data: VendorProfileUpdate,
    current_vendor: Dict[str, Any] = VendorUserDep,
    service: AuthService = AuthServiceDep,
) -> Dict[str, Any]:
    vendor = await service.update_vendor_profile(subject_id(current_vendor), data)
    return success_response(vendor_payload(vendor), "Profile updated")


@router.post("/me/logo")
async def upload_vendor_logo(
    file: UploadFile = File(...),
    current_vendor: Dict[str, Any] = VendorUserDep,
    service: AuthService = AuthServiceDep,
    storage: UploadStorage = StorageDep,
) -> Dict[str, Any]:
    vendor = await service.get_vendor(subject_id(current_vendor))
    stored = await storage.save_image(file, "vendor-logos", vendor.business_name)
    old_logo = vendor.logo
    vendor = await service.update_vendor_logo(vendor.id, stored["path"])
    if old_logo and old_logo != vendor.logo:
        storage.delete(old_logo)
    return success_response(vendor_payload(vendor), "Logo updated")


@router.get("/me/dashboard")
async def vendor_dashboard(
    current_vendor: Dict[str, Any] = VendorUserDep,
    service: VendorOrderService = VendorOrderServiceDep,
) -> Dict[str, Any]:
    return success_response(await service.vendor_dashboard(subject_id(current_vendor)))


@router.get("")
async def list_public_vendors(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    service: AuthService = AuthServiceDep,
) -> Dict[str, Any]:
    vendors, total = await service.list_vendors(
        page=page, limit=limit, status=VendorStatus.APPROVED, search=search
    )
    return success_response(
        [VendorPublicResponse.model_validate(v).model_dump() for v in vendors],
        pagination=build_pagination(page, limit, total),
    )


@router.get("/{slug}")
async def get_public_vendor(
    slug: str,
    service: AuthService = AuthServiceDep,
) -> Dict[str, Any]:
    vendor = await service.get_public_vendor(slug)
    return success_response(VendorPublicResponse.model_validate(vendor).model_dump())
