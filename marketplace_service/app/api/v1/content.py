"""Homepage sections, payment accounts and visit places."""

from typing import Any, Callable, Dict, Optional, Type

from fastapi import APIRouter, File, Form, UploadFile, status
from pydantic import BaseModel

from ...schemas.content import (
    BannerCreate,
    BannerResponse,
    BannerUpdate,
    CardCreate,
    CardResponse,
    CardUpdate,
    HomepageCategoryCreate,
    HomepageCategoryUpdate,
    PaymentAccountCreate,
    PaymentAccountUpdate,
    VisitPlaceResponse,
)
from ...services.content_service import (
    HomepageService,
    PaymentAccountService,
    VisitPlaceService,
    homepage_category_response,
)
from ...utils.responses import success_response
from ..deps import (
    AdminUserDep,
    HomepageServiceDep,
    PaymentAccountServiceDep,
    VisitPlaceServiceDep,
)

router = APIRouter()


def _model_response(schema: Type[BaseModel]) -> Callable[[Any], Dict[str, Any]]:
    return lambda record: schema.model_validate(record).model_dump()


def add_homepage_section_routes(
    section: str,
    label: str,
    create_schema: Type[BaseModel],
    update_schema: Type[BaseModel],
    to_response: Callable[[Any], Dict[str, Any]],
) -> None:
    """Admin CRUD plus image upload for one homepage section"""
    base = f"/admin/homepage/{section}"

    @router.get(base, name=f"list_{section}")
    async def list_records(
        admin: Dict[str, Any] = AdminUserDep,
        service: HomepageService = HomepageServiceDep,
    ) -> Dict[str, Any]:
        records = await getattr(service, section).list_records()
        return success_response([to_response(r) for r in records])

    @router.post(base, status_code=status.HTTP_201_CREATED, name=f"create_{section}")
    async def create_record(
        data: create_schema,  # type: ignore[valid-type]
        admin: Dict[str, Any] = AdminUserDep,
        service: HomepageService = HomepageServiceDep,
    ) -> Dict[str, Any]:
        if section == "categories":
            record = await service.add_homepage_category(data)
        else:
            record = await getattr(service, section).create(data)
        return success_response(to_response(record), f"{label} created")

    @router.put(f"{base}/{{record_id}}", name=f"update_{section}")
    async def update_record(
        record_id: int,
        data: update_schema,  # type: ignore[valid-type]
        admin: Dict[str, Any] = AdminUserDep,
        service: HomepageService = HomepageServiceDep,
    ) -> Dict[str, Any]:
        record = await getattr(service, section).update(record_id, data)
        return success_response(to_response(record), f"{label} updated")

    @router.post(f"{base}/{{record_id}}/image", name=f"upload_{section}_image")
    async def upload_record_image(
        record_id: int,
        file: UploadFile = File(...),
        admin: Dict[str, Any] = AdminUserDep,
        service: HomepageService = HomepageServiceDep,
    ) -> Dict[str, Any]:
        record = await getattr(service, section).upload_image(record_id, file)
        return success_response(to_response(record), "Image uploaded")

    @router.delete(f"{base}/{{record_id}}", name=f"delete_{section}")
    async def delete_record(
        record_id: int,
        admin: Dict[str, Any] = AdminUserDep,
        service: HomepageService = HomepageServiceDep,
    ) -> Dict[str, Any]:
        await getattr(service, section).delete(record_id)
        return success_response(message=f"{label} deleted")


# Storefront


@router.get("/homepage")
async def homepage(service: HomepageService = HomepageServiceDep) -> Dict[str, Any]:
    return success_response(await service.homepage())


@router.get("/payment-accounts")
async def list_payment_accounts(
    service: PaymentAccountService = PaymentAccountServiceDep,
) -> Dict[str, Any]:
    accounts = await service.list_records(active_only=True)
    return success_response([service.to_response(a) for a in accounts])


@router.get("/visit-places")
async def list_visit_places(
    service: VisitPlaceService = VisitPlaceServiceDep,
) -> Dict[str, Any]:
    places = await service.list_records()
    return success_response([VisitPlaceResponse.model_validate(p).model_dump() for p in places])


# Admin: homepage

add_homepage_section_routes(
    "banners", "Banner", BannerCreate, BannerUpdate, _model_response(BannerResponse)
)
add_homepage_section_routes(
    "cards", "Card", CardCreate, CardUpdate, _model_response(CardResponse)
)
add_homepage_section_routes(
    "categories",
    "Homepage category",
    HomepageCategoryCreate,
    HomepageCategoryUpdate,
    homepage_category_response,
)


# Admin: payment accounts


@router.get("/admin/payment-accounts")
async def admin_list_payment_accounts(
    admin: Dict[str, Any] = AdminUserDep,
    service: PaymentAccountService = PaymentAccountServiceDep,
) -> Dict[str, Any]:
    accounts = await service.list_records()
    return success_response([service.to_response(a) for a in accounts])


@router.post("/admin/payment-accounts", status_code=status.HTTP_201_CREATED)
async def create_payment_account(
    data: PaymentAccountCreate,
    admin: Dict[str, Any] = AdminUserDep,
    service: PaymentAccountService = PaymentAccountServiceDep,
) -> Dict[str, Any]:
    account = await service.create(data)
    return success_response(service.to_response(account), "Payment account created")


@router.put("/admin/payment-accounts/{account_id}")
async def update_payment_account(
    account_id: int,
    data: PaymentAccountUpdate,
    admin: Dict[str, Any] = AdminUserDep,
    service: PaymentAccountService = PaymentAccountServiceDep,
) -> Dict[str, Any]:
    account = await service.update(account_id, data)
    return success_response(service.to_response(account), "Payment account updated")


@router.delete("/admin/payment-accounts/{account_id}")
async def delete_payment_account(
    account_id: int,
    admin: Dict[str, Any] = AdminUserDep,
    service: PaymentAccountService = PaymentAccountServiceDep,
) -> Dict[str, Any]:
    await service.delete(account_id)
    return success_response(message="Payment account deleted")


# Admin: visit places


@router.post("/admin/visit-places", status_code=status.HTTP_201_CREATED)
async def create_visit_place(
    name: str = Form(..., min_length=1, max_length=255),
    description: str = Form(..., min_length=1),
    image: UploadFile = File(...),
    admin: Dict[str, Any] = AdminUserDep,
    service: VisitPlaceService = VisitPlaceServiceDep,
) -> Dict[str, Any]:
    place = await service.create_place(name, description, image)
    return success_response(
        VisitPlaceResponse.model_validate(place).model_dump(), "Visit place created"
    )


@router.put("/admin/visit-places/{place_id}")
async def update_visit_place(
    place_id: int,
    name: Optional[str] = Form(None, max_length=255),
    description: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    admin: Dict[str, Any] = AdminUserDep,
    service: VisitPlaceService = VisitPlaceServiceDep,
) -> Dict[str, Any]:
    place = await service.update_place(place_id, name, description, image)
    return success_response(
        VisitPlaceResponse.model_validate(place).model_dump(), "Visit place updated"
    )


@router.delete("/admin/visit-places/{place_id}")
async def delete_visit_place(
    place_id: int,
    admin: Dict[str, Any] = AdminUserDep,
    service: VisitPlaceService = VisitPlaceServiceDep,
) -> Dict[str, Any]:
    await service.delete(place_id)
    return success_response(message="Visit place deleted")
