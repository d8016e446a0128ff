from typing import Any, Dict

from fastapi import APIRouter, File, Query, UploadFile, status

from ...schemas.catalog import CategoryCreate, CategoryUpdate
from ...services.catalog_service import CategoryService, convert_category_response
from ...utils.responses import success_response
from ..deps import AdminUserDep, CategoryServiceDep

router = APIRouter()


@router.get("/categories")
async def list_categories(
    service: CategoryService = CategoryServiceDep,
) -> Dict[str, Any]:
    categories = await service.list_categories()
    return success_response([convert_category_response(c) for c in categories])


@router.get("/categories/{slug}")
async def get_category(
    slug: str,
    service: CategoryService = CategoryServiceDep,
) -> Dict[str, Any]:
    category = await service.get_category_by_slug(slug)
    return success_response(convert_category_response(category))


@router.get("/admin/categories")
async def admin_list_categories(
    include_inactive: bool = Query(True),
    admin: Dict[str, Any] = AdminUserDep,
    service: CategoryService = CategoryServiceDep,
) -> Dict[str, Any]:
    categories = await service.list_categories(include_inactive=include_inactive)
    return success_response([convert_category_response(c) for c in categories])


@router.post("/admin/categories", status_code=status.HTTP_201_CREATED)
async def create_category(
    data: CategoryCreate,
    admin: Dict[str, Any] = AdminUserDep,
    service: CategoryService = CategoryServiceDep,
) -> Dict[str, Any]:
    category = await service.create_category(data)
    return success_response(convert_category_response(category), "Category created")


@router.put("/admin/categories/{category_id}")
async def update_category(
    category_id: int,
    data: CategoryUpdate,
    admin: Dict[str, Any] = AdminUserDep,
    service: CategoryService = CategoryServiceDep,
) -> Dict[str, Any]:
    category = await service.update_category(category_id, data)
    return success_response(convert_category_response(category), "Category updated")


@router.post("/admin/categories/{category_id}/image")
async def upload_category_image(
    category_id: int,
    file: UploadFile = File(...),
    admin: Dict[str, Any] = AdminUserDep,
    service: CategoryService = CategoryServiceDep,
) -> Dict[str, Any]:
    category = await service.upload_category_image(category_id, file)
    return success_response(convert_category_response(category), "Image uploaded")


@router.delete("/admin/categories/{category_id}")
async def delete_category(
    category_id: int,
    admin: Dict[str, Any] = AdminUserDep,
    service: CategoryService = CategoryServiceDep,
) -> Dict[str, Any]:
    await service.delete_category(category_id)
    return success_response(message="Category deleted")
