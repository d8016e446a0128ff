"""
Product endpoints for the three audiences: the public storefront, vendors
managing their own listings, and admins moderating the whole catalog.
"""

from decimal import Decimal
from typing import Any, Dict, Optional

from fastapi import APIRouter, File, Query, UploadFile, status

from ...models.catalog import Product
from ...schemas.catalog import (
    AdminProductCreate,
    ProductApprovalUpdate,
    ProductCreate,
    ProductHighlightUpdate,
    ProductUpdate,
)
from ...services.catalog_service import ProductService
from ...utils.responses import build_pagination, success_response
from ..deps import AdminUserDep, ProductServiceDep, VendorUserDep, subject_id

router = APIRouter()

SORT_PATTERN = "^(newest|oldest|price_asc|price_desc|name)$"


def product_page(
    service: ProductService, products: list[Product], page: int, limit: int, total: int
) -> Dict[str, Any]:
    return success_response(
        [service.to_response(p) for p in products],
        pagination=build_pagination(page, limit, total),
    )


# Storefront


@router.get("/products")
async def search_products(
    q: Optional[str] = Query(None, max_length=200, description="Search text"),
    category: Optional[str] = Query(None, description="Category slug"),
    vendor_id: Optional[int] = Query(None, gt=0),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    sort: str = Query("newest", pattern=SORT_PATTERN),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    service: ProductService = ProductServiceDep,
) -> Dict[str, Any]:
    products, total = await service.search_products(
        category_slug=category,
        query_text=q,
        vendor_id=vendor_id,
        min_price=min_price,
        max_price=max_price,
        sort=sort,
        page=page,
        limit=limit,
    )
    return product_page(service, products, page, limit, total)


@router.get("/products/{slug}")
async def get_product(
    slug: str,
    service: ProductService = ProductServiceDep,
) -> Dict[str, Any]:
    product = await service.get_public_product(slug)
    return success_response(service.to_response(product))


# Vendor portal


@router.get("/vendor/products")
async def list_vendor_products(
    approval_status: Optional[str] = Query(None, pattern="^(pending|approved|rejected)$"),
    q: Optional[str] = Query(None, max_length=200),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_vendor: Dict[str, Any] = VendorUserDep,
    service: ProductService = ProductServiceDep,
) -> Dict[str, Any]:
    products, total = await service.search_products(
        vendor_id=subject_id(current_vendor),
        approval_status=approval_status,
        query_text=q,
        public_only=False,
        page=page,
        limit=limit,
    )
    return product_page(service, products, page, limit, total)


@router.post("/vendor/products", status_code=status.HTTP_201_CREATED)
async def create_vendor_product(
    data: ProductCreate,
    current_vendor: Dict[str, Any] = VendorUserDep,
    service: ProductService = ProductServiceDep,
) -> Dict[str, Any]:
    product = await service.create_product(data, vendor_id=subject_id(current_vendor))
    return success_response(
        service.to_response(product), "Product submitted for approval"
    )


@router.get("/vendor/products/{product_id}")
async def get_vendor_product(
    product_id: int,
    current_vendor: Dict[str, Any] = VendorUserDep,
    service: ProductService = ProductServiceDep,
) -> Dict[str, Any]:
    product = await service.get_vendor_product(product_id, subject_id(current_vendor))
    return success_response(service.to_response(product))


@router.put("/vendor/products/{product_id}")
async def update_vendor_product(
    product_id: int,
    data: ProductUpdate,
    current_vendor: Dict[str, Any] = VendorUserDep,
    service: ProductService = ProductServiceDep,
) -> Dict[str, Any]:
    product = await service.get_vendor_product(product_id, subject_id(current_vendor))
    product = await service.update_product(product, data, by_vendor=True)
    return success_response(service.to_response(product), "Product updated")


@router.post("/vendor/products/{product_id}/images")
async def upload_vendor_product_image(
    product_id: int,
    file: UploadFile = File(...),
    current_vendor: Dict[str, Any] = VendorUserDep,
    service: ProductService = ProductServiceDep,
) -> Dict[str, Any]:
    product = await service.get_vendor_product(product_id, subject_id(current_vendor))
    product = await service.upload_product_image(product, file)
    return success_response(service.to_response(product), "Image uploaded")


@router.delete("/vendor/products/{product_id}")
async def delete_vendor_product(
    product_id: int,
    current_vendor: Dict[str, Any] = VendorUserDep,
    service: ProductService = ProductServiceDep,
) -> Dict[str, Any]:
    product = await service.get_vendor_product(product_id, subject_id(current_vendor))
    removed = await service.delete_product(product)
    return success_response({"removed_files": removed}, "Product deleted")


# Admin


@router.get("/admin/products")
async def admin_list_products(
    approval_status: Optional[str] = Query(None, pattern="^(pending|approved|rejected)$"),
    vendor_id: Optional[int] = Query(None, gt=0),
    q: Optional[str] = Query(None, max_length=200),
    sort: str = Query("newest", pattern=SORT_PATTERN),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: Dict[str, Any] = AdminUserDep,
    service: ProductService = ProductServiceDep,
) -> Dict[str, Any]:
    products, total = await service.search_products(
        approval_status=approval_status,
        vendor_id=vendor_id,
        query_text=q,
        sort=sort,
        public_only=False,
        page=page,
        limit=limit,
    )
    return product_page(service, products, page, limit, total)


@router.post("/admin/products", status_code=status.HTTP_201_CREATED)
async def admin_create_product(
    data: AdminProductCreate,
    admin: Dict[str, Any] = AdminUserDep,
    service: ProductService = ProductServiceDep,
) -> Dict[str, Any]:
    product = await service.create_product(data)
    return success_response(service.to_response(product), "Product created")


@router.get("/admin/products/{product_id}")
async def admin_get_product(
    product_id: int,
    admin: Dict[str, Any] = AdminUserDep,
    service: ProductService = ProductServiceDep,
) -> Dict[str, Any]:
    product = await service.get_product(product_id)
    return success_response(service.to_response(product))


@router.put("/admin/products/{product_id}")
async def admin_update_product(
    product_id: int,
    data: ProductUpdate,
    admin: Dict[str, Any] = AdminUserDep,
    service: ProductService = ProductServiceDep,
) -> Dict[str, Any]:
    product = await service.get_product(product_id)
    product = await service.update_product(product, data)
    return success_response(service.to_response(product), "Product updated")


@router.patch("/admin/products/{product_id}/approval")
async def moderate_product(
    product_id: int,
    data: ProductApprovalUpdate,
    admin: Dict[str, Any] = AdminUserDep,
    service: ProductService = ProductServiceDep,
) -> Dict[str, Any]:
    product = await service.set_approval(product_id, data)
    return success_response(
        service.to_response(product), f"Product {product.approval_status}"
    )


@router.patch("/admin/products/{product_id}/highlights")
async def set_product_highlights(
    product_id: int,
    data: ProductHighlightUpdate,
    admin: Dict[str, Any] = AdminUserDep,
    service: ProductService = ProductServiceDep,
) -> Dict[str, Any]:
    product = await service.set_highlights(product_id, data)
    return success_response(service.to_response(product), "Product updated")


@router.post("/admin/products/{product_id}/images")
async def admin_upload_product_image(
    product_id: int,
    file: UploadFile = File(...),
    watermark: bool = Query(True),
    admin: Dict[str, Any] = AdminUserDep,
    service: ProductService = ProductServiceDep,
) -> Dict[str, Any]:
    product = await service.get_product(product_id)
    product = await service.upload_product_image(product, file, watermark=watermark)
    return success_response(service.to_response(product), "Image uploaded")


@router.delete("/admin/products/{product_id}")
async def admin_delete_product(
    product_id: int,
    admin: Dict[str, Any] = AdminUserDep,
    service: ProductService = ProductServiceDep,
) -> Dict[str, Any]:
    product = await service.get_product(product_id)
    removed = await service.delete_product(product)
    return success_response({"removed_files": removed}, "Product deleted")
