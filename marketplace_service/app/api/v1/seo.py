from typing import Any, Dict

from fastapi import APIRouter, Query
from fastapi.responses import Response

from ...schemas.seo import BulkSeoRequest, SeoValidationRequest
from ...services.seo_service import SeoService
from ...utils.responses import build_pagination, success_response
from ...utils.seo import validate_seo_data
from ..deps import AdminUserDep, SeoServiceDep

router = APIRouter(prefix="/admin/seo")
sitemap_router = APIRouter()


@router.get("/images")
async def image_seo_analysis(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: Dict[str, Any] = AdminUserDep,
    service: SeoService = SeoServiceDep,
) -> Dict[str, Any]:
    result = await service.image_seo_analysis(page=page, limit=limit)
    return success_response(
        {"products": result["products"], "stats": result["stats"]},
        pagination=build_pagination(page, limit, result["total"]),
    )


@router.get("/images/{product_id}")
async def product_image_analysis(
    product_id: int,
    admin: Dict[str, Any] = AdminUserDep,
    service: SeoService = SeoServiceDep,
) -> Dict[str, Any]:
    return success_response(await service.product_image_analysis(product_id))


@router.get("/products/{product_id}/checklist")
async def product_checklist(
    product_id: int,
    admin: Dict[str, Any] = AdminUserDep,
    service: SeoService = SeoServiceDep,
) -> Dict[str, Any]:
    return success_response(await service.product_checklist(product_id))


@router.get("/categories/{category_id}/checklist")
async def category_checklist(
    category_id: int,
    admin: Dict[str, Any] = AdminUserDep,
    service: SeoService = SeoServiceDep,
) -> Dict[str, Any]:
    return success_response(await service.category_checklist(category_id))


@router.post("/validate")
async def validate_metadata(
    data: SeoValidationRequest,
    admin: Dict[str, Any] = AdminUserDep,
) -> Dict[str, Any]:
    return success_response(validate_seo_data(data.title, data.description, data.slug))


@router.post("/bulk-optimize")
async def bulk_optimize(
    data: BulkSeoRequest,
    admin: Dict[str, Any] = AdminUserDep,
    service: SeoService = SeoServiceDep,
) -> Dict[str, Any]:
    result = await service.bulk_optimize(data)
    return success_response(
        result, f"Optimised {result['succeeded']} of {result['processed']} products"
    )


@router.get("/stats")
async def seo_stats(
    admin: Dict[str, Any] = AdminUserDep,
    service: SeoService = SeoServiceDep,
) -> Dict[str, Any]:
    return success_response(await service.stats())


@sitemap_router.get("/sitemap.xml", include_in_schema=False)
async def sitemap(service: SeoService = SeoServiceDep) -> Response:
    return Response(content=await service.render_sitemap(), media_type="application/xml")


@sitemap_router.get("/sitemap-images.xml", include_in_schema=False)
async def image_sitemap(service: SeoService = SeoServiceDep) -> Response:
    return Response(
        content=await service.render_image_sitemap(), media_type="application/xml"
    )
