"""
SEO dashboards, bulk SEO fixes and sitemaps.
"""

import asyncio
from collections import Counter
from pathlib import PurePath
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status
from jinja2 import Environment, FileSystemLoader, select_autoescape
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.settings import get_settings
from ..models.catalog import ApprovalStatus, Category, Product
from ..providers.email_provider import TEMPLATE_DIR
from ..repository.catalog_repository import CategoryRepository, ProductRepository
from ..schemas.seo import BulkSeoRequest
from ..utils.logging import setup_marketplace_logging as setup_logging
from ..utils.seo import (
    ALT_TEXT_MAX,
    ALT_TEXT_MIN,
    DESCRIPTION_MAX,
    DESCRIPTION_MIN,
    TITLE_MAX,
    TITLE_MIN,
    build_sitemap_entry,
    extract_keywords,
    generate_meta_description,
    generate_meta_title,
    generate_product_alt_text,
    generate_seo_filename,
    generate_slug,
    score_product_image_seo,
    seo_grade,
    validate_image_file_seo,
    validate_seo_data,
)
from .image_service import ImageProcessor
from .storage_service import UploadStorage, get_upload_storage

settings = get_settings()
logger = setup_logging("seo_service", log_level=settings.LOG_LEVEL)

sitemap_env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["xml"]),
)


def plan_product_seo_fixes(
    product: Product, operations: List[str], overwrite: bool = False
) -> Dict[str, Any]:
    """Field values the requested operations would write; nothing is applied."""
    category_name = product.category.name if product.category else None
    changes: Dict[str, Any] = {}

    if "generate-alt-text" in operations and (overwrite or not product.alt_text):
        changes["alt_text"] = generate_product_alt_text(
            product.name, settings.SITE_NAME, brand=product.brand, category=category_name
        )
        extra_images = product.all_images[1:]
        if extra_images:
            changes["image_alt_texts"] = [
                generate_product_alt_text(
                    product.name, settings.SITE_NAME, index=index, category=category_name
                )
                for index in range(len(product.all_images))
            ]

    if "generate-seo-keywords" in operations and (overwrite or not product.seo_keywords):
        keywords = extract_keywords(
            " ".join(filter(None, [product.name, product.brand, product.description]))
        )
        if category_name:
            category_keyword = category_name.lower()
            if category_keyword not in keywords:
                keywords.append(category_keyword)
        changes["seo_keywords"] = keywords

    if "generate-meta" in operations:
        if overwrite or not product.meta_title:
            changes["meta_title"] = generate_meta_title(
                product.name, settings.SITE_NAME, category_name
            )
        if product.description and (
            overwrite
            or not product.meta_description
            or len(product.meta_description) > DESCRIPTION_MAX
        ):
            changes["meta_description"] = generate_meta_description(product.description)

    return changes


def category_seo_fixes(category: Category) -> Dict[str, Any]:
    """Missing or overlong category metadata, for the maintenance script."""
    changes: Dict[str, Any] = {}
    if not category.slug:
        changes["slug"] = generate_slug(category.name)
    if not category.meta_title:
        changes["meta_title"] = generate_meta_title(category.name, settings.SITE_NAME)
    if category.description and (
        not category.meta_description or len(category.meta_description) > DESCRIPTION_MAX
    ):
        changes["meta_description"] = generate_meta_description(category.description)
    return changes


def _check(name: str, passed: bool, message: str) -> Dict[str, Any]:
    return {"check": name, "passed": passed, "message": message}


def metadata_checklist(
    name: str,
    slug: Optional[str],
    meta_title: Optional[str],
    meta_description: Optional[str],
    image: Optional[str],
    alt_text: Optional[str],
    keywords: Optional[List[str]] = None,
) -> Dict[str, Any]:
    checks = [
        _check("name", bool(name and name.strip()), "Has a name"),
        _check(
            "slug",
            bool(slug) and validate_seo_data(slug=slug)["is_valid"],
            "Slug is lowercase, hyphenated and 3-100 characters",
        ),
        _check(
            "meta_title",
            bool(meta_title) and TITLE_MIN <= len(meta_title) <= TITLE_MAX,
            f"Meta title is {TITLE_MIN}-{TITLE_MAX} characters",
        ),
        _check(
            "meta_description",
            bool(meta_description)
            and DESCRIPTION_MIN <= len(meta_description) <= DESCRIPTION_MAX,
            f"Meta description is {DESCRIPTION_MIN}-{DESCRIPTION_MAX} characters",
        ),
        _check("image", bool(image), "Has an image"),
        _check(
            "alt_text",
            bool(alt_text) and ALT_TEXT_MIN <= len(alt_text) <= ALT_TEXT_MAX,
            f"Image alt text is {ALT_TEXT_MIN}-{ALT_TEXT_MAX} characters",
        ),
    ]
    if keywords is not None:
        checks.append(_check("keywords", bool(keywords), "Has SEO keywords"))

    passed = sum(1 for c in checks if c["passed"])
    score = round(passed * 100 / len(checks))
    return {
        "score": score,
        "grade": seo_grade(score),
        "passed": passed,
        "total": len(checks),
        "checks": checks,
    }


class SeoService:
    def __init__(self, session: AsyncSession, storage: Optional[UploadStorage] = None):
        self.session = session
        self.product_repository = ProductRepository(session)
        self.category_repository = CategoryRepository(session)
        self.storage = storage or get_upload_storage()

    async def _product(self, product_id: int) -> Product:
        product = await self.product_repository.get_product_by_id(product_id)
        if not product:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Product not found"
            )
        return product

    async def image_seo_analysis(self, page: int = 1, limit: int = 20) -> Dict[str, Any]:
        """Per-product image SEO scores plus catalog-wide aggregates."""
        products = await self.product_repository.iter_all_products()
        scored = []
        for product in products:
            result = score_product_image_seo(
                product.name, product.image, product.images, product.alt_text
            )
            scored.append(
                {
                    "product_id": product.id,
                    "name": product.name,
                    "slug": product.slug,
                    "image": product.image,
                    "alt_text": product.alt_text,
                    **result,
                }
            )

        scored.sort(key=lambda entry: (entry["seo_score"], entry["product_id"]))
        total = len(scored)
        issue_counts = Counter(issue for entry in scored for issue in entry["issues"])
        grades = Counter(entry["grade"] for entry in scored)
        start = (page - 1) * limit

        return {
            "products": scored[start : start + limit],
            "total": total,
            "stats": {
                "total_products": total,
                "with_images": sum(1 for e in scored if e["image_count"]),
                "average_score": round(sum(e["seo_score"] for e in scored) / total, 1)
                if total
                else 0,
                "needs_attention": sum(1 for e in scored if e["seo_score"] < 70),
                "grade_distribution": {g: grades.get(g, 0) for g in "ABCDF"},
                "common_issues": dict(issue_counts.most_common()),
            },
        }

    async def product_image_analysis(self, product_id: int) -> Dict[str, Any]:
        """File-level checks for every image of one product."""
        product = await self._product(product_id)
        category_name = product.category.name if product.category else None
        processor = ImageProcessor()
        images = []

        for index, relative_path in enumerate(product.all_images):
            path = self.storage.resolve(self.storage.relative_from_url(relative_path))
            entry: Dict[str, Any] = {
                "path": relative_path,
                "url": self.storage.public_url(self.storage.relative_from_url(relative_path)),
                "exists": bool(path and path.is_file()),
                "suggested_alt_text": generate_product_alt_text(
                    product.name,
                    settings.SITE_NAME,
                    index=index,
                    brand=product.brand,
                    category=category_name,
                ),
                "suggested_filename": generate_seo_filename(
                    relative_path, product.name, category_name
                ),
            }
            if entry["exists"]:
                try:
                    metadata = await asyncio.to_thread(processor.extract_metadata, path)
                except OSError as e:
                    entry["error"] = f"Unreadable image: {e}"
                else:
                    entry["metadata"] = metadata
                    entry["validation"] = validate_image_file_seo(
                        PurePath(relative_path).name, metadata
                    )
            images.append(entry)

        return {
            "product_id": product.id,
            "name": product.name,
            "image_count": len(images),
            "missing_files": sum(1 for entry in images if not entry["exists"]),
            "summary": score_product_image_seo(
                product.name, product.image, product.images, product.alt_text
            ),
            "images": images,
        }

    async def product_checklist(self, product_id: int) -> Dict[str, Any]:
        product = await self._product(product_id)
        return {
            "product_id": product.id,
            **metadata_checklist(
                product.name,
                product.slug,
                product.meta_title,
                product.meta_description,
                product.image,
                product.alt_text,
                product.seo_keywords or [],
            ),
        }

    async def category_checklist(self, category_id: int) -> Dict[str, Any]:
        category = await self.category_repository.get_category_by_id(category_id)
        if not category:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Category not found"
            )
        return {
            "category_id": category.id,
            **metadata_checklist(
                category.name,
                category.slug,
                category.meta_title,
                category.meta_description,
                category.image,
                category.image_alt,
            ),
        }

    async def bulk_optimize(self, data: BulkSeoRequest) -> Dict[str, Any]:
        """Apply SEO operations to many products; one bad product never stops the batch."""
        products = await self.product_repository.get_products_by_ids(data.product_ids)
        results = []
        for product_id in data.product_ids:
            product = products.get(product_id)
            if product is None:
                results.append(
                    {"product_id": product_id, "success": False, "error": "Product not found"}
                )
                continue
            changes = plan_product_seo_fixes(product, data.operations, data.overwrite)
            for field, value in changes.items():
                setattr(product, field, value)
            results.append(
                {"product_id": product_id, "success": True, "updated_fields": sorted(changes)}
            )

        await self.session.commit()
        succeeded = sum(1 for r in results if r["success"])
        logger.info(
            "Bulk SEO optimisation finished",
            extra={
                "operations": data.operations,
                "requested": len(data.product_ids),
                "succeeded": succeeded,
            },
        )
        return {
            "processed": len(results),
            "succeeded": succeeded,
            "failed": len(results) - succeeded,
            "results": results,
        }

    async def stats(self) -> Dict[str, Any]:
        image_stats = await self.product_repository.image_statistics()
        categories = await self.category_repository.list_categories(include_inactive=True)
        total = image_stats["total"]

        recommendations = []
        if total and image_stats["with_images"] < total:
            recommendations.append(
                f"{total - image_stats['with_images']} products have no images"
            )
        if total and image_stats["with_alt_text"] < total:
            recommendations.append(
                f"{total - image_stats['with_alt_text']} products are missing alt text"
            )
        if total and image_stats["with_seo_keywords"] < total:
            recommendations.append(
                f"{total - image_stats['with_seo_keywords']} products have no SEO keywords"
            )
        without_meta = sum(1 for c in categories if not c.meta_description)
        if without_meta:
            recommendations.append(f"{without_meta} categories lack a meta description")

        def percent(part: int) -> float:
            return round(part * 100 / total, 1) if total else 0.0

        return {
            "products": {
                **image_stats,
                "image_coverage": percent(image_stats["with_images"]),
                "alt_text_coverage": percent(image_stats["with_alt_text"]),
                "keyword_coverage": percent(image_stats["with_seo_keywords"]),
            },
            "categories": {
                "total": len(categories),
                "with_image": sum(1 for c in categories if c.image),
                "with_meta_description": len(categories) - without_meta,
            },
            "recommendations": recommendations,
        }

    async def _public_products(self) -> List[Product]:
        return [
            p
            for p in await self.product_repository.iter_all_products()
            if p.is_active and p.approval_status == ApprovalStatus.APPROVED
        ]

    async def render_sitemap(self) -> str:
        base_url = settings.FRONTEND_URL
        entries = [build_sitemap_entry("page", "", base_url)]
        for category in await self.category_repository.list_categories():
            entries.append(
                build_sitemap_entry("category", category.slug, base_url, category.updated_at)
            )
        for product in await self._public_products():
            entries.append(
                build_sitemap_entry("product", product.slug, base_url, product.updated_at)
            )
        return sitemap_env.get_template("sitemap.xml").render(entries=entries)

    async def render_image_sitemap(self) -> str:
        base_url = settings.FRONTEND_URL.rstrip("/")
        pages = []
        for product in await self._public_products():
            images = product.all_images
            if not images:
                continue
            alt_texts = product.image_alt_texts or []
            pages.append(
                {
                    "loc": f"{base_url}/product/{product.slug}",
                    "images": [
                        {
                            "loc": base_url
                            + self.storage.public_url(self.storage.relative_from_url(path)),
                            "title": product.name,
                            "caption": (
                                alt_texts[index]
                                if index < len(alt_texts)
                                else product.alt_text or product.name
                            ),
                        }
                        for index, path in enumerate(images)
                    ],
                }
            )
        return sitemap_env.get_template("image_sitemap.xml").render(pages=pages)
