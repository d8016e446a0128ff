"""Fill in missing product and category SEO metadata."""

import argparse
import asyncio
from typing import Any, Dict, List

from sqlalchemy import select

from ..app.core.database import database_manager
from ..app.models.catalog import Category, Product
from ..app.services.seo_service import category_seo_fixes, plan_product_seo_fixes
from ..app.utils.logging import setup_marketplace_logging

logger = setup_marketplace_logging("marketplace_seo_bulk")

PRODUCT_OPERATIONS = ["generate-alt-text", "generate-seo-keywords", "generate-meta"]


async def run_bulk_update(dry_run: bool = False) -> List[Dict[str, Any]]:
    report: List[Dict[str, Any]] = []
    try:
        async with database_manager.async_session_maker() as session:
            categories = (await session.scalars(select(Category).order_by(Category.id))).all()
            for category in categories:
                changes = category_seo_fixes(category)
                if changes:
                    report.append(
                        {"type": "category", "id": category.id, "name": category.name, "changes": changes}
                    )
                    if not dry_run:
                        for field, value in changes.items():
                            setattr(category, field, value)

            products = (await session.scalars(select(Product).order_by(Product.id))).all()
            for product in products:
                changes = plan_product_seo_fixes(product, PRODUCT_OPERATIONS)
                if changes:
                    report.append(
                        {"type": "product", "id": product.id, "name": product.name, "changes": changes}
                    )
                    if not dry_run:
                        for field, value in changes.items():
                            setattr(product, field, value)

            if dry_run:
                await session.rollback()
            else:
                await session.commit()
    finally:
        await database_manager.close()

    logger.info(
        "SEO bulk update finished",
        extra={"dry_run": dry_run, "updated_records": len(report)},
    )
    return report


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--dry-run", action="store_true", help="report without saving")
    args = parser.parse_args()

    report = asyncio.run(run_bulk_update(dry_run=args.dry_run))
    verb = "would update" if args.dry_run else "updated"
    for item in report:
        print(f"{item['type']} #{item['id']} {item['name']}: {verb} {', '.join(item['changes'])}")
    print(f"{len(report)} records {verb}")


if __name__ == "__main__":
    main()
