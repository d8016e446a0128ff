"""Create the marketplace tables, indexes and upload directories."""

import argparse
import asyncio

from ..app.core.database import database_manager
from ..app.services.storage_service import get_upload_storage
from ..app.utils.logging import setup_marketplace_logging

logger = setup_marketplace_logging("marketplace_init_db")


async def init_db(drop: bool = False) -> None:
    try:
        if drop:
            logger.warning("Dropping existing tables")
            await database_manager.drop_tables()
        await database_manager.create_tables()
        get_upload_storage().ensure_directories()
        logger.info(
            "Database initialized", extra={"database_url": database_manager.database_url.split("@")[-1]}
        )
    finally:
        await database_manager.close()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--drop", action="store_true", help="drop all tables before creating them"
    )
    args = parser.parse_args()
    asyncio.run(init_db(drop=args.drop))


if __name__ == "__main__":
    main()
