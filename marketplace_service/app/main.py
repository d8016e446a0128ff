import time
from contextlib import asynccontextmanager
from typing import Any, Dict, List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.v1.admin_accounts import router as admin_accounts_router
from .api.v1.admin_orders import router as admin_orders_router
from .api.v1.auth import router as auth_router
from .api.v1.cart import router as cart_router
from .api.v1.categories import router as categories_router
from .api.v1.commissions import router as commissions_router
from .api.v1.contact import router as contact_router
from .api.v1.content import router as content_router
from .api.v1.health import router as health_router
from .api.v1.inquiries import router as inquiries_router
from .api.v1.orders import router as orders_router
from .api.v1.products import router as products_router
from .api.v1.seo import router as seo_router
from .api.v1.seo import sitemap_router
from .api.v1.uploads import router as uploads_router
from .api.v1.vendor_orders import router as vendor_orders_router
from .api.v1.vendors import router as vendors_router
from .core import database
from .core.settings import get_settings
from .middleware import (
    CorrelationIdMiddleware,
    setup_marketplace_auth_middleware,
    setup_marketplace_error_handling,
    setup_marketplace_rate_limiting,
)
from .services.storage_service import get_upload_storage
from .utils.logging import setup_marketplace_logging

settings = get_settings()
enable_file_logging = settings.ENVIRONMENT.lower() in ["production", "staging"]

logger = setup_marketplace_logging(
    "marketplace_service",
    log_level=settings.LOG_LEVEL,
    enable_file_logging=enable_file_logging,
    log_dir=settings.LOG_DIR,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    startup_start = time.time()

    try:
        logger.info(
            "Starting marketplace service initialization",
            extra={
                "environment": settings.ENVIRONMENT,
                "debug_mode": settings.DEBUG,
                "file_logging_enabled": enable_file_logging,
                "service_version": settings.APP_VERSION,
            },
        )

        db_start = time.time()
        await database.database_manager.create_tables()
        db_duration = int((time.time() - db_start) * 1000)
        logger.info("Database initialization completed", extra={"duration_ms": db_duration})

        get_upload_storage().ensure_directories()

        logger.info(
            "Marketplace service started successfully",
            extra={"total_startup_duration_ms": int((time.time() - startup_start) * 1000)},
        )
    except Exception as e:
        logger.error(
            "Failed to start marketplace service",
            exc_info=True,
            extra={
                "startup_duration_ms": int((time.time() - startup_start) * 1000),
                "error_type": type(e).__name__,
            },
        )
        raise

    yield

    shutdown_start = time.time()
    logger.info("Starting marketplace service shutdown")
    rate_limiter = getattr(app.state, "rate_limiter", None)
    if rate_limiter is not None:
        await rate_limiter.close()
    await database.database_manager.close()
    logger.info(
        "Marketplace service shutdown completed",
        extra={"shutdown_duration_ms": int((time.time() - shutdown_start) * 1000)},
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    # Middleware added last runs first: rate limiting needs the identity
    # resolved by auth, and CORS must answer preflights before anything else.
    app.state.rate_limiter = setup_marketplace_rate_limiting(app)
    setup_marketplace_auth_middleware(app)
    app.add_middleware(CorrelationIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=settings.CORS_CREDENTIALS,
        allow_methods=settings.CORS_METHODS,
        allow_headers=settings.CORS_HEADERS,
        expose_headers=["X-Correlation-ID", "Retry-After"],
    )
    logger.info(
        "CORS middleware configured",
        extra={
            "allowed_origins": len(settings.CORS_ORIGINS),
            "credentials_allowed": settings.CORS_CREDENTIALS,
        },
    )

    setup_marketplace_error_handling(app)

    routers_info: List[Dict[str, Any]] = []

    app.include_router(health_router, tags=["Health"])
    app.include_router(uploads_router, tags=["Uploads"])
    app.include_router(sitemap_router, tags=["SEO"])
    routers_info.extend(
        {"router": name, "prefix": ""} for name in ("health", "uploads", "sitemap")
    )

    api_routers = [
        (auth_router, "auth", ["Customer Accounts"]),
        (vendors_router, "vendors", ["Vendors"]),
        (admin_accounts_router, "admin_accounts", ["Admin Accounts"]),
        (categories_router, "categories", ["Categories"]),
        (products_router, "products", ["Products"]),
        (cart_router, "cart", ["Cart"]),
        (orders_router, "orders", ["Orders"]),
        (admin_orders_router, "admin_orders", ["Admin Orders"]),
        (vendor_orders_router, "vendor_orders", ["Vendor Orders"]),
        (commissions_router, "commissions", ["Commissions"]),
        (inquiries_router, "inquiries", ["Inquiries"]),
        (content_router, "content", ["Content"]),
        (contact_router, "contact", ["Contact"]),
        (seo_router, "seo", ["SEO"]),
    ]
    for router, name, tags in api_routers:
        app.include_router(router, prefix="/api/v1", tags=tags)
        routers_info.append({"router": name, "prefix": "/api/v1", "tags": tags})

    logger.info(
        "API routes configured",
        extra={"total_routers": len(routers_info), "routers": routers_info},
    )

    return app


app = create_app()
