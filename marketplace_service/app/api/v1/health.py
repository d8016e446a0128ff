from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.settings import get_settings
from ...utils.logging import setup_marketplace_logging
from ..deps import DatabaseDep

settings = get_settings()
logger = setup_marketplace_logging("health_api", log_level=settings.LOG_LEVEL)
router = APIRouter()


@router.get("/health")
async def health_check(session: AsyncSession = DatabaseDep) -> Dict[str, Any]:
    """Liveness plus a database round trip."""
    checks: Dict[str, Any] = {}
    healthy = True
    try:
        await session.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except SQLAlchemyError as e:
        logger.error("Database health check failed", extra={"error": str(e)})
        checks["database"] = "unavailable"
        healthy = False

    body = {
        "status": "healthy" if healthy else "unhealthy",
        "service": "marketplace-service",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
    }
    if not healthy:
        return JSONResponse(status_code=503, content=body)
    return body
