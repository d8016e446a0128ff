"""
Error handling for the Marketplace Service.
Provides centralized exception handling and standardized error responses.
"""

import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ...core.settings import get_settings
from ...utils.logging import setup_marketplace_logging

settings = get_settings()
logger = setup_marketplace_logging(
    "marketplace_error_handler", log_level=settings.LOG_LEVEL
)


def _validation_details(errors: Any) -> list[Dict[str, Any]]:
    return [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in errors
    ]


class MarketplaceErrorHandler:
    """
    Centralized error handling for the Marketplace Service.

    Every failure leaves the API as
    `{"success": false, "message": ..., "error": {...}}`.
    """

    @staticmethod
    def setup_error_handlers(app: FastAPI) -> None:
        @app.exception_handler(StarletteHTTPException)
        async def http_exception_handler(
            request: Request, exc: StarletteHTTPException
        ) -> JSONResponse:
            if isinstance(exc.detail, str):
                message, details = exc.detail, None
            else:
                message, details = "Request failed", {"detail": exc.detail}
            return MarketplaceErrorHandler._create_error_response(
                request=request,
                status_code=exc.status_code,
                error_type="http_error",
                message=message,
                details=details,
                headers=getattr(exc, "headers", None),
            )

        @app.exception_handler(RequestValidationError)
        async def validation_exception_handler(
            request: Request, exc: RequestValidationError
        ) -> JSONResponse:
            return MarketplaceErrorHandler._create_error_response(
                request=request,
                status_code=422,
                error_type="validation_error",
                message="Request validation failed",
                details={"validation_errors": _validation_details(exc.errors())},
            )

        @app.exception_handler(ValidationError)
        async def pydantic_validation_exception_handler(
            request: Request, exc: ValidationError
        ) -> JSONResponse:
            return MarketplaceErrorHandler._create_error_response(
                request=request,
                status_code=400,
                error_type="data_validation_error",
                message="Data validation failed",
                details={"validation_errors": _validation_details(exc.errors())},
            )

        @app.exception_handler(ValueError)
        async def value_error_handler(
            request: Request, exc: ValueError
        ) -> JSONResponse:
            return MarketplaceErrorHandler._create_error_response(
                request=request,
                status_code=400,
                error_type="value_error",
                message=str(exc),
            )

        @app.exception_handler(PermissionError)
        async def permission_error_handler(
            request: Request, exc: PermissionError
        ) -> JSONResponse:
            return MarketplaceErrorHandler._create_error_response(
                request=request,
                status_code=403,
                error_type="permission_error",
                message="Insufficient permissions",
            )

        @app.exception_handler(FileNotFoundError)
        async def file_not_found_handler(
            request: Request, exc: FileNotFoundError
        ) -> JSONResponse:
            return MarketplaceErrorHandler._create_error_response(
                request=request,
                status_code=404,
                error_type="not_found",
                message="File not found",
            )

        @app.exception_handler(Exception)
        async def unhandled_exception_handler(
            request: Request, exc: Exception
        ) -> JSONResponse:
            exc_traceback = traceback.format_exc()
            logger.error(
                "Unhandled exception occurred",
                extra={
                    "correlation_id": getattr(request.state, "correlation_id", "unknown"),
                    "user_id": getattr(request.state, "user_id", None) or "anonymous",
                    "path": request.url.path,
                    "method": request.method,
                    "exception_type": type(exc).__name__,
                    "exception_message": str(exc),
                    "event_type": "unhandled_exception",
                },
                exc_info=True,
            )

            details = None
            if not settings.is_production:
                details = {
                    "exception": f"{type(exc).__name__}: {exc}",
                    "traceback": exc_traceback,
                }
            return MarketplaceErrorHandler._create_error_response(
                request=request,
                status_code=500,
                error_type="internal_server_error",
                message="An internal server error occurred",
                debug=details,
            )

    @staticmethod
    def _create_error_response(
        request: Request,
        status_code: int,
        error_type: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        debug: Optional[Dict[str, Any]] = None,
    ) -> JSONResponse:
        """
        Create a standardized error response.

        Args:
            request: The FastAPI request object
            status_code: HTTP status code
            error_type: Type of error for categorization
            message: Human-readable error message
            details: Additional error details
            headers: Headers carried by the original exception
            debug: Exception text and traceback, outside production only
        """
        correlation_id = getattr(request.state, "correlation_id", "unknown")
        user_id = getattr(request.state, "user_id", None) or "anonymous"

        error: Dict[str, Any] = {
            "type": error_type,
            "status_code": status_code,
            "path": request.url.path,
            "method": request.method,
            "correlation_id": correlation_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if details:
            error["details"] = details
        if debug:
            error.update(debug)

        if status_code < 500:
            logger.warning(
                f"Client error: {error_type}",
                extra={
                    "correlation_id": correlation_id,
                    "user_id": user_id,
                    "status_code": status_code,
                    "error_type": error_type,
                    "detail": message,
                    "path": request.url.path,
                    "method": request.method,
                    "event_type": "client_error",
                },
            )

        return JSONResponse(
            status_code=status_code,
            content={"success": False, "message": message, "error": error},
            headers=headers,
        )


def setup_marketplace_error_handling(app: FastAPI) -> None:
    """
    Convenience function to setup error handling for the Marketplace Service.

    Args:
        app: FastAPI application instance
    """
    MarketplaceErrorHandler.setup_error_handlers(app)

    logger.info(
        "Marketplace error handling configured",
        extra={"event_type": "error_handler_setup"},
    )
