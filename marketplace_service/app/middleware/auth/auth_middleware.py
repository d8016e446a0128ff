"""
Authentication middleware for the Marketplace Service.

The middleware only attaches the caller's identity to `request.state`;
storefront routes accept guests, so rejecting requests is left to the
route dependencies below.
"""

from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import FastAPI, HTTPException, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ...core.settings import get_settings
from ...utils.jwt_handler import JWTHandler
from ...utils.logging import setup_marketplace_logging

settings = get_settings()
logger = setup_marketplace_logging("marketplace_auth", log_level=settings.LOG_LEVEL)

DEFAULT_EXCLUDE_PATHS = [
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/uploads",
    "/sitemap.xml",
]


class MarketplaceAuthMiddleware(BaseHTTPMiddleware):
    """
    Resolve the access token (cookie first, then bearer header) into
    `request.state.user_id`, `user_role` and `token_data`.
    """

    def __init__(
        self,
        app: Any,
        exclude_paths: Optional[list[str]] = None,
        jwt_handler: Optional[JWTHandler] = None,
    ):
        super().__init__(app)
        self.exclude_paths = exclude_paths or DEFAULT_EXCLUDE_PATHS
        self.jwt_handler = jwt_handler or JWTHandler(
            secret_key=settings.SECRET_KEY, algorithm=settings.ALGORITHM
        )

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request.state.user_id = None
        request.state.user_role = None
        request.state.token_data = {}

        if self._should_skip_auth(request.url.path):
            return await call_next(request)

        auth_result = self._authenticate_request(request)
        correlation_id = getattr(request.state, "correlation_id", "unknown")

        if auth_result["authenticated"]:
            request.state.user_id = auth_result["user_id"]
            request.state.user_role = auth_result["user_role"]
            request.state.token_data = auth_result["token_data"]
            logger.debug(
                "Request authenticated",
                extra={
                    "correlation_id": correlation_id,
                    "user_id": auth_result["user_id"],
                    "user_role": auth_result["user_role"],
                    "token_source": auth_result["token_source"],
                    "path": request.url.path,
                    "event_type": "auth_success",
                },
            )
        elif auth_result["reason"] != "missing_token":
            logger.warning(
                f"Ignoring unusable token: {auth_result['reason']}",
                extra={
                    "correlation_id": correlation_id,
                    "path": request.url.path,
                    "method": request.method,
                    "reason": auth_result["reason"],
                    "event_type": "auth_failed",
                },
            )

        return await call_next(request)

    def _should_skip_auth(self, path: str) -> bool:
        return any(path.startswith(exclude_path) for exclude_path in self.exclude_paths)

    def _extract_token(self, request: Request) -> tuple[Optional[str], str]:
        token = request.cookies.get(settings.AUTH_COOKIE_NAME)
        if token:
            return token, "cookie"

        authorization = request.headers.get("authorization", "")
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials:
            return credentials.strip(), "header"

        return None, "none"

    def _authenticate_request(self, request: Request) -> Dict[str, Any]:
        token, source = self._extract_token(request)
        if not token:
            return {"authenticated": False, "reason": "missing_token"}

        if token in ("null", "undefined") or not token.strip():
            return {"authenticated": False, "reason": "empty_token"}

        try:
            token_data = self.jwt_handler.decode_token(token)
        except ValueError as e:
            return {"authenticated": False, "reason": str(e)}

        return {
            "authenticated": True,
            "user_id": token_data.user_id,
            "user_role": token_data.role,
            "token_source": source,
            "token_data": {
                "user_id": token_data.user_id,
                "email": token_data.email,
                "name": token_data.name,
                "role": token_data.role,
                "roles": token_data.roles,
                "exp": int(token_data.expires_at.timestamp()),
            },
        }


class AuthenticatedUser:
    """
    Dependency class for FastAPI route authentication.
    Use this in your route handlers to ensure authentication.
    """

    def __init__(self, required_role: Optional[str] = None):
        self.required_role = required_role

    async def __call__(self, request: Request) -> Dict[str, Any]:
        user_id = getattr(request.state, "user_id", None)
        user_role = getattr(request.state, "user_role", None)

        if not user_id:
            raise HTTPException(status_code=401, detail="Authentication required")

        if self.required_role and user_role != self.required_role:
            raise HTTPException(
                status_code=403, detail=f"Required role: {self.required_role}"
            )

        return {
            "user_id": user_id,
            "role": user_role,
            "token_data": getattr(request.state, "token_data", {}),
        }


async def customer_or_guest(request: Request) -> Optional[Dict[str, Any]]:
    """The caller's identity, or None for guests."""
    user_id = getattr(request.state, "user_id", None)
    if not user_id:
        return None
    return {
        "user_id": user_id,
        "role": getattr(request.state, "user_role", None),
        "token_data": getattr(request.state, "token_data", {}),
    }


def setup_marketplace_auth_middleware(
    app: FastAPI,
    exclude_paths: Optional[list[str]] = None,
    jwt_handler: Optional[JWTHandler] = None,
) -> None:
    """
    Setup authentication middleware for the Marketplace Service.

    Args:
        app: FastAPI application instance
        exclude_paths: Path prefixes that never carry identity
        jwt_handler: Optional JWT handler instance to use for token validation
    """
    if exclude_paths is None:
        exclude_paths = DEFAULT_EXCLUDE_PATHS

    app.add_middleware(
        MarketplaceAuthMiddleware,
        exclude_paths=exclude_paths,
        jwt_handler=jwt_handler,
    )

    logger.info(
        "Marketplace authentication middleware configured",
        extra={
            "excluded_paths": exclude_paths,
            "jwt_handler_provided": jwt_handler is not None,
            "event_type": "auth_middleware_setup",
        },
    )


# Convenience instances for route dependencies
authenticated_user = AuthenticatedUser()
admin_user = AuthenticatedUser(required_role="admin")
vendor_user = AuthenticatedUser(required_role="vendor")
customer_user = AuthenticatedUser(required_role="customer")
