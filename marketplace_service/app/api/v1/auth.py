from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, status
from fastapi.responses import Response

from ...schemas.auth import LoginRequest, ProfileUpdate, UserRegister, UserResponse
from ...services.auth_service import AuthService, clear_auth_cookie
from ...utils.logging import setup_marketplace_logging
from ...utils.responses import success_response
from ..deps import (
    AuthServiceDep,
    CorrelationIdDep,
    CurrentUserDep,
    subject_id,
)

logger = setup_marketplace_logging("auth_api")
router = APIRouter(prefix="/auth")


def ensure_user_account(current_user: Dict[str, Any]) -> None:
    # Vendor tokens carry a vendor id; their profile lives under /vendors/me
    if current_user["role"] == "vendor":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Vendor accounts use the vendor profile endpoints",
        )


def user_payload(user) -> Dict[str, Any]:
    return UserResponse.model_validate(user).model_dump()


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    data: UserRegister,
    service: AuthService = AuthServiceDep,
    correlation_id: Optional[str] = CorrelationIdDep,
) -> Dict[str, Any]:
    user = await service.register_user(data)
    logger.info(
        f"User registered successfully: {user.email}",
        extra={"correlation_id": correlation_id},
    )
    return success_response(user_payload(user), "Registration successful")


@router.post("/login")
async def login(
    response: Response,
    data: LoginRequest,
    service: AuthService = AuthServiceDep,
) -> Dict[str, Any]:
    result = await service.authenticate_user(data, response)
    return success_response(
        {
            "user": user_payload(result["user"]),
            "access_token": result["access_token"],
            "token_type": result["token_type"],
        },
        "Login successful",
    )


@router.post("/logout")
async def logout(response: Response) -> Dict[str, Any]:
    clear_auth_cookie(response)
    return success_response(message="Logged out")


@router.get("/me")
async def me(
    current_user: Dict[str, Any] = CurrentUserDep,
    service: AuthService = AuthServiceDep,
) -> Dict[str, Any]:
    ensure_user_account(current_user)
    user = await service.get_user(subject_id(current_user))
    return success_response(user_payload(user))


@router.put("/me")
async def update_me(
    data: ProfileUpdate,
    current_user: Dict[str, Any] = CurrentUserDep,
    service: AuthService = AuthServiceDep,
) -> Dict[str, Any]:
    ensure_user_account(current_user)
    user = await service.update_profile(subject_id(current_user), data)
    return success_response(user_payload(user), "Profile updated")
