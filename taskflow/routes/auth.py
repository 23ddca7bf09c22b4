"""
Authentication Routes

POST   /api/auth/register          → create account, returns token pair
POST   /api/auth/login             → credentials for a token pair
POST   /api/auth/refresh           → rotate the refresh token
POST   /api/auth/logout            → revoke the refresh token
GET    /api/auth/validate          → decode the bearer access token
POST   /api/auth/change-password   → requires the current password
POST   /api/auth/forgot-password   → issue a reset token
POST   /api/auth/reset-password    → consume a reset token
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.database import get_db
from taskflow.dependencies import get_token_claims, optional_tenant_id, require_user_id
from taskflow.middleware.rate_limit import AUTH_RATE_LIMIT, limiter
from taskflow.schemas.auth import (
    AuthResult,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenPair,
)
from taskflow.schemas.common import ApiResponse
from taskflow.schemas.user import UserResponse
from taskflow.services import auth_service

router = APIRouter(tags=["Auth"])
logger = logging.getLogger(__name__)


def _auth_result(result: dict[str, Any]) -> AuthResult:
    return AuthResult(
        access_token=result["access_token"],
        refresh_token=result["refresh_token"],
        user=UserResponse.model_validate(result["user"]),
    )


@router.post("/register", response_model=ApiResponse[AuthResult], status_code=status.HTTP_201_CREATED)
@limiter.limit(AUTH_RATE_LIMIT)
async def register(request: Request, payload: RegisterRequest, db: AsyncSession = Depends(get_db)):
    result = await auth_service.register_user(
        db,
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        tenant_id=payload.tenant_id,
    )
    return ApiResponse(data=_auth_result(result), message="User registered successfully")


@router.post("/login", response_model=ApiResponse[AuthResult])
@limiter.limit(AUTH_RATE_LIMIT)
async def login(
    request: Request,
    payload: LoginRequest,
    tenant_id: str | None = Depends(optional_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    result = await auth_service.login(db, payload.email, payload.password, tenant_id)
    return ApiResponse(data=_auth_result(result), message="Login successful")


@router.post("/refresh", response_model=ApiResponse[TokenPair])
async def refresh(payload: RefreshRequest, db: AsyncSession = Depends(get_db)):
    tokens = await auth_service.refresh_tokens(db, payload.refresh_token)
    return ApiResponse(data=TokenPair(**tokens), message="Token refreshed successfully")


@router.post("/logout", response_model=ApiResponse[None])
async def logout(payload: RefreshRequest, db: AsyncSession = Depends(get_db)):
    await auth_service.logout(db, payload.refresh_token)
    return ApiResponse(message="Logout successful")


@router.get("/validate", response_model=ApiResponse[dict[str, Any]])
async def validate(claims: dict[str, Any] = Depends(get_token_claims)):
    return ApiResponse(data=claims, message="Token is valid")


@router.post("/change-password", response_model=ApiResponse[None])
async def change_password(
    payload: ChangePasswordRequest,
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
):
    await auth_service.change_password(db, user_id, payload.current_password, payload.new_password)
    return ApiResponse(message="Password changed successfully")


@router.post("/forgot-password", response_model=ApiResponse[None])
@limiter.limit(AUTH_RATE_LIMIT)
async def forgot_password(
    request: Request,
    payload: ForgotPasswordRequest,
    tenant_id: str | None = Depends(optional_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    """Same answer whether or not the email belongs to an account."""
    await auth_service.forgot_password(db, payload.email, tenant_id)
    return ApiResponse(message="If the email exists, a password reset link has been sent")


@router.post("/reset-password", response_model=ApiResponse[None])
async def reset_password(payload: ResetPasswordRequest, db: AsyncSession = Depends(get_db)):
    await auth_service.reset_password(db, payload.token, payload.new_password)
    return ApiResponse(message="Password reset successfully")
