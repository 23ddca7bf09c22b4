"""
User Routes

GET    /api/users/profile                  → the calling user
PUT    /api/users/profile                  → update name/email
GET    /api/users/search?q=                → search the tenant's users
GET    /api/users/project/{project_id}     → members of a project as users
GET    /api/users/{id}                     → get user
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.database import get_db
from taskflow.dependencies import optional_tenant_id, require_tenant_id, require_user_id
from taskflow.exceptions import UserNotFoundError
from taskflow.schemas.common import ApiResponse
from taskflow.schemas.user import UserResponse, UserUpdate
from taskflow.services import user_service

router = APIRouter(tags=["Users"])
logger = logging.getLogger(__name__)


@router.get("/profile", response_model=ApiResponse[UserResponse])
async def get_profile(
    user_id: str = Depends(require_user_id),
    tenant_id: str | None = Depends(optional_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.get_user_by_id(db, user_id, tenant_id)
    if user is None:
        raise UserNotFoundError(user_id)
    return ApiResponse(data=UserResponse.model_validate(user))


@router.put("/profile", response_model=ApiResponse[UserResponse])
async def update_profile(
    payload: UserUpdate,
    user_id: str = Depends(require_user_id),
    tenant_id: str | None = Depends(optional_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.update_user(db, user_id, payload.model_dump(exclude_unset=True), tenant_id)
    if user is None:
        raise UserNotFoundError(user_id)
    return ApiResponse(data=UserResponse.model_validate(user), message="Profile updated successfully")


@router.get("/search", response_model=ApiResponse[list[UserResponse]])
async def search_users_route(
    q: str = Query(..., min_length=1),
    tenant_id: str = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    users = await user_service.search_users(db, q, tenant_id)
    return ApiResponse(data=[UserResponse.model_validate(u) for u in users])


@router.get("/project/{project_id}", response_model=ApiResponse[list[UserResponse]])
async def get_users_by_project_route(
    project_id: str,
    tenant_id: str = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    users = await user_service.get_users_by_project(db, project_id, tenant_id)
    return ApiResponse(data=[UserResponse.model_validate(u) for u in users])


@router.get("/{user_id}", response_model=ApiResponse[UserResponse])
async def get_user_route(
    user_id: str,
    tenant_id: str = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.get_user_by_id(db, user_id, tenant_id)
    if user is None:
        raise UserNotFoundError(user_id)
    return ApiResponse(data=UserResponse.model_validate(user))
