"""
Project Routes

Tenant-scoped; every route needs the X-Tenant-ID header and the write
routes also need X-User-ID.

POST   /api/projects                                → create with owner membership
GET    /api/projects                                → list
GET    /api/projects/{id}                           → get with progress and members
PUT    /api/projects/{id}                           → partial update
DELETE /api/projects/{id}                           → delete with memberships
GET    /api/projects/{id}/members                   → list members
POST   /api/projects/{id}/members                   → add member
PUT    /api/projects/{id}/members/{user_id}         → change role/permissions
DELETE /api/projects/{id}/members/{user_id}         → remove member (never the owner)
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.database import get_db
from taskflow.dependencies import require_tenant_id, require_user_id
from taskflow.exceptions import ProjectMemberNotFoundError, ProjectNotFoundError
from taskflow.models.project import ProjectStatus
from taskflow.schemas.common import ApiResponse, PaginatedApiResponse
from taskflow.schemas.project import (
    ProjectCreate,
    ProjectMemberCreate,
    ProjectMemberResponse,
    ProjectMemberUpdate,
    ProjectResponse,
    ProjectUpdate,
)
from taskflow.services import project_service
from taskflow.utils.pagination import PaginationParams, paginated_response

router = APIRouter(tags=["Projects"])
logger = logging.getLogger(__name__)


@router.post("", response_model=ApiResponse[ProjectResponse], status_code=status.HTTP_201_CREATED)
async def create_project_route(
    payload: ProjectCreate,
    tenant_id: str = Depends(require_tenant_id),
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Create a project owned by the calling user."""
    project = await project_service.create_project(db, payload, tenant_id=tenant_id, owner_id=user_id)
    return ApiResponse(data=ProjectResponse.model_validate(project), message="Project created successfully")


@router.get("", response_model=PaginatedApiResponse[ProjectResponse])
async def list_projects_route(
    status_filter: ProjectStatus | None = Query(None, alias="status"),
    owner_id: str | None = Query(None, alias="ownerId"),
    member_id: str | None = Query(None, alias="memberId"),
    start_date_from: datetime | None = Query(None, alias="startDateFrom"),
    start_date_to: datetime | None = Query(None, alias="startDateTo"),
    end_date_from: datetime | None = Query(None, alias="endDateFrom"),
    end_date_to: datetime | None = Query(None, alias="endDateTo"),
    search: str | None = None,
    pagination: PaginationParams = Depends(),
    tenant_id: str = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    projects, total = await project_service.list_projects(
        db,
        tenant_id,
        status=status_filter.value if status_filter else None,
        owner_id=owner_id,
        member_id=member_id,
        start_date_from=start_date_from,
        start_date_to=start_date_to,
        end_date_from=end_date_from,
        end_date_to=end_date_to,
        search=search,
        page=pagination.page,
        limit=pagination.limit,
    )
    return paginated_response(projects, total, pagination, ProjectResponse.model_validate)


@router.get("/{project_id}", response_model=ApiResponse[ProjectResponse])
async def get_project_route(
    project_id: str,
    tenant_id: str = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    project = await project_service.get_project_by_id(db, project_id, tenant_id)
    if project is None:
        raise ProjectNotFoundError(project_id)
    return ApiResponse(data=ProjectResponse.model_validate(project))


@router.put("/{project_id}", response_model=ApiResponse[ProjectResponse])
async def update_project_route(
    project_id: str,
    payload: ProjectUpdate,
    tenant_id: str = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    project = await project_service.update_project(db, project_id, tenant_id, payload.model_dump(exclude_unset=True))
    if project is None:
        raise ProjectNotFoundError(project_id)
    return ApiResponse(data=ProjectResponse.model_validate(project), message="Project updated successfully")


@router.delete("/{project_id}", response_model=ApiResponse[None])
async def delete_project_route(
    project_id: str,
    tenant_id: str = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    if not await project_service.delete_project(db, project_id, tenant_id):
        raise ProjectNotFoundError(project_id)
    return ApiResponse(message="Project deleted successfully")


# ── Members ────────────────────────────────────────────────────────────────────


@router.get("/{project_id}/members", response_model=ApiResponse[list[ProjectMemberResponse]])
async def get_project_members_route(
    project_id: str,
    tenant_id: str = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    members = await project_service.get_project_members(db, project_id, tenant_id)
    return ApiResponse(data=[ProjectMemberResponse.model_validate(m) for m in members])


@router.post(
    "/{project_id}/members",
    response_model=ApiResponse[ProjectMemberResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_project_member_route(
    project_id: str,
    payload: ProjectMemberCreate,
    tenant_id: str = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    member = await project_service.add_project_member(
        db,
        project_id,
        tenant_id,
        user_id=payload.user_id,
        role=payload.role,
        permissions=payload.permissions,
    )
    return ApiResponse(data=ProjectMemberResponse.model_validate(member), message="Member added successfully")


@router.put("/{project_id}/members/{user_id}", response_model=ApiResponse[ProjectMemberResponse])
async def update_project_member_route(
    project_id: str,
    user_id: str,
    payload: ProjectMemberUpdate,
    tenant_id: str = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    member = await project_service.update_project_member(
        db,
        project_id,
        tenant_id,
        user_id,
        role=payload.role,
        permissions=payload.permissions,
    )
    return ApiResponse(data=ProjectMemberResponse.model_validate(member), message="Member updated successfully")


@router.delete("/{project_id}/members/{user_id}", response_model=ApiResponse[None])
async def remove_project_member_route(
    project_id: str,
    user_id: str,
    tenant_id: str = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    if not await project_service.remove_project_member(db, project_id, tenant_id, user_id):
        raise ProjectMemberNotFoundError(user_id)
    return ApiResponse(message="Member removed successfully")
