"""
Tenant Administration Routes

POST   /api/tenants                        → provision tenant (pending)
GET    /api/tenants                        → list tenants
GET    /api/tenants/domain/{domain}        → resolve tenant by domain or subdomain
GET    /api/tenants/{id}                   → get tenant
PUT    /api/tenants/{id}                   → partial update
PUT    /api/tenants/{id}/settings          → shallow-merge settings
PUT    /api/tenants/{id}/upgrade-plan      → change plan, quotas follow
PUT    /api/tenants/{id}/activate          → status active
PUT    /api/tenants/{id}/suspend           → status suspended
DELETE /api/tenants/{id}                   → soft delete (status cancelled)
GET    /api/tenants/{id}/usage             → usage against quotas
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.database import get_db
from taskflow.exceptions import TenantNotFoundError
from taskflow.models.tenant import Tenant, TenantPlan, TenantStatus
from taskflow.schemas.common import ApiResponse, PaginatedApiResponse
from taskflow.schemas.tenant import (
    TenantCreate,
    TenantPlanUpgrade,
    TenantResponse,
    TenantUpdate,
    TenantUsageResponse,
)
from taskflow.services import tenant_service
from taskflow.utils.pagination import PaginationParams, paginated_response

router = APIRouter(tags=["Tenants"])
logger = logging.getLogger(__name__)


def _found(tenant: Tenant | None, tenant_id: str) -> TenantResponse:
    if tenant is None:
        raise TenantNotFoundError(tenant_id)
    return TenantResponse.model_validate(tenant)


# ── Routes ─────────────────────────────────────────────────────────────────────


@router.post("", response_model=ApiResponse[TenantResponse], status_code=status.HTTP_201_CREATED)
async def create_tenant_route(
    payload: TenantCreate,
    db: AsyncSession = Depends(get_db),
):
    tenant = await tenant_service.create_tenant(
        db,
        name=payload.name,
        domain=payload.domain,
        owner_id=payload.owner_id,
        subdomain=payload.subdomain,
        plan=payload.plan,
        settings=payload.settings,
    )
    return ApiResponse(data=TenantResponse.model_validate(tenant), message="Tenant created successfully")


@router.get("", response_model=PaginatedApiResponse[TenantResponse])
async def list_tenants_route(
    status_filter: TenantStatus | None = Query(None, alias="status"),
    plan: TenantPlan | None = None,
    owner_id: str | None = Query(None, alias="ownerId"),
    search: str | None = None,
    pagination: PaginationParams = Depends(),
    db: AsyncSession = Depends(get_db),
):
    tenants, total = await tenant_service.list_tenants(
        db,
        status=status_filter.value if status_filter else None,
        plan=plan.value if plan else None,
        owner_id=owner_id,
        search=search,
        page=pagination.page,
        limit=pagination.limit,
    )
    return paginated_response(tenants, total, pagination, TenantResponse.model_validate)


@router.get("/domain/{domain}", response_model=ApiResponse[TenantResponse])
async def get_tenant_by_domain_route(domain: str, db: AsyncSession = Depends(get_db)):
    tenant = await tenant_service.get_tenant_by_domain(db, domain)
    return ApiResponse(data=_found(tenant, domain))


@router.get("/{tenant_id}", response_model=ApiResponse[TenantResponse])
async def get_tenant_route(tenant_id: str, db: AsyncSession = Depends(get_db)):
    tenant = await tenant_service.get_tenant_by_id(db, tenant_id)
    return ApiResponse(data=_found(tenant, tenant_id))


@router.put("/{tenant_id}", response_model=ApiResponse[TenantResponse])
async def update_tenant_route(
    tenant_id: str,
    payload: TenantUpdate,
    db: AsyncSession = Depends(get_db),
):
    tenant = await tenant_service.update_tenant(db, tenant_id, payload.model_dump(exclude_unset=True))
    return ApiResponse(data=_found(tenant, tenant_id), message="Tenant updated successfully")


@router.put("/{tenant_id}/settings", response_model=ApiResponse[TenantResponse])
async def update_tenant_settings_route(
    tenant_id: str,
    payload: dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
):
    tenant = await tenant_service.update_tenant_settings(db, tenant_id, payload)
    return ApiResponse(data=_found(tenant, tenant_id), message="Tenant settings updated successfully")


@router.put("/{tenant_id}/upgrade-plan", response_model=ApiResponse[TenantResponse])
async def upgrade_tenant_plan_route(
    tenant_id: str,
    payload: TenantPlanUpgrade,
    db: AsyncSession = Depends(get_db),
):
    tenant = await tenant_service.upgrade_tenant_plan(db, tenant_id, payload.plan)
    return ApiResponse(data=_found(tenant, tenant_id), message="Tenant plan upgraded successfully")


@router.put("/{tenant_id}/activate", response_model=ApiResponse[TenantResponse])
async def activate_tenant_route(tenant_id: str, db: AsyncSession = Depends(get_db)):
    tenant = await tenant_service.activate_tenant(db, tenant_id)
    return ApiResponse(data=_found(tenant, tenant_id), message="Tenant activated successfully")


@router.put("/{tenant_id}/suspend", response_model=ApiResponse[TenantResponse])
async def suspend_tenant_route(tenant_id: str, db: AsyncSession = Depends(get_db)):
    tenant = await tenant_service.suspend_tenant(db, tenant_id)
    return ApiResponse(data=_found(tenant, tenant_id), message="Tenant suspended successfully")


@router.delete("/{tenant_id}", response_model=ApiResponse[None])
async def delete_tenant_route(tenant_id: str, db: AsyncSession = Depends(get_db)):
    """Soft delete. Calling it again on a cancelled tenant still succeeds."""
    if not await tenant_service.delete_tenant(db, tenant_id):
        raise TenantNotFoundError(tenant_id)
    return ApiResponse(message="Tenant deleted successfully")


@router.get("/{tenant_id}/usage", response_model=ApiResponse[TenantUsageResponse])
async def get_tenant_usage_route(tenant_id: str, db: AsyncSession = Depends(get_db)):
    usage = await tenant_service.get_tenant_usage(db, tenant_id)
    if usage is None:
        raise TenantNotFoundError(tenant_id)
    return ApiResponse(data=TenantUsageResponse(**usage))
