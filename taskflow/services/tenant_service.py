"""
Tenant Service

Provisioning and lifecycle of tenant organisations. Quotas and features
always follow the plan: they are derived on creation and recomputed in the
same transaction as every plan change.

All functions accept an injected AsyncSession.
"""

import logging
from typing import Any

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.database import transaction
from taskflow.exceptions import DatabaseError, DuplicateResourceError, ValidationError
from taskflow.models.common import utc_now
from taskflow.models.project import Project
from taskflow.models.tenant import Tenant, TenantStatus
from taskflow.models.user import User
from taskflow.services.plan_policy import get_default_settings, get_plan_limits, resolve_plan

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {"name", "domain", "subdomain", "status"}
QUOTA_FIELDS = {"max_users", "max_projects", "max_storage_gb", "features"}
NULLABLE_FIELDS = {"subdomain"}


def _is_unique_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig).lower()
    return "unique" in message or "duplicate key" in message


def _duplicate_error(exc: IntegrityError, domain: str | None, subdomain: str | None) -> DuplicateResourceError:
    if subdomain and "subdomain" in str(exc.orig).lower():
        return DuplicateResourceError("Tenant", "subdomain", subdomain)
    return DuplicateResourceError("Tenant", "domain", domain)


async def create_tenant(
    db: AsyncSession,
    name: str,
    domain: str,
    owner_id: str,
    subdomain: str | None = None,
    plan: str | None = None,
    settings: dict[str, Any] | None = None,
) -> Tenant:
    """
    Provision a tenant in a single transaction.

    The plan's default settings are shallow-merged with ``settings``
    (caller wins), quotas come from the plan, and the status is always
    ``pending`` regardless of input.
    """
    resolved_plan = resolve_plan(plan)
    merged_settings = {**get_default_settings(resolved_plan), **(settings or {})}
    limits = get_plan_limits(resolved_plan)

    tenant = Tenant(
        name=name,
        domain=domain,
        subdomain=subdomain,
        owner_id=owner_id,
        status=TenantStatus.pending.value,
        plan=resolved_plan.value,
        settings=merged_settings,
        **limits.as_update(),
    )
    try:
        async with transaction(db):
            db.add(tenant)
    except IntegrityError as e:
        if _is_unique_violation(e):
            logger.warning("Tenant create rejected, duplicate domain=%s subdomain=%s", domain, subdomain)
            raise _duplicate_error(e, domain, subdomain) from e
        if "foreign key" in str(e.orig).lower():
            logger.warning("Tenant create rejected, unknown owner=%s", owner_id)
            raise ValidationError("Owner user does not exist", field="ownerId") from e
        logger.error(f"Error creating tenant: {e}")
        raise DatabaseError("Failed to create tenant", operation="create_tenant") from e
    except SQLAlchemyError as e:
        logger.error(f"Error creating tenant: {e}")
        raise DatabaseError("Failed to create tenant", operation="create_tenant") from e

    await db.refresh(tenant)
    logger.info("Tenant created: id=%s domain=%s plan=%s", tenant.id, tenant.domain, tenant.plan)
    return tenant


async def get_tenant_by_id(db: AsyncSession, tenant_id: str) -> Tenant | None:
    """Return a Tenant by primary key, or None if not found."""
    result = await db.execute(select(Tenant).where(Tenant.id == tenant_id))
    return result.scalars().first()


async def get_tenant_by_domain(db: AsyncSession, domain: str) -> Tenant | None:
    """Return the Tenant whose domain or subdomain equals ``domain``."""
    result = await db.execute(select(Tenant).where(or_(Tenant.domain == domain, Tenant.subdomain == domain)))
    return result.scalars().first()


async def list_tenants(
    db: AsyncSession,
    status: str | None = None,
    plan: str | None = None,
    owner_id: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Tenant], int]:
    """Return one page of tenants (newest first) and the total match count."""
    filters = []
    if status:
        filters.append(Tenant.status == status)
    if plan:
        filters.append(Tenant.plan == plan)
    if owner_id:
        filters.append(Tenant.owner_id == owner_id)
    if search:
        pattern = f"%{search}%"
        filters.append(or_(Tenant.name.ilike(pattern), Tenant.domain.ilike(pattern), Tenant.subdomain.ilike(pattern)))

    total = (await db.execute(select(func.count(Tenant.id)).where(*filters))).scalar() or 0
    result = await db.execute(
        select(Tenant)
        .where(*filters)
        .order_by(Tenant.created_at.desc(), Tenant.id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def update_tenant(
    db: AsyncSession,
    tenant_id: str,
    updates: dict[str, Any],
) -> Tenant | None:
    """
    Apply a partial update to a Tenant.

    Only keys present in ``updates`` are changed. A ``plan`` change rewrites
    quotas and features from the new plan; explicit quota values passed in the
    same call are applied afterwards and win. ``settings`` is shallow-merged
    into the stored settings.

    Returns None if the tenant does not exist.
    """
    tenant = await get_tenant_by_id(db, tenant_id)
    if tenant is None:
        return None

    try:
        async with transaction(db):
            for field in UPDATABLE_FIELDS & updates.keys():
                if updates[field] is not None or field in NULLABLE_FIELDS:
                    setattr(tenant, field, updates[field])

            if updates.get("plan") is not None:
                new_plan = resolve_plan(updates["plan"])
                tenant.plan = new_plan.value
                for field, value in get_plan_limits(new_plan).as_update().items():
                    setattr(tenant, field, value)

            if updates.get("settings") is not None:
                tenant.settings = {**(tenant.settings or {}), **updates["settings"]}

            for field in QUOTA_FIELDS & updates.keys():
                if updates[field] is not None:
                    setattr(tenant, field, updates[field])
    except IntegrityError as e:
        if not _is_unique_violation(e):
            logger.error(f"Error updating tenant {tenant_id}: {e}")
            raise DatabaseError("Failed to update tenant", operation="update_tenant") from e
        logger.warning("Tenant update rejected, duplicate domain for id=%s", tenant_id)
        raise _duplicate_error(e, updates.get("domain"), updates.get("subdomain")) from e
    except SQLAlchemyError as e:
        logger.error(f"Error updating tenant {tenant_id}: {e}")
        raise DatabaseError("Failed to update tenant", operation="update_tenant") from e

    await db.refresh(tenant)
    logger.info("Tenant updated: id=%s fields=%s", tenant_id, sorted(updates))
    return tenant


async def update_tenant_settings(db: AsyncSession, tenant_id: str, settings: dict[str, Any]) -> Tenant | None:
    return await update_tenant(db, tenant_id, {"settings": settings})


async def upgrade_tenant_plan(db: AsyncSession, tenant_id: str, plan: str) -> Tenant | None:
    return await update_tenant(db, tenant_id, {"plan": plan})


async def activate_tenant(db: AsyncSession, tenant_id: str) -> Tenant | None:
    return await update_tenant(db, tenant_id, {"status": TenantStatus.active.value})


async def suspend_tenant(db: AsyncSession, tenant_id: str) -> Tenant | None:
    return await update_tenant(db, tenant_id, {"status": TenantStatus.suspended.value})


async def delete_tenant(db: AsyncSession, tenant_id: str) -> bool:
    """
    Soft-delete a tenant by setting status to 'cancelled'.

    The row is kept. Repeating the call is a no-op success.
    Returns False only when no tenant has this id.
    """
    try:
        async with transaction(db):
            result = await db.execute(
                update(Tenant)
                .where(Tenant.id == tenant_id)
                .values(status=TenantStatus.cancelled.value, updated_at=utc_now())
            )
    except SQLAlchemyError as e:
        logger.error(f"Error deleting tenant {tenant_id}: {e}")
        raise DatabaseError("Failed to delete tenant", operation="delete_tenant") from e

    if result.rowcount == 0:
        return False
    logger.info("Tenant soft-deleted: id=%s", tenant_id)
    return True


async def get_tenant_usage(db: AsyncSession, tenant_id: str) -> dict[str, Any] | None:
    """Current consumption next to the tenant's quotas, or None if not found."""
    tenant = await get_tenant_by_id(db, tenant_id)
    if tenant is None:
        return None

    current_users = (await db.execute(select(func.count(User.id)).where(User.tenant_id == tenant_id))).scalar() or 0
    current_projects = (
        await db.execute(select(func.count(Project.id)).where(Project.tenant_id == tenant_id))
    ).scalar() or 0

    return {
        "tenant_id": tenant.id,
        "current_users": current_users,
        "current_projects": current_projects,
        "current_storage_gb": 0.0,
        "max_users": tenant.max_users,
        "max_projects": tenant.max_projects,
        "max_storage_gb": tenant.max_storage_gb,
        "last_updated": utc_now(),
    }
