"""
Project Service

Projects and their memberships. Creating a project inserts the project,
its owner membership and any initial members in one transaction, so a
project is never visible without its owner. The owner membership can be
neither removed nor demoted afterwards.

Progress is derived from the project's tasks on every read and is never
stored.
"""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import Float, case, cast, delete, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import with_expression

from taskflow.database import transaction
from taskflow.exceptions import (
    DatabaseError,
    DuplicateResourceError,
    InvalidOperationError,
    ProjectMemberNotFoundError,
    ProjectNotFoundError,
    ProtectedOwnerError,
    ValidationError,
)
from taskflow.models.project import (
    DEFAULT_PERMISSIONS,
    MEMBER_PERMISSIONS,
    OWNER_PERMISSIONS,
    Project,
    ProjectMember,
    ProjectRole,
    ProjectStatus,
)
from taskflow.models.task import Task, TaskStatus
from taskflow.schemas.project import ProjectCreate

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {"name", "description", "status", "start_date", "end_date", "tags", "budget"}
NULLABLE_FIELDS = {"description", "start_date", "end_date", "budget"}


# ── Progress ───────────────────────────────────────────────────────────────────


def compute_progress(done: int, total: int) -> float:
    """Percentage of done tasks; a project without tasks is at 0."""
    if total == 0:
        return 0.0
    return done * 100.0 / total


def progress_expression():
    """SQL counterpart of compute_progress, correlated to the outer Project row."""
    total = (
        select(func.count(Task.id))
        .where(Task.project_id == Project.id)
        .correlate(Project)
        .scalar_subquery()
    )
    done = (
        select(func.count(Task.id))
        .where(Task.project_id == Project.id, Task.status == TaskStatus.done.value)
        .correlate(Project)
        .scalar_subquery()
    )
    return cast(
        case(
            (total == 0, 0.0),
            else_=cast(done, Float) * 100.0 / cast(total, Float),
        ),
        Float,
    )


def _project_query():
    return (
        select(Project)
        .options(with_expression(Project.progress, progress_expression()))
        .execution_options(populate_existing=True)
    )


# ── Projects ───────────────────────────────────────────────────────────────────


async def create_project(
    db: AsyncSession,
    data: ProjectCreate,
    tenant_id: str,
    owner_id: str,
) -> Project:
    """
    Create a project with its owner membership and initial members.

    Every extra member (deduplicated, owner excluded) joins as ``member``
    with read/write permissions. Nothing is persisted if any insert fails.
    """
    extra_members = list(dict.fromkeys(m for m in data.members if m != owner_id))

    try:
        async with transaction(db):
            project = Project(
                name=data.name,
                description=data.description,
                status=ProjectStatus.planning.value,
                tenant_id=tenant_id,
                owner_id=owner_id,
                start_date=data.start_date,
                end_date=data.end_date,
                tags=list(data.tags),
                budget=data.budget,
            )
            db.add(project)
            await db.flush()

            db.add(
                ProjectMember(
                    project_id=project.id,
                    user_id=owner_id,
                    role=ProjectRole.OWNER.value,
                    permissions=list(OWNER_PERMISSIONS),
                )
            )
            for user_id in extra_members:
                db.add(
                    ProjectMember(
                        project_id=project.id,
                        user_id=user_id,
                        role=ProjectRole.MEMBER.value,
                        permissions=list(MEMBER_PERMISSIONS),
                    )
                )
    except SQLAlchemyError as e:
        logger.error(f"Error creating project in tenant {tenant_id}: {e}")
        raise DatabaseError("Failed to create project", operation="create_project") from e

    logger.info("Project created: id=%s tenant=%s members=%d", project.id, tenant_id, len(extra_members) + 1)
    return await get_project_by_id(db, project.id, tenant_id)


async def get_project_by_id(db: AsyncSession, project_id: str, tenant_id: str) -> Project | None:
    """Return the project with progress and members, or None outside this tenant."""
    result = await db.execute(_project_query().where(Project.id == project_id, Project.tenant_id == tenant_id))
    return result.scalars().first()


async def _require_project(db: AsyncSession, project_id: str, tenant_id: str) -> Project:
    project = await get_project_by_id(db, project_id, tenant_id)
    if project is None:
        raise ProjectNotFoundError(project_id)
    return project


async def list_projects(
    db: AsyncSession,
    tenant_id: str,
    status: str | None = None,
    owner_id: str | None = None,
    member_id: str | None = None,
    start_date_from: datetime | None = None,
    start_date_to: datetime | None = None,
    end_date_from: datetime | None = None,
    end_date_to: datetime | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Project], int]:
    """Return one page of the tenant's projects (newest first) and the total count."""
    filters = [Project.tenant_id == tenant_id]
    if status:
        filters.append(Project.status == status)
    if owner_id:
        filters.append(Project.owner_id == owner_id)
    if member_id:
        filters.append(Project.id.in_(select(ProjectMember.project_id).where(ProjectMember.user_id == member_id)))
    if start_date_from:
        filters.append(Project.start_date >= start_date_from)
    if start_date_to:
        filters.append(Project.start_date <= start_date_to)
    if end_date_from:
        filters.append(Project.end_date >= end_date_from)
    if end_date_to:
        filters.append(Project.end_date <= end_date_to)
    if search:
        pattern = f"%{search}%"
        filters.append(or_(Project.name.ilike(pattern), Project.description.ilike(pattern)))

    total = (await db.execute(select(func.count(Project.id)).where(*filters))).scalar() or 0
    result = await db.execute(
        _project_query()
        .where(*filters)
        .order_by(Project.created_at.desc(), Project.id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def update_project(
    db: AsyncSession,
    project_id: str,
    tenant_id: str,
    updates: dict[str, Any],
) -> Project | None:
    """Apply a partial update. Returns None if the project is not in this tenant."""
    project = await get_project_by_id(db, project_id, tenant_id)
    if project is None:
        return None

    try:
        async with transaction(db):
            for field in UPDATABLE_FIELDS & updates.keys():
                if updates[field] is not None or field in NULLABLE_FIELDS:
                    setattr(project, field, updates[field])
    except SQLAlchemyError as e:
        logger.error(f"Error updating project {project_id}: {e}")
        raise DatabaseError("Failed to update project", operation="update_project") from e

    logger.info("Project updated: id=%s fields=%s", project_id, sorted(updates))
    return await get_project_by_id(db, project_id, tenant_id)


async def delete_project(db: AsyncSession, project_id: str, tenant_id: str) -> bool:
    """
    Delete the project's memberships, then the project, in one transaction.

    Returns False, with nothing deleted, when no project row matched.
    """
    try:
        async with transaction(db):
            await db.execute(delete(ProjectMember).where(ProjectMember.project_id == project_id))
            result = await db.execute(
                delete(Project).where(Project.id == project_id, Project.tenant_id == tenant_id)
            )
            if result.rowcount == 0:
                await db.rollback()
                return False
    except SQLAlchemyError as e:
        logger.error(f"Error deleting project {project_id}: {e}")
        raise DatabaseError("Failed to delete project", operation="delete_project") from e

    logger.info("Project deleted: id=%s tenant=%s", project_id, tenant_id)
    return True


# ── Members ────────────────────────────────────────────────────────────────────


async def get_project_members(db: AsyncSession, project_id: str, tenant_id: str) -> list[ProjectMember]:
    await _require_project(db, project_id, tenant_id)
    result = await db.execute(
        select(ProjectMember)
        .where(ProjectMember.project_id == project_id)
        .order_by(ProjectMember.joined_at, ProjectMember.id)
    )
    return list(result.scalars().all())


async def _get_member(db: AsyncSession, project_id: str, user_id: str) -> ProjectMember | None:
    result = await db.execute(
        select(ProjectMember).where(ProjectMember.project_id == project_id, ProjectMember.user_id == user_id)
    )
    return result.scalars().first()


async def add_project_member(
    db: AsyncSession,
    project_id: str,
    tenant_id: str,
    user_id: str,
    role: str = ProjectRole.MEMBER.value,
    permissions: list[str] | None = None,
) -> ProjectMember:
    """Add ``user_id`` to the project. The owner role cannot be granted."""
    await _require_project(db, project_id, tenant_id)

    if role == ProjectRole.OWNER:
        raise InvalidOperationError("The owner role can only be assigned when the project is created")
    if await _get_member(db, project_id, user_id) is not None:
        raise DuplicateResourceError("Project member", "user_id", user_id)

    member = ProjectMember(
        project_id=project_id,
        user_id=user_id,
        role=ProjectRole(role).value,
        permissions=list(permissions if permissions is not None else DEFAULT_PERMISSIONS),
    )
    try:
        async with transaction(db):
            db.add(member)
    except IntegrityError as e:
        raise DuplicateResourceError("Project member", "user_id", user_id) from e
    except SQLAlchemyError as e:
        logger.error(f"Error adding member {user_id} to project {project_id}: {e}")
        raise DatabaseError("Failed to add project member", operation="add_project_member") from e

    await db.refresh(member)
    logger.info("Member added to project %s: %s", project_id, user_id)
    return member


async def update_project_member(
    db: AsyncSession,
    project_id: str,
    tenant_id: str,
    user_id: str,
    role: str | None = None,
    permissions: list[str] | None = None,
) -> ProjectMember:
    """Change a member's role and/or permissions."""
    project = await _require_project(db, project_id, tenant_id)

    if role is None and permissions is None:
        raise ValidationError("No fields to update")
    if role is not None and role == ProjectRole.OWNER:
        raise InvalidOperationError("The owner role can only be assigned when the project is created")
    if role is not None and user_id == project.owner_id:
        raise ProtectedOwnerError(project_id, user_id, message="Cannot change the role of the project owner")

    member = await _get_member(db, project_id, user_id)
    if member is None:
        raise ProjectMemberNotFoundError(user_id)

    try:
        async with transaction(db):
            if role is not None:
                member.role = ProjectRole(role).value
            if permissions is not None:
                member.permissions = list(permissions)
    except SQLAlchemyError as e:
        logger.error(f"Error updating member {user_id} in project {project_id}: {e}")
        raise DatabaseError("Failed to update project member", operation="update_project_member") from e

    await db.refresh(member)
    logger.info("Project member updated: %s in project %s", user_id, project_id)
    return member


async def remove_project_member(db: AsyncSession, project_id: str, tenant_id: str, user_id: str) -> bool:
    """
    Remove ``user_id`` from the project.

    The project owner is refused before any delete runs, whatever role
    the stored membership row carries. Returns False if the user was not
    a member.
    """
    project = await _require_project(db, project_id, tenant_id)
    if user_id == project.owner_id:
        raise ProtectedOwnerError(project_id, user_id)

    try:
        async with transaction(db):
            result = await db.execute(
                delete(ProjectMember).where(ProjectMember.project_id == project_id, ProjectMember.user_id == user_id)
            )
    except SQLAlchemyError as e:
        logger.error(f"Error removing member {user_id} from project {project_id}: {e}")
        raise DatabaseError("Failed to remove project member", operation="remove_project_member") from e

    if result.rowcount == 0:
        return False
    logger.info("Project member removed: %s from project %s", user_id, project_id)
    return True
