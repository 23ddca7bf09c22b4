"""
Task Service

Tenant-scoped CRUD for tasks. The tenant always comes from the request
context, and a task can only be created inside a project of that tenant.
"""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import String, case, cast, delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.database import transaction
from taskflow.exceptions import DatabaseError, ProjectNotFoundError, TaskNotFoundError
from taskflow.models.project import Project
from taskflow.models.task import PRIORITY_RANK, Task, TaskAssignment, TaskPriority, TaskStatus
from taskflow.schemas.task import TaskCreate

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {
    "title",
    "description",
    "status",
    "priority",
    "assignee_id",
    "due_date",
    "tags",
    "estimated_hours",
    "actual_hours",
}
NULLABLE_FIELDS = {"description", "assignee_id", "due_date", "estimated_hours", "actual_hours"}


async def create_task(db: AsyncSession, data: TaskCreate, tenant_id: str, created_by: str) -> Task:
    """Create a task in ``todo`` status inside one of the tenant's projects."""
    project_id = (
        await db.execute(select(Project.id).where(Project.id == data.project_id, Project.tenant_id == tenant_id))
    ).scalar()
    if project_id is None:
        raise ProjectNotFoundError(data.project_id)

    if data.parent_task_id and await get_task_by_id(db, data.parent_task_id, tenant_id) is None:
        raise TaskNotFoundError(data.parent_task_id)

    task = Task(
        title=data.title,
        description=data.description,
        status=TaskStatus.todo.value,
        priority=data.priority or TaskPriority.medium.value,
        assignee_id=data.assignee_id,
        project_id=data.project_id,
        tenant_id=tenant_id,
        due_date=data.due_date,
        tags=list(data.tags),
        estimated_hours=data.estimated_hours,
        parent_task_id=data.parent_task_id,
        created_by=created_by,
    )
    try:
        async with transaction(db):
            db.add(task)
    except SQLAlchemyError as e:
        logger.error(f"Error creating task in project {data.project_id}: {e}")
        raise DatabaseError("Failed to create task", operation="create_task") from e

    await db.refresh(task)
    logger.info("Task created: id=%s project=%s", task.id, task.project_id)
    return task


async def get_task_by_id(db: AsyncSession, task_id: str, tenant_id: str) -> Task | None:
    result = await db.execute(select(Task).where(Task.id == task_id, Task.tenant_id == tenant_id))
    return result.scalars().first()


async def update_task(db: AsyncSession, task_id: str, tenant_id: str, updates: dict[str, Any]) -> Task | None:
    """Apply a partial update. Returns None if the task is not in this tenant."""
    task = await get_task_by_id(db, task_id, tenant_id)
    if task is None:
        return None

    try:
        async with transaction(db):
            for field in UPDATABLE_FIELDS & updates.keys():
                if updates[field] is not None or field in NULLABLE_FIELDS:
                    setattr(task, field, updates[field])
    except SQLAlchemyError as e:
        logger.error(f"Error updating task {task_id}: {e}")
        raise DatabaseError("Failed to update task", operation="update_task") from e

    await db.refresh(task)
    logger.info("Task updated: id=%s fields=%s", task_id, sorted(updates))
    return task


async def delete_task(db: AsyncSession, task_id: str, tenant_id: str) -> bool:
    try:
        async with transaction(db):
            result = await db.execute(delete(Task).where(Task.id == task_id, Task.tenant_id == tenant_id))
    except SQLAlchemyError as e:
        logger.error(f"Error deleting task {task_id}: {e}")
        raise DatabaseError("Failed to delete task", operation="delete_task") from e

    if result.rowcount == 0:
        return False
    logger.info("Task deleted: id=%s", task_id)
    return True


async def assign_task(
    db: AsyncSession,
    task_id: str,
    tenant_id: str,
    assignee_id: str,
    assigned_by: str,
) -> Task | None:
    """
    Set the task's assignee and record the assignment in the same transaction.

    Returns None if the task is not in this tenant.
    """
    task = await get_task_by_id(db, task_id, tenant_id)
    if task is None:
        return None

    try:
        async with transaction(db):
            task.assignee_id = assignee_id
            db.add(TaskAssignment(task_id=task_id, assignee_id=assignee_id, assigned_by=assigned_by))
    except SQLAlchemyError as e:
        logger.error(f"Error assigning task {task_id}: {e}")
        raise DatabaseError("Failed to assign task", operation="assign_task") from e

    await db.refresh(task)
    logger.info("Task %s assigned to %s by %s", task_id, assignee_id, assigned_by)
    return task


async def list_tasks(
    db: AsyncSession,
    tenant_id: str,
    status: str | None = None,
    priority: str | None = None,
    assignee_id: str | None = None,
    project_id: str | None = None,
    created_by: str | None = None,
    due_date_from: datetime | None = None,
    due_date_to: datetime | None = None,
    tags: list[str] | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Task], int]:
    """Return one page of tasks (newest first) and the total count."""
    filters = [Task.tenant_id == tenant_id]
    if status:
        filters.append(Task.status == status)
    if priority:
        filters.append(Task.priority == priority)
    if assignee_id:
        filters.append(Task.assignee_id == assignee_id)
    if project_id:
        filters.append(Task.project_id == project_id)
    if created_by:
        filters.append(Task.created_by == created_by)
    if due_date_from:
        filters.append(Task.due_date >= due_date_from)
    if due_date_to:
        filters.append(Task.due_date <= due_date_to)
    if tags:
        # Any of the given tags
        filters.append(or_(*(cast(Task.tags, String).like(f'%"{tag}"%') for tag in tags)))
    if search:
        pattern = f"%{search}%"
        filters.append(or_(Task.title.ilike(pattern), Task.description.ilike(pattern)))

    total = (await db.execute(select(func.count(Task.id)).where(*filters))).scalar() or 0
    result = await db.execute(
        select(Task)
        .where(*filters)
        .order_by(Task.created_at.desc(), Task.id)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def get_tasks_by_project(db: AsyncSession, project_id: str, tenant_id: str) -> list[Task]:
    result = await db.execute(
        select(Task)
        .where(Task.project_id == project_id, Task.tenant_id == tenant_id)
        .order_by(Task.created_at.desc(), Task.id)
    )
    return list(result.scalars().all())


async def get_tasks_by_assignee(db: AsyncSession, assignee_id: str, tenant_id: str) -> list[Task]:
    """Tasks assigned to a user, soonest due first (undated last), then most urgent."""
    priority_rank = case(PRIORITY_RANK, value=Task.priority, else_=0)
    result = await db.execute(
        select(Task)
        .where(Task.assignee_id == assignee_id, Task.tenant_id == tenant_id)
        .order_by(Task.due_date.is_(None), Task.due_date.asc(), priority_rank.desc(), Task.id)
    )
    return list(result.scalars().all())


async def get_subtasks(db: AsyncSession, parent_task_id: str, tenant_id: str) -> list[Task]:
    result = await db.execute(
        select(Task)
        .where(Task.parent_task_id == parent_task_id, Task.tenant_id == tenant_id)
        .order_by(Task.created_at.asc(), Task.id)
    )
    return list(result.scalars().all())
