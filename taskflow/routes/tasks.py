"""
Task Routes

POST   /api/tasks                          → create (status todo)
GET    /api/tasks                          → list with filters
GET    /api/tasks/project/{project_id}     → tasks of a project
GET    /api/tasks/assignee/{user_id}       → tasks of an assignee, soonest due first
GET    /api/tasks/{id}                     → get
PUT    /api/tasks/{id}                     → partial update
DELETE /api/tasks/{id}                     → delete
POST   /api/tasks/{id}/assign              → assign to a user
GET    /api/tasks/{id}/subtasks            → child tasks
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.database import get_db
from taskflow.dependencies import require_tenant_id, require_user_id
from taskflow.exceptions import TaskNotFoundError
from taskflow.models.task import TaskPriority, TaskStatus
from taskflow.schemas.common import ApiResponse, PaginatedApiResponse
from taskflow.schemas.task import TaskAssign, TaskCreate, TaskResponse, TaskUpdate
from taskflow.services import task_service
from taskflow.utils.pagination import PaginationParams, paginated_response

router = APIRouter(tags=["Tasks"])
logger = logging.getLogger(__name__)


def _many(tasks) -> ApiResponse[list[TaskResponse]]:
    return ApiResponse(data=[TaskResponse.model_validate(t) for t in tasks])


@router.post("", response_model=ApiResponse[TaskResponse], status_code=status.HTTP_201_CREATED)
async def create_task_route(
    payload: TaskCreate,
    tenant_id: str = Depends(require_tenant_id),
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
):
    task = await task_service.create_task(db, payload, tenant_id=tenant_id, created_by=user_id)
    return ApiResponse(data=TaskResponse.model_validate(task), message="Task created successfully")


@router.get("", response_model=PaginatedApiResponse[TaskResponse])
async def list_tasks_route(
    status_filter: TaskStatus | None = Query(None, alias="status"),
    priority: TaskPriority | None = None,
    assignee_id: str | None = Query(None, alias="assigneeId"),
    project_id: str | None = Query(None, alias="projectId"),
    created_by: str | None = Query(None, alias="createdBy"),
    due_date_from: datetime | None = Query(None, alias="dueDateFrom"),
    due_date_to: datetime | None = Query(None, alias="dueDateTo"),
    tags: list[str] | None = Query(None),
    search: str | None = None,
    pagination: PaginationParams = Depends(),
    tenant_id: str = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    tasks, total = await task_service.list_tasks(
        db,
        tenant_id,
        status=status_filter.value if status_filter else None,
        priority=priority.value if priority else None,
        assignee_id=assignee_id,
        project_id=project_id,
        created_by=created_by,
        due_date_from=due_date_from,
        due_date_to=due_date_to,
        tags=tags,
        search=search,
        page=pagination.page,
        limit=pagination.limit,
    )
    return paginated_response(tasks, total, pagination, TaskResponse.model_validate)


@router.get("/project/{project_id}", response_model=ApiResponse[list[TaskResponse]])
async def get_tasks_by_project_route(
    project_id: str,
    tenant_id: str = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    return _many(await task_service.get_tasks_by_project(db, project_id, tenant_id))


@router.get("/assignee/{assignee_id}", response_model=ApiResponse[list[TaskResponse]])
async def get_tasks_by_assignee_route(
    assignee_id: str,
    tenant_id: str = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    return _many(await task_service.get_tasks_by_assignee(db, assignee_id, tenant_id))


@router.get("/{task_id}", response_model=ApiResponse[TaskResponse])
async def get_task_route(
    task_id: str,
    tenant_id: str = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    task = await task_service.get_task_by_id(db, task_id, tenant_id)
    if task is None:
        raise TaskNotFoundError(task_id)
    return ApiResponse(data=TaskResponse.model_validate(task))


@router.put("/{task_id}", response_model=ApiResponse[TaskResponse])
async def update_task_route(
    task_id: str,
    payload: TaskUpdate,
    tenant_id: str = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    task = await task_service.update_task(db, task_id, tenant_id, payload.model_dump(exclude_unset=True))
    if task is None:
        raise TaskNotFoundError(task_id)
    return ApiResponse(data=TaskResponse.model_validate(task), message="Task updated successfully")


@router.delete("/{task_id}", response_model=ApiResponse[None])
async def delete_task_route(
    task_id: str,
    tenant_id: str = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    if not await task_service.delete_task(db, task_id, tenant_id):
        raise TaskNotFoundError(task_id)
    return ApiResponse(message="Task deleted successfully")


@router.post("/{task_id}/assign", response_model=ApiResponse[TaskResponse])
async def assign_task_route(
    task_id: str,
    payload: TaskAssign,
    tenant_id: str = Depends(require_tenant_id),
    user_id: str = Depends(require_user_id),
    db: AsyncSession = Depends(get_db),
):
    task = await task_service.assign_task(db, task_id, tenant_id, payload.assignee_id, assigned_by=user_id)
    if task is None:
        raise TaskNotFoundError(task_id)
    return ApiResponse(data=TaskResponse.model_validate(task), message="Task assigned successfully")


@router.get("/{task_id}/subtasks", response_model=ApiResponse[list[TaskResponse]])
async def get_subtasks_route(
    task_id: str,
    tenant_id: str = Depends(require_tenant_id),
    db: AsyncSession = Depends(get_db),
):
    return _many(await task_service.get_subtasks(db, task_id, tenant_id))
