from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from taskflow.models.task import TaskPriority, TaskStatus


class TaskCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    project_id: str = Field(..., min_length=1, max_length=36)
    priority: TaskPriority = TaskPriority.medium
    assignee_id: str | None = None
    due_date: datetime | None = None
    tags: list[str] = Field(default_factory=list)
    estimated_hours: float | None = Field(None, ge=0)
    parent_task_id: str | None = None


class TaskUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assignee_id: str | None = None
    due_date: datetime | None = None
    tags: list[str] | None = None
    estimated_hours: float | None = Field(None, ge=0)
    actual_hours: float | None = Field(None, ge=0)


class TaskAssign(BaseModel):
    assignee_id: str = Field(..., min_length=1, max_length=36)


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str | None
    status: str
    priority: str
    assignee_id: str | None
    project_id: str
    tenant_id: str
    due_date: datetime | None
    tags: list[str]
    estimated_hours: float | None
    actual_hours: float | None
    parent_task_id: str | None
    created_by: str
    created_at: datetime
    updated_at: datetime
