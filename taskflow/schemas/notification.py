from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from taskflow.models.notification import NotificationType


class NotificationCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    user_id: str = Field(..., min_length=1, max_length=36)
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    type: NotificationType
    data: dict[str, Any] | None = None
    expires_at: datetime | None = None


class BulkNotificationCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    user_ids: list[str] = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    type: NotificationType
    data: dict[str, Any] | None = None


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    tenant_id: str
    title: str
    message: str
    type: str
    status: str
    data: dict[str, Any] | None = None
    created_at: datetime
    read_at: datetime | None = None
    expires_at: datetime | None = None


class NotificationPreferencesUpdate(BaseModel):
    email_enabled: bool | None = None
    push_enabled: bool | None = None
    in_app_enabled: bool | None = None
    task_assigned: bool | None = None
    task_completed: bool | None = None
    task_due_soon: bool | None = None
    task_overdue: bool | None = None
    project_invitation: bool | None = None
    project_update: bool | None = None
    comment_added: bool | None = None
    system_alert: bool | None = None


class NotificationPreferencesResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    tenant_id: str
    email_enabled: bool
    push_enabled: bool
    in_app_enabled: bool
    task_assigned: bool
    task_completed: bool
    task_due_soon: bool
    task_overdue: bool
    project_invitation: bool
    project_update: bool
    comment_added: bool
    system_alert: bool
