"""
Notification Routes

POST   /api/notifications                  → create and push to the recipient
POST   /api/notifications/bulk             → one notification per user
GET    /api/notifications                  → the caller's notifications
GET    /api/notifications/unread-count     → the caller's unread count
PUT    /api/notifications/mark-all-read    → mark all of the caller's as read
GET    /api/notifications/preferences      → delivery preferences
PUT    /api/notifications/preferences      → update delivery preferences
GET    /api/notifications/{id}             → get
PUT    /api/notifications/{id}/read        → mark one as read
DELETE /api/notifications/{id}             → delete
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status

from taskflow.dependencies import get_notification_service, require_tenant_id, require_user_id
from taskflow.exceptions import NotificationNotFoundError
from taskflow.models.notification import NotificationStatus, NotificationType
from taskflow.schemas.common import ApiResponse, PaginatedApiResponse
from taskflow.schemas.notification import (
    BulkNotificationCreate,
    NotificationCreate,
    NotificationPreferencesResponse,
    NotificationPreferencesUpdate,
    NotificationResponse,
)
from taskflow.services.notification_service import NotificationService
from taskflow.utils.pagination import PaginationParams, paginated_response

router = APIRouter(tags=["Notifications"])
logger = logging.getLogger(__name__)


@router.post("", response_model=ApiResponse[NotificationResponse], status_code=status.HTTP_201_CREATED)
async def create_notification(
    payload: NotificationCreate,
    tenant_id: str = Depends(require_tenant_id),
    service: NotificationService = Depends(get_notification_service),
):
    notification = await service.create_notification(payload, tenant_id)
    return ApiResponse(data=NotificationResponse.model_validate(notification), message="Notification created")


@router.post("/bulk", response_model=ApiResponse[dict[str, int]], status_code=status.HTTP_201_CREATED)
async def send_bulk_notification(
    payload: BulkNotificationCreate,
    tenant_id: str = Depends(require_tenant_id),
    service: NotificationService = Depends(get_notification_service),
):
    count = await service.send_bulk_notification(
        user_ids=payload.user_ids,
        title=payload.title,
        message=payload.message,
        notification_type=payload.type,
        tenant_id=tenant_id,
        data=payload.data,
    )
    return ApiResponse(data={"count": count}, message=f"Notification sent to {count} users")


@router.get("", response_model=PaginatedApiResponse[NotificationResponse])
async def list_notifications(
    status_filter: NotificationStatus | None = Query(None, alias="status"),
    notification_type: NotificationType | None = Query(None, alias="type"),
    created_after: datetime | None = Query(None, alias="createdAfter"),
    created_before: datetime | None = Query(None, alias="createdBefore"),
    pagination: PaginationParams = Depends(),
    tenant_id: str = Depends(require_tenant_id),
    user_id: str = Depends(require_user_id),
    service: NotificationService = Depends(get_notification_service),
):
    notifications, total = await service.list_notifications(
        tenant_id,
        user_id=user_id,
        status=status_filter.value if status_filter else None,
        notification_type=notification_type.value if notification_type else None,
        created_after=created_after,
        created_before=created_before,
        page=pagination.page,
        limit=pagination.limit,
    )
    return paginated_response(notifications, total, pagination, NotificationResponse.model_validate)


@router.get("/unread-count", response_model=ApiResponse[dict[str, int]])
async def get_unread_count(
    tenant_id: str = Depends(require_tenant_id),
    user_id: str = Depends(require_user_id),
    service: NotificationService = Depends(get_notification_service),
):
    count = await service.get_unread_count(user_id, tenant_id)
    return ApiResponse(data={"count": count})


@router.put("/mark-all-read", response_model=ApiResponse[dict[str, int]])
async def mark_all_as_read(
    tenant_id: str = Depends(require_tenant_id),
    user_id: str = Depends(require_user_id),
    service: NotificationService = Depends(get_notification_service),
):
    count = await service.mark_all_as_read(user_id, tenant_id)
    return ApiResponse(data={"count": count}, message=f"{count} notifications marked as read")


@router.get("/preferences", response_model=ApiResponse[NotificationPreferencesResponse])
async def get_preferences(
    tenant_id: str = Depends(require_tenant_id),
    user_id: str = Depends(require_user_id),
    service: NotificationService = Depends(get_notification_service),
):
    preferences = await service.get_preferences(user_id, tenant_id)
    return ApiResponse(data=NotificationPreferencesResponse(**preferences))


@router.put("/preferences", response_model=ApiResponse[NotificationPreferencesResponse])
async def update_preferences(
    payload: NotificationPreferencesUpdate,
    tenant_id: str = Depends(require_tenant_id),
    user_id: str = Depends(require_user_id),
    service: NotificationService = Depends(get_notification_service),
):
    preferences = await service.update_preferences(user_id, tenant_id, payload.model_dump(exclude_none=True))
    return ApiResponse(data=NotificationPreferencesResponse(**preferences), message="Preferences updated")


@router.get("/{notification_id}", response_model=ApiResponse[NotificationResponse])
async def get_notification(
    notification_id: str,
    tenant_id: str = Depends(require_tenant_id),
    service: NotificationService = Depends(get_notification_service),
):
    notification = await service.get_notification(notification_id, tenant_id)
    if notification is None:
        raise NotificationNotFoundError(notification_id)
    return ApiResponse(data=NotificationResponse.model_validate(notification))


@router.put("/{notification_id}/read", response_model=ApiResponse[NotificationResponse])
async def mark_as_read(
    notification_id: str,
    tenant_id: str = Depends(require_tenant_id),
    service: NotificationService = Depends(get_notification_service),
):
    notification = await service.mark_as_read(notification_id, tenant_id)
    if notification is None:
        raise NotificationNotFoundError(notification_id)
    return ApiResponse(data=NotificationResponse.model_validate(notification), message="Notification marked as read")


@router.delete("/{notification_id}", response_model=ApiResponse[None])
async def delete_notification(
    notification_id: str,
    tenant_id: str = Depends(require_tenant_id),
    service: NotificationService = Depends(get_notification_service),
):
    if not await service.delete_notification(notification_id, tenant_id):
        raise NotificationNotFoundError(notification_id)
    return ApiResponse(message="Notification deleted")
