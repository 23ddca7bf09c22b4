"""
Notification Service

Stores notifications and pushes each new one to the recipient's open
sockets through the NotificationRegistry after the row is committed.
Also manages per-user delivery preferences.
"""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.database import transaction
from taskflow.exceptions import DatabaseError
from taskflow.models.common import utc_now
from taskflow.models.notification import (
    PREFERENCE_FIELDS,
    Notification,
    NotificationPreference,
    NotificationStatus,
)
from taskflow.schemas.notification import NotificationCreate, NotificationResponse
from taskflow.services.notification_registry import NotificationRegistry

logger = logging.getLogger(__name__)


class NotificationService:
    """Service for storing, reading and pushing notifications."""

    def __init__(self, db: AsyncSession, registry: NotificationRegistry):
        self.db = db
        self.registry = registry

    # ============== Notifications ==============

    async def create_notification(self, data: NotificationCreate, tenant_id: str) -> Notification:
        notification = Notification(
            user_id=data.user_id,
            tenant_id=tenant_id,
            title=data.title,
            message=data.message,
            type=data.type,
            status=NotificationStatus.unread.value,
            data=data.data,
            expires_at=data.expires_at,
        )
        try:
            async with transaction(self.db):
                self.db.add(notification)
        except SQLAlchemyError as e:
            logger.error(f"Error creating notification for {data.user_id}: {e}")
            raise DatabaseError("Failed to create notification", operation="create_notification") from e

        await self.db.refresh(notification)
        logger.info("Notification created: id=%s user=%s", notification.id, notification.user_id)
        await self._push(notification)
        return notification

    async def send_bulk_notification(
        self,
        user_ids: list[str],
        title: str,
        message: str,
        notification_type: str,
        tenant_id: str,
        data: dict[str, Any] | None = None,
    ) -> int:
        """Create one notification per distinct user in a single transaction."""
        notifications = [
            Notification(
                user_id=user_id,
                tenant_id=tenant_id,
                title=title,
                message=message,
                type=notification_type,
                status=NotificationStatus.unread.value,
                data=data,
            )
            for user_id in dict.fromkeys(user_ids)
        ]
        try:
            async with transaction(self.db):
                self.db.add_all(notifications)
        except SQLAlchemyError as e:
            logger.error(f"Error sending bulk notification: {e}")
            raise DatabaseError("Failed to send bulk notification", operation="send_bulk_notification") from e

        for notification in notifications:
            await self.db.refresh(notification)
            await self._push(notification)

        logger.info("Bulk notification sent to %d users", len(notifications))
        return len(notifications)

    async def get_notification(self, notification_id: str, tenant_id: str) -> Notification | None:
        result = await self.db.execute(
            select(Notification).where(Notification.id == notification_id, Notification.tenant_id == tenant_id)
        )
        return result.scalars().first()

    async def list_notifications(
        self,
        tenant_id: str,
        user_id: str | None = None,
        status: str | None = None,
        notification_type: str | None = None,
        created_after: datetime | None = None,
        created_before: datetime | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[Notification], int]:
        filters = [Notification.tenant_id == tenant_id]
        if user_id:
            filters.append(Notification.user_id == user_id)
        if status:
            filters.append(Notification.status == status)
        if notification_type:
            filters.append(Notification.type == notification_type)
        if created_after:
            filters.append(Notification.created_at >= created_after)
        if created_before:
            filters.append(Notification.created_at <= created_before)

        total = (await self.db.execute(select(func.count(Notification.id)).where(*filters))).scalar() or 0
        result = await self.db.execute(
            select(Notification)
            .where(*filters)
            .order_by(Notification.created_at.desc(), Notification.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def mark_as_read(self, notification_id: str, tenant_id: str) -> Notification | None:
        notification = await self.get_notification(notification_id, tenant_id)
        if notification is None:
            return None
        try:
            async with transaction(self.db):
                notification.status = NotificationStatus.read.value
                notification.read_at = utc_now()
        except SQLAlchemyError as e:
            logger.error(f"Error marking notification {notification_id} read: {e}")
            raise DatabaseError("Failed to update notification", operation="mark_as_read") from e
        await self.db.refresh(notification)
        return notification

    async def mark_all_as_read(self, user_id: str, tenant_id: str) -> int:
        """Mark every unread notification of the user as read; returns how many changed."""
        try:
            async with transaction(self.db):
                result = await self.db.execute(
                    update(Notification)
                    .where(
                        Notification.user_id == user_id,
                        Notification.tenant_id == tenant_id,
                        Notification.status == NotificationStatus.unread.value,
                    )
                    .values(status=NotificationStatus.read.value, read_at=utc_now())
                )
        except SQLAlchemyError as e:
            logger.error(f"Error marking notifications read for {user_id}: {e}")
            raise DatabaseError("Failed to update notifications", operation="mark_all_as_read") from e
        return result.rowcount

    async def delete_notification(self, notification_id: str, tenant_id: str) -> bool:
        try:
            async with transaction(self.db):
                result = await self.db.execute(
                    delete(Notification).where(
                        Notification.id == notification_id, Notification.tenant_id == tenant_id
                    )
                )
        except SQLAlchemyError as e:
            logger.error(f"Error deleting notification {notification_id}: {e}")
            raise DatabaseError("Failed to delete notification", operation="delete_notification") from e
        return result.rowcount > 0

    async def get_unread_count(self, user_id: str, tenant_id: str) -> int:
        result = await self.db.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.tenant_id == tenant_id,
                Notification.status == NotificationStatus.unread.value,
            )
        )
        return result.scalar() or 0

    # ============== Preference Management ==============

    async def _get_preference_row(self, user_id: str, tenant_id: str) -> NotificationPreference | None:
        result = await self.db.execute(
            select(NotificationPreference).where(
                NotificationPreference.user_id == user_id,
                NotificationPreference.tenant_id == tenant_id,
            )
        )
        return result.scalars().first()

    async def get_preferences(self, user_id: str, tenant_id: str) -> dict[str, Any]:
        """Stored preferences, or the all-enabled defaults when none were saved."""
        pref = await self._get_preference_row(user_id, tenant_id)
        values = {name: True if pref is None else getattr(pref, name) for name in PREFERENCE_FIELDS}
        return {"user_id": user_id, "tenant_id": tenant_id, **values}

    async def update_preferences(self, user_id: str, tenant_id: str, changes: dict[str, bool]) -> dict[str, Any]:
        """Apply ``changes``, creating the all-enabled row first if absent."""
        pref = await self._get_preference_row(user_id, tenant_id)
        try:
            async with transaction(self.db):
                if pref is None:
                    pref = NotificationPreference(
                        user_id=user_id,
                        tenant_id=tenant_id,
                        **{name: True for name in PREFERENCE_FIELDS},
                    )
                    self.db.add(pref)
                for name, value in changes.items():
                    if name in PREFERENCE_FIELDS and value is not None:
                        setattr(pref, name, value)
        except SQLAlchemyError as e:
            logger.error(f"Error updating preferences for {user_id}: {e}")
            raise DatabaseError("Failed to update preferences", operation="update_preferences") from e

        logger.info("Notification preferences updated for user %s", user_id)
        return await self.get_preferences(user_id, tenant_id)

    # ============== Private Methods ==============

    async def _push(self, notification: Notification) -> None:
        payload = NotificationResponse.model_validate(notification).model_dump(mode="json")
        await self.registry.push_to_user(notification.user_id, payload)
