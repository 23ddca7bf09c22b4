import enum

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Index, String, Text, UniqueConstraint

from taskflow.database import Base
from taskflow.models.common import created_at_column, updated_at_column, uuid_pk


class NotificationType(str, enum.Enum):
    task_assigned = "task_assigned"
    task_completed = "task_completed"
    task_due_soon = "task_due_soon"
    task_overdue = "task_overdue"
    project_invitation = "project_invitation"
    project_update = "project_update"
    comment_added = "comment_added"
    system_alert = "system_alert"


class NotificationStatus(str, enum.Enum):
    unread = "unread"
    read = "read"


class Notification(Base):
    __tablename__ = "notifications"

    id = uuid_pk()
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(50), nullable=False)
    status = Column(String(50), nullable=False, default=NotificationStatus.unread.value)
    data = Column(JSON, nullable=True)
    created_at = created_at_column()
    read_at = Column(DateTime(timezone=True), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_notifications_user_id", "user_id"),
        Index("idx_notifications_tenant_id", "tenant_id"),
        Index("idx_notifications_status", "status"),
        Index("idx_notifications_created_at", "created_at"),
    )


class NotificationPreference(Base):
    """Per-user, per-tenant delivery toggles. Every toggle defaults to on."""

    __tablename__ = "notification_preferences"

    id = uuid_pk()
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False)

    # Channels
    email_enabled = Column(Boolean, nullable=False, default=True)
    push_enabled = Column(Boolean, nullable=False, default=True)
    in_app_enabled = Column(Boolean, nullable=False, default=True)

    # Per-type toggles
    task_assigned = Column(Boolean, nullable=False, default=True)
    task_completed = Column(Boolean, nullable=False, default=True)
    task_due_soon = Column(Boolean, nullable=False, default=True)
    task_overdue = Column(Boolean, nullable=False, default=True)
    project_invitation = Column(Boolean, nullable=False, default=True)
    project_update = Column(Boolean, nullable=False, default=True)
    comment_added = Column(Boolean, nullable=False, default=True)
    system_alert = Column(Boolean, nullable=False, default=True)

    created_at = created_at_column()
    updated_at = updated_at_column()

    __table_args__ = (UniqueConstraint("user_id", "tenant_id", name="uq_notification_preferences_user_tenant"),)


PREFERENCE_FIELDS = (
    "email_enabled",
    "push_enabled",
    "in_app_enabled",
    *(t.value for t in NotificationType),
)
