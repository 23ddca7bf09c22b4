import enum

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Numeric, String, Text

from taskflow.database import Base
from taskflow.models.common import created_at_column, updated_at_column, utc_now, uuid_pk


class TaskStatus(str, enum.Enum):
    todo = "todo"
    in_progress = "in_progress"
    review = "review"
    done = "done"
    cancelled = "cancelled"


class TaskPriority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


# Ordering used when sorting by priority, most urgent first
PRIORITY_RANK = {
    TaskPriority.urgent.value: 4,
    TaskPriority.high.value: 3,
    TaskPriority.medium.value: 2,
    TaskPriority.low.value: 1,
}


class Task(Base):
    __tablename__ = "tasks"

    id = uuid_pk()
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(50), nullable=False, default=TaskStatus.todo.value)
    priority = Column(String(50), nullable=False, default=TaskPriority.medium.value)
    assignee_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False)
    due_date = Column(DateTime(timezone=True), nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    estimated_hours = Column(Numeric(5, 2, asdecimal=False), nullable=True)
    actual_hours = Column(Numeric(5, 2, asdecimal=False), nullable=True)
    parent_task_id = Column(String(36), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    created_at = created_at_column()
    updated_at = updated_at_column()

    __table_args__ = (
        Index("idx_tasks_tenant_id", "tenant_id"),
        Index("idx_tasks_project_id", "project_id"),
        Index("idx_tasks_assignee_id", "assignee_id"),
        Index("idx_tasks_status", "status"),
        Index("idx_tasks_due_date", "due_date"),
        Index("idx_tasks_parent_task_id", "parent_task_id"),
    )


class TaskAssignment(Base):
    """Audit trail of every (re)assignment of a task."""

    __tablename__ = "task_assignments"

    id = uuid_pk()
    task_id = Column(String(36), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    assignee_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    assigned_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    assigned_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
