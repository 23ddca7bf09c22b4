"""Project and project membership models."""

import enum

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import query_expression, relationship

from taskflow.database import Base
from taskflow.models.common import created_at_column, updated_at_column, utc_now, uuid_pk


class ProjectStatus(str, enum.Enum):
    planning = "planning"
    active = "active"
    on_hold = "on_hold"
    completed = "completed"
    cancelled = "cancelled"


class ProjectRole(str, enum.Enum):
    """Role within a project."""

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    VIEWER = "viewer"


OWNER_PERMISSIONS = ["*"]
MEMBER_PERMISSIONS = ["read", "write"]
DEFAULT_PERMISSIONS = ["read"]


class Project(Base):
    __tablename__ = "projects"

    id = uuid_pk()
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(50), nullable=False, default=ProjectStatus.planning.value)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False)
    owner_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    budget = Column(Numeric(10, 2, asdecimal=False), nullable=True)
    created_at = created_at_column()
    updated_at = updated_at_column()

    # Never stored; filled in by the project service on every read
    progress = query_expression()

    members = relationship(
        "ProjectMember",
        back_populates="project",
        order_by="ProjectMember.joined_at",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_projects_tenant_id", "tenant_id"),
        Index("idx_projects_owner_id", "owner_id"),
        Index("idx_projects_status", "status"),
    )


class ProjectMember(Base):
    """Membership association between users and projects."""

    __tablename__ = "project_members"

    id = uuid_pk()
    project_id = Column(String(36), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role = Column(String(50), nullable=False, default=ProjectRole.MEMBER.value)
    permissions = Column(JSON, nullable=False, default=list)
    joined_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    project = relationship("Project", back_populates="members")

    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_members_project_user"),
        Index("idx_project_members_project_id", "project_id"),
        Index("idx_project_members_user_id", "user_id"),
    )
