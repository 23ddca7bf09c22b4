"""
Tenant model.

Each Tenant is an isolated customer organisation. Quotas and features are
derived from the plan and stored on the row; status moves from pending to
active/suspended and ends as cancelled (the row is never deleted).
"""

import enum

from sqlalchemy import JSON, Column, ForeignKey, Index, Integer, String

from taskflow.database import Base
from taskflow.models.common import created_at_column, updated_at_column, uuid_pk


class TenantStatus(str, enum.Enum):
    pending = "pending"
    active = "active"
    suspended = "suspended"
    cancelled = "cancelled"


class TenantPlan(str, enum.Enum):
    free = "free"
    basic = "basic"
    professional = "professional"
    enterprise = "enterprise"


class Tenant(Base):
    __tablename__ = "tenants"

    id = uuid_pk()
    name = Column(String(255), nullable=False)
    domain = Column(String(255), nullable=False, unique=True)
    subdomain = Column(String(255), nullable=True, unique=True)
    status = Column(String(50), nullable=False, default=TenantStatus.pending.value)
    plan = Column(String(50), nullable=False, default=TenantPlan.free.value)
    settings = Column(JSON, nullable=False, default=dict)
    owner_id = Column(String(36), ForeignKey("users.id"), nullable=False)

    # -1 means unlimited
    max_users = Column(Integer, nullable=False, default=5)
    max_projects = Column(Integer, nullable=False, default=3)
    max_storage_gb = Column(Integer, nullable=False, default=1)
    features = Column(JSON, nullable=False, default=list)

    created_at = created_at_column()
    updated_at = updated_at_column()

    __table_args__ = (
        Index("idx_tenants_status", "status"),
        Index("idx_tenants_owner_id", "owner_id"),
    )
