import enum

from sqlalchemy import Column, DateTime, Index, String, Text, UniqueConstraint

from taskflow.database import Base
from taskflow.models.common import created_at_column, updated_at_column, uuid_pk


class UserRole(str, enum.Enum):
    user = "user"
    manager = "manager"
    admin = "admin"
    superadmin = "superadmin"


class UserStatus(str, enum.Enum):
    active = "active"
    inactive = "inactive"
    suspended = "suspended"


class User(Base):
    __tablename__ = "users"

    id = uuid_pk()
    email = Column(String(255), nullable=False)
    username = Column(String(100), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    password_hash = Column(String(255), nullable=False)
    tenant_id = Column(String(36), nullable=False)
    role = Column(String(50), nullable=False, default=UserRole.user.value)
    status = Column(String(50), nullable=False, default=UserStatus.active.value)
    avatar_url = Column(String(500), nullable=True)
    phone = Column(String(20), nullable=True)
    timezone = Column(String(50), nullable=False, default="UTC")
    language = Column(String(10), nullable=False, default="en")

    # At most one live refresh token per user; rotation overwrites it
    refresh_token = Column(Text, nullable=True)
    reset_token = Column(String(255), nullable=True)
    reset_token_expiry = Column(DateTime(timezone=True), nullable=True)

    created_at = created_at_column()
    updated_at = updated_at_column()

    __table_args__ = (
        UniqueConstraint("tenant_id", "email", name="uq_users_tenant_email"),
        Index("idx_users_tenant_id", "tenant_id"),
        Index("idx_users_email", "email"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
