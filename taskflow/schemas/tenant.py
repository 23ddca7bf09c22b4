from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from taskflow.models.tenant import TenantPlan, TenantStatus


class TenantCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: str = Field(..., min_length=1, max_length=255)
    domain: str = Field(..., min_length=3, max_length=255)
    subdomain: str | None = Field(None, max_length=255)
    owner_id: str = Field(..., min_length=1, max_length=36)
    plan: TenantPlan | None = None
    settings: dict[str, Any] | None = None


class TenantUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: str | None = Field(None, min_length=1, max_length=255)
    domain: str | None = Field(None, min_length=3, max_length=255)
    subdomain: str | None = Field(None, max_length=255)
    status: TenantStatus | None = None
    plan: TenantPlan | None = None
    settings: dict[str, Any] | None = None
    max_users: int | None = Field(None, ge=-1)
    max_projects: int | None = Field(None, ge=-1)
    max_storage_gb: int | None = Field(None, ge=-1)
    features: list[str] | None = None


class TenantPlanUpgrade(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    plan: TenantPlan


class TenantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    domain: str
    subdomain: str | None
    status: str
    plan: str
    settings: dict[str, Any]
    owner_id: str
    max_users: int
    max_projects: int
    max_storage_gb: int
    features: list[str]
    created_at: datetime
    updated_at: datetime


class TenantUsageResponse(BaseModel):
    tenant_id: str
    current_users: int
    current_projects: int
    current_storage_gb: float
    max_users: int
    max_projects: int
    max_storage_gb: int
    last_updated: datetime
