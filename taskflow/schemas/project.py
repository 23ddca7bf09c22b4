from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taskflow.models.project import ProjectRole, ProjectStatus


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    tags: list[str] = Field(default_factory=list)
    budget: float | None = Field(None, ge=0)
    members: list[str] = Field(default_factory=list, description="User ids joining as members")


class ProjectUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    status: ProjectStatus | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    tags: list[str] | None = None
    budget: float | None = Field(None, ge=0)


class ProjectMemberCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    user_id: str = Field(..., min_length=1, max_length=36)
    role: ProjectRole = ProjectRole.MEMBER
    permissions: list[str] | None = None


class ProjectMemberUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    role: ProjectRole | None = None
    permissions: list[str] | None = None


class ProjectMemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    project_id: str
    user_id: str
    role: str
    permissions: list[str]
    joined_at: datetime


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str | None
    status: str
    tenant_id: str
    owner_id: str
    start_date: datetime | None
    end_date: datetime | None
    tags: list[str]
    budget: float | None
    progress: float = 0.0
    members: list[ProjectMemberResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @field_validator("progress", mode="before")
    @classmethod
    def default_progress(cls, value):
        return 0.0 if value is None else value
