from .common import ApiResponse, PaginatedApiResponse, Pagination
from .notification import NotificationCreate, NotificationResponse
from .project import ProjectCreate, ProjectResponse, ProjectUpdate
from .task import TaskCreate, TaskResponse, TaskUpdate
from .tenant import TenantCreate, TenantResponse, TenantUpdate
from .user import UserResponse, UserUpdate

# Define the public API of this module
__all__ = [
    "ApiResponse",
    "PaginatedApiResponse",
    "Pagination",
    "NotificationCreate",
    "NotificationResponse",
    "ProjectCreate",
    "ProjectResponse",
    "ProjectUpdate",
    "TaskCreate",
    "TaskResponse",
    "TaskUpdate",
    "TenantCreate",
    "TenantResponse",
    "TenantUpdate",
    "UserResponse",
    "UserUpdate",
]
