from .notification import Notification, NotificationPreference
from .project import Project, ProjectMember
from .task import Task, TaskAssignment
from .tenant import Tenant
from .user import User

__all__ = [
    "Notification",
    "NotificationPreference",
    "Project",
    "ProjectMember",
    "Task",
    "TaskAssignment",
    "Tenant",
    "User",
]
