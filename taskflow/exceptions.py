"""
Custom Exception Classes for TaskFlow

This module defines custom exceptions for better error handling and
consistent error responses across the application.
"""

from enum import Enum
from typing import Any

from fastapi import status


class ErrorCode(str, Enum):
    """Machine-readable error codes returned next to the human message."""

    # Request context
    MISSING_TENANT_ID = "MISSING_TENANT_ID"
    MISSING_USER_ID = "MISSING_USER_ID"

    # Authentication / authorization
    AUTH_FAILED = "AUTH_FAILED"
    AUTH_INVALID_CREDENTIALS = "AUTH_INVALID_CREDENTIALS"
    AUTH_INVALID_TOKEN = "AUTH_INVALID_TOKEN"
    AUTH_PERMISSION_DENIED = "AUTH_PERMISSION_DENIED"

    # Resources
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_TENANT_NOT_FOUND = "RESOURCE_TENANT_NOT_FOUND"
    RESOURCE_PROJECT_NOT_FOUND = "RESOURCE_PROJECT_NOT_FOUND"
    RESOURCE_MEMBER_NOT_FOUND = "RESOURCE_MEMBER_NOT_FOUND"
    RESOURCE_TASK_NOT_FOUND = "RESOURCE_TASK_NOT_FOUND"
    RESOURCE_USER_NOT_FOUND = "RESOURCE_USER_NOT_FOUND"
    RESOURCE_NOTIFICATION_NOT_FOUND = "RESOURCE_NOTIFICATION_NOT_FOUND"

    # Validation / business rules
    VALIDATION_FAILED = "VALIDATION_FAILED"
    VALIDATION_DUPLICATE_RESOURCE = "VALIDATION_DUPLICATE_RESOURCE"
    INVALID_OPERATION = "INVALID_OPERATION"
    PROTECTED_OWNER = "PROTECTED_OWNER"

    # Infrastructure
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    DATABASE_ERROR = "DATABASE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class TaskFlowError(Exception):
    """Base exception class for all TaskFlow errors"""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


# ============================================================================
# Request Context Exceptions
# ============================================================================


class MissingContextError(TaskFlowError):
    """Raised when a required tenant/user header is absent"""

    def __init__(self, header: str, message: str, error_code: ErrorCode):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code=error_code,
            details={"header": header},
        )


# ============================================================================
# Authentication & Authorization Exceptions
# ============================================================================


class AuthenticationError(TaskFlowError):
    """Raised when authentication fails"""

    def __init__(
        self,
        message: str = "Authentication failed",
        error_code: ErrorCode = ErrorCode.AUTH_FAILED,
    ):
        super().__init__(message=message, status_code=status.HTTP_401_UNAUTHORIZED, error_code=error_code)


class InvalidCredentialsError(AuthenticationError):
    """Raised for an unknown email or a wrong password, never distinguishing the two"""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message=message, error_code=ErrorCode.AUTH_INVALID_CREDENTIALS)


class InvalidTokenError(AuthenticationError):
    """Raised when a JWT is malformed, expired, of the wrong type or revoked"""

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message=message, error_code=ErrorCode.AUTH_INVALID_TOKEN)


class AuthorizationError(TaskFlowError):
    """Raised when the caller lacks permission for an action"""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            error_code=ErrorCode.AUTH_PERMISSION_DENIED,
        )


# ============================================================================
# Resource Not Found Exceptions
# ============================================================================


class ResourceNotFoundError(TaskFlowError):
    """Base class for resource not found errors"""

    def __init__(
        self,
        resource_type: str,
        resource_id: Any | None = None,
        error_code: ErrorCode = ErrorCode.RESOURCE_NOT_FOUND,
    ):
        message = f"{resource_type} not found"
        if resource_id is not None:
            message = f"{resource_type} with id '{resource_id}' not found"
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            error_code=error_code,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class TenantNotFoundError(ResourceNotFoundError):
    def __init__(self, tenant_id: Any | None = None):
        super().__init__("Tenant", tenant_id, ErrorCode.RESOURCE_TENANT_NOT_FOUND)


class ProjectNotFoundError(ResourceNotFoundError):
    def __init__(self, project_id: Any | None = None):
        super().__init__("Project", project_id, ErrorCode.RESOURCE_PROJECT_NOT_FOUND)


class ProjectMemberNotFoundError(ResourceNotFoundError):
    def __init__(self, user_id: Any | None = None):
        super().__init__("Project member", user_id, ErrorCode.RESOURCE_MEMBER_NOT_FOUND)


class TaskNotFoundError(ResourceNotFoundError):
    def __init__(self, task_id: Any | None = None):
        super().__init__("Task", task_id, ErrorCode.RESOURCE_TASK_NOT_FOUND)


class UserNotFoundError(ResourceNotFoundError):
    def __init__(self, user_id: Any | None = None):
        super().__init__("User", user_id, ErrorCode.RESOURCE_USER_NOT_FOUND)


class NotificationNotFoundError(ResourceNotFoundError):
    def __init__(self, notification_id: Any | None = None):
        super().__init__("Notification", notification_id, ErrorCode.RESOURCE_NOTIFICATION_NOT_FOUND)


# ============================================================================
# Validation & Business Logic Exceptions
# ============================================================================


class ValidationError(TaskFlowError):
    """Raised when input validation fails"""

    def __init__(self, message: str, field: str | None = None, details: dict[str, Any] | None = None):
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code=ErrorCode.VALIDATION_FAILED,
            details=error_details,
        )


class DuplicateResourceError(TaskFlowError):
    """Raised when attempting to create a duplicate resource"""

    def __init__(self, resource_type: str, field: str, value: Any):
        super().__init__(
            message=f"{resource_type} with {field} '{value}' already exists",
            status_code=status.HTTP_409_CONFLICT,
            error_code=ErrorCode.VALIDATION_DUPLICATE_RESOURCE,
            details={"resource_type": resource_type, "field": field, "value": value},
        )


class InvalidOperationError(TaskFlowError):
    """Raised when an operation is invalid in the current context"""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        error_code: ErrorCode = ErrorCode.INVALID_OPERATION,
    ):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code=error_code,
            details=details or {},
        )


class ProtectedOwnerError(InvalidOperationError):
    """Raised when an operation would remove or demote a project's owner"""

    def __init__(self, project_id: str, user_id: str, message: str = "Cannot remove project owner"):
        super().__init__(
            message=message,
            details={"project_id": project_id, "user_id": user_id},
            error_code=ErrorCode.PROTECTED_OWNER,
        )


# ============================================================================
# Database Exceptions
# ============================================================================


class DatabaseError(TaskFlowError):
    """Raised when a database operation fails"""

    def __init__(self, message: str = "A database error occurred", operation: str | None = None):
        details = {"operation": operation} if operation else {}
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code=ErrorCode.DATABASE_ERROR,
            details=details,
        )
