"""
Request Dependencies

FastAPI dependencies shared by the routers: the caller's tenant and user
taken from the gateway headers, the bearer token claims, and the
notification objects held on ``app.state``.
"""

from typing import Any

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.constants import TENANT_ID_HEADER, USER_ID_HEADER
from taskflow.database import get_db
from taskflow.exceptions import AuthenticationError, ErrorCode, MissingContextError
from taskflow.services.auth_service import validate_token
from taskflow.services.notification_registry import NotificationRegistry
from taskflow.services.notification_service import NotificationService

bearer_scheme = HTTPBearer(auto_error=False)


def require_tenant_id(request: Request) -> str:
    tenant_id = getattr(request.state, "tenant_id", None) or request.headers.get(TENANT_ID_HEADER)
    if not tenant_id:
        raise MissingContextError(TENANT_ID_HEADER, "Tenant ID is required", ErrorCode.MISSING_TENANT_ID)
    return tenant_id


def require_user_id(request: Request) -> str:
    user_id = getattr(request.state, "user_id", None) or request.headers.get(USER_ID_HEADER)
    if not user_id:
        raise MissingContextError(USER_ID_HEADER, "User ID is required", ErrorCode.MISSING_USER_ID)
    return user_id


def optional_tenant_id(request: Request) -> str | None:
    return getattr(request.state, "tenant_id", None) or request.headers.get(TENANT_ID_HEADER)


def get_token_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> dict[str, Any]:
    """Decode the ``Authorization: Bearer`` access token."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Token required")
    return validate_token(credentials.credentials)


def get_notification_registry(request: Request) -> NotificationRegistry:
    return request.app.state.notification_registry


def get_notification_service(
    db: AsyncSession = Depends(get_db),
    registry: NotificationRegistry = Depends(get_notification_registry),
) -> NotificationService:
    return NotificationService(db, registry)
