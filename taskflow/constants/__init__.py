"""Constants package for TaskFlow."""

from .auth import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    ACCESS_TOKEN_TYPE,
    ALGORITHM,
    PASSWORD_RESET_EXPIRE_HOURS,
    REFRESH_TOKEN_EXPIRE_DAYS,
    REFRESH_TOKEN_TYPE,
    SECRET_KEY,
)
from .headers import TENANT_ID_HEADER, USER_ID_HEADER

__all__ = [
    # Auth constants
    "SECRET_KEY",
    "ALGORITHM",
    "ACCESS_TOKEN_EXPIRE_MINUTES",
    "REFRESH_TOKEN_EXPIRE_DAYS",
    "PASSWORD_RESET_EXPIRE_HOURS",
    "ACCESS_TOKEN_TYPE",
    "REFRESH_TOKEN_TYPE",
    # Request context headers
    "TENANT_ID_HEADER",
    "USER_ID_HEADER",
]
