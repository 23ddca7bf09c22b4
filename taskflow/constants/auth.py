"""
Authentication Constants

Configuration constants for JWT authentication and password resets.
"""

import logging

from decouple import config

logger = logging.getLogger(__name__)

# JWT Configuration
SECRET_KEY = config("JWT_SECRET", default="your_secret_key")
if SECRET_KEY == "your_secret_key":
    logger.warning("Using default JWT_SECRET. This is insecure and should be changed in production!")

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = config("ACCESS_TOKEN_EXPIRE_MINUTES", default=60, cast=int)
REFRESH_TOKEN_EXPIRE_DAYS = config("REFRESH_TOKEN_EXPIRE_DAYS", default=7, cast=int)
PASSWORD_RESET_EXPIRE_HOURS = config("PASSWORD_RESET_EXPIRE_HOURS", default=24, cast=int)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"
