"""
Rate Limiting

Global per-client limit plus stricter limits on the credential endpoints.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from taskflow.config import settings
from taskflow.exception_handlers import create_error_response
from taskflow.exceptions import ErrorCode

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit_default],
    storage_uri="memory://",
    enabled=settings.rate_limit_enabled,
)

AUTH_RATE_LIMIT = settings.rate_limit_auth


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return create_error_response(
        status_code=429,
        message="Too many requests from this IP, please try again later.",
        error_code=ErrorCode.RATE_LIMIT_EXCEEDED,
        details={"limit": str(exc.detail)},
    )


def configure_rate_limiting(app) -> None:
    """
    Configure rate limiting for the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)
