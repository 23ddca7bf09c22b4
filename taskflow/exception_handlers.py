"""
Global Exception Handlers for TaskFlow

This module provides centralized exception handling so that every error
leaves the API in the same envelope as a successful response.

Error Response Format:
{
    "success": false,
    "error": "Project with id '42' not found",
    "error_code": "RESOURCE_PROJECT_NOT_FOUND",
    "details": {"resource_type": "Project", "resource_id": "42"}
}

The `error_code` field is a machine-readable code that clients can
switch on without parsing the message.
"""

import logging
from typing import Any, Union

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskflow.exceptions import DatabaseError, ErrorCode, TaskFlowError

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "An unexpected error occurred. Please try again later."


def create_error_response(
    status_code: int,
    message: str,
    error_code: str | ErrorCode | None = None,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """
    Create a standardized error response.

    Args:
        status_code: HTTP status code
        message: Human-readable error message
        error_code: Machine-readable error code
        details: Additional error details

    Returns:
        JSONResponse with the ``success: false`` envelope
    """
    content: dict[str, Any] = {"success": False, "error": message}

    if error_code:
        content["error_code"] = error_code.value if isinstance(error_code, ErrorCode) else error_code

    if details:
        content["details"] = details

    return JSONResponse(status_code=status_code, content=content)


def get_http_error_code(status_code: int) -> str:
    """Map HTTP status codes to error codes for HTTPException."""
    error_code_map = {
        400: ErrorCode.VALIDATION_FAILED.value,
        401: ErrorCode.AUTH_FAILED.value,
        403: ErrorCode.AUTH_PERMISSION_DENIED.value,
        404: ErrorCode.RESOURCE_NOT_FOUND.value,
        405: ErrorCode.INVALID_OPERATION.value,
        409: ErrorCode.VALIDATION_DUPLICATE_RESOURCE.value,
        422: ErrorCode.VALIDATION_FAILED.value,
        429: ErrorCode.RATE_LIMIT_EXCEEDED.value,
        500: ErrorCode.INTERNAL_ERROR.value,
    }
    return error_code_map.get(status_code, ErrorCode.UNKNOWN_ERROR.value)


async def taskflow_exception_handler(request: Request, exc: TaskFlowError) -> JSONResponse:
    """
    Handle TaskFlow domain exceptions.

    Server-side failures are logged with their real message and answered
    with a generic one; client errors are returned as raised.
    """
    if exc.status_code >= 500:
        logger.error(
            f"{type(exc).__name__}: {exc.message}",
            exc_info=exc.__cause__ is not None,
            extra={"path": request.url.path, "status_code": exc.status_code},
        )
        message = GENERIC_SERVER_ERROR if isinstance(exc, DatabaseError) else exc.message
        return create_error_response(exc.status_code, message, exc.error_code)

    logger.warning(
        f"{type(exc).__name__}: {exc.message}",
        extra={"path": request.url.path, "status_code": exc.status_code},
    )
    return create_error_response(
        status_code=exc.status_code,
        message=exc.message,
        error_code=exc.error_code,
        details=exc.details if exc.details else None,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle standard HTTP exceptions (unknown routes, wrong methods, ...)."""
    logger.warning(
        f"HTTPException: {exc.detail}",
        extra={"status_code": exc.status_code, "path": request.url.path},
    )
    return create_error_response(
        status_code=exc.status_code,
        message=str(exc.detail),
        error_code=get_http_error_code(exc.status_code),
    )


async def validation_exception_handler(
    request: Request, exc: Union[RequestValidationError, PydanticValidationError]
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    Args:
        request: The request that caused the exception
        exc: The validation error

    Returns:
        JSONResponse with validation error details
    """
    errors = []

    if isinstance(exc, RequestValidationError):
        for error in exc.errors():
            field = ".".join(str(loc) for loc in error["loc"] if loc != "body")
            errors.append({"field": field, "message": error["msg"], "type": error["type"]})
    else:
        for error in exc.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            errors.append({"field": field, "message": error["msg"], "type": error["type"]})

    logger.warning(f"Validation error on {request.url.path}", extra={"errors": errors})

    return create_error_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        message="Validation error",
        error_code=ErrorCode.VALIDATION_FAILED,
        details={"validation_errors": errors},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without exposing internal details."""
    logger.error(
        f"Unhandled exception: {str(exc)}",
        exc_info=True,
        extra={"path": request.url.path, "method": request.method},
    )

    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message=GENERIC_SERVER_ERROR,
        error_code=ErrorCode.INTERNAL_ERROR,
    )


def register_exception_handlers(app) -> None:
    """
    Register all exception handlers with the FastAPI app.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(TaskFlowError, taskflow_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(PydanticValidationError, validation_exception_handler)

    # Catch-all for unexpected exceptions
    app.add_exception_handler(Exception, unhandled_exception_handler)

    logger.info("Exception handlers registered successfully")
