"""
Request Context Middleware

Copies the gateway-forwarded ``X-Tenant-ID`` and ``X-User-ID`` headers
onto ``request.state`` so handlers, dependencies and access logs can read
them. The headers are trusted as-is; they are not cross-checked against
token claims.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware

from taskflow.constants import TENANT_ID_HEADER, USER_ID_HEADER

if TYPE_CHECKING:
    from collections.abc import Callable

    from fastapi import Request
    from starlette.responses import Response


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request.state.tenant_id = request.headers.get(TENANT_ID_HEADER) or None
        request.state.user_id = request.headers.get(USER_ID_HEADER) or None
        return await call_next(request)
