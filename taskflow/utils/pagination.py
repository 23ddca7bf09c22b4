"""
Pagination Utilities

Page/limit query parameters and the ``pagination`` block attached to
every list response.
"""

import math
from collections.abc import Callable, Sequence
from typing import Any

from fastapi import Query

from taskflow.schemas.common import PaginatedApiResponse, Pagination

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def build_pagination(total: int, page: int, limit: int) -> Pagination:
    return Pagination(
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit) if limit else 0,
    )


def paginated_response(
    items: Sequence[Any],
    total: int,
    params: "PaginationParams",
    serializer: Callable[[Any], Any],
    message: str | None = None,
) -> PaginatedApiResponse:
    return PaginatedApiResponse(
        data=[serializer(item) for item in items],
        pagination=build_pagination(total, params.page, params.limit),
        message=message,
    )


class PaginationParams:
    """
    FastAPI dependency for pagination parameters.

    Usage:
        @router.get("/items")
        async def list_items(pagination: PaginationParams = Depends()):
            ...
    """

    def __init__(
        self,
        page: int = Query(default=1, ge=1, description="1-based page number"),
        limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, description="Items per page"),
    ):
        self.page = page
        self.limit = limit
