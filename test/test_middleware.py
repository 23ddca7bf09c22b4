"""
Tests for logging, request-context middleware and the transaction helper.
"""

import asyncio
import json
import logging

import pytest
from fastapi import Request
from sqlalchemy import func, select

from taskflow.database import transaction
from taskflow.exceptions import DatabaseError
from taskflow.middleware.logging import RequestIdFilter, StructuredFormatter, request_id_var
from taskflow.models import Tenant
from taskflow.utils.pagination import build_pagination


class TestStructuredFormatter:
    def _record(self, **extra):
        record = logging.LogRecord("taskflow.access", logging.INFO, __file__, 1, "GET /x - 200", None, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_json_output(self):
        record = self._record(status_code=200, tenant_id="tenant-1", request_id="abc")

        payload = json.loads(StructuredFormatter().format(record))

        assert payload["level"] == "INFO"
        assert payload["logger"] == "taskflow.access"
        assert payload["message"] == "GET /x - 200"
        assert payload["status_code"] == 200
        assert payload["tenant_id"] == "tenant-1"
        assert payload["request_id"] == "abc"

    def test_request_id_filter_reads_context(self):
        token = request_id_var.set("req-42")
        try:
            record = self._record()
            assert RequestIdFilter().filter(record) is True
            assert record.request_id == "req-42"
        finally:
            request_id_var.reset(token)


class TestRequestContext:
    @pytest.fixture
    def echo_app(self, app):
        @app.get("/echo-context")
        async def echo(request: Request):
            return {"tenant_id": request.state.tenant_id, "user_id": request.state.user_id}

        return app

    @pytest.mark.asyncio
    async def test_headers_are_copied_to_state(self, echo_app, client):
        response = await client.get("/echo-context", headers={"X-Tenant-ID": "t-1", "X-User-ID": "u-1"})
        assert response.json() == {"tenant_id": "t-1", "user_id": "u-1"}

    @pytest.mark.asyncio
    async def test_absent_headers_are_none(self, echo_app, client):
        response = await client.get("/echo-context")
        assert response.json() == {"tenant_id": None, "user_id": None}

    @pytest.mark.asyncio
    async def test_request_id_generated(self, client):
        response = await client.get("/health")
        assert response.headers["X-Request-ID"]


class TestPagination:
    def test_total_pages_rounds_up(self):
        assert build_pagination(total=21, page=1, limit=10).total_pages == 3

    def test_empty(self):
        assert build_pagination(total=0, page=1, limit=10).total_pages == 0

    def test_alias(self):
        dumped = build_pagination(total=5, page=1, limit=5).model_dump(by_alias=True)
        assert dumped == {"total": 5, "page": 1, "limit": 5, "totalPages": 1}


class TestTransaction:
    def _tenant(self, domain):
        return Tenant(name="T", domain=domain, owner_id="u", settings={}, features=[])

    async def _count(self, db):
        return (await db.execute(select(func.count(Tenant.id)))).scalar()

    @pytest.mark.asyncio
    async def test_commits_on_success(self, test_db):
        async with transaction(test_db):
            test_db.add(self._tenant("ok.io"))
        assert await self._count(test_db) == 1

    @pytest.mark.asyncio
    async def test_rolls_back_on_error(self, test_db):
        with pytest.raises(ValueError):
            async with transaction(test_db):
                test_db.add(self._tenant("bad.io"))
                await test_db.flush()
                raise ValueError("abort")
        assert await self._count(test_db) == 0

    @pytest.mark.asyncio
    async def test_timeout_rolls_back(self, test_db):
        with pytest.raises(DatabaseError) as exc_info:
            async with transaction(test_db, timeout=0.01):
                test_db.add(self._tenant("slow.io"))
                await test_db.flush()
                await asyncio.sleep(1)
        assert exc_info.value.message == "Database operation timed out"
        assert await self._count(test_db) == 0
