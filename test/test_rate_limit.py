"""
Tests for rate limiting configuration.
"""

import json
from unittest.mock import MagicMock

import pytest
from slowapi.errors import RateLimitExceeded

from taskflow.config import settings
from taskflow.middleware.rate_limit import AUTH_RATE_LIMIT, limiter, rate_limit_exceeded_handler


class TestRateLimitConfig:
    def test_limiter_attached_to_app(self, app):
        assert app.state.limiter is limiter

    def test_handler_registered(self, app):
        assert app.exception_handlers[RateLimitExceeded] is rate_limit_exceeded_handler

    def test_auth_limit_comes_from_settings(self):
        assert AUTH_RATE_LIMIT == settings.rate_limit_auth

    def test_disabled_under_test(self):
        assert limiter.enabled is False


class TestRateLimitHandler:
    @pytest.mark.asyncio
    async def test_envelope(self):
        exc = RateLimitExceeded(MagicMock(error_message=None, limit="20 per 1 minute"))

        response = await rate_limit_exceeded_handler(MagicMock(), exc)

        assert response.status_code == 429
        body = json.loads(response.body)
        assert body["success"] is False
        assert body["error_code"] == "RATE_LIMIT_EXCEEDED"
        assert body["details"] == {"limit": "20 per 1 minute"}
