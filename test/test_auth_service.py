"""
Tests for registration, login and the token lifecycle.
"""

from datetime import timedelta

import pytest
from jose import jwt

from taskflow.auth import create_access_token, create_refresh_token, decode_token
from taskflow.constants import ALGORITHM, SECRET_KEY
from taskflow.exceptions import DuplicateResourceError, InvalidCredentialsError, InvalidTokenError, ValidationError
from taskflow.models.common import utc_now
from taskflow.services import auth_service

PASSWORD = "s3cret-password"


async def _register(db, email="dana@acme.io", tenant_id="tenant-1"):
    return await auth_service.register_user(
        db, email=email, password=PASSWORD, first_name="Dana", last_name="Scully", tenant_id=tenant_id
    )


class TestTokens:
    def test_access_token_claims(self):
        token = create_access_token({"sub": "user-1", "tenant_id": "tenant-1"})
        claims = decode_token(token)
        assert claims["sub"] == "user-1"
        assert claims["tenant_id"] == "tenant-1"
        assert claims["type"] == "access"

    def test_refresh_token_is_not_an_access_token(self):
        token = create_refresh_token({"sub": "user-1"})
        with pytest.raises(InvalidTokenError):
            decode_token(token, "access")

    def test_expired_token(self):
        token = create_access_token({"sub": "user-1"}, expires_delta=timedelta(seconds=-1))
        with pytest.raises(InvalidTokenError):
            decode_token(token)

    def test_tampered_token(self):
        token = create_access_token({"sub": "user-1"})
        with pytest.raises(InvalidTokenError):
            decode_token(token + "x")

    def test_token_without_subject(self):
        token = jwt.encode({"type": "access"}, SECRET_KEY, algorithm=ALGORITHM)
        with pytest.raises(InvalidTokenError):
            decode_token(token)

    def test_subject_is_required_to_mint(self):
        with pytest.raises(ValueError):
            create_access_token({"email": "x@acme.io"})

    def test_tokens_minted_together_differ(self):
        assert create_refresh_token({"sub": "u"}) != create_refresh_token({"sub": "u"})


class TestRegisterAndLogin:
    @pytest.mark.asyncio
    async def test_register_returns_user_and_tokens(self, test_db):
        result = await _register(test_db)

        user = result["user"]
        assert user.username == "dana"
        assert user.role == "user"
        assert user.password_hash != PASSWORD
        assert decode_token(result["access_token"])["sub"] == user.id
        assert user.refresh_token == result["refresh_token"]

    @pytest.mark.asyncio
    async def test_duplicate_email_in_tenant(self, test_db):
        await _register(test_db)
        with pytest.raises(DuplicateResourceError):
            await _register(test_db)

    @pytest.mark.asyncio
    async def test_same_email_in_another_tenant(self, test_db):
        await _register(test_db)
        result = await _register(test_db, tenant_id="tenant-2")
        assert result["user"].tenant_id == "tenant-2"

    @pytest.mark.asyncio
    async def test_login(self, test_db):
        registered = await _register(test_db)

        result = await auth_service.login(test_db, "dana@acme.io", PASSWORD)

        assert result["user"].id == registered["user"].id
        assert result["user"].refresh_token == result["refresh_token"]

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_email_look_alike(self, test_db):
        await _register(test_db)

        with pytest.raises(InvalidCredentialsError) as wrong_password:
            await auth_service.login(test_db, "dana@acme.io", "nope-nope")
        with pytest.raises(InvalidCredentialsError) as unknown_email:
            await auth_service.login(test_db, "fox@acme.io", PASSWORD)

        assert wrong_password.value.message == unknown_email.value.message
        assert wrong_password.value.status_code == unknown_email.value.status_code == 401

    @pytest.mark.asyncio
    async def test_login_scoped_to_tenant(self, test_db):
        await _register(test_db)
        with pytest.raises(InvalidCredentialsError):
            await auth_service.login(test_db, "dana@acme.io", PASSWORD, tenant_id="tenant-2")


class TestRefresh:
    @pytest.mark.asyncio
    async def test_rotation_invalidates_previous_token(self, test_db):
        registered = await _register(test_db)
        first = registered["refresh_token"]

        rotated = await auth_service.refresh_tokens(test_db, first)

        assert rotated["refresh_token"] != first
        with pytest.raises(InvalidTokenError):
            await auth_service.refresh_tokens(test_db, first)
        # The new one keeps working
        again = await auth_service.refresh_tokens(test_db, rotated["refresh_token"])
        assert again["access_token"]

    @pytest.mark.asyncio
    async def test_access_token_cannot_refresh(self, test_db):
        registered = await _register(test_db)
        with pytest.raises(InvalidTokenError):
            await auth_service.refresh_tokens(test_db, registered["access_token"])

    @pytest.mark.asyncio
    async def test_logout_revokes(self, test_db):
        registered = await _register(test_db)

        await auth_service.logout(test_db, registered["refresh_token"])

        with pytest.raises(InvalidTokenError):
            await auth_service.refresh_tokens(test_db, registered["refresh_token"])


class TestPasswords:
    @pytest.mark.asyncio
    async def test_change_password(self, test_db):
        registered = await _register(test_db)
        user_id = registered["user"].id

        with pytest.raises(ValidationError):
            await auth_service.change_password(test_db, user_id, "wrong-current", "new-password-1")

        await auth_service.change_password(test_db, user_id, PASSWORD, "new-password-1")
        await auth_service.login(test_db, "dana@acme.io", "new-password-1")

    @pytest.mark.asyncio
    async def test_forgot_password_for_unknown_email(self, test_db):
        assert await auth_service.forgot_password(test_db, "nobody@acme.io") == []

    @pytest.mark.asyncio
    async def test_reset_password_flow(self, test_db):
        registered = await _register(test_db)
        [token] = await auth_service.forgot_password(test_db, "dana@acme.io")

        await auth_service.reset_password(test_db, token, "brand-new-pass")

        await auth_service.login(test_db, "dana@acme.io", "brand-new-pass")
        # Token is single use, and the old session is gone
        with pytest.raises(ValidationError):
            await auth_service.reset_password(test_db, token, "another-pass-1")
        with pytest.raises(InvalidTokenError):
            await auth_service.refresh_tokens(test_db, registered["refresh_token"])

    @pytest.mark.asyncio
    async def test_expired_reset_token(self, test_db):
        registered = await _register(test_db)
        [token] = await auth_service.forgot_password(test_db, "dana@acme.io")
        user = registered["user"]
        user.reset_token_expiry = utc_now() - timedelta(minutes=1)
        await test_db.commit()

        with pytest.raises(ValidationError):
            await auth_service.reset_password(test_db, token, "brand-new-pass")

    @pytest.mark.asyncio
    async def test_forgot_password_reaches_every_tenant_with_the_email(self, test_db):
        first = (await _register(test_db, email="same@x.io", tenant_id="tenant-a"))["user"]
        second = (await _register(test_db, email="same@x.io", tenant_id="tenant-b"))["user"]

        tokens = await auth_service.forgot_password(test_db, "same@x.io")

        assert len(tokens) == 2
        assert first.reset_token is not None
        assert second.reset_token is not None
        assert first.reset_token != second.reset_token

        await auth_service.reset_password(test_db, second.reset_token, "brand-new-pass")
        await auth_service.login(test_db, "same@x.io", "brand-new-pass", tenant_id="tenant-b")
        await auth_service.login(test_db, "same@x.io", PASSWORD, tenant_id="tenant-a")

    @pytest.mark.asyncio
    async def test_forgot_password_scoped_to_tenant(self, test_db):
        first = (await _register(test_db, email="same@x.io", tenant_id="tenant-a"))["user"]
        second = (await _register(test_db, email="same@x.io", tenant_id="tenant-b"))["user"]

        tokens = await auth_service.forgot_password(test_db, "same@x.io", tenant_id="tenant-b")

        assert tokens == [second.reset_token]
        assert first.reset_token is None
