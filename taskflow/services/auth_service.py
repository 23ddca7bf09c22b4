"""
Auth Service

Registration, login and token lifecycle. Each user holds at most one live
refresh token: every successful refresh overwrites it, so a replayed or
superseded refresh token is rejected.
"""

import logging
import uuid
from datetime import timedelta
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.auth import (
    build_claims,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    pwd_context,
    verify_password,
)
from taskflow.constants import ACCESS_TOKEN_TYPE, PASSWORD_RESET_EXPIRE_HOURS, REFRESH_TOKEN_TYPE
from taskflow.database import transaction
from taskflow.exceptions import (
    DatabaseError,
    DuplicateResourceError,
    InvalidCredentialsError,
    InvalidTokenError,
    UserNotFoundError,
    ValidationError,
)
from taskflow.models.common import generate_uuid, utc_now
from taskflow.models.user import User, UserRole, UserStatus
from taskflow.services.user_service import get_user_by_email, get_user_by_id

logger = logging.getLogger(__name__)


def _issue_tokens(user: User) -> dict[str, str]:
    claims = build_claims(user)
    return {
        "access_token": create_access_token(claims),
        "refresh_token": create_refresh_token(claims),
    }


async def register_user(
    db: AsyncSession,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    tenant_id: str,
) -> dict[str, Any]:
    """Create a user in ``tenant_id`` and sign them in."""
    if await get_user_by_email(db, email, tenant_id) is not None:
        raise DuplicateResourceError("User", "email", email)

    user = User(
        id=generate_uuid(),
        email=email,
        username=email.split("@")[0],
        first_name=first_name,
        last_name=last_name,
        password_hash=hash_password(password),
        tenant_id=tenant_id,
        role=UserRole.user.value,
        status=UserStatus.active.value,
    )
    tokens = _issue_tokens(user)
    user.refresh_token = tokens["refresh_token"]

    try:
        async with transaction(db):
            db.add(user)
    except IntegrityError as e:
        raise DuplicateResourceError("User", "email", email) from e
    except SQLAlchemyError as e:
        logger.error(f"Error registering user: {e}")
        raise DatabaseError("Failed to register user", operation="register_user") from e

    await db.refresh(user)
    logger.info("User registered: id=%s tenant=%s", user.id, tenant_id)
    return {"user": user, **tokens}


async def authenticate_user(db: AsyncSession, email: str, password: str, tenant_id: str | None = None) -> User:
    """
    Return the user for these credentials.

    Unknown email and wrong password raise the same InvalidCredentialsError.
    """
    user = await get_user_by_email(db, email, tenant_id)
    if user is None:
        # Keep response time close to the wrong-password path
        pwd_context.dummy_verify()
        raise InvalidCredentialsError()
    if not verify_password(password, user.password_hash):
        raise InvalidCredentialsError()
    return user


async def login(db: AsyncSession, email: str, password: str, tenant_id: str | None = None) -> dict[str, Any]:
    user = await authenticate_user(db, email, password, tenant_id)
    tokens = _issue_tokens(user)
    try:
        async with transaction(db):
            user.refresh_token = tokens["refresh_token"]
    except SQLAlchemyError as e:
        logger.error(f"Error storing refresh token for {user.id}: {e}")
        raise DatabaseError("Failed to sign in", operation="login") from e

    logger.info("User logged in: id=%s", user.id)
    return {"user": user, **tokens}


async def refresh_tokens(db: AsyncSession, refresh_token: str) -> dict[str, str]:
    """
    Exchange a live refresh token for a new pair.

    The stored token is swapped only if it still equals ``refresh_token``,
    so of two concurrent refreshes with the same token only one succeeds.
    """
    payload = decode_token(refresh_token, REFRESH_TOKEN_TYPE)
    user = await get_user_by_id(db, payload["sub"])
    if user is None or user.refresh_token != refresh_token:
        logger.info("Refresh rejected for sub=%s", payload["sub"])
        raise InvalidTokenError()

    tokens = _issue_tokens(user)
    try:
        async with transaction(db):
            result = await db.execute(
                update(User)
                .where(User.id == user.id, User.refresh_token == refresh_token)
                .values(refresh_token=tokens["refresh_token"], updated_at=utc_now())
            )
            if result.rowcount == 0:
                raise InvalidTokenError()
    except SQLAlchemyError as e:
        logger.error(f"Error rotating refresh token for {user.id}: {e}")
        raise DatabaseError("Failed to refresh token", operation="refresh_tokens") from e

    logger.info("Refresh token rotated for user %s", user.id)
    return tokens


async def logout(db: AsyncSession, refresh_token: str) -> None:
    """Revoke ``refresh_token``. Unknown tokens are ignored."""
    try:
        async with transaction(db):
            await db.execute(update(User).where(User.refresh_token == refresh_token).values(refresh_token=None))
    except SQLAlchemyError as e:
        logger.error(f"Error during logout: {e}")
        raise DatabaseError("Failed to log out", operation="logout") from e
    logger.info("User logged out")


def validate_token(token: str) -> dict[str, Any]:
    return decode_token(token, ACCESS_TOKEN_TYPE)


async def change_password(db: AsyncSession, user_id: str, current_password: str, new_password: str) -> None:
    user = await get_user_by_id(db, user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    if not verify_password(current_password, user.password_hash):
        raise ValidationError("Current password is incorrect", field="currentPassword")

    try:
        async with transaction(db):
            user.password_hash = hash_password(new_password)
    except SQLAlchemyError as e:
        logger.error(f"Error changing password for {user_id}: {e}")
        raise DatabaseError("Failed to change password", operation="change_password") from e
    logger.info("Password changed for user %s", user_id)


async def forgot_password(db: AsyncSession, email: str, tenant_id: str | None = None) -> list[str]:
    """
    Issue a reset token valid for PASSWORD_RESET_EXPIRE_HOURS.

    The same email may exist in several tenants; without ``tenant_id``
    every matching account gets its own token. Returns the issued tokens,
    empty when no account matches. Callers must not reveal which happened.
    """
    query = select(User).where(User.email == email)
    if tenant_id is not None:
        query = query.where(User.tenant_id == tenant_id)
    users = list((await db.execute(query)).scalars().all())
    if not users:
        logger.info("Password reset requested for unknown email")
        return []

    expiry = utc_now() + timedelta(hours=PASSWORD_RESET_EXPIRE_HOURS)
    tokens = []
    try:
        async with transaction(db):
            for user in users:
                user.reset_token = str(uuid.uuid4())
                user.reset_token_expiry = expiry
                tokens.append(user.reset_token)
    except SQLAlchemyError as e:
        logger.error(f"Error storing reset tokens for {email}: {e}")
        raise DatabaseError("Failed to start password reset", operation="forgot_password") from e

    # TODO: hand the reset tokens to the mailer once outbound email is wired up
    logger.info("Password reset tokens issued for %d account(s)", len(tokens))
    return tokens


async def reset_password(db: AsyncSession, token: str, new_password: str) -> None:
    """Set a new password from a live reset token; also revokes the refresh token."""
    result = await db.execute(
        select(User).where(User.reset_token == token, User.reset_token_expiry > utc_now())
    )
    user = result.scalars().first()
    if user is None:
        raise ValidationError("Invalid or expired reset token", field="token")

    try:
        async with transaction(db):
            user.password_hash = hash_password(new_password)
            user.reset_token = None
            user.reset_token_expiry = None
            user.refresh_token = None
    except SQLAlchemyError as e:
        logger.error(f"Error resetting password for {user.id}: {e}")
        raise DatabaseError("Failed to reset password", operation="reset_password") from e
    logger.info("Password reset for user %s", user.id)
