"""User profile reads and updates, scoped by tenant."""

import logging
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.database import transaction
from taskflow.exceptions import DatabaseError, DuplicateResourceError
from taskflow.models.project import ProjectMember
from taskflow.models.user import User

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {"first_name", "last_name", "email"}
SEARCH_LIMIT = 50


async def get_user_by_id(db: AsyncSession, user_id: str, tenant_id: str | None = None) -> User | None:
    query = select(User).where(User.id == user_id)
    if tenant_id is not None:
        query = query.where(User.tenant_id == tenant_id)
    result = await db.execute(query)
    return result.scalars().first()


async def get_user_by_email(db: AsyncSession, email: str, tenant_id: str | None = None) -> User | None:
    query = select(User).where(User.email == email)
    if tenant_id is not None:
        query = query.where(User.tenant_id == tenant_id)
    result = await db.execute(query.order_by(User.created_at))
    return result.scalars().first()


async def update_user(db: AsyncSession, user_id: str, updates: dict[str, Any], tenant_id: str | None = None) -> User | None:
    """Update first/last name and email. Returns None if the user does not exist."""
    user = await get_user_by_id(db, user_id, tenant_id)
    if user is None:
        return None

    email = updates.get("email")
    if email and email != user.email:
        existing = await get_user_by_email(db, email, user.tenant_id)
        if existing is not None:
            raise DuplicateResourceError("User", "email", email)

    try:
        async with transaction(db):
            for field in UPDATABLE_FIELDS & updates.keys():
                if updates[field] is not None:
                    setattr(user, field, updates[field])
    except IntegrityError as e:
        raise DuplicateResourceError("User", "email", email) from e
    except SQLAlchemyError as e:
        logger.error(f"Error updating user {user_id}: {e}")
        raise DatabaseError("Failed to update user", operation="update_user") from e

    await db.refresh(user)
    logger.info("User updated: id=%s", user_id)
    return user


async def search_users(db: AsyncSession, query: str, tenant_id: str) -> list[User]:
    """Case-insensitive match on first name, last name or email within a tenant."""
    pattern = f"%{query}%"
    result = await db.execute(
        select(User)
        .where(
            User.tenant_id == tenant_id,
            or_(User.first_name.ilike(pattern), User.last_name.ilike(pattern), User.email.ilike(pattern)),
        )
        .order_by(User.first_name, User.last_name)
        .limit(SEARCH_LIMIT)
    )
    return list(result.scalars().all())


async def get_users_by_project(db: AsyncSession, project_id: str, tenant_id: str) -> list[User]:
    result = await db.execute(
        select(User)
        .join(ProjectMember, ProjectMember.user_id == User.id)
        .where(ProjectMember.project_id == project_id, User.tenant_id == tenant_id)
        .order_by(ProjectMember.joined_at)
    )
    return list(result.scalars().all())
