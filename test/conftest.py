"""
Pytest configuration and fixtures for TaskFlow tests

Every test gets a fresh in-memory SQLite database; the app under test is
built around it through ``create_app(database=...)``.
"""

import os
from collections.abc import AsyncGenerator

os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("LOG_JSON", "false")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.auth import hash_password
from taskflow.database import Database
from taskflow.middleware.rate_limit import limiter
from taskflow.models import Tenant, User
from taskflow.services.plan_policy import get_default_settings, get_plan_limits

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "correct-horse-battery"

# Import the app factory after the environment is prepared
from main import create_app  # noqa: E402

limiter.enabled = False


@pytest.fixture(scope="function")
async def database() -> AsyncGenerator[Database, None]:
    """Fresh schema per test, dropped afterwards."""
    db = Database(TEST_DATABASE_URL)
    await db.create_all()
    yield db
    await db.drop_all()
    await db.dispose()


@pytest.fixture(scope="function")
async def test_db(database: Database) -> AsyncGenerator[AsyncSession, None]:
    async with database.session() as session:
        yield session


@pytest.fixture(scope="function")
async def fk_test_db() -> AsyncGenerator[AsyncSession, None]:
    """Session on a separate SQLite database that enforces foreign keys."""
    database = Database(TEST_DATABASE_URL)

    @event.listens_for(database.engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    await database.create_all()
    async with database.session() as session:
        yield session
    await database.drop_all()
    await database.dispose()


@pytest.fixture
def app(database: Database):
    return create_app(database=database)


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client talking to the app in-process."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture(scope="session")
def password_hash() -> str:
    # bcrypt is slow, hash once per session
    return hash_password(TEST_PASSWORD)


@pytest.fixture
def make_user(test_db: AsyncSession, password_hash: str):
    """Factory creating committed users: ``await make_user(tenant_id, email)``."""

    async def _make_user(tenant_id: str, email: str, first_name: str = "Test", last_name: str = "User") -> User:
        user = User(
            email=email,
            username=email.split("@")[0],
            first_name=first_name,
            last_name=last_name,
            password_hash=password_hash,
            tenant_id=tenant_id,
        )
        test_db.add(user)
        await test_db.commit()
        await test_db.refresh(user)
        return user

    return _make_user


@pytest.fixture
async def tenant(test_db: AsyncSession) -> Tenant:
    """An active free-plan tenant whose owner id is fixed."""
    tenant = Tenant(
        id="tenant-1",
        name="Acme",
        domain="acme.io",
        status="active",
        plan="free",
        settings=get_default_settings("free"),
        owner_id="owner-1",
        **get_plan_limits("free").as_update(),
    )
    test_db.add(tenant)
    await test_db.commit()
    await test_db.refresh(tenant)
    return tenant


@pytest.fixture
async def owner(tenant: Tenant, make_user) -> User:
    return await make_user(tenant.id, "owner@acme.io", "Olive", "Owner")


@pytest.fixture
def tenant_headers(tenant: Tenant, owner: User) -> dict[str, str]:
    return {"X-Tenant-ID": tenant.id, "X-User-ID": owner.id}
