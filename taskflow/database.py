import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

from taskflow.config import Settings, settings
from taskflow.exceptions import DatabaseError

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """
    Owns the async engine (connection pool) and the session factory.

    One instance is built at application startup, stored on ``app.state``
    and disposed at shutdown.
    """

    def __init__(
        self,
        url: str,
        echo: bool = False,
        pool_size: int = 20,
        max_overflow: int = 10,
        pool_timeout: int = 30,
        pool_recycle: int = 1800,
    ):
        self.url = url
        if url.startswith("sqlite"):
            # In-memory SQLite lives on a single connection
            self.engine = create_async_engine(
                url,
                echo=echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_async_engine(
                url,
                echo=echo,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=pool_timeout,
                pool_recycle=pool_recycle,
                pool_pre_ping=True,
            )
        self.sessionmaker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            autoflush=False,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, config: Settings) -> "Database":
        return cls(
            config.database_url,
            echo=config.db_echo,
            pool_size=config.db_pool_size,
            max_overflow=config.db_max_overflow,
            pool_timeout=config.db_pool_timeout,
            pool_recycle=config.db_pool_recycle,
        )

    def session(self) -> AsyncSession:
        return self.sessionmaker()

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Database engine disposed")


async def get_db(request: Request):
    database: Database = request.app.state.database
    async with database.session() as db:
        try:
            yield db
        except SQLAlchemyError as e:
            logger.error(f"Database session error: {e}")
            raise


@asynccontextmanager
async def transaction(db: AsyncSession, timeout: float | None = None):
    """
    Run the enclosed statements as one unit of work.

    Commits when the block exits cleanly, rolls back on any exception.
    The block (commit included) must finish within ``timeout`` seconds,
    otherwise the work is rolled back and a DatabaseError is raised.
    """
    if timeout is None:
        timeout = settings.db_transaction_timeout_seconds
    try:
        async with asyncio.timeout(timeout):
            yield db
            await db.commit()
    except TimeoutError as e:
        await db.rollback()
        logger.error("Transaction exceeded %.1fs deadline, rolled back", timeout)
        raise DatabaseError("Database operation timed out", operation="transaction") from e
    except BaseException:
        await db.rollback()
        raise
