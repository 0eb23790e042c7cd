"""
Database handle and per-request sessions.

The ``Database`` object owns the async engine and session factory. It is
constructed once in the application lifespan, stored on ``app.state`` and
disposed on shutdown; nothing in the code base reaches for a module-level
engine.

Transaction isolation
---------------------
PostgreSQL runs at READ COMMITTED. Booking and edit transactions take row
locks on the rooms involved (``SELECT ... FOR UPDATE``), so a second booker of
the same room waits until the first commits and then sees its reservation.

SQLite has no row locks. Every transaction is opened with ``BEGIN IMMEDIATE``
instead, which takes the database write lock up front and serialises writers
for the whole transaction.
"""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from hotel_booking.core.config import Settings
from hotel_booking.core.logging import get_logger
from hotel_booking.db.base import Base

logger = get_logger(__name__)


def _use_immediate_transactions(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        # let SQLAlchemy emit BEGIN itself
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class Database:
    def __init__(self, url: str, **engine_kwargs):
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        if self.engine.dialect.name == "sqlite":
            _use_immediate_transactions(self.engine)
        self.sessionmaker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        if settings.DATABASE_URL.startswith("sqlite"):
            return cls(settings.DATABASE_URL, echo=settings.DEBUG)
        return cls(
            settings.DATABASE_URL,
            echo=settings.DEBUG,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
            pool_pre_ping=True,
        )

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self.sessionmaker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def close(self) -> None:
        await self.engine.dispose()
        logger.info("database_closed", dialect=self.dialect_name)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a session from the app's Database."""
    database: Database = request.app.state.database
    async for session in database.session():
        yield session
