"""
Database configuration with SQLAlchemy async support.
Uses SQLite for development, easily switchable to PostgreSQL for production.
"""

from typing import AsyncIterator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable SQLite security features."""
    cursor = dbapi_connection.cursor()
    # Enable foreign key constraints (revoked tokens cascade with their user)
    cursor.execute("PRAGMA foreign_keys=ON")
    # Enable secure delete (overwrite deleted data)
    cursor.execute("PRAGMA secure_delete=ON")
    cursor.close()


class Database:
    """Engine and session factory owned by one application instance."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.engine = create_async_engine(url, echo=echo, future=True)
        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )
        if url.startswith("sqlite"):
            event.listen(self.engine.sync_engine, "connect", set_sqlite_pragma)

    async def init(self) -> None:
        """Create all tables."""
        # Models must be imported so their tables are registered on Base.metadata
        import app.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Close database connections."""
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """Dependency for getting database sessions."""
    database: Database = request.app.state.database
    async with database.session_maker() as session:
        try:
            yield session
        finally:
            await session.close()
