"""
Database connection and session management.
Handles async database operations with SQLAlchemy on PostgreSQL (asyncpg) or SQLite (aiosqlite).
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import StaticPool
from sqlalchemy import text, event, DateTime, Uuid, func
from house_hunt.config import settings
from datetime import datetime, timezone
from typing import Any, Dict
import logging
import math
import uuid

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def engine_options(database_url: str) -> Dict[str, Any]:
    """
    Build engine keyword arguments for the configured backend.

    Args:
        database_url: Async SQLAlchemy database URL

    Returns:
        Keyword arguments for create_async_engine
    """
    if database_url.startswith("sqlite"):
        options: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url:
            options["poolclass"] = StaticPool
        return options

    return {
        "pool_size": 10,
        "max_overflow": 20,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
        "pool_timeout": 30,
        "connect_args": {
            "server_settings": {
                "application_name": "house_hunt_api",
            }
        },
    }


def _null_safe(fn):
    def wrapper(value):
        if value is None:
            return None
        return fn(value)
    return wrapper


def _clamped_asin(value: float) -> float:
    return math.asin(max(-1.0, min(1.0, value)))


def register_sqlite_functions(target: AsyncEngine) -> None:
    """
    Register the trigonometric SQL functions used by the radius search.

    PostgreSQL ships radians/sin/cos/asin/sqrt natively; SQLite builds
    frequently do not, so they are installed on every new connection.

    Args:
        target: Async engine bound to a SQLite database
    """

    @event.listens_for(target.sync_engine, "connect")
    def _install_math(dbapi_connection, connection_record):
        dbapi_connection.create_function("radians", 1, _null_safe(math.radians))
        dbapi_connection.create_function("sin", 1, _null_safe(math.sin))
        dbapi_connection.create_function("cos", 1, _null_safe(math.cos))
        dbapi_connection.create_function("asin", 1, _null_safe(_clamped_asin))
        dbapi_connection.create_function("sqrt", 1, _null_safe(math.sqrt))


engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    **engine_options(settings.database_url)
)

if settings.is_sqlite:
    register_sqlite_functions(engine)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """
    Base class for all database models.
    Includes common fields: id, created_at, updated_at.
    """

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        index=True
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"


async def get_db() -> AsyncSession:
    """
    Dependency to get database session.
    Yields an async database session and ensures it's closed after use.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def check_database_connection() -> bool:
    """
    Test database connectivity.
    Returns True if connection is successful, False otherwise.
    """
    try:
        async with AsyncSessionLocal() as session:
            result = await session.execute(text("SELECT 1"))
            result.scalar()
            logger.info("Database connection successful")
            return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False


async def create_tables():
    """
    Create all database tables.
    Called during application startup.
    """
    # Register model tables on the metadata
    import house_hunt.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")


async def close_db_connection():
    """
    Close database connection.
    Called during application shutdown.
    """
    await engine.dispose()
    logger.info("Database connections closed")
