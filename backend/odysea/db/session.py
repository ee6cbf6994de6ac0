"""
Database session management with connection pooling and health checks
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional, Dict, Any
from urllib.parse import urlparse

from sqlmodel import SQLModel, text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import event

from odysea.core.settings import Settings, get_settings

# registers the tables on SQLModel.metadata
from odysea.db import models  # noqa: F401

logger = logging.getLogger(__name__)


def prepare_database_url(database_url: str) -> str:
    """Validate a database URL and switch it to an async driver"""
    if not database_url:
        raise ValueError("DB_URL environment variable is required")

    parsed = urlparse(database_url)
    if not parsed.scheme:
        raise ValueError("Invalid database URL format")

    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if database_url.startswith("sqlite://"):
        return database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return database_url


class DatabaseManager:
    """Owns the async engine and the session factory"""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.engine: Optional[AsyncEngine] = None
        self.async_session: Optional[async_sessionmaker] = None
        self._connection_stats = {
            "total_connections": 0,
            "failed_connections": 0,
            "last_health_check": None,
            "health_status": "unknown",
        }

    def _create_engine(self) -> AsyncEngine:
        database_url = prepare_database_url(self.settings.DB_URL)

        engine_config = {
            "url": database_url,
            "echo": self.settings.DB_ECHO,
            "pool_pre_ping": True,
        }

        if "postgresql" in database_url:
            engine_config.update({
                "pool_size": self.settings.DB_POOL_SIZE,
                "max_overflow": self.settings.DB_MAX_OVERFLOW,
                "pool_timeout": self.settings.DB_POOL_TIMEOUT,
                "pool_recycle": self.settings.DB_POOL_RECYCLE,
            })

        engine = create_async_engine(**engine_config)
        self._setup_event_listeners(engine)

        parsed = urlparse(database_url)
        logger.info(f"Database engine created for {parsed.scheme}://{parsed.hostname or ''}{parsed.path}")
        return engine

    def _setup_event_listeners(self, engine: AsyncEngine) -> None:
        @event.listens_for(engine.sync_engine, "connect")
        def on_connect(dbapi_connection, connection_record):
            self._connection_stats["total_connections"] += 1
            if engine.dialect.name == "sqlite":
                # SQLite only enforces ON DELETE CASCADE with this pragma
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

        @event.listens_for(engine.sync_engine, "handle_error")
        def on_error(exception_context):
            self._connection_stats["failed_connections"] += 1
            logger.error(f"Database connection error: {exception_context.original_exception}")

    async def initialize(self) -> None:
        """Create the engine, the session factory and any missing tables"""
        self.engine = self._create_engine()
        self.async_session = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=True,
        )
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        logger.info("Database manager initialized successfully")

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield a session, rolling back on any error"""
        if not self.async_session:
            raise RuntimeError("Database manager not initialized")

        session = self.async_session()
        try:
            yield session
        except SQLAlchemyError as e:
            logger.error(f"Database session error: {e}")
            self._connection_stats["failed_connections"] += 1
            await session.rollback()
            raise
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def health_check(self) -> Dict[str, Any]:
        """Run ``SELECT 1`` and report connectivity"""
        health_info = {
            "status": "healthy",
            "timestamp": time.time(),
            "connection_stats": self._connection_stats.copy(),
        }
        try:
            start_time = time.time()
            async with self.get_session() as session:
                result = await session.execute(text("SELECT 1"))
                result.scalar()
            health_info["response_time"] = f"{time.time() - start_time:.3f}s"
            self._connection_stats["health_status"] = "healthy"
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            health_info["status"] = "unhealthy"
            health_info["error"] = str(e)
            self._connection_stats["health_status"] = "unhealthy"

        self._connection_stats["last_health_check"] = time.time()
        return health_info

    async def close(self) -> None:
        if self.engine:
            logger.info("Closing database connections...")
            await self.engine.dispose()
            self.engine = None
            self.async_session = None


db_manager = DatabaseManager()


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request"""
    async with db_manager.get_session() as session:
        yield session
